"""
OpenRouter client: speech-to-text (Whisper) and billing-field extraction (chat model).

Both calls are single attempts. Provider and transport failures are returned as
``ok=False`` results carrying a readable message; they never raise.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any

import httpx

from src.core.config import settings
from src.integrations.openrouter.prompts import EXTRACTION_SYSTEM_PROMPT, build_user_message
from src.integrations.openrouter.schemas import ExtractionResult, TranscriptionResult
from src.integrations.openrouter.utils import find_json_object, parse_amount

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Clé API OpenRouter non configurée"


class OpenRouterClient:
    """Thin async wrapper over the OpenRouter REST API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://openrouter.ai/api/v1",
        transcription_model: str = "openai/whisper-large-v3",
        extraction_model: str = "openai/gpt-4o",
        language: str = "fr",
        referer: str = "http://localhost:3000",
        title: str = "SmartCompta Voice",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = (api_key or "").strip() or None
        self.base_url = base_url.rstrip("/")
        self.transcription_model = transcription_model
        self.extraction_model = extraction_model
        self.language = language
        self.referer = referer
        self.title = title
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "OpenRouterClient":
        return cls(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            transcription_model=settings.transcription_model,
            extraction_model=settings.extraction_model,
            language=settings.transcription_language,
            referer=settings.app_url,
            title=settings.app_title,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> TranscriptionResult:
        """
        Send recorded audio to the speech-to-text model.

        The audio goes first as a base64 data URI in a JSON body; if the provider
        rejects that format it is sent once more as a multipart upload.
        """
        if not self.is_configured:
            return TranscriptionResult(ok=False, error=MISSING_KEY_MESSAGE)

        url = f"{self.base_url}/audio/transcriptions"
        encoded = base64.b64encode(audio).decode("ascii")

        try:
            async with self._http() as client:
                response = await client.post(
                    url,
                    headers=self._headers(),
                    json={
                        "model": self.transcription_model,
                        "file": f"data:{content_type};base64,{encoded}",
                        "language": self.language,
                    },
                )
                if response.is_error:
                    logger.info(
                        "Transcription rejected the JSON payload (%s), retrying as multipart",
                        response.status_code,
                    )
                    response = await client.post(
                        url,
                        headers=self._headers(),
                        data={"model": self.transcription_model, "language": self.language},
                        files={"file": (filename, audio, content_type)},
                    )
        except httpx.HTTPError as e:
            logger.error(f"Transcription request failed: {e}")
            return TranscriptionResult(ok=False, error=f"Erreur: {e}")

        if response.is_error:
            logger.error(f"Transcription failed with status {response.status_code}")
            return TranscriptionResult(ok=False, error=f"Erreur transcription: {response.text}")

        try:
            data = response.json()
        except ValueError:
            return TranscriptionResult(ok=False, error="Réponse de transcription illisible")

        text = str(data.get("text") or "").strip() if isinstance(data, dict) else ""
        logger.info(f"Transcribed audio: {text[:100]}...")
        return TranscriptionResult(ok=True, text=text)

    async def extract_fields(self, transcript: str) -> ExtractionResult:
        """Ask the chat model for dossier number, pre-tax amount and job description."""
        if not self.is_configured:
            return ExtractionResult(ok=False, error=MISSING_KEY_MESSAGE)

        payload = {
            "model": self.extraction_model,
            "messages": [
                {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                {"role": "user", "content": build_user_message(transcript)},
            ],
            "temperature": 0.1,
            "max_tokens": 200,
        }

        try:
            async with self._http() as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._headers(),
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"Extraction request failed: {e}")
            return ExtractionResult(ok=False, error=f"Erreur: {e}")

        if response.is_error:
            logger.error(f"Extraction failed with status {response.status_code}")
            return ExtractionResult(ok=False, error=f"Erreur extraction: {response.text}")

        try:
            content = _message_content(response.json())
        except ValueError:
            return ExtractionResult(ok=False, error="Réponse d'extraction illisible", raw_model_output=response.text)

        return parse_extraction(content)


def _message_content(data: Any) -> str:
    try:
        return str(data["choices"][0]["message"]["content"] or "")
    except (KeyError, IndexError, TypeError):
        return ""


def parse_extraction(content: str) -> ExtractionResult:
    """Turn the model's free-text reply into normalized billing fields."""
    candidate = find_json_object(content)
    if candidate is None:
        logger.warning("No JSON object in extraction output")
        return ExtractionResult(
            ok=False,
            error="Format de réponse invalide",
            raw_model_output=content,
        )

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in extraction output: {e}")
        return ExtractionResult(
            ok=False,
            error="Format de réponse invalide",
            raw_model_output=content,
        )
    if not isinstance(parsed, dict):
        return ExtractionResult(ok=False, error="Format de réponse invalide", raw_model_output=content)

    result = ExtractionResult(
        ok=True,
        case_ref=str(parsed.get("numDossier") or "").strip().upper(),
        base_amount=parse_amount(parsed.get("montantHT")),
        description=str(parsed.get("prestation") or "").strip(),
        raw_model_output=content,
    )
    logger.info(f"Extracted dossier={result.case_ref!r} montantHT={result.base_amount}")
    return result


def get_ai_client() -> OpenRouterClient:
    """FastAPI dependency; tests override it with a fake."""
    return OpenRouterClient.from_settings()
