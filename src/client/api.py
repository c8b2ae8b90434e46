"""HTTP client for the SmartCompta API, used by the dictation workflow and the CLI."""

import logging
from decimal import Decimal
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    """A request failed: non-success status or ``success: false`` payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SmartComptaApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v1",
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _payload(response: httpx.Response, default_error: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            raise ApiClientError(default_error, response.status_code)
        if not isinstance(payload, dict):
            raise ApiClientError(default_error, response.status_code)
        if response.is_error or not payload.get("success"):
            raise ApiClientError(payload.get("error") or default_error, response.status_code)
        return payload

    async def _post(self, default_error: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._http() as client:
                response = await client.post("/generate", **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request to {self.base_url} failed: {e}")
            raise ApiClientError(f"Erreur réseau: {e}")
        return self._payload(response, default_error)

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> dict[str, Any]:
        """Returns ``{success, transcription, demo}``."""
        return await self._post(
            "Erreur de transcription",
            files={"audio": (filename, audio, content_type)},
        )

    async def extract(self, transcription: str) -> dict[str, Any]:
        """Returns ``{success, extraction, clientTrouve, client}``."""
        return await self._post(
            "Erreur d'extraction",
            json={"action": "extract", "transcription": transcription},
        )

    async def create_facture(
        self,
        num_dossier: str,
        montant_ht: Decimal,
        prestation: str,
        generer_stripe: bool = True,
    ) -> dict[str, Any]:
        payload = await self._post(
            "Erreur de création",
            json={
                "action": "create",
                "numDossier": num_dossier,
                "montantHT": str(montant_ht),
                "prestation": prestation,
                "genererStripe": generer_stripe,
            },
        )
        return payload["facture"]

    async def lookup_client(self, num_dossier: str) -> dict[str, Any] | None:
        """Client record for a dossier number, or None when it is unknown."""
        try:
            async with self._http() as client:
                response = await client.post("/dossiers", json={"numDossier": num_dossier})
        except httpx.HTTPError as e:
            raise ApiClientError(f"Erreur réseau: {e}")
        if response.status_code == 404:
            return None
        return self._payload(response, "Erreur de recherche du dossier")["client"]
