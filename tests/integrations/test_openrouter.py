"""Tests for the OpenRouter client, with httpx.MockTransport in place of the network."""

import json
from decimal import Decimal

import httpx

from src.integrations.openrouter import OpenRouterClient, parse_extraction
from src.integrations.openrouter.client import MISSING_KEY_MESSAGE
from src.integrations.openrouter.utils import find_json_object, parse_amount


def make_client(handler, api_key: str | None = "sk-or-test") -> OpenRouterClient:
    return OpenRouterClient(
        api_key=api_key,
        base_url="https://openrouter.test/api/v1",
        referer="https://smartcompta.test",
        title="SmartCompta Voice",
        transport=httpx.MockTransport(handler),
    )


def chat_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestTranscribe:
    async def test_json_payload_with_data_uri(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"text": "  Facture dossier AM0028  "})

        result = await make_client(handler).transcribe(b"audio-bytes")

        assert result.ok is True
        assert result.text == "Facture dossier AM0028"
        assert len(seen) == 1
        request = seen[0]
        assert request.url.path == "/api/v1/audio/transcriptions"
        assert request.headers["authorization"] == "Bearer sk-or-test"
        assert request.headers["http-referer"] == "https://smartcompta.test"
        assert request.headers["x-title"] == "SmartCompta Voice"
        body = json.loads(request.content)
        assert body["model"] == "openai/whisper-large-v3"
        assert body["language"] == "fr"
        assert body["file"] == "data:audio/webm;base64,YXVkaW8tYnl0ZXM="

    async def test_falls_back_to_multipart_once(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.headers["content-type"].startswith("application/json"):
                return httpx.Response(400, text="unsupported payload")
            return httpx.Response(200, json={"text": "bonjour"})

        result = await make_client(handler).transcribe(b"abc", filename="note.mp3", content_type="audio/mpeg")

        assert result.ok is True
        assert result.text == "bonjour"
        assert len(seen) == 2
        assert seen[1].headers["content-type"].startswith("multipart/form-data")
        assert b'filename="note.mp3"' in seen[1].content

    async def test_provider_error_after_fallback(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, text="invalid key")

        result = await make_client(handler).transcribe(b"abc")

        assert result.ok is False
        assert result.error == "Erreur transcription: invalid key"
        assert len(calls) == 2

    async def test_missing_key_makes_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = make_client(handler, api_key="   ")
        result = await client.transcribe(b"abc")

        assert client.is_configured is False
        assert result.ok is False
        assert result.error == MISSING_KEY_MESSAGE

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await make_client(handler).transcribe(b"abc")

        assert result.ok is False
        assert result.error.startswith("Erreur: ")

    async def test_empty_text_is_success(self):
        result = await make_client(lambda r: httpx.Response(200, json={})).transcribe(b"abc")

        assert result.ok is True
        assert result.text == ""


class TestExtractFields:
    async def test_extracts_and_normalizes(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(
                200,
                json=chat_reply(
                    'Voici le résultat :\n```json\n{"numDossier": " am0028 ", '
                    '"montantHT": "1 500,50", "prestation": "  Bilan annuel "}\n```'
                ),
            )

        result = await make_client(handler).extract_fields("facture am0028 ...")

        assert result.ok is True
        assert result.case_ref == "AM0028"
        assert result.base_amount == Decimal("1500.50")
        assert result.description == "Bilan annuel"
        assert "```json" in result.raw_model_output

        payload = seen[0]
        assert payload["model"] == "openai/gpt-4o"
        assert payload["temperature"] == 0.1
        assert payload["max_tokens"] == 200
        assert payload["messages"][0]["role"] == "system"
        assert "facture am0028" in payload["messages"][1]["content"]

    async def test_reply_without_json(self):
        handler = lambda r: httpx.Response(200, json=chat_reply("Je n'ai pas compris."))  # noqa: E731

        result = await make_client(handler).extract_fields("...")

        assert result.ok is False
        assert result.error == "Format de réponse invalide"
        assert result.raw_model_output == "Je n'ai pas compris."

    async def test_provider_error(self):
        handler = lambda r: httpx.Response(500, text="upstream down")  # noqa: E731

        result = await make_client(handler).extract_fields("...")

        assert result.ok is False
        assert "upstream down" in result.error

    async def test_missing_key(self):
        result = await make_client(lambda r: httpx.Response(200), api_key=None).extract_fields("...")
        assert result.ok is False
        assert result.error == MISSING_KEY_MESSAGE


class TestParsing:
    def test_invalid_json_keeps_raw_text(self):
        result = parse_extraction("{numDossier: AM0028}")
        assert result.ok is False
        assert result.raw_model_output == "{numDossier: AM0028}"

    def test_unparseable_amount_defaults_to_zero(self):
        result = parse_extraction('{"numDossier": "SPR", "montantHT": "beaucoup", "prestation": "Paie"}')
        assert result.ok is True
        assert result.base_amount == Decimal("0")

    def test_missing_fields_are_empty(self):
        result = parse_extraction("{}")
        assert result.ok is True
        assert result.case_ref == ""
        assert result.description == ""
        assert result.base_amount == Decimal("0")

    def test_serialized_with_wire_names(self):
        result = parse_extraction('{"numDossier": "CKH088", "montantHT": 800, "prestation": "TVA"}')
        data = result.model_dump(by_alias=True)
        assert data["numDossier"] == "CKH088"
        assert data["montantHT"] == Decimal("800")
        assert data["prestation"] == "TVA"
        assert data["success"] is True

    def test_find_json_object(self):
        assert find_json_object('ok {"a": 1} fin') == '{"a": 1}'
        assert find_json_object("rien") is None
        assert find_json_object(None) is None

    def test_parse_amount_variants(self):
        assert parse_amount(1500) == Decimal("1500")
        assert parse_amount("150 €") == Decimal("150")
        assert parse_amount("1,200.50") == Decimal("1200.50")
        assert parse_amount("99,9") == Decimal("99.9")
        assert parse_amount("1.234,56") == Decimal("1234.56")
        assert parse_amount(None) == Decimal("0")
        assert parse_amount("") == Decimal("0")
