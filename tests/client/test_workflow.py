"""Tests for the client-side dictation workflow, with a mocked API."""

import json
from decimal import Decimal

import httpx
import pytest

from src.client import (
    ApiClientError,
    InvalidTransitionError,
    InvoiceDictationWorkflow,
    SmartComptaApiClient,
    WorkflowStep,
)

CLIENT = {"id": 1, "numDossier": "AM0028", "raisonSociale": "Atelier Martin SARL"}

FACTURE = {
    "id": 1,
    "numeroComplet": "FA-2026-0001",
    "montantHT": 1500.0,
    "montantTTC": 1800.0,
    "client": CLIENT,
}


class FakeApi:
    """Routes requests by endpoint and action; responses can be swapped per test."""

    def __init__(self):
        self.transcribe = httpx.Response(200, json={"success": True, "transcription": "Facture AM0028", "demo": False})
        self.extract = httpx.Response(
            200,
            json={
                "success": True,
                "extraction": {"success": True, "numDossier": "AM0028", "montantHT": 1500, "prestation": "Bilan"},
                "clientTrouve": True,
                "client": CLIENT,
            },
        )
        self.create = httpx.Response(201, json={"success": True, "facture": FACTURE, "message": "ok"})
        self.known = {"AM0028": CLIENT, "CKH088": {"id": 2, "numDossier": "CKH088", "raisonSociale": "Kheops"}}
        self.requests: list[tuple[str, dict | None]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/dossiers":
            body = json.loads(request.content)
            self.requests.append(("lookup", body))
            client = self.known.get(body["numDossier"])
            if client is None:
                return httpx.Response(404, json={"success": False, "error": "Dossier non trouvé"})
            return httpx.Response(200, json={"success": True, "client": client})

        if request.headers["content-type"].startswith("multipart/form-data"):
            self.requests.append(("transcribe", None))
            return self.transcribe

        body = json.loads(request.content)
        self.requests.append((body["action"], body))
        return self.extract if body["action"] == "extract" else self.create

    def actions(self) -> list[str]:
        return [action for action, _ in self.requests]


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def workflow(api: FakeApi) -> InvoiceDictationWorkflow:
    client = SmartComptaApiClient(base_url="http://api.test", transport=httpx.MockTransport(api))
    return InvoiceDictationWorkflow(client)


class TestDictationFlow:
    async def test_happy_path(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        workflow.start_recording()
        assert workflow.step == WorkflowStep.RECORDING
        assert workflow.progress_message == "Enregistrement en cours..."

        step = await workflow.process_recording(b"audio")

        assert step == WorkflowStep.EDITING
        assert workflow.transcription == "Facture AM0028"
        assert workflow.draft.num_dossier == "AM0028"
        assert workflow.draft.montant_ht == Decimal("1500")
        assert workflow.client == CLIENT
        assert workflow.progress_message == "Vérifiez et modifiez si nécessaire"

        step = await workflow.submit()

        assert step == WorkflowStep.SUCCESS
        assert workflow.facture["numeroComplet"] == "FA-2026-0001"
        assert api.actions() == ["transcribe", "extract", "create"]
        create_body = api.requests[-1][1]
        assert create_body == {
            "action": "create",
            "numDossier": "AM0028",
            "montantHT": "1500",
            "prestation": "Bilan",
            "genererStripe": True,
        }

    async def test_uploaded_file_skips_recording(self, workflow: InvoiceDictationWorkflow):
        step = await workflow.process_recording(b"audio", filename="note.mp3", content_type="audio/mpeg")
        assert step == WorkflowStep.EDITING

    async def test_transcription_failure_returns_to_idle(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        api.transcribe = httpx.Response(502, json={"success": False, "error": "Erreur transcription: quota"})

        step = await workflow.process_recording(b"audio")

        assert step == WorkflowStep.IDLE
        assert workflow.error == "Erreur transcription: quota"
        assert api.actions() == ["transcribe"]

    async def test_extraction_failure_keeps_transcript(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        api.extract = httpx.Response(
            200,
            json={"success": False, "error": "Format de réponse invalide", "extraction": {"success": False}},
        )

        step = await workflow.process_recording(b"audio")

        assert step == WorkflowStep.IDLE
        assert workflow.error == "Format de réponse invalide"
        assert workflow.transcription == "Facture AM0028"
        assert workflow.draft is None

    async def test_extraction_without_match(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        api.extract = httpx.Response(
            200,
            json={
                "success": True,
                "extraction": {"success": True, "numDossier": "XX01", "montantHT": 0, "prestation": ""},
                "clientTrouve": False,
                "client": None,
            },
        )

        step = await workflow.process_recording(b"audio")

        assert step == WorkflowStep.EDITING
        assert workflow.client is None
        assert workflow.draft.num_dossier == "XX01"


class TestEditingAndSubmit:
    async def _editing(self, workflow: InvoiceDictationWorkflow) -> None:
        await workflow.process_recording(b"audio")
        assert workflow.step == WorkflowStep.EDITING

    async def test_creation_failure_preserves_draft(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        await self._editing(workflow)
        workflow.update_draft(montant_ht="2000", prestation="Bilan + liasse")
        api.create = httpx.Response(500, json={"success": False, "error": "Erreur serveur"})

        step = await workflow.submit()

        assert step == WorkflowStep.EDITING
        assert workflow.error == "Erreur serveur"
        assert workflow.draft.montant_ht == Decimal("2000")
        assert workflow.draft.prestation == "Bilan + liasse"

        api.create = httpx.Response(201, json={"success": True, "facture": FACTURE, "message": "ok"})
        assert await workflow.submit() == WorkflowStep.SUCCESS
        assert workflow.error is None

    async def test_invalid_draft_is_not_sent(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        await self._editing(workflow)
        workflow.update_draft(montant_ht="0", prestation="  ")

        step = await workflow.submit()

        assert step == WorkflowStep.EDITING
        assert workflow.field_errors == {
            "montant_ht": "Montant invalide",
            "prestation": "Description requise",
        }
        assert "create" not in api.actions()

    async def test_unknown_dossier_blocks_submit(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        await self._editing(workflow)
        workflow.update_draft(num_dossier="zz99")

        assert workflow.client is None
        step = await workflow.submit()

        assert step == WorkflowStep.EDITING
        assert workflow.field_errors["num_dossier"] == "Dossier non trouvé dans la base"
        assert ("lookup", {"numDossier": "ZZ99"}) in api.requests
        assert "create" not in api.actions()

    async def test_changed_dossier_is_looked_up(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        await self._editing(workflow)
        workflow.update_draft(num_dossier="ckh088")

        assert await workflow.submit() == WorkflowStep.SUCCESS
        assert api.requests[-1][1]["numDossier"] == "CKH088"

    async def test_short_dossier_not_looked_up(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        await self._editing(workflow)
        workflow.update_draft(num_dossier="A")

        assert await workflow.lookup_client() is None
        assert "lookup" not in api.actions()

    async def test_cannot_submit_twice(self, workflow: InvoiceDictationWorkflow):
        await self._editing(workflow)
        workflow.step = WorkflowStep.CREATING

        with pytest.raises(InvalidTransitionError):
            await workflow.submit()

    async def test_cancel_discards_draft(self, workflow: InvoiceDictationWorkflow):
        await self._editing(workflow)

        workflow.cancel()

        assert workflow.step == WorkflowStep.IDLE
        assert workflow.draft is None
        assert workflow.transcription == ""

    async def test_new_invoice_clears_everything(self, workflow: InvoiceDictationWorkflow):
        await self._editing(workflow)
        await workflow.submit()

        workflow.new_invoice()

        assert workflow.step == WorkflowStep.IDLE
        assert workflow.facture is None
        assert workflow.client is None
        assert workflow.draft is None


class TestManualDraft:
    async def test_manual_draft_for_selected_client(self, workflow: InvoiceDictationWorkflow, api: FakeApi):
        workflow.select_client(CLIENT)
        workflow.start_manual_draft()
        workflow.update_draft(montant_ht=800, prestation="Déclaration TVA")

        assert await workflow.submit(generer_stripe=False) == WorkflowStep.SUCCESS
        assert api.requests[-1][1]["genererStripe"] is False
        assert api.requests[-1][1]["montantHT"] == "800"

    def test_manual_draft_requires_client(self, workflow: InvoiceDictationWorkflow):
        with pytest.raises(InvalidTransitionError):
            workflow.start_manual_draft()


class TestIllegalTransitions:
    def test_cannot_edit_while_idle(self, workflow: InvoiceDictationWorkflow):
        with pytest.raises(InvalidTransitionError):
            workflow.update_draft(prestation="x")

    def test_cannot_start_recording_twice(self, workflow: InvoiceDictationWorkflow):
        workflow.start_recording()
        with pytest.raises(InvalidTransitionError):
            workflow.start_recording()

    def test_new_invoice_only_after_success(self, workflow: InvoiceDictationWorkflow):
        with pytest.raises(InvalidTransitionError):
            workflow.new_invoice()

    async def test_submit_from_idle(self, workflow: InvoiceDictationWorkflow):
        with pytest.raises(InvalidTransitionError):
            await workflow.submit()


class TestApiClient:
    async def test_lookup_unknown_returns_none(self, workflow: InvoiceDictationWorkflow):
        assert await workflow.api.lookup_client("NOPE") is None

    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        api = SmartComptaApiClient(transport=httpx.MockTransport(handler))

        with pytest.raises(ApiClientError) as exc_info:
            await api.extract("...")
        assert exc_info.value.message.startswith("Erreur réseau")

    async def test_non_json_error(self):
        api = SmartComptaApiClient(transport=httpx.MockTransport(lambda r: httpx.Response(502, text="Bad gateway")))

        with pytest.raises(ApiClientError) as exc_info:
            await api.create_facture("AM0028", Decimal("10"), "x")
        assert exc_info.value.status_code == 502
