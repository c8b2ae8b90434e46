"""
Client-side invoice dictation workflow.

One explicit state machine sequences the three API calls (transcribe, extract,
create) and holds the editable draft. Every move goes through ``TRANSITIONS``;
anything not listed there raises ``InvalidTransitionError``, which is what makes
submitting twice while an invoice is being created impossible.
"""

import logging
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from src.client.api import ApiClientError, SmartComptaApiClient

logger = logging.getLogger(__name__)


class WorkflowStep(StrEnum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    EXTRACTING = "extracting"
    EDITING = "editing"
    CREATING = "creating"
    SUCCESS = "success"


class WorkflowEvent(StrEnum):
    START_RECORDING = "start_recording"
    RECORDING_COMPLETE = "recording_complete"
    TRANSCRIBED = "transcribed"
    EXTRACTED = "extracted"
    FAILED = "failed"
    SELECT_CLIENT = "select_client"
    MANUAL_DRAFT = "manual_draft"
    UPDATE_DRAFT = "update_draft"
    SUBMIT = "submit"
    CREATED = "created"
    CANCEL = "cancel"
    NEW_INVOICE = "new_invoice"


TRANSITIONS: dict[tuple[WorkflowStep, WorkflowEvent], WorkflowStep] = {
    (WorkflowStep.IDLE, WorkflowEvent.START_RECORDING): WorkflowStep.RECORDING,
    (WorkflowStep.RECORDING, WorkflowEvent.CANCEL): WorkflowStep.IDLE,
    (WorkflowStep.RECORDING, WorkflowEvent.RECORDING_COMPLETE): WorkflowStep.TRANSCRIBING,
    # An already recorded file can be sent without going through "recording".
    (WorkflowStep.IDLE, WorkflowEvent.RECORDING_COMPLETE): WorkflowStep.TRANSCRIBING,
    (WorkflowStep.TRANSCRIBING, WorkflowEvent.TRANSCRIBED): WorkflowStep.EXTRACTING,
    (WorkflowStep.TRANSCRIBING, WorkflowEvent.FAILED): WorkflowStep.IDLE,
    (WorkflowStep.EXTRACTING, WorkflowEvent.EXTRACTED): WorkflowStep.EDITING,
    (WorkflowStep.EXTRACTING, WorkflowEvent.FAILED): WorkflowStep.IDLE,
    (WorkflowStep.IDLE, WorkflowEvent.SELECT_CLIENT): WorkflowStep.IDLE,
    (WorkflowStep.IDLE, WorkflowEvent.MANUAL_DRAFT): WorkflowStep.EDITING,
    (WorkflowStep.EDITING, WorkflowEvent.SELECT_CLIENT): WorkflowStep.EDITING,
    (WorkflowStep.EDITING, WorkflowEvent.UPDATE_DRAFT): WorkflowStep.EDITING,
    (WorkflowStep.EDITING, WorkflowEvent.SUBMIT): WorkflowStep.CREATING,
    (WorkflowStep.EDITING, WorkflowEvent.CANCEL): WorkflowStep.IDLE,
    (WorkflowStep.CREATING, WorkflowEvent.CREATED): WorkflowStep.SUCCESS,
    (WorkflowStep.CREATING, WorkflowEvent.FAILED): WorkflowStep.EDITING,
    (WorkflowStep.SUCCESS, WorkflowEvent.NEW_INVOICE): WorkflowStep.IDLE,
}

PROGRESS_MESSAGES: dict[WorkflowStep, str] = {
    WorkflowStep.RECORDING: "Enregistrement en cours...",
    WorkflowStep.TRANSCRIBING: "Transcription en cours...",
    WorkflowStep.EXTRACTING: "Extraction des informations...",
    WorkflowStep.EDITING: "Vérifiez et modifiez si nécessaire",
    WorkflowStep.CREATING: "Création de la facture...",
}

# Shorter dossier numbers are not looked up.
MIN_LOOKUP_LENGTH = 2


class InvalidTransitionError(Exception):
    def __init__(self, step: WorkflowStep, event: WorkflowEvent):
        self.step = step
        self.event = event
        super().__init__(f"Action '{event}' impossible depuis l'étape '{step}'")


class InvoiceDraft(BaseModel):
    """Editable invoice fields, filled by extraction or by hand."""

    num_dossier: str = ""
    montant_ht: Decimal = Decimal("0")
    prestation: str = ""


def _to_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


class InvoiceDictationWorkflow:
    def __init__(self, api: SmartComptaApiClient):
        self.api = api
        self.step = WorkflowStep.IDLE
        self.transcription = ""
        self.demo = False
        self.draft: InvoiceDraft | None = None
        self.client: dict[str, Any] | None = None
        self.facture: dict[str, Any] | None = None
        self.error: str | None = None
        self.field_errors: dict[str, str] = {}

    def _fire(self, event: WorkflowEvent) -> WorkflowStep:
        target = TRANSITIONS.get((self.step, event))
        if target is None:
            raise InvalidTransitionError(self.step, event)
        logger.debug(f"Workflow {self.step} --{event}--> {target}")
        self.step = target
        return target

    def _clear_draft(self) -> None:
        self.transcription = ""
        self.demo = False
        self.draft = None
        self.error = None
        self.field_errors = {}

    @property
    def progress_message(self) -> str | None:
        return PROGRESS_MESSAGES.get(self.step)

    @property
    def is_busy(self) -> bool:
        return self.step in (WorkflowStep.TRANSCRIBING, WorkflowStep.EXTRACTING, WorkflowStep.CREATING)

    def start_recording(self) -> None:
        self._fire(WorkflowEvent.START_RECORDING)
        self.error = None

    async def process_recording(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> WorkflowStep:
        """Transcribe then extract. Ends in ``editing``, or back in ``idle`` with ``error`` set."""
        self._fire(WorkflowEvent.RECORDING_COMPLETE)
        self.error = None

        try:
            transcribed = await self.api.transcribe(audio, filename=filename, content_type=content_type)
        except ApiClientError as e:
            self.error = e.message
            return self._fire(WorkflowEvent.FAILED)

        self.transcription = transcribed.get("transcription") or ""
        self.demo = bool(transcribed.get("demo"))
        self._fire(WorkflowEvent.TRANSCRIBED)

        try:
            extracted = await self.api.extract(self.transcription)
        except ApiClientError as e:
            self.error = e.message
            return self._fire(WorkflowEvent.FAILED)

        fields = extracted.get("extraction") or {}
        self.draft = InvoiceDraft(
            num_dossier=str(fields.get("numDossier") or "").strip().upper(),
            montant_ht=_to_amount(fields.get("montantHT")),
            prestation=str(fields.get("prestation") or "").strip(),
        )
        if extracted.get("client"):
            self.client = extracted["client"]
        elif self.client is not None and self.draft.num_dossier:
            # Extracted dossier differs from a previous selection.
            if self.client.get("numDossier") != self.draft.num_dossier:
                self.client = None
        if self.client is not None and not self.draft.num_dossier:
            self.draft.num_dossier = self.client["numDossier"]
        self.field_errors = {}
        return self._fire(WorkflowEvent.EXTRACTED)

    def select_client(self, client: dict[str, Any]) -> None:
        """Pick a client from the directory (idle or while editing)."""
        self._fire(WorkflowEvent.SELECT_CLIENT)
        self.client = client
        if self.draft is not None:
            self.draft.num_dossier = client["numDossier"]
            self.field_errors.pop("num_dossier", None)

    def start_manual_draft(self) -> None:
        """Open an empty draft for the selected client, without dictation."""
        if self.client is None:
            raise InvalidTransitionError(self.step, WorkflowEvent.MANUAL_DRAFT)
        self._fire(WorkflowEvent.MANUAL_DRAFT)
        self.error = None
        self.draft = InvoiceDraft(num_dossier=self.client["numDossier"])

    def update_draft(
        self,
        num_dossier: str | None = None,
        montant_ht: Any = None,
        prestation: str | None = None,
    ) -> InvoiceDraft:
        self._fire(WorkflowEvent.UPDATE_DRAFT)
        if num_dossier is not None:
            normalized = num_dossier.strip().upper()
            if self.client is not None and self.client.get("numDossier") != normalized:
                self.client = None
            self.draft.num_dossier = normalized
        if montant_ht is not None:
            self.draft.montant_ht = _to_amount(montant_ht)
        if prestation is not None:
            self.draft.prestation = prestation
        return self.draft

    async def lookup_client(self) -> dict[str, Any] | None:
        """Check the draft's dossier number against the directory."""
        num_dossier = self.draft.num_dossier if self.draft else ""
        if len(num_dossier) < MIN_LOOKUP_LENGTH:
            self.client = None
            return None

        try:
            client = await self.api.lookup_client(num_dossier)
        except ApiClientError as e:
            logger.warning(f"Dossier lookup failed: {e.message}")
            self.client = None
            return None

        self.client = client
        if client is None:
            self.field_errors["num_dossier"] = "Dossier non trouvé"
        else:
            self.field_errors.pop("num_dossier", None)
        return client

    def validate_draft(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        draft = self.draft or InvoiceDraft()

        if not draft.num_dossier:
            errors["num_dossier"] = "Numéro de dossier requis"
        elif self.client is None or self.client.get("numDossier") != draft.num_dossier:
            errors["num_dossier"] = "Dossier non trouvé dans la base"

        if draft.montant_ht <= 0:
            errors["montant_ht"] = "Montant invalide"

        if not draft.prestation.strip():
            errors["prestation"] = "Description requise"

        self.field_errors = errors
        return errors

    async def submit(self, generer_stripe: bool = True) -> WorkflowStep:
        """
        Create the invoice from the current draft.

        Invalid drafts stay in ``editing`` with ``field_errors`` set. A failed
        creation returns to ``editing`` with the draft untouched and ``error`` set.
        """
        if self.step != WorkflowStep.EDITING:
            raise InvalidTransitionError(self.step, WorkflowEvent.SUBMIT)

        if self.client is None or self.client.get("numDossier") != self.draft.num_dossier:
            await self.lookup_client()
        if self.validate_draft():
            return self.step

        self._fire(WorkflowEvent.SUBMIT)
        self.error = None
        try:
            self.facture = await self.api.create_facture(
                num_dossier=self.draft.num_dossier,
                montant_ht=self.draft.montant_ht,
                prestation=self.draft.prestation.strip(),
                generer_stripe=generer_stripe,
            )
        except ApiClientError as e:
            self.error = e.message
            return self._fire(WorkflowEvent.FAILED)

        logger.info(f"Invoice {self.facture.get('numeroComplet')} created")
        return self._fire(WorkflowEvent.CREATED)

    def cancel(self) -> None:
        """Drop the draft and go back to idle. The selected client is kept."""
        self._fire(WorkflowEvent.CANCEL)
        self._clear_draft()

    def new_invoice(self) -> None:
        self._fire(WorkflowEvent.NEW_INVOICE)
        self._clear_draft()
        self.client = None
        self.facture = None
