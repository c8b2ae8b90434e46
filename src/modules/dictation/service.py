"""Sequencing of one dictation request: transcribe, extract, or create the invoice."""

import logging

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import UpstreamServiceError, ValidationError
from src.integrations.interfaces import FieldExtractor, PaymentLinkProvider, SpeechToText
from src.integrations.openrouter.schemas import ExtractionResult
from src.modules.clients.models import Client
from src.modules.clients.service import ClientService
from src.modules.invoices.models import Facture
from src.modules.invoices.schemas import FactureCreate
from src.modules.invoices.service import InvoiceService

logger = logging.getLogger(__name__)

DEMO_TRANSCRIPTION = "[Mode démo] Veuillez configurer OPENROUTER_API_KEY"


class TranscriptionOutcome(BaseModel):
    transcription: str
    demo: bool = False


class DictationService:
    """
    Drives the three dictation actions.

    Extraction output is never persisted: the dossier is re-checked against the
    directory and only a user-confirmed create request produces an invoice.
    """

    def __init__(
        self,
        db: AsyncSession,
        speech_to_text: SpeechToText,
        extractor: FieldExtractor,
        payment_links: PaymentLinkProvider | None = None,
    ):
        self.db = db
        self.speech_to_text = speech_to_text
        self.extractor = extractor
        self.payment_links = payment_links

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> TranscriptionOutcome:
        if not audio:
            raise ValidationError("Fichier audio requis", field="audio")

        if not self.speech_to_text.is_configured:
            logger.warning("OPENROUTER_API_KEY not set, answering with demo transcription")
            return TranscriptionOutcome(transcription=DEMO_TRANSCRIPTION, demo=True)

        result = await self.speech_to_text.transcribe(audio, filename=filename, content_type=content_type)
        if not result.ok:
            raise UpstreamServiceError("openrouter", result.error or "Erreur de transcription")
        return TranscriptionOutcome(transcription=result.text)

    async def extract(self, transcription: str | None) -> tuple[ExtractionResult, Client | None]:
        if not (transcription or "").strip():
            raise ValidationError("Transcription requise", field="transcription")

        extraction = await self.extractor.extract_fields(transcription.strip())
        client = None
        if extraction.ok and extraction.case_ref:
            client = await ClientService(self.db).get_by_num_dossier(extraction.case_ref)
            if client is None:
                logger.info(f"Extracted dossier {extraction.case_ref} not in directory")
        return extraction, client

    async def create(self, data: FactureCreate) -> Facture:
        return await InvoiceService(self.db).create_facture(data, payment_links=self.payment_links)
