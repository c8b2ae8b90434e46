"""Dictation endpoint: one URL, three actions.

A multipart body carrying ``audio`` is transcribed. A JSON body is dispatched
on its ``action`` field: ``extract`` reads billing fields from a transcript,
``create`` persists the confirmed invoice.
"""

import json
import logging

import pydantic
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from src.core.database.session import get_db
from src.core.exceptions import ValidationError
from src.integrations.openrouter import OpenRouterClient, get_ai_client
from src.integrations.stripe_payments import StripePaymentLinkService, get_payment_link_service
from src.modules.clients.schemas import ClientResponse
from src.modules.dictation.schemas import (
    ExtractedFields,
    ExtractionResponse,
    FactureCreatedResponse,
    TranscriptionResponse,
)
from src.modules.dictation.service import DictationService
from src.modules.invoices.router import facture_to_response
from src.modules.invoices.schemas import FactureCreate
from src.modules.invoices.service import INCOMPLETE_DATA_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dictation"])


async def _read_json(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Corps de requête JSON invalide")
    if not isinstance(body, dict):
        raise ValidationError("Corps de requête JSON invalide")
    return body


def _facture_create_from(body: dict) -> FactureCreate:
    try:
        return FactureCreate.model_validate(body)
    except pydantic.ValidationError as e:
        fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
        if fields & {"montantHT", "montant_ht"}:
            raise ValidationError("Montant HT invalide", field="montantHT")
        raise ValidationError(INCOMPLETE_DATA_MESSAGE)


async def _transcribe(request: Request, service: DictationService) -> TranscriptionResponse:
    form = await request.form()
    audio = form.get("audio")
    if not isinstance(audio, UploadFile):
        raise ValidationError("Fichier audio requis", field="audio")

    content = await audio.read()
    outcome = await service.transcribe(
        content,
        filename=audio.filename or "recording.webm",
        content_type=audio.content_type or "audio/webm",
    )
    return TranscriptionResponse(transcription=outcome.transcription, demo=outcome.demo)


@router.post("/generate")
async def generate(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    ai_client: OpenRouterClient = Depends(get_ai_client),
    payment_links: StripePaymentLinkService = Depends(get_payment_link_service),
):
    """Transcribe, extract or create, depending on the request body."""
    service = DictationService(db, ai_client, ai_client, payment_links)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        return await _transcribe(request, service)

    body = await _read_json(request)
    action = body.get("action")

    if action == "extract":
        transcription = body.get("transcription")
        if not isinstance(transcription, str):
            transcription = None
        extraction, client = await service.extract(transcription)
        return ExtractionResponse(
            success=extraction.ok,
            extraction=ExtractedFields(
                success=extraction.ok,
                num_dossier=extraction.case_ref,
                montant_ht=float(extraction.base_amount),
                prestation=extraction.description,
                raw_response=extraction.raw_model_output,
                error=extraction.error,
            ),
            client_trouve=client is not None,
            client=ClientResponse.model_validate(client) if client else None,
            error=extraction.error,
        )

    if action == "create":
        facture = await service.create(_facture_create_from(body))
        response.status_code = status.HTTP_201_CREATED
        return FactureCreatedResponse(
            facture=facture_to_response(facture),
            message=f"Facture {facture.numero_complet} créée avec succès",
        )

    logger.info(f"Rejected dictation request with action={action!r}")
    raise ValidationError("Action non reconnue", field="action")
