"""Schemas for the dictation endpoint (transcribe / extract / create)."""

from pydantic import Field

from src.modules.clients.schemas import ClientResponse
from src.modules.invoices.schemas import FactureResponse
from src.shared.schemas import BaseSchema


class TranscriptionResponse(BaseSchema):
    success: bool = True
    transcription: str
    demo: bool = False


class ExtractedFields(BaseSchema):
    """Draft fields read by the model, as shown to the user for editing."""

    success: bool
    num_dossier: str = Field("", alias="numDossier")
    montant_ht: float = Field(0.0, alias="montantHT")
    prestation: str = ""
    raw_response: str | None = Field(None, alias="rawResponse")
    error: str | None = None


class ExtractionResponse(BaseSchema):
    """Extraction outcome plus the matching client, if any. No match is not an error."""

    success: bool
    extraction: ExtractedFields
    client_trouve: bool = Field(False, alias="clientTrouve")
    client: ClientResponse | None = None
    error: str | None = None


class FactureCreatedResponse(BaseSchema):
    success: bool = True
    facture: FactureResponse
    message: str
