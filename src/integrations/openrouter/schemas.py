from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from src.shared.schemas import BaseSchema


class TranscriptionResult(BaseSchema):
    """Outcome of a speech-to-text call. Failures are values, not exceptions."""

    text: str = ""
    ok: bool
    error: str | None = None


class ExtractionResult(BaseSchema):
    """Billing fields read from a transcript by the language model.

    Untrusted: the dossier must still be checked against the directory and the
    user confirms the draft before anything is persisted.
    """

    case_ref: str = Field("", alias="numDossier")
    base_amount: Decimal = Field(Decimal("0"), alias="montantHT")
    description: str = Field("", alias="prestation")
    ok: bool = Field(..., alias="success")
    error: str | None = None
    raw_model_output: str | None = Field(None, alias="rawResponse")
