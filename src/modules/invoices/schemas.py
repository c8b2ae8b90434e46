"""Schemas for Invoices module."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from src.modules.clients.schemas import ClientResponse
from src.shared.schemas import BaseSchema


class FactureCreate(BaseSchema):
    """
    Create-invoice request, as confirmed by the user after editing the draft.

    Fields are loose on purpose: presence and validity are checked by the service
    so that every rejection happens before a number is allocated.
    """

    num_dossier: str | None = Field(None, alias="numDossier")
    montant_ht: Decimal | None = Field(None, alias="montantHT")
    prestation: str | None = None
    generer_stripe: bool = Field(True, alias="genererStripe")


class FactureFilters(BaseSchema):
    client_id: int | None = None
    search: str | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)


class FactureResponse(BaseSchema):
    """Schema for invoice response (with its client)."""

    id: int
    numero_sequentiel: int = Field(..., alias="numeroSequentiel")
    prefixe: str
    numero_complet: str = Field(..., alias="numeroComplet")
    prestation: str
    montant_ht: float = Field(..., alias="montantHT")
    taux_tva: float = Field(..., alias="tauxTVA")
    montant_tva: float = Field(..., alias="montantTVA")
    montant_ttc: float = Field(..., alias="montantTTC")
    stripe_payment_link: str | None = Field(None, alias="stripePaymentLink")
    stripe_payment_id: str | None = Field(None, alias="stripePaymentId")
    client_id: int = Field(..., alias="clientId")
    date: datetime
    client: ClientResponse | None = None


class FactureSummary(BaseSchema):
    """Row of the invoice list."""

    id: int
    numero_complet: str = Field(..., alias="numeroComplet")
    num_dossier: str | None = Field(None, alias="numDossier")
    raison_sociale: str | None = Field(None, alias="raisonSociale")
    prestation: str
    montant_ttc: float = Field(..., alias="montantTTC")
    stripe_payment_link: str | None = Field(None, alias="stripePaymentLink")
    date: datetime
