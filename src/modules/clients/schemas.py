"""Schemas for Clients module."""

from pydantic import Field, field_validator

from src.modules.clients.models import normalize_num_dossier
from src.shared.schemas import BaseSchema


class ClientCreate(BaseSchema):
    """Schema for creating a client file."""

    num_dossier: str = Field(..., alias="numDossier", min_length=1, max_length=50)
    raison_sociale: str = Field(..., alias="raisonSociale", min_length=1, max_length=255)
    adresse: str | None = Field(None, max_length=500)
    siret: str | None = Field(None, max_length=20)
    domaine_activite: str | None = Field(None, alias="domaineActivite", max_length=255)

    @field_validator("num_dossier")
    @classmethod
    def normalize(cls, v: str) -> str:
        normalized = normalize_num_dossier(v)
        if not normalized:
            raise ValueError("Numéro de dossier requis")
        return normalized


class ClientLookupRequest(BaseSchema):
    """Live validation of a dossier number while the user types."""

    num_dossier: str = Field("", alias="numDossier")


class ClientResponse(BaseSchema):
    """Schema for client response."""

    id: int
    num_dossier: str = Field(..., alias="numDossier")
    raison_sociale: str = Field(..., alias="raisonSociale")
    adresse: str | None = None
    siret: str | None = None
    domaine_activite: str | None = Field(None, alias="domaineActivite")


class ClientLookupResponse(BaseSchema):
    success: bool = True
    client: ClientResponse


class ClientImportResult(BaseSchema):
    created: int = 0
    skipped: int = 0
    errors: list[str] = []
