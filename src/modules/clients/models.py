"""Client (dossier) model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import TimestampedModel


def normalize_num_dossier(value: str | None) -> str:
    """Dossier references are stored and looked up upper-cased and trimmed."""
    return (value or "").strip().upper()


class Client(TimestampedModel):
    """Client file of the accounting office, identified by its dossier number."""

    __tablename__ = "clients"

    num_dossier: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )  # e.g. "AM0028", "CKH088"
    raison_sociale: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    adresse: Mapped[str | None] = mapped_column(String(500), nullable=True)
    siret: Mapped[str | None] = mapped_column(String(20), nullable=True)
    domaine_activite: Mapped[str | None] = mapped_column(String(255), nullable=True)
