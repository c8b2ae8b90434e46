"""Facture (invoice) model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import TimestampedModel


class Facture(TimestampedModel):
    """
    Invoice issued to a client file.

    ``numero_complet`` is ``prefixe`` followed by ``numero_sequentiel`` padded to 4
    digits; ``montant_ttc`` is ``montant_ht + montant_tva``. Immutable once created.
    """

    __tablename__ = "factures"

    numero_sequentiel: Mapped[int] = mapped_column(Integer, nullable=False)
    prefixe: Mapped[str] = mapped_column(String(20), nullable=False)  # e.g. "FA-2026-"
    numero_complet: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )  # e.g. "FA-2026-0001"

    prestation: Mapped[str] = mapped_column(Text, nullable=False)

    # Amounts (Decimal with 2 decimal places)
    montant_ht: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    taux_tva: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    montant_tva: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    montant_ttc: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Stripe
    stripe_payment_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    stripe_payment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    date_emission: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("clients.id"), nullable=False, index=True
    )

    # Relationships
    client: Mapped["Client"] = relationship("Client")


from src.modules.clients.models import Client  # noqa: E402
