import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.documents.models import Sequence

logger = logging.getLogger(__name__)

FACTURE_SEQUENCE_KEY = "FACTURE_SEQ"


class InvoiceNumber(BaseModel):
    sequential_number: int
    prefix: str
    full_number: str


def format_invoice_number(prefix: str, sequential_number: int) -> str:
    """Concatenate prefix and number padded to at least 4 digits (never truncated)."""
    return f"{prefix}{sequential_number:04d}"


class InvoiceNumberGenerator:
    """
    Generates sequential invoice numbers in format: FA-YYYY-NNNN

    A single counter row (``FACTURE_SEQ``) carries the last number and the year it
    belongs to; the counter restarts at 1 when the year changes.

    Examples:
        FA-2026-0001
        FA-2026-0042
        FA-2026-12345
    """

    def __init__(self, session: AsyncSession, key: str = FACTURE_SEQUENCE_KEY):
        self.session = session
        self.key = key

    async def generate(self, year: int | None = None) -> InvoiceNumber:
        """
        Allocate the next number within the session's transaction.

        Uses SELECT FOR UPDATE so concurrent callers serialize on the counter row.
        Nothing is issued until the caller commits; a rollback gives the number back.
        """
        if year is None:
            year = datetime.now().year
        prefix = f"{settings.invoice_prefix}-{year}-"

        stmt = select(Sequence).where(Sequence.id == self.key).with_for_update()
        result = await self.session.execute(stmt)
        sequence = result.scalar_one_or_none()

        if sequence is None:
            sequence = Sequence(id=self.key, dernier_numero=0, annee=year)
            self.session.add(sequence)
            await self.session.flush()

            # Re-fetch with lock
            result = await self.session.execute(stmt)
            sequence = result.scalar_one()

        if sequence.annee != year:
            logger.info("Sequence %s: new year %s (was %s), restarting at 1", self.key, year, sequence.annee)
            sequence.dernier_numero = 0
            sequence.annee = year

        sequence.dernier_numero += 1
        await self.session.flush()

        return InvoiceNumber(
            sequential_number=sequence.dernier_numero,
            prefix=prefix,
            full_number=format_invoice_number(prefix, sequence.dernier_numero),
        )


async def next_invoice_number(session: AsyncSession, year: int | None = None) -> InvoiceNumber:
    """Convenience function to allocate the next invoice number."""
    generator = InvoiceNumberGenerator(session)
    return await generator.generate(year)
