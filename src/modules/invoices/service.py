"""Service for Invoices module."""

import logging
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.core.documents.number_generator import next_invoice_number
from src.core.exceptions import NotFoundError, ValidationError
from src.integrations.interfaces import PaymentLinkProvider
from src.modules.clients.models import Client
from src.modules.clients.service import ClientService
from src.modules.invoices.models import Facture
from src.modules.invoices.schemas import FactureCreate, FactureFilters
from src.shared.utils.money import compute_amounts, round_money

logger = logging.getLogger(__name__)

INCOMPLETE_DATA_MESSAGE = "Données incomplètes: numDossier, montantHT et prestation requis"


class InvoiceService:
    """Creation and lookup of invoices (factures)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _validate(data: FactureCreate) -> tuple[str, Decimal, str]:
        num_dossier = (data.num_dossier or "").strip()
        prestation = (data.prestation or "").strip()
        montant_ht = data.montant_ht

        if not num_dossier or not prestation or not montant_ht:
            raise ValidationError(INCOMPLETE_DATA_MESSAGE)
        if not montant_ht.is_finite() or round_money(montant_ht) <= 0:
            raise ValidationError("Montant HT invalide", field="montantHT")
        return num_dossier, montant_ht, prestation

    async def create_facture(
        self,
        data: FactureCreate,
        payment_links: PaymentLinkProvider | None = None,
        year: int | None = None,
    ) -> Facture:
        """
        Create an invoice for a known client.

        Order: validate input, resolve the client, compute amounts, allocate the
        number (committed), optionally create a payment link, persist. A failure
        after the number is committed leaves a gap in the sequence.
        """
        num_dossier, montant_ht, prestation = self._validate(data)

        client = await ClientService(self.db).require_by_num_dossier(num_dossier)

        amounts = compute_amounts(montant_ht, settings.default_vat_rate)

        number = await next_invoice_number(self.db, year=year)
        await self.db.commit()
        logger.info(f"Allocated invoice number {number.full_number} for dossier {client.num_dossier}")

        stripe_payment_link: str | None = None
        stripe_payment_id: str | None = None
        if data.generer_stripe and payment_links is not None and payment_links.is_configured:
            link = await payment_links.create_payment_link(
                total_amount=amounts.total_amount,
                invoice_number=number.full_number,
                payee_name=client.raison_sociale,
                description=prestation,
            )
            if link.ok:
                stripe_payment_link = link.url
                stripe_payment_id = link.payment_link_id
            else:
                logger.warning(
                    f"Invoice {number.full_number} created without payment link: {link.error}"
                )

        facture = Facture(
            numero_sequentiel=number.sequential_number,
            prefixe=number.prefix,
            numero_complet=number.full_number,
            prestation=prestation,
            montant_ht=amounts.base_amount,
            taux_tva=amounts.tax_rate_percent,
            montant_tva=amounts.tax_amount,
            montant_ttc=amounts.total_amount,
            stripe_payment_link=stripe_payment_link,
            stripe_payment_id=stripe_payment_id,
            client_id=client.id,
        )
        self.db.add(facture)
        await self.db.commit()

        return await self.get_facture_by_id(facture.id)

    async def get_facture_by_id(self, facture_id: int) -> Facture:
        """Get invoice by ID with client loaded."""
        result = await self.db.execute(
            select(Facture)
            .where(Facture.id == facture_id)
            .options(selectinload(Facture.client))
            .execution_options(populate_existing=True)
        )
        facture = result.scalar_one_or_none()
        if not facture:
            raise NotFoundError(f"Facture {facture_id} non trouvée")
        return facture

    async def get_facture_by_number(self, numero_complet: str) -> Facture:
        result = await self.db.execute(
            select(Facture)
            .where(Facture.numero_complet == numero_complet.strip().upper())
            .options(selectinload(Facture.client))
        )
        facture = result.scalar_one_or_none()
        if not facture:
            raise NotFoundError(f"Facture '{numero_complet}' non trouvée")
        return facture

    async def list_factures(self, filters: FactureFilters) -> tuple[list[Facture], int]:
        """List invoices, newest first."""
        query = (
            select(Facture)
            .options(selectinload(Facture.client))
            .order_by(Facture.id.desc())
        )

        if filters.client_id is not None:
            query = query.where(Facture.client_id == filters.client_id)
        if filters.search:
            search_term = f"%{filters.search.strip()}%"
            query = query.join(Client).where(
                or_(
                    Facture.numero_complet.ilike(search_term),
                    Facture.prestation.ilike(search_term),
                    Client.num_dossier.ilike(search_term),
                    Client.raison_sociale.ilike(search_term),
                )
            )

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        # Apply pagination
        offset = (filters.page - 1) * filters.limit
        query = query.offset(offset).limit(filters.limit)

        result = await self.db.execute(query)
        factures = list(result.scalars().all())

        return factures, total
