"""Hosted payment links through Stripe (one Price + one PaymentLink per invoice)."""

from __future__ import annotations

import logging
from decimal import Decimal

import stripe
from starlette.concurrency import run_in_threadpool

from src.core.config import settings
from src.integrations.stripe_payments.schemas import PaymentLinkResult
from src.shared.utils.money import round_money

logger = logging.getLogger(__name__)

# Stripe rejects metadata values longer than 500 characters.
_METADATA_MAX = 500


def to_minor_units(amount: Decimal) -> int:
    """Euros to cents."""
    return int(round_money(amount) * 100)


class StripePaymentLinkService:
    def __init__(self, api_key: str | None, currency: str = "eur"):
        self.api_key = (api_key or "").strip() or None
        self.currency = currency

    @classmethod
    def from_settings(cls) -> "StripePaymentLinkService":
        return cls(api_key=settings.stripe_secret_key, currency=settings.stripe_currency)

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None

    async def create_payment_link(
        self,
        *,
        total_amount: Decimal,
        invoice_number: str,
        payee_name: str,
        description: str,
    ) -> PaymentLinkResult:
        """Create a payment link for the tax-inclusive total. Errors come back as ``ok=False``."""
        if not self.is_configured:
            return PaymentLinkResult(ok=False, error="Clé Stripe non configurée")

        try:
            link = await run_in_threadpool(
                self._create_link,
                total_amount,
                invoice_number,
                payee_name,
                description,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe payment link failed for {invoice_number}: {e}")
            return PaymentLinkResult(ok=False, error=str(e.user_message or e))

        logger.info(f"Stripe payment link {link.id} created for {invoice_number}")
        return PaymentLinkResult(ok=True, url=link.url, payment_link_id=link.id)

    def _create_link(
        self,
        total_amount: Decimal,
        invoice_number: str,
        payee_name: str,
        description: str,
    ):
        metadata = {
            "numero_facture": invoice_number,
            "client": payee_name[:_METADATA_MAX],
            "prestation": description[:_METADATA_MAX],
        }
        price = stripe.Price.create(
            api_key=self.api_key,
            currency=self.currency,
            unit_amount=to_minor_units(total_amount),
            product_data={"name": f"Facture {invoice_number} - {payee_name}"[:250]},
            metadata=metadata,
        )
        return stripe.PaymentLink.create(
            api_key=self.api_key,
            line_items=[{"price": price.id, "quantity": 1}],
            metadata=metadata,
        )


def get_payment_link_service() -> StripePaymentLinkService:
    """FastAPI dependency; tests override it with a fake."""
    return StripePaymentLinkService.from_settings()
