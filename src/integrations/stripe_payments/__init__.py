from src.integrations.stripe_payments.schemas import PaymentLinkResult
from src.integrations.stripe_payments.service import StripePaymentLinkService, get_payment_link_service

__all__ = ["PaymentLinkResult", "StripePaymentLinkService", "get_payment_link_service"]
