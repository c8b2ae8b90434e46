from __future__ import annotations

from src.shared.schemas import BaseSchema


class PaymentLinkResult(BaseSchema):
    ok: bool
    url: str | None = None
    payment_link_id: str | None = None
    error: str | None = None
