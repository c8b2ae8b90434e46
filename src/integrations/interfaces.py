"""Narrow interfaces of the external providers, so fakes can stand in for them in tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from src.integrations.openrouter.schemas import ExtractionResult, TranscriptionResult
from src.integrations.stripe_payments.schemas import PaymentLinkResult


class SpeechToText(Protocol):
    @property
    def is_configured(self) -> bool: ...

    async def transcribe(
        self, audio: bytes, filename: str = ..., content_type: str = ...
    ) -> TranscriptionResult: ...


class FieldExtractor(Protocol):
    async def extract_fields(self, transcript: str) -> ExtractionResult: ...


class PaymentLinkProvider(Protocol):
    @property
    def is_configured(self) -> bool: ...

    async def create_payment_link(
        self,
        *,
        total_amount: Decimal,
        invoice_number: str,
        payee_name: str,
        description: str,
    ) -> PaymentLinkResult: ...
