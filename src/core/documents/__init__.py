from src.core.documents.models import Sequence
from src.core.documents.number_generator import (
    FACTURE_SEQUENCE_KEY,
    InvoiceNumber,
    InvoiceNumberGenerator,
    format_invoice_number,
    next_invoice_number,
)

__all__ = [
    "Sequence",
    "FACTURE_SEQUENCE_KEY",
    "InvoiceNumber",
    "InvoiceNumberGenerator",
    "format_invoice_number",
    "next_invoice_number",
]
