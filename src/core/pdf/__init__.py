from src.core.pdf.service import (
    build_facture_context,
    format_date_fr,
    pdf_service,
)

__all__ = ["pdf_service", "build_facture_context", "format_date_fr"]
