"""API endpoints for Invoices module."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database.session import get_db
from src.core.pdf import build_facture_context, pdf_service
from src.modules.clients.schemas import ClientResponse
from src.modules.invoices.models import Facture
from src.modules.invoices.schemas import FactureFilters, FactureResponse, FactureSummary
from src.modules.invoices.service import InvoiceService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/factures", tags=["Factures"])


def facture_to_response(facture: Facture) -> FactureResponse:
    """Convert Facture model to response schema."""
    return FactureResponse(
        id=facture.id,
        numero_sequentiel=facture.numero_sequentiel,
        prefixe=facture.prefixe,
        numero_complet=facture.numero_complet,
        prestation=facture.prestation,
        montant_ht=float(facture.montant_ht),
        taux_tva=float(facture.taux_tva),
        montant_tva=float(facture.montant_tva),
        montant_ttc=float(facture.montant_ttc),
        stripe_payment_link=facture.stripe_payment_link,
        stripe_payment_id=facture.stripe_payment_id,
        client_id=facture.client_id,
        date=facture.date_emission,
        client=ClientResponse.model_validate(facture.client) if facture.client else None,
    )


def _facture_to_summary(facture: Facture) -> FactureSummary:
    return FactureSummary(
        id=facture.id,
        numero_complet=facture.numero_complet,
        num_dossier=facture.client.num_dossier if facture.client else None,
        raison_sociale=facture.client.raison_sociale if facture.client else None,
        prestation=facture.prestation,
        montant_ttc=float(facture.montant_ttc),
        stripe_payment_link=facture.stripe_payment_link,
        date=facture.date_emission,
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[FactureSummary]])
async def list_factures(
    client_id: int | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List invoices, newest first."""
    service = InvoiceService(db)
    filters = FactureFilters(client_id=client_id, search=search, page=page, limit=limit)
    factures, total = await service.list_factures(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[_facture_to_summary(f) for f in factures],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get("/{facture_id}", response_model=ApiResponse[FactureResponse])
async def get_facture(
    facture_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get invoice by ID with its client."""
    service = InvoiceService(db)
    facture = await service.get_facture_by_id(facture_id)
    return ApiResponse(data=facture_to_response(facture))


@router.get("/{facture_id}/html", response_class=HTMLResponse)
async def preview_facture(
    facture_id: int,
    db: AsyncSession = Depends(get_db),
):
    """HTML preview of the invoice."""
    service = InvoiceService(db)
    facture = await service.get_facture_by_id(facture_id)
    context = build_facture_context(facture, settings.cabinet_info)
    return HTMLResponse(content=pdf_service.render_facture_html(context))


@router.get("/{facture_id}/pdf")
async def download_facture_pdf(
    facture_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Invoice as PDF. 503 when WeasyPrint system libraries are missing."""
    service = InvoiceService(db)
    facture = await service.get_facture_by_id(facture_id)
    context = build_facture_context(facture, settings.cabinet_info)
    pdf_bytes = pdf_service.generate_facture_pdf(context)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{facture.numero_complet}.pdf"'},
    )
