"""API endpoints for the client directory (dossiers)."""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.core.exceptions import ValidationError
from src.modules.clients.schemas import (
    ClientImportResult,
    ClientLookupRequest,
    ClientLookupResponse,
    ClientResponse,
)
from src.modules.clients.service import ClientService, parse_clients_csv
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/dossiers", tags=["Dossiers"])


@router.get("", response_model=ApiResponse[PaginatedResponse[ClientResponse]])
async def list_dossiers(
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List client files, searchable by dossier number or company name."""
    service = ClientService(db)
    clients, total = await service.list_clients(search=search, page=page, limit=limit)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[ClientResponse.model_validate(c) for c in clients],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.post("", response_model=ClientLookupResponse)
async def lookup_dossier(
    payload: ClientLookupRequest,
    db: AsyncSession = Depends(get_db),
):
    """Check that a dossier number exists. 404 when it does not."""
    service = ClientService(db)
    client = await service.require_by_num_dossier(payload.num_dossier)
    return ClientLookupResponse(client=ClientResponse.model_validate(client))


@router.post(
    "/import",
    response_model=ApiResponse[ClientImportResult],
    status_code=status.HTTP_201_CREATED,
)
async def import_dossiers(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
):
    """Import client files from a CSV export. Known dossier numbers are skipped."""
    raw = await file.read()
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        content = raw.decode("latin-1")

    clients, errors = parse_clients_csv(content)
    if not clients and errors:
        raise ValidationError(errors[0], field="file")

    service = ClientService(db)
    result = await service.import_clients(clients)
    result.errors = errors
    return ApiResponse(
        data=result,
        message=f"{result.created} dossier(s) importé(s)",
    )
