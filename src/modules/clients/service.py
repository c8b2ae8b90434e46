"""Service for Clients module."""

import csv
import logging

import pydantic
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.modules.clients.models import Client, normalize_num_dossier
from src.modules.clients.schemas import ClientCreate, ClientImportResult

logger = logging.getLogger(__name__)

# Accepted CSV headers (lower-cased) mapped to ClientCreate field names.
CSV_COLUMNS = {
    "numdossier": "num_dossier",
    "num_dossier": "num_dossier",
    "raisonsociale": "raison_sociale",
    "raison_sociale": "raison_sociale",
    "adresse": "adresse",
    "siret": "siret",
    "domaineactivite": "domaine_activite",
    "domaine_activite": "domaine_activite",
}


def parse_clients_csv(content: str) -> tuple[list[ClientCreate], list[str]]:
    """
    Parse a client directory export.

    The delimiter is ";" when the header line contains one, "," otherwise.
    Returns: (clients, errors). Invalid rows are reported in errors and skipped.
    """
    lines = [ln for ln in content.lstrip("\ufeff").splitlines() if ln.strip()]
    if not lines:
        raise ValidationError("Fichier CSV vide")

    delimiter = ";" if ";" in lines[0] else ","
    reader = csv.reader(lines, delimiter=delimiter)
    header = [CSV_COLUMNS.get(cell.strip().lower()) for cell in next(reader)]
    if "num_dossier" not in header or "raison_sociale" not in header:
        raise ValidationError("Colonnes numDossier et raisonSociale requises")

    clients: list[ClientCreate] = []
    errors: list[str] = []
    for line_no, row in enumerate(reader, start=2):
        values = {
            field: cell.strip() or None
            for field, cell in zip(header, row)
            if field is not None
        }
        try:
            clients.append(ClientCreate.model_validate(values))
        except pydantic.ValidationError as e:
            errors.append(f"Ligne {line_no}: {e.errors()[0]['msg']}")
    return clients, errors


class ClientService:
    """Client directory: lookup by dossier number, listing, creation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_num_dossier(self, num_dossier: str | None) -> Client | None:
        """Find a client by dossier number (case and surrounding spaces ignored)."""
        normalized = normalize_num_dossier(num_dossier)
        if not normalized:
            return None
        result = await self.db.execute(select(Client).where(Client.num_dossier == normalized))
        return result.scalar_one_or_none()

    async def require_by_num_dossier(self, num_dossier: str | None) -> Client:
        client = await self.get_by_num_dossier(num_dossier)
        if client is None:
            raise NotFoundError(
                f"Dossier {normalize_num_dossier(num_dossier) or num_dossier} non trouvé dans la base",
                field="numDossier",
            )
        return client

    async def list_clients(
        self, search: str | None = None, page: int = 1, limit: int = 50
    ) -> tuple[list[Client], int]:
        """List clients ordered by dossier number, optionally filtered."""
        query = select(Client).order_by(Client.num_dossier)
        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Client.num_dossier.ilike(term),
                    Client.raison_sociale.ilike(term),
                    Client.domaine_activite.ilike(term),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        offset = (page - 1) * limit
        result = await self.db.execute(query.offset(offset).limit(limit))
        return list(result.scalars().all()), int(total)

    async def create_client(self, data: ClientCreate) -> Client:
        """Create a client file; dossier numbers are unique."""
        if await self.get_by_num_dossier(data.num_dossier):
            raise DuplicateError("Client", "numDossier", data.num_dossier)

        client = Client(
            num_dossier=data.num_dossier,
            raison_sociale=data.raison_sociale.strip(),
            adresse=data.adresse,
            siret=data.siret,
            domaine_activite=data.domaine_activite,
        )
        self.db.add(client)
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def import_clients(self, clients: list[ClientCreate], commit: bool = True) -> ClientImportResult:
        """Add clients whose dossier number is not known yet; existing ones are skipped."""
        created = 0
        skipped = 0
        seen: set[str] = set()
        for data in clients:
            if data.num_dossier in seen or await self.get_by_num_dossier(data.num_dossier):
                skipped += 1
                continue
            seen.add(data.num_dossier)
            self.db.add(
                Client(
                    num_dossier=data.num_dossier,
                    raison_sociale=data.raison_sociale.strip(),
                    adresse=data.adresse,
                    siret=data.siret,
                    domaine_activite=data.domaine_activite,
                )
            )
            created += 1

        if commit:
            await self.db.commit()
        else:
            await self.db.flush()
        logger.info(f"Client import: {created} created, {skipped} skipped")
        return ClientImportResult(created=created, skipped=skipped)
