#!/usr/bin/env python3
"""
Load demo client files (dossiers) so that dictated invoices can be matched.

Optionally imports a CSV export of the firm's client directory
(columns numDossier;raisonSociale;adresse;siret;domaineActivite).

Usage:
    python scripts/seed_demo_data.py --dry-run                 # nothing written
    python scripts/seed_demo_data.py --confirm                 # write demo clients
    python scripts/seed_demo_data.py --confirm --csv dossiers.csv

Requires: migrations applied (alembic upgrade head), database reachable.
"""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database.session import async_session
from src.modules.clients.schemas import ClientCreate
from src.modules.clients.service import ClientService, parse_clients_csv

# numDossier, raison sociale, adresse, SIRET, domaine d'activité
DEMO_CLIENTS = [
    ("AM0028", "Atelier Martin SARL", "12 rue des Tanneurs, 69002 Lyon", "81234567800019", "Menuiserie"),
    ("CKH088", "Cabinet Kheops Conseil", "4 avenue Foch, 75116 Paris", "79345612300027", "Conseil en gestion"),
    ("SPR", "Société Provençale de Restauration", "8 cours Mirabeau, 13100 Aix-en-Provence", "53298741200045", "Restauration"),
    ("BL0412", "Boulangerie Lefèvre", "27 place du Marché, 44000 Nantes", "44871236500012", "Boulangerie"),
    ("TRX019", "Transports Rixens & Fils", "ZA des Landes, 33700 Mérignac", "38765490100033", "Transport routier"),
]


def demo_clients() -> list[ClientCreate]:
    return [
        ClientCreate(
            num_dossier=num_dossier,
            raison_sociale=raison_sociale,
            adresse=adresse,
            siret=siret,
            domaine_activite=domaine,
        )
        for num_dossier, raison_sociale, adresse, siret, domaine in DEMO_CLIENTS
    ]


async def run_seed(session: AsyncSession, dry_run: bool, csv_path: Path | None = None) -> None:
    clients = demo_clients()

    if csv_path is not None:
        imported, errors = parse_clients_csv(csv_path.read_text(encoding="utf-8"))
        for error in errors:
            print(f"  {csv_path.name}: {error}")
        print(f"  Read {len(imported)} clients from {csv_path.name}.")
        clients.extend(imported)

    result = await ClientService(session).import_clients(clients, commit=False)
    print(f"  Created {result.created} clients, {result.skipped} already present.")

    if dry_run:
        await session.rollback()
        print("\n[DRY-RUN] Rolled back, no data written.")
    else:
        await session.commit()
        print("\nSeed completed successfully.")


async def main() -> None:
    import argparse
    parser = argparse.ArgumentParser(description="Seed database with demo client files")
    parser.add_argument("--dry-run", action="store_true", help="Do not commit")
    parser.add_argument("--confirm", action="store_true", help="Commit changes")
    parser.add_argument("--csv", type=Path, default=None, help="CSV export of client files to import")
    args = parser.parse_args()
    if not args.dry_run and not args.confirm:
        print("Use --dry-run or --confirm")
        sys.exit(1)
    if args.csv is not None and not args.csv.is_file():
        print(f"CSV file not found: {args.csv}")
        sys.exit(1)

    print("Database:", settings.database_url.split("@")[-1] if "@" in settings.database_url else "?")
    print("Mode:", "DRY-RUN" if args.dry_run else "CONFIRM")
    async with async_session() as session:
        await run_seed(session, dry_run=args.dry_run, csv_path=args.csv)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
