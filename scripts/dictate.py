#!/usr/bin/env python3
"""
Dictate an invoice from an audio file against a running SmartCompta API.

The recording is transcribed, billing fields are extracted and shown as a draft;
values can be overridden on the command line before the invoice is created.

Usage:
    python scripts/dictate.py recording.webm
    python scripts/dictate.py recording.webm --montant 1500 --yes
    python scripts/dictate.py --dossier AM0028 --montant 800 --prestation "Bilan 2025" --yes
"""

import asyncio
import mimetypes
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.client import (
    ApiClientError,
    InvalidTransitionError,
    InvoiceDictationWorkflow,
    SmartComptaApiClient,
    WorkflowStep,
)
from src.shared.utils.money import compute_amounts, format_eur


def print_draft(workflow: InvoiceDictationWorkflow) -> None:
    draft = workflow.draft
    amounts = compute_amounts(draft.montant_ht)
    client = workflow.client["raisonSociale"] if workflow.client else "(dossier inconnu)"
    print(f"  Dossier    : {draft.num_dossier or '-'}  {client}")
    print(f"  Prestation : {draft.prestation or '-'}")
    print(f"  Montant HT : {format_eur(amounts.base_amount)}")
    print(f"  TVA ({amounts.tax_rate_percent}%) : {format_eur(amounts.tax_amount)}")
    print(f"  Total TTC  : {format_eur(amounts.total_amount)}")


async def run(args) -> int:
    workflow = InvoiceDictationWorkflow(SmartComptaApiClient(base_url=args.url))

    if args.audio is not None:
        content_type = mimetypes.guess_type(args.audio.name)[0] or "audio/webm"
        print(workflow.progress_message or "Transcription en cours...")
        step = await workflow.process_recording(
            args.audio.read_bytes(), filename=args.audio.name, content_type=content_type
        )
        if workflow.transcription:
            print(f'Transcription: "{workflow.transcription}"')
        if step != WorkflowStep.EDITING:
            print(f"Erreur: {workflow.error}")
            return 1
    else:
        client = await workflow.api.lookup_client(args.dossier.strip().upper())
        if client is None:
            print(f"Dossier {args.dossier} non trouvé dans la base")
            return 1
        workflow.select_client(client)
        workflow.start_manual_draft()

    workflow.update_draft(
        num_dossier=args.dossier,
        montant_ht=args.montant,
        prestation=args.prestation,
    )
    await workflow.lookup_client()

    print(workflow.progress_message)
    print_draft(workflow)

    if not args.yes:
        answer = input("Créer la facture ? [o/N] ").strip().lower()
        if answer not in ("o", "oui", "y", "yes"):
            workflow.cancel()
            print("Annulé.")
            return 0

    step = await workflow.submit(generer_stripe=not args.no_stripe)
    if step == WorkflowStep.SUCCESS:
        facture = workflow.facture
        print(f"Facture {facture['numeroComplet']} créée ({format_eur(facture['montantTTC'])})")
        if facture.get("stripePaymentLink"):
            print(f"Lien de paiement: {facture['stripePaymentLink']}")
        return 0

    for field, message in workflow.field_errors.items():
        print(f"  {field}: {message}")
    if workflow.error:
        print(f"Erreur: {workflow.error}")
    return 1


def main() -> None:
    import argparse
    parser = argparse.ArgumentParser(description="Dictate an invoice from an audio recording")
    parser.add_argument("audio", nargs="?", type=Path, help="Audio file (webm, mp3, wav...)")
    parser.add_argument("--url", default="http://localhost:8000", help="SmartCompta API base URL")
    parser.add_argument("--dossier", help="Override the dossier number")
    parser.add_argument("--montant", help="Override the pre-tax amount (HT)")
    parser.add_argument("--prestation", help="Override the job description")
    parser.add_argument("--no-stripe", action="store_true", help="Do not create a payment link")
    parser.add_argument("--yes", action="store_true", help="Create without asking")
    args = parser.parse_args()

    if args.audio is None and not args.dossier:
        parser.error("an audio file or --dossier is required")
    if args.audio is not None and not args.audio.is_file():
        parser.error(f"audio file not found: {args.audio}")

    try:
        sys.exit(asyncio.run(run(args)))
    except (ApiClientError, InvalidTransitionError) as e:
        print(f"Erreur: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
