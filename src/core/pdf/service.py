"""Invoice rendering (HTML preview and PDF) from Jinja2 templates."""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from num2words import num2words

from src.core.exceptions import PdfGenerationUnavailableError
from src.shared.utils.money import format_eur

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "pdf"

_MOIS = (
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
)


def format_date_fr(value: datetime | None) -> str:
    """Long French date, e.g. '05 mars 2026'."""
    if value is None:
        return ""
    return f"{value.day:02d} {_MOIS[value.month - 1]} {value.year}"


def _amount_to_words(amount: Decimal) -> str:
    """Amount in French words for the 'arrêtée à la somme de' line."""
    return num2words(amount, lang="fr", to="currency", currency="EUR")


class PDFService:
    """Render invoices with Jinja2; PDF output through WeasyPrint."""

    def __init__(self) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
        )
        self._env.filters["eur"] = format_eur
        self._env.filters["date_fr"] = format_date_fr

    def render_facture_html(self, context: dict) -> str:
        template = self._env.get_template("facture.html")
        return template.render(**context)

    def generate_facture_pdf(self, context: dict) -> bytes:
        """Render invoice template with context and return PDF bytes."""
        try:
            from weasyprint import HTML
        except (OSError, ImportError) as e:
            raise PdfGenerationUnavailableError(
                f"Génération PDF indisponible (WeasyPrint/bibliothèques système). Sur macOS : brew install pango glib. {e!s}"
            ) from e
        html_content = self.render_facture_html(context)
        try:
            return HTML(string=html_content).write_pdf()
        except Exception as e:
            raise PdfGenerationUnavailableError(str(e)) from e


def build_facture_context(facture, cabinet_info: dict[str, str]) -> dict:
    """Build template context for an invoice from the ORM model and office details."""
    client = facture.client

    return {
        "facture": {
            "numero_complet": facture.numero_complet,
            "date": facture.date_emission or facture.created_at,
            "prestation": facture.prestation,
            "montant_ht": facture.montant_ht,
            "taux_tva": facture.taux_tva,
            "montant_tva": facture.montant_tva,
            "montant_ttc": facture.montant_ttc,
            "stripe_payment_link": facture.stripe_payment_link,
            "client": {
                "num_dossier": client.num_dossier,
                "raison_sociale": client.raison_sociale,
                "adresse": client.adresse or "",
                "siret": client.siret or "",
            },
        },
        "montant_en_lettres": _amount_to_words(facture.montant_ttc),
        "cabinet": cabinet_info,
    }


pdf_service = PDFService()
