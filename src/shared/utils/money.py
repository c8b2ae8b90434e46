from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Union

from pydantic import BaseModel

Numeric = Union[Decimal, float, int, str]

DEFAULT_TAX_RATE = Decimal("20")


def _to_decimal(value: Numeric) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value


def round_money(value: Numeric) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money(10.124)
        Decimal('10.12')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    value = _to_decimal(value)
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class InvoiceAmounts(BaseModel):
    """Pre-tax amount, tax rate, tax and tax-inclusive total of one invoice."""

    base_amount: Decimal
    tax_rate_percent: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def compute_amounts(base_amount: Numeric, tax_rate_percent: Numeric = DEFAULT_TAX_RATE) -> InvoiceAmounts:
    """
    Compute VAT and total from a pre-tax amount.

    The tax is taken from the unrounded product; the total is the sum of the
    rounded base and the rounded tax.

    Examples:
        >>> compute_amounts(100).total_amount
        Decimal('120.00')
        >>> compute_amounts("33.33").tax_amount
        Decimal('6.67')
    """
    base = _to_decimal(base_amount)
    rate = _to_decimal(tax_rate_percent)

    tax_amount = round_money(base * rate / Decimal("100"))
    rounded_base = round_money(base)
    total_amount = round_money(rounded_base + tax_amount)

    return InvoiceAmounts(
        base_amount=rounded_base,
        tax_rate_percent=rate,
        tax_amount=tax_amount,
        total_amount=total_amount,
    )


def format_eur(value: Numeric) -> str:
    """Format an amount the French way: ``1 234,56 €`` (narrow no-break spaces)."""
    amount = round_money(value)
    grouped = f"{amount:,.2f}"  # 1,234.56
    french = grouped.replace(",", "\u202f").replace(".", ",")
    return f"{french}\u00a0€"
