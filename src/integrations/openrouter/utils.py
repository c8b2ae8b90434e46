from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)

# From the first "{" to the last "}": tolerates prose or code fences around the object.
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_AMOUNT_NOISE_RE = re.compile(r"[^\d,.\-]")


def find_json_object(text: str | None) -> str | None:
    """Return the JSON object substring of a model reply, or None."""
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    return match.group(0) if match else None


def parse_amount(value: Any) -> Decimal:
    """
    Read an amount the model may return as a number or a string.

    Accepts "1 200,50", "1.234,56", "1,200.50", "150 €", "99.9".
    Anything unreadable becomes 0.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    else:
        raw = _AMOUNT_NOISE_RE.sub("", str(value))
        if "," in raw and "." in raw:
            # The separator written last is the decimal one
            if raw.rfind(",") > raw.rfind("."):
                raw = raw.replace(".", "").replace(",", ".")
            else:
                raw = raw.replace(",", "")
        elif "," in raw:
            raw = raw.replace(",", ".")
    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError):
        logger.warning("Unreadable amount in extraction output: %r", value)
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount
