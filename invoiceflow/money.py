"""
Monetary calculations for invoices.

All amounts are computed with ``Decimal`` and rounded half-up to cents, then
handed back as floats for the JSON wire format. Derived values are always
recomputed from their inputs so repeated edits cannot accumulate drift.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

VAT_RATE = Decimal("0.20")
# Withholding deduction on the payment block; same rate as VAT for now.
TEVRIKAT_RATE = Decimal("0.20")

CENTS = Decimal("0.01")

# Largest accepted input amount; keeps every derived value well inside the
# default 28-digit Decimal context.
MAX_AMOUNT = 10**15


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def round2(value: Any) -> float:
    """Round half-up to two decimal places."""
    return float(_cents(_to_decimal(value)))


def price_item(price: Any, description: str = "") -> dict[str, Any]:
    """Return a line item with VAT and total derived from ``price``."""
    amount = _cents(_to_decimal(price))
    vat = _cents(amount * VAT_RATE)
    total = _cents(amount + vat)
    return {
        "description": description,
        "price": float(amount),
        "vat": float(vat),
        "total": float(total),
    }


def sum_items(items: Iterable[Mapping[str, Any]]) -> dict[str, float]:
    """Sum priced line items into ``subtotal``, ``vatTotal`` and ``total``."""
    subtotal = Decimal("0")
    vat_total = Decimal("0")
    for item in items:
        subtotal += _to_decimal(item.get("price"))
        vat_total += _to_decimal(item.get("vat"))
    subtotal = _cents(subtotal)
    vat_total = _cents(vat_total)
    return {
        "subtotal": float(subtotal),
        "vatTotal": float(vat_total),
        "total": float(subtotal + vat_total),
    }


def invoice_details(amount: Any) -> dict[str, float]:
    base = _cents(_to_decimal(amount))
    vat = _cents(base * VAT_RATE)
    return {
        "amount": float(base),
        "vat": float(vat),
        "total": float(_cents(base + vat)),
    }


def payment_breakdown(amount: Any) -> dict[str, float]:
    """
    Split a payment amount into VAT, tevrikat and the payable total.

    ``total = amount + vat - tevrikat``; while both rates are equal this is
    numerically the amount itself.
    """
    base = _cents(_to_decimal(amount))
    vat = _cents(base * VAT_RATE)
    tevrikat = _cents(base * TEVRIKAT_RATE)
    return {
        "amount": float(base),
        "vat": float(vat),
        "tevrikat": float(tevrikat),
        "total": float(_cents(base + vat - tevrikat)),
    }
