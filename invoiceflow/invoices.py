"""
Invoice construction, merging and audit stamping.

These functions are pure: they take an ``Invoice`` and return a new one.
Timestamps default to the current UTC time but can be passed in.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from . import money
from .schemas import Invoice, InvoiceCreate, InvoiceItem, InvoicePatch, InvoiceStatus

# (actor field, date field) recorded the first time an invoice enters a status
AUDIT_STAMPS: dict[InvoiceStatus, tuple[str, str]] = {
    InvoiceStatus.SENT: ("sender", "sent_date"),
    InvoiceStatus.IN_PROCESS: ("processor", "process_date"),
    InvoiceStatus.COMPLETED: ("completer", "completed_date"),
    InvoiceStatus.LOGGED: ("logger", "approved_date"),
}


def utcnow_iso() -> str:
    """Current UTC time as ``2024-01-01T09:30:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def price_items(items: Iterable[InvoiceItem]) -> list[InvoiceItem]:
    return [InvoiceItem(**money.price_item(item.price, item.description)) for item in items]


def derived_amounts(
    items: list[InvoiceItem],
    invoice_details_amount: Any,
    payment_amount: Any,
) -> dict[str, Any]:
    """Every computed monetary field of an invoice, keyed by attribute name."""
    totals = money.sum_items(item.model_dump() for item in items)
    details = money.invoice_details(invoice_details_amount)
    payment = money.payment_breakdown(payment_amount)
    return {
        "items": items,
        "subtotal": totals["subtotal"],
        "vat_total": totals["vatTotal"],
        "total": totals["total"],
        "invoice_details_amount": details["amount"],
        "invoice_details_vat": details["vat"],
        "invoice_details_total": details["total"],
        "payment_amount": payment["amount"],
        "payment_vat": payment["vat"],
        "payment_tevrikat": payment["tevrikat"],
        "payment_total": payment["total"],
    }


def build_invoice(payload: InvoiceCreate, invoice_id: str, now: str | None = None) -> Invoice:
    """
    Create a new invoice record from a validated creation payload.

    The creator is stamped with ``createdAt``; ``updatedAt`` starts equal to it.
    Line items and all totals are computed here, whatever the client sent.
    """
    now = now or utcnow_iso()
    fields = payload.model_dump()
    fields.update(
        derived_amounts(
            price_items(payload.items),
            payload.invoice_details_amount,
            payload.payment_amount,
        )
    )
    fields.update(id=invoice_id, created_at=now, updated_at=now)
    return Invoice(**fields)


def merge_update(invoice: Invoice, patch: InvoicePatch, now: str | None = None) -> Invoice:
    """Apply a partial update. ``id`` and the audit trail are never touched."""
    merged = invoice.model_copy(update=patch.changes())
    merged = merged.model_copy(
        update=derived_amounts(
            price_items(merged.items),
            merged.invoice_details_amount,
            merged.payment_amount,
        )
    )
    return merged.model_copy(update={"updated_at": now or utcnow_iso()})


def apply_audit_stamp(
    invoice: Invoice,
    status: InvoiceStatus,
    actor: str,
    now: str | None = None,
) -> Invoice:
    """
    Move ``invoice`` to ``status`` and record who did it.

    The actor/date pair for ``status`` is only written when the date is not
    already set, so re-entering a status keeps the original stamp.
    """
    now = now or utcnow_iso()
    update: dict[str, Any] = {"status": status, "updated_at": now}

    stamp = AUDIT_STAMPS.get(status)
    if stamp is not None:
        actor_field, date_field = stamp
        if not getattr(invoice, date_field):
            update[actor_field] = actor
            update[date_field] = now

    return invoice.model_copy(update=update)
