from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from fastapi import APIRouter, Depends, Query

from . import lifecycle
from .auth import Caller, get_caller
from .config import Settings, get_settings
from .errors import MalformedRequest, NotFound, StoreUnavailable
from .invoices import build_invoice, merge_update
from .schemas import (
    ActionRequest,
    Invoice,
    InvoiceCreate,
    InvoicePatch,
    InvoiceStatus,
    LifecycleAction,
    TransitionRequest,
)
from .store import INVOICE_PREFIX, KeyValueStore, get_store, new_invoice_key

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def _store_errors(message: str) -> Iterator[None]:
    try:
        yield
    except StoreUnavailable as exc:
        raise StoreUnavailable(message) from exc


def _check_invoice_id(invoice_id: str) -> None:
    if not invoice_id.startswith(INVOICE_PREFIX):
        raise MalformedRequest(f"Not an invoice id: {invoice_id}")


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedRequest(f"Invalid timestamp: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _updated_since(record: dict[str, Any], since: datetime) -> bool:
    # inclusive: a record written in the same millisecond as the caller's last
    # seen updatedAt must still be returned; clients dedupe by id
    try:
        return _parse_timestamp(record["updatedAt"]) >= since
    except (KeyError, TypeError, AttributeError, MalformedRequest):
        logger.warning("Skipping %s with unreadable updatedAt", record.get("id"))
        return False


def _load(store: KeyValueStore, invoice_id: str) -> Invoice:
    record = store.get(invoice_id)
    if not record:
        raise NotFound("Invoice not found")
    return Invoice.model_validate(record)


def _save(store: KeyValueStore, invoice: Invoice) -> dict[str, Any]:
    record = invoice.to_record()
    store.set(invoice.id, record)
    return record


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/invoices")
def list_invoices(
    status: InvoiceStatus | None = None,
    updated_since: str | None = Query(default=None, alias="updatedSince"),
    store: KeyValueStore = Depends(get_store),
) -> dict[str, list[dict[str, Any]]]:
    since = _parse_timestamp(updated_since) if updated_since else None

    with _store_errors("Failed to fetch invoices"):
        records = store.scan(INVOICE_PREFIX)

    if status is not None:
        records = [r for r in records if r.get("status") == status.value]
    if since is not None:
        records = [r for r in records if _updated_since(r, since)]
    return {"invoices": records}


@router.post("/invoices")
def create_invoice(
    payload: InvoiceCreate,
    store: KeyValueStore = Depends(get_store),
    caller: Caller = Depends(get_caller),
) -> dict[str, Any]:
    invoice = build_invoice(payload, new_invoice_key())
    with _store_errors("Failed to create invoice"):
        record = _save(store, invoice)
    logger.info("Invoice %s created by %s (role=%s)", invoice.id, invoice.creator, caller.role)
    return {"invoice": record}


@router.get("/invoices/{invoice_id}")
def get_invoice(invoice_id: str, store: KeyValueStore = Depends(get_store)) -> dict[str, Any]:
    _check_invoice_id(invoice_id)
    with _store_errors("Failed to fetch invoice"):
        invoice = _load(store, invoice_id)
    return {"invoice": invoice.to_record()}


@router.put("/invoices/{invoice_id}")
def update_invoice(
    invoice_id: str,
    patch: InvoicePatch,
    store: KeyValueStore = Depends(get_store),
    caller: Caller = Depends(get_caller),
) -> dict[str, Any]:
    _check_invoice_id(invoice_id)
    with _store_errors("Failed to update invoice"):
        invoice = merge_update(_load(store, invoice_id), patch)
        record = _save(store, invoice)
    logger.info(
        "Invoice %s updated (%s) (role=%s)",
        invoice_id, ", ".join(sorted(patch.changes())) or "no fields", caller.role,
    )
    return {"invoice": record}


@router.delete("/invoices/{invoice_id}")
def delete_invoice(
    invoice_id: str,
    store: KeyValueStore = Depends(get_store),
    caller: Caller = Depends(get_caller),
) -> dict[str, bool]:
    if not invoice_id.startswith(INVOICE_PREFIX):
        # nothing outside the invoice namespace can be an invoice; already gone
        return {"success": True}
    with _store_errors("Failed to delete invoice"):
        store.delete(invoice_id)
    logger.info("Invoice %s deleted (role=%s)", invoice_id, caller.role)
    return {"success": True}


@router.post("/invoices/{invoice_id}/transition")
def transition_invoice(
    invoice_id: str,
    payload: TransitionRequest,
    store: KeyValueStore = Depends(get_store),
    config: Settings = Depends(get_settings),
) -> dict[str, Any]:
    _check_invoice_id(invoice_id)
    with _store_errors("Failed to update invoice"):
        current = _load(store, invoice_id)
        invoice = lifecycle.transition(
            current,
            payload.status,
            payload.actor,
            strict=config.enforce_forward_transitions,
        )
        record = _save(store, invoice)
    logger.info(
        "Invoice %s: %s -> %s by %s",
        invoice_id, current.status.value, invoice.status.value, payload.actor,
    )
    return {"invoice": record}


@router.post("/invoices/{invoice_id}/{action}")
def perform_action(
    invoice_id: str,
    action: LifecycleAction,
    payload: ActionRequest,
    store: KeyValueStore = Depends(get_store),
    config: Settings = Depends(get_settings),
) -> dict[str, Any]:
    _check_invoice_id(invoice_id)
    with _store_errors(f"Failed to {action.value} invoice"):
        current = _load(store, invoice_id)
        invoice = lifecycle.perform(
            current,
            action,
            payload.actor,
            strict=config.enforce_forward_transitions,
        )
        record = _save(store, invoice)
    logger.info(
        "Invoice %s: %s (%s -> %s) by %s",
        invoice_id, action.value, current.status.value, invoice.status.value, payload.actor,
    )
    return {"invoice": record}
