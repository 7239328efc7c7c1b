"""
Invoice lifecycle.

    draft -> sent -> in_process -> completed -> logged

``transition`` records whatever status it is asked for and stamps the audit
trail; it only checks the chain when ``strict`` is set. The named actions
(``send``, ``advance``, ``approve``) are the way clients normally move an
invoice forward.
"""

from __future__ import annotations

import logging

from .errors import InvalidTransition
from .invoices import apply_audit_stamp
from .schemas import Invoice, InvoiceStatus, LifecycleAction

logger = logging.getLogger(__name__)

CHAIN: tuple[InvoiceStatus, ...] = (
    InvoiceStatus.DRAFT,
    InvoiceStatus.SENT,
    InvoiceStatus.IN_PROCESS,
    InvoiceStatus.COMPLETED,
    InvoiceStatus.LOGGED,
)

# action -> {from status: to status}
ACTIONS: dict[LifecycleAction, dict[InvoiceStatus, InvoiceStatus]] = {
    LifecycleAction.SEND: {InvoiceStatus.DRAFT: InvoiceStatus.SENT},
    LifecycleAction.ADVANCE: {
        InvoiceStatus.SENT: InvoiceStatus.IN_PROCESS,
        InvoiceStatus.IN_PROCESS: InvoiceStatus.COMPLETED,
    },
    LifecycleAction.APPROVE: {InvoiceStatus.COMPLETED: InvoiceStatus.LOGGED},
}


def successor(status: InvoiceStatus) -> InvoiceStatus | None:
    """Next status in the chain; ``None`` once an invoice is logged."""
    index = CHAIN.index(status)
    if index + 1 < len(CHAIN):
        return CHAIN[index + 1]
    return None


def is_allowed(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target == current or target == successor(current)


def transition(
    invoice: Invoice,
    target: InvoiceStatus,
    actor: str,
    *,
    strict: bool = False,
    now: str | None = None,
) -> Invoice:
    if strict and not is_allowed(invoice.status, target):
        raise InvalidTransition(
            f"Cannot move invoice from {invoice.status.value} to {target.value}"
        )
    if not is_allowed(invoice.status, target):
        logger.warning(
            "Invoice %s moved off the forward chain: %s -> %s by %s",
            invoice.id, invoice.status.value, target.value, actor,
        )
    return apply_audit_stamp(invoice, target, actor, now=now)


def resolve_action(invoice: Invoice, action: LifecycleAction, *, strict: bool = False) -> InvoiceStatus:
    """
    Target status of ``action`` for ``invoice``.

    ``send`` and ``approve`` always aim at one status, so outside strict mode
    they are accepted from anywhere. ``advance`` depends on where the invoice
    is and has no target from draft, completed or logged.
    """
    moves = ACTIONS[action]
    target = moves.get(invoice.status)
    if target is not None:
        return target

    targets = set(moves.values())
    if len(targets) != 1 or (strict and invoice.status not in targets):
        raise InvalidTransition(
            f"Cannot {action.value} an invoice that is {invoice.status.value}"
        )
    # in strict mode only re-entry gets here; the existing stamp is kept
    return targets.pop()


def perform(
    invoice: Invoice,
    action: LifecycleAction,
    actor: str,
    *,
    strict: bool = False,
    now: str | None = None,
) -> Invoice:
    target = resolve_action(invoice, action, strict=strict)
    return transition(invoice, target, actor, strict=strict, now=now)
