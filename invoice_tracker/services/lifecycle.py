"""Invoice lifecycle rules.

An invoice is persisted as ``sent``, ``paid`` or ``overdue`` but what users
see is the *effective* state, derived from the persisted state and the
current date.  The persisted state only catches up with time when the
reconciler runs, so anything shown to a user goes through
:func:`effective_state`.
"""

from __future__ import annotations

from datetime import date

from invoice_tracker.models import Invoice, InvoiceState

STATUS_CLASSES = {
    InvoiceState.PAID: "bg-green-100 text-green-800",
    InvoiceState.OVERDUE: "bg-red-100 text-red-800",
    InvoiceState.SENT: "bg-yellow-100 text-yellow-800",
}


class InvalidTransition(ValueError):
    """Raised when a lifecycle transition's precondition does not hold."""


def effective_state(invoice: Invoice, today: date) -> InvoiceState:
    """Return the authoritative state of ``invoice`` on ``today``."""

    if InvoiceState.parse(invoice.state) is InvoiceState.PAID:
        return InvoiceState.PAID
    if today > invoice.expiry_date:
        return InvoiceState.OVERDUE
    return InvoiceState.SENT


def is_overdue(invoice: Invoice, today: date) -> bool:
    return effective_state(invoice, today) is InvoiceState.OVERDUE


def should_mark_overdue(invoice: Invoice, today: date) -> bool:
    """Predicate used by the reconciler; reads the raw persisted state."""

    return (
        InvoiceState.parse(invoice.state) is InvoiceState.SENT
        and invoice.expiry_date < today
    )


def mark_paid(invoice: Invoice) -> Invoice:
    """Record payment. Unconditional and user initiated."""

    invoice.state = InvoiceState.PAID
    return invoice


def mark_overdue(invoice: Invoice, today: date) -> Invoice:
    """Move a lapsed ``sent`` invoice to ``overdue``."""

    if not should_mark_overdue(invoice, today):
        state = InvoiceState.parse(invoice.state)
        raise InvalidTransition(
            f"Invoice {invoice.id} cannot move from "
            f"{state.value if state else invoice.state} to overdue on "
            f"{today.isoformat()}"
        )
    invoice.state = InvoiceState.OVERDUE
    return invoice


def status_badge(invoice: Invoice, today: date) -> str:
    """CSS classes for the status badge shown next to an invoice."""

    return STATUS_CLASSES[effective_state(invoice, today)]


__all__ = [
    "InvalidTransition",
    "STATUS_CLASSES",
    "effective_state",
    "is_overdue",
    "mark_overdue",
    "mark_paid",
    "should_mark_overdue",
    "status_badge",
]
