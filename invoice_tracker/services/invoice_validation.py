"""Validate candidate invoice fields before anything is persisted."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from werkzeug.datastructures import MultiDict

from invoice_tracker.forms import InvoiceForm
from invoice_tracker.models import Invoice, InvoiceState
from invoice_tracker.utils.clock import resolve_today
from invoice_tracker.utils.text import quantize_amount

FIELDS = (
    "buyer_name",
    "phone_number",
    "issue_date",
    "expiry_date",
    "amount",
    "state",
)

FieldErrors = dict[str, list[str]]


@dataclass
class ValidationResult:
    """Outcome of :func:`validate_invoice`.

    Exactly one of ``values`` and ``errors`` is populated.
    """

    values: Optional[dict[str, Any]] = None
    errors: FieldErrors = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.values is not None and not self.errors

    def apply_to(self, invoice: Invoice) -> Invoice:
        """Copy validated values onto ``invoice``; refuses invalid results."""

        if not self.ok:
            raise ValueError("Cannot apply an invalid invoice candidate")
        for name, value in self.values.items():
            setattr(invoice, name, value)
        return invoice


def _to_formdata(fields: Mapping[str, Any] | MultiDict) -> MultiDict:
    if isinstance(fields, MultiDict):
        return fields
    data = MultiDict()
    for name in FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if isinstance(value, InvoiceState):
            value = value.value
        elif isinstance(value, date):
            value = value.isoformat()
        data.add(name, "" if value is None else str(value))
    return data


def validate_invoice(
    fields: Mapping[str, Any] | MultiDict, today: date | None = None
) -> ValidationResult:
    """Check ``fields`` against every invoice rule.

    ``fields`` may hold strings (form or JSON input) or already typed values.
    The issue date is compared with ``today`` (the configured current date
    when omitted).  Nothing is written anywhere; callers use
    :meth:`ValidationResult.apply_to` once the result is ``ok``.
    """

    form = InvoiceForm(_to_formdata(fields), today=resolve_today(today))
    if not form.validate():
        errors = {name: list(messages) for name, messages in form.errors.items()}
        return ValidationResult(values=None, errors=errors)

    values = {
        "buyer_name": form.buyer_name.data,
        "phone_number": form.phone_number.data,
        "issue_date": form.issue_date.data,
        "expiry_date": form.expiry_date.data,
        "amount": quantize_amount(form.amount.data),
        "state": InvoiceState(form.state.data),
    }
    return ValidationResult(values=values)


__all__ = ["FIELDS", "FieldErrors", "ValidationResult", "validate_invoice"]
