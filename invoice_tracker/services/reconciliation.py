"""Bring persisted invoice states in line with the calendar.

Every ``sent`` invoice whose expiry date has passed is moved to ``overdue``.
Each invoice is updated and committed on its own so a failure on one record
never blocks the others, and the update re-checks its condition so an
invoice paid in the meantime is left alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List

from flask import current_app, has_app_context
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from invoice_tracker import db
from invoice_tracker.models import Invoice, InvoiceState
from invoice_tracker.utils.clock import resolve_today


@dataclass
class ReconciliationReport:
    today: date
    candidates: int = 0
    transitioned: int = 0
    skipped: int = 0
    failed_ids: List[int] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


def _logger():
    return current_app.logger if has_app_context() else logging.getLogger(__name__)


def find_overdue_candidates(today: date) -> List[int]:
    """Ids of invoices whose persisted state lags their effective state."""

    stmt = (
        db.select(Invoice.id)
        .where(Invoice.state == InvoiceState.SENT, Invoice.expiry_date < today)
        .order_by(Invoice.id)
    )
    return list(db.session.execute(stmt).scalars())


def _mark_overdue(invoice_id: int, today: date) -> bool:
    """Conditionally flip one invoice; ``True`` when a row changed."""

    stmt = (
        update(Invoice)
        .where(
            Invoice.id == invoice_id,
            Invoice.state == InvoiceState.SENT,
            Invoice.expiry_date < today,
        )
        .values(state=InvoiceState.OVERDUE)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1


def reconcile_overdue_report(today: date | None = None) -> ReconciliationReport:
    today = resolve_today(today)
    logger = _logger()
    report = ReconciliationReport(today=today)
    candidate_ids = find_overdue_candidates(today)
    report.candidates = len(candidate_ids)

    for invoice_id in candidate_ids:
        try:
            changed = _mark_overdue(invoice_id, today)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            report.failed_ids.append(invoice_id)
            logger.exception("Failed to mark invoice %s as overdue", invoice_id)
            continue
        if changed:
            report.transitioned += 1
        else:
            report.skipped += 1

    logger.info(
        "Reconciled overdue invoices for %s: %d transitioned, %d skipped, %d failed",
        today.isoformat(),
        report.transitioned,
        report.skipped,
        report.failed,
    )
    return report


def reconcile_overdue(today: date | None = None) -> int:
    """Mark lapsed ``sent`` invoices as overdue and return how many changed.

    Safe to call at any time and any number of times: a second call for the
    same ``today`` finds nothing left to do.
    """

    return reconcile_overdue_report(today).transitioned


__all__ = [
    "ReconciliationReport",
    "find_overdue_candidates",
    "reconcile_overdue",
    "reconcile_overdue_report",
]
