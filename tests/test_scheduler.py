import threading
from datetime import date

from sqlalchemy.exc import OperationalError

from invoice_tracker import db
from invoice_tracker.models import Invoice, InvoiceState
from invoice_tracker.utils import scheduler


def test_scheduler_not_started_when_disabled(app):
    assert scheduler.start_overdue_scheduler(app) is None
    assert not scheduler.is_scheduler_running()


def test_scheduler_requires_positive_interval(app):
    app.config.update(OVERDUE_SCHEDULER_ENABLED=True, OVERDUE_SCHEDULER_INTERVAL=0)
    assert scheduler.start_overdue_scheduler(app) is None


def test_scheduler_starts_and_stops(app, monkeypatch):
    monkeypatch.setattr(scheduler, "run_scheduled_reconciliation", lambda app: None)
    app.config.update(
        OVERDUE_SCHEDULER_ENABLED=True, OVERDUE_SCHEDULER_INTERVAL=3600
    )
    thread = scheduler.start_overdue_scheduler(app)
    try:
        assert thread is not None
        assert scheduler.is_scheduler_running()
    finally:
        scheduler.stop_overdue_scheduler()
    assert not scheduler.is_scheduler_running()


def test_scheduled_run_reconciles(app, owner, make_invoice, fixed_today):
    invoice = make_invoice(owner, expiry_date=date(2024, 1, 1))
    report = scheduler.run_scheduled_reconciliation(app)
    assert report.transitioned == 1
    db.session.expire_all()
    assert db.session.get(Invoice, invoice.id).state is InvoiceState.OVERDUE


def test_scheduler_survives_a_failed_run(app, monkeypatch):
    second_run = threading.Event()
    calls = []

    def flaky(app):
        calls.append(1)
        if len(calls) == 1:
            raise OperationalError("SELECT invoice", {}, Exception("locked"))
        second_run.set()

    monkeypatch.setattr(scheduler, "run_scheduled_reconciliation", flaky)
    app.config.update(OVERDUE_SCHEDULER_ENABLED=True, OVERDUE_SCHEDULER_INTERVAL=1)
    scheduler.start_overdue_scheduler(app)
    try:
        assert second_run.wait(timeout=10)
        assert scheduler.is_scheduler_running()
    finally:
        scheduler.stop_overdue_scheduler()
