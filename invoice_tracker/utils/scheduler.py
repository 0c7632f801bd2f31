"""Background thread that periodically reconciles overdue invoices."""

from __future__ import annotations

import time
from threading import Event, Thread

_scheduler_thread: Thread | None = None
_stop_event = Event()


def run_scheduled_reconciliation(app):
    """Run one reconciliation pass inside ``app``'s context."""
    from invoice_tracker.services.reconciliation import reconcile_overdue_report

    with app.app_context():
        report = reconcile_overdue_report()
        app.logger.info(
            "Scheduled reconciliation marked %d invoices as overdue",
            report.transitioned,
        )
        return report


def _scheduler_loop(app, interval: int):
    next_run = time.monotonic() + interval
    while True:
        remaining = next_run - time.monotonic()
        if remaining > 0:
            if _stop_event.wait(remaining):
                break
        elif _stop_event.is_set():
            break

        try:
            run_scheduled_reconciliation(app)
        except Exception:
            # Keep the thread alive; the next interval retries.
            app.logger.exception("Scheduled overdue reconciliation failed")

        next_run += interval
        current_time = time.monotonic()
        while next_run <= current_time:
            next_run += interval


def stop_overdue_scheduler():
    """Stop the running scheduler thread, if any."""
    global _scheduler_thread, _stop_event
    if _scheduler_thread and _scheduler_thread.is_alive():
        _stop_event.set()
        _scheduler_thread.join()
    _scheduler_thread = None
    _stop_event = Event()


def start_overdue_scheduler(app):
    """Start or restart the reconciliation thread based on app config."""
    global _scheduler_thread
    if hasattr(app, "_get_current_object"):
        app = app._get_current_object()
    stop_overdue_scheduler()

    if not app.config.get("OVERDUE_SCHEDULER_ENABLED"):
        return None

    interval = app.config.get("OVERDUE_SCHEDULER_INTERVAL")
    if not interval or int(interval) <= 0:
        app.logger.warning(
            "Overdue scheduler enabled without a positive interval; not started"
        )
        return None
    _scheduler_thread = Thread(
        target=_scheduler_loop, args=(app, int(interval)), daemon=True
    )
    _scheduler_thread.start()
    return _scheduler_thread


def is_scheduler_running() -> bool:
    return bool(_scheduler_thread and _scheduler_thread.is_alive())


__all__ = [
    "is_scheduler_running",
    "run_scheduled_reconciliation",
    "start_overdue_scheduler",
    "stop_overdue_scheduler",
]
