from __future__ import annotations

import os
import sys
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from werkzeug.security import generate_password_hash

# Ensure the package is importable when tests change directories
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, BASE_DIR)

from invoice_tracker import create_app, db  # noqa: E402
from invoice_tracker.models import Invoice, InvoiceState, User  # noqa: E402
from invoice_tracker.utils.scheduler import stop_overdue_scheduler  # noqa: E402

TODAY = date(2024, 2, 1)


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "testsecret")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "invoices.db"))

    app = create_app(
        ["--demo"],
        config={
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "OVERDUE_SCHEDULER_ENABLED": False,
        },
    )

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    stop_overdue_scheduler()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fixed_today(monkeypatch):
    """Pin the application's current date to :data:`TODAY`."""

    monkeypatch.setattr("invoice_tracker.utils.clock.current_date", lambda: TODAY)
    monkeypatch.setattr(
        "invoice_tracker.routes.invoice_routes.current_date", lambda: TODAY
    )
    return TODAY


def _create_user(email, first_name="John", last_name="Doe", password="pass"):
    user = User(
        email=email,
        password=generate_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def owner(app):
    return _create_user("owner@example.com")


@pytest.fixture
def other_owner(app):
    return _create_user("other@example.com", "Jane", "Smith")


@pytest.fixture
def make_invoice(app):
    """Insert an invoice directly, bypassing validation.

    Lets tests create records in any state and with any dates.
    """

    counter = {"n": 0}

    def _make(owner, **overrides):
        counter["n"] += 1
        values = {
            "buyer_name": f"Buyer {counter['n']}",
            "phone_number": "+1 650 253 0000",
            "issue_date": TODAY - timedelta(days=30),
            "expiry_date": TODAY + timedelta(days=30),
            "amount": Decimal("100.00"),
            "state": InvoiceState.SENT,
            "created_at": datetime(2024, 1, 1) + timedelta(minutes=counter["n"]),
        }
        values.update(overrides)
        invoice = Invoice(user_id=owner.id, **values)
        db.session.add(invoice)
        db.session.commit()
        return invoice

    return _make
