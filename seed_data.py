import os
from datetime import timedelta
from decimal import Decimal

from werkzeug.security import generate_password_hash

from invoice_tracker import create_app, db
from invoice_tracker.models import Invoice, InvoiceState, Setting, User
from invoice_tracker.services.invoice_validation import validate_invoice
from invoice_tracker.services.reconciliation import reconcile_overdue
from invoice_tracker.utils.clock import current_date

DEMO_USERS = [
    ("john.doe@example.com", "John", "Doe"),
    ("jane.smith@example.com", "Jane", "Smith"),
]

DEMO_BUYERS = [
    ("Acme Corporation", "+1 650 253 0000"),
    ("Globex Industries", "+1 212 565 0000"),
    ("Initech", "+1 415 736 0000"),
    ("Umbrella Trading", "+49 30 123456"),
    ("Stark Supplies", "+1 312 840 4100"),
]


def _ensure_user(email, first_name, last_name, password):
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            password=generate_password_hash(password),
            active=True,
        )
        db.session.add(user)
        db.session.flush()
    return user


def _seed_invoices(user, today):
    if Invoice.query.filter_by(user_id=user.id).count():
        return 0
    created = 0
    for index, (buyer, phone) in enumerate(DEMO_BUYERS):
        issue_date = today - timedelta(days=10 * (index + 1))
        expiry_date = issue_date + timedelta(days=30)
        state = InvoiceState.PAID if index % 3 == 2 else InvoiceState.SENT
        result = validate_invoice(
            {
                "buyer_name": buyer,
                "phone_number": phone,
                "issue_date": issue_date,
                "expiry_date": expiry_date,
                "amount": Decimal("250.00") * (index + 1),
                "state": state,
            },
            today=today,
        )
        if not result.ok:
            print(f"Skipping {buyer}: {result.errors}")
            continue
        db.session.add(result.apply_to(Invoice(user_id=user.id)))
        created += 1
    return created


def seed_initial_data() -> None:
    """Seed the database with demo accounts, invoices and settings."""
    app = create_app([])
    with app.app_context():
        password = os.getenv("DEMO_PASSWORD", "password123")
        today = current_date()
        total = 0
        for email, first_name, last_name in DEMO_USERS:
            user = _ensure_user(email, first_name, last_name, password)
            total += _seed_invoices(user, today)

        Setting.set_value(
            "DEFAULT_TIMEZONE", os.getenv("DEFAULT_TIMEZONE", "UTC")
        )
        Setting.set_value("CURRENCY_SYMBOL", os.getenv("CURRENCY_SYMBOL", "€"))
        db.session.commit()
        overdue = reconcile_overdue(today)
        print(
            f"Seeded {len(DEMO_USERS)} users and {total} invoices "
            f"({overdue} overdue)."
        )


if __name__ == "__main__":
    seed_initial_data()
