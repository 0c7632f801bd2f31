"""Utility helpers shared across the test-suite."""

from __future__ import annotations


def login(client, email: str, password: str = "pass"):
    """Log a user in through the JSON login endpoint."""

    return client.post(
        "/auth/login",
        data={"email": email, "password": password},
    )


def valid_invoice_fields(**overrides) -> dict:
    fields = {
        "buyer_name": "Test Company",
        "phone_number": "+1 650 253 0000",
        "issue_date": "2024-01-01",
        "expiry_date": "2024-01-31",
        "amount": "1000.00",
        "state": "sent",
    }
    fields.update(overrides)
    return fields
