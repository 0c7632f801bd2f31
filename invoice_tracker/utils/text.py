"""Text formatting helpers for presenting invoices."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from flask import current_app, has_app_context

CENT = Decimal("0.01")


def quantize_amount(value) -> Decimal:
    """Return ``value`` as a Decimal rounded to two places."""

    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value, symbol: str | None = None) -> str:
    """Format ``value`` as ``€1,234.50``.

    The symbol comes from ``CURRENCY_SYMBOL`` when not given; it is purely
    cosmetic because invoices carry no currency of their own.
    """

    if symbol is None:
        symbol = "€"
        if has_app_context():
            symbol = current_app.config.get("CURRENCY_SYMBOL", symbol)
    if value is None:
        return ""
    try:
        amount = quantize_amount(value)
    except (InvalidOperation, TypeError, ValueError):
        return ""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


__all__ = ["CENT", "format_currency", "quantize_amount"]
