"""Utility functions for the invoice tracker."""

from .clock import current_date
from .phone import country_code, e164, is_valid_phone_number, line_type
from .text import format_currency

__all__ = [
    "current_date",
    "country_code",
    "e164",
    "is_valid_phone_number",
    "line_type",
    "format_currency",
]
