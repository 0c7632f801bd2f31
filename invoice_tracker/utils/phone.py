"""Phone number parsing backed by ``phonenumbers``.

Numbers written without a leading ``+<country code>`` are interpreted with
the dialing plan of ``PHONE_DEFAULT_REGION``.  None of the helpers raise:
blank or structurally invalid input yields ``None`` (or ``False``).
"""

from __future__ import annotations

import re

import phonenumbers
from flask import current_app, has_app_context
from phonenumbers import NumberParseException, PhoneNumberFormat, PhoneNumberType

PHONE_NUMBER_MESSAGE = "is not a valid phone number"

PHONE_CHARACTERS_RE = re.compile(r"^[0-9\s+\-()]+$")

LINE_TYPES = {
    PhoneNumberType.MOBILE: "mobile",
    PhoneNumberType.FIXED_LINE: "fixed_line",
    PhoneNumberType.FIXED_LINE_OR_MOBILE: "fixed_or_mobile",
}


def default_region() -> str:
    if has_app_context():
        return current_app.config.get("PHONE_DEFAULT_REGION") or "US"
    return "US"


def parse(number: str | None, region: str | None = None):
    """Return a valid :class:`phonenumbers.PhoneNumber` or ``None``."""

    if not number or not number.strip():
        return None
    if not PHONE_CHARACTERS_RE.match(number):
        return None
    try:
        parsed = phonenumbers.parse(number, region or default_region())
    except NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return parsed


def is_valid_phone_number(number: str | None, region: str | None = None) -> bool:
    return parse(number, region) is not None


def e164(number: str | None, region: str | None = None) -> str | None:
    """Canonical international form, e.g. ``+16502530000``."""

    parsed = parse(number, region)
    if parsed is None:
        return None
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def country_code(number: str | None, region: str | None = None) -> str | None:
    parsed = parse(number, region)
    if parsed is None:
        return None
    return str(parsed.country_code)


def line_type(number: str | None, region: str | None = None) -> str | None:
    """Coarse line classification: mobile, fixed_line, fixed_or_mobile or unknown."""

    parsed = parse(number, region)
    if parsed is None:
        return None
    return LINE_TYPES.get(phonenumbers.number_type(parsed), "unknown")


__all__ = [
    "PHONE_NUMBER_MESSAGE",
    "country_code",
    "default_region",
    "e164",
    "is_valid_phone_number",
    "line_type",
    "parse",
]
