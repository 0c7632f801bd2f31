"""Source of the current date used by lifecycle rules."""

from __future__ import annotations

from datetime import date, datetime
from datetime import timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app, has_app_context


def _configured_zone():
    tz_name = None
    if has_app_context():
        tz_name = current_app.config.get("DEFAULT_TIMEZONE")
    if not tz_name:
        return dt_timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return dt_timezone.utc


def current_date() -> date:
    """Return today's date in the configured ``DEFAULT_TIMEZONE``."""

    return datetime.now(_configured_zone()).date()


def resolve_today(today: date | None) -> date:
    """Return ``today`` or, when ``None``, :func:`current_date`."""

    return today if today is not None else current_date()
