# =============================================================================
# lib/business_hours.py - Business Hours Conversion
# =============================================================================
# Business hours are stored as JSONB on business_profiles with capitalized
# day names, while the portals work with lowercase day names and always
# expect all seven days to be present.
#
#   Database: {"Monday": {"open": "09:00", "close": "17:00", "closed": false}}
#   Frontend: {"monday": {"open": "09:00", "close": "17:00", "closed": false}}
# =============================================================================

from __future__ import annotations

import re
from typing import Any

DAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_OPEN = "09:00"
DEFAULT_CLOSE = "17:00"

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class InvalidBusinessHoursError(ValueError):
    """Raised when submitted business hours cannot be stored."""

    def __init__(self, message: str, day: str | None = None):
        super().__init__(message)
        self.message = message
        self.day = day


def default_hours() -> dict[str, dict[str, Any]]:
    """Monday to Saturday 09:00-17:00, Sunday closed."""
    return {
        day: {"open": DEFAULT_OPEN, "close": DEFAULT_CLOSE, "closed": day == "sunday"}
        for day in DAYS
    }


def db_to_frontend(db_hours: dict[str, Any] | None) -> dict[str, dict[str, Any]]:
    """
    Convert stored hours to the frontend format.

    Every day is present in the result. Stored days overlay the defaults;
    unknown keys and malformed entries are ignored.
    """
    hours = default_hours()
    if not isinstance(db_hours, dict):
        return hours

    for day, value in db_hours.items():
        key = str(day).lower()
        if key not in hours or not isinstance(value, dict):
            continue
        closed = value.get("closed")
        hours[key] = {
            "open": value.get("open") or DEFAULT_OPEN,
            "close": value.get("close") or DEFAULT_CLOSE,
            "closed": bool(closed) if closed is not None else False,
        }

    return hours


def frontend_to_db(frontend_hours: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """
    Convert frontend hours to the stored format.

    Only the days present in the input are written.

    Raises:
        InvalidBusinessHoursError: Unknown day, non-object entry, non-boolean
            closed flag, malformed time, or an open day whose opening time
            isn't before its closing time
    """
    if not isinstance(frontend_hours, dict):
        raise InvalidBusinessHoursError("business_hours must be an object")

    db_hours: dict[str, dict[str, Any]] = {}

    for day, value in frontend_hours.items():
        key = str(day).lower()
        if key not in DAYS:
            raise InvalidBusinessHoursError(f"Unknown day: {day}", day=str(day))
        if not isinstance(value, dict):
            raise InvalidBusinessHoursError(f"Hours for {day} must be an object", day=key)

        closed = value.get("closed")
        if closed is None:
            closed = False
        elif not isinstance(closed, bool):
            raise InvalidBusinessHoursError(
                f"closed for {key} must be true or false, got {closed!r}",
                day=key,
            )
        open_time = value.get("open")
        close_time = value.get("close")

        if not closed:
            for label, time_value in (("open", open_time), ("close", close_time)):
                if not isinstance(time_value, str) or not _TIME_PATTERN.match(time_value):
                    raise InvalidBusinessHoursError(
                        f"Invalid {label} time for {key}: {time_value!r} (expected HH:MM)",
                        day=key,
                    )
            # Zero-padded HH:MM strings compare in clock order
            if open_time >= close_time:
                raise InvalidBusinessHoursError(
                    f"Opening time must be before closing time for {key}",
                    day=key,
                )

        db_hours[key.capitalize()] = {
            "open": open_time,
            "close": close_time,
            "closed": closed,
        }

    return db_hours


def format_hours_summary(hours: dict[str, Any] | None) -> list[str]:
    """
    Render hours (either format) as display lines, Monday first.

    Example:
        ["Monday: 09:00 - 17:00", ..., "Sunday: Closed"]
    """
    normalized = db_to_frontend(hours)
    lines = []
    for day in DAYS:
        entry = normalized[day]
        if entry["closed"]:
            lines.append(f"{day.capitalize()}: Closed")
        else:
            lines.append(f"{day.capitalize()}: {entry['open']} - {entry['close']}")
    return lines


def open_days(hours: dict[str, Any] | None) -> list[str]:
    """Lowercase names of the days the business is open."""
    normalized = db_to_frontend(hours)
    return [day for day in DAYS if not normalized[day]["closed"]]
