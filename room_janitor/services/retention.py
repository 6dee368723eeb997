# room_janitor/services/retention.py

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from room_janitor.core.errors import TimestampParseError

PRIVATE = "private"

# RFC 3339 date-time: extended format, "T" separator, mandatory offset
RFC3339 = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_last_active(value: Optional[str]) -> datetime:
    """
    Parse a HipChat last-active value into an aware datetime.

    HipChat returns RFC 3339 timestamps ("2016-03-08T17:52:06+00:00").
    Only that profile is accepted: other ISO 8601 forms (basic format,
    space separator, missing offset) are rejected, as is a naive value
    whose idle time would depend on the host's timezone. Fractional
    seconds beyond microseconds are truncated.

    Raises:
        TimestampParseError: missing or malformed value
    """
    if not value:
        raise TimestampParseError("no last-active timestamp reported")
    match = RFC3339.match(value.strip())
    if match is None:
        raise TimestampParseError(f"{value!r} is not an RFC 3339 timestamp")
    text = match.group("base").upper()
    if match.group("fraction"):
        text += "." + match.group("fraction")[:6].ljust(6, "0")
    offset = match.group("offset")
    text += "+00:00" if offset in ("Z", "z") else offset
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        # well-formed but out of range, e.g. month 13
        raise TimestampParseError(f"{value!r} is not a valid date-time") from exc
    return parsed


def idle_days(last_active: datetime, now: datetime) -> float:
    """Days elapsed since last activity, as hours / 24 (not calendar days)."""
    hours = (now - last_active).total_seconds() / 3600
    return hours / 24


def should_archive(privacy: str, last_active: datetime, now: datetime, max_days: int) -> bool:
    """
    Decide whether a room has outlived the retention window.

    Only private rooms qualify. The boundary is inclusive: a room idle for
    exactly max_days is archived. Activity in the future never qualifies.
    """
    if privacy != PRIVATE:
        return False
    return idle_days(last_active, now) >= max_days
