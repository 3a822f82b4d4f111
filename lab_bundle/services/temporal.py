"""
Date and timestamp normalization.

Source data carries dates as ``dd-mm-yyyy``, ``dd/mm/yyyy`` or ISO
``yyyy-mm-dd``; form timestamps arrive zone-naive. Everything that cannot be
parsed is reported as ``None`` so the caller can drop the field instead of
failing the build.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_canonical_date(value: str | None) -> str | None:
    """Convert ``dd-mm-yyyy`` / ``dd/mm/yyyy`` to ``yyyy-mm-dd``."""
    if not value:
        return None
    text = str(value).strip()
    if _ISO_DATE_RE.match(text):
        return text

    if "-" in text:
        separator = "-"
    elif "/" in text:
        separator = "/"
    else:
        return None

    parts = text.split(separator)
    if len(parts) != 3:
        return None
    day, month, year = parts
    return f"{year}-{month.rjust(2, '0')}-{day.rjust(2, '0')}"


def _local_offset() -> str:
    # Offset of the process *now*, not of the instant being formatted.
    offset = datetime.now().astimezone().utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset else 0
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}"


def to_offset_timestamp(instant: datetime | None = None) -> str:
    """
    Format a zone-naive local instant (default: now) as ISO-8601 with an
    explicit numeric offset, e.g. ``2025-08-30T15:04:05+05:30``.
    """
    instant = instant or datetime.now()
    return instant.strftime("%Y-%m-%dT%H:%M:%S") + _local_offset()


def parse_local_datetime(value: str | None) -> datetime | None:
    """Parse a ``datetime-local`` form value (``YYYY-MM-DDTHH:MM[:SS]``)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def to_utc_timestamp(value: str | None) -> str | None:
    """
    Read a value with a time component as local time and emit it in UTC
    with millisecond precision, e.g. ``2025-01-02T04:30:00.000Z``.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None
    # naive values are interpreted in the local zone by astimezone()
    utc = parsed.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
