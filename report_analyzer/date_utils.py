"""Shared date normalization helpers."""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _format_datetime_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def _parse_datetime_token(token: str) -> datetime | None:
    cleaned = token.strip()
    if not cleaned:
        return None
    try:
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in ("%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def normalize_iso_date(value: Any) -> str:
    """Convert mixed date inputs into comparable ISO strings."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return _format_datetime_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds are common in JS-produced logs.
        seconds = value / 1000 if value > 10_000_000_000 else value
        try:
            return _format_datetime_utc(datetime.fromtimestamp(float(seconds), timezone.utc))
        except (OverflowError, OSError, ValueError):
            return ""
    if isinstance(value, str):
        token = value.strip()
        if not token:
            return ""
        if _DATE_ONLY_RE.match(token):
            try:
                return date.fromisoformat(token).isoformat()
            except ValueError:
                return ""
        parsed_dt = _parse_datetime_token(token)
        if parsed_dt:
            return _format_datetime_utc(parsed_dt)
        return ""
    return ""


def date_key(value: Any) -> str:
    """Return the ``YYYY-MM-DD`` day of a date-like value, or an empty string."""
    return normalize_iso_date(value)[:10]


def file_modified_iso(path: Path) -> str:
    """Return the normalized filesystem modified timestamp."""
    try:
        stats = path.stat()
    except OSError:
        return ""
    return _format_datetime_utc(datetime.fromtimestamp(float(stats.st_mtime), timezone.utc))
