"""
Upstream timestamp helpers.

The Clash of Clans API reports times in a compact form such as
``20250615T210000.000Z``. The dashboard works with the separated ISO-8601
form ``2025-06-15T21:00:00.000Z``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

_COMPACT_RE = re.compile(r"(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})\.(\d{3})Z")


def format_iso_utc(dt: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.sssZ``; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return f"{dt:%Y-%m-%dT%H:%M:%S}.{dt.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return format_iso_utc(datetime.now(timezone.utc))


def parse_coc_time(raw: Any) -> Optional[datetime]:
    """
    Parse an upstream timestamp into an aware UTC datetime.

    Args:
        raw: Compact upstream string, or any string dateutil understands.

    Returns:
        The datetime, or None when the value is missing or unparseable.
    """
    if not raw or not isinstance(raw, str):
        return None
    m = _COMPACT_RE.fullmatch(raw)
    if m:
        y, mo, d, h, mi, s, ms = (int(g) for g in m.groups())
        try:
            return datetime(y, mo, d, h, mi, s, ms * 1000, tzinfo=timezone.utc)
        except ValueError:
            return None
    try:
        dt = date_parser.parse(raw)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        # Shifting to UTC can leave the datetime range near year 1 or 9999
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def normalize_coc_time(raw: Any) -> Optional[str]:
    """
    Convert an upstream timestamp to separated ISO-8601 UTC.

    The compact form is rewritten field by field; anything else goes through
    a generic parse. Unparseable input yields None instead of raising.
    """
    if not raw or not isinstance(raw, str):
        return None
    m = _COMPACT_RE.fullmatch(raw)
    if m:
        y, mo, d, h, mi, s, ms = m.groups()
        return f"{y}-{mo}-{d}T{h}:{mi}:{s}.{ms}Z"
    dt = parse_coc_time(raw)
    if dt is None:
        return None
    try:
        return format_iso_utc(dt)
    except (ValueError, OverflowError):
        return None
