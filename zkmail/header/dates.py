"""
RFC 5322 `Date:` values → Unix milliseconds.

The timestamp is bound into the proof as the raw header text
(e.g. "Tue, 9 Dec 2025 17:13:23 +0900"); consumers that need a number
(expiry windows, replay checks) convert it here.
"""

from __future__ import annotations

import datetime as _dt
from email.utils import parsedate_to_datetime
from typing import Optional


def parse_email_timestamp_to_unix_ms(value: str) -> Optional[int]:
    """
    Parse a `Date:` header value and return milliseconds since the Unix epoch,
    or None if it is not a valid RFC 5322 date or predates 1970.

    A missing or "-0000" zone is taken as UTC.
    """
    if not value or not value.strip():
        return None
    try:
        when = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=_dt.timezone.utc)
    seconds = int(when.timestamp())
    if seconds < 0:
        return None
    return seconds * 1000


__all__ = ["parse_email_timestamp_to_unix_ms"]
