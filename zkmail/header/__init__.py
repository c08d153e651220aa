"""
zkmail.header
=============

Everything that reads the verified e-mail header:

- `buffer`  : HeaderBuffer / FieldLocation data model
- `locator` : off-circuit offset computation (Subject / From / Date)
- `anchors` : anchor, prefix, structure and gap rules over claimed offsets
- `dates`   : Date header value → Unix milliseconds
"""

from __future__ import annotations

from .anchors import accepts, check
from .buffer import (DEFAULT_CAPACITY, DateLocation, FieldLocation,
                     FromLocation, HeaderBuffer, LocatedFields,
                     SubjectLocation)
from .dates import parse_email_timestamp_to_unix_ms
from .locator import locate, locate_bytes

__all__ = [
    "DEFAULT_CAPACITY",
    "FieldLocation",
    "HeaderBuffer",
    "SubjectLocation",
    "FromLocation",
    "DateLocation",
    "LocatedFields",
    "locate",
    "locate_bytes",
    "check",
    "accepts",
    "parse_email_timestamp_to_unix_ms",
]
