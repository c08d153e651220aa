"""
zkmail.header.locator
=====================

Off-circuit index computation: find the Subject / From / Date substrings
inside a verified header buffer and report their byte offsets.

Patterns (header names case-insensitive, relaxed-canonicalized headers):

    subject:recover-<request_id> <account_id> ed25519:<public_key>
    from:<anything> <address>      or   from:<address>
    date:<timestamp>

All searches run over raw bytes, so offsets and lengths are byte counts even
when the header carries multi-byte UTF-8. Every match is anchored at a line
start; the resulting locations are what `zkmail.header.anchors` later checks.
"""

from __future__ import annotations

import logging
import re
from typing import Union

from ..errors import NotFound
from .buffer import (DEFAULT_CAPACITY, DateLocation, FieldLocation,
                     FromLocation, HeaderBuffer, LocatedFields,
                     SubjectLocation)

log = logging.getLogger(__name__)

_SUBJECT_RE = re.compile(
    rb"^subject:[ \t]*recover-(\S+)[ \t]+(\S+)[ \t]+ed25519:(\S+)",
    re.IGNORECASE | re.MULTILINE,
)
_FROM_LINE_RE = re.compile(rb"^from:[^\r\n]*", re.IGNORECASE | re.MULTILINE)
_ANGLE_ADDR_RE = re.compile(rb"<([^>\s]+)>")
_BARE_ADDR_RE = re.compile(rb"^from:[ \t]*(\S+)", re.IGNORECASE)
_DATE_RE = re.compile(rb"^date:[ \t]*([^\r\n]*[^\s])", re.IGNORECASE | re.MULTILINE)


def _span(m: "re.Match[bytes]", group: int = 0, base: int = 0) -> FieldLocation:
    start, end = m.span(group)
    return FieldLocation(start=base + start, length=end - start)


def locate_subject(content: bytes) -> SubjectLocation:
    m = _SUBJECT_RE.search(content)
    if m is None:
        raise NotFound(
            'no "subject:recover-<request_id> <account_id> ed25519:<public_key>" line in header',
            data={"field": "subject"},
        )
    return SubjectLocation(
        field=_span(m),
        request_id=_span(m, 1),
        account_id=_span(m, 2),
        public_key=_span(m, 3),
    )


def locate_from(content: bytes) -> FromLocation:
    line_m = _FROM_LINE_RE.search(content)
    if line_m is None:
        raise NotFound('no "from:" line in header', data={"field": "from"})
    line = line_m.group(0)
    base = line_m.start()

    addr_m = _ANGLE_ADDR_RE.search(line)
    if addr_m is None:
        addr_m = _BARE_ADDR_RE.match(line)
    if addr_m is None:
        raise NotFound('cannot extract sender address from "from:" line', data={"field": "from"})
    return FromLocation(field=_span(line_m), address=_span(addr_m, 1, base))


def locate_date(content: bytes) -> DateLocation:
    m = _DATE_RE.search(content)
    if m is None:
        raise NotFound('no "date:" line in header', data={"field": "date"})
    return DateLocation(field=_span(m), timestamp=_span(m, 1))


def locate(buffer: HeaderBuffer) -> LocatedFields:
    """
    Locate Subject, From and Date inside `buffer`.

    Raises `NotFound` (a `MalformedHeader`) if any of them is missing; no
    partial result is returned.
    """
    content = buffer.content
    located = LocatedFields(
        subject=locate_subject(content),
        from_=locate_from(content),
        date=locate_date(content),
    )
    log.debug(
        "located subject_start=%d from_start=%d from_addr=%d date_start=%d",
        located.subject.field.start,
        located.from_.field.start,
        located.from_.address.start,
        located.date.field.start,
    )
    return located


def locate_bytes(raw: Union[bytes, bytearray], capacity: int = DEFAULT_CAPACITY) -> LocatedFields:
    """Convenience: wrap `raw` into a `HeaderBuffer` and locate."""
    return locate(HeaderBuffer.from_bytes(raw, capacity))


__all__ = ["locate", "locate_bytes", "locate_subject", "locate_from", "locate_date"]
