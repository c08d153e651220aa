"""
zkmail.header.anchors
=====================

Validation of prover-chosen offsets before anything is packed.

The circuit accepts Subject / From / Date offsets as private inputs; these
rules are what keeps a prover from pointing them at text that merely looks
like a header (a quoted line in the body, a value inside another header).
The same rules run here, off-circuit, so a bad extraction is rejected before
proving starts instead of producing an unsatisfiable witness.

Rules, per field:

1. Anchor: unless `start == 0`, bytes `start-2, start-1` are CR LF.
2. Static prefix: bytes at `start` equal `subject:recover-`, `from:`, `date:`.
3. Subject structure: `<request_id> SP <account_id> SP ed25519:<public_key>`
   with each part starting exactly where the previous one ends; parts are
   non-empty.
4. Gap: no CR / LF between the end of `from:` (resp. `date:`) and the start
   of the bound address (resp. timestamp).

In addition every range must lie inside the real header and every bound
substring must fit the packer (`max_len` bytes).
"""

from __future__ import annotations

import logging
from typing import Iterable, Tuple

from ..errors import AnchorViolation
from .buffer import FieldLocation, HeaderBuffer, LocatedFields

log = logging.getLogger(__name__)

CRLF = b"\r\n"
SUBJECT_PREFIX = b"subject:recover-"
FROM_PREFIX = b"from:"
DATE_PREFIX = b"date:"
KEY_PREFIX = b"ed25519:"
DEFAULT_MAX_LEN = 255


def check_anchor(content: bytes, start: int, field: str) -> None:
    if start == 0:
        return
    if start < 2 or content[start - 2 : start] != CRLF:
        raise AnchorViolation(
            f"{field} does not start a header line",
            field=field,
            rule="anchor",
            data={"start": start},
        )


def check_prefix(content: bytes, start: int, prefix: bytes, field: str) -> None:
    if content[start : start + len(prefix)] != prefix:
        raise AnchorViolation(
            f"{field} does not begin with {prefix.decode()!r}",
            field=field,
            rule="prefix",
            data={"start": start},
        )


def check_gap(content: bytes, after: int, target: int, field: str) -> None:
    """No line break may sit between the header name and the bound value."""
    if target < after:
        raise AnchorViolation(
            f"{field} value starts inside the header name",
            field=field,
            rule="gap",
            data={"value_start": target, "prefix_end": after},
        )
    gap = content[after:target]
    if b"\r" in gap or b"\n" in gap:
        raise AnchorViolation(
            f"line break between {field} header name and value",
            field=field,
            rule="gap",
            data={"value_start": target, "prefix_end": after},
        )


def _expect(cond: bool, msg: str, pos: int) -> None:
    if not cond:
        raise AnchorViolation(msg, field="subject", rule="structure", data={"pos": pos})


def check_subject_structure(content: bytes, located: LocatedFields) -> None:
    s = located.subject
    pos = s.field.start + len(SUBJECT_PREFIX)
    _expect(s.request_id.start == pos, "request id must follow 'subject:recover-'", pos)
    _expect(s.request_id.length > 0, "request id is empty", pos)

    pos = s.request_id.end
    _expect(content[pos : pos + 1] == b" ", "exactly one space must follow the request id", pos)
    _expect(s.account_id.start == pos + 1, "account id must follow the request id", pos + 1)
    _expect(s.account_id.length > 0, "account id is empty", pos + 1)

    pos = s.account_id.end
    _expect(content[pos : pos + 1] == b" ", "exactly one space must follow the account id", pos)
    pos += 1
    _expect(content[pos : pos + len(KEY_PREFIX)] == KEY_PREFIX, "'ed25519:' must follow the account id", pos)
    pos += len(KEY_PREFIX)
    _expect(s.public_key.start == pos, "public key must follow 'ed25519:'", pos)
    _expect(s.public_key.length > 0, "public key is empty", pos)


def _ranges(located: LocatedFields) -> Iterable[Tuple[str, FieldLocation, bool]]:
    # (name, location, bound into the proof)
    s, f, d = located.subject, located.from_, located.date
    yield "subject", s.field, False
    yield "request_id", s.request_id, True
    yield "account_id", s.account_id, True
    yield "public_key", s.public_key, True
    yield "from", f.field, False
    yield "from_address", f.address, True
    yield "date", d.field, False
    yield "timestamp", d.timestamp, True


def check_bounds(buffer: HeaderBuffer, located: LocatedFields, max_len: int = DEFAULT_MAX_LEN) -> None:
    for name, loc, bound in _ranges(located):
        if not loc.within(buffer.length):
            raise AnchorViolation(
                f"{name} runs past the end of the header",
                field=name,
                rule="bounds",
                data={"start": loc.start, "length": loc.length, "header_length": buffer.length},
            )
        if bound and loc.length > max_len:
            raise AnchorViolation(
                f"{name} is longer than {max_len} bytes",
                field=name,
                rule="length",
                data={"length": loc.length},
            )


def check(buffer: HeaderBuffer, located: LocatedFields, *, max_len: int = DEFAULT_MAX_LEN) -> None:
    """
    Raise `AnchorViolation` unless every located field passes the rules above.
    """
    content = buffer.content
    check_bounds(buffer, located, max_len)

    subject_start = located.subject.field.start
    check_anchor(content, subject_start, "subject")
    check_prefix(content, subject_start, SUBJECT_PREFIX, "subject")
    check_subject_structure(content, located)

    from_start = located.from_.field.start
    check_anchor(content, from_start, "from")
    check_prefix(content, from_start, FROM_PREFIX, "from")
    check_gap(content, from_start + len(FROM_PREFIX), located.from_.address.start, "from")

    date_start = located.date.field.start
    check_anchor(content, date_start, "date")
    check_prefix(content, date_start, DATE_PREFIX, "date")
    check_gap(content, date_start + len(DATE_PREFIX), located.date.timestamp.start, "date")


def accepts(buffer: HeaderBuffer, located: LocatedFields, *, max_len: int = DEFAULT_MAX_LEN) -> bool:
    try:
        check(buffer, located, max_len=max_len)
    except AnchorViolation as e:
        log.info("anchor check rejected %s (%s): %s", e.field, e.rule, e.message)
        return False
    return True


__all__ = [
    "CRLF",
    "SUBJECT_PREFIX",
    "FROM_PREFIX",
    "DATE_PREFIX",
    "KEY_PREFIX",
    "check",
    "accepts",
    "check_anchor",
    "check_prefix",
    "check_gap",
    "check_bounds",
    "check_subject_structure",
]
