"""
zkmail.header.buffer
====================

Data model for the verified header and the byte ranges located inside it.

- `HeaderBuffer`: fixed-capacity, zero-padded copy of the DKIM-verified
  header plus its true length. This is exactly what the circuit sees as
  `emailHeader` / `emailHeaderLength`.
- `FieldLocation`: a `{start, length}` byte range relative to the whole buffer.
- `SubjectLocation`, `FromLocation`, `DateLocation`: a top-level header line
  plus the sub-ranges bound into the proof.
- `LocatedFields`: the three of them together, convertible into the private
  index inputs the witness generator expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from ..errors import HeaderTooLong, LengthOutOfRange

DEFAULT_CAPACITY = 1024

BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class FieldLocation:
    """Byte range `[start, start + length)` inside a header buffer."""
    start: int
    length: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.length < 0:
            raise LengthOutOfRange(
                "field location must be non-negative",
                data={"start": self.start, "length": self.length},
            )

    @property
    def end(self) -> int:
        return self.start + self.length

    def within(self, limit: int) -> bool:
        return self.end <= limit


@dataclass(frozen=True)
class HeaderBuffer:
    """
    Zero-padded header bytes of fixed capacity plus the real length.

    Invariant: `len(data) == capacity`, `0 <= length <= capacity` and every
    byte at or past `length` is zero.
    """
    data: bytes
    length: int

    def __post_init__(self) -> None:
        if not (0 <= self.length <= len(self.data)):
            raise HeaderTooLong(
                "header length exceeds buffer capacity",
                data={"length": self.length, "capacity": len(self.data)},
            )
        if any(self.data[self.length:]):
            raise LengthOutOfRange("header padding must be zero", data={"length": self.length})

    @classmethod
    def from_bytes(cls, raw: BytesLike, capacity: int = DEFAULT_CAPACITY) -> "HeaderBuffer":
        """Copy `raw` into a zero-padded buffer of `capacity` bytes."""
        raw = bytes(raw)
        if len(raw) > capacity:
            raise HeaderTooLong(
                f"header is {len(raw)} bytes, capacity is {capacity}",
                data={"length": len(raw), "capacity": capacity},
            )
        return cls(data=raw + bytes(capacity - len(raw)), length=len(raw))

    @classmethod
    def from_padded(cls, values: Iterable[Union[int, str]], length: Union[int, str]) -> "HeaderBuffer":
        """
        Rebuild from the oracle/circuit representation: a list of byte values
        (ints or decimal strings) and the real length.
        """
        data = bytes(int(v) for v in values)
        return cls(data=data, length=int(length))

    @property
    def capacity(self) -> int:
        return len(self.data)

    @property
    def content(self) -> bytes:
        """The real header bytes, without padding."""
        return self.data[: self.length]

    def read(self, loc: FieldLocation) -> bytes:
        if not loc.within(self.length):
            raise LengthOutOfRange(
                "location runs past the header length",
                data={"start": loc.start, "length": loc.length, "header_length": self.length},
            )
        return self.data[loc.start : loc.end]

    def to_circuit_array(self) -> List[str]:
        return [str(b) for b in self.data]


@dataclass(frozen=True)
class SubjectLocation:
    """`subject:recover-<request_id> <account_id> ed25519:<public_key>`"""
    field: FieldLocation
    request_id: FieldLocation
    account_id: FieldLocation
    public_key: FieldLocation


@dataclass(frozen=True)
class FromLocation:
    field: FieldLocation
    address: FieldLocation


@dataclass(frozen=True)
class DateLocation:
    field: FieldLocation
    timestamp: FieldLocation


@dataclass(frozen=True)
class LocatedFields:
    subject: SubjectLocation
    from_: FromLocation
    date: DateLocation

    def to_circuit_inputs(self) -> Dict[str, str]:
        """
        Private index inputs for the RecoverEmail witness, as decimal strings.
        """
        s, f, d = self.subject, self.from_, self.date
        values = {
            "subject_start_idx": s.field.start,
            "subject_request_id_idx": s.request_id.start,
            "subject_request_id_len": s.request_id.length,
            "subject_account_id_idx": s.account_id.start,
            "subject_public_key_idx": s.public_key.start,
            "subject_account_id_len": s.account_id.length,
            "subject_public_key_len": s.public_key.length,
            "from_start_idx": f.field.start,
            "from_addr_idx": f.address.start,
            "from_addr_len": f.address.length,
            "date_start_idx": d.field.start,
            "date_timestamp_idx": d.timestamp.start,
            "date_timestamp_len": d.timestamp.length,
        }
        return {k: str(v) for k, v in values.items()}


__all__ = [
    "DEFAULT_CAPACITY",
    "FieldLocation",
    "HeaderBuffer",
    "SubjectLocation",
    "FromLocation",
    "DateLocation",
    "LocatedFields",
]
