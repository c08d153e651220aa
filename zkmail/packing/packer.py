"""
zkmail.packing.packer
=====================

Pack a bounded byte range into a fixed number of BN254 field elements.

Each element carries `BYTES_PER_FIELD` (31) bytes, which keeps it strictly
below the scalar field order. A field of at most `max_len` bytes therefore
always occupies `ceil(max_len / 31)` elements: 9 for the protocol's 255.

Element `i` is the integer formed by bytes `[i*31, i*31 + 31)` of the
substring, zero-extended on the right when the substring ends inside the
chunk; elements entirely past the substring are 0. Byte order defaults to
big-endian; `byteorder="little"` matches circuits built on the little-endian
`PackBytes` template.

    >>> pack_bytes(b"alice.near")[0] == int.from_bytes(b"alice.near".ljust(31, b"\\0"), "big")
    True
    >>> unpack(pack_bytes(b"alice.near"), 10)
    b'alice.near'
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

from ..errors import ClaimEncodingError, LengthOutOfRange
from ..header.buffer import HeaderBuffer

BYTES_PER_FIELD = 31
MAX_PACKED_LEN = 255

PackedValue = Tuple[int, ...]
Source = Union[HeaderBuffer, bytes, bytearray, memoryview]


def num_fields(max_len: int = MAX_PACKED_LEN) -> int:
    """Number of field elements for a substring of at most `max_len` bytes."""
    return -(-max_len // BYTES_PER_FIELD)


def _check_byteorder(byteorder: str) -> None:
    if byteorder not in ("big", "little"):
        raise ValueError(f"byteorder must be 'big' or 'little', got {byteorder!r}")


def pack_bytes(data: bytes, max_len: int = MAX_PACKED_LEN, *, byteorder: str = "big") -> PackedValue:
    """Pack `data` (0..max_len bytes) into `num_fields(max_len)` elements."""
    _check_byteorder(byteorder)
    data = bytes(data)
    if len(data) > max_len:
        raise LengthOutOfRange(
            f"substring is {len(data)} bytes, limit is {max_len}",
            data={"length": len(data), "max_len": max_len},
        )
    out = []
    for i in range(num_fields(max_len)):
        chunk = data[i * BYTES_PER_FIELD : (i + 1) * BYTES_PER_FIELD]
        out.append(int.from_bytes(chunk.ljust(BYTES_PER_FIELD, b"\x00"), byteorder))
    return tuple(out)


def pack(
    buffer: Source,
    start: int,
    length: int,
    max_len: int = MAX_PACKED_LEN,
    *,
    byteorder: str = "big",
) -> PackedValue:
    """
    Pack `buffer[start : start + length]`.

    Raises `LengthOutOfRange` if `length` is outside `0..max_len` or the range
    runs past the real data (the header length for a `HeaderBuffer`).
    """
    data = buffer.content if isinstance(buffer, HeaderBuffer) else bytes(buffer)
    if not (0 <= length <= max_len):
        raise LengthOutOfRange(
            f"length {length} outside 0..{max_len}",
            data={"length": length, "max_len": max_len},
        )
    if start < 0 or start + length > len(data):
        raise LengthOutOfRange(
            "range runs past the end of the buffer",
            data={"start": start, "length": length, "available": len(data)},
        )
    return pack_bytes(data[start : start + length], max_len, byteorder=byteorder)


def encode_utf8(text: str) -> bytes:
    """UTF-8 bytes of `text`; `ClaimEncodingError` if there are none."""
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ClaimEncodingError(
            f"value is not encodable as UTF-8: {e.reason}", data={"position": e.start}
        ) from e


def pack_str(text: str, max_len: int = MAX_PACKED_LEN, *, byteorder: str = "big") -> PackedValue:
    """Pack the UTF-8 encoding of `text`."""
    return pack_bytes(encode_utf8(text), max_len, byteorder=byteorder)


def unpack(elements: Sequence[int], length: int, *, byteorder: str = "big") -> bytes:
    """
    Inverse of `pack`: concatenate the chunks and truncate to `length` bytes.
    """
    _check_byteorder(byteorder)
    if not (0 <= length <= len(elements) * BYTES_PER_FIELD):
        raise LengthOutOfRange(
            f"length {length} does not fit {len(elements)} elements",
            data={"length": length},
        )
    raw = bytearray()
    for v in elements:
        try:
            raw += int(v).to_bytes(BYTES_PER_FIELD, byteorder)
        except OverflowError as e:
            raise LengthOutOfRange(
                f"element does not fit in {BYTES_PER_FIELD} bytes", data={"value": str(v)}
            ) from e
    return bytes(raw[:length])


def unpack_trimmed(elements: Sequence[int], *, byteorder: str = "big") -> bytes:
    """
    Unpack without a known length, dropping the trailing zero padding.

    Used when decoding public outputs, where the length stays private; a
    substring that itself ends in NUL bytes cannot be told apart from padding.
    """
    raw = unpack(elements, len(elements) * BYTES_PER_FIELD, byteorder=byteorder)
    return raw.rstrip(b"\x00")


__all__ = [
    "BYTES_PER_FIELD",
    "MAX_PACKED_LEN",
    "PackedValue",
    "num_fields",
    "pack",
    "pack_bytes",
    "pack_str",
    "encode_utf8",
    "unpack",
    "unpack_trimmed",
]
