"""
zkmail.packing.sender_hash
==========================

Sender binding digest for the private-sender layout:

    digest = SHA-256( lower(from_email) || "|" || lower(account_id) )

Only ASCII `A`–`Z` are case-folded; every other byte (including non-ASCII
UTF-8) is hashed as-is, and no trimming is applied. Each input is at most
255 bytes, so the preimage is at most 511 bytes and pads to at most 9 blocks.

The digest is exposed in the public inputs one byte per field element, in
digest order (`digest_to_elements`).
"""

from __future__ import annotations

from typing import Tuple, Union

from ..errors import LengthOutOfRange
from . import sha256
from .packer import encode_utf8

SEPARATOR = b"|"
MAX_INPUT_LEN = 255
MAX_PREIMAGE_LEN = 2 * MAX_INPUT_LEN + 1
DIGEST_LEN = 32

BytesLike = Union[bytes, bytearray, memoryview]

_UPPER_TO_LOWER = bytes.maketrans(
    bytes(range(ord("A"), ord("Z") + 1)),
    bytes(range(ord("a"), ord("z") + 1)),
)


def ascii_lower(data: BytesLike) -> bytes:
    """Fold ASCII A–Z to a–z, leaving every other byte untouched."""
    return bytes(data).translate(_UPPER_TO_LOWER)


def _take(data: BytesLike, length: int, name: str) -> bytes:
    data = bytes(data)
    if not (0 <= length <= MAX_INPUT_LEN):
        raise LengthOutOfRange(
            f"{name} length {length} outside 0..{MAX_INPUT_LEN}",
            data={"input": name, "length": length},
        )
    if length > len(data):
        raise LengthOutOfRange(
            f"{name} length {length} exceeds the {len(data)} bytes supplied",
            data={"input": name, "length": length},
        )
    return data[:length]


def preimage(from_bytes: BytesLike, from_len: int, account_bytes: BytesLike, account_len: int) -> bytes:
    """The exact bytes hashed by `sender_binding_hash`."""
    out = (
        ascii_lower(_take(from_bytes, from_len, "from_email"))
        + SEPARATOR
        + ascii_lower(_take(account_bytes, account_len, "account_id"))
    )
    if len(out) > MAX_PREIMAGE_LEN:  # pragma: no cover - guarded by _take
        raise LengthOutOfRange("preimage too long", data={"length": len(out)})
    return out


def sender_binding_hash(
    from_bytes: BytesLike,
    from_len: int,
    account_bytes: BytesLike,
    account_len: int,
) -> bytes:
    """
    Hash the first `from_len` bytes of `from_bytes` and the first
    `account_len` bytes of `account_bytes` into the 32-byte binding digest.

    The buffers may be longer than the lengths (zero-padded circuit arrays);
    bytes past the lengths are ignored.
    """
    msg = preimage(from_bytes, from_len, account_bytes, account_len)
    return sha256.digest(msg)


def binding_digest(from_email: str, account_id: str) -> bytes:
    """`sender_binding_hash` over the UTF-8 encodings of two strings."""
    f = encode_utf8(from_email)
    a = encode_utf8(account_id)
    return sender_binding_hash(f, len(f), a, len(a))


def digest_to_elements(digest: bytes) -> Tuple[int, ...]:
    """32 byte-valued field elements, in digest order."""
    if len(digest) != DIGEST_LEN:
        raise LengthOutOfRange(
            f"digest must be {DIGEST_LEN} bytes, got {len(digest)}",
            data={"length": len(digest)},
        )
    return tuple(digest)


__all__ = [
    "SEPARATOR",
    "MAX_INPUT_LEN",
    "MAX_PREIMAGE_LEN",
    "DIGEST_LEN",
    "ascii_lower",
    "preimage",
    "sender_binding_hash",
    "binding_digest",
    "digest_to_elements",
]
