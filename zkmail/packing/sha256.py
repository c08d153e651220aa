"""
zkmail.packing.sha256
=====================

SHA-256 message padding (FIPS 180-4 §5.1.1), as laid out in the circuit's
padded header/preimage buffers.

- `pad(message)`: append 0x80, zero bytes, then the 64-bit big-endian bit
  length, up to the smallest multiple of 64 bytes that is at least
  `len(message) + 9`.
- `block_count(length)`: the number of 64-byte blocks after padding; the same
  selection the circuit makes with its threshold ladder over a private
  length.

The digest itself comes from `hashlib`; these helpers describe the buffer the
circuit hashes so witness inputs can be sized and checked.
"""

from __future__ import annotations

import hashlib
import struct

BLOCK_BYTES = 64
LENGTH_BYTES = 8


def block_count(length: int) -> int:
    """Number of 64-byte blocks after padding a `length`-byte message."""
    if length < 0:
        raise ValueError("message length must be >= 0")
    return -(-(length + 1 + LENGTH_BYTES) // BLOCK_BYTES)


def padded_length(length: int) -> int:
    return block_count(length) * BLOCK_BYTES


def pad(message: bytes) -> bytes:
    """Merkle–Damgård padding of `message`."""
    n = len(message)
    zeros = padded_length(n) - n - 1 - LENGTH_BYTES
    return bytes(message) + b"\x80" + bytes(zeros) + struct.pack(">Q", n * 8)


def digest(message: bytes) -> bytes:
    return hashlib.sha256(bytes(message)).digest()


__all__ = ["BLOCK_BYTES", "LENGTH_BYTES", "block_count", "padded_length", "pad", "digest"]
