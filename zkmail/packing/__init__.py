"""
zkmail.packing
==============

Turning bound substrings into public-input field elements:

- `packer`      : 31-bytes-per-element packing / unpacking
- `sha256`      : explicit SHA-256 padding and block compression
- `sender_hash` : sha256(lower(from) | lower(account)) binding digest
"""

from __future__ import annotations

from .packer import (BYTES_PER_FIELD, MAX_PACKED_LEN, PackedValue, num_fields,
                     pack, pack_bytes, pack_str, unpack, unpack_trimmed)
from .sender_hash import (binding_digest, digest_to_elements,
                          sender_binding_hash)

__all__ = [
    "BYTES_PER_FIELD",
    "MAX_PACKED_LEN",
    "PackedValue",
    "num_fields",
    "pack",
    "pack_bytes",
    "pack_str",
    "unpack",
    "unpack_trimmed",
    "sender_binding_hash",
    "binding_digest",
    "digest_to_elements",
]
