"""
zkmail.verifiers.layout
=======================

Canonical order of the RecoverEmail circuit's public inputs.

Layout A, `plaintext` (79 values with the default sizes):

    request_id[9] | account_id[9] | public_key[9] | from_email[9] |
    timestamp[9]  | signer_key[17] | signature[17]

Layout B, `private` (102 values): `from_email[9]` is replaced by
`from_address_hash[32]`, one element per byte of the binding digest in
digest order. The sender address then never appears in the public inputs.

A verifying key is compiled for exactly one of these; the layout in use is a
deployment choice (`ZKMAIL_LAYOUT`), never inferred from the input count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..config import LAYOUT_VARIANTS, ZkMailConfig
from ..header.dates import parse_email_timestamp_to_unix_ms
from ..packing.packer import MAX_PACKED_LEN, num_fields, unpack_trimmed
from ..packing.sender_hash import DIGEST_LEN

PLAINTEXT = "plaintext"
PRIVATE = "private"

REQUEST_ID = "request_id"
ACCOUNT_ID = "account_id"
PUBLIC_KEY = "public_key"
FROM_EMAIL = "from_email"
FROM_ADDRESS_HASH = "from_address_hash"
TIMESTAMP = "timestamp"
SIGNER_KEY = "signer_key"
SIGNATURE = "signature"

DEFAULT_KEY_CHUNKS = 17


@dataclass(frozen=True)
class DecodedPublicInputs:
    """Public outputs turned back into the values they were packed from."""
    request_id: str
    account_id: str
    public_key: str
    timestamp: str
    timestamp_ms: Optional[int]
    from_email: Optional[str] = None
    from_address_hash: Optional[str] = None  # hex
    signer_key: Tuple[int, ...] = ()
    signature: Tuple[int, ...] = ()


@dataclass(frozen=True)
class PublicInputLayout:
    variant: str = PLAINTEXT
    packed_fields: int = num_fields(MAX_PACKED_LEN)
    signer_key_len: int = DEFAULT_KEY_CHUNKS
    signature_len: int = DEFAULT_KEY_CHUNKS

    def __post_init__(self) -> None:
        if self.variant not in LAYOUT_VARIANTS:
            raise ValueError(f"unknown layout {self.variant!r}; expected one of {LAYOUT_VARIANTS}")

    @classmethod
    def plaintext(cls) -> "PublicInputLayout":
        return cls(variant=PLAINTEXT)

    @classmethod
    def private(cls) -> "PublicInputLayout":
        return cls(variant=PRIVATE)

    @classmethod
    def from_config(cls, cfg: ZkMailConfig) -> "PublicInputLayout":
        return cls(
            variant=cfg.layout.variant,
            packed_fields=cfg.packing.num_fields,
            signer_key_len=cfg.layout.signer_key_len,
            signature_len=cfg.layout.signature_len,
        )

    @property
    def sender_group(self) -> str:
        return FROM_EMAIL if self.variant == PLAINTEXT else FROM_ADDRESS_HASH

    @property
    def groups(self) -> Tuple[Tuple[str, int], ...]:
        """(name, size) in canonical order."""
        n = self.packed_fields
        sender = (FROM_EMAIL, n) if self.variant == PLAINTEXT else (FROM_ADDRESS_HASH, DIGEST_LEN)
        return (
            (REQUEST_ID, n),
            (ACCOUNT_ID, n),
            (PUBLIC_KEY, n),
            sender,
            (TIMESTAMP, n),
            (SIGNER_KEY, self.signer_key_len),
            (SIGNATURE, self.signature_len),
        )

    @property
    def offsets(self) -> Dict[str, slice]:
        out: Dict[str, slice] = {}
        pos = 0
        for name, size in self.groups:
            out[name] = slice(pos, pos + size)
            pos += size
        return out

    @property
    def total(self) -> int:
        return sum(size for _, size in self.groups)

    def slot(self, values: Sequence[int], name: str) -> Tuple[int, ...]:
        """The values of group `name`; KeyError if the layout has no such group."""
        return tuple(values[self.offsets[name]])

    def decode(self, values: Sequence[int], *, byteorder: str = "big") -> DecodedPublicInputs:
        """
        Decode a full public-input vector. Raises ValueError if its length
        does not match the layout.
        """
        if len(values) != self.total:
            raise ValueError(f"expected {self.total} public inputs for {self.variant} layout, got {len(values)}")

        def text(name: str) -> str:
            raw = unpack_trimmed(self.slot(values, name), byteorder=byteorder)
            return raw.decode("utf-8", errors="replace")

        timestamp = text(TIMESTAMP)
        if self.variant == PLAINTEXT:
            from_email: Optional[str] = text(FROM_EMAIL)
            from_hash: Optional[str] = None
        else:
            from_email = None
            digest = self.slot(values, FROM_ADDRESS_HASH)
            if any(not (0 <= v <= 0xFF) for v in digest):
                raise ValueError("from_address_hash elements must be byte values")
            from_hash = bytes(digest).hex()
        return DecodedPublicInputs(
            request_id=text(REQUEST_ID),
            account_id=text(ACCOUNT_ID),
            public_key=text(PUBLIC_KEY),
            timestamp=timestamp,
            timestamp_ms=parse_email_timestamp_to_unix_ms(timestamp),
            from_email=from_email,
            from_address_hash=from_hash,
            signer_key=self.slot(values, SIGNER_KEY),
            signature=self.slot(values, SIGNATURE),
        )


__all__ = [
    "PLAINTEXT",
    "PRIVATE",
    "REQUEST_ID",
    "ACCOUNT_ID",
    "PUBLIC_KEY",
    "FROM_EMAIL",
    "FROM_ADDRESS_HASH",
    "TIMESTAMP",
    "SIGNER_KEY",
    "SIGNATURE",
    "DecodedPublicInputs",
    "PublicInputLayout",
]
