"""
zkmail.integration.types
========================

Typed records exchanged with provers, storage and API callers, using
**msgspec**.

- `ProofInput`: a snarkjs `proof.json` (`pi_a`, `pi_b`, `pi_c` as decimal strings).
- `BindingClaim`: the plaintext claim a caller wants bound to a proof.
- `PublicInputRecord`: public inputs as persisted by this library, tagged
  with `schema_version` and `layout` so a stored vector can never be read
  under the wrong layout.
- `VerificationReport`: outcome of `ProofBindingVerifier.inspect` /
  `verify_claim` plus the decoded public values.
- `vk_fingerprint`: stable hash of a verifying key JSON object.

Conventions
-----------
- Field elements are decimal strings on the wire (snarkjs convention).
- JSON canonicalization (sorted keys, compact separators) is used wherever a
  hash is taken.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union

import msgspec

__all__ = [
    "SCHEMA_VERSION",
    "ProofInput",
    "BindingClaim",
    "PublicInputRecord",
    "VerificationReport",
    "canonical_json_bytes",
    "vk_fingerprint",
    "encode",
    "decode",
]

SCHEMA_VERSION = 1

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------

class ProofInput(msgspec.Struct, frozen=True, omit_defaults=True):
    """
    snarkjs Groth16 proof.

    Fields:
        pi_a: [x, y, "1"]
        pi_b: [[x.c0, x.c1], [y.c0, y.c1], ["1", "0"]]
        pi_c: [x, y, "1"]
        protocol / curve: informative tags written by snarkjs.
    """
    pi_a: List[str]
    pi_b: List[List[str]]
    pi_c: List[str]
    protocol: Optional[str] = None
    curve: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return msgspec.to_builtins(self)


class BindingClaim(msgspec.Struct, frozen=True):
    """
    Plaintext values a caller claims are bound into a proof. Untrusted until
    matched against the public inputs.
    """
    account_id: str
    new_public_key: str
    from_email: str
    timestamp: str


class PublicInputRecord(msgspec.Struct, frozen=True):
    """
    Public inputs with an explicit layout tag.

    Fields:
        layout: "plaintext" or "private".
        values: decimal strings in canonical layout order.
        schema_version: record format version.
    """
    layout: str
    values: List[str]
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def from_values(cls, layout: str, values: Sequence[Union[int, str]]) -> "PublicInputRecord":
        return cls(layout=layout, values=[str(v) for v in values])

    def require_layout(self, layout: str) -> None:
        """Raise ValueError unless this record was written for `layout` and the current schema."""
        if self.schema_version != SCHEMA_VERSION:
            raise ValueError(f"unsupported public-input schema version {self.schema_version}")
        if self.layout != layout:
            raise ValueError(f"record is tagged {self.layout!r}, verifier expects {layout!r}")


class VerificationReport(msgspec.Struct, frozen=True, omit_defaults=True):
    """
    Verification outcome with decoded public values.

    Decoded fields are filled only when the proof verified; a failed proof
    carries no information worth reporting.
    """
    verified: bool
    layout: str
    binding_checked: bool = False
    reason: Optional[str] = None
    request_id: Optional[str] = None
    account_id: Optional[str] = None
    new_public_key: Optional[str] = None
    from_address: Optional[str] = None
    from_address_hash: Optional[str] = None
    timestamp: Optional[str] = None
    email_timestamp_ms: Optional[int] = None
    vk_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return msgspec.to_builtins(self)


# -----------------------------------------------------------------------------
# Encoding helpers
# -----------------------------------------------------------------------------

def canonical_json_bytes(obj: Any) -> bytes:
    """Deterministic JSON bytes: sorted keys, compact separators, UTF-8."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def vk_fingerprint(vk_json: Dict[str, Any]) -> str:
    """"sha256:<hex>" over the canonical JSON of a verifying key."""
    return "sha256:" + hashlib.sha256(canonical_json_bytes(vk_json)).hexdigest()


def encode(obj: Any) -> bytes:
    return msgspec.json.encode(obj)


def decode(data: Union[bytes, str], type: Type[T]) -> T:
    """Decode and validate JSON into `type`; raises msgspec.ValidationError / DecodeError."""
    return msgspec.json.decode(data, type=type)
