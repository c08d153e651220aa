"""
zkmail.integration.prover
=========================

Generation side of the protocol: turn a raw e-mail into everything an
external Groth16 prover needs.

    raw e-mail --DocumentVerifier--> verified header (+ DKIM key/signature chunks)
               --locate-----------> field offsets
               --anchors.check----> reject extractions the circuit would not accept
               --pack / hash------> expected public outputs

The DKIM step is a capability (`DocumentVerifier`): this library never
parses signatures itself. Anchor violations abort preparation with
`AnchorViolation`; missing header lines with `NotFound`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (Any, Dict, List, Optional, Protocol, Sequence, Tuple,
                    Union)

from ..config import ZkMailConfig, get_config
from ..errors import MalformedHeader
from ..header import anchors
from ..header.buffer import FieldLocation, HeaderBuffer, LocatedFields
from ..header.locator import locate
from ..packing.packer import pack
from ..packing.sender_hash import digest_to_elements, sender_binding_hash
from ..verifiers import layout as L
from .types import BindingClaim, PublicInputRecord

log = logging.getLogger(__name__)

HeaderValues = Union[bytes, bytearray, Sequence[Union[int, str]]]


@dataclass(frozen=True)
class VerifiedHeader:
    """
    Oracle output: the DKIM-verified header (raw or already zero-padded)
    with its real length, plus the DKIM public key and signature as the
    circuit's chunked decimal strings.
    """
    header: HeaderValues
    length: int
    pubkey: Tuple[str, ...] = ()
    signature: Tuple[str, ...] = ()


class DocumentVerifier(Protocol):
    """Capability: DKIM-verify a raw e-mail and return its signed header."""

    def verify_document(self, raw: bytes) -> VerifiedHeader:
        ...


@dataclass(frozen=True)
class ProofRequest:
    """Witness inputs plus the public outputs a correct proof will carry."""
    buffer: HeaderBuffer
    located: LocatedFields
    layout: L.PublicInputLayout
    request_id: str
    claim: BindingClaim
    circuit_input: Dict[str, Any]
    expected: Dict[str, Tuple[int, ...]] = field(default_factory=dict)

    def expected_public_inputs(self) -> Optional[List[str]]:
        """
        The full public-input vector in layout order, or None when the DKIM
        key / signature chunks were not supplied.
        """
        slots = dict(self.expected)
        slots[L.SIGNER_KEY] = tuple(int(v) for v in self.circuit_input.get("pubkey", ()))
        slots[L.SIGNATURE] = tuple(int(v) for v in self.circuit_input.get("signature", ()))
        out: List[str] = []
        for name, size in self.layout.groups:
            values = slots.get(name, ())
            if len(values) != size:
                return None
            out.extend(str(v) for v in values)
        return out

    def public_input_record(self) -> Optional[PublicInputRecord]:
        values = self.expected_public_inputs()
        if values is None:
            return None
        return PublicInputRecord.from_values(self.layout.variant, values)


def _to_buffer(header: HeaderValues, length: int, capacity: int) -> HeaderBuffer:
    if isinstance(header, (bytes, bytearray)):
        raw = bytes(header)
    else:
        raw = bytes(int(v) for v in header)
    if not (0 <= length <= len(raw)):
        raise MalformedHeader(
            f"declared header length {length} does not fit the {len(raw)} bytes supplied",
            data={"length": length, "available": len(raw)},
        )
    if len(raw) > length and any(raw[length:]):
        raise MalformedHeader("header has non-zero bytes past its length", data={"length": length})
    return HeaderBuffer.from_bytes(raw[:length], capacity)


def _text(buffer: HeaderBuffer, loc: FieldLocation, name: str) -> str:
    try:
        return buffer.read(loc).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedHeader(f"{name} is not valid UTF-8", data={"field": name}) from e


def build_proof_request(verified: VerifiedHeader, config: Optional[ZkMailConfig] = None) -> ProofRequest:
    """
    Locate, check and pack an already verified header.

    Raises `MalformedHeader` / `NotFound` / `HeaderTooLong`,
    `AnchorViolation` or `LengthOutOfRange`.
    """
    cfg = config or get_config()
    max_len = cfg.packing.max_len
    byteorder = cfg.packing.byteorder
    layout = L.PublicInputLayout.from_config(cfg)

    buffer = _to_buffer(verified.header, verified.length, cfg.header.capacity)
    located = locate(buffer)
    anchors.check(buffer, located, max_len=max_len)

    s, f, d = located.subject, located.from_, located.date

    def packed(loc: FieldLocation) -> Tuple[int, ...]:
        return pack(buffer, loc.start, loc.length, max_len, byteorder=byteorder)

    expected = {
        L.REQUEST_ID: packed(s.request_id),
        L.ACCOUNT_ID: packed(s.account_id),
        L.PUBLIC_KEY: packed(s.public_key),
        L.TIMESTAMP: packed(d.timestamp),
    }
    if layout.variant == L.PLAINTEXT:
        expected[L.FROM_EMAIL] = packed(f.address)
    else:
        content = buffer.content
        digest = sender_binding_hash(
            content[f.address.start :], f.address.length,
            content[s.account_id.start :], s.account_id.length,
        )
        expected[L.FROM_ADDRESS_HASH] = digest_to_elements(digest)

    claim = BindingClaim(
        account_id=_text(buffer, s.account_id, "account_id"),
        new_public_key=_text(buffer, s.public_key, "public_key"),
        from_email=_text(buffer, f.address, "from_address"),
        timestamp=_text(buffer, d.timestamp, "timestamp"),
    )

    circuit_input: Dict[str, Any] = {
        "emailHeader": buffer.to_circuit_array(),
        "emailHeaderLength": str(buffer.length),
        "pubkey": [str(v) for v in verified.pubkey],
        "signature": [str(v) for v in verified.signature],
    }
    circuit_input.update(located.to_circuit_inputs())

    log.info(
        "prepared proof request %s for account %s (layout=%s)",
        _text(buffer, s.request_id, "request_id"), claim.account_id, layout.variant,
    )
    return ProofRequest(
        buffer=buffer,
        located=located,
        layout=layout,
        request_id=_text(buffer, s.request_id, "request_id"),
        claim=claim,
        circuit_input=circuit_input,
        expected=expected,
    )


def prepare_proof_request(
    raw: bytes,
    oracle: DocumentVerifier,
    config: Optional[ZkMailConfig] = None,
) -> ProofRequest:
    """Run the DKIM oracle over `raw`, then `build_proof_request`."""
    verified = oracle.verify_document(raw)
    return build_proof_request(verified, config)


__all__ = [
    "VerifiedHeader",
    "DocumentVerifier",
    "ProofRequest",
    "build_proof_request",
    "prepare_proof_request",
]
