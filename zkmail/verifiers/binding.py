"""
zkmail.verifiers.binding
========================

Proof verification with claim binding.

A valid Groth16 proof only says "some header signed by this DKIM key
contains these packed values". `ProofBindingVerifier.verify_with_binding`
closes the gap to a concrete request: it recomputes the packed account id,
new public key and timestamp (and the packed sender address, or the sender
binding digest under the private layout) from the caller's plaintext claim
and requires every slot to equal the corresponding public input.

Order of checks
---------------
1. Parse proof and public inputs; anything malformed is `False`.
2. Public-input count must equal the layout length.
3. Recompute and compare the bound slots (cheap; a mismatch is `False`).
4. Pairing check through the proof-verifier capability.

None of the verification methods raise for bad proofs, bad inputs or bad
claims. Configuration problems (no verifying key configured) do raise.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import (Any, Dict, List, Mapping, Optional, Protocol, Sequence,
                    Tuple, Union)

from ..adapters.snarkjs_loader import load_vk_json
from ..config import ZkMailConfig, get_config
from ..errors import ClaimEncodingError, ConfigError, ZkMailError
from ..header.dates import parse_email_timestamp_to_unix_ms
from ..integration.types import (BindingClaim, ProofInput, PublicInputRecord,
                                 VerificationReport, vk_fingerprint)
from ..packing.packer import MAX_PACKED_LEN, pack_str
from ..packing.sender_hash import binding_digest, digest_to_elements
from . import layout as L
from .groth16_bn254 import (Groth16ParseError, Proof, VerifyingKey, load_vk,
                            parse_proof, parse_public_inputs, verify_proof)

log = logging.getLogger(__name__)

ProofLike = Union[ProofInput, Mapping[str, Any]]
PublicInputsLike = Union[Sequence[Union[str, int]], PublicInputRecord]


class ProofVerifier(Protocol):
    """Capability: check a parsed proof against parsed public inputs."""

    def __call__(self, vk: VerifyingKey, proof: Proof, inputs: Sequence[int]) -> bool:
        ...


class ProofBindingVerifier:
    """
    Verifier for one verifying key and one public-input layout.

    Args:
        vk: parsed `VerifyingKey` or a snarkjs verifying key JSON object.
        layout: public-input layout the key was compiled for.
        proof_verifier: Groth16 backend; defaults to the py_ecc pairing check.
        byteorder / max_len: packing parameters, must match the circuit.
    """

    def __init__(
        self,
        vk: Union[VerifyingKey, Mapping[str, Any]],
        layout: Optional[L.PublicInputLayout] = None,
        proof_verifier: ProofVerifier = verify_proof,
        *,
        byteorder: str = "big",
        max_len: int = MAX_PACKED_LEN,
    ) -> None:
        if isinstance(vk, VerifyingKey):
            self.vk = vk
            self.vk_hash: Optional[str] = None
        else:
            self.vk = load_vk(vk)
            self.vk_hash = vk_fingerprint(dict(vk))
        self.layout = layout or L.PublicInputLayout.plaintext()
        self.proof_verifier = proof_verifier
        self.byteorder = byteorder
        self.max_len = max_len

    @classmethod
    def from_config(cls, cfg: Optional[ZkMailConfig] = None, proof_verifier: ProofVerifier = verify_proof) -> "ProofBindingVerifier":
        cfg = cfg or get_config()
        if cfg.verifier.vk_path is None:
            raise ConfigError("no verifying key configured (ZKMAIL_VK_PATH)")
        vk_json = load_vk_json(cfg.verifier.vk_path)
        return cls(
            vk_json,
            L.PublicInputLayout.from_config(cfg),
            proof_verifier,
            byteorder=cfg.packing.byteorder,
            max_len=cfg.packing.max_len,
        )

    # ------------------------------------------------------------------ parsing

    def _public_values(self, public_inputs: PublicInputsLike) -> Sequence[Union[str, int]]:
        if isinstance(public_inputs, PublicInputRecord):
            try:
                public_inputs.require_layout(self.layout.variant)
            except ValueError as e:
                raise Groth16ParseError(str(e)) from e
            return public_inputs.values
        return public_inputs

    def _parse(self, proof: ProofLike, public_inputs: PublicInputsLike) -> Optional[Tuple[Proof, Tuple[int, ...]]]:
        try:
            raw = proof.to_dict() if isinstance(proof, ProofInput) else proof
            return parse_proof(raw), parse_public_inputs(self._public_values(public_inputs))
        except Groth16ParseError as e:
            log.debug("rejecting unparseable proof/public inputs: %s", e)
            return None

    def _check_proof(self, pf: Proof, inputs: Sequence[int]) -> bool:
        try:
            return bool(self.proof_verifier(self.vk, pf, inputs))
        except (ValueError, ArithmeticError) as e:
            log.debug("proof verifier error: %s", e)
            return False

    # ------------------------------------------------------------------ binding

    def expected_slots(
        self,
        account_id: str,
        new_public_key: str,
        from_email: str,
        timestamp: str,
    ) -> Dict[str, Tuple[int, ...]]:
        """
        Public-input values a proof for this claim must carry, per group.
        Raises `LengthOutOfRange` if a value is too long to have been packed,
        `ClaimEncodingError` if it has no UTF-8 encoding.
        """
        def packed(s: str) -> Tuple[int, ...]:
            return pack_str(s, self.max_len, byteorder=self.byteorder)

        out = {
            L.ACCOUNT_ID: packed(account_id),
            L.PUBLIC_KEY: packed(new_public_key),
            L.TIMESTAMP: packed(timestamp),
        }
        if self.layout.variant == L.PLAINTEXT:
            out[L.FROM_EMAIL] = packed(from_email)
        else:
            out[L.FROM_ADDRESS_HASH] = digest_to_elements(binding_digest(from_email, account_id))
        return out

    def binding_mismatches(self, inputs: Sequence[int], claim: BindingClaim) -> List[str]:
        """Names of the slot groups whose public inputs differ from `claim`."""
        expected = self.expected_slots(claim.account_id, claim.new_public_key, claim.from_email, claim.timestamp)
        return [name for name, values in expected.items() if self.layout.slot(inputs, name) != values]

    # ------------------------------------------------------------------ API

    def verify(self, proof: ProofLike, public_inputs: PublicInputsLike) -> bool:
        """Plain proof verification; `False` for anything malformed."""
        parsed = self._parse(proof, public_inputs)
        if parsed is None:
            return False
        return self._check_proof(*parsed)

    def verify_with_binding(
        self,
        proof: ProofLike,
        public_inputs: PublicInputsLike,
        account_id: str,
        new_public_key: str,
        from_email: str,
        timestamp: str,
    ) -> bool:
        """
        `True` iff the proof is valid and its public inputs carry exactly the
        packed (or hashed) form of the given claim.
        """
        claim = BindingClaim(
            account_id=account_id,
            new_public_key=new_public_key,
            from_email=from_email,
            timestamp=timestamp,
        )
        return self._verify_bound(proof, public_inputs, claim)[0]

    def _verify_bound(
        self, proof: ProofLike, public_inputs: PublicInputsLike, claim: BindingClaim
    ) -> Tuple[bool, Optional[str]]:
        parsed = self._parse(proof, public_inputs)
        if parsed is None:
            return False, "malformed proof or public inputs"
        pf, inputs = parsed
        if len(inputs) != self.layout.total:
            log.info(
                "public input count %d does not match %s layout (%d)",
                len(inputs), self.layout.variant, self.layout.total,
            )
            return False, "public input count does not match layout"
        try:
            mismatches = self.binding_mismatches(inputs, claim)
        except ClaimEncodingError as e:
            log.info("claim cannot be bound: %s", e)
            return False, "claim not encodable"
        except ZkMailError as e:
            log.info("claim cannot be bound: %s", e)
            return False, "claim value too long"
        if mismatches:
            log.info("binding mismatch in %s", ", ".join(mismatches))
            return False, "binding mismatch: " + ", ".join(mismatches)
        if not self._check_proof(pf, inputs):
            return False, "proof verification failed"
        return True, None

    def verify_claim(
        self,
        proof: ProofLike,
        public_inputs: PublicInputsLike,
        claim: Optional[BindingClaim] = None,
    ) -> VerificationReport:
        """
        With a claim: bound verification, the report echoing the claim.
        Without one: `inspect`.
        """
        if claim is None:
            return self.inspect(proof, public_inputs)
        ok, reason = self._verify_bound(proof, public_inputs, claim)
        return VerificationReport(
            verified=ok,
            layout=self.layout.variant,
            binding_checked=True,
            reason=reason,
            account_id=claim.account_id,
            new_public_key=claim.new_public_key,
            from_address=claim.from_email,
            timestamp=claim.timestamp,
            email_timestamp_ms=parse_email_timestamp_to_unix_ms(claim.timestamp),
            vk_hash=self.vk_hash,
        )

    def inspect(self, proof: ProofLike, public_inputs: PublicInputsLike) -> VerificationReport:
        """
        Verify the proof and, if valid, decode the public inputs back into
        request id, account id, public key, sender and timestamp.
        """
        parsed = self._parse(proof, public_inputs)
        if parsed is None:
            return VerificationReport(
                verified=False, layout=self.layout.variant,
                reason="malformed proof or public inputs", vk_hash=self.vk_hash,
            )
        pf, inputs = parsed
        if not self._check_proof(pf, inputs):
            return VerificationReport(
                verified=False, layout=self.layout.variant,
                reason="proof verification failed", vk_hash=self.vk_hash,
            )
        try:
            decoded = self.layout.decode(inputs, byteorder=self.byteorder)
        except (ValueError, ZkMailError) as e:
            log.info("proof verified but public inputs do not decode: %s", e)
            return VerificationReport(
                verified=True, layout=self.layout.variant,
                reason=f"public inputs not decodable: {e}", vk_hash=self.vk_hash,
            )
        return VerificationReport(
            verified=True,
            layout=self.layout.variant,
            request_id=decoded.request_id,
            account_id=decoded.account_id,
            new_public_key=decoded.public_key,
            from_address=decoded.from_email,
            from_address_hash=decoded.from_address_hash,
            timestamp=decoded.timestamp,
            email_timestamp_ms=decoded.timestamp_ms,
            vk_hash=self.vk_hash,
        )


# ---------------------------------------------------------------------------
# Module-level helpers on the configured verifying key
# ---------------------------------------------------------------------------


@lru_cache(maxsize=4)
def _configured(cfg: ZkMailConfig) -> ProofBindingVerifier:
    return ProofBindingVerifier.from_config(cfg)


def default_verifier() -> ProofBindingVerifier:
    """Verifier for the configured key and layout (cached per config)."""
    return _configured(get_config())


def verify(proof: ProofLike, public_inputs: PublicInputsLike) -> bool:
    return default_verifier().verify(proof, public_inputs)


def verify_with_binding(
    proof: ProofLike,
    public_inputs: PublicInputsLike,
    account_id: str,
    new_public_key: str,
    from_email: str,
    timestamp: str,
) -> bool:
    return default_verifier().verify_with_binding(
        proof, public_inputs, account_id, new_public_key, from_email, timestamp
    )


__all__ = [
    "ProofVerifier",
    "ProofBindingVerifier",
    "default_verifier",
    "verify",
    "verify_with_binding",
]
