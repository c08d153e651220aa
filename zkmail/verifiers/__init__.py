"""
zkmail verifiers: high-level facade

- `groth16_bn254` : snarkjs-format Groth16 parsing and pairing check (py_ecc)
- `pairing_bn254` : BN254 pairing helpers
- `layout`        : public-input layouts (plaintext / private sender)
- `binding`       : `ProofBindingVerifier`, proof check plus claim binding

Usage
-----
>>> from zkmail.verifiers import ProofBindingVerifier, PublicInputLayout
>>> v = ProofBindingVerifier(vk_json, PublicInputLayout.plaintext())
>>> v.verify_with_binding(proof, public, "alice.near", "PUBKEY123",
...                       "alice@example.com", "Mon, 01 Jan 2024 00:00:00 +0000")
True

Every verification call returns a bool (or a `VerificationReport`); malformed
proofs, inputs and claims are reported as failures, never raised.
"""

from __future__ import annotations

from .binding import (ProofBindingVerifier, ProofVerifier, default_verifier,
                      verify, verify_with_binding)
from .groth16_bn254 import (Groth16ParseError, Proof, VerifyingKey, load_vk,
                            parse_proof, parse_public_inputs, verify_groth16,
                            verify_proof)
from .layout import DecodedPublicInputs, PublicInputLayout

__all__ = [
    "ProofBindingVerifier",
    "ProofVerifier",
    "default_verifier",
    "verify",
    "verify_with_binding",
    "Groth16ParseError",
    "Proof",
    "VerifyingKey",
    "load_vk",
    "parse_proof",
    "parse_public_inputs",
    "verify_groth16",
    "verify_proof",
    "DecodedPublicInputs",
    "PublicInputLayout",
]
