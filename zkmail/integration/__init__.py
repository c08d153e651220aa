"""
zkmail.integration
==================

- `types`  : msgspec records (proof input, claim, tagged public inputs, report)
- `prover` : proof-request preparation from a raw e-mail
"""

from __future__ import annotations

from .prover import (DocumentVerifier, ProofRequest, VerifiedHeader,
                     build_proof_request, prepare_proof_request)
from .types import (BindingClaim, ProofInput, PublicInputRecord,
                    VerificationReport, vk_fingerprint)

__all__ = [
    "BindingClaim",
    "ProofInput",
    "PublicInputRecord",
    "VerificationReport",
    "vk_fingerprint",
    "DocumentVerifier",
    "VerifiedHeader",
    "ProofRequest",
    "build_proof_request",
    "prepare_proof_request",
]
