"""
zkmail
======

Anchored field extraction, substring packing and proof binding for
zero-knowledge "recover by e-mail" requests.

A DKIM-signed (relaxed-canonicalized) header carries a subject line

    subject:recover-<request_id> <account_id> ed25519:<public_key>

The same library is used by the proof-request side (locate fields, check
their anchoring, pack them into field elements) and by the verifier side
(check a Groth16 proof and bind its public inputs to a plaintext claim).

Subpackages
-----------
- zkmail.header       : header buffer, locator, anchor rules, Date parsing
- zkmail.packing      : 31-byte packing, SHA-256 sender binding digest
- zkmail.verifiers    : Groth16/BN254 verification, layouts, binding
- zkmail.adapters     : snarkjs artifact loading, .zkey layout check
- zkmail.integration  : typed records and proof-request preparation
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
