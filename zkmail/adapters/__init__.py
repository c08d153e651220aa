"""
zkmail.adapters
===============

Loaders and structural checks for the artifacts produced by the snarkjs
toolchain (verifying key, proof, public inputs, proving key).

License: MIT
"""

from __future__ import annotations

from .snarkjs_loader import (load_groth16, load_json, load_proof_json,
                             load_public_inputs, load_vk_json)
from .zkey_layout import (ZkeyCheckResult, check_zkey_layout,
                          require_zkey_layout)

__all__ = [
    "load_json",
    "load_vk_json",
    "load_proof_json",
    "load_public_inputs",
    "load_groth16",
    "ZkeyCheckResult",
    "check_zkey_layout",
    "require_zkey_layout",
]
