"""
zkmail.adapters.snarkjs_loader
==============================

Load the JSON artifacts snarkjs writes for the RecoverEmail circuit:

- `verification_key.json`  (Groth16, bn128)
- `proof.json`             (flat, or wrapped as {"proof": {...}, "publicSignals": [...]})
- `public.json`            (list of decimal strings)

Nothing is verified here. Values are shape-checked and every number is
brought into the decimal-string form the verifier parses; numbers written as
JSON integers (some tools do this) are converted, hex strings are rejected.

Exports
-------
- load_json(source) -> dict | list
- is_groth16_vk(obj) / is_groth16_proof(obj)
- normalize_decimal(obj)
- split_proof_bundle(obj) -> (proof_dict, public_inputs | None)
- load_vk_json(source) / load_proof_json(source) / load_public_inputs(source)
- load_groth16(vk_source, proof_source, public_source=None) -> (vk, proof, publics)

License: MIT
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import ArtifactLayoutError

JsonLike = Union[str, bytes, os.PathLike, Mapping[str, Any], List[Any]]


# -----------------------------------------------------------------------------
# I/O helpers
# -----------------------------------------------------------------------------

def load_json(source: JsonLike) -> Any:
    """
    Load JSON from:
      - dict / list: shallow-copied
      - path-like or string path to an existing file
      - string or bytes containing JSON text

    Raises ArtifactLayoutError on failure.
    """
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, list):
        return list(source)
    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return json.loads(bytes(source).decode("utf-8"))
        if isinstance(source, os.PathLike) or (isinstance(source, str) and os.path.isfile(source)):
            return json.loads(Path(source).read_text(encoding="utf-8"))
        return json.loads(str(source))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise ArtifactLayoutError(f"could not load JSON: {e}") from e


# -----------------------------------------------------------------------------
# Number normalization
# -----------------------------------------------------------------------------

def normalize_decimal(obj: Any) -> Any:
    """
    Recursively turn JSON integers into decimal strings; strings and other
    values are kept as they are (the verifier decides whether they parse).
    """
    if isinstance(obj, Mapping):
        return {k: normalize_decimal(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [normalize_decimal(v) for v in obj]
    if isinstance(obj, int) and not isinstance(obj, bool):
        return str(obj)
    return obj


# -----------------------------------------------------------------------------
# Shape detection
# -----------------------------------------------------------------------------

_VK_KEYS = ("vk_alpha_1", "vk_beta_2", "vk_gamma_2", "vk_delta_2", "IC")
_PROOF_KEYS = ("pi_a", "pi_b", "pi_c")


def is_groth16_vk(obj: Any) -> bool:
    return isinstance(obj, Mapping) and all(k in obj for k in _VK_KEYS)


def is_groth16_proof(obj: Any) -> bool:
    if not isinstance(obj, Mapping):
        return False
    if isinstance(obj.get("proof"), Mapping):
        obj = obj["proof"]
    return all(k in obj for k in _PROOF_KEYS)


def split_proof_bundle(obj: Mapping[str, Any]) -> Tuple[Dict[str, Any], Optional[List[str]]]:
    """
    Accept a flat proof or a `{proof, publicSignals}` bundle. Returns the
    proof dict and the bundled public inputs (None when absent).
    """
    if not is_groth16_proof(obj):
        raise ArtifactLayoutError("object does not look like a Groth16 proof (pi_a, pi_b, pi_c)")
    proof = obj["proof"] if isinstance(obj.get("proof"), Mapping) else obj
    publics = obj.get("publicSignals")
    if publics is not None and not isinstance(publics, list):
        raise ArtifactLayoutError("publicSignals must be a list when present")
    out = {k: v for k, v in proof.items() if k != "publicSignals"}
    return normalize_decimal(out), normalize_decimal(publics) if publics is not None else None


# -----------------------------------------------------------------------------
# Loaders
# -----------------------------------------------------------------------------

def load_vk_json(source: JsonLike) -> Dict[str, Any]:
    vk = load_json(source)
    if not is_groth16_vk(vk):
        raise ArtifactLayoutError("object does not look like a Groth16 verifying key")
    protocol = vk.get("protocol")
    if protocol is not None and str(protocol).lower() != "groth16":
        raise ArtifactLayoutError(f"verifying key protocol is {protocol!r}, expected groth16")
    if not isinstance(vk["IC"], list) or not vk["IC"]:
        raise ArtifactLayoutError("vk.IC must be a non-empty list of G1 points")
    return normalize_decimal(vk)


def load_proof_json(source: JsonLike) -> Tuple[Dict[str, Any], Optional[List[str]]]:
    obj = load_json(source)
    if not isinstance(obj, Mapping):
        raise ArtifactLayoutError("proof JSON must be an object")
    return split_proof_bundle(obj)


def load_public_inputs(source: JsonLike) -> List[str]:
    """`public.json`: a JSON list, or an object carrying `publicSignals`."""
    obj = load_json(source)
    if isinstance(obj, Mapping):
        obj = obj.get("publicSignals")
    if not isinstance(obj, list):
        raise ArtifactLayoutError("public inputs must be a JSON list")
    return normalize_decimal(obj)


def load_groth16(
    vk_source: JsonLike,
    proof_source: JsonLike,
    public_source: Optional[JsonLike] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any], List[str]]:
    """
    (vk_json, proof_json, public_inputs) = load_groth16(
        "verification_key.json", "proof.json", "public.json")

    Public inputs come from `public_source` if given, else from the proof
    bundle's `publicSignals`.
    """
    vk = load_vk_json(vk_source)
    proof, bundled = load_proof_json(proof_source)
    if public_source is not None:
        publics = load_public_inputs(public_source)
    elif bundled is not None:
        publics = bundled
    else:
        raise ArtifactLayoutError("no public inputs: pass public.json or a bundle with publicSignals")
    return vk, proof, publics


__all__ = [
    "load_json",
    "normalize_decimal",
    "is_groth16_vk",
    "is_groth16_proof",
    "split_proof_bundle",
    "load_vk_json",
    "load_proof_json",
    "load_public_inputs",
    "load_groth16",
]
