"""
zkmail.verifiers.groth16_bn254
==============================

Groth16 verifier for BN254 (altbn128) over the `snarkjs` JSON layout.

Verification equation
---------------------
    e(A, B) == e(alpha1, beta2) * e(VK_x, gamma2) * e(C, delta2)

checked as a product in GT:

    e(A, B) * e(-alpha1, beta2) * e(-VK_x, gamma2) * e(-C, delta2) == 1

with VK_x = IC[0] + sum_i input_i * IC[i+1].

JSON layout (snarkjs)
---------------------
- Verifying key (`verification_key.json`):
    vk_alpha_1: [ax, ay, "1"]
    vk_beta_2 / vk_gamma_2 / vk_delta_2: [[x.c0, x.c1], [y.c0, y.c1], ["1", "0"]]
    IC: [[x, y, "1"], ...]            # 1 + number of public inputs
- Proof (`proof.json`):
    pi_a: [ax, ay, "1"]
    pi_b: [[bx0, bx1], [by0, by1], ["1", "0"]]
    pi_c: [cx, cy, "1"]
- Public inputs (`public.json`): ["123", "456", ...]

Coordinates and public inputs are decimal strings. The third (projective
normalization) coordinate is accepted and ignored; two-coordinate points are
accepted as well. Coordinates must be canonical (< p) and public inputs must
be canonical scalars (< r); nothing is silently reduced.

Public API
----------
- load_vk(vk_json) -> VerifyingKey
- parse_proof(proof_json) -> Proof
- parse_public_inputs(values) -> tuple[int, ...]
- verify_proof(vk, proof, inputs) -> bool       (the proof-verifier capability)
- verify_groth16(vk_json, proof_json, public_inputs) -> bool   (never raises)

License: MIT
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Tuple, Union

from py_ecc.optimized_bn128 import FQ, FQ2, Z1, Z2
from py_ecc.optimized_bn128 import add as _add
from py_ecc.optimized_bn128 import multiply as _mul
from py_ecc.optimized_bn128 import neg as _neg

from .pairing_bn254 import (G1Point, G2Point, check_pairing_product,
                            curve_order, field_modulus, in_g2_subgroup,
                            is_on_curve_g1)

log = logging.getLogger(__name__)

_FR = curve_order()
_FP = field_modulus()
_DECIMAL_RE = re.compile(r"[0-9]+")
# any decimal longer than p is out of range for both fields
_MAX_DIGITS = len(str(_FP))

Scalar = Union[int, str]


class Groth16ParseError(ValueError):
    """Proof, verifying key or public inputs are not well-formed."""


# ---------------------------
# Scalar / coordinate parsing
# ---------------------------


def _to_int(z: Any, what: str) -> int:
    if isinstance(z, bool):
        raise Groth16ParseError(f"{what}: boolean is not a number")
    if isinstance(z, int):
        v = z
    elif isinstance(z, str) and _DECIMAL_RE.fullmatch(z.strip()):
        digits = z.strip().lstrip("0") or "0"
        if len(digits) > _MAX_DIGITS:
            raise Groth16ParseError(f"{what}: {len(digits)}-digit value is out of range")
        v = int(digits)
    else:
        raise Groth16ParseError(f"{what}: expected a decimal string, got {z!r}")
    if v < 0:
        raise Groth16ParseError(f"{what}: negative value")
    return v


def _coord(z: Any, what: str) -> int:
    v = _to_int(z, what)
    if v >= _FP:
        raise Groth16ParseError(f"{what}: coordinate not below the field modulus")
    return v


def _scalar(z: Any, what: str) -> int:
    v = _to_int(z, what)
    if v >= _FR:
        raise Groth16ParseError(f"{what}: not a canonical field element")
    return v


def _seq(value: Any, lengths: Tuple[int, ...], what: str) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)) or len(value) not in lengths:
        raise Groth16ParseError(f"{what}: expected a list of {' or '.join(map(str, lengths))} items")
    return value


def _g1(value: Any, what: str) -> G1Point:
    pt = _seq(value, (2, 3), what)
    x, y = _coord(pt[0], f"{what}.x"), _coord(pt[1], f"{what}.y")
    if x == 0 and y == 0:
        return Z1
    P = (FQ(x), FQ(y), FQ(1))
    if not is_on_curve_g1(P):
        raise Groth16ParseError(f"{what}: point is not on G1")
    return P


def _g2(value: Any, what: str) -> G2Point:
    pt = _seq(value, (2, 3), what)
    xx = _seq(pt[0], (2,), f"{what}.x")
    yy = _seq(pt[1], (2,), f"{what}.y")
    x0, x1 = _coord(xx[0], f"{what}.x.c0"), _coord(xx[1], f"{what}.x.c1")
    y0, y1 = _coord(yy[0], f"{what}.y.c0"), _coord(yy[1], f"{what}.y.c1")
    if x0 == x1 == y0 == y1 == 0:
        return Z2
    Q = (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())
    if not in_g2_subgroup(Q):
        raise Groth16ParseError(f"{what}: point is not in G2")
    return Q


# ---------------------------
# Data classes
# ---------------------------


@dataclass(frozen=True)
class VerifyingKey:
    alpha1: G1Point
    beta2: G2Point
    gamma2: G2Point
    delta2: G2Point
    IC: Tuple[G1Point, ...]  # [IC0, IC1, ..., ICn]

    @property
    def n_public(self) -> int:
        return len(self.IC) - 1


@dataclass(frozen=True)
class Proof:
    A: G1Point
    B: G2Point
    C: G1Point


# ---------------------------
# Loaders (snarkjs JSON)
# ---------------------------


def _pick(obj: Mapping[str, Any], *names: str) -> Any:
    for n in names:
        if n in obj:
            return obj[n]
    raise Groth16ParseError(f"missing field {names[0]!r}")


def load_vk(vk_json: Mapping[str, Any]) -> VerifyingKey:
    """
    Parse a snarkjs verifying key object. Raises `Groth16ParseError`.
    """
    if not isinstance(vk_json, Mapping):
        raise Groth16ParseError("verifying key must be a JSON object")
    protocol = vk_json.get("protocol")
    if protocol is not None and str(protocol).lower() != "groth16":
        raise Groth16ParseError(f"unsupported protocol {protocol!r}")

    ic_raw = _pick(vk_json, "IC", "vk_ic", "ic")
    if not isinstance(ic_raw, (list, tuple)) or not ic_raw:
        raise Groth16ParseError("IC must be a non-empty list")

    vk = VerifyingKey(
        alpha1=_g1(_pick(vk_json, "vk_alpha_1", "alpha_1", "alpha1"), "vk_alpha_1"),
        beta2=_g2(_pick(vk_json, "vk_beta_2", "beta_2", "beta2"), "vk_beta_2"),
        gamma2=_g2(_pick(vk_json, "vk_gamma_2", "gamma_2", "gamma2"), "vk_gamma_2"),
        delta2=_g2(_pick(vk_json, "vk_delta_2", "delta_2", "delta2"), "vk_delta_2"),
        IC=tuple(_g1(p, f"IC[{i}]") for i, p in enumerate(ic_raw)),
    )

    n_public = vk_json.get("nPublic")
    if n_public is not None and _to_int(n_public, "nPublic") != vk.n_public:
        raise Groth16ParseError(f"nPublic {n_public} does not match {len(vk.IC)} IC points")
    return vk


def parse_proof(proof_json: Mapping[str, Any]) -> Proof:
    """
    Parse a snarkjs proof object (`pi_a`, `pi_b`, `pi_c`). Raises
    `Groth16ParseError`.
    """
    if not isinstance(proof_json, Mapping):
        raise Groth16ParseError("proof must be a JSON object")
    protocol = proof_json.get("protocol")
    if protocol is not None and str(protocol).lower() != "groth16":
        raise Groth16ParseError(f"unsupported protocol {protocol!r}")
    return Proof(
        A=_g1(_pick(proof_json, "pi_a", "A"), "pi_a"),
        B=_g2(_pick(proof_json, "pi_b", "B"), "pi_b"),
        C=_g1(_pick(proof_json, "pi_c", "C"), "pi_c"),
    )


def parse_public_inputs(values: Sequence[Scalar]) -> Tuple[int, ...]:
    """
    Parse decimal-string public inputs into canonical scalars. Raises
    `Groth16ParseError`.
    """
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise Groth16ParseError("public inputs must be a list")
    return tuple(_scalar(v, f"public[{i}]") for i, v in enumerate(values))


# ---------------------------
# Core verification
# ---------------------------


def _vk_x(IC: Sequence[G1Point], inputs: Sequence[int]) -> G1Point:
    """VK_x = IC[0] + sum_i inputs[i] * IC[i+1]."""
    if len(IC) != len(inputs) + 1:
        raise ValueError(f"IC length {len(IC)} != 1 + len(inputs) {len(inputs)}")
    acc = IC[0]
    for i, s in enumerate(inputs):
        if s != 0:
            acc = _add(acc, _mul(IC[i + 1], s))
    return acc


def verify_proof(vk: VerifyingKey, proof: Proof, inputs: Sequence[int]) -> bool:
    """
    Groth16 check over already parsed values. A wrong input count is a
    failed verification, not an error.
    """
    if len(inputs) != vk.n_public:
        log.debug("public input count %d != %d expected by vk", len(inputs), vk.n_public)
        return False
    vkx = _vk_x(vk.IC, inputs)
    pairs = [
        (proof.A, proof.B),
        (_neg(vk.alpha1), vk.beta2),
        (_neg(vkx), vk.gamma2),
        (_neg(proof.C), vk.delta2),
    ]
    return check_pairing_product(pairs, validate=False)


def verify_groth16(
    vk_json: Mapping[str, Any],
    proof_json: Mapping[str, Any],
    public_inputs: Sequence[Scalar],
) -> bool:
    """
    Verify a proof given snarkjs JSON objects and decimal public inputs.

    Returns False for any malformed input; never raises for routine failures.
    """
    try:
        vk = load_vk(vk_json)
        pf = parse_proof(proof_json)
        inputs = parse_public_inputs(public_inputs)
    except Groth16ParseError as e:
        log.debug("groth16 input rejected: %s", e)
        return False
    return verify_proof(vk, pf, inputs)


__all__ = [
    "Groth16ParseError",
    "VerifyingKey",
    "Proof",
    "load_vk",
    "parse_proof",
    "parse_public_inputs",
    "verify_proof",
    "verify_groth16",
]
