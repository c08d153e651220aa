"""
zkmail.verifiers.pairing_bn254
==============================

BN254 (altbn128) pairing helpers on top of `py_ecc.optimized_bn128`.

Public API
----------
- pair(P, Q) -> GTElement
- check_pairing_product(pairs) -> bool
- is_on_curve_g1(P), is_on_curve_g2(Q), in_g2_subgroup(Q)
- normalize_g1(P) / normalize_g2(Q)  (to affine integers)
- g1_generator(), g2_generator(), curve_order(), field_modulus()

Notes
-----
- Point ordering follows e(P, Q) with P in G1, Q in G2. `py_ecc` takes
  (Q, P); this wrapper handles it.
- Points are projective triples as used by the optimized backend; the point
  at infinity has z == 0.
- `check_pairing_product` runs one Miller loop per pair and a single final
  exponentiation over their product.

License: MIT
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

from py_ecc.optimized_bn128 import FQ12, G1 as _G1, G2 as _G2
from py_ecc.optimized_bn128 import b as _B
from py_ecc.optimized_bn128 import b2 as _B2
from py_ecc.optimized_bn128 import curve_order as _Q
from py_ecc.optimized_bn128 import field_modulus as _P
from py_ecc.optimized_bn128 import final_exponentiate as _final_exponentiate
from py_ecc.optimized_bn128 import is_inf as _is_inf
from py_ecc.optimized_bn128 import is_on_curve as _is_on_curve
from py_ecc.optimized_bn128 import multiply as _mul
from py_ecc.optimized_bn128 import normalize as _normalize
from py_ecc.optimized_bn128 import pairing as _pairing

BACKEND_NAME = "py_ecc.optimized_bn128"

# Opaque projective tuples understood by py_ecc.
G1Point = Any
G2Point = Any
GTElement = FQ12


def curve_order() -> int:
    """BN254 subgroup order r (the scalar field of public inputs)."""
    return int(_Q)


def field_modulus() -> int:
    """BN254 base field modulus p."""
    return int(_P)


def g1_generator() -> G1Point:
    return _G1


def g2_generator() -> G2Point:
    return _G2


def _limb(c: Any) -> int:
    # FQ2 coefficients are plain ints in the optimized backend, FQ elsewhere.
    return int(getattr(c, "n", c))


def is_on_curve_g1(P: G1Point) -> bool:
    """True if P is on y^2 = x^3 + 3 or is the point at infinity."""
    return bool(_is_on_curve(P, _B))


def is_on_curve_g2(Q: G2Point) -> bool:
    """True if Q is on the twist curve or is the point at infinity."""
    return bool(_is_on_curve(Q, _B2))


def in_g2_subgroup(Q: G2Point) -> bool:
    """
    True if Q lies in the order-r subgroup of the twist.

    G1 has cofactor 1, so on-curve implies subgroup there; G2 does not.
    """
    return is_on_curve_g2(Q) and bool(_is_inf(_mul(Q, curve_order())))


def normalize_g1(P: G1Point) -> Optional[Tuple[int, int]]:
    """Affine (x, y) integers, or None for the point at infinity."""
    if _is_inf(P):
        return None
    ax, ay = _normalize(P)
    return int(ax.n), int(ay.n)


def normalize_g2(Q: G2Point) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """
    Affine ((x_c0, x_c1), (y_c0, y_c1)) with integer limbs, or None for the
    point at infinity. Value of an FQ2 element is c0 + c1 * i.
    """
    if _is_inf(Q):
        return None
    ax, ay = _normalize(Q)
    return (_limb(ax.coeffs[0]), _limb(ax.coeffs[1])), (_limb(ay.coeffs[0]), _limb(ay.coeffs[1]))


def pair(P: G1Point, Q: G2Point, *, validate: bool = True) -> GTElement:
    """
    Ate pairing e(P, Q).

    Raises ValueError if `validate` and either point is off its curve.
    """
    if validate:
        if not is_on_curve_g1(P):
            raise ValueError("G1 point is not on curve")
        if not is_on_curve_g2(Q):
            raise ValueError("G2 point is not on curve")
    return _pairing(Q, P)


def product_of_pairings(pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True) -> GTElement:
    """∏ e(P_i, Q_i) in GT."""
    acc = FQ12.one()
    for P, Q in pairs:
        if validate:
            if not is_on_curve_g1(P):
                raise ValueError("G1 point is not on curve")
            if not is_on_curve_g2(Q):
                raise ValueError("G2 point is not on curve")
        if _is_inf(P) or _is_inf(Q):
            continue
        acc *= _pairing(Q, P, final_exponentiate=False)
    return _final_exponentiate(acc)


def check_pairing_product(pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True) -> bool:
    """
    True iff ∏ e(P_i, Q_i) == 1 in GT.

    Used for the Groth16 equation written as a product of four pairings.
    """
    return product_of_pairings(pairs, validate=validate) == FQ12.one()


__all__ = [
    "BACKEND_NAME",
    "G1Point",
    "G2Point",
    "pair",
    "product_of_pairings",
    "check_pairing_product",
    "is_on_curve_g1",
    "is_on_curve_g2",
    "in_g2_subgroup",
    "normalize_g1",
    "normalize_g2",
    "g1_generator",
    "g2_generator",
    "curve_order",
    "field_modulus",
]
