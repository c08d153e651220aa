"""
zkmail.tests helpers

Utilities shared by zkmail/* tests.

Exports:
- TEST_ROOT
- env_flag(name, default=False) -> bool
- configure_test_logging() -> None
- make_header(...) -> bytes             relaxed-canonicalized header with a recovery subject
- SCENARIO                              the req42 / alice.near reference claim
- g1_json(P) / g2_json(Q)               py_ecc points → snarkjs coordinate lists
- SyntheticGroth16                      a Groth16 instance with a known trapdoor

Environment toggles:
- ZKMAIL_TEST_LOG=1         → enable INFO logging for zkmail.*
- HYPOTHESIS_PROFILE=ci     → deeper property runs (default "local", or "ci" when CI is set)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from hypothesis import HealthCheck, settings
from py_ecc.optimized_bn128 import G1, G2, multiply

from zkmail.verifiers.pairing_bn254 import (curve_order, normalize_g1,
                                            normalize_g2)

TEST_ROOT: Path = Path(__file__).resolve().parent


# --- Env & logging -------------------------------------------------------------


def env_flag(name: str, default: bool = False) -> bool:
    """
    Read an environment flag in a truthy/falsey way: "1", "true", "yes" → True.
    """
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def configure_test_logging(level: int | None = None) -> None:
    """
    Configure basic logging for zkmail.* loggers when ZKMAIL_TEST_LOG is set.
    """
    if level is None:
        level = logging.INFO
    if env_flag("ZKMAIL_TEST_LOG", False):
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger("zkmail").setLevel(level)


# --- Hypothesis --------------------------------------------------------------

# The autouse config-isolation fixture only resets environment state, so it is
# safe to share across generated examples.
_SUPPRESSED = (HealthCheck.function_scoped_fixture, HealthCheck.too_slow)

settings.register_profile("local", settings(max_examples=60, deadline=None, suppress_health_check=_SUPPRESSED))
settings.register_profile(
    "ci", settings(max_examples=200, deadline=None, suppress_health_check=_SUPPRESSED, derandomize=True)
)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE") or ("ci" if os.environ.get("CI") else "local"))


# --- Headers -------------------------------------------------------------------

SCENARIO: Dict[str, str] = {
    "request_id": "req42",
    "account_id": "alice.near",
    "new_public_key": "PUBKEY123",
    "from_email": "alice@example.com",
    "timestamp": "Mon, 01 Jan 2024 00:00:00 +0000",
}


def make_header(
    *,
    subject: Optional[bytes] = b"subject:recover-req42 alice.near ed25519:PUBKEY123",
    from_line: Optional[bytes] = b"from:Alice <alice@example.com>",
    date_line: Optional[bytes] = b"date:Mon, 01 Jan 2024 00:00:00 +0000",
    before: Sequence[bytes] = (b"to:bob@example.com",),
    after: Sequence[bytes] = (b"dkim-signature:v=1; a=rsa-sha256; d=example.com; s=sel; b=",),
) -> bytes:
    """
    Header lines joined with CRLF, in the order: before, from, subject, date,
    after. Pass `None` for a line to leave it out.
    """
    lines: List[bytes] = list(before)
    for line in (from_line, subject, date_line):
        if line is not None:
            lines.append(line)
    lines.extend(after)
    return b"\r\n".join(lines)


# --- Groth16 -------------------------------------------------------------------


def g1_json(P: Any) -> List[str]:
    x, y = normalize_g1(P)
    return [str(x), str(y), "1"]


def g2_json(Q: Any) -> List[List[str]]:
    (x0, x1), (y0, y1) = normalize_g2(Q)
    return [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]]


class SyntheticGroth16:
    """
    Groth16 instance whose trapdoor is known, so valid proofs can be made for
    any public inputs without a circuit:

        alpha = a*G1, beta = b*G2, gamma = delta = G2, IC_i = s_i*G1
        A = (a*b + x + c)*G1, B = G2, C = c*G1, with x = s_0 + sum(in_i * s_{i+1})

    Then e(A, B) = e(alpha, beta) * e(VK_x, gamma) * e(C, delta).
    """

    A_SCALAR = 5
    B_SCALAR = 7
    C_SCALAR = 13

    def __init__(self, n_public: int) -> None:
        self.n_public = n_public
        self.s = [11 + 3 * i for i in range(n_public + 1)]
        self.vk_json: Dict[str, Any] = {
            "protocol": "groth16",
            "curve": "bn128",
            "nPublic": n_public,
            "vk_alpha_1": g1_json(multiply(G1, self.A_SCALAR)),
            "vk_beta_2": g2_json(multiply(G2, self.B_SCALAR)),
            "vk_gamma_2": g2_json(G2),
            "vk_delta_2": g2_json(G2),
            "IC": [g1_json(multiply(G1, s)) for s in self.s],
        }

    def prove(self, public_inputs: Sequence[int | str]) -> Dict[str, Any]:
        r = curve_order()
        values = [int(v) for v in public_inputs]
        x = (self.s[0] + sum(v * s for v, s in zip(values, self.s[1:]))) % r
        a = (self.A_SCALAR * self.B_SCALAR + x + self.C_SCALAR) % r
        return {
            "protocol": "groth16",
            "curve": "bn128",
            "pi_a": g1_json(multiply(G1, a)),
            "pi_b": g2_json(G2),
            "pi_c": g1_json(multiply(G1, self.C_SCALAR)),
        }


configure_test_logging()

__all__ = [
    "TEST_ROOT",
    "env_flag",
    "configure_test_logging",
    "SCENARIO",
    "make_header",
    "g1_json",
    "g2_json",
    "SyntheticGroth16",
]
