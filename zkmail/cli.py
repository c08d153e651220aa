"""
zkmail command line.

    zkmail locate  header.txt                    # field offsets as circuit inputs
    zkmail pack    "alice.near"                  # 9 packed field elements
    zkmail hash    alice@example.com alice.near  # sender binding digest
    zkmail prepare header.txt --dkim dkim.json -o input.json
    zkmail verify  --vk verification_key.json --proof proof.json --public public.json \
                   [--account-id .. --new-public-key .. --from-email .. --timestamp ..]
    zkmail check-zkey circuit_final.zkey

Header files hold the DKIM-verified, relaxed-canonicalized header bytes.
Exit status is 0 on success, 1 when a check fails, 2 on usage/config errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional

from . import __version__
from .adapters.snarkjs_loader import load_groth16, load_json
from .adapters.zkey_layout import check_zkey_layout
from .config import LAYOUT_VARIANTS, ZkMailConfig, get_config, load_config
from .errors import ArtifactLayoutError, ZkMailError
from .header.anchors import check
from .header.buffer import HeaderBuffer
from .header.locator import locate
from .integration.prover import VerifiedHeader, build_proof_request
from .integration.types import BindingClaim
from .packing.packer import pack_str
from .packing.sender_hash import binding_digest, digest_to_elements
from .verifiers.binding import ProofBindingVerifier
from .verifiers.groth16_bn254 import Groth16ParseError
from .verifiers.layout import PublicInputLayout

log = logging.getLogger("zkmail.cli")


def _dump(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")


def _config(args: argparse.Namespace) -> ZkMailConfig:
    cfg = load_config(args.config) if args.config else get_config()
    layout = getattr(args, "layout", None)
    if layout:
        cfg = replace(cfg, layout=replace(cfg.layout, variant=layout))
        cfg.validate()
    return cfg


# ------------------------------- commands -----------------------------------


def cmd_locate(args: argparse.Namespace) -> int:
    cfg = _config(args)
    buffer = HeaderBuffer.from_bytes(Path(args.header).read_bytes(), cfg.header.capacity)
    located = locate(buffer)
    check(buffer, located, max_len=cfg.packing.max_len)
    _dump(located.to_circuit_inputs())
    return 0


def cmd_pack(args: argparse.Namespace) -> int:
    cfg = _config(args)
    values = pack_str(args.text, cfg.packing.max_len, byteorder=cfg.packing.byteorder)
    _dump([str(v) for v in values])
    return 0


def cmd_hash(args: argparse.Namespace) -> int:
    digest = binding_digest(args.from_email, args.account_id)
    if args.elements:
        _dump([str(v) for v in digest_to_elements(digest)])
    else:
        sys.stdout.write(digest.hex() + "\n")
    return 0


def cmd_prepare(args: argparse.Namespace) -> int:
    cfg = _config(args)
    raw = Path(args.header).read_bytes()
    dkim = load_json(args.dkim) if args.dkim else {}
    verified = VerifiedHeader(
        header=raw,
        length=len(raw),
        pubkey=tuple(str(v) for v in dkim.get("pubkey", ())),
        signature=tuple(str(v) for v in dkim.get("signature", ())),
    )
    req = build_proof_request(verified, cfg)
    if args.out:
        Path(args.out).write_text(json.dumps(req.circuit_input, indent=2) + "\n", encoding="utf-8")
        log.info("wrote circuit input to %s", args.out)
    else:
        _dump(req.circuit_input)
    expected = req.expected_public_inputs()
    if args.expected_public and expected is not None:
        Path(args.expected_public).write_text(json.dumps(expected, indent=2) + "\n", encoding="utf-8")
    elif args.expected_public:
        log.warning("DKIM key/signature chunks missing; expected public inputs not written")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    cfg = _config(args)
    vk_json, proof, publics = load_groth16(args.vk, args.proof, args.public)
    try:
        verifier = ProofBindingVerifier(
            vk_json,
            PublicInputLayout.from_config(cfg),
            byteorder=cfg.packing.byteorder,
            max_len=cfg.packing.max_len,
        )
    except Groth16ParseError as e:
        raise ArtifactLayoutError(f"invalid verifying key: {e}") from e
    claim_parts = (args.account_id, args.new_public_key, args.from_email, args.timestamp)
    if any(p is not None for p in claim_parts):
        if any(p is None for p in claim_parts):
            log.error("binding needs --account-id, --new-public-key, --from-email and --timestamp")
            return 2
        claim: Optional[BindingClaim] = BindingClaim(
            account_id=args.account_id,
            new_public_key=args.new_public_key,
            from_email=args.from_email,
            timestamp=args.timestamp,
        )
    else:
        claim = None
    report = verifier.verify_claim(proof, publics, claim)
    _dump(report.to_dict())
    return 0 if report.verified else 1


def cmd_check_zkey(args: argparse.Namespace) -> int:
    res = check_zkey_layout(args.zkey)
    if res.ok:
        sys.stdout.write("ok\n")
        return 0
    sys.stdout.write(f"invalid: {res.reason}\n")
    return 1


# ------------------------------- parser -------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="zkmail", description="Anchored e-mail field extraction and proof binding.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", help="JSON/YAML config file (default: $ZKMAIL_CONFIG)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v INFO, -vv DEBUG)")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("locate", help="Locate Subject/From/Date and print the index inputs")
    s.add_argument("header", help="File with the verified header bytes")
    s.set_defaults(func=cmd_locate)

    s = sub.add_parser("pack", help="Pack a string into field elements")
    s.add_argument("text")
    s.set_defaults(func=cmd_pack)

    s = sub.add_parser("hash", help="Sender binding digest sha256(lower(from)|lower(account))")
    s.add_argument("from_email")
    s.add_argument("account_id")
    s.add_argument("--elements", action="store_true", help="Print the 32 public-input elements instead of hex")
    s.set_defaults(func=cmd_hash)

    s = sub.add_parser("prepare", help="Build the circuit input JSON from a verified header")
    s.add_argument("header", help="File with the verified header bytes")
    s.add_argument("--dkim", help='JSON with "pubkey" and "signature" chunk lists')
    s.add_argument("--layout", choices=LAYOUT_VARIANTS)
    s.add_argument("-o", "--out", help="Write circuit input here instead of stdout")
    s.add_argument("--expected-public", help="Also write the expected public inputs here")
    s.set_defaults(func=cmd_prepare)

    s = sub.add_parser("verify", help="Verify a proof, optionally bound to a claim")
    s.add_argument("--vk", required=True, help="snarkjs verification_key.json")
    s.add_argument("--proof", required=True, help="snarkjs proof.json")
    s.add_argument("--public", help="snarkjs public.json (default: publicSignals in proof)")
    s.add_argument("--layout", choices=LAYOUT_VARIANTS)
    s.add_argument("--account-id")
    s.add_argument("--new-public-key")
    s.add_argument("--from-email")
    s.add_argument("--timestamp")
    s.set_defaults(func=cmd_verify)

    s = sub.add_parser("check-zkey", help="Check the section layout of a Groth16 .zkey")
    s.add_argument("zkey")
    s.set_defaults(func=cmd_check_zkey)
    return p


def _configure_logging(verbose: int, default_level: str) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, default_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        default_level = _config(argparse.Namespace(config=args.config)).logging.level
        _configure_logging(args.verbose, default_level)
        return args.func(args)
    except ZkMailError as e:
        log.error("%s", e)
        sys.stderr.write(json.dumps(e.to_dict()) + "\n")
        return 2 if e.code == "config_error" else 1
    except OSError as e:
        log.error("%s", e)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
