import json
import struct

import pytest

from zkmail.cli import main
from zkmail.packing.packer import pack_str
from zkmail.packing.sender_hash import binding_digest
from zkmail.tests import SCENARIO, SyntheticGroth16, make_header


@pytest.fixture
def header_file(tmp_path, header_bytes):
    p = tmp_path / "header.txt"
    p.write_bytes(header_bytes)
    return p


def _out(capsys):
    return json.loads(capsys.readouterr().out)


def test_pack(capsys):
    assert main(["pack", "alice.near"]) == 0
    assert _out(capsys) == [str(v) for v in pack_str("alice.near")]


def test_pack_little_endian(capsys, monkeypatch):
    monkeypatch.setenv("ZKMAIL_PACK_BYTEORDER", "little")
    assert main(["pack", "alice.near"]) == 0
    assert _out(capsys)[0] == str(int.from_bytes(b"alice.near", "little"))


def test_hash(capsys):
    assert main(["hash", "Alice@Example.com", "alice.near"]) == 0
    assert capsys.readouterr().out.strip() == binding_digest("alice@example.com", "alice.near").hex()

    assert main(["hash", "--elements", "alice@example.com", "alice.near"]) == 0
    assert _out(capsys) == [str(b) for b in binding_digest("alice@example.com", "alice.near")]


def test_locate(capsys, header_file):
    assert main(["locate", str(header_file)]) == 0
    out = _out(capsys)
    assert out["subject_start_idx"] == "52"
    assert out["from_addr_len"] == "17"


def test_locate_rejects_forged_header(capsys, tmp_path):
    p = tmp_path / "header.txt"
    p.write_bytes(make_header(subject=b"Subject:recover-req42 alice.near ed25519:PUBKEY123"))
    assert main(["locate", str(p)]) == 1
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["code"] == "anchor_violation"
    assert err["data"]["rule"] == "prefix"


def test_prepare_writes_circuit_and_expected_inputs(tmp_path, header_file):
    dkim = tmp_path / "dkim.json"
    dkim.write_text(json.dumps({"pubkey": list(range(17)), "signature": list(range(17))}))
    out = tmp_path / "input.json"
    expected = tmp_path / "expected.json"

    rc = main([
        "prepare", str(header_file), "--dkim", str(dkim), "--layout", "private",
        "-o", str(out), "--expected-public", str(expected),
    ])
    assert rc == 0
    circuit = json.loads(out.read_text())
    assert circuit["emailHeaderLength"] == str(len(header_file.read_bytes()))
    assert circuit["pubkey"] == [str(i) for i in range(17)]
    public = json.loads(expected.read_text())
    assert len(public) == 102
    assert public[27:59] == [str(b) for b in binding_digest("alice@example.com", "alice.near")]


def test_prepare_without_dkim_skips_expected_inputs(tmp_path, header_file, capsys):
    expected = tmp_path / "expected.json"
    assert main(["prepare", str(header_file), "--expected-public", str(expected)]) == 0
    assert "emailHeader" in _out(capsys)
    assert not expected.exists()


def test_missing_file_is_a_usage_error(tmp_path):
    assert main(["locate", str(tmp_path / "nope.txt")]) == 2


def test_bad_config_value(monkeypatch):
    monkeypatch.setenv("ZKMAIL_LAYOUT", "sideways")
    assert main(["pack", "x"]) == 2


def test_check_zkey(tmp_path, capsys):
    body = b"".join(struct.pack("<IQ", k, 2) + b"\x00\x00" for k in range(1, 11))
    good = tmp_path / "ok.zkey"
    good.write_bytes(b"zkey" + struct.pack("<II", 1, 10) + body)
    assert main(["check-zkey", str(good)]) == 0
    assert capsys.readouterr().out.strip() == "ok"

    bad = tmp_path / "bad.zkey"
    bad.write_bytes(b"zkex" + struct.pack("<II", 1, 10) + body)
    assert main(["check-zkey", str(bad)]) == 1
    assert capsys.readouterr().out.startswith("invalid: bad magic")


def _write_json(path, obj):
    path.write_text(json.dumps(obj))
    return str(path)


def test_verify_with_unusable_vk(tmp_path):
    g2 = [["0", "0"], ["0", "0"]]
    vk = {
        "protocol": "groth16",
        "vk_alpha_1": ["1", "3", "1"],
        "vk_beta_2": g2, "vk_gamma_2": g2, "vk_delta_2": g2,
        "IC": [["1", "2", "1"]],
    }
    proof = {"pi_a": ["1", "2", "1"], "pi_b": g2, "pi_c": ["1", "2", "1"]}
    args = [
        "verify",
        "--vk", _write_json(tmp_path / "vk.json", vk),
        "--proof", _write_json(tmp_path / "proof.json", proof),
        "--public", _write_json(tmp_path / "public.json", []),
    ]
    assert main(args) == 1


def _scenario_public():
    values = []
    for key in ("request_id", "account_id", "new_public_key", "from_email", "timestamp"):
        values += [str(v) for v in pack_str(SCENARIO[key])]
    return values + ["0"] * 34


@pytest.fixture(scope="module")
def synth():
    return SyntheticGroth16(n_public=79)


def _verify_args(tmp_path, synth, public):
    return [
        "verify",
        "--vk", _write_json(tmp_path / "vk.json", synth.vk_json),
        "--proof", _write_json(tmp_path / "proof.json", {"proof": synth.prove(public), "publicSignals": public}),
    ]


def test_verify_incomplete_claim(tmp_path, synth):
    args = _verify_args(tmp_path, synth, _scenario_public()) + ["--account-id", "alice.near"]
    assert main(args) == 2


@pytest.mark.slow
def test_verify_bound_claim(tmp_path, synth, capsys):
    claim = [
        "--account-id", SCENARIO["account_id"],
        "--new-public-key", SCENARIO["new_public_key"],
        "--from-email", SCENARIO["from_email"],
        "--timestamp", SCENARIO["timestamp"],
    ]
    args = _verify_args(tmp_path, synth, _scenario_public())
    assert main(args + claim) == 0
    report = _out(capsys)
    assert report["verified"] is True
    assert report["binding_checked"] is True
    assert report["email_timestamp_ms"] == 1704067200000

    claim[1] = "mallory.near"
    assert main(args + claim) == 1
    assert _out(capsys)["reason"].startswith("binding mismatch")


@pytest.mark.slow
def test_verify_inspects_without_claim(tmp_path, synth, capsys):
    assert main(_verify_args(tmp_path, synth, _scenario_public())) == 0
    report = _out(capsys)
    assert report["account_id"] == "alice.near"
    assert report["from_address"] == "alice@example.com"
    assert report["vk_hash"].startswith("sha256:")
