import struct

import pytest

from zkmail.adapters.zkey_layout import (check_zkey_layout,
                                         require_zkey_layout)
from zkmail.errors import ArtifactLayoutError


def _section(kind: int, payload: bytes) -> bytes:
    return struct.pack("<IQ", kind, len(payload)) + payload


def _zkey(sections=None, *, magic=b"zkey", version=1, n_sections=None, tail=b"") -> bytes:
    if sections is None:
        sections = [(k, bytes([k]) * (k * 3)) for k in range(1, 11)]
    n = len(sections) if n_sections is None else n_sections
    body = b"".join(_section(k, p) for k, p in sections)
    return magic + struct.pack("<II", version, n) + body + tail


@pytest.fixture
def write(tmp_path):
    def _write(data: bytes):
        p = tmp_path / "circuit.zkey"
        p.write_bytes(data)
        return p
    return _write


def test_well_formed(write):
    res = check_zkey_layout(write(_zkey()))
    assert res.ok and res.reason is None
    assert bool(res)


def test_sections_in_any_order(write):
    sections = [(k, b"\x00" * 4) for k in (10, 3, 1, 2, 9, 4, 5, 8, 6, 7)]
    assert check_zkey_layout(write(_zkey(sections))).ok


@pytest.mark.parametrize(
    "data,reason",
    [
        (b"zkey\x01\x00", "file too small"),
        (_zkey(magic=b"zkex"), "bad magic"),
        (_zkey(version=2), "unsupported version (2)"),
        (_zkey(n_sections=9), "unexpected nSections (9)"),
        (_zkey(tail=b"\x00"), "trailing bytes after last section"),
    ],
)
def test_header_and_trailer_failures(write, data, reason):
    res = check_zkey_layout(write(data))
    assert not res.ok
    assert res.reason.startswith(reason)


def test_duplicate_section(write):
    sections = [(k, b"") for k in (1, 2, 3, 4, 5, 6, 7, 8, 9, 9)]
    assert check_zkey_layout(write(_zkey(sections))).reason == "duplicate section 9"


def test_missing_section(write):
    sections = [(k, b"") for k in (1, 2, 3, 4, 5, 6, 7, 8, 9, 11)]
    assert check_zkey_layout(write(_zkey(sections))).reason == "missing section 10"


def test_section_overrunning_file(write):
    data = _zkey()
    # claim a larger size for the last section
    last = data.rfind(struct.pack("<I", 10) + struct.pack("<Q", 30))
    data = data[:last] + struct.pack("<IQ", 10, 10_000) + data[last + 12 :]
    res = check_zkey_layout(write(data))
    assert res.reason.startswith("section 10 exceeds file size")


def test_truncated_section_headers(write):
    sections = [(k, b"") for k in range(1, 10)]
    res = check_zkey_layout(write(_zkey(sections, n_sections=10)))
    assert res.reason.startswith("unexpected EOF reading section header #10")


def test_unreadable_path(tmp_path):
    res = check_zkey_layout(tmp_path / "missing.zkey")
    assert not res.ok
    assert res.reason.startswith("failed to read zkey")


def test_require_raises(write):
    require_zkey_layout(write(_zkey()))
    with pytest.raises(ArtifactLayoutError) as ei:
        require_zkey_layout(write(_zkey(version=3)))
    assert ei.value.reason == "unsupported version (3)"
