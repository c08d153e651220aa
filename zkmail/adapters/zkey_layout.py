"""
Structural check of a snarkjs Groth16 proving key (`.zkey`).

The file is a binary container:

    "zkey" | version: u32 LE (= 1) | nSections: u32 LE (= 10)
    nSections x { type: u32 LE | size: u64 LE | payload[size] }

A key that passes has ten sections with distinct types 1..10, none running
past the end of the file and nothing after the last one. This catches
truncated downloads and concatenated artifacts before a prover spends
minutes failing on them; it says nothing about the key's cryptographic
content.
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from ..errors import ArtifactLayoutError

log = logging.getLogger(__name__)

MAGIC = b"zkey"
VERSION = 1
N_SECTIONS = 10
REQUIRED_SECTIONS = tuple(range(1, N_SECTIONS + 1))
FILE_HEADER = struct.Struct("<4sII")
SECTION_HEADER = struct.Struct("<IQ")


@dataclass(frozen=True)
class ZkeyCheckResult:
    ok: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


def _fail(reason: str) -> ZkeyCheckResult:
    log.info("zkey layout check failed: %s", reason)
    return ZkeyCheckResult(ok=False, reason=reason)


def check_zkey_stream(f: BinaryIO, size: int) -> ZkeyCheckResult:
    """Check an open binary stream of `size` bytes."""
    if size < FILE_HEADER.size:
        return _fail(f"file too small ({size} bytes)")

    f.seek(0)
    magic, version, n_sections = FILE_HEADER.unpack(f.read(FILE_HEADER.size))
    if magic != MAGIC:
        return _fail(f"bad magic ({magic!r})")
    if version != VERSION:
        return _fail(f"unsupported version ({version})")
    if n_sections != N_SECTIONS:
        return _fail(f"unexpected nSections ({n_sections})")

    seen = set()
    pos = FILE_HEADER.size
    for i in range(n_sections):
        if pos + SECTION_HEADER.size > size:
            return _fail(f"unexpected EOF reading section header #{i + 1} at offset {pos}")
        f.seek(pos)
        section_type, section_size = SECTION_HEADER.unpack(f.read(SECTION_HEADER.size))
        if section_type in seen:
            return _fail(f"duplicate section {section_type}")
        seen.add(section_type)
        pos += SECTION_HEADER.size + section_size
        if pos > size:
            return _fail(f"section {section_type} exceeds file size (ends at {pos}, file is {size})")

    if pos != size:
        return _fail(f"trailing bytes after last section (last ends at {pos}, file is {size})")

    for section in REQUIRED_SECTIONS:
        if section not in seen:
            return _fail(f"missing section {section}")
    return ZkeyCheckResult(ok=True)


def check_zkey_layout(path: Union[str, os.PathLike]) -> ZkeyCheckResult:
    """
    Check the container layout of the `.zkey` at `path`. I/O problems are
    reported as a failed result, never raised.
    """
    try:
        with open(path, "rb") as f:
            return check_zkey_stream(f, os.fstat(f.fileno()).st_size)
    except OSError as e:
        return _fail(f"failed to read zkey: {e}")


def require_zkey_layout(path: Union[str, os.PathLike]) -> None:
    """Raise `ArtifactLayoutError` if `check_zkey_layout(path)` fails."""
    res = check_zkey_layout(path)
    if not res.ok:
        raise ArtifactLayoutError(res.reason or "invalid zkey", data={"path": str(path)})


__all__ = [
    "MAGIC",
    "VERSION",
    "N_SECTIONS",
    "REQUIRED_SECTIONS",
    "ZkeyCheckResult",
    "check_zkey_stream",
    "check_zkey_layout",
    "require_zkey_layout",
]
