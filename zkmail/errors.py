"""
zkmail errors.

Lightweight, typed exception hierarchy with structured metadata suitable for
the proof-request pipeline, the CLI, or any service wrapping this library.

Usage:

    from zkmail.errors import AnchorViolation

    raise AnchorViolation("missing CRLF before field", data={"field": "from", "start": 57})

All errors expose:
- .code      : stable machine-readable code (snake_case)
- .data      : optional structured payload (dict-like)
- .to_dict() : JSON-friendly dict for logs and API responses

Verification entry points never raise these for malformed proofs or claims;
they report ``False`` instead. The errors below are raised by the
generation-side pipeline and by artifact/config loading.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class ZkMailError(Exception):
    """
    Base class for zkmail errors.

    Subclasses should set `default_code`.
    """
    default_code = "zkmail_error"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.data: Dict[str, Any] = dict(data) if data else {}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.message:
            return f"{self.code}: {self.message}"
        return self.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message or None,
            "data": self.data or None,
        }


class MalformedHeader(ZkMailError):
    """
    The verified header does not contain the fields a recovery request needs.
    """
    default_code = "malformed_header"


class NotFound(MalformedHeader):
    """
    A required header line (Subject / From / Date) is absent or does not match
    its expected pattern.
    """
    default_code = "not_found"


class HeaderTooLong(MalformedHeader):
    """
    The header does not fit into the fixed-capacity buffer.
    """
    default_code = "header_too_long"


class AnchorViolation(ZkMailError):
    """
    Claimed field offsets fail the anchor / prefix / structure rules, so no
    proof can be built over them.
    """
    default_code = "anchor_violation"

    def __init__(self, message: str = "", *, field: str = "", rule: str = "", **kw: Any) -> None:
        data = dict(kw.pop("data", None) or {})
        data.setdefault("field", field)
        data.setdefault("rule", rule)
        super().__init__(message, data=data, **kw)
        self.field = field
        self.rule = rule


class LengthOutOfRange(ZkMailError):
    """
    A substring or preimage length falls outside the range the packer or
    hasher supports.
    """
    default_code = "length_out_of_range"


class ClaimEncodingError(ZkMailError):
    """
    A claim string has no UTF-8 encoding (for example a lone surrogate), so
    it cannot correspond to any header bytes.
    """
    default_code = "claim_encoding"


class ArtifactLayoutError(ZkMailError):
    """
    A proving/verifying key artifact is structurally corrupt.
    """
    default_code = "artifact_layout"

    def __init__(self, reason: str, **kw: Any) -> None:
        super().__init__(reason, **kw)
        self.reason = reason


class ConfigError(ZkMailError):
    """
    Invalid configuration value (environment or config file).
    """
    default_code = "config_error"


__all__ = [
    "ZkMailError",
    "MalformedHeader",
    "NotFound",
    "HeaderTooLong",
    "AnchorViolation",
    "LengthOutOfRange",
    "ClaimEncodingError",
    "ArtifactLayoutError",
    "ConfigError",
]
