"""
zkmail configuration.

This module defines the configuration surface shared by the proof-request
pipeline and the verifier:
- Header buffer capacity (the circuit's fixed `maxHeadersLength`)
- Substring packing parameters (max length, byte order)
- Public-input layout (plaintext sender vs. hashed sender)
- Verifying-key location
- Log level for the CLI

All fields have defaults matching the deployed RecoverEmail circuit and can be
overridden via a JSON/YAML file (`load_config(path)`) and/or environment
variables. Environment variables win over file values.

Environment variables (all optional):

  ZKMAIL_CONFIG=./zkmail.yaml           # file read by get_config()
  ZKMAIL_HEADER_CAPACITY=1024
  ZKMAIL_PACK_MAX_LEN=255
  ZKMAIL_PACK_BYTEORDER=big             # big | little
  ZKMAIL_LAYOUT=plaintext               # plaintext | private
  ZKMAIL_SIGNER_KEY_LEN=17
  ZKMAIL_SIGNATURE_LEN=17
  ZKMAIL_VK_PATH=./build/verification_key.json
  ZKMAIL_LOG_LEVEL=WARNING

Config file shape (JSON or YAML):

  header:   {capacity: 1024}
  packing:  {max_len: 255, byteorder: big}
  layout:   {variant: private, signer_key_len: 17, signature_len: 17}
  verifier: {vk_path: build/verification_key.json}
  logging:  {level: INFO}
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError
from .packing.packer import num_fields

LAYOUT_VARIANTS = ("plaintext", "private")
BYTE_ORDERS = ("big", "little")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ------------------------------- helpers ------------------------------------


def _getenv(key: str, default: str | None = None) -> str | None:
    v = os.environ.get(key)
    return v if v is not None and v.strip() != "" else default


def _getenv_int(key: str, default: int) -> int:
    v = _getenv(key)
    if v is None:
        return default
    vv = v.strip().lower()
    base = 16 if vv.startswith("0x") else 10
    try:
        return int(vv, base)
    except ValueError as e:
        raise ConfigError(f"Invalid int for {key}: {v!r}") from e


# ------------------------------- config -------------------------------------


@dataclass(frozen=True)
class HeaderConfig:
    """
    Fixed capacity of the verified header buffer, in bytes.
    """
    capacity: int = 1024

    def validate(self) -> None:
        if not (64 <= self.capacity <= 1 << 16):
            raise ConfigError("header.capacity must be in 64..65536")


@dataclass(frozen=True)
class PackingConfig:
    """
    Substring packing parameters.

    - max_len: longest substring a field may carry (bytes)
    - byteorder: integer interpretation of each chunk
    """
    max_len: int = 255
    byteorder: str = "big"

    @property
    def num_fields(self) -> int:
        return num_fields(self.max_len)

    def validate(self) -> None:
        if not (1 <= self.max_len <= 255):
            raise ConfigError("packing.max_len must be in 1..255")
        if self.byteorder not in BYTE_ORDERS:
            raise ConfigError(f"packing.byteorder must be one of {BYTE_ORDERS}")


@dataclass(frozen=True)
class LayoutConfig:
    """
    Public-input layout bound into the verifying key.

    - variant: "plaintext" exposes the packed From address,
               "private" exposes sha256(from|account) byte-wise instead
    - signer_key_len / signature_len: trailing DKIM key/signature chunk counts
    """
    variant: str = "plaintext"
    signer_key_len: int = 17
    signature_len: int = 17

    def validate(self) -> None:
        if self.variant not in LAYOUT_VARIANTS:
            raise ConfigError(f"layout.variant must be one of {LAYOUT_VARIANTS}")
        if self.signer_key_len < 0 or self.signature_len < 0:
            raise ConfigError("layout chunk counts must be >= 0")


@dataclass(frozen=True)
class VerifierConfig:
    """
    Location of the snarkjs verifying key JSON used by module-level helpers.
    """
    vk_path: Optional[Path] = None

    def validate(self) -> None:
        if self.vk_path is not None and self.vk_path.suffix not in ("", ".json"):
            raise ConfigError("verifier.vk_path must point to a JSON file")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "WARNING"

    def validate(self) -> None:
        if self.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {LOG_LEVELS}")


@dataclass(frozen=True)
class ZkMailConfig:
    """
    Top-level zkmail configuration.
    """
    header: HeaderConfig = field(default_factory=HeaderConfig)
    packing: PackingConfig = field(default_factory=PackingConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.header.validate()
        self.packing.validate()
        self.layout.validate()
        self.verifier.validate()
        self.logging.validate()

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        vk = d["verifier"]["vk_path"]  # type: ignore[index]
        d["verifier"]["vk_path"] = str(vk) if vk is not None else None  # type: ignore[index]
        return d


# ------------------------------- loader -------------------------------------


def _section(cls, data: Mapping[str, Any], name: str):
    raw = data.get(name) or {}
    if not isinstance(raw, Mapping):
        raise ConfigError(f"config section '{name}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"unknown keys in '{name}': {sorted(unknown)}")
    kwargs = dict(raw)
    if cls is VerifierConfig and kwargs.get("vk_path") is not None:
        kwargs["vk_path"] = Path(kwargs["vk_path"])
    return cls(**kwargs)


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    try:
        if text.lstrip().startswith("{"):
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def _apply_env(cfg: ZkMailConfig) -> ZkMailConfig:
    header = replace(cfg.header, capacity=_getenv_int("ZKMAIL_HEADER_CAPACITY", cfg.header.capacity))
    packing = replace(
        cfg.packing,
        max_len=_getenv_int("ZKMAIL_PACK_MAX_LEN", cfg.packing.max_len),
        byteorder=(_getenv("ZKMAIL_PACK_BYTEORDER", cfg.packing.byteorder) or "big").strip().lower(),
    )
    layout = replace(
        cfg.layout,
        variant=(_getenv("ZKMAIL_LAYOUT", cfg.layout.variant) or "plaintext").strip().lower(),
        signer_key_len=_getenv_int("ZKMAIL_SIGNER_KEY_LEN", cfg.layout.signer_key_len),
        signature_len=_getenv_int("ZKMAIL_SIGNATURE_LEN", cfg.layout.signature_len),
    )
    vk_env = _getenv("ZKMAIL_VK_PATH")
    verifier = replace(cfg.verifier, vk_path=Path(vk_env)) if vk_env else cfg.verifier
    log_cfg = replace(cfg.logging, level=(_getenv("ZKMAIL_LOG_LEVEL", cfg.logging.level) or "WARNING").upper())
    return ZkMailConfig(header=header, packing=packing, layout=layout, verifier=verifier, logging=log_cfg)


def load_config(path: Optional[Path | str] = None, *, use_env: bool = True) -> ZkMailConfig:
    """
    Build a validated config from defaults, an optional JSON/YAML file and
    (unless `use_env=False`) the ZKMAIL_* environment variables.
    """
    cfg = ZkMailConfig()
    if path is not None:
        data = _read_file(Path(path))
        unknown = set(data) - {f.name for f in fields(ZkMailConfig)}
        if unknown:
            raise ConfigError(f"unknown config sections: {sorted(unknown)}")
        cfg = ZkMailConfig(
            header=_section(HeaderConfig, data, "header"),
            packing=_section(PackingConfig, data, "packing"),
            layout=_section(LayoutConfig, data, "layout"),
            verifier=_section(VerifierConfig, data, "verifier"),
            logging=_section(LoggingConfig, data, "logging"),
        )
    if use_env:
        cfg = _apply_env(cfg)
    cfg.validate()
    return cfg


@lru_cache(maxsize=1)
def get_config() -> ZkMailConfig:
    """
    Load and validate configuration from the environment (cached). Clear the
    cache in tests via `get_config.cache_clear()` to observe env changes.
    """
    return load_config(_getenv("ZKMAIL_CONFIG"))


def format_config(cfg: ZkMailConfig | None = None) -> str:
    cfg = cfg or get_config()
    lines = []
    for section, values in cfg.to_dict().items():
        for k, v in values.items():  # type: ignore[union-attr]
            lines.append(f"{section}.{k}: {v}")
    return "\n".join(lines)


__all__ = [
    "HeaderConfig",
    "PackingConfig",
    "LayoutConfig",
    "VerifierConfig",
    "LoggingConfig",
    "ZkMailConfig",
    "load_config",
    "get_config",
    "format_config",
    "LAYOUT_VARIANTS",
    "BYTE_ORDERS",
]
