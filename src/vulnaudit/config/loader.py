"""Load, merge and validate configuration from .vulnaudit.toml and env vars."""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from vulnaudit.config.schema import (
    SCAN_TYPES,
    THRESHOLD_LEVELS,
    AuditConfig,
    IAMConfig,
    OutputConfig,
    RulesConfig,
    ScanConfig,
    SecretsConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".vulnaudit.toml"


class ConfigError(Exception):
    """Raised when config is malformed, unreadable or invalid."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _split_list(value: str, sep: str = ",") -> list[str]:
    return [v.strip() for v in value.split(sep) if v.strip()]


def _merge_env_overrides(cfg: AuditConfig) -> None:
    """Apply VULNAUDIT_* environment variable overrides."""
    if val := os.environ.get("VULNAUDIT_SEVERITY_THRESHOLD"):
        cfg.scan.severity_threshold = val.strip().lower()  # type: ignore[assignment]
    if val := os.environ.get("VULNAUDIT_SCAN_TYPES"):
        cfg.scan.scan_types = [v.lower() for v in _split_list(val)]
    if val := os.environ.get("VULNAUDIT_EXCLUDE"):
        cfg.scan.exclusions.extend(_split_list(val))
    if val := os.environ.get("VULNAUDIT_MAX_FINDINGS"):
        try:
            cfg.scan.max_findings = int(val)
        except ValueError as exc:
            raise ConfigError(f"VULNAUDIT_MAX_FINDINGS must be an integer: {val!r}") from exc
    if val := os.environ.get("VULNAUDIT_TIMEOUT"):
        try:
            cfg.scan.timeout = float(val)
        except ValueError as exc:
            raise ConfigError(f"VULNAUDIT_TIMEOUT must be a number: {val!r}") from exc
    if val := os.environ.get("VULNAUDIT_FORMAT"):
        if val in ("terminal", "json"):
            cfg.output.format = val  # type: ignore[assignment]


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    unknown = set(raw) - valid_fields
    if unknown:
        logger.debug("Ignoring unknown keys in [%s]: %s", section, sorted(unknown))
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    try:
        return cls(**filtered)
    except TypeError as exc:
        raise ConfigError(f"Invalid [{section}] section: {exc}") from exc


def validate_config(cfg: AuditConfig) -> AuditConfig:
    """Check every option the engine depends on. Raises ConfigError."""
    scan = cfg.scan
    if scan.severity_threshold not in THRESHOLD_LEVELS:
        raise ConfigError(
            f"Invalid severity_threshold {scan.severity_threshold!r}; "
            f"expected one of {', '.join(THRESHOLD_LEVELS)}"
        )
    if scan.fail_on not in THRESHOLD_LEVELS:
        raise ConfigError(f"Invalid fail_on {scan.fail_on!r}")
    if not scan.scan_types:
        raise ConfigError("scan_types must not be empty")
    bad_types = [t for t in scan.scan_types if t not in SCAN_TYPES]
    if bad_types:
        raise ConfigError(
            f"Unknown scan type(s): {', '.join(bad_types)}; "
            f"expected a subset of {', '.join(SCAN_TYPES)}"
        )
    if scan.max_findings is not None and scan.max_findings < 1:
        raise ConfigError("max_findings must be a positive integer")
    if scan.timeout is not None and scan.timeout <= 0:
        raise ConfigError("timeout must be positive")
    if scan.workers < 1:
        raise ConfigError("workers must be at least 1")
    if scan.max_line_length < 1:
        raise ConfigError("max_line_length must be at least 1")
    if cfg.iam.stale_after_days < 1:
        raise ConfigError("stale_after_days must be at least 1")
    if cfg.output.format not in ("terminal", "json"):
        raise ConfigError(f"Invalid output format {cfg.output.format!r}")
    return cfg


def load_config(
    root: Path,
    config_override: Optional[str] = None,
) -> AuditConfig:
    """Load, validate, and return an AuditConfig."""
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = AuditConfig()
    else:
        logger.debug("Loading config from %s", config_path)
        raw = _parse_toml(config_path)
        cfg = AuditConfig(
            version=str(raw.get("version", "1.0")),
            scan=_build_section(raw, ScanConfig, "scan"),
            rules=_build_section(raw, RulesConfig, "rules"),
            secrets=_build_section(raw, SecretsConfig, "secrets"),
            iam=_build_section(raw, IAMConfig, "iam"),
            output=_build_section(raw, OutputConfig, "output"),
        )

    _merge_env_overrides(cfg)
    return validate_config(cfg)
