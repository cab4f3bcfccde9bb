"""Configuration loading, schema, and defaults."""

from vulnaudit.config.loader import ConfigError, load_config, validate_config
from vulnaudit.config.schema import AuditConfig, Severity, severity_at_or_above

__all__ = [
    "AuditConfig",
    "ConfigError",
    "Severity",
    "load_config",
    "severity_at_or_above",
    "validate_config",
]
