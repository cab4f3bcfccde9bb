"""Rule data models — patterns compiled at construction time."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import Optional, Tuple

from vulnaudit.config.loader import ConfigError
from vulnaudit.rules.templates import CATEGORY_TEMPLATES, SCANNER_CATEGORIES
from vulnaudit.scoring.cvss import CVSSMetrics


def _compile(rule_id: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Rule {rule_id}: malformed pattern: {exc}") from exc


@dataclass(frozen=True)
class Rule:
    """A vulnerability detection rule.

    ``metrics`` defaults to the category template. ``window`` is the number
    of consecutive lines joined before matching; 1 means line-local.
    """

    id: str
    name: str
    description: str
    category: str
    cwe: str
    pattern: str
    remediation: str
    metrics: Optional[CVSSMetrics] = None
    references: Tuple[str, ...] = ()
    file_patterns: Optional[Tuple[str, ...]] = None
    window: int = 1

    compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.category not in SCANNER_CATEGORIES:
            raise ConfigError(f"Rule {self.id}: unknown category {self.category!r}")
        if self.window < 1:
            raise ConfigError(f"Rule {self.id}: window must be at least 1")
        if self.metrics is None:
            object.__setattr__(self, "metrics", CATEGORY_TEMPLATES[self.category])
        if self.file_patterns is not None:
            object.__setattr__(self, "file_patterns", tuple(self.file_patterns))
        object.__setattr__(self, "references", tuple(self.references))
        object.__setattr__(self, "compiled", _compile(self.id, self.pattern))

    def applies_to(self, path: str) -> bool:
        """True if this rule should run against *path*."""
        if not self.file_patterns:
            return True
        basename = PurePosixPath(path).name
        return any(fnmatch(basename, p) or fnmatch(path, p) for p in self.file_patterns)


@dataclass(frozen=True)
class SecretPattern:
    """An entropy-gated secret detection pattern.

    The entropy is measured over the named ``secret`` group when the pattern
    has one, otherwise over the whole match.
    """

    id: str
    name: str
    pattern: str
    severity: str  # critical | high | medium
    entropy_threshold: float
    description: str = ""
    remediation: str = (
        "Revoke and rotate this credential, remove it from source control "
        "history, and load it from a secrets manager at runtime."
    )
    cwe: str = "CWE-798"

    compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.severity not in ("critical", "high", "medium"):
            raise ConfigError(f"Secret pattern {self.id}: invalid severity {self.severity!r}")
        object.__setattr__(self, "compiled", _compile(self.id, self.pattern))

    def extract(self, match: re.Match[str]) -> str:
        if "secret" in match.groupdict() and match.group("secret") is not None:
            return match.group("secret")
        return match.group(0)
