"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

Severity = Literal["informational", "low", "medium", "high", "critical"]
ScanType = Literal["owasp", "secrets", "iam", "all"]

SEVERITY_ORDER: dict[str, int] = {
    "informational": 0,
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}

# Thresholds a caller may configure; "informational" is not a valid floor.
THRESHOLD_LEVELS = ("low", "medium", "high", "critical")
SCAN_TYPES = ("owasp", "secrets", "iam", "all")


def severity_at_or_above(finding_sev: str, threshold: str) -> bool:
    """Return True if *finding_sev* is at or above *threshold*."""
    return SEVERITY_ORDER.get(finding_sev, 0) >= SEVERITY_ORDER.get(threshold, 0)


@dataclass
class ScanConfig:
    scan_types: List[str] = field(default_factory=lambda: ["all"])
    severity_threshold: Severity = "low"  # keep findings at or above this level
    fail_on: Severity = "high"  # CLI exits 1 on findings at or above this level
    exclusions: List[str] = field(default_factory=list)
    max_findings: Optional[int] = None  # cap on file findings per scan
    timeout: Optional[float] = 300.0  # seconds; None disables
    workers: int = 4
    max_line_length: int = 4096

    def enabled(self, scan_type: str) -> bool:
        return "all" in self.scan_types or scan_type in self.scan_types


@dataclass
class RulesConfig:
    enable: List[str] = field(default_factory=list)  # empty = all enabled
    disable: List[str] = field(default_factory=list)
    custom_dir: str = ".vulnaudit-rules"


@dataclass
class SecretsConfig:
    skip_markers: List[str] = field(
        default_factory=lambda: ["example", "placeholder", "dummy"]
    )
    skip_path_markers: List[str] = field(
        default_factory=lambda: ["test", "spec", "mock", "fixture"]
    )


@dataclass
class IAMConfig:
    stale_after_days: int = 90
    extra_dangerous_actions: List[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    format: Literal["terminal", "json"] = "terminal"
    show_summary: bool = True


@dataclass
class AuditConfig:
    version: str = "1.0"
    scan: ScanConfig = field(default_factory=ScanConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)
    iam: IAMConfig = field(default_factory=IAMConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
