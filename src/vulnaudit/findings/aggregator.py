"""Finding aggregation — severity gate, ordering, risk score, recommendations."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from vulnaudit.config.schema import SEVERITY_ORDER, severity_at_or_above
from vulnaudit.findings.models import Finding, ScanWarning, utcnow

if TYPE_CHECKING:
    from vulnaudit.scanner.suppression import Suppression

SEVERITY_WEIGHTS: Dict[str, int] = {
    "critical": 10,
    "high": 7,
    "medium": 4,
    "low": 1,
    "informational": 0,
}

SEVERITY_LEVELS: Tuple[str, ...] = ("critical", "high", "medium", "low", "informational")

_PRIORITY_ORDER = {"immediate": 0, "short_term": 1, "long_term": 2}


@dataclass(frozen=True)
class Recommendation:
    priority: str  # immediate | short_term | long_term
    title: str
    description: str
    finding_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priority": self.priority,
            "title": self.title,
            "description": self.description,
            "finding_ids": list(self.finding_ids),
        }


@dataclass(frozen=True)
class AuditReport:
    """Complete, immutable result of one scan run."""

    id: str
    scope: str
    executive_summary: str
    findings: Tuple[Finding, ...]
    risk_score: float
    recommendations: Tuple[Recommendation, ...]
    generated_at: datetime
    severity_counts: Dict[str, int] = field(default_factory=dict)
    raw_finding_count: int = 0
    warnings: Tuple[ScanWarning, ...] = ()
    skipped_files: Tuple[str, ...] = ()
    suppressed: Tuple[Suppression, ...] = ()
    scanned_files: int = 0
    scanned_policies: int = 0
    incomplete: bool = False
    truncated: bool = False
    duration_ms: float = 0.0

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    def findings_at_or_above(self, severity: str) -> List[Finding]:
        return [f for f in self.findings if severity_at_or_above(f.severity, severity)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scope": self.scope,
            "generated_at": self.generated_at.isoformat(),
            "executive_summary": self.executive_summary,
            "risk_score": self.risk_score,
            "severity_counts": dict(self.severity_counts),
            "total_findings": self.total_findings,
            "raw_finding_count": self.raw_finding_count,
            "incomplete": self.incomplete,
            "truncated": self.truncated,
            "scanned_files": self.scanned_files,
            "scanned_policies": self.scanned_policies,
            "duration_ms": self.duration_ms,
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "warnings": [w.to_dict() for w in self.warnings],
            "skipped_files": list(self.skipped_files),
            "suppressed": [s.to_dict() for s in self.suppressed],
        }


# ---- pure building blocks ----


def filter_by_severity(findings: Iterable[Finding], threshold: str) -> List[Finding]:
    """Keep findings at or above *threshold*."""
    return [f for f in findings if severity_at_or_above(f.severity, threshold)]


def sort_key(finding: Finding) -> Tuple[int, str, int, str, str]:
    return (
        -SEVERITY_ORDER.get(finding.severity, 0),
        finding.location.file,
        finding.location.line,
        finding.rule_id,
        finding.id,
    )


def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Severity (critical first), then file, then line; rule and id break ties."""
    return sorted(findings, key=sort_key)


def severity_counts(findings: Iterable[Finding]) -> Dict[str, int]:
    counts = {level: 0 for level in SEVERITY_LEVELS}
    for f in findings:
        counts[f.severity] = counts.get(f.severity, 0) + 1
    return counts


def compute_risk_score(findings: Sequence[Finding]) -> float:
    """Mean severity weight on a 0–10 scale, one decimal, half rounded up.

    ``round_half_up(Σ weight / (N × 10) × 100) / 10``; 0 for no findings.
    """
    n = len(findings)
    if n == 0:
        return 0.0
    total = sum(SEVERITY_WEIGHTS.get(f.severity, 0) for f in findings)
    # total / (n * 10) * 100 == total * 10 / n; integer half-up avoids float drift
    percent = (total * 20 + n) // (2 * n)
    return percent / 10


def build_recommendations(findings: Sequence[Finding]) -> List[Recommendation]:
    recs: List[Recommendation] = []

    critical = [f for f in findings if f.severity == "critical"]
    if critical:
        recs.append(
            Recommendation(
                priority="immediate",
                title=f"Remediate {len(critical)} critical finding(s)",
                description=(
                    "Critical vulnerabilities are remotely exploitable or expose "
                    "credentials; fix or mitigate them before the next release."
                ),
                finding_ids=tuple(f.id for f in critical),
            )
        )

    secrets = [f for f in findings if f.category == "secret_exposure"]
    if secrets:
        recs.append(
            Recommendation(
                priority="immediate",
                title="Implement secrets management",
                description=(
                    f"{len(secrets)} secret(s) found in source. Rotate them, purge them "
                    "from history, and load credentials from a secrets manager or "
                    "environment at runtime."
                ),
                finding_ids=tuple(f.id for f in secrets),
            )
        )

    high = [f for f in findings if f.severity == "high"]
    if high:
        recs.append(
            Recommendation(
                priority="short_term",
                title=f"Address {len(high)} high-severity finding(s)",
                description="Schedule fixes for high-severity findings within the current cycle.",
                finding_ids=tuple(f.id for f in high),
            )
        )

    recs.append(
        Recommendation(
            priority="long_term",
            title="Add continuous security scanning to CI/CD",
            description=(
                "Run this audit on every pull request and block merges on new "
                "critical or high findings."
            ),
        )
    )
    # stable: keeps insertion order within a priority
    return sorted(recs, key=lambda r: _PRIORITY_ORDER[r.priority])


def build_executive_summary(
    scope: str,
    counts: Dict[str, int],
    risk_score: float,
    *,
    incomplete: bool = False,
    truncated: bool = False,
) -> str:
    total = sum(counts.values())
    breakdown = ", ".join(f"{counts.get(level, 0)} {level}" for level in SEVERITY_LEVELS)
    parts = [
        f"Security audit of {scope} identified {total} finding(s): {breakdown}.",
        f"Overall risk score: {risk_score:.1f}/10.",
    ]
    critical = counts.get("critical", 0)
    if critical:
        parts.append(f"{critical} critical vulnerabilit{'y requires' if critical == 1 else 'ies require'} immediate attention.")
    else:
        parts.append("No critical vulnerabilities were identified.")
    if incomplete:
        parts.append("The scan timed out; results are incomplete.")
    if truncated:
        parts.append("The finding limit was reached; some files were not scanned.")
    return " ".join(parts)


class Aggregator:
    """Merges finding streams into an :class:`AuditReport`."""

    def __init__(self, severity_threshold: str = "low", *, clock: Callable = utcnow) -> None:
        if severity_threshold not in SEVERITY_ORDER:
            raise ValueError(f"Unknown severity threshold: {severity_threshold!r}")
        self.severity_threshold = severity_threshold
        self._clock = clock

    def aggregate(
        self,
        streams: Iterable[Iterable[Finding]],
        *,
        scope: str = "codebase",
        warnings: Iterable[ScanWarning] = (),
        skipped_files: Iterable[str] = (),
        suppressed: Iterable[Suppression] = (),
        scanned_files: int = 0,
        scanned_policies: int = 0,
        incomplete: bool = False,
        truncated: bool = False,
        duration_ms: float = 0.0,
        report_id: Optional[str] = None,
    ) -> AuditReport:
        merged: List[Finding] = [f for stream in streams for f in stream]
        kept = sort_findings(filter_by_severity(merged, self.severity_threshold))
        counts = severity_counts(kept)
        risk = compute_risk_score(kept)

        return AuditReport(
            id=report_id or f"AUDIT-{uuid.uuid4().hex[:12]}",
            scope=scope,
            executive_summary=build_executive_summary(
                scope, counts, risk, incomplete=incomplete, truncated=truncated
            ),
            findings=tuple(kept),
            risk_score=risk,
            recommendations=tuple(build_recommendations(kept)),
            generated_at=self._clock(),
            severity_counts=counts,
            raw_finding_count=len(merged),
            warnings=tuple(warnings),
            skipped_files=tuple(sorted(skipped_files)),
            suppressed=tuple(sorted(suppressed, key=lambda s: (s.file, s.line_no, s.rule_id))),
            scanned_files=scanned_files,
            scanned_policies=scanned_policies,
            incomplete=incomplete,
            truncated=truncated,
            duration_ms=duration_ms,
        )
