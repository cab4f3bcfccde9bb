"""Finding data models."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Literal, Optional, Tuple

from vulnaudit.scoring.cvss import CVSSScore

Category = Literal[
    "injection",
    "xss",
    "broken_auth",
    "sensitive_data",
    "broken_access_control",
    "security_misconfiguration",
    "ssrf",
    "secret_exposure",
    "iam_misconfiguration",
]

CATEGORIES: Tuple[str, ...] = (
    "injection",
    "xss",
    "broken_auth",
    "sensitive_data",
    "broken_access_control",
    "security_misconfiguration",
    "ssrf",
    "secret_exposure",
    "iam_misconfiguration",
)

Status = Literal[
    "open", "confirmed", "false_positive", "mitigated", "accepted_risk"
]

_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "open": frozenset({"confirmed", "false_positive"}),
    "confirmed": frozenset({"mitigated", "accepted_risk"}),
    "false_positive": frozenset(),
    "mitigated": frozenset(),
    "accepted_risk": frozenset(),
}


class InvalidTransition(Exception):
    """Raised when a status change is not allowed by the finding lifecycle."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_finding_id(rule_id: str, file: str, line: int) -> str:
    """Stable id for a (rule, file, line) triple, e.g. ``SQL_INJECTION-3f2a9c01d4``."""
    digest = hashlib.sha1(f"{rule_id}\0{file}\0{line}".encode("utf-8")).hexdigest()
    return f"{rule_id}-{digest[:10]}"


@dataclass(frozen=True)
class Location:
    file: str
    line: int = 0


@dataclass
class Finding:
    """One detected issue.

    Every field is read-only once constructed; ``status`` changes only
    through :meth:`transition`.
    """

    id: str
    rule_id: str
    title: str
    description: str
    severity: str
    category: str
    location: Location
    evidence: str = ""
    remediation: str = ""
    cvss: Optional[CVSSScore] = None
    references: Tuple[str, ...] = ()
    cwe: Optional[str] = None
    cve: Optional[str] = None
    entropy: Optional[float] = None
    status: str = "open"
    detected_at: datetime = field(default_factory=utcnow)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__dict__:
            raise AttributeError(f"Finding.{name} is read-only")
        object.__setattr__(self, name, value)

    @property
    def file(self) -> str:
        return self.location.file

    @property
    def line(self) -> int:
        return self.location.line

    def transition(self, new_status: str) -> None:
        """Move to *new_status*, enforcing the lifecycle state machine."""
        allowed = _TRANSITIONS.get(self.status, frozenset())
        if new_status not in allowed:
            raise InvalidTransition(
                f"{self.id}: cannot move from {self.status!r} to {new_status!r}"
            )
        object.__setattr__(self, "status", new_status)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS.get(self.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rule": self.rule_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "category": self.category,
            "cvss": self.cvss.to_dict() if self.cvss else None,
            "location": {"file": self.location.file, "line": self.location.line},
            "evidence": self.evidence,
            "remediation": self.remediation,
            "references": list(self.references),
            **({"cwe": self.cwe} if self.cwe else {}),
            **({"cve": self.cve} if self.cve else {}),
            **({"entropy": round(self.entropy, 2)} if self.entropy is not None else {}),
            "status": self.status,
            "detected_at": self.detected_at.isoformat(),
        }


@dataclass(frozen=True)
class ScanWarning:
    """A skipped target or recovered failure, reported alongside findings."""

    kind: str  # 'source' | 'policy' | 'timeout' | 'truncated' | 'io'
    target: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "target": self.target, "message": self.message}
