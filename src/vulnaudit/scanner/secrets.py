"""Secrets detector — pattern match gated by Shannon entropy."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Sequence, Tuple

from vulnaudit.findings.models import Finding, Location, make_finding_id, utcnow
from vulnaudit.findings.redactor import redact
from vulnaudit.rules.models import SecretPattern
from vulnaudit.scanner.entropy import first_gated
from vulnaudit.scanner.source import SourceFile
from vulnaudit.scanner.suppression import is_comment_line

logger = logging.getLogger(__name__)

DEFAULT_SKIP_MARKERS = ("example", "placeholder", "dummy")
DEFAULT_SKIP_PATH_MARKERS = ("test", "spec", "mock", "fixture")


class SecretsDetector:
    """Reports a pattern match only when the matched value's entropy reaches
    the pattern's threshold. Severities are fixed per pattern; no CVSS."""

    name = "secrets"
    target_types = (SourceFile,)
    budgeted = True

    def __init__(
        self,
        patterns: Iterable[SecretPattern],
        *,
        skip_markers: Sequence[str] = DEFAULT_SKIP_MARKERS,
        skip_path_markers: Sequence[str] = DEFAULT_SKIP_PATH_MARKERS,
        max_line_length: int = 4096,
        clock: Callable = utcnow,
    ) -> None:
        self._patterns: Tuple[SecretPattern, ...] = tuple(patterns)
        self._skip_markers = tuple(m.lower() for m in skip_markers)
        self._skip_path_markers = tuple(m.lower() for m in skip_path_markers)
        self._max_line_length = max_line_length
        self._clock = clock

    def is_fixture_path(self, path: str) -> bool:
        lowered = path.lower()
        return any(marker in lowered for marker in self._skip_path_markers)

    def should_skip_line(self, line: str) -> bool:
        if is_comment_line(line):
            return True
        lowered = line.lower()
        return any(marker in lowered for marker in self._skip_markers)

    def scan(self, target: SourceFile) -> List[Finding]:
        if self.is_fixture_path(target.path):
            logger.debug("%s: skipped by test/fixture path heuristic", target.path)
            return []

        findings: List[Finding] = []
        for line_no, line in target.numbered():
            if len(line) > self._max_line_length:
                line = line[: self._max_line_length]
            if self.should_skip_line(line):
                continue
            for pattern in self._patterns:
                hit = first_gated(pattern, line)
                if hit is None:
                    continue
                value, entropy = hit
                findings.append(
                    self._make_finding(pattern, target.path, line_no, value, entropy)
                )
        return findings

    def _make_finding(
        self,
        pattern: SecretPattern,
        path: str,
        line_no: int,
        value: str,
        entropy: float,
    ) -> Finding:
        return Finding(
            id=make_finding_id(pattern.id, path, line_no),
            rule_id=pattern.id,
            title=f"{pattern.name} exposed",
            description=f"{pattern.description} Shannon entropy {entropy:.2f} bits/char.",
            severity=pattern.severity,
            category="secret_exposure",
            location=Location(path, line_no),
            evidence=redact(value),
            remediation=pattern.remediation,
            cvss=None,
            cwe=pattern.cwe,
            entropy=entropy,
            detected_at=self._clock(),
        )
