"""Pattern vulnerability scanner — catalog rules applied to source lines."""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

from vulnaudit.findings.models import Finding, Location, make_finding_id, utcnow
from vulnaudit.rules.models import Rule
from vulnaudit.rules.registry import RuleCatalog
from vulnaudit.scanner.source import SourceFile
from vulnaudit.scoring.cvss import CVSSScore, calculate_score

logger = logging.getLogger(__name__)

_MAX_EVIDENCE = 160
_WS_RE = re.compile(r"\s+")


def _evidence(text: str) -> str:
    snippet = _WS_RE.sub(" ", text).strip()
    if len(snippet) > _MAX_EVIDENCE:
        snippet = snippet[: _MAX_EVIDENCE - 3] + "..."
    return snippet


class PatternScanner:
    """Applies every applicable catalog rule to a :class:`SourceFile`.

    Lines longer than *max_line_length* are cut before matching so that no
    single regex evaluation runs on unbounded input. One rule yields at most
    one finding per line.
    """

    name = "owasp"
    target_types = (SourceFile,)
    budgeted = True

    def __init__(
        self,
        catalog: RuleCatalog,
        *,
        max_line_length: int = 4096,
        clock: Callable = utcnow,
    ) -> None:
        self._rules: Tuple[Rule, ...] = catalog.rules
        self._max_line_length = max_line_length
        self._clock = clock
        # Scores are pure functions of the template; compute once per engine.
        self._scores: Dict[str, CVSSScore] = {
            r.id: calculate_score(r.metrics) for r in self._rules  # type: ignore[arg-type]
        }

    def _bounded(self, lines: Sequence[str]) -> Tuple[str, ...]:
        cap = self._max_line_length
        return tuple(line if len(line) <= cap else line[:cap] for line in lines)

    @staticmethod
    def match_lines(rule: Rule, lines: Sequence[str]) -> Iterator[Tuple[int, str]]:
        """Yield ``(line_no, matched_text)`` for each line where *rule* matches.

        Windowed rules see ``rule.window`` lines joined by newlines; a match is
        reported only from the window that starts on the match's first line.
        """
        pattern = rule.compiled
        if rule.window == 1:
            for line_no, line in enumerate(lines, 1):
                m = pattern.search(line)
                if m is not None:
                    yield line_no, m.group(0)
            return

        for idx, first in enumerate(lines):
            chunk = "\n".join(lines[idx: idx + rule.window])
            m = pattern.search(chunk)
            if m is not None and m.start() <= len(first):
                yield idx + 1, m.group(0)

    def scan(self, target: SourceFile) -> List[Finding]:
        lines = self._bounded(target.lines)
        findings: List[Finding] = []
        for rule in self._rules:
            if not rule.applies_to(target.path):
                continue
            for line_no, matched in self.match_lines(rule, lines):
                findings.append(self._make_finding(rule, target.path, line_no, matched))
        if findings:
            logger.debug("%s: %d pattern finding(s)", target.path, len(findings))
        return findings

    def _make_finding(self, rule: Rule, path: str, line_no: int, matched: str) -> Finding:
        score = self._scores[rule.id]
        return Finding(
            id=make_finding_id(rule.id, path, line_no),
            rule_id=rule.id,
            title=rule.name,
            description=rule.description,
            severity=score.severity,
            category=rule.category,
            location=Location(path, line_no),
            evidence=_evidence(matched),
            remediation=rule.remediation,
            cvss=score,
            references=rule.references,
            cwe=rule.cwe or None,
            detected_at=self._clock(),
        )
