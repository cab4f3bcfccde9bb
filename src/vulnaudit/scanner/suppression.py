"""Inline suppression and comment detection.

Suppression conventions (matches ESLint/pylint/bandit):
  - ``# vulnaudit-ignore`` on line N suppresses ALL rules on line N.
  - ``# vulnaudit-ignore`` as a standalone comment on line N suppresses line N+1.
  - ``# vulnaudit-ignore[RULE_A,RULE_B]`` suppresses only those rules.
  - ``# nosec`` is shorthand for ``# vulnaudit-ignore``.
  - ``//`` works in place of ``#``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

_SUPPRESS_RE = re.compile(
    r"(?:#|//)\s*(?:vulnaudit-ignore|nosec)"
    r"(?:\[([A-Za-z0-9_,\s]+)\])?"  # optional [RULE_A, RULE_B]
    r"\s*(?:\*/)?\s*$"
)

_COMMENT_PREFIXES = ("//", "#", "*", "/*")


@dataclass(frozen=True)
class Suppression:
    """Audit record of a suppressed finding."""

    rule_id: str
    file: str
    line_no: int
    reason: str  # 'inline' | 'next-line'
    source: str  # e.g. '# vulnaudit-ignore[SQL_INJECTION_CONCAT]'

    def to_dict(self) -> Dict[str, object]:
        return {
            "rule": self.rule_id,
            "file": self.file,
            "line": self.line_no,
            "reason": self.reason,
            "source": self.source,
        }


def parse_inline_suppression(line_content: str) -> Tuple[bool, Optional[FrozenSet[str]]]:
    """Parse a line for ``vulnaudit-ignore`` / ``nosec`` comments.

    Returns:
        (is_suppressed, rule_ids) — *rule_ids* is None to suppress ALL rules,
        or a frozenset of specific IDs.
    """
    m = _SUPPRESS_RE.search(line_content)
    if m is None:
        return False, None
    scope = m.group(1)
    if scope:
        ids = frozenset(r.strip() for r in scope.split(",") if r.strip())
        return True, ids
    return True, None


def is_comment_line(line_content: str) -> bool:
    """Return True if the line is a standalone comment (Python/shell/C-family style)."""
    return line_content.lstrip().startswith(_COMMENT_PREFIXES)


class SuppressionChecker:
    """Check whether a finding should be suppressed based on inline comments."""

    def __init__(self) -> None:
        # file -> line_no -> (reason, specific_rules or None)
        self._line_suppressions: Dict[str, Dict[int, Tuple[str, Optional[FrozenSet[str]]]]] = {}

    def register_lines(self, file: str, lines: Iterable[Tuple[int, str]]) -> None:
        """Pre-scan lines for suppression markers.

        *lines* is an iterable of (line_no, content) tuples **in order**.
        """
        mapping: Dict[int, Tuple[str, Optional[FrozenSet[str]]]] = {}
        carry: Optional[Optional[FrozenSet[str]]] = None
        carrying = False

        for line_no, content in lines:
            is_suppressed, rule_ids = parse_inline_suppression(content)

            if is_suppressed:
                mapping[line_no] = ("inline", rule_ids)
                # A standalone comment also covers the next line
                carrying = is_comment_line(content)
                carry = rule_ids
                continue

            if carrying:
                mapping[line_no] = ("next-line", carry)
            carrying = False
            carry = None

        if mapping:
            self._line_suppressions[file] = mapping

    def is_suppressed(self, file: str, line_no: int, rule_id: str) -> Optional[Suppression]:
        """Return a Suppression record if the finding should be suppressed, else None."""
        entry = self._line_suppressions.get(file, {}).get(line_no)
        if entry is None:
            return None
        reason, specific_ids = entry
        if specific_ids is None:
            return Suppression(rule_id, file, line_no, reason, "# vulnaudit-ignore")
        if rule_id in specific_ids:
            return Suppression(
                rule_id, file, line_no, reason, f"# vulnaudit-ignore[{rule_id}]"
            )
        return None
