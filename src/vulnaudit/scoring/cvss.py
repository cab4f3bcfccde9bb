"""CVSS 3.1 base-score calculator.

Score = f(AV, AC, PR, UI, S, C, I, A), deterministic and side-effect free:

    Exploitability = 8.22 × AV × AC × PR × UI
    ISC_base       = 1 − (1 − C)(1 − I)(1 − A)

    scope unchanged: Impact = 6.42 × ISC_base
                     Score  = min(Impact + Exploitability, 10)
    scope changed:   Impact = 7.52 × (ISC_base − 0.029) − 3.25 × (ISC_base − 0.02)^15
                     Score  = min(1.08 × (Impact + Exploitability), 10)

Impact ≤ 0 gives a score of 0. The final score is rounded *up* to one
decimal with a plain ceiling, which is not the float-safe ``Roundup`` of the
CVSS 3.1 document (see tests/test_cvss.py).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Literal

AttackVector = Literal["network", "adjacent", "local", "physical"]
AttackComplexity = Literal["low", "high"]
PrivilegesRequired = Literal["none", "low", "high"]
UserInteraction = Literal["none", "required"]
Scope = Literal["unchanged", "changed"]
Impact = Literal["none", "low", "high"]

CVSS_VERSION = "3.1"

_AV_WEIGHT: Dict[str, float] = {
    "network": 0.85,
    "adjacent": 0.62,
    "local": 0.55,
    "physical": 0.20,
}
_AC_WEIGHT: Dict[str, float] = {"low": 0.77, "high": 0.44}
_PR_WEIGHT: Dict[str, Dict[str, float]] = {
    "unchanged": {"none": 0.85, "low": 0.62, "high": 0.27},
    "changed": {"none": 0.85, "low": 0.68, "high": 0.50},
}
_UI_WEIGHT: Dict[str, float] = {"none": 0.85, "required": 0.62}
_CIA_WEIGHT: Dict[str, float] = {"none": 0.0, "low": 0.22, "high": 0.56}

# metric value -> single-letter vector token, per field
_TOKENS: Dict[str, Dict[str, str]] = {
    "AV": {"network": "N", "adjacent": "A", "local": "L", "physical": "P"},
    "AC": {"low": "L", "high": "H"},
    "PR": {"none": "N", "low": "L", "high": "H"},
    "UI": {"none": "N", "required": "R"},
    "S": {"unchanged": "U", "changed": "C"},
    "C": {"none": "N", "low": "L", "high": "H"},
    "I": {"none": "N", "low": "L", "high": "H"},
    "A": {"none": "N", "low": "L", "high": "H"},
}

# vector field -> CVSSMetrics attribute, in canonical order
_FIELDS: Dict[str, str] = {
    "AV": "attack_vector",
    "AC": "attack_complexity",
    "PR": "privileges_required",
    "UI": "user_interaction",
    "S": "scope",
    "C": "confidentiality_impact",
    "I": "integrity_impact",
    "A": "availability_impact",
}


class CVSSError(ValueError):
    """Raised for unknown metric values or malformed vector strings."""


@dataclass(frozen=True)
class CVSSMetrics:
    """The eight CVSS 3.1 base metrics."""

    attack_vector: AttackVector = "network"
    attack_complexity: AttackComplexity = "low"
    privileges_required: PrivilegesRequired = "none"
    user_interaction: UserInteraction = "none"
    scope: Scope = "unchanged"
    confidentiality_impact: Impact = "none"
    integrity_impact: Impact = "none"
    availability_impact: Impact = "none"

    def __post_init__(self) -> None:
        for field_code, attr in _FIELDS.items():
            value = getattr(self, attr)
            if value not in _TOKENS[field_code]:
                raise CVSSError(f"Invalid {attr}: {value!r}")

    @property
    def vector(self) -> str:
        parts = [
            f"{code}:{_TOKENS[code][getattr(self, attr)]}"
            for code, attr in _FIELDS.items()
        ]
        return f"CVSS:{CVSS_VERSION}/" + "/".join(parts)


@dataclass(frozen=True)
class CVSSScore:
    """Result of :func:`calculate_score`."""

    score: float
    vector: str
    severity: str
    metrics: CVSSMetrics

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "vector": self.vector,
            "severity": self.severity,
        }


def severity_from_score(score: float) -> str:
    """Map a 0–10 score onto the fixed severity breakpoints."""
    if score >= 9.0:
        return "critical"
    if score >= 7.0:
        return "high"
    if score >= 4.0:
        return "medium"
    if score >= 0.1:
        return "low"
    return "informational"


def _round_up(value: float) -> float:
    return math.ceil(value * 10) / 10


def _clamp(value: float, lo: float = 0.0, hi: float = 10.0) -> float:
    if math.isnan(value):
        return lo
    return max(lo, min(hi, value))


def calculate_score(metrics: CVSSMetrics) -> CVSSScore:
    """Compute the CVSS 3.1 base score for *metrics*."""
    scope = metrics.scope
    exploitability = (
        8.22
        * _AV_WEIGHT[metrics.attack_vector]
        * _AC_WEIGHT[metrics.attack_complexity]
        * _PR_WEIGHT[scope][metrics.privileges_required]
        * _UI_WEIGHT[metrics.user_interaction]
    )
    isc_base = 1 - (
        (1 - _CIA_WEIGHT[metrics.confidentiality_impact])
        * (1 - _CIA_WEIGHT[metrics.integrity_impact])
        * (1 - _CIA_WEIGHT[metrics.availability_impact])
    )

    if scope == "unchanged":
        impact = 6.42 * isc_base
    else:
        impact = 7.52 * (isc_base - 0.029) - 3.25 * (isc_base - 0.02) ** 15

    if impact <= 0:
        raw = 0.0
    elif scope == "unchanged":
        raw = min(impact + exploitability, 10.0)
    else:
        raw = min(1.08 * (impact + exploitability), 10.0)

    score = _clamp(_round_up(raw))
    return CVSSScore(
        score=score,
        vector=metrics.vector,
        severity=severity_from_score(score),
        metrics=metrics,
    )


def parse_vector(vector: str) -> CVSSMetrics:
    """Parse ``CVSS:3.1/AV:N/AC:L/...`` (prefix optional) into metrics.

    All eight base metrics are required; unknown fields or values raise
    :class:`CVSSError`.
    """
    text = vector.strip()
    if text.upper().startswith("CVSS:"):
        prefix, _, text = text.partition("/")
        if prefix.upper() not in ("CVSS:3.1", "CVSS:3.0"):
            raise CVSSError(f"Unsupported CVSS version: {prefix}")

    reverse = {
        code: {token: value for value, token in tokens.items()}
        for code, tokens in _TOKENS.items()
    }
    values: Dict[str, str] = {}
    for part in text.split("/"):
        code, sep, token = part.partition(":")
        code = code.strip().upper()
        if not sep or code not in _FIELDS:
            raise CVSSError(f"Malformed vector component: {part!r}")
        if _FIELDS[code] in values:
            raise CVSSError(f"Duplicate vector component: {code}")
        value = reverse[code].get(token.strip().upper())
        if value is None:
            raise CVSSError(f"Invalid value for {code}: {token!r}")
        values[_FIELDS[code]] = value

    missing = [code for code, attr in _FIELDS.items() if attr not in values]
    if missing:
        raise CVSSError(f"Vector is missing components: {', '.join(missing)}")
    return CVSSMetrics(**values)  # type: ignore[arg-type]


def score_vector(vector: str) -> CVSSScore:
    """Shortcut: ``calculate_score(parse_vector(vector))``."""
    return calculate_score(parse_vector(vector))
