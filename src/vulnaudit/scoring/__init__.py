"""CVSS 3.1 scoring."""

from vulnaudit.scoring.cvss import (
    CVSSError,
    CVSSMetrics,
    CVSSScore,
    calculate_score,
    parse_vector,
    score_vector,
    severity_from_score,
)

__all__ = [
    "CVSSError",
    "CVSSMetrics",
    "CVSSScore",
    "calculate_score",
    "parse_vector",
    "score_vector",
    "severity_from_score",
]
