"""Shannon entropy and the entropy gate applied to secret candidates."""

from __future__ import annotations

import math
from collections import Counter
from typing import Iterator, Optional, Tuple

from vulnaudit.rules.models import SecretPattern


def shannon_entropy(value: str) -> float:
    """Bits per character of *value*: ``-sum(p * log2(p))`` over its symbols."""
    if not value:
        return 0.0
    n = len(value)
    return -sum((k / n) * math.log2(k / n) for k in Counter(value).values())


def gated_candidates(pattern: SecretPattern, line: str) -> Iterator[Tuple[str, float]]:
    """Yield ``(value, entropy)`` for each match of *pattern* in *line* whose
    extracted value reaches ``pattern.entropy_threshold``."""
    for match in pattern.compiled.finditer(line):
        value = pattern.extract(match)
        entropy = shannon_entropy(value)
        if entropy >= pattern.entropy_threshold:
            yield value, entropy


def first_gated(pattern: SecretPattern, line: str) -> Optional[Tuple[str, float]]:
    """First candidate on *line* passing the gate, or None."""
    return next(gated_candidates(pattern, line), None)
