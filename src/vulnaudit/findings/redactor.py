"""Secret value redaction for safe storage and output."""

from __future__ import annotations

MASK_CHAR = "*"
_REVEAL = 4


def redact(value: str) -> str:
    """Mask a matched secret.

    Values longer than 8 characters keep their first and last 4 characters
    with the middle masked (length preserved); shorter values are fully masked.

    Example: ``AKIAIOSFODNN7REAL123`` → ``AKIA************L123``
    """
    if len(value) <= 2 * _REVEAL:
        return MASK_CHAR * len(value)
    middle = len(value) - 2 * _REVEAL
    return f"{value[:_REVEAL]}{MASK_CHAR * middle}{value[-_REVEAL:]}"
