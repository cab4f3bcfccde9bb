"""JSON reporter for CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict

from vulnaudit import __version__
from vulnaudit.findings.aggregator import AuditReport

SCHEMA_VERSION = "1.0"


def is_blocking(report: AuditReport, fail_on: str) -> bool:
    return bool(report.findings_at_or_above(fail_on))


def to_dict(report: AuditReport, *, fail_on: str = "high") -> Dict[str, Any]:
    """Convert an AuditReport to a JSON-serialisable dict.

    Finding evidence is already redacted by the detectors; nothing here
    re-reads source content.
    """
    return {
        "version": SCHEMA_VERSION,
        "tool": {"name": "vulnaudit", "version": __version__},
        "fail_on": fail_on,
        "blocked": is_blocking(report, fail_on),
        **report.to_dict(),
    }


def render(report: AuditReport, *, fail_on: str = "high") -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(report, fail_on=fail_on), indent=2)
