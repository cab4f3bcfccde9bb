"""Finding models, aggregation, and redaction."""

from vulnaudit.findings.aggregator import Aggregator, AuditReport, Recommendation
from vulnaudit.findings.models import Finding, InvalidTransition, Location, ScanWarning
from vulnaudit.findings.redactor import redact

__all__ = [
    "Aggregator",
    "AuditReport",
    "Finding",
    "InvalidTransition",
    "Location",
    "Recommendation",
    "ScanWarning",
    "redact",
]
