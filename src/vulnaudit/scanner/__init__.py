"""Scanner — detectors, source model, suppression, and the audit engine."""

from vulnaudit.scanner.base import Detector
from vulnaudit.scanner.engine import AuditEngine, ScanError, default_detectors
from vulnaudit.scanner.entropy import shannon_entropy
from vulnaudit.scanner.patterns import PatternScanner
from vulnaudit.scanner.secrets import SecretsDetector
from vulnaudit.scanner.source import SourceError, SourceFile, TextSourceModel
from vulnaudit.scanner.suppression import Suppression, SuppressionChecker

__all__ = [
    "AuditEngine",
    "Detector",
    "PatternScanner",
    "ScanError",
    "SecretsDetector",
    "SourceError",
    "SourceFile",
    "Suppression",
    "SuppressionChecker",
    "TextSourceModel",
    "default_detectors",
    "shannon_entropy",
]
