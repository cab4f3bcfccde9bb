"""Detector capability shared by the pattern scanner, secrets detector and
IAM analyzer."""

from __future__ import annotations

from typing import List, Protocol, Tuple, Type, runtime_checkable

from vulnaudit.findings.models import Finding


@runtime_checkable
class Detector(Protocol):
    """``scan(target) -> findings``.

    ``name`` matches a scan type (owasp | secrets | iam); ``target_types``
    lists the target classes the detector accepts; ``budgeted`` detectors
    count against ``scan.max_findings``.
    """

    name: str
    target_types: Tuple[Type, ...]
    budgeted: bool

    def scan(self, target) -> List[Finding]: ...


def accepts(detector: Detector, target: object) -> bool:
    return isinstance(target, detector.target_types)
