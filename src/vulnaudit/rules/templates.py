"""Default CVSS metric templates per scanner category."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from vulnaudit.scoring.cvss import CVSSMetrics

CATEGORY_TEMPLATES: Mapping[str, CVSSMetrics] = MappingProxyType({
    # 9.1: remote, unauthenticated, read/write of backing data
    "injection": CVSSMetrics(
        attack_vector="network",
        attack_complexity="low",
        privileges_required="none",
        user_interaction="none",
        scope="unchanged",
        confidentiality_impact="high",
        integrity_impact="high",
        availability_impact="none",
    ),
    # 6.1: needs a victim to load the page, impact leaves the app's scope
    "xss": CVSSMetrics(
        attack_vector="network",
        attack_complexity="low",
        privileges_required="none",
        user_interaction="required",
        scope="changed",
        confidentiality_impact="low",
        integrity_impact="low",
        availability_impact="none",
    ),
    # 7.5
    "broken_auth": CVSSMetrics(
        attack_vector="network",
        attack_complexity="low",
        privileges_required="none",
        user_interaction="none",
        scope="unchanged",
        confidentiality_impact="high",
        integrity_impact="none",
        availability_impact="none",
    ),
    # 5.9: exploitation usually needs interception or offline work
    "sensitive_data": CVSSMetrics(
        attack_vector="network",
        attack_complexity="high",
        privileges_required="none",
        user_interaction="none",
        scope="unchanged",
        confidentiality_impact="high",
        integrity_impact="none",
        availability_impact="none",
    ),
    # 8.1
    "broken_access_control": CVSSMetrics(
        attack_vector="network",
        attack_complexity="low",
        privileges_required="low",
        user_interaction="none",
        scope="unchanged",
        confidentiality_impact="high",
        integrity_impact="high",
        availability_impact="none",
    ),
    # 6.5
    "security_misconfiguration": CVSSMetrics(
        attack_vector="network",
        attack_complexity="low",
        privileges_required="none",
        user_interaction="none",
        scope="unchanged",
        confidentiality_impact="low",
        integrity_impact="low",
        availability_impact="none",
    ),
    # 7.2: pivots into internal services
    "ssrf": CVSSMetrics(
        attack_vector="network",
        attack_complexity="low",
        privileges_required="none",
        user_interaction="none",
        scope="changed",
        confidentiality_impact="low",
        integrity_impact="low",
        availability_impact="none",
    ),
})

SCANNER_CATEGORIES = tuple(CATEGORY_TEMPLATES)
