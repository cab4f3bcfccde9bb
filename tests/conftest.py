"""Shared test fixtures — configs, catalogs, a frozen clock, sample sources."""

from __future__ import annotations

import textwrap
from datetime import datetime, timezone
from typing import Optional

import pytest

from vulnaudit.config.schema import AuditConfig
from vulnaudit.findings.models import Finding, Location, make_finding_id
from vulnaudit.rules.registry import build_catalog

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def config() -> AuditConfig:
    return AuditConfig()


@pytest.fixture
def catalog(config: AuditConfig):
    return build_catalog(config)


@pytest.fixture
def make_finding():
    """Factory for hand-built findings used by aggregation and output tests."""

    def _make(
        severity: str = "high",
        *,
        rule_id: str = "SAMPLE_RULE",
        category: str = "injection",
        file: str = "app/views.py",
        line: int = 1,
        evidence: str = "",
        cvss=None,
        entropy: Optional[float] = None,
    ) -> Finding:
        return Finding(
            id=make_finding_id(rule_id, file, line),
            rule_id=rule_id,
            title=f"{rule_id} title",
            description="Sample finding.",
            severity=severity,
            category=category,
            location=Location(file, line),
            evidence=evidence,
            remediation="Fix it.",
            cvss=cvss,
            entropy=entropy,
            detected_at=FIXED_NOW,
        )

    return _make


@pytest.fixture
def vulnerable_python() -> str:
    """A module with an injection, a debug flag and a hardcoded AWS key."""
    return textwrap.dedent("""\
        import os

        DEBUG = True
        AWS_KEY = "AKIAIOSFODNN7REAL123"


        def find_user(cursor, uid):
            cursor.execute("SELECT * FROM users WHERE id = " + uid)
            return cursor.fetchone()
    """)


@pytest.fixture
def clean_python() -> str:
    return textwrap.dedent("""\
        def add(a, b):
            return a + b
    """)


@pytest.fixture
def admin_policy() -> dict:
    return {
        "name": "s3-admin",
        "provider": "aws",
        "permissions": [{"action": "s3:*", "resource": "*"}],
    }
