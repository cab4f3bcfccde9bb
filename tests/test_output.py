"""Tests for output reporters."""

import io
import json

from rich.console import Console

from vulnaudit.findings.aggregator import Aggregator
from vulnaudit.output import json_report, terminal
from vulnaudit.scoring.cvss import score_vector


def _report(make_finding, fixed_clock, findings=None):
    if findings is None:
        findings = [
            make_finding(
                "critical",
                rule_id="SQL_INJECTION_CONCAT",
                file="app/db.py",
                line=42,
                evidence='cursor.execute("SELECT * FROM t WHERE id = " +',
                cvss=score_vector("AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:N"),
            ),
            make_finding(
                "critical",
                rule_id="AWS_ACCESS_KEY",
                category="secret_exposure",
                file="app/settings.py",
                line=3,
                evidence="AKIA************L123",
                entropy=3.98,
            ),
        ]
    return Aggregator("low", clock=fixed_clock).aggregate(
        [findings], scope="demo", scanned_files=5, duration_ms=15.3
    )


class TestJsonReport:
    def test_valid_json(self, make_finding, fixed_clock):
        data = json.loads(json_report.render(_report(make_finding, fixed_clock)))
        assert data["version"] == "1.0"
        assert data["tool"]["name"] == "vulnaudit"
        assert data["total_findings"] == 2
        assert data["scanned_files"] == 5
        assert data["blocked"] is True

    def test_findings_shape(self, make_finding, fixed_clock):
        data = json_report.to_dict(_report(make_finding, fixed_clock))
        by_rule = {f["rule"]: f for f in data["findings"]}
        sql = by_rule["SQL_INJECTION_CONCAT"]
        assert sql["cvss"]["score"] == 9.1
        assert sql["cvss"]["vector"].startswith("CVSS:3.1/")
        assert sql["location"] == {"file": "app/db.py", "line": 42}
        secret = by_rule["AWS_ACCESS_KEY"]
        assert secret["cvss"] is None
        assert secret["entropy"] == 3.98

    def test_no_raw_secret(self, make_finding, fixed_clock):
        text = json_report.render(_report(make_finding, fixed_clock))
        assert "AKIAIOSFODNN7REAL123" not in text

    def test_fail_on_threshold(self, make_finding, fixed_clock):
        report = _report(make_finding, fixed_clock, [make_finding("medium")])
        assert json_report.to_dict(report, fail_on="high")["blocked"] is False
        assert json_report.to_dict(report, fail_on="medium")["blocked"] is True

    def test_empty_report(self, make_finding, fixed_clock):
        data = json_report.to_dict(_report(make_finding, fixed_clock, []))
        assert data["findings"] == []
        assert data["risk_score"] == 0.0
        assert data["blocked"] is False


class TestTerminalReport:
    def _render(self, report, **kwargs) -> str:
        buf = io.StringIO()
        console = Console(file=buf, width=200, force_terminal=False, color_system=None)
        terminal.render(report, console=console, **kwargs)
        return buf.getvalue()

    def test_findings_table(self, make_finding, fixed_clock):
        out = self._render(_report(make_finding, fixed_clock))
        assert "SQL_INJECTION_CONCAT" in out
        assert "app/db.py:42" in out
        assert "9.1" in out
        assert "FAILED" in out
        assert "Risk score" in out

    def test_clean(self, make_finding, fixed_clock):
        out = self._render(_report(make_finding, fixed_clock, []))
        assert "No findings at or above the severity threshold" in out
        assert "No critical vulnerabilities were identified." in out

    def test_summary_optional(self, make_finding, fixed_clock):
        out = self._render(_report(make_finding, fixed_clock), show_summary=False)
        assert "Files scanned" not in out
