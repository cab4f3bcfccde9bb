"""Tests for the audit engine — integration through the full pipeline."""

import time
from datetime import datetime

import pytest

from vulnaudit.config.loader import ConfigError
from vulnaudit.config.schema import AuditConfig
from vulnaudit.iam.models import IAMPermission, IAMPolicy
from vulnaudit.rules.registry import build_catalog
from vulnaudit.scanner.engine import AuditEngine, FindingBudget, ScanError
from vulnaudit.scanner.patterns import PatternScanner
from vulnaudit.scanner.source import SourceFile


def _engine(config=None, **kwargs) -> AuditEngine:
    cfg = config or AuditConfig()
    return AuditEngine(cfg, build_catalog(cfg), **kwargs)


class SlowDetector:
    name = "owasp"
    target_types = (SourceFile,)
    budgeted = False

    def scan(self, target):
        time.sleep(0.5)
        return []


class StallingPatternScanner:
    """Pattern scanner that stalls on files named slow.py."""

    name = "owasp"
    target_types = (SourceFile,)
    budgeted = False

    def __init__(self, catalog):
        self._inner = PatternScanner(catalog)

    def scan(self, target):
        if target.path == "slow.py":
            time.sleep(1.0)
        return self._inner.scan(target)


class BrokenDetector:
    name = "owasp"
    target_types = (SourceFile,)
    budgeted = False

    def scan(self, target):
        raise RuntimeError("matched AKIAIOSFODNN7REAL123")


class TestPipeline:
    def test_vulnerable_file(self, vulnerable_python, fixed_clock):
        report = _engine(clock=fixed_clock).run([("app/users.py", vulnerable_python)], scope="demo")
        assert [(f.rule_id, f.line) for f in report.findings] == [
            ("AWS_ACCESS_KEY", 4),
            ("SQL_INJECTION_CONCAT", 8),
            ("DEBUG_ENABLED", 3),
        ]
        assert report.scanned_files == 1
        assert report.scope == "demo"
        assert report.incomplete is False
        assert report.recommendations[0].priority == "immediate"

    def test_clean_file(self, clean_python):
        report = _engine().run([("app/math.py", clean_python.encode())])
        assert report.findings == ()
        assert report.risk_score == 0.0

    def test_bytes_and_str_equivalent(self, vulnerable_python):
        engine = _engine()
        a = engine.run([("app/users.py", vulnerable_python)])
        b = engine.run([("app/users.py", vulnerable_python.encode("utf-8"))])
        assert [f.id for f in a.findings] == [f.id for f in b.findings]

    def test_policies(self, admin_policy):
        report = _engine().run(policies=[admin_policy])
        assert report.scanned_policies == 1
        assert {f.category for f in report.findings} == {"iam_misconfiguration"}

    def test_severity_threshold(self, vulnerable_python):
        cfg = AuditConfig()
        cfg.scan.severity_threshold = "critical"
        report = _engine(cfg).run([("app/users.py", vulnerable_python)])
        assert {f.severity for f in report.findings} == {"critical"}
        assert report.raw_finding_count == 3

    def test_scan_types(self, vulnerable_python, admin_policy):
        cfg = AuditConfig()
        cfg.scan.scan_types = ["secrets"]
        report = _engine(cfg).run([("app/users.py", vulnerable_python)], [admin_policy])
        assert [f.rule_id for f in report.findings] == ["AWS_ACCESS_KEY"]
        assert any(w.kind == "policy" for w in report.warnings)

    def test_iam_only_skips_files(self, vulnerable_python):
        cfg = AuditConfig()
        cfg.scan.scan_types = ["iam"]
        report = _engine(cfg).run([("app/users.py", vulnerable_python)])
        assert report.findings == ()
        assert report.skipped_files == ("app/users.py (no file scan types enabled)",)

    def test_invalid_config_rejected(self):
        cfg = AuditConfig()
        cfg.scan.workers = 0
        with pytest.raises(ConfigError):
            AuditEngine(cfg, build_catalog(AuditConfig()))

    def test_from_config(self, tmp_path):
        engine = AuditEngine.from_config(AuditConfig(), tmp_path)
        assert len(engine.detectors) == 3


class TestRecoverableFailures:
    def test_exclusions(self, vulnerable_python):
        cfg = AuditConfig()
        cfg.scan.exclusions = ["vendor/*", "*.min.js"]
        report = _engine(cfg).run([
            ("vendor/lib.py", vulnerable_python),
            ("static/app.min.js", "eval(x)"),
            ("app/users.py", "x = 1\n"),
        ])
        assert report.skipped_files == ("static/app.min.js (excluded)", "vendor/lib.py (excluded)")
        assert report.findings == ()
        assert report.scanned_files == 1

    def test_exclusion_matches_nested_directory(self):
        cfg = AuditConfig()
        cfg.scan.exclusions = ["node_modules/*"]
        report = _engine(cfg).run([
            ("web/node_modules/pkg/index.js", "eval(x)"),
            ("node_modules/top.js", "eval(x)"),
            ("web/src/app.js", "x = 1\n"),
        ])
        assert report.skipped_files == (
            "node_modules/top.js (excluded)",
            "web/node_modules/pkg/index.js (excluded)",
        )
        assert report.scanned_files == 1

    def test_binary_file_warns(self):
        report = _engine().run([("logo.png", b"\x89PNG\r\n\x1a\n\x00\x00\x00")])
        assert report.findings == ()
        assert [(w.kind, w.target) for w in report.warnings] == [("source", "logo.png")]
        assert report.scanned_files == 0

    def test_undecodable_file_warns(self):
        report = _engine().run([("latin.txt", "caf\xe9 = 1".encode("latin-1"))])
        assert [w.kind for w in report.warnings] == ["source"]

    def test_malformed_policy_warns(self, admin_policy):
        report = _engine().run(policies=[{"name": "broken"}, admin_policy])
        assert [(w.kind, w.target) for w in report.warnings] == [("policy", "broken")]
        assert report.scanned_policies == 1
        assert report.findings


class TestSuppression:
    def test_nosec(self):
        report = _engine().run([("app/calc.py", "result = eval(data)  # nosec\n")])
        assert report.findings == ()
        assert [(s.rule_id, s.line_no) for s in report.suppressed] == [("CODE_INJECTION_EVAL", 1)]

    def test_next_line(self):
        text = "# vulnaudit-ignore[CODE_INJECTION_EVAL]\nresult = eval(data)\n"
        report = _engine().run([("app/calc.py", text)])
        assert report.findings == ()
        assert report.suppressed[0].reason == "next-line"

    def test_scoped_to_other_rule(self):
        text = "result = eval(data)  # vulnaudit-ignore[DEBUG_ENABLED]\n"
        report = _engine().run([("app/calc.py", text)])
        assert [f.rule_id for f in report.findings] == ["CODE_INJECTION_EVAL"]
        assert report.suppressed == ()


class TestLimits:
    def test_timeout_marks_incomplete(self):
        cfg = AuditConfig()
        cfg.scan.timeout = 0.1
        cfg.scan.workers = 1
        engine = _engine(cfg, detectors=[SlowDetector()])
        report = engine.run([("a.py", "x = 1\n"), ("b.py", "y = 2\n"), ("c.py", "z = 3\n")])
        assert report.incomplete is True
        assert any(w.kind == "timeout" for w in report.warnings)
        assert report.scanned_files < 3
        assert "timed out" in report.executive_summary

    def test_timeout_keeps_completed_findings(self):
        cfg = AuditConfig()
        cfg.scan.timeout = 0.3
        cfg.scan.workers = 2
        catalog = build_catalog(cfg)
        engine = AuditEngine(cfg, catalog, detectors=[StallingPatternScanner(catalog)])
        report = engine.run([
            ("fast.py", "result = eval(data)\n"),
            ("slow.py", "result = eval(data)\n"),
        ])
        assert report.incomplete is True
        assert [f.location.file for f in report.findings] == ["fast.py"]
        assert [(w.kind, w.target) for w in report.warnings] == [("timeout", "slow.py")]
        assert report.scanned_files == 1

    def test_max_findings_truncates(self):
        cfg = AuditConfig()
        cfg.scan.max_findings = 2
        cfg.scan.workers = 1
        files = [(f"app/m{i}.py", "result = eval(data)\n") for i in range(4)]
        report = _engine(cfg).run(files)
        assert report.total_findings == 2
        assert report.truncated is True
        assert any(w.kind == "truncated" for w in report.warnings)

    def test_iam_not_budgeted(self, admin_policy):
        cfg = AuditConfig()
        cfg.scan.max_findings = 1
        report = _engine(cfg).run(policies=[admin_policy])
        assert report.total_findings >= 2
        assert report.truncated is False

    def test_budget_admit(self):
        budget = FindingBudget(3)
        assert budget.admit([1, 2]) == [1, 2]
        assert budget.admit([3, 4]) == [3]
        assert budget.exhausted and budget.truncated

    def test_unlimited_budget(self):
        budget = FindingBudget(None)
        assert budget.admit(list(range(100))) == list(range(100))
        assert not budget.exhausted


class TestInternalErrors:
    def test_detector_failure_is_scrubbed(self):
        engine = _engine(detectors=[BrokenDetector()])
        with pytest.raises(ScanError) as excinfo:
            engine.run([("app/settings.py", "x = 1\n")])
        assert "AKIA" not in str(excinfo.value)
        assert excinfo.value.__cause__ is None
        assert "RuntimeError" in str(excinfo.value)


class TestPolicyObjects:
    def test_naive_last_used_policy_object(self):
        policy = IAMPolicy(
            "old",
            "aws",
            (IAMPermission("s3:GetObject", "arn:aws:s3:::reports/*"),),
            last_used=datetime(2020, 1, 1),
        )
        report = _engine().run([("app.py", "result = eval(data)\n")], [policy])
        assert {f.rule_id for f in report.findings} == {"CODE_INJECTION_EVAL", "IAM_STALE_POLICY"}
        assert report.scanned_policies == 1

    def test_aws_cased_effect_policy_object(self):
        policy = IAMPolicy("admin", "aws", (IAMPermission("*", "*", "Allow"),))
        report = _engine().run(policies=[policy])
        assert {"IAM_WILDCARD_ACTION", "IAM_WILDCARD_RESOURCE"} <= {f.rule_id for f in report.findings}
