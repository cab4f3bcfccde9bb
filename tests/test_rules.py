"""Tests for rule models, built-in rules and the catalog builder."""

from pathlib import Path

import pytest

from vulnaudit.config.loader import ConfigError
from vulnaudit.config.schema import AuditConfig
from vulnaudit.rules.builtin import ALL_BUILTIN_RULES, ALL_SECRET_PATTERNS, DANGEROUS_ACTIONS
from vulnaudit.rules.models import Rule, SecretPattern
from vulnaudit.rules.registry import CatalogBuilder, build_catalog
from vulnaudit.rules.templates import CATEGORY_TEMPLATES, SCANNER_CATEGORIES
from vulnaudit.scoring.cvss import calculate_score


def _write_rules(root: Path, text: str) -> Path:
    rules_dir = root / ".vulnaudit-rules"
    rules_dir.mkdir()
    (rules_dir / "custom.yaml").write_text(text, encoding="utf-8")
    return rules_dir


class TestBuiltinRules:
    def test_ids_unique(self):
        ids = [r.id for r in ALL_BUILTIN_RULES] + [p.id for p in ALL_SECRET_PATTERNS]
        assert len(ids) == len(set(ids))

    def test_every_scanner_category_covered(self):
        covered = {r.category for r in ALL_BUILTIN_RULES}
        assert covered == set(SCANNER_CATEGORIES)

    def test_rules_use_category_template_by_default(self):
        for rule in ALL_BUILTIN_RULES:
            assert rule.metrics is not None
            score = calculate_score(rule.metrics)
            assert score.severity in ("low", "medium", "high", "critical")

    def test_secret_severities(self):
        assert {p.severity for p in ALL_SECRET_PATTERNS} <= {"critical", "high", "medium"}

    def test_dangerous_actions_include_privilege_escalation(self):
        assert "iam:PassRole" in DANGEROUS_ACTIONS
        assert "iam:CreateUser" in DANGEROUS_ACTIONS


class TestRuleModel:
    def test_default_metrics_from_category(self):
        rule = Rule(
            id="R1", name="r", description="", category="xss",
            cwe="CWE-79", pattern=r"foo", remediation="",
        )
        assert rule.metrics == CATEGORY_TEMPLATES["xss"]

    def test_malformed_pattern_raises(self):
        with pytest.raises(ConfigError, match="malformed pattern"):
            Rule(
                id="R1", name="r", description="", category="xss",
                cwe="", pattern=r"(unclosed", remediation="",
            )

    def test_unknown_category_raises(self):
        with pytest.raises(ConfigError, match="unknown category"):
            Rule(
                id="R1", name="r", description="", category="crypto",
                cwe="", pattern=r"x", remediation="",
            )

    def test_window_must_be_positive(self):
        with pytest.raises(ConfigError):
            Rule(
                id="R1", name="r", description="", category="xss",
                cwe="", pattern=r"x", remediation="", window=0,
            )

    def test_applies_to(self):
        rule = Rule(
            id="R1", name="r", description="", category="xss", cwe="",
            pattern=r"x", remediation="", file_patterns=("*.jsx", "web/*"),
        )
        assert rule.applies_to("src/App.jsx") is True
        assert rule.applies_to("web/index.html") is True
        assert rule.applies_to("server/app.py") is False

    def test_secret_pattern_extracts_named_group(self):
        pattern = SecretPattern(
            id="S1", name="s", pattern=r"key=(?P<secret>\w+)",
            severity="high", entropy_threshold=1.0,
        )
        m = pattern.compiled.search("key=abc123")
        assert pattern.extract(m) == "abc123"

    def test_secret_pattern_invalid_severity(self):
        with pytest.raises(ConfigError):
            SecretPattern(id="S1", name="s", pattern="x", severity="low", entropy_threshold=1.0)


class TestCatalog:
    def test_default_catalog(self, catalog):
        assert len(catalog.rules) == len(ALL_BUILTIN_RULES)
        assert len(catalog.secret_patterns) == len(ALL_SECRET_PATTERNS)
        assert catalog.get("SQL_INJECTION_CONCAT") is not None
        assert catalog.get("NOPE") is None

    def test_by_category(self, catalog):
        grouped = catalog.by_category()
        assert all(r.category == "injection" for r in grouped["injection"])

    def test_disable(self):
        cfg = AuditConfig()
        cfg.rules.disable = ["DEBUG_ENABLED", "AWS_ACCESS_KEY"]
        cat = build_catalog(cfg)
        assert cat.get("DEBUG_ENABLED") is None
        assert "AWS_ACCESS_KEY" not in {p.id for p in cat.secret_patterns}

    def test_enable_restricts(self):
        cfg = AuditConfig()
        cfg.rules.enable = ["CODE_INJECTION_EVAL"]
        cat = build_catalog(cfg)
        assert [r.id for r in cat.rules] == ["CODE_INJECTION_EVAL"]
        assert cat.secret_patterns == ()

    def test_disable_wins_over_enable(self):
        cfg = AuditConfig()
        cfg.rules.enable = ["CODE_INJECTION_EVAL"]
        cfg.rules.disable = ["CODE_INJECTION_EVAL"]
        assert build_catalog(cfg).rules == ()

    def test_extra_dangerous_actions(self):
        cfg = AuditConfig()
        cfg.iam.extra_dangerous_actions = ["kms:Decrypt"]
        cat = build_catalog(cfg)
        assert "kms:Decrypt" in cat.dangerous_actions
        assert "iam:PassRole" in cat.dangerous_actions

    def test_builder_dedups_dangerous_actions(self):
        cat = CatalogBuilder().add_dangerous_actions(["a:B", "a:B"]).build()
        assert cat.dangerous_actions == ("a:B",)


class TestCustomRules:
    def test_load_rule_and_secret(self, tmp_path: Path):
        _write_rules(tmp_path, """\
- id: INTERNAL_TOKEN_ASSIGN
  name: Internal token assignment
  category: sensitive_data
  cwe: CWE-798
  pattern: 'INTERNAL_TOKEN\\s*='
  remediation: Load it from the vault.
  cvss: "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"
- id: CORP_KEY
  kind: secret
  name: Corp key
  pattern: 'corp_(?P<secret>[A-Za-z0-9]{20})'
  severity: high
  entropy_threshold: 3.0
""")
        cat = build_catalog(AuditConfig(), tmp_path)
        rule = cat.get("INTERNAL_TOKEN_ASSIGN")
        assert rule is not None
        assert calculate_score(rule.metrics).score == 9.8
        assert "CORP_KEY" in {p.id for p in cat.secret_patterns}

    def test_single_mapping_file(self, tmp_path: Path):
        _write_rules(tmp_path, """\
id: ONE_RULE
category: injection
pattern: 'dangerous_call\\('
""")
        cat = build_catalog(AuditConfig(), tmp_path)
        rule = cat.get("ONE_RULE")
        assert rule is not None
        assert rule.metrics == CATEGORY_TEMPLATES["injection"]

    def test_malformed_pattern(self, tmp_path: Path):
        _write_rules(tmp_path, """\
- id: BROKEN
  category: injection
  pattern: '(unclosed'
""")
        with pytest.raises(ConfigError, match="malformed pattern"):
            build_catalog(AuditConfig(), tmp_path)

    def test_invalid_cvss_vector(self, tmp_path: Path):
        _write_rules(tmp_path, """\
- id: BAD_VECTOR
  category: injection
  pattern: 'x'
  cvss: "CVSS:3.1/AV:N"
""")
        with pytest.raises(ConfigError, match="cvss"):
            build_catalog(AuditConfig(), tmp_path)

    def test_missing_required_key(self, tmp_path: Path):
        _write_rules(tmp_path, """\
- id: NO_PATTERN
  category: injection
""")
        with pytest.raises(ConfigError, match="missing required key"):
            build_catalog(AuditConfig(), tmp_path)

    def test_invalid_yaml(self, tmp_path: Path):
        _write_rules(tmp_path, "- id: [unterminated\n")
        with pytest.raises(ConfigError):
            build_catalog(AuditConfig(), tmp_path)

    def test_missing_dir_is_fine(self, tmp_path: Path):
        cat = build_catalog(AuditConfig(), tmp_path)
        assert len(cat.rules) == len(ALL_BUILTIN_RULES)

    def test_custom_rule_can_be_disabled(self, tmp_path: Path):
        _write_rules(tmp_path, """\
- id: ONE_RULE
  category: injection
  pattern: 'x'
""")
        cfg = AuditConfig()
        cfg.rules.disable = ["ONE_RULE"]
        assert build_catalog(cfg, tmp_path).get("ONE_RULE") is None
