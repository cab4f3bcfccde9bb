"""Tests for the pattern vulnerability scanner."""

import textwrap

import pytest

from vulnaudit.rules.models import Rule
from vulnaudit.rules.registry import RuleCatalog
from vulnaudit.scanner.patterns import PatternScanner
from vulnaudit.scanner.source import TextSourceModel


def _source(path: str, text: str):
    return TextSourceModel().parse(path, textwrap.dedent(text))


@pytest.fixture
def scanner(catalog, fixed_clock):
    return PatternScanner(catalog, clock=fixed_clock)


class TestDetection:
    def test_sql_concat(self, scanner):
        src = _source("app/db.py", """\
            def find(cursor, uid):
                cursor.execute("SELECT * FROM users WHERE id = " + uid)
        """)
        findings = scanner.scan(src)
        assert [f.rule_id for f in findings] == ["SQL_INJECTION_CONCAT"]
        f = findings[0]
        assert f.line == 2
        assert f.category == "injection"
        assert f.cvss is not None and f.cvss.score == 9.1
        assert f.severity == "critical"
        assert f.status == "open"

    def test_clean_file(self, scanner, clean_python):
        assert scanner.scan(_source("app/math.py", clean_python)) == []

    def test_debug_flag_is_medium(self, scanner):
        findings = scanner.scan(_source("settings.py", "DEBUG = True\n"))
        assert [(f.rule_id, f.severity) for f in findings] == [("DEBUG_ENABLED", "medium")]

    def test_ssrf(self, scanner):
        findings = scanner.scan(_source("proxy.py", "resp = requests.get(request.args['url'])\n"))
        assert "SSRF_HTTP_CLIENT" in {f.rule_id for f in findings}

    def test_cloud_metadata(self, scanner):
        findings = scanner.scan(_source("probe.py", 'URL = "http://169.254.169.254/latest/"\n'))
        assert "CLOUD_METADATA_ENDPOINT" in {f.rule_id for f in findings}


class TestMatchingRules:
    def test_one_finding_per_rule_per_line(self, scanner):
        findings = scanner.scan(_source("run.py", "os.system(a); os.system(b)\n"))
        assert [f.rule_id for f in findings] == ["COMMAND_INJECTION_SHELL"]

    def test_multiline_window(self, scanner):
        src = _source("app/db.py", """\
            cursor.execute(
                "SELECT * FROM t WHERE a = " + x)
        """)
        findings = [f for f in scanner.scan(src) if f.rule_id == "SQL_INJECTION_MULTILINE"]
        assert len(findings) == 1
        assert findings[0].line == 1

    def test_file_patterns_restrict_rule(self, scanner):
        line = "<div dangerouslySetInnerHTML={{__html: body}} />\n"
        jsx = scanner.scan(_source("ui/App.jsx", line))
        py = scanner.scan(_source("notes.py", line))
        assert "DANGEROUS_INNER_HTML" in {f.rule_id for f in jsx}
        assert "DANGEROUS_INNER_HTML" not in {f.rule_id for f in py}

    def test_long_lines_are_cut(self, catalog, fixed_clock):
        line = 'x = "' + "a" * 100 + '"; result = eval(data)\n'
        short = PatternScanner(catalog, max_line_length=50, clock=fixed_clock)
        full = PatternScanner(catalog, clock=fixed_clock)
        assert short.scan(_source("calc.py", line)) == []
        assert [f.rule_id for f in full.scan(_source("calc.py", line))] == ["CODE_INJECTION_EVAL"]

    def test_match_lines_static(self):
        rule = Rule(
            id="PRINT_CALL", name="print", description="", category="sensitive_data",
            cwe="", pattern=r"print\(", remediation="",
        )
        hits = list(PatternScanner.match_lines(rule, ["a = 1", "print(a)", "print(b)"]))
        assert [line for line, _ in hits] == [2, 3]


class TestFindingShape:
    def test_deterministic_ids(self, scanner):
        text = 'cursor.execute("SELECT * FROM users WHERE id = " + uid)\n'
        first = scanner.scan(_source("app/db.py", text))
        second = scanner.scan(_source("app/db.py", text))
        assert [f.id for f in first] == [f.id for f in second]

    def test_evidence_is_bounded(self, fixed_clock):
        rule = Rule(
            id="LONG_MATCH", name="long", description="", category="xss",
            cwe="", pattern=r"x+", remediation="",
        )
        scanner = PatternScanner(RuleCatalog([rule], [], []), clock=fixed_clock)
        findings = scanner.scan(_source("big.txt", "x" * 1000 + "\n"))
        assert len(findings) == 1
        assert len(findings[0].evidence) <= 160
        assert findings[0].evidence.endswith("...")

    def test_custom_metrics_drive_severity(self, fixed_clock):
        from vulnaudit.scoring.cvss import parse_vector

        rule = Rule(
            id="LOW_RULE", name="low", description="", category="xss", cwe="",
            pattern=r"todo", remediation="",
            metrics=parse_vector("AV:P/AC:H/PR:H/UI:R/S:U/C:L/I:N/A:N"),
        )
        scanner = PatternScanner(RuleCatalog([rule], [], []), clock=fixed_clock)
        findings = scanner.scan(_source("a.txt", "todo\n"))
        assert findings[0].severity == "low"
