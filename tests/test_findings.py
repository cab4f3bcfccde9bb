"""Tests for the finding model and its status lifecycle."""

import pytest

from vulnaudit.findings.models import InvalidTransition, make_finding_id


class TestLifecycle:
    def test_open_to_confirmed_to_mitigated(self, make_finding):
        f = make_finding()
        f.transition("confirmed")
        f.transition("mitigated")
        assert f.status == "mitigated"
        assert f.is_terminal

    def test_false_positive_is_terminal(self, make_finding):
        f = make_finding()
        f.transition("false_positive")
        with pytest.raises(InvalidTransition):
            f.transition("confirmed")

    def test_skip_not_allowed(self, make_finding):
        f = make_finding()
        with pytest.raises(InvalidTransition):
            f.transition("mitigated")
        assert f.status == "open"

    def test_accepted_risk(self, make_finding):
        f = make_finding()
        f.transition("confirmed")
        f.transition("accepted_risk")
        assert f.is_terminal


class TestImmutability:
    def test_fields_read_only(self, make_finding):
        f = make_finding()
        with pytest.raises(AttributeError):
            f.severity = "low"
        with pytest.raises(AttributeError):
            f.status = "mitigated"

    def test_stable_id(self):
        assert make_finding_id("R", "a.py", 3) == make_finding_id("R", "a.py", 3)
        assert make_finding_id("R", "a.py", 3) != make_finding_id("R", "a.py", 4)
        assert make_finding_id("R", "a.py", 3).startswith("R-")

    def test_to_dict_omits_empty_optionals(self, make_finding):
        data = make_finding().to_dict()
        assert "cwe" not in data
        assert "entropy" not in data
        assert data["cvss"] is None
        assert data["location"] == {"file": "app/views.py", "line": 1}
