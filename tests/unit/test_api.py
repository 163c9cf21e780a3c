"""tests for the top-level convenience functions"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "src"))

import anyrepair  # noqa: E402
from anyrepair import api  # noqa: E402
from anyrepair.config import config  # noqa: E402
from anyrepair.models import Format  # noqa: E402
from anyrepair.rules_schema import CustomRule, RepairConfig  # noqa: E402


@pytest.fixture(autouse=True)
def no_rules_file(monkeypatch):
    monkeypatch.setattr(config, "RULES_FILE", None)


class TestRepair:
    def test_detects_json(self):
        assert api.repair('{"a": 1,}') == '{"a": 1}'

    def test_explicit_format(self):
        assert json.loads(api.repair("{'a': 1}", "json")) == {"a": 1}
        assert json.loads(api.repair("{'a': 1}", Format.JSON)) == {"a": 1}

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            api.repair("x", "docx")

    def test_other_formats(self):
        assert api.repair("<root><item>a</root>") == "<root><item>a</item></root>"
        assert api.repair("#Title\n\nSome **bold text") == "# Title\n\nSome **bold text**"

    def test_rules(self):
        cfg = RepairConfig(custom_rules=[CustomRule(id="r", target_format="json", pattern="'", replacement='"')])
        assert api.repair("{'a': 'b',}", "json", rules=cfg) == '{"a": "b"}'

    def test_package_exports(self):
        assert anyrepair.repair is api.repair
        assert anyrepair.loads("{a: 1}") == {"a": 1}
        assert anyrepair.__version__


class TestRepairWithReport:
    def test_report(self):
        outcome = api.repair_with_report('{"a": 1,}')
        assert outcome.format is Format.JSON
        assert outcome.valid
        assert outcome.changed
        assert outcome.confidence == 1.0
        assert "FixTrailingCommas" in outcome.applied

    def test_to_dict(self):
        report = api.repair_with_report('{"a": 1,}').to_dict()
        assert set(report) == {"format", "changed", "valid", "confidence", "applied", "repaired"}
        assert report["repaired"] == '{"a": 1}'

    def test_unchanged(self):
        outcome = api.repair_with_report('{"a": 1}')
        assert not outcome.changed
        assert outcome.applied == []

    def test_still_invalid(self):
        outcome = api.repair_with_report("@@@", "json")
        assert not outcome.valid
        assert outcome.confidence < 1.0

    def test_advanced(self):
        outcome = api.repair_with_report('{"a": 1,}', advanced=True)
        assert outcome.repaired == '{"a": 1}'
        assert outcome.applied == ["JsonRepair"]


class TestHelpers:
    def test_confidence(self):
        assert api.confidence("") == 0.0
        assert api.confidence('{"a": 1}') == 1.0
        assert 0.0 < api.confidence('{"a": 1,', "json") < 1.0

    def test_needs_repair(self):
        assert api.needs_repair('{"a": 1,}')
        assert not api.needs_repair("a: 1", "yaml")

    def test_validate(self):
        assert api.validate('{"a": 1}') == []
        assert api.validate('{"a": }', "json")

    def test_supported_formats(self):
        assert api.supported_formats() == ["json", "yaml", "xml", "toml", "csv", "ini", "markdown"]

    def test_format_of(self):
        assert api.format_of(None) is None
        assert api.format_of("Auto") is None
        assert api.format_of("YML") is Format.YAML
        with pytest.raises(ValueError):
            api.format_of("bogus")
