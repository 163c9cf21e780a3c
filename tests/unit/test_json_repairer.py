"""tests for JsonRepairer and EnhancedJsonRepairer"""

import io
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "src"))

from anyrepair.errors import SerializationError, UnexpectedCharacterError  # noqa: E402
from anyrepair.formats.json_repair import (  # noqa: E402
    EnhancedJsonRepairer,
    JsonRepairer,
    from_file,
    load,
    loads,
    repair_json,
)


@pytest.fixture
def repairer():
    return JsonRepairer()


class TestJsonRepairerScenarios:
    def test_trailing_comma(self, repairer):
        assert repairer.repair('{"a": 1,}') == '{"a": 1}'

    def test_missing_quotes(self, repairer):
        assert json.loads(repairer.repair("{name: John, age: 30}")) == {"name": "John", "age": 30}

    def test_unterminated_object(self, repairer):
        assert json.loads(repairer.repair('{"a": 1, "b": [1, 2')) == {"a": 1, "b": [1, 2]}

    def test_python_literals(self, repairer):
        assert json.loads(repairer.repair('{"a": True, "b": None}')) == {"a": True, "b": None}

    def test_trailing_prose(self, repairer):
        assert repairer.repair('{"a":1} trailing prose') == '{"a":1}'

    def test_code_fence(self, repairer):
        assert repairer.repair('```json\n{"a": 1,}\n```') == '{"a": 1}'

    def test_chained_values_become_a_list(self, repairer):
        assert json.loads(repairer.repair('{"a": 1}\n{"b": 2}')) == [{"a": 1}, {"b": 2}]

    def test_garbage_before_closing_brace(self, repairer):
        assert json.loads(repairer.repair('{"a": 1, @@@}')) == {"a": 1}

    def test_comment_and_single_quotes(self, repairer):
        text = "{\n  'a': 1, // count\n  'b': 'x'\n}"
        assert json.loads(repairer.repair(text)) == {"a": 1, "b": "x"}


class TestJsonRepairerContract:
    def test_valid_input_is_returned_unchanged(self, repairer):
        text = '{\n  "a": [1, 2]\n}'
        assert repairer.repair(text) is text

    def test_valid_input_with_whitespace_unchanged(self, repairer):
        assert repairer.repair('  {"a": 1}\n') == '  {"a": 1}\n'

    def test_empty_input(self, repairer):
        assert repairer.repair("") == ""
        assert repairer.repair("   \n") == ""
        assert repairer.repair(None) == ""

    @pytest.mark.parametrize("text", [
        "@@@",
        "}}}",
        "[" * 300,
        '{"a": 1.2.3}',
        "\\",
        '"',
        "{'",
        "null",
        "<xml>",
        "{,,,}",
    ])
    def test_never_raises(self, repairer, text):
        assert isinstance(repairer.repair(text), str)

    @pytest.mark.parametrize("text", [
        '{"a": 1,}',
        "{name: John, age: 30}",
        '{"a": 1, "b": [1, 2',
        "{'a': True, 'b': None}",
        '```json\n{"a": [1, 2,],}\n```',
    ])
    def test_idempotent(self, repairer, text):
        once = repairer.repair(text)
        assert repairer.repair(once) == once

    def test_parser_can_be_disabled(self):
        repaired = JsonRepairer(use_parser=False).repair("{name: John}")
        assert repaired == '{"name": John}'

    def test_applied_strategies_are_recorded(self, repairer):
        repairer.repair('{"a": 1,}')
        assert "FixTrailingCommas" in repairer.last_applied
        assert any("FixTrailingCommas" in entry for entry in repairer.get_repair_log())
        repairer.clear_log()
        assert repairer.get_repair_log() == []

    def test_parser_fallback_is_recorded(self, repairer):
        repairer.repair("{name: John}")
        assert repairer.last_applied[-1] == "RecoveryParser"

    def test_needs_repair_and_confidence(self, repairer):
        assert repairer.needs_repair('{"a": 1,}')
        assert not repairer.needs_repair('{"a": 1}')
        assert repairer.confidence('{"a": 1}') == 1.0
        assert 0.0 <= repairer.confidence('{"a": 1,') < 1.0

    def test_validate(self, repairer):
        assert repairer.validate('{"a": 1}') == []
        assert repairer.validate('{"a": }')


class TestEnhancedJsonRepairer:
    def test_repair_json(self):
        assert repair_json("{'a': True}") == '{"a":true}'

    def test_repair_json_keeps_valid_input(self):
        text = '{"a": 1}'
        assert repair_json(text) == text

    def test_skip_json_loads_reserializes(self):
        assert repair_json('{"a": 1}', skip_json_loads=True) == '{"a":1}'

    def test_loads(self):
        assert loads('{"a": [1, 2,],}') == {"a": [1, 2]}
        assert loads("[1, 2]") == [1, 2]

    def test_load(self):
        assert load(io.StringIO("{a: 1}")) == {"a": 1}

    def test_from_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{'name': 'Ada', 'langs': ['en', 'fr'],}", encoding="utf-8")
        assert from_file(path) == {"name": "Ada", "langs": ["en", "fr"]}

    def test_fatal_errors_propagate(self):
        with pytest.raises(UnexpectedCharacterError):
            loads("@@@")

    def test_non_finite_number_cannot_be_serialized(self):
        with pytest.raises(SerializationError):
            repair_json("[1e999")

    def test_empty(self):
        assert repair_json("") == ""
        assert EnhancedJsonRepairer().parse("  ") == ""

    def test_repair_log(self):
        repairer = EnhancedJsonRepairer(logging_enabled=True)
        repairer.loads("{a: 1}")
        assert repairer.get_repair_log()
        repairer.clear_log()
        assert repairer.get_repair_log() == []
