"""tests for the rule file schema and the custom rule engine"""

import json
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "src"))

from anyrepair.config import config  # noqa: E402
from anyrepair.custom_rules import (  # noqa: E402
    RULE_PRIORITY_BASE,
    CustomRuleEngine,
    RuleTemplates,
    resolve_rules,
    translate_replacement,
)
from anyrepair.errors import ConfigurationError  # noqa: E402
from anyrepair.formats import get_repairer  # noqa: E402
from anyrepair.models import Format  # noqa: E402
from anyrepair.rules_schema import (  # noqa: E402
    ConditionOperator,
    CustomRule,
    RepairConfig,
    RuleCondition,
    load_repair_config,
    parse_repair_config,
)


def make_engine(*rules):
    return CustomRuleEngine(RepairConfig(custom_rules=[CustomRule(**rule) for rule in rules]))


RULES_YAML = """
global:
  max_attempts: 5
formats:
  YML:
    disabled_strategies: [FixIndentation]
custom_rules:
  - id: todo_to_done
    target_format: markdown
    priority: 8
    pattern: TODO
    replacement: DONE
  - id: quote_words
    target_format: json
    pattern: '(\\w+)'
    replacement: '"$1"'
  - id: disabled_rule
    target_format: json
    enabled: false
    pattern: x
"""


class TestRuleSchema:
    def test_format_aliases_normalized(self):
        rule = CustomRule(id="r", target_format="YML", pattern="x")
        assert rule.target_format == "yaml"

    def test_unknown_format_rejected(self):
        with pytest.raises(ValidationError):
            CustomRule(id="r", target_format="docx", pattern="x")

    @pytest.mark.parametrize("priority", [-1, 11])
    def test_priority_range(self, priority):
        with pytest.raises(ValidationError):
            CustomRule(id="r", target_format="json", pattern="x", priority=priority)

    def test_empty_pattern_rejected(self):
        with pytest.raises(ValidationError):
            CustomRule(id="r", target_format="json", pattern="")

    @pytest.mark.parametrize("spelling", ["not_equals", "NotEquals", "not-equals", "NOT_EQUALS"])
    def test_operator_spellings(self, spelling):
        condition = RuleCondition(field="content_length", operator=spelling, value="1")
        assert condition.operator is ConditionOperator.NOT_EQUALS

    def test_condition_values_stringified(self):
        assert RuleCondition(field="contains_newlines", value=True).value == "true"
        assert RuleCondition(field="content_length", value=5).value == "5"

    def test_repair_config_sections(self):
        cfg = RepairConfig.model_validate({
            "global": {"max_attempts": 5},
            "formats": {"YML": {"disabled_strategies": ["FixIndentation"]}},
            "future_key": 1,
        })
        assert cfg.global_settings.max_attempts == 5
        assert cfg.get_format_settings("yaml").disabled_strategies == ["FixIndentation"]
        assert cfg.get_format_settings(Format.JSON) is None
        assert cfg.model_extra == {"future_key": 1}

    def test_enabled_rules_for_format(self):
        cfg = RepairConfig()
        cfg.add_custom_rule(CustomRule(id="a", target_format="json", pattern="x"))
        cfg.add_custom_rule(CustomRule(id="b", target_format="json", pattern="y", enabled=False))
        cfg.add_custom_rule(CustomRule(id="c", target_format="yaml", pattern="z"))
        assert [r.id for r in cfg.get_enabled_rules_for_format("json")] == ["a"]

    def test_parse_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_repair_config({"custom_rules": [{"id": "x"}]}, source="rules.yaml")
        assert str(exc_info.value).startswith("rules.yaml:")


class TestLoadRepairConfig:
    def test_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        cfg = load_repair_config(path)
        assert cfg.global_settings.max_attempts == 5
        assert [r.id for r in cfg.custom_rules] == ["todo_to_done", "quote_words", "disabled_rule"]

    def test_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"custom_rules": [
            {"id": "r1", "target_format": "json", "pattern": "foo", "replacement": "bar"},
        ]}), encoding="utf-8")
        assert load_repair_config(path).custom_rules[0].replacement == "bar"

    def test_toml(self, tmp_path):
        path = tmp_path / "rules.toml"
        path.write_text(
            '[[custom_rules]]\nid = "r1"\ntarget_format = "ini"\npattern = "foo"\nreplacement = "bar"\n',
            encoding="utf-8",
        )
        assert load_repair_config(path).custom_rules[0].target_format == "ini"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("", encoding="utf-8")
        assert load_repair_config(path).custom_rules == []

    @pytest.mark.parametrize("name,content", [
        ("bad.yaml", "custom_rules: [1"),
        ("bad.json", "{"),
        ("bad.toml", "x = "),
        ("list.yaml", "- a\n- b"),
    ])
    def test_unreadable_content(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_repair_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_repair_config(tmp_path / "nope.yaml")


class TestCustomRuleEngine:
    def test_dollar_references(self):
        assert translate_replacement("$1-${name}") == r"\g<1>-\g<name>"
        engine = make_engine({"id": "q", "target_format": "json", "pattern": r"(\w+)", "replacement": '"$1"'})
        assert engine.apply_rules("hello world", "json") == '"hello" "world"'

    def test_bad_pattern_fails_at_load(self):
        with pytest.raises(ConfigurationError):
            make_engine({"id": "bad", "target_format": "json", "pattern": "("})

    def test_bad_condition_pattern_fails_at_load(self):
        with pytest.raises(ConfigurationError):
            make_engine({
                "id": "bad", "target_format": "json", "pattern": "x",
                "conditions": [{"field": "content_length", "operator": "matches", "value": "["}],
            })

    def test_bad_replacement_leaves_text(self):
        engine = make_engine({"id": "r", "target_format": "json", "pattern": "(a)", "replacement": r"\2"})
        assert engine.apply_rules("abc", "json") == "abc"

    def test_builtin_condition(self):
        engine = make_engine({
            "id": "r", "target_format": "json", "pattern": "h", "replacement": "H",
            "conditions": [{"field": "content_length", "operator": "not_equals", "value": 2}],
        })
        assert engine.apply_rules("hi", "json") == "hi"
        assert engine.apply_rules("hey", "json") == "Hey"

    def test_regex_field_condition(self):
        engine = make_engine({
            "id": "r", "target_format": "yaml", "pattern": "old", "replacement": "new",
            "conditions": [{"field": r"version:\s*(\d+)", "operator": "equals", "value": "2"}],
        })
        assert engine.apply_rules("version: 2\nname: old", "yaml") == "version: 2\nname: new"
        assert engine.apply_rules("version: 1\nname: old", "yaml") == "version: 1\nname: old"

    def test_matches_condition(self):
        engine = make_engine({
            "id": "r", "target_format": "csv", "pattern": ";", "replacement": ",",
            "conditions": [{"field": "line_count", "operator": "matches", "value": "^[1-3]$"}],
        })
        assert engine.apply_rules("a;b", "csv") == "a,b"
        assert engine.apply_rules("a;b\n1\n2\n3", "csv") == "a;b\n1\n2\n3"

    def test_rules_run_by_priority(self):
        engine = make_engine(
            {"id": "second", "target_format": "json", "priority": 1, "pattern": "b", "replacement": "c"},
            {"id": "first", "target_format": "json", "priority": 9, "pattern": "a", "replacement": "b"},
        )
        assert engine.apply_rules("a", "json") == "c"
        assert [r.id for r in engine.get_rules_for_format("json")] == ["first", "second"]

    def test_other_formats_untouched(self):
        engine = make_engine({"id": "r", "target_format": "json", "pattern": "a", "replacement": "b"})
        assert engine.apply_rules("a", "yaml") == "a"
        assert engine.has_rules_for_format("json")
        assert not engine.has_rules_for_format(Format.YAML)

    def test_statistics(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        stats = CustomRuleEngine.from_file(path).get_statistics()
        assert (stats.total_rules, stats.enabled_rules, stats.format_count) == (3, 2, 2)

    def test_strategies(self):
        engine = make_engine({"id": "r", "target_format": "json", "priority": 9, "pattern": "a"})
        strategies = engine.strategies_for("json")
        assert [s.name for s in strategies] == ["CustomRule[r]"]
        assert strategies[0].priority == RULE_PRIORITY_BASE + 9

    def test_rules_run_before_builtin_strategies(self):
        cfg = RepairConfig(custom_rules=[
            CustomRule(id="todo", target_format="markdown", pattern="TODO", replacement="DONE"),
        ])
        repairer = get_repairer("markdown", rules=cfg)
        assert repairer.repair("#Title TODO") == "# Title DONE"
        assert repairer.last_applied[0] == "CustomRule[todo]"


class TestResolveRules:
    def test_none_without_rules_file(self, monkeypatch):
        monkeypatch.setattr(config, "RULES_FILE", None)
        assert resolve_rules(None) is None

    def test_rules_file_from_config(self, tmp_path, monkeypatch):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        monkeypatch.setattr(config, "RULES_FILE", path)
        assert resolve_rules(None).has_rules_for_format("markdown")

    def test_engines_cached_per_path(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        assert resolve_rules(path) is resolve_rules(str(path))

    def test_concurrent_resolution_builds_one_engine(self, tmp_path):
        path = tmp_path / "shared.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        with ThreadPoolExecutor(max_workers=8) as executor:
            engines = list(executor.map(lambda _: resolve_rules(path), range(32)))
        assert all(engine is engines[0] for engine in engines)

    def test_passthrough(self):
        engine = CustomRuleEngine()
        assert resolve_rules(engine) is engine
        assert isinstance(resolve_rules(RepairConfig()), CustomRuleEngine)


class TestRuleTemplates:
    def test_all_templates_valid(self):
        templates = RuleTemplates.get_all_templates()
        assert len(templates) == 8
        assert len({t.id for t in templates}) == 8
        engine = CustomRuleEngine(RepairConfig(custom_rules=templates))
        assert engine.get_statistics().enabled_rules == 8

    def test_csv_quotes(self):
        engine = CustomRuleEngine(RepairConfig(custom_rules=[RuleTemplates.fix_csv_quotes()]))
        assert engine.apply_rules("name,city\nAda,New York", "csv") == 'name,city\nAda,"New York"'

    def test_markdown_headers(self):
        engine = CustomRuleEngine(RepairConfig(custom_rules=[RuleTemplates.fix_malformed_headers()]))
        assert engine.apply_rules("#Title\n##Sub", "markdown") == "# Title\n## Sub"

    def test_ini_equals(self):
        engine = CustomRuleEngine(RepairConfig(custom_rules=[RuleTemplates.add_missing_equals()]))
        assert engine.apply_rules("host localhost", "ini") == "host = localhost"
