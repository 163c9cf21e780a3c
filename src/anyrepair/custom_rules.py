"""User-defined regex repair rules.

Rules come from a :class:`~anyrepair.rules_schema.RepairConfig`. Each enabled
rule is compiled once at load time, grouped under its target format and
ordered by priority. Rules run ahead of the built-in strategies of their
format, either directly through :meth:`CustomRuleEngine.apply_rules` or as
strategies injected into a repairer's chain.
"""

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Union

from .config import config
from .errors import ConfigurationError
from .interfaces import RepairStrategy
from .models import Format
from .rules_schema import ConditionOperator, CustomRule, RepairConfig, RuleCondition, load_repair_config

logger = logging.getLogger(__name__)

# custom rules sort ahead of every built-in strategy
RULE_PRIORITY_BASE = 1000

# $1 and ${name} group references are accepted alongside \1 and \g<name>
_DOLLAR_REF = re.compile(r"\$(\d+)|\$\{(\w+)\}")

BUILTIN_FIELDS: Dict[str, Callable[[str], str]] = {
    "content_length": lambda text: str(len(text)),
    "line_count": lambda text: str(len(text.splitlines())),
    "contains_newlines": lambda text: str("\n" in text).lower(),
    "starts_with_whitespace": lambda text: str(bool(text) and text[0].isspace()).lower(),
    "ends_with_whitespace": lambda text: str(bool(text) and text[-1].isspace()).lower(),
}


def translate_replacement(replacement: str) -> str:
    return _DOLLAR_REF.sub(lambda m: f"\\g<{m.group(1) or m.group(2)}>", replacement)


def _compile(pattern: str, rule_id: str, what: str) -> Pattern[str]:
    try:
        return re.compile(pattern, re.MULTILINE)
    except re.error as e:
        raise ConfigurationError(f"Invalid {what} '{pattern}' in rule '{rule_id}': {e}") from e


@dataclass
class RuleStatistics:
    total_rules: int
    enabled_rules: int
    format_count: int


@dataclass
class _CompiledRule:
    rule: CustomRule
    pattern: Pattern[str]
    replacement: str
    field_patterns: Dict[str, Pattern[str]]
    value_patterns: Dict[str, Pattern[str]]


class RuleStrategy(RepairStrategy):
    """a compiled custom rule exposed as a chain strategy"""

    def __init__(self, engine: "CustomRuleEngine", compiled: _CompiledRule):
        self.engine = engine
        self.compiled = compiled
        self.name = f"CustomRule[{compiled.rule.id}]"
        self.priority = RULE_PRIORITY_BASE + compiled.rule.priority

    def apply(self, text: str) -> str:
        return self.engine.apply_rule(self.compiled, text)


class CustomRuleEngine:
    def __init__(self, repair_config: Optional[RepairConfig] = None):
        self.rules: Dict[str, List[CustomRule]] = {}
        self._compiled: Dict[str, List[_CompiledRule]] = {}
        self.disabled_count = 0
        if repair_config is not None:
            self.load_from_config(repair_config)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CustomRuleEngine":
        return cls(load_repair_config(path))

    def load_from_config(self, repair_config: RepairConfig) -> None:
        """compile every enabled rule; a bad pattern fails the whole load."""
        rules: Dict[str, List[CustomRule]] = {}
        compiled: Dict[str, List[_CompiledRule]] = {}
        disabled = 0
        for rule in repair_config.custom_rules:
            if not rule.enabled:
                disabled += 1
                continue
            entry = self._compile_rule(rule)
            rules.setdefault(rule.target_format, []).append(rule)
            compiled.setdefault(rule.target_format, []).append(entry)

        for fmt in rules:
            rules[fmt].sort(key=lambda r: r.priority, reverse=True)
            compiled[fmt].sort(key=lambda c: c.rule.priority, reverse=True)

        self.rules = rules
        self._compiled = compiled
        self.disabled_count = disabled
        logger.debug(f"Loaded {sum(len(v) for v in rules.values())} custom rules",
                     extra={"formats": sorted(rules)})

    def _compile_rule(self, rule: CustomRule) -> _CompiledRule:
        field_patterns: Dict[str, Pattern[str]] = {}
        value_patterns: Dict[str, Pattern[str]] = {}
        for condition in rule.conditions:
            if condition.field not in BUILTIN_FIELDS:
                field_patterns[condition.field] = _compile(condition.field, rule.id, "condition field")
            if condition.operator in (ConditionOperator.MATCHES, ConditionOperator.NOT_MATCHES):
                value_patterns[condition.value] = _compile(condition.value, rule.id, "condition pattern")
        return _CompiledRule(
            rule=rule,
            pattern=_compile(rule.pattern, rule.id, "pattern"),
            replacement=translate_replacement(rule.replacement),
            field_patterns=field_patterns,
            value_patterns=value_patterns,
        )

    def _field_value(self, compiled: _CompiledRule, name: str, text: str) -> str:
        if name in BUILTIN_FIELDS:
            return BUILTIN_FIELDS[name](text)
        match = compiled.field_patterns[name].search(text)
        if match is None or not match.groups():
            return ""
        return match.group(1) or ""

    def _compare(self, compiled: _CompiledRule, actual: str, condition: RuleCondition) -> bool:
        op = condition.operator
        expected = condition.value
        if op is ConditionOperator.EQUALS:
            return actual == expected
        if op is ConditionOperator.NOT_EQUALS:
            return actual != expected
        if op is ConditionOperator.CONTAINS:
            return expected in actual
        if op is ConditionOperator.NOT_CONTAINS:
            return expected not in actual
        if op is ConditionOperator.STARTS_WITH:
            return actual.startswith(expected)
        if op is ConditionOperator.ENDS_WITH:
            return actual.endswith(expected)
        matched = compiled.value_patterns[expected].search(actual) is not None
        return matched if op is ConditionOperator.MATCHES else not matched

    def conditions_met(self, compiled: _CompiledRule, text: str) -> bool:
        return all(
            self._compare(compiled, self._field_value(compiled, condition.field, text), condition)
            for condition in compiled.rule.conditions
        )

    def apply_rule(self, compiled: _CompiledRule, text: str) -> str:
        if not self.conditions_met(compiled, text):
            return text
        try:
            result = compiled.pattern.sub(compiled.replacement, text)
        except (re.error, IndexError) as e:
            logger.warning(f"custom rule {compiled.rule.id} has a bad replacement: {e}",
                           extra={"rule": compiled.rule.id})
            return text
        if result != text:
            logger.debug(f"Applied custom rule '{compiled.rule.name or compiled.rule.id}'",
                         extra={"rule": compiled.rule.id, "format": compiled.rule.target_format})
        return result

    def apply_rules(self, text: str, fmt: Union[Format, str]) -> str:
        result = text
        for compiled in self._compiled.get(Format.parse(fmt).value, []):
            result = self.apply_rule(compiled, result)
        return result

    def strategies_for(self, fmt: Union[Format, str]) -> List[RepairStrategy]:
        return [RuleStrategy(self, compiled) for compiled in self._compiled.get(Format.parse(fmt).value, [])]

    def get_rules_for_format(self, fmt: Union[Format, str]) -> List[CustomRule]:
        return list(self.rules.get(Format.parse(fmt).value, []))

    def has_rules_for_format(self, fmt: Union[Format, str]) -> bool:
        return bool(self.rules.get(Format.parse(fmt).value))

    def get_statistics(self) -> RuleStatistics:
        enabled = sum(len(rules) for rules in self.rules.values())
        return RuleStatistics(
            total_rules=enabled + self.disabled_count,
            enabled_rules=enabled,
            format_count=len(self.rules),
        )


class RuleTemplates:
    """starter rules users can copy into a rule file"""

    @staticmethod
    def add_quotes_around_strings(fmt: str) -> CustomRule:
        return CustomRule(
            id=f"add_quotes_{fmt}",
            name=f"Add quotes around unquoted strings ({fmt})",
            description="Quote bare string values after a key",
            target_format=fmt,
            priority=5,
            pattern=r'(\w+)\s*:\s*([^",\s\d\[{][^,\n]*[^",\s])\s*([,\n])',
            replacement=r'\1: "\2"\3',
        )

    @staticmethod
    def add_missing_colons(fmt: str) -> CustomRule:
        return CustomRule(
            id=f"add_colons_{fmt}",
            name=f"Add missing colons ({fmt})",
            description="Insert the colon between a key and its value",
            target_format=fmt,
            priority=6,
            pattern=r"^(\s*)([a-zA-Z_][a-zA-Z0-9_]*)\s+([^:\s].*)$",
            replacement=r"\1\2: \3",
        )

    @staticmethod
    def fix_malformed_headers() -> CustomRule:
        return CustomRule(
            id="fix_malformed_headers",
            name="Fix malformed headers",
            description="Add a space after header hashes",
            target_format="markdown",
            priority=7,
            pattern=r"^(#{1,6})([^\s#])",
            replacement=r"\1 \2",
        )

    @staticmethod
    def add_missing_equals() -> CustomRule:
        return CustomRule(
            id="add_missing_equals",
            name="Add missing equals signs",
            description="Insert '=' between a key and its value",
            target_format="ini",
            priority=6,
            pattern=r"^(\s*)([a-zA-Z_][a-zA-Z0-9_]*)\s+([^=\s].*)$",
            replacement=r"\1\2 = \3",
        )

    @staticmethod
    def fix_csv_quotes() -> CustomRule:
        return CustomRule(
            id="fix_csv_quotes",
            name="Quote CSV fields containing spaces",
            description="Wrap unquoted fields that contain spaces in double quotes",
            target_format="csv",
            priority=5,
            pattern=r'(^|,)([^",\n]* [^",\n]*)(?=,|$)',
            replacement=r'\1"\2"',
        )

    @classmethod
    def get_all_templates(cls) -> List[CustomRule]:
        return [
            cls.add_quotes_around_strings("json"),
            cls.add_quotes_around_strings("yaml"),
            cls.add_quotes_around_strings("toml"),
            cls.add_missing_colons("yaml"),
            cls.add_missing_colons("json"),
            cls.fix_malformed_headers(),
            cls.add_missing_equals(),
            cls.fix_csv_quotes(),
        ]


RulesSource = Union[CustomRuleEngine, RepairConfig, str, Path, None]

_file_engines: Dict[str, CustomRuleEngine] = {}
_file_engines_lock = threading.Lock()


def resolve_rules(rules: RulesSource = None) -> Optional[CustomRuleEngine]:
    """Turn whatever the caller passed as ``rules`` into an engine.

    ``None`` falls back to ``ANYREPAIR_RULES_FILE`` when it is set. Engines
    built from files are cached per path.
    """
    if isinstance(rules, CustomRuleEngine):
        return rules
    if isinstance(rules, RepairConfig):
        return CustomRuleEngine(rules)
    if rules is None:
        if config.RULES_FILE is None:
            return None
        rules = config.RULES_FILE
    key = str(Path(rules).resolve())
    with _file_engines_lock:
        if key not in _file_engines:
            _file_engines[key] = CustomRuleEngine.from_file(rules)
        return _file_engines[key]
