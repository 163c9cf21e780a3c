"""user rule file schema"""

import json
import logging
import tomllib
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .models import Format

logger = logging.getLogger(__name__)


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    MATCHES = "matches"
    NOT_MATCHES = "not_matches"


class RuleCondition(BaseModel):
    """gate on a property of the text a rule is about to rewrite"""

    field: str = Field(..., description="Built-in field name, or a regex whose first group is compared.")
    operator: ConditionOperator = Field(default=ConditionOperator.EQUALS)
    value: str = Field(default="", description="Value the field is compared against.")

    @field_validator("operator", mode="before")
    @classmethod
    def _normalize_operator(cls, value):
        # accept NotEquals, not-equals and NOT_EQUALS spellings
        if not isinstance(value, str):
            return value
        value = value.strip().replace("-", "_")
        if value.isupper() or "_" in value:
            return value.lower()
        return "".join(f"_{c.lower()}" if c.isupper() else c for c in value).lstrip("_")

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value):
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)


class CustomRule(BaseModel):
    """one regex rewrite applied before the built-in strategies of its format"""

    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    description: str = Field(default="")
    target_format: str = Field(..., description="Format name the rule applies to.")
    priority: int = Field(default=5, ge=0, le=10)
    enabled: bool = Field(default=True)
    pattern: str = Field(..., min_length=1)
    replacement: str = Field(default="")
    conditions: List[RuleCondition] = Field(default_factory=list)

    @field_validator("target_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        return Format.parse(value).value

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()


class GlobalSettings(BaseModel):
    max_attempts: int = Field(default=3, gt=0)
    parallel_processing: bool = Field(default=True)
    min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    verbose: bool = Field(default=False)


class FormatSettings(BaseModel):
    """per-format strategy toggles"""

    enabled_strategies: List[str] = Field(default_factory=list)
    disabled_strategies: List[str] = Field(default_factory=list)


class RepairConfig(BaseModel):
    """Top level of a rule file.

    Unknown top-level keys are kept so files written for newer versions
    still load.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    global_settings: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    formats: Dict[str, FormatSettings] = Field(default_factory=dict)
    custom_rules: List[CustomRule] = Field(default_factory=list)

    @field_validator("formats")
    @classmethod
    def _normalize_format_keys(cls, value: Dict[str, FormatSettings]) -> Dict[str, FormatSettings]:
        return {Format.parse(key).value: settings for key, settings in value.items()}

    def add_custom_rule(self, rule: CustomRule) -> None:
        self.custom_rules.append(rule)

    def get_format_settings(self, fmt: Union[Format, str]) -> Optional[FormatSettings]:
        return self.formats.get(Format.parse(fmt).value)

    def get_enabled_rules_for_format(self, fmt: Union[Format, str]) -> List[CustomRule]:
        target = Format.parse(fmt).value
        return [rule for rule in self.custom_rules if rule.enabled and rule.target_format == target]


def parse_repair_config(data: Optional[dict], source: str = "<memory>") -> RepairConfig:
    try:
        return RepairConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid rule configuration: {e}", source=source) from e


def load_repair_config(path: Union[str, Path]) -> RepairConfig:
    """read a rule file; YAML, JSON or TOML chosen by suffix."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read rule file: {e}", source=str(path)) from e

    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(raw)
        elif suffix == ".toml":
            data = tomllib.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse rule file: {e}", source=str(path)) from e

    if data is not None and not isinstance(data, dict):
        raise ConfigurationError("Rule file must contain a mapping", source=str(path))
    cfg = parse_repair_config(data, source=str(path))
    logger.info(f"Loaded {len(cfg.custom_rules)} custom rules from {path}", extra={"rules_file": str(path)})
    return cfg
