"""repair malformed structured text produced by language models"""

import logging

from .advanced import AdvancedRepairer, AdvancedValidator
from .api import confidence, needs_repair, repair, repair_with_report, supported_formats, validate
from .config import AnyRepairConfig, config
from .custom_rules import CustomRuleEngine, RuleTemplates
from .detection import detect_format
from .errors import (
    ConfigurationError,
    InvalidNumberError,
    RepairError,
    SerializationError,
    TooDeeplyNestedError,
    UnexpectedCharacterError,
)
from .formats import (
    CsvRepairer,
    EnhancedJsonRepairer,
    IniRepairer,
    JsonRepairer,
    MarkdownRepairer,
    TomlRepairer,
    XmlRepairer,
    YamlRepairer,
    get_repairer,
)
from .formats.json_repair import from_file, load, loads, repair_json
from .models import Format, RepairOutcome
from .rules_schema import CustomRule, RepairConfig, load_repair_config
from .streaming import StreamingRepair

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "repair",
    "repair_with_report",
    "confidence",
    "needs_repair",
    "validate",
    "detect_format",
    "supported_formats",
    "get_repairer",
    "repair_json",
    "loads",
    "load",
    "from_file",
    "AdvancedRepairer",
    "AdvancedValidator",
    "StreamingRepair",
    "JsonRepairer",
    "EnhancedJsonRepairer",
    "YamlRepairer",
    "XmlRepairer",
    "TomlRepairer",
    "CsvRepairer",
    "IniRepairer",
    "MarkdownRepairer",
    "CustomRuleEngine",
    "RuleTemplates",
    "CustomRule",
    "RepairConfig",
    "load_repair_config",
    "Format",
    "RepairOutcome",
    "AnyRepairConfig",
    "config",
    "RepairError",
    "UnexpectedCharacterError",
    "InvalidNumberError",
    "TooDeeplyNestedError",
    "SerializationError",
    "ConfigurationError",
]
