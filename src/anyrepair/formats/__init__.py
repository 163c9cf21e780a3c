"""per-format repairers"""

from typing import Dict, Type, Union

from ..custom_rules import RulesSource, resolve_rules
from ..models import Format
from .base import GenericRepairer
from .csv_repair import CsvRepairer
from .ini_repair import IniRepairer
from .json_repair import EnhancedJsonRepairer, JsonRepairer
from .markdown_repair import MarkdownRepairer
from .toml_repair import TomlRepairer
from .xml_repair import XmlRepairer
from .yaml_repair import YamlRepairer

REPAIRERS: Dict[Format, Type[GenericRepairer]] = {
    Format.JSON: JsonRepairer,
    Format.YAML: YamlRepairer,
    Format.XML: XmlRepairer,
    Format.TOML: TomlRepairer,
    Format.CSV: CsvRepairer,
    Format.INI: IniRepairer,
    Format.MARKDOWN: MarkdownRepairer,
}


def get_repairer(fmt: Union[Format, str], rules: RulesSource = None) -> GenericRepairer:
    """fresh repairer for ``fmt`` with any custom rules for it injected first."""
    fmt = Format.parse(fmt)
    engine = resolve_rules(rules)
    extra = engine.strategies_for(fmt) if engine is not None else None
    return REPAIRERS[fmt](extra_strategies=extra)


__all__ = [
    "GenericRepairer",
    "JsonRepairer",
    "EnhancedJsonRepairer",
    "YamlRepairer",
    "XmlRepairer",
    "TomlRepairer",
    "CsvRepairer",
    "IniRepairer",
    "MarkdownRepairer",
    "REPAIRERS",
    "get_repairer",
]
