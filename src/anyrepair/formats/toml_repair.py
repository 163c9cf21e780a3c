"""TOML repair strategies"""

import re
from typing import Iterable, List, Optional

from ..interfaces import RepairStrategy
from ..models import Format
from ..validators import TomlValidator
from .base import ExtractFencedBlock, GenericRepairer, map_lines

UNCLOSED_HEADER = re.compile(r"^(\s*)\[([^\]=\n]+?)\s*$")
MISSING_EQUALS = re.compile(r"^(\s*[A-Za-z_][\w\-]*)(?:\s*:\s+|\s+)(?=[^=\s])(.*)$")
ASSIGNMENT = re.compile(r"^(\s*[\w.\-\"']+\s*=\s*)(.*?)\s*$")
NUMBER = re.compile(r"^[+-]?(\d[\d_]*)(\.\d[\d_]*)?([eE][+-]?\d+)?$")
LEADING_ZEROS = re.compile(r"^([+-]?)0+(\d)")
DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}([Tt ]\d{2}:\d{2}(:\d{2})?(\.\d+)?(Z|[+-]\d{2}:\d{2})?)?$|^\d{2}:\d{2}(:\d{2})?$")
SPECIAL_FLOATS = {"inf", "+inf", "-inf", "nan", "+nan", "-nan"}


def _is_header(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("[")


class FixTableHeaders(RepairStrategy):
    name = "FixTableHeaders"
    priority = 7

    def apply(self, text: str) -> str:
        return map_lines(text, lambda line: UNCLOSED_HEADER.sub(r"\1[\2]", line))


class FixMissingEquals(RepairStrategy):
    """``key value`` and ``key: value`` become ``key = value``."""

    name = "FixMissingEquals"
    priority = 6

    def apply(self, text: str) -> str:
        def fix(line: str) -> str:
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or _is_header(line) or "=" in line:
                return line
            return MISSING_EQUALS.sub(r"\1 = \2", line)
        return map_lines(text, fix)


class FixValues(RepairStrategy):
    """Normalize right-hand sides of assignments.

    Capitalized booleans are lowered, numbers lose leading zeros, unclosed
    arrays and strings are closed, and bare words (or dotted versions) are
    quoted.
    """

    name = "FixValues"
    priority = 5

    def apply(self, text: str) -> str:
        return map_lines(text, self._fix_line)

    def _fix_line(self, line: str) -> str:
        if _is_header(line) or line.strip().startswith("#"):
            return line
        match = ASSIGNMENT.match(line)
        if not match:
            return line
        lhs, value = match.groups()
        comment = ""
        if value and value[0] not in "\"'" and " #" in value:
            value, comment = value.split(" #", 1)
            value, comment = value.rstrip(), " #" + comment
        return lhs + self.fix_value(value) + comment

    def fix_value(self, value: str) -> str:
        if not value:
            return '""'
        lowered = value.lower()
        if lowered in ("true", "false"):
            return lowered
        if lowered in SPECIAL_FLOATS or DATETIME.match(value):
            return value
        if NUMBER.match(value):
            return LEADING_ZEROS.sub(r"\1\2", value) if not value.lstrip("+-").startswith("0.") else value
        if value[0] == "[":
            opens = value.count("[") - value.count("]")
            return value + "]" * max(opens, 0)
        if value[0] == "{":
            return value if value.endswith("}") else value + "}"
        if value[0] in "\"'":
            quote = value[0]
            if value.startswith(quote * 3):
                return value
            if len(value) == 1 or not value.endswith(quote):
                return value + quote
            return value
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'


def default_toml_strategies() -> List[RepairStrategy]:
    return [
        ExtractFencedBlock(),
        FixTableHeaders(),
        FixMissingEquals(),
        FixValues(),
    ]


class TomlRepairer(GenericRepairer):
    format = Format.TOML

    def __init__(self, extra_strategies: Optional[Iterable[RepairStrategy]] = None):
        super().__init__(TomlValidator(), default_toml_strategies(), extra_strategies)
