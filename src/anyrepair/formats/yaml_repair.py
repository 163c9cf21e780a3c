"""YAML repair strategies"""

import re
from typing import Iterable, List, Optional

from ..interfaces import RepairStrategy
from ..models import Format
from ..validators import YamlValidator
from .base import ExtractFencedBlock, GenericRepairer, RegexStrategy, map_lines

BARE_KEY_LINE = re.compile(r"^(\s*[A-Za-z_][\w\-]*)\s*$")
TIGHT_COLON = re.compile(r"^(\s*[A-Za-z_][\w\-]*):(?=[^\s/:])")
TIGHT_DASH = re.compile(r"^(\s*)-(?=[^\s\-\d])")
UNCLOSED_QUOTE = re.compile(r"""^([ \t]*[^\s#:][^:#\n]*:[ \t]+)(["'])([^"'\n]*)$""", re.MULTILINE)


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _is_content(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


class NormalizeTabs(RepairStrategy):
    """YAML forbids tabs in indentation."""

    name = "NormalizeTabs"
    priority = 6

    def apply(self, text: str) -> str:
        def fix(line: str) -> str:
            body = line.lstrip(" \t")
            leading = line[:len(line) - len(body)]
            return leading.replace("\t", "  ") + body
        return map_lines(text, fix)


class FixIndentation(RepairStrategy):
    """Snap dedents that land between known indentation levels.

    Tracks the stack of indentation levels seen so far; a line that dedents
    to a level never opened is moved to the nearest open level (the deeper
    one on a tie).
    """

    name = "FixIndentation"
    priority = 5

    def apply(self, text: str) -> str:
        levels = [0]
        out: List[str] = []
        for line in text.split("\n"):
            if not _is_content(line):
                out.append(line)
                continue
            indent = _indent(line)
            if indent > levels[-1]:
                levels.append(indent)
            elif indent not in levels:
                indent = min(levels, key=lambda level: (abs(level - indent), -level))
                line = " " * indent + line.lstrip(" ")
            while levels[-1] > indent:
                levels.pop()
            out.append(line)
        return "\n".join(out)


class AddMissingColons(RepairStrategy):
    """``key`` followed by an indented block becomes ``key:``; ``key:value`` gets a space."""

    name = "AddMissingColons"
    priority = 4

    def apply(self, text: str) -> str:
        lines = text.split("\n")
        out: List[str] = []
        for i, line in enumerate(lines):
            match = BARE_KEY_LINE.match(line)
            if match:
                nxt = next((later for later in lines[i + 1:] if _is_content(later)), None)
                if nxt is not None and _indent(nxt) > _indent(line):
                    line = match.group(1) + ":"
            out.append(TIGHT_COLON.sub(r"\1: ", line))
        return "\n".join(out)


class FixListFormatting(RepairStrategy):
    name = "FixListFormatting"
    priority = 3

    def apply(self, text: str) -> str:
        return map_lines(text, lambda line: TIGHT_DASH.sub(r"\1- ", line))


def default_yaml_strategies() -> List[RepairStrategy]:
    return [
        ExtractFencedBlock(),
        NormalizeTabs(),
        FixIndentation(),
        AddMissingColons(),
        FixListFormatting(),
        RegexStrategy("FixUnclosedQuotes", UNCLOSED_QUOTE, r"\1\2\3\2", priority=2),
    ]


class YamlRepairer(GenericRepairer):
    format = Format.YAML

    def __init__(self, extra_strategies: Optional[Iterable[RepairStrategy]] = None):
        super().__init__(YamlValidator(), default_yaml_strategies(), extra_strategies)
