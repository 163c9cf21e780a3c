"""Markdown repair strategies"""

import re
from typing import Callable, Iterable, List, Optional

from ..interfaces import RepairStrategy
from ..models import Format
from ..validators import FENCE_LINE, MarkdownValidator
from .base import GenericRepairer, RegexStrategy

HEADER_SPACING = re.compile(r"^(\s*#{1,6})([^#\s])")
NUMBERED_ITEM = re.compile(r"^(\s*\d+\.)([^\s\d])")
DASH_ITEM = re.compile(r"^(\s*)-(?=[^\s\-])")
WIKI_LINK = re.compile(r"\[\[([^\[\]]+)\]\]")
TABLE_SEPARATOR = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")
BLANK_RUNS = re.compile(r"\n{3,}")


def map_prose_lines(text: str, fn: Callable[[str], str]) -> str:
    """apply ``fn`` to lines outside fenced code blocks."""
    out: List[str] = []
    in_fence = False
    for line in text.split("\n"):
        if FENCE_LINE.match(line):
            in_fence = not in_fence
            out.append(line)
            continue
        out.append(line if in_fence else fn(line))
    return "\n".join(out)


class CloseCodeFences(RepairStrategy):
    name = "CloseCodeFences"
    priority = 6

    def apply(self, text: str) -> str:
        fences = sum(1 for line in text.split("\n") if FENCE_LINE.match(line))
        if fences % 2:
            return text.rstrip("\n") + "\n```"
        return text


class FixHeaderSpacing(RepairStrategy):
    name = "FixHeaderSpacing"
    priority = 5

    def apply(self, text: str) -> str:
        return map_prose_lines(text, lambda line: HEADER_SPACING.sub(r"\1 \2", line))


class FixListItems(RepairStrategy):
    name = "FixListItems"
    priority = 4

    def apply(self, text: str) -> str:
        def fix(line: str) -> str:
            line = NUMBERED_ITEM.sub(r"\1 \2", line)
            return DASH_ITEM.sub(r"\1- ", line)
        return map_prose_lines(text, fix)


class BalanceEmphasis(RepairStrategy):
    """close the last unmatched ``**`` at the end of its line."""

    name = "BalanceEmphasis"
    priority = 3

    def apply(self, text: str) -> str:
        in_fence = False
        prose_count = 0
        last_open: Optional[int] = None
        lines = text.split("\n")
        for index, line in enumerate(lines):
            if FENCE_LINE.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            count = line.count("**")
            prose_count += count
            if count % 2:
                last_open = index
        if prose_count % 2 and last_open is not None:
            lines[last_open] = lines[last_open].rstrip() + "**"
        return "\n".join(lines)


class FixLinks(RepairStrategy):
    """``[[target]]`` wiki links become plain ``[target]`` references."""

    name = "FixLinks"
    priority = 2

    def apply(self, text: str) -> str:
        def fix(line: str) -> str:
            line = WIKI_LINK.sub(r"[\1]", line)
            return line.replace("[[", "[").replace("]]", "]")
        return map_prose_lines(text, fix)


class FixTables(RepairStrategy):
    """insert the header separator row a pipe table is missing."""

    name = "FixTables"
    priority = 1

    def apply(self, text: str) -> str:
        lines = text.split("\n")
        out: List[str] = []
        for index, line in enumerate(lines):
            out.append(line)
            if not self._is_row(line):
                continue
            previous = lines[index - 1] if index > 0 else ""
            nxt = lines[index + 1] if index + 1 < len(lines) else ""
            if not self._is_row(previous) and self._is_row(nxt) and not TABLE_SEPARATOR.match(nxt):
                cells = line.strip().strip("|").split("|")
                out.append("|" + "|".join(" --- " for _ in cells) + "|")
        return "\n".join(out)

    @staticmethod
    def _is_row(line: str) -> bool:
        stripped = line.strip()
        return stripped.count("|") >= 2 or (stripped.startswith("|") and stripped.endswith("|") and len(stripped) > 1)


def default_markdown_strategies() -> List[RepairStrategy]:
    return [
        CloseCodeFences(),
        FixHeaderSpacing(),
        FixListItems(),
        BalanceEmphasis(),
        FixLinks(),
        FixTables(),
        RegexStrategy("NormalizeBlankLines", BLANK_RUNS, "\n\n", priority=0),
    ]


class MarkdownRepairer(GenericRepairer):
    format = Format.MARKDOWN

    def __init__(self, extra_strategies: Optional[Iterable[RepairStrategy]] = None):
        super().__init__(MarkdownValidator(), default_markdown_strategies(), extra_strategies)
