"""INI repair strategies"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..interfaces import RepairStrategy
from ..models import Format
from ..validators import IniValidator
from .base import ExtractFencedBlock, GenericRepairer, RegexStrategy, map_lines

OPEN_SECTION = re.compile(r"^(\s*)\[([^\]\n]*?)\s*$")
CLOSE_SECTION = re.compile(r"^(\s*)([A-Za-z_][\w .\-]*)\]\s*$")
MISSING_EQUALS = re.compile(r"^(\s*)([^=:\s\[#;]+)\s+([^=:\s#;].*)$")
SECTION_LINE = re.compile(r"^\s*\[([^\]]+)\]\s*$")
KEY_LINE = re.compile(r"^\s*([^=:\s][^=:]*?)\s*[=:]")


class FixMalformedSections(RepairStrategy):
    """``[name`` and ``name]`` become ``[name]``."""

    name = "FixMalformedSections"
    priority = 6

    def apply(self, text: str) -> str:
        def fix(line: str) -> str:
            if "=" in line:
                return line
            line = OPEN_SECTION.sub(r"\1[\2]", line)
            return CLOSE_SECTION.sub(r"\1[\2]", line)
        return map_lines(text, fix)


class FixMissingEquals(RepairStrategy):
    name = "FixMissingEquals"
    priority = 5

    def apply(self, text: str) -> str:
        return map_lines(text, lambda line: MISSING_EQUALS.sub(r"\1\2 = \3", line))


class MergeDuplicateSections(RepairStrategy):
    """Fold repeated sections into their first occurrence.

    Within a section a repeated key keeps its last value, at the position of
    its first occurrence.
    """

    name = "MergeDuplicateSections"
    priority = 3

    def apply(self, text: str) -> str:
        order: List[Optional[str]] = [None]
        sections: Dict[Optional[str], List[Tuple[Optional[str], str]]] = {None: []}
        current: Optional[str] = None
        for line in text.split("\n"):
            header = SECTION_LINE.match(line)
            if header:
                current = header.group(1).strip()
                if current not in sections:
                    sections[current] = []
                    order.append(current)
                continue
            key_match = KEY_LINE.match(line)
            key = key_match.group(1).strip().lower() if key_match and not line.lstrip().startswith(("#", ";")) else None
            entries = sections[current]
            if key is not None:
                for index, (existing, _) in enumerate(entries):
                    if existing == key:
                        entries[index] = (key, line)
                        break
                else:
                    entries.append((key, line))
            else:
                entries.append((None, line))

        out: List[str] = []
        for name in order:
            body = [line for _, line in sections[name]]
            if name is not None:
                if out and out[-1].strip():
                    out.append("")
                out.append(f"[{name}]")
            while body and not body[-1].strip():
                body.pop()
            out.extend(body)
        return "\n".join(out).strip("\n")


def default_ini_strategies() -> List[RepairStrategy]:
    return [
        ExtractFencedBlock(),
        FixMalformedSections(),
        FixMissingEquals(),
        RegexStrategy("NormalizeComments", re.compile(r"^(\s*)//\s?", re.MULTILINE), r"\1# ", priority=7),
        MergeDuplicateSections(),
    ]


class IniRepairer(GenericRepairer):
    format = Format.INI

    def __init__(self, extra_strategies: Optional[Iterable[RepairStrategy]] = None):
        super().__init__(IniValidator(), default_ini_strategies(), extra_strategies)
