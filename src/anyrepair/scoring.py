"""Heuristic confidence scoring.

Each format has a small additive score built from constant weights over
surface features (balanced delimiters, separators, line structure). A text
the strict validator of its format accepts always scores 1.0; the additive
weights of every format sum to less than 1.0, so nothing else reaches it.
"""

import logging
from functools import lru_cache
from typing import Callable, Dict, List, Optional

from .models import Format
from .validators import get_validator

logger = logging.getLogger(__name__)


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def _content_lines(text: str) -> List[str]:
    return [line for line in text.splitlines() if line.strip()]


class ConfidenceScorer:
    """per-format confidence heuristics."""

    # JSON feature weights
    BALANCED_BRACES = 0.2
    BALANCED_BRACKETS = 0.2
    HAS_QUOTES = 0.1
    HAS_COLONS = 0.1
    HAS_COMMAS = 0.1
    HAS_NEWLINES = 0.1

    def __init__(self):
        self._scorers: Dict[Format, Callable[[str], float]] = {
            Format.JSON: self.score_json,
            Format.YAML: self.score_yaml,
            Format.XML: self.score_xml,
            Format.TOML: self.score_toml,
            Format.CSV: self.score_csv,
            Format.INI: self.score_ini,
            Format.MARKDOWN: self.score_markdown,
        }

    def score(self, text: str, fmt: Optional[Format] = None) -> float:
        if fmt is None:
            return self.score_generic(text)
        try:
            fmt = Format.parse(fmt)
        except ValueError:
            return self.score_generic(text)
        if not text or not text.strip():
            return 0.0
        if get_validator(fmt).is_valid(text):
            return 1.0
        return _clamp(self._scorers[fmt](text))

    def score_json(self, text: str) -> float:
        if get_validator(Format.JSON).is_valid(text):
            return 1.0
        score = 0.0
        opens, closes = text.count("{"), text.count("}")
        if opens and opens == closes:
            score += self.BALANCED_BRACES
        opens, closes = text.count("["), text.count("]")
        if opens and opens == closes:
            score += self.BALANCED_BRACKETS
        if '"' in text:
            score += self.HAS_QUOTES
        if ":" in text:
            score += self.HAS_COLONS
        if "," in text:
            score += self.HAS_COMMAS
        if "\n" in text:
            score += self.HAS_NEWLINES
        return _clamp(score)

    def score_generic(self, text: str) -> float:
        """format-agnostic score used when no format is known."""
        if not text or not text.strip():
            return 0.0
        return self.score_json(text)

    def score_yaml(self, text: str) -> float:
        score = 0.0
        if "---" in text or "..." in text:
            score += 0.2
        if ":" in text:
            score += 0.3
        consistent = True
        for line in _content_lines(text):
            indent = len(line) - len(line.lstrip(" "))
            leading = line[:len(line) - len(line.lstrip())]
            if "\t" in leading or indent % 2:
                consistent = False
                break
        if consistent:
            score += 0.25
        if len(_content_lines(text)) > 1 and ":" in text:
            score += 0.15
        return _clamp(score)

    def score_xml(self, text: str) -> float:
        score = 0.0
        stripped = text.strip()
        if stripped.startswith("<?xml"):
            score += 0.2
        opens = stripped.count("<") - stripped.count("</") - stripped.count("<?") - stripped.count("<!")
        closes = stripped.count("</") + stripped.count("/>")
        if opens > 0 and opens == closes:
            score += 0.3
        elif abs(opens - closes) <= 1:
            score += 0.15

        stack: List[str] = []
        nested_ok = True
        for part in stripped.split("<")[1:]:
            tag = part.split(">", 1)[0].strip()
            if not tag or tag[0] in "?!" or tag.endswith("/"):
                continue
            if tag.startswith("/"):
                name = tag[1:].split()[0] if tag[1:].split() else ""
                if not stack or stack[-1] != name:
                    nested_ok = False
                    break
                stack.pop()
            else:
                stack.append(tag.split()[0])
        if nested_ok and not stack:
            score += 0.35
        elif nested_ok:
            score += 0.15
        return _clamp(score)

    def score_markdown(self, text: str) -> float:
        score = 0.0
        if "#" in text:
            score += 0.15
        if "**" in text or "__" in text:
            score += 0.15
        if "*" in text or "-" in text:
            score += 0.1
        if "[" in text and "]" in text:
            score += 0.1
        if "```" in text:
            score += 0.25 if text.count("```") % 2 == 0 else 0.1
        if len(text.splitlines()) > 1:
            score += 0.1
        if text.strip():
            score += 0.05
        return _clamp(score)

    def score_csv(self, text: str) -> float:
        score = 0.0
        lines = _content_lines(text)
        if "," in text:
            score += 0.3
        if len(lines) > 1:
            score += 0.2
        if lines:
            columns = {line.count(",") for line in lines}
            score += 0.35 if len(columns) == 1 else 0.1
        if '"' in text:
            score += 0.05
        return _clamp(score)

    def score_toml(self, text: str) -> float:
        score = 0.0
        if "[" in text and "]" in text:
            score += 0.25
        if "=" in text:
            score += 0.25
        structured = True
        for line in _content_lines(text):
            stripped = line.strip()
            if stripped.startswith("#"):
                continue
            if not ((stripped.startswith("[") and stripped.endswith("]")) or "=" in stripped):
                structured = False
                break
        score += 0.35 if structured else 0.1
        return _clamp(score)

    def score_ini(self, text: str) -> float:
        score = 0.0
        lines = [line.strip() for line in _content_lines(text)]
        if any(line.startswith("[") and line.endswith("]") for line in lines):
            score += 0.3
        if any("=" in line for line in lines):
            score += 0.25
        body = [line for line in lines if line[0] not in "#;["]
        if body and all("=" in line or ":" in line for line in body):
            score += 0.3
        return _clamp(score)


@lru_cache(maxsize=1)
def get_scorer() -> ConfidenceScorer:
    return ConfidenceScorer()


def score(text: str, fmt: Optional[Format] = None) -> float:
    return get_scorer().score(text, fmt)
