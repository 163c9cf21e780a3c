"""Syntactic normalizations for JSON-like text.

Every strategy here is a flat text transformation; none of them parses.
Substitutions are applied only outside double-quoted string literals so
string contents (URLs, apostrophes, literal ``True``) survive untouched.
"""

import re
from functools import lru_cache
from typing import Dict, List, Optional

from ..interfaces import RepairStrategy
from ..recovery.trimmer import trim_trailing_content
from .base import map_outside_strings


class _JsonPatterns:
    """compiled once, shared read-only by every strategy."""

    def __init__(self):
        self.code_fence = re.compile(r"```(?:json|jsonc|json5|javascript|js)?[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
        self.open_fence = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
        self.line_comment = re.compile(r"(^|[\s,{\[])(?://|#)[^\n]*", re.MULTILINE)
        self.block_comment = re.compile(r"/\*.*?\*/", re.DOTALL)
        self.trailing_comma = re.compile(r",(\s*[}\]])")
        self.repeated_comma = re.compile(r",(\s*,)+")
        self.leading_comma = re.compile(r"([\[{]\s*),")
        self.bare_key = re.compile(r"([{,]|^)(\s*)([A-Za-z_$][\w$\-]*)(\s*:)", re.MULTILINE)
        self.leading_zeros = re.compile(r"([:\[,]\s*)(-?)0+(\d)")
        self.leading_dot = re.compile(r"([:\[,]\s*)(-?)\.(\d)")
        self.leading_plus = re.compile(r"([:\[,]\s*)\+(\d)")
        self.trailing_dot = re.compile(r"(\d)\.(?=\s*(?:[,}\]\n]|$))")
        self.dotted_number = re.compile(r"([:\[,]\s*)(\d+(?:\.\d+){2,})(?=\s*(?:[,}\]\n]|$))")
        self.loose_literal = re.compile(
            r"(?<![\w$\-])(True|TRUE|False|FALSE|None|NONE|none|Null|NULL|nil|NIL|undefined|NaN|-?Infinity)(?![\w$\-])"
        )
        self.undefined = re.compile(r"(?<![\w$])undefined(?![\w$])")
        self.ellipsis_item = re.compile(r",\s*(?:\.\.\.|…)(?=\s*[\]}])")


@lru_cache(maxsize=1)
def get_patterns() -> _JsonPatterns:
    return _JsonPatterns()


LITERAL_MAP: Dict[str, str] = {
    "True": "true", "TRUE": "true",
    "False": "false", "FALSE": "false",
    "None": "null", "NONE": "null", "none": "null",
    "Null": "null", "NULL": "null",
    "nil": "null", "NIL": "null",
    "undefined": "null",
    "NaN": "null", "Infinity": "null", "-Infinity": "null",
}

SMART_QUOTES = {
    "“": '"', "”": '"', "„": '"', "‟": '"',
    "‘": "'", "’": "'", "‚": "'", "‛": "'",
}


class ExtractJsonPayload(RepairStrategy):
    """drop markdown code fences and leading prose around the payload."""

    name = "ExtractJsonPayload"
    priority = 110

    def apply(self, text: str) -> str:
        patterns = get_patterns()
        match = patterns.code_fence.search(text)
        if match:
            text = match.group(1)
        else:
            text = patterns.open_fence.sub("", text, count=1)
        text = text.strip()

        start = self._payload_start(text)
        if start > 0:
            prefix = text[:start].strip()
            if prefix and prefix[0].isalpha() and '"' not in prefix and (
                "\n" in text[:start] or len(prefix.split()) >= 3
            ):
                text = text[start:]
        return text

    @staticmethod
    def _payload_start(text: str) -> int:
        brace = text.find("{")
        bracket = text.find("[")
        while bracket != -1 and (brace == -1 or bracket < brace):
            rest = text[bracket + 1:].lstrip()
            if not rest or rest[0] in '{["]-0123456789tfn':
                return bracket
            bracket = text.find("[", bracket + 1)
        return brace


class NormalizeSmartQuotes(RepairStrategy):
    name = "NormalizeSmartQuotes"
    priority = 105

    def apply(self, text: str) -> str:
        if not any(q in text for q in SMART_QUOTES):
            return text
        return "".join(SMART_QUOTES.get(ch, ch) for ch in text)


class StripTrailingContent(RepairStrategy):
    name = "StripTrailingContent"
    priority = 100

    def apply(self, text: str) -> str:
        return trim_trailing_content(text)


class AddMissingBraces(RepairStrategy):
    """Close whatever was left open, innermost first.

    An unterminated string is closed, a dangling ``"key":`` gets ``null``,
    and unmatched ``{``/``[`` get their closers in nesting order. Bare
    ``key: value`` text with no outer container is wrapped in braces.
    """

    name = "AddMissingBraces"
    priority = 95

    def apply(self, text: str) -> str:
        stripped = text.strip()
        if not stripped:
            return "{}"

        stack: List[str] = []
        in_string = False
        escaped = False
        has_colon = False
        for ch in stripped:
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch in "{[":
                stack.append(ch)
            elif ch == "}" and stack and stack[-1] == "{":
                stack.pop()
            elif ch == "]" and stack and stack[-1] == "[":
                stack.pop()
            elif ch == ":":
                has_colon = True

        result = stripped
        if in_string:
            result += '"'
        if stack:
            tail = result.rstrip()
            if tail.endswith(":"):
                result = tail + " null"
            elif tail.endswith(","):
                result = tail[:-1]
            result += "".join("}" if opener == "{" else "]" for opener in reversed(stack))

        if result[0] not in "{[" and has_colon and result[0] != "<":
            result = "{" + result + "}"
        return result


class StripComments(RepairStrategy):
    name = "StripComments"
    priority = 92

    def apply(self, text: str) -> str:
        patterns = get_patterns()

        def strip(chunk: str) -> str:
            chunk = patterns.block_comment.sub("", chunk)
            return patterns.line_comment.sub(r"\1", chunk)

        return map_outside_strings(text, strip)


class FixTrailingCommas(RepairStrategy):
    name = "FixTrailingCommas"
    priority = 90

    def apply(self, text: str) -> str:
        patterns = get_patterns()

        def fix(chunk: str) -> str:
            chunk = patterns.repeated_comma.sub(",", chunk)
            chunk = patterns.leading_comma.sub(r"\1", chunk)
            return patterns.trailing_comma.sub(r"\1", chunk)

        return map_outside_strings(text, fix)


class FixSingleQuotes(RepairStrategy):
    """Rewrite ``'...'`` string tokens as double-quoted strings.

    A single quote only opens a string at a token boundary (start of input
    or after ``{ [ , :``) and only closes one when a structural character
    or the end of input follows, so apostrophes inside words are left alone.
    """

    name = "FixSingleQuotes"
    priority = 85

    def apply(self, text: str) -> str:
        if "'" not in text:
            return text
        out: List[str] = []
        i = 0
        n = len(text)
        in_double = False
        last_sig: Optional[str] = None
        while i < n:
            ch = text[i]
            if in_double:
                out.append(ch)
                if ch == "\\" and i + 1 < n:
                    out.append(text[i + 1])
                    i += 2
                    continue
                if ch == '"':
                    in_double = False
                    last_sig = '"'
                i += 1
                continue
            if ch == '"':
                in_double = True
                out.append(ch)
                i += 1
                continue
            if ch == "'" and (last_sig is None or last_sig in "{[,:"):
                end = self._closing_quote(text, i + 1)
                if end is not None:
                    body = text[i + 1:end].replace("\\'", "'")
                    body = re.sub(r'(?<!\\)"', r'\\"', body)
                    out.append('"' + body + '"')
                    last_sig = '"'
                    i = end + 1
                    continue
            out.append(ch)
            if not ch.isspace():
                last_sig = ch
            i += 1
        return "".join(out)

    @staticmethod
    def _closing_quote(text: str, start: int) -> Optional[int]:
        i = start
        n = len(text)
        while i < n:
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "\n":
                return None
            if ch == "'":
                j = i + 1
                while j < n and text[j] in " \t\r":
                    j += 1
                if j >= n or text[j] in ",:}]\n":
                    return i
            i += 1
        return None


class AddMissingQuotes(RepairStrategy):
    """quote bare identifier keys."""

    name = "AddMissingQuotes"
    priority = 80

    def apply(self, text: str) -> str:
        pattern = get_patterns().bare_key
        return map_outside_strings(text, lambda chunk: pattern.sub(r'\1\2"\3"\4', chunk))


class FixMalformedNumbers(RepairStrategy):
    name = "FixMalformedNumbers"
    priority = 75

    def apply(self, text: str) -> str:
        p = get_patterns()

        def fix(chunk: str) -> str:
            chunk = p.dotted_number.sub(r'\1"\2"', chunk)
            chunk = p.leading_plus.sub(r"\1\2", chunk)
            chunk = p.leading_dot.sub(r"\g<1>\g<2>0.\3", chunk)
            chunk = p.leading_zeros.sub(r"\1\2\3", chunk)
            return p.trailing_dot.sub(r"\1.0", chunk)

        return map_outside_strings(text, fix)


class FixBooleanNull(RepairStrategy):
    """map Python/JavaScript style literals to JSON ones."""

    name = "FixBooleanNull"
    priority = 70

    def apply(self, text: str) -> str:
        pattern = get_patterns().loose_literal
        return map_outside_strings(text, lambda chunk: pattern.sub(lambda m: LITERAL_MAP[m.group(1)], chunk))


class FixMissingCommas(RepairStrategy):
    """Insert a comma between two adjacent values.

    Works on structure only: a value end (closing quote, closer, digit or
    literal) followed by a value start (quote, opener, digit, minus) inside
    a container gets a comma between them.
    """

    name = "FixMissingCommas"
    priority = 65

    _LITERAL_ENDS = ("true", "false", "null")

    def apply(self, text: str) -> str:
        out: List[str] = []
        depth = 0
        in_string = False
        escaped = False
        prev_end = False
        gap = False
        for i, ch in enumerate(text):
            if in_string:
                out.append(ch)
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                    prev_end = True
                    gap = False
                continue

            if ch.isspace():
                gap = True
                out.append(ch)
                continue

            starts_value = ch in '"{[' or ch.isdigit() or ch == "-"
            adjacent = ch in "{[\"" and bool(out) and out[-1] in "}]"
            if depth > 0 and prev_end and starts_value and (gap or adjacent):
                self._insert_comma(out)

            if ch == '"':
                in_string = True
            elif ch in "{[":
                depth += 1
            elif ch in "}]":
                depth = max(depth - 1, 0)
            out.append(ch)

            if ch in "}]" or ch.isdigit():
                prev_end = True
            elif ch.isalpha():
                prev_end = text.endswith(self._LITERAL_ENDS, 0, i + 1)
            elif ch != '"':
                prev_end = False
            gap = False
        return "".join(out)

    @staticmethod
    def _insert_comma(out: List[str]) -> None:
        # place the comma right after the previous value, before the whitespace
        i = len(out)
        while i > 0 and out[i - 1].isspace():
            i -= 1
        out.insert(i, ",")


class FixAgenticAiResponse(RepairStrategy):
    """final cleanup for agent output: ``undefined``, ``...`` placeholders, late trailing commas."""

    name = "FixAgenticAiResponse"
    priority = 50

    def apply(self, text: str) -> str:
        p = get_patterns()

        def fix(chunk: str) -> str:
            chunk = p.undefined.sub("null", chunk)
            chunk = p.ellipsis_item.sub("", chunk)
            return p.trailing_comma.sub(r"\1", chunk)

        return map_outside_strings(text, fix)


def default_json_strategies() -> List[RepairStrategy]:
    return [
        ExtractJsonPayload(),
        NormalizeSmartQuotes(),
        StripTrailingContent(),
        AddMissingBraces(),
        StripComments(),
        FixTrailingCommas(),
        FixSingleQuotes(),
        AddMissingQuotes(),
        FixMalformedNumbers(),
        FixBooleanNull(),
        FixMissingCommas(),
        FixAgenticAiResponse(),
    ]
