"""Recursive-descent JSON parser that recovers from structural damage.

The parser never asks for a grammar-correct document. It builds a plain
Python value (dict, list, str, int, float, bool or None) from whatever
structure it can infer, tolerating missing quotes, colons, commas and
closers, loose literals (``True``, ``None``) and inline comments.

Only three conditions stop it: a value position that starts with a
character no value can start with, a numeric token that is not a number,
and nesting deeper than ``max_depth``.
"""

import logging
from typing import Any, Dict, List, Optional

from ..config import config
from ..errors import InvalidNumberError, TooDeeplyNestedError, UnexpectedCharacterError
from .context import ContextStack, ParseContext
from .scanner import TolerantScanner

logger = logging.getLogger(__name__)

# returned by parse_value when the input ends where a value was expected
_EMPTY = object()

_LITERALS = {"true": True, "false": False, "null": None, "none": None}
_NUMBER_CHARS = frozenset("0123456789.eE+-")
_KEY_START_EXTRA = frozenset("_$-")

_UNQUOTED_STOPS = {
    ParseContext.OBJECT_KEY: frozenset(":,{}[\n"),
    ParseContext.OBJECT_VALUE: frozenset(",}]\n"),
    ParseContext.ARRAY: frozenset(",]}\n"),
}
_ROOT_STOPS = frozenset("\n")


class RecoveryParser:
    """Single-use parser over one input text."""

    def __init__(self, text: str, max_depth: Optional[int] = None, max_lookahead: Optional[int] = None):
        self.scanner = TolerantScanner(text)
        self.context = ContextStack(ParseContext.ROOT)
        self.max_depth = max_depth if max_depth is not None else config.MAX_DEPTH
        self.max_lookahead = max_lookahead if max_lookahead is not None else config.MAX_LOOKAHEAD
        self._depth = 0

    def parse(self) -> Any:
        """Parse the whole input.

        Several top-level containers in a row (``{..} {..}`` or
        ``[..], [..]``) are returned as a list; anything else after the
        first value is ignored.
        """
        s = self.scanner
        values: List[Any] = []
        while True:
            s.skip_whitespace()
            ch = s.char_at()
            if ch is None:
                break
            if values:
                if ch == ",":
                    s.advance()
                    continue
                if ch in "#/":
                    self._skip_comment()
                    continue
                if ch not in "{[":
                    break
            value = self.parse_value()
            if value is not _EMPTY:
                values.append(value)

        if not values:
            return None
        if len(values) == 1:
            return values[0]
        logger.debug("Collected multiple root values", extra={"count": len(values)})
        return values

    def parse_value(self) -> Any:
        s = self.scanner
        s.skip_whitespace()
        ch = s.char_at()
        if ch is None:
            return _EMPTY
        if ch == "{":
            return self.parse_object()
        if ch == "[":
            return self.parse_array()
        if ch in "\"'":
            return self.parse_string()
        if ch.isdigit() or ch == "-":
            return self.parse_number()
        if ch in "tfnTFN":
            return self.parse_literal()
        if ch.isalpha() or ch in "_$":
            return self.parse_string()
        if ch in "#/":
            return self.parse_comment()
        raise UnexpectedCharacterError(ch, s.position)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self.max_depth:
            raise TooDeeplyNestedError(self._depth, self.max_depth)

    def _exit(self) -> None:
        self._depth -= 1

    def parse_object(self) -> Dict[str, Any]:
        s = self.scanner
        self._enter()
        s.advance()
        self.context.push(ParseContext.OBJECT)
        result: Dict[str, Any] = {}

        while True:
            s.skip_whitespace()
            ch = s.char_at()
            if ch is None:
                break
            if ch == "}":
                s.advance()
                break
            if ch in ",]":
                s.advance()
                continue
            if ch in "#/":
                self._skip_comment()
                continue

            start = s.position
            self.context.push(ParseContext.OBJECT_KEY)
            key = self._parse_key()
            self.context.pop()
            if key is None:
                continue
            if s.position == start:
                # nothing consumed; step over the character so the loop progresses
                if s.char_at() not in (None, "}"):
                    s.advance()
                continue

            s.skip_whitespace()
            if s.char_at() == ":":
                s.advance()
                s.skip_whitespace()

            if s.char_at() in (None, ",", "}", "]"):
                result[key] = None
                continue

            self.context.push(ParseContext.OBJECT_VALUE)
            value = self.parse_value()
            self.context.pop()
            result[key] = None if value is _EMPTY else value

        self.context.pop()
        self._exit()
        return result

    def _parse_key(self) -> Optional[str]:
        """Skip to the next key start; ``None`` when the object ends first."""
        s = self.scanner
        while True:
            ch = s.char_at()
            if ch is None or ch == "}":
                return None
            if ch in "\"'" or ch.isalnum() or ch in _KEY_START_EXTRA:
                break
            s.advance()
        return self.parse_string()

    def parse_array(self) -> List[Any]:
        s = self.scanner
        self._enter()
        s.advance()
        self.context.push(ParseContext.ARRAY)
        result: List[Any] = []

        while True:
            s.skip_whitespace()
            ch = s.char_at()
            if ch is None:
                break
            if ch == "]":
                s.advance()
                break
            if ch == "}":
                # mismatched closer belongs to an enclosing object
                break
            if ch == ",":
                s.advance()
                continue
            if ch in "#/":
                self._skip_comment()
                continue
            value = self.parse_value()
            if value is not _EMPTY:
                result.append(value)

        self.context.pop()
        self._exit()
        return result

    def parse_string(self) -> str:
        s = self.scanner
        delimiter = s.char_at()
        if delimiter not in ("\"", "'"):
            return self._parse_unquoted()

        s.advance()
        buf: List[str] = []
        first_candidate = None
        while True:
            ch = s.char_at()
            if ch is None:
                if first_candidate is not None:
                    # no quote passed the lookahead; fall back to the first one
                    position, length = first_candidate
                    s.reset(position)
                    del buf[length:]
                break
            if ch == "\\":
                decoded = s.decode_escape()
                if decoded is not None:
                    buf.append(decoded)
                continue
            if ch == delimiter:
                if self.is_valid_string_end():
                    s.advance()
                    break
                if first_candidate is None:
                    first_candidate = (s.position + 1, len(buf))
            buf.append(ch)
            s.advance()
        return "".join(buf)

    def _parse_unquoted(self) -> str:
        s = self.scanner
        stops = _UNQUOTED_STOPS.get(self.context.current(), _ROOT_STOPS)
        buf: List[str] = []
        while True:
            ch = s.char_at()
            if ch is None or ch in stops:
                break
            buf.append(ch)
            s.advance()
        return "".join(buf).rstrip()

    def is_valid_string_end(self) -> bool:
        """Check whether the quote under the cursor really closes the string.

        Looks past the quote and any whitespace for the terminator the
        current context requires.
        """
        s = self.scanner
        ctx = self.context.current()
        nxt = s.peek_non_whitespace(offset=1, limit=self.max_lookahead)

        if ctx is None or ctx == ParseContext.ROOT:
            return True
        if ctx == ParseContext.OBJECT_KEY:
            return nxt == ":"
        if ctx == ParseContext.OBJECT_VALUE:
            if nxt is None or nxt in ",}":
                return True
            return nxt == '"' and self._next_key_follows()
        if ctx == ParseContext.ARRAY:
            return nxt is None or nxt in ",]"
        return True

    def _next_key_follows(self) -> bool:
        """true when ``"key":`` follows the quote under the cursor (missing comma)."""
        text = self.scanner.text
        i = self.scanner.position + 1
        end = min(len(text), i + self.max_lookahead)
        while i < end and text[i].isspace():
            i += 1
        if i >= end or text[i] != '"':
            return False
        close = text.find('"', i + 1, end)
        if close == -1:
            return False
        if "\n" in text[i + 1:close]:
            return False
        j = close + 1
        while j < end and text[j] in " \t":
            j += 1
        return j < end and text[j] == ":"

    def parse_number(self) -> Any:
        s = self.scanner
        start = s.position
        token: List[str] = []
        while True:
            ch = s.char_at()
            if ch is None or ch not in _NUMBER_CHARS:
                break
            if ch in "+-" and token and token[-1] not in "eE":
                break
            token.append(ch)
            s.advance()

        nxt = s.char_at()
        if nxt is not None and (nxt.isalnum() or nxt in "_:/") and self.context.current() != ParseContext.OBJECT_KEY:
            # dates, versions, identifiers that happen to start with a digit
            s.reset(start)
            return self._parse_unquoted()

        raw = "".join(token)
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            raise InvalidNumberError(raw, start)

    def parse_literal(self) -> Any:
        """true/false/null in any case, else fall back to an unquoted string."""
        s = self.scanner
        start = s.mark()
        word: List[str] = []
        while True:
            ch = s.char_at()
            if ch is None or not ch.isalpha():
                break
            word.append(ch)
            s.advance()
        lowered = "".join(word).lower()
        nxt = s.char_at()
        if lowered in _LITERALS and (nxt is None or not (nxt.isalnum() or nxt == "_")):
            return _LITERALS[lowered]
        s.reset(start)
        return self.parse_string()

    def _skip_comment(self) -> None:
        s = self.scanner
        ch = s.char_at()
        if ch == "#" or (ch == "/" and s.char_at(1) == "/"):
            while s.char_at() not in (None, "\n"):
                s.advance()
            return
        if ch == "/" and s.char_at(1) == "*":
            s.advance(2)
            while s.char_at() is not None:
                if s.char_at() == "*" and s.char_at(1) == "/":
                    s.advance(2)
                    return
                s.advance()
            return
        # stray slash
        s.advance()

    def parse_comment(self) -> Any:
        """skip a comment and parse the value after it in the same context."""
        self._skip_comment()
        return self.parse_value()


def parse_tolerant(text: str, max_depth: Optional[int] = None) -> Any:
    """convenience wrapper returning the recovered value."""
    return RecoveryParser(text, max_depth=max_depth).parse()
