"""character cursor with lookahead and escape decoding"""

from typing import Optional

_SIMPLE_ESCAPES = {
    "t": "\t",
    "n": "\n",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class TolerantScanner:
    """Cursor over decoded text.

    Lookahead never raises: reading past either end yields ``None``. The
    cursor only moves forward, except through ``reset`` to a position taken
    with ``mark``.
    """

    def __init__(self, text: str):
        self.text = text
        self.position = 0
        self.length = len(text)

    def char_at(self, offset: int = 0) -> Optional[str]:
        index = self.position + offset
        if 0 <= index < self.length:
            return self.text[index]
        return None

    def advance(self, n: int = 1) -> None:
        self.position = min(self.position + max(n, 0), self.length)

    def at_end(self) -> bool:
        return self.position >= self.length

    def skip_whitespace(self) -> None:
        while self.position < self.length and self.text[self.position].isspace():
            self.position += 1

    def mark(self) -> int:
        return self.position

    def reset(self, position: int) -> None:
        self.position = max(0, min(position, self.length))

    def peek_non_whitespace(self, offset: int = 0, limit: Optional[int] = None) -> Optional[str]:
        """first non-whitespace character at or after ``offset``."""
        index = self.position + offset
        end = self.length if limit is None else min(self.length, index + limit)
        while index < end:
            ch = self.text[index]
            if not ch.isspace():
                return ch
            index += 1
        return None

    def _read_hex(self, count: int) -> Optional[int]:
        digits = self.text[self.position:self.position + count]
        valid = 0
        while valid < len(digits) and digits[valid] in _HEX_DIGITS:
            valid += 1
        # a short payload is dropped together with the digits it did have
        self.position += valid
        if valid != count:
            return None
        return int(digits, 16)

    def decode_escape(self) -> Optional[str]:
        """Consume a backslash escape and return the decoded text.

        Returns ``None`` when the sequence has to be dropped: a short or
        non-hex ``\\u``/``\\x`` payload, a lone surrogate, or a backslash at
        the very end of the input. Unknown escapes keep the escaped
        character.
        """
        if self.char_at() != "\\":
            return None
        self.advance()
        ch = self.char_at()
        if ch is None:
            return None
        self.advance()

        if ch in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[ch]

        if ch == "u":
            unit = self._read_hex(4)
            if unit is None:
                return None
            if 0xD800 <= unit <= 0xDBFF:
                # high surrogate; pair with a following low surrogate
                if self.char_at() == "\\" and self.char_at(1) == "u":
                    saved = self.position
                    self.advance(2)
                    low = self._read_hex(4)
                    if low is not None and 0xDC00 <= low <= 0xDFFF:
                        return chr(0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00))
                    self.reset(saved)
                return None
            if 0xDC00 <= unit <= 0xDFFF:
                return None
            return chr(unit)

        if ch == "x":
            byte = self._read_hex(2)
            if byte is None:
                return None
            return chr(byte)

        return ch
