"""tests for TolerantScanner and ContextStack"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "src"))

from anyrepair.recovery.context import ContextStack, ParseContext  # noqa: E402
from anyrepair.recovery.scanner import TolerantScanner  # noqa: E402


class TestTolerantScanner:
    def test_char_at_out_of_range(self):
        s = TolerantScanner("ab")
        assert s.char_at() == "a"
        assert s.char_at(1) == "b"
        assert s.char_at(2) is None
        assert s.char_at(-1) is None

    def test_advance_stops_at_end(self):
        s = TolerantScanner("abc")
        s.advance(10)
        assert s.at_end()
        assert s.position == 3
        assert s.char_at() is None

    def test_mark_and_reset(self):
        s = TolerantScanner("abcdef")
        s.advance(2)
        saved = s.mark()
        s.advance(3)
        s.reset(saved)
        assert s.char_at() == "c"

    def test_skip_whitespace(self):
        s = TolerantScanner("  \n\t x")
        s.skip_whitespace()
        assert s.char_at() == "x"

    def test_peek_non_whitespace(self):
        s = TolerantScanner('"  \n :')
        assert s.peek_non_whitespace(offset=1) == ":"
        assert s.peek_non_whitespace(offset=1, limit=2) is None
        assert TolerantScanner("   ").peek_non_whitespace() is None

    def test_decode_escape_requires_backslash(self):
        assert TolerantScanner("n").decode_escape() is None

    def test_decode_simple_escape(self):
        s = TolerantScanner(r"\nrest")
        assert s.decode_escape() == "\n"
        assert s.char_at() == "r"

    def test_decode_short_unicode_is_dropped(self):
        s = TolerantScanner(r"\u12")
        assert s.decode_escape() is None
        assert s.at_end()

    def test_decode_non_hex_unicode_is_dropped(self):
        assert TolerantScanner(r"\uzzzz").decode_escape() is None

    def test_trailing_backslash(self):
        assert TolerantScanner("\\").decode_escape() is None

    def test_high_surrogate_without_low_keeps_following_text(self):
        s = TolerantScanner(r"\ud83dA")
        assert s.decode_escape() is None
        assert s.char_at() == "A"


class TestContextStack:
    def test_push_pop(self):
        stack = ContextStack(ParseContext.ROOT)
        stack.push(ParseContext.OBJECT)
        stack.push(ParseContext.OBJECT_KEY)
        assert stack.current() == ParseContext.OBJECT_KEY
        assert stack.depth == 3
        assert stack.pop() == ParseContext.OBJECT_KEY
        assert stack.current() == ParseContext.OBJECT
        assert len(stack) == 2

    def test_empty_stack(self):
        stack = ContextStack()
        assert stack.is_empty()
        assert stack.current() is None
        assert stack.pop() is None
