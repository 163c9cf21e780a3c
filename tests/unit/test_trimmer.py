"""tests for boundary trimming"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "src"))

from anyrepair.recovery.trimmer import find_value_end, trim_trailing_content  # noqa: E402


class TestFindValueEnd:
    def test_trailing_prose(self):
        assert find_value_end('{"a":1} trailing prose') == 7

    def test_trailing_punctuation(self):
        assert find_value_end("[1, 2]. Done") == 6

    def test_braces_inside_strings_are_ignored(self):
        text = '{"a": "}"} x'
        assert find_value_end(text) == 10

    def test_escaped_quote_inside_string(self):
        text = '{"a": "\\"}"} x'
        assert find_value_end(text) == len(text) - 2

    def test_chained_values_are_not_cut(self):
        text = '{"a":1}, {"b":2}'
        assert find_value_end(text) == len(text)

    def test_no_closer(self):
        assert find_value_end('{"a": 1') is None
        assert find_value_end("plain text") is None

    def test_stray_closer_before_opener(self):
        assert find_value_end('} {"a": 1} tail') == 10


class TestTrimTrailingContent:
    def test_trims(self):
        assert trim_trailing_content('{"a":1} trailing prose') == '{"a":1}'

    def test_keeps_text_without_value(self):
        assert trim_trailing_content("nothing here") == "nothing here"

    def test_keeps_complete_value(self):
        assert trim_trailing_content('[1, {"b": [2]}]') == '[1, {"b": [2]}]'
