"""tests for the YAML, XML, TOML, CSV, INI and Markdown repairers"""

import sys
import tomllib
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "src"))

from anyrepair.formats import (  # noqa: E402
    REPAIRERS,
    CsvRepairer,
    IniRepairer,
    MarkdownRepairer,
    TomlRepairer,
    XmlRepairer,
    YamlRepairer,
    get_repairer,
)
from anyrepair.formats.csv_repair import FixUnbalancedQuotes, NormalizeDelimiter  # noqa: E402
from anyrepair.formats.markdown_repair import FixListItems, FixTables, map_prose_lines  # noqa: E402
from anyrepair.formats.yaml_repair import FixIndentation, FixListFormatting  # noqa: E402
from anyrepair.models import Format  # noqa: E402


class TestYamlRepairer:
    def test_missing_colon_before_block(self):
        repaired = YamlRepairer().repair("server\n  host: localhost\n  port: 8080")
        assert yaml.safe_load(repaired) == {"server": {"host": "localhost", "port": 8080}}

    def test_tabs(self):
        assert yaml.safe_load(YamlRepairer().repair("a:\n\tb: 1")) == {"a": {"b": 1}}

    def test_unclosed_quote(self):
        repaired = YamlRepairer().repair('name: "John\nage: 30')
        assert yaml.safe_load(repaired) == {"name": "John", "age": 30}

    def test_list_dashes(self):
        assert FixListFormatting().apply("-one\n  -two") == "- one\n  - two"

    def test_negative_numbers_are_not_list_items(self):
        assert FixListFormatting().apply("a: -1") == "a: -1"

    def test_dedent_snaps_to_open_level(self):
        text = "a:\n    b: 1\n  c: 2"
        assert FixIndentation().apply(text) == "a:\n    b: 1\n    c: 2"

    def test_fenced_yaml(self):
        repaired = YamlRepairer().repair("```yaml\nkey: [1, 2\n```")
        assert "```" not in repaired

    def test_valid_untouched(self):
        text = "a: 1\nb:\n  - x\n"
        assert YamlRepairer().repair(text) is text


class TestXmlRepairer:
    def test_unclosed_child(self):
        assert XmlRepairer().repair("<root><item>a</root>") == "<root><item>a</item></root>"

    def test_unclosed_root(self):
        assert XmlRepairer().repair("<root><item>a</item>") == "<root><item>a</item></root>"

    def test_ampersand(self):
        assert XmlRepairer().repair("<a>Tom & Jerry</a>") == "<a>Tom &amp; Jerry</a>"

    def test_stray_less_than(self):
        assert XmlRepairer().repair("<a>1 < 2</a>") == "<a>1 &lt; 2</a>"

    def test_multiple_roots(self):
        assert XmlRepairer().repair("<a/><b/>") == "<root><a/><b/></root>"

    def test_unquoted_attribute(self):
        assert XmlRepairer().repair("<a id=1>x</a>") == '<a id="1">x</a>'

    def test_void_element(self):
        assert XmlRepairer().repair("<p>line<br>next</p>") == "<p>line<br/>next</p>"

    def test_unmatched_close_dropped(self):
        assert XmlRepairer().repair("<a>x</b></a>") == "<a>x</a>"


class TestTomlRepairer:
    def test_header_and_bare_string(self):
        repaired = TomlRepairer().repair("[server\nport = 8080\nname = web")
        assert tomllib.loads(repaired) == {"server": {"port": 8080, "name": "web"}}

    def test_capitalized_boolean(self):
        assert tomllib.loads(TomlRepairer().repair("debug = True")) == {"debug": True}

    def test_missing_equals(self):
        assert tomllib.loads(TomlRepairer().repair("port 8080")) == {"port": 8080}

    def test_unclosed_array_and_string(self):
        repaired = TomlRepairer().repair('items = [1, 2\ntitle = "abc')
        assert tomllib.loads(repaired) == {"items": [1, 2], "title": "abc"}

    def test_version_is_quoted(self):
        assert tomllib.loads(TomlRepairer().repair("version = 1.2.3")) == {"version": "1.2.3"}


class TestCsvRepairer:
    def test_overflow_folds_into_last_column(self):
        assert CsvRepairer().repair("name,age\nJohn,30,extra") == 'name,age\nJohn,"30, extra"'

    def test_short_row_padded(self):
        assert CsvRepairer().repair("a,b,c\n1,2") == "a,b,c\n1,2,"

    def test_unbalanced_quote(self):
        assert CsvRepairer().repair('name,note\nAda,"unterminated') == "name,note\nAda,unterminated"

    def test_delimiter_normalized(self):
        assert NormalizeDelimiter().apply("a;b\n1;2") == "a,b\n1,2"
        assert NormalizeDelimiter().apply("a\tb\n1\t2") == "a,b\n1,2"

    def test_mixed_delimiters_untouched(self):
        assert NormalizeDelimiter().apply("a,b\n1;2") == "a,b\n1;2"

    def test_quote_closed_at_line_end(self):
        assert FixUnbalancedQuotes().apply('a,"b\n1,2') == 'a,"b"\n1,2'


class TestIniRepairer:
    def test_unclosed_section(self):
        assert IniRepairer().repair("[server\nhost = localhost") == "[server]\nhost = localhost"

    def test_missing_equals(self):
        assert IniRepairer().repair("host localhost") == "host = localhost"

    def test_duplicate_sections_merged(self):
        assert IniRepairer().repair("[a]\nx = 1\n[a]\ny = 2") == "[a]\nx = 1\ny = 2"

    def test_duplicate_key_keeps_last_value(self):
        assert IniRepairer().repair("[a]\nx = 1\nx = 2") == "[a]\nx = 2"

    def test_slash_comments(self):
        assert IniRepairer().repair("// settings\n[a]\nx = 1") == "# settings\n\n[a]\nx = 1"


class TestMarkdownRepairer:
    def test_header_and_bold(self):
        repaired = MarkdownRepairer().repair("#Title\n\nSome **bold text")
        assert repaired == "# Title\n\nSome **bold text**"

    def test_unclosed_fence(self):
        assert MarkdownRepairer().repair("```python\nprint(1)") == "```python\nprint(1)\n```"

    def test_wiki_links(self):
        assert MarkdownRepairer().repair("See [[Page]]") == "See [Page]"

    def test_fenced_code_is_left_alone(self):
        repaired = MarkdownRepairer().repair("#Title\n```\n#include <x>\n```")
        assert repaired == "# Title\n```\n#include <x>\n```"

    def test_list_items(self):
        assert FixListItems().apply("1.First\n-second") == "1. First\n- second"

    def test_table_separator(self):
        assert FixTables().apply("| a | b |\n| 1 | 2 |") == "| a | b |\n| --- | --- |\n| 1 | 2 |"

    def test_table_with_separator_untouched(self):
        text = "| a |\n| --- |\n| 1 |"
        assert FixTables().apply(text) == text

    def test_map_prose_lines(self):
        assert map_prose_lines("a\n```\nb\n```\nc", str.upper) == "A\n```\nb\n```\nC"


class TestGetRepairer:
    @pytest.mark.parametrize("fmt", list(Format))
    def test_every_format_registered(self, fmt):
        repairer = get_repairer(fmt)
        assert isinstance(repairer, REPAIRERS[fmt])
        assert repairer.format is fmt

    def test_aliases(self):
        assert isinstance(get_repairer("yml"), YamlRepairer)
        assert isinstance(get_repairer("md"), MarkdownRepairer)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            get_repairer("docx")

    @pytest.mark.parametrize("fmt", list(Format))
    def test_empty_input(self, fmt):
        assert get_repairer(fmt).repair("") == ""
