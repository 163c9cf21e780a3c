"""strict validators, one per format"""

import configparser
import csv
import io
import json
import re
import tomllib
import xml.etree.ElementTree as ElementTree
from typing import Dict, List

import yaml

from .interfaces import Validator
from .models import Format

SECTION_HEADER = re.compile(r"^\s*\[[^\]\n]+\]\s*$")
MARKDOWN_HEADER = re.compile(r"^(#{1,6})([^#\s])")
FENCE_LINE = re.compile(r"^\s*```")


class JsonValidator(Validator):
    def is_valid(self, text: str) -> bool:
        if not text or not text.strip():
            return False
        try:
            json.loads(text)
            return True
        except (ValueError, RecursionError):
            return False

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty JSON content"]
        try:
            json.loads(text)
        except json.JSONDecodeError as e:
            return [f"line {e.lineno} column {e.colno}: {e.msg}"]
        except RecursionError:
            return ["Nesting too deep to validate"]
        return []


class YamlValidator(Validator):
    def is_valid(self, text: str) -> bool:
        return not self.validate(text)

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty YAML content"]
        try:
            list(yaml.safe_load_all(text))
        except (yaml.YAMLError, ValueError, RecursionError) as e:
            return [str(e).replace("\n", " ")]
        return []


class XmlValidator(Validator):
    def is_valid(self, text: str) -> bool:
        return not self.validate(text)

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty XML content"]
        try:
            ElementTree.fromstring(text.strip())
        except ElementTree.ParseError as e:
            return [f"XML parsing error: {e}"]
        return []


class TomlValidator(Validator):
    def is_valid(self, text: str) -> bool:
        return not self.validate(text)

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty TOML content"]
        try:
            tomllib.loads(text)
        except (tomllib.TOMLDecodeError, RecursionError) as e:
            return [str(e)]
        return []


class CsvValidator(Validator):
    """Parses with the csv module in strict mode.

    Beyond what the reader rejects, every non-blank row must have the same
    number of columns as the first one.
    """

    def is_valid(self, text: str) -> bool:
        return not self.validate(text)

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty CSV content"]
        errors: List[str] = []
        try:
            rows = [row for row in csv.reader(io.StringIO(text.strip()), strict=True) if row]
        except csv.Error as e:
            return [f"CSV parsing error: {e}"]
        if not rows:
            return ["No CSV records"]
        expected = len(rows[0])
        for line_num, row in enumerate(rows, start=1):
            if len(row) != expected:
                errors.append(f"Row {line_num} has {len(row)} columns, expected {expected}")
        return errors


class IniValidator(Validator):
    def is_valid(self, text: str) -> bool:
        return not self.validate(text)

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty INI content"]
        errors: List[str] = []
        has_section = False
        has_key = False
        for i, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped[0] in "#;":
                continue
            if stripped.startswith("["):
                if SECTION_HEADER.match(stripped):
                    has_section = True
                else:
                    errors.append(f"Malformed section header at line {i}: {stripped}")
                continue
            if "=" in stripped or ":" in stripped:
                has_key = True
            elif " " in stripped:
                errors.append(f"Missing '=' at line {i}: {stripped}")
        if not (has_section or has_key):
            errors.append("No sections or key/value pairs")
        if errors:
            return errors

        parser = configparser.ConfigParser(strict=True, interpolation=None)
        source = text if text.lstrip().startswith("[") else "[DEFAULT]\n" + text
        try:
            parser.read_string(source)
        except configparser.Error as e:
            errors.append(str(e).replace("\n", " "))
        return errors


class MarkdownValidator(Validator):
    """Structural checks only: fences and bold markers balance, headers are spaced."""

    def is_valid(self, text: str) -> bool:
        return not self.validate(text)

    def validate(self, text: str) -> List[str]:
        errors: List[str] = []
        if not text:
            return errors
        prose_lines: List[str] = []
        fences = 0
        for line in text.splitlines():
            if FENCE_LINE.match(line):
                fences += 1
                continue
            if fences % 2 == 0:
                prose_lines.append(line)
        if fences % 2:
            errors.append("Unbalanced code block fences (```)")

        prose = "\n".join(prose_lines)
        if prose.count("**") % 2:
            errors.append("Unbalanced bold markers (**)")
        for line in prose_lines:
            if MARKDOWN_HEADER.match(line.lstrip()):
                errors.append(f"Header missing space: {line.strip()[:40]}")
        if "[[" in prose or "]]" in prose:
            errors.append("Malformed link syntax")
        return errors


VALIDATORS: Dict[Format, Validator] = {
    Format.JSON: JsonValidator(),
    Format.YAML: YamlValidator(),
    Format.XML: XmlValidator(),
    Format.TOML: TomlValidator(),
    Format.CSV: CsvValidator(),
    Format.INI: IniValidator(),
    Format.MARKDOWN: MarkdownValidator(),
}


def get_validator(fmt: Format) -> Validator:
    return VALIDATORS[Format.parse(fmt)]
