"""Guess the format of a piece of text.

Checks run in a fixed order and the first match wins: XML, JSON, TOML or
INI, CSV, YAML. Anything else is treated as Markdown. A fenced code block
whose body is at least as long as the text around it short-circuits the
list: its language tag decides, or failing that its body.
"""

import csv
import io
import logging
import re
import tomllib
from typing import List, Optional

from .models import Format

logger = logging.getLogger(__name__)

FENCE = re.compile(r"^[ \t]*```([\w+-]*)[ \t]*\n(.*?)(?:\n[ \t]*```|\Z)", re.DOTALL | re.MULTILINE)
SECTION_HEADER = re.compile(r"^\s*\[{1,2}[^\[\]\n]+\]{1,2}\s*$")
EQUALS_LINE = re.compile(r"^\s*[\w.\-\"']+(\s+[\w.\-]+)*\s*=")
LEADING_JSON_KEY = re.compile(r'^\s*"[^"\n]*"\s*:')
YAML_KEY_LINE = re.compile(r"^\s*[\w\-\"'. ]+:(\s|$)")
YAML_ITEM_LINE = re.compile(r"^\s*-\s")
TOML_ONLY_VALUE = re.compile(r"=\s*([\"'\[{]|true\b|false\b|\d{4}-\d{2}-\d{2})")
XML_START = re.compile(r"^<[A-Za-z_?!]")


def _content_lines(text: str) -> List[str]:
    return [line for line in text.splitlines() if line.strip() and not line.lstrip().startswith(("#", ";"))]


def _fenced_format(text: str) -> Optional[Format]:
    match = FENCE.search(text)
    if not match:
        return None
    body = match.group(2).strip()
    outside = (text[:match.start()] + text[match.end():]).strip()
    if not body or len(outside) > len(body):
        return None
    tag = match.group(1)
    if tag:
        try:
            return Format.parse(tag)
        except ValueError:
            pass
    return detect_format(body)


def looks_like_xml(text: str) -> bool:
    return bool(XML_START.match(text)) and ">" in text


def looks_like_json(text: str) -> bool:
    if LEADING_JSON_KEY.match(text):
        return True
    if text[0] == "{":
        return True
    if text[0] == "[":
        lines = _content_lines(text)
        # [section] followed by key = value lines is a config file
        if SECTION_HEADER.match(lines[0]) and any(EQUALS_LINE.match(line) for line in lines[1:]):
            return False
        return True
    return False


def table_format(text: str) -> Optional[Format]:
    """TOML or INI when the text is made of section headers and ``key = value`` lines."""
    lines = _content_lines(text)
    if not lines:
        return None
    headers = sum(1 for line in lines if SECTION_HEADER.match(line))
    assignments = sum(1 for line in lines if EQUALS_LINE.match(line))
    if not assignments or (not headers and assignments * 2 < len(lines)):
        return None
    try:
        tomllib.loads(text)
        return Format.TOML
    except tomllib.TOMLDecodeError:
        pass
    if "[[" in text or any(TOML_ONLY_VALUE.search(line) for line in lines if EQUALS_LINE.match(line)):
        return Format.TOML
    return Format.INI


def looks_like_csv(text: str) -> bool:
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2 or sum(1 for line in lines if "," in line) < 2:
        return False
    try:
        widths = {len(row) for row in csv.reader(io.StringIO("\n".join(lines))) if row}
    except csv.Error:
        return False
    return len(widths) == 1 and widths.pop() > 1


def looks_like_yaml(text: str) -> bool:
    if "```" in text:
        return False
    if text.startswith("---"):
        return True
    lines = _content_lines(text)
    if not lines:
        return False
    keys = sum(1 for line in lines if YAML_KEY_LINE.match(line))
    items = sum(1 for line in lines if YAML_ITEM_LINE.match(line) and not YAML_KEY_LINE.match(line))
    # a bare list reads as markdown
    return keys > 0 and (keys + items) * 2 > len(lines)


def detect_format(text: str) -> Format:
    if not text or not text.strip():
        return Format.MARKDOWN
    stripped = text.strip()

    detected = _fenced_format(stripped)
    if detected is None:
        if looks_like_xml(stripped):
            detected = Format.XML
        elif looks_like_json(stripped):
            detected = Format.JSON
        else:
            detected = table_format(stripped)
    if detected is None:
        if looks_like_csv(stripped):
            detected = Format.CSV
        elif looks_like_yaml(stripped):
            detected = Format.YAML
        else:
            detected = Format.MARKDOWN
    logger.debug(f"detected {detected.value}", extra={"format": detected.value, "length": len(text)})
    return detected
