"""XML repair strategies"""

import re
from typing import Iterable, List, Optional

from ..interfaces import RepairStrategy
from ..models import Format
from ..validators import XmlValidator
from .base import ExtractFencedBlock, GenericRepairer, RegexStrategy

TAG = re.compile(r"<(/?)([A-Za-z_][\w:.\-]*)([^<>]*?)(/?)>")
SPECIAL_TAG = re.compile(r"<[?!][^>]*>")
BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#\d+|#x[0-9a-fA-F]+);)")
STRAY_LT = re.compile(r"<(?![A-Za-z_/!?])")
UNQUOTED_ATTRIBUTE = re.compile(r"""(\s[\w:.\-]+)=([^"'\s>]+?)(?=\s|/?>)""")
VOID_ELEMENT = re.compile(r"<(br|hr|img|input|meta|link|area|base|col|embed|source|wbr)(\s[^<>]*?)?\s*(?<!/)>", re.IGNORECASE)
ROOT_ELEMENT = re.compile(r"^\s*(<\?xml[^>]*\?>)?\s*")


class EscapeSpecialCharacters(RepairStrategy):
    """escape bare ``&`` and ``<`` that do not start an entity or a tag."""

    name = "EscapeSpecialCharacters"
    priority = 8

    def apply(self, text: str) -> str:
        text = BARE_AMPERSAND.sub("&amp;", text)
        return STRAY_LT.sub("&lt;", text)


class QuoteAttributes(RepairStrategy):
    name = "QuoteAttributes"
    priority = 7

    def apply(self, text: str) -> str:
        def fix_tag(match: "re.Match[str]") -> str:
            return UNQUOTED_ATTRIBUTE.sub(r'\1="\2"', match.group(0))
        return TAG.sub(fix_tag, text)


class FixUnclosedTags(RepairStrategy):
    """Balance the element tree.

    A closing tag that matches an element further down the stack closes
    the elements opened after it; one that matches nothing is dropped.
    Elements still open at the end are closed in nesting order.
    """

    name = "FixUnclosedTags"
    priority = 5

    def apply(self, text: str) -> str:
        out: List[str] = []
        stack: List[str] = []
        last = 0
        for match in TAG.finditer(text):
            out.append(text[last:match.start()])
            last = match.end()
            closing, name, _, self_closing = match.groups()
            if self_closing:
                out.append(match.group(0))
            elif not closing:
                stack.append(name)
                out.append(match.group(0))
            elif name in stack:
                while stack[-1] != name:
                    out.append(f"</{stack.pop()}>")
                stack.pop()
                out.append(match.group(0))
            # unmatched closing tags are dropped
        out.append(text[last:])
        result = "".join(out).rstrip()
        for name in reversed(stack):
            result += f"</{name}>"
        return result


class WrapMultipleRoots(RepairStrategy):
    """a document needs exactly one root element."""

    name = "WrapMultipleRoots"
    priority = 2

    def apply(self, text: str) -> str:
        declaration = ROOT_ELEMENT.match(text)
        prolog = declaration.group(1) or ""
        body = text[declaration.end():]
        depth = 0
        roots = 0
        top_text = False
        last = 0
        for match in TAG.finditer(body):
            if depth == 0 and SPECIAL_TAG.sub("", body[last:match.start()]).strip():
                top_text = True
            last = match.end()
            closing, _, _, self_closing = match.groups()
            if closing:
                depth -= 1
            elif self_closing:
                if depth == 0:
                    roots += 1
            else:
                if depth == 0:
                    roots += 1
                depth += 1
        if depth == 0 and SPECIAL_TAG.sub("", body[last:]).strip():
            top_text = True
        if roots <= 1 and not top_text:
            return text
        wrapped = f"<root>{body.strip()}</root>"
        return f"{prolog}\n{wrapped}" if prolog else wrapped


def default_xml_strategies() -> List[RepairStrategy]:
    return [
        ExtractFencedBlock(),
        EscapeSpecialCharacters(),
        QuoteAttributes(),
        RegexStrategy("FixSelfClosingTags", VOID_ELEMENT, r"<\1\2/>", priority=6),
        FixUnclosedTags(),
        WrapMultipleRoots(),
    ]


class XmlRepairer(GenericRepairer):
    format = Format.XML

    def __init__(self, extra_strategies: Optional[Iterable[RepairStrategy]] = None):
        super().__init__(XmlValidator(), default_xml_strategies(), extra_strategies)
