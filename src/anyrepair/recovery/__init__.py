"""tolerant JSON recovery: scanner, context tracking, parser, trimming"""

from .context import ContextStack, ParseContext
from .parser import RecoveryParser, parse_tolerant
from .scanner import TolerantScanner
from .trimmer import find_value_end, trim_trailing_content

__all__ = [
    "ContextStack",
    "ParseContext",
    "RecoveryParser",
    "parse_tolerant",
    "TolerantScanner",
    "find_value_end",
    "trim_trailing_content",
]
