"""CSV repair strategies"""

import csv
import io
import re
from collections import Counter
from typing import Iterable, List, Optional

from ..interfaces import RepairStrategy
from ..models import Format
from ..validators import CsvValidator
from .base import ExtractFencedBlock, GenericRepairer

ALT_DELIMITERS = (";", "\t", "|")
WHITESPACE_AROUND_QUOTES = re.compile(r'(^|,)\s+(?=")|(?<=")\s+(?=,|$)')


class NormalizeDelimiter(RepairStrategy):
    """switch to commas when every row uses another single delimiter."""

    name = "NormalizeDelimiter"
    priority = 7

    def apply(self, text: str) -> str:
        lines = [line for line in text.split("\n") if line.strip()]
        if not lines or any("," in line for line in lines):
            return text
        for delimiter in ALT_DELIMITERS:
            if all(delimiter in line for line in lines):
                rows = csv.reader(io.StringIO(text), delimiter=delimiter)
                return _write_rows([[cell.strip() for cell in row] for row in rows if row])
        return text


class FixUnbalancedQuotes(RepairStrategy):
    """close a quoted field left open at the end of its line."""

    name = "FixUnbalancedQuotes"
    priority = 6

    def apply(self, text: str) -> str:
        out: List[str] = []
        for line in text.split("\n"):
            line = WHITESPACE_AROUND_QUOTES.sub(lambda m: m.group(1) or "", line)
            if line.count('"') % 2:
                line = line.rstrip() + '"'
            out.append(line)
        return "\n".join(out)


class NormalizeRows(RepairStrategy):
    """Rewrite every row with the width most rows agree on.

    Short rows are padded with empty fields. Long rows first lose trailing
    empty fields; any remaining overflow is folded into the last column,
    which is where an unquoted comma usually came from. Fields are
    re-quoted as needed on output.
    """

    name = "NormalizeRows"
    priority = 5

    def apply(self, text: str) -> str:
        rows = [row for row in csv.reader(io.StringIO(text)) if row]
        if not rows:
            return text
        width = Counter(len(row) for row in rows).most_common(1)[0][0]
        width = max(width, len(rows[0]))
        fixed: List[List[str]] = []
        for row in rows:
            row = [cell.strip() for cell in row]
            while len(row) > width and row[-1] == "":
                row.pop()
            if len(row) > width:
                row = row[:width - 1] + [", ".join(row[width - 1:])]
            row += [""] * (width - len(row))
            fixed.append(row)
        return _write_rows(fixed)


def _write_rows(rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def default_csv_strategies() -> List[RepairStrategy]:
    return [
        ExtractFencedBlock(),
        NormalizeDelimiter(),
        FixUnbalancedQuotes(),
        NormalizeRows(),
    ]


class CsvRepairer(GenericRepairer):
    format = Format.CSV

    def __init__(self, extra_strategies: Optional[Iterable[RepairStrategy]] = None):
        super().__init__(CsvValidator(), default_csv_strategies(), extra_strategies)
