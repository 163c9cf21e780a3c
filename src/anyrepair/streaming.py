"""Chunked repair for inputs too large to hold in memory at once.

Lines are collected into a buffer. Once the buffer holds at least
``buffer_size`` characters it is repaired as one unit and written out, so
memory stays bounded by the buffer rather than the input. Every chunk is
repaired on its own: a value split across a chunk boundary is repaired as
two halves, so the buffer should be larger than the biggest record.
"""

import logging
from typing import Dict, Iterable, List, Optional, TextIO, Union

from .config import config
from .custom_rules import RulesSource, resolve_rules
from .detection import detect_format
from .errors import ConfigurationError
from .formats import get_repairer
from .formats.base import GenericRepairer
from .models import Format

logger = logging.getLogger(__name__)


class StreamingRepair:
    """Repair a text stream chunk by chunk.

    Args:
        buffer_size: characters to collect before a chunk is repaired
            (``ANYREPAIR_STREAM_BUFFER`` when omitted)
        rules: custom rules, resolved once for the whole stream
    """

    def __init__(self, buffer_size: Optional[int] = None, rules: RulesSource = None):
        if buffer_size is None:
            buffer_size = config.STREAM_BUFFER_SIZE
        if buffer_size < 1:
            raise ConfigurationError(f"buffer_size must be positive, got {buffer_size}")
        self.buffer_size = buffer_size
        self.engine = resolve_rules(rules)
        self.chunks_processed = 0
        self._repairers: Dict[Format, GenericRepairer] = {}

    def _repairer_for(self, fmt: Format) -> GenericRepairer:
        if fmt not in self._repairers:
            self._repairers[fmt] = get_repairer(fmt, rules=self.engine)
        return self._repairers[fmt]

    def repair_chunk(self, chunk: str, fmt: Optional[Format] = None) -> str:
        """Repair one chunk; ``fmt=None`` detects the format of this chunk alone."""
        if fmt is None:
            fmt = detect_format(chunk)
        self.chunks_processed += 1
        return self._repairer_for(fmt).repair(chunk)

    def _flush(self, buffer: List[str], writer: TextIO, fmt: Optional[Format]) -> int:
        repaired = self.repair_chunk("".join(buffer), fmt)
        buffer.clear()
        if not repaired:
            return 0
        if not repaired.endswith("\n"):
            repaired += "\n"
        writer.write(repaired)
        return len(repaired)

    def process(
        self,
        reader: Iterable[str],
        writer: TextIO,
        fmt: Union[Format, str, None] = "auto",
    ) -> int:
        """Repair everything ``reader`` yields and write it to ``writer``.

        ``reader`` is anything that yields lines, such as an open text file.
        ``fmt`` of ``None`` or ``"auto"`` detects the format per chunk. Returns
        the number of characters written. I/O errors propagate.
        """
        if fmt is None or (isinstance(fmt, str) and fmt.strip().lower() == "auto"):
            target: Optional[Format] = None
        else:
            target = Format.parse(fmt)

        written = 0
        buffered = 0
        buffer: List[str] = []
        for line in reader:
            if not line.endswith("\n"):
                line += "\n"
            buffer.append(line)
            buffered += len(line)
            if buffered >= self.buffer_size:
                written += self._flush(buffer, writer, target)
                buffered = 0

        if buffer:
            written += self._flush(buffer, writer, target)

        logger.debug(
            f"streamed {written} characters in {self.chunks_processed} chunks",
            extra={"format": target.value if target else "auto", "chunks": self.chunks_processed},
        )
        return written
