"""JSON repairers: strategy chain with recovery-parser fallback"""

import json
import logging
from pathlib import Path
from typing import IO, Any, Iterable, List, Optional, Union

from ..config import config
from ..errors import RepairError, SerializationError
from ..interfaces import RepairStrategy
from ..models import Format
from ..recovery.parser import RecoveryParser
from ..recovery.trimmer import trim_trailing_content
from ..validators import JsonValidator
from .base import GenericRepairer
from .json_strategies import ExtractJsonPayload, default_json_strategies

logger = logging.getLogger(__name__)


def dumps(value: Any) -> str:
    """compact JSON; non-finite floats cannot be represented."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (ValueError, TypeError) as e:
        raise SerializationError(f"Cannot serialize recovered value: {e}", cause=e) from e


class JsonRepairer(GenericRepairer):
    """Repair JSON text.

    Stages, stopping at the first valid result:

    1. input that already parses is returned as is;
    2. the strategy chain (fences, trailing content, braces, commas,
       quotes, numbers, literals);
    3. the recovery parser over the chain output, then over the trimmed
       original, re-serialized compactly.

    When nothing validates the chain output is returned. Parser failures
    are logged, never raised.
    """

    format = Format.JSON

    def __init__(
        self,
        extra_strategies: Optional[Iterable[RepairStrategy]] = None,
        max_depth: Optional[int] = None,
        use_parser: bool = True,
    ):
        super().__init__(JsonValidator(), default_json_strategies(), extra_strategies)
        self.max_depth = max_depth if max_depth is not None else config.MAX_DEPTH
        self.use_parser = use_parser

    def _finish(self, original: str, repaired: str) -> str:
        if self.validator.is_valid(repaired) or not self.use_parser:
            return super()._finish(original, repaired)

        fallback = trim_trailing_content(ExtractJsonPayload().apply(original))
        for source in (repaired, fallback):
            recovered = self._recover(source)
            if recovered is not None:
                self.last_applied.append("RecoveryParser")
                self._log("Recovered structure with parser")
                return recovered
        return super()._finish(original, repaired)

    def _recover(self, text: str) -> Optional[str]:
        try:
            value = RecoveryParser(text, max_depth=self.max_depth).parse()
            output = dumps(value)
        except RepairError as e:
            logger.debug(f"recovery parser gave up: {e}", extra={"error": type(e).__name__})
            return None
        if self.validator.is_valid(output):
            return output
        return None


class EnhancedJsonRepairer:
    """Parser-first JSON repair with a ``json``-module style API.

    Unlike :class:`JsonRepairer` this goes straight to the recovery parser
    and lets its fatal errors propagate.
    """

    def __init__(self, logging_enabled: bool = False, max_depth: Optional[int] = None):
        self.logging_enabled = logging_enabled
        self.max_depth = max_depth if max_depth is not None else config.MAX_DEPTH
        self._repair_log: List[str] = []

    def _log(self, message: str) -> None:
        if self.logging_enabled:
            self._repair_log.append(message)
        logger.debug(message)

    def get_repair_log(self) -> List[str]:
        return list(self._repair_log)

    def clear_log(self) -> None:
        self._repair_log.clear()

    def parse(self, text: str) -> Any:
        """recover a python value from ``text``."""
        if not text or not text.strip():
            return ""
        cleaned = trim_trailing_content(ExtractJsonPayload().apply(text))
        value = RecoveryParser(cleaned, max_depth=self.max_depth).parse()
        self._log(f"Recovered {type(value).__name__} from {len(text)} characters")
        return value

    def repair_json(self, text: str, skip_json_loads: bool = False) -> str:
        if not text or not text.strip():
            return ""
        if not skip_json_loads:
            try:
                json.loads(text)
                self._log("Input is already valid JSON")
                return text
            except (ValueError, RecursionError):
                pass
        return dumps(self.parse(text))

    def loads(self, text: str, skip_json_loads: bool = False) -> Any:
        """drop-in for ``json.loads`` that tolerates malformed input."""
        if not skip_json_loads:
            try:
                return json.loads(text)
            except (ValueError, RecursionError):
                pass
        return self.parse(text)

    def load(self, fp: IO[str], skip_json_loads: bool = False) -> Any:
        return self.loads(fp.read(), skip_json_loads=skip_json_loads)

    def from_file(self, path: Union[str, Path], skip_json_loads: bool = False) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            return self.load(f, skip_json_loads=skip_json_loads)


def repair_json(text: str, skip_json_loads: bool = False) -> str:
    return EnhancedJsonRepairer().repair_json(text, skip_json_loads=skip_json_loads)


def loads(text: str, skip_json_loads: bool = False) -> Any:
    return EnhancedJsonRepairer().loads(text, skip_json_loads=skip_json_loads)


def load(fp: IO[str], skip_json_loads: bool = False) -> Any:
    return EnhancedJsonRepairer().load(fp, skip_json_loads=skip_json_loads)


def from_file(path: Union[str, Path], skip_json_loads: bool = False) -> Any:
    return EnhancedJsonRepairer().from_file(path, skip_json_loads=skip_json_loads)
