"""shared repairer plumbing for every format"""

import logging
import re
from typing import Callable, Iterable, List, Optional, Pattern, Union

from ..config import config
from ..interfaces import RepairStrategy, Repairer, Validator
from ..models import Format
from ..pipeline import ChainPipeline
from ..scoring import get_scorer

logger = logging.getLogger(__name__)

# double-quoted string literal, escapes included; unterminated strings do not match
STRING_LITERAL = re.compile(r'"(?:[^"\\\n]|\\.)*"')


def map_outside_strings(text: str, fn: Callable[[str], str]) -> str:
    """apply ``fn`` to every stretch of text that is not inside a string literal."""
    parts: List[str] = []
    last = 0
    for match in STRING_LITERAL.finditer(text):
        parts.append(fn(text[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(fn(text[last:]))
    return "".join(parts)


def map_lines(text: str, fn: Callable[[str], str]) -> str:
    return "\n".join(fn(line) for line in text.split("\n"))


class RegexStrategy(RepairStrategy):
    """single regex substitution; ``replacement`` may be a string or a callable."""

    def __init__(
        self,
        name: str,
        pattern: Union[str, Pattern[str]],
        replacement: Union[str, Callable[["re.Match[str]"], str]],
        priority: int = 0,
        flags: int = 0,
        outside_strings: bool = False,
    ):
        self.name = name
        self.priority = priority
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern
        self.replacement = replacement
        self.outside_strings = outside_strings

    def apply(self, text: str) -> str:
        if self.outside_strings:
            return map_outside_strings(text, lambda chunk: self.pattern.sub(self.replacement, chunk))
        return self.pattern.sub(self.replacement, text)


class FunctionStrategy(RepairStrategy):
    """wraps a plain ``str -> str`` function as a strategy."""

    def __init__(self, name: str, fn: Callable[[str], str], priority: int = 0):
        self.name = name
        self.priority = priority
        self._fn = fn

    def apply(self, text: str) -> str:
        return self._fn(text)


class GenericRepairer(Repairer):
    """Chain-of-strategies repairer over one format.

    ``repair`` returns valid input untouched, maps empty input to ``""``,
    and otherwise runs the strategy chain on the stripped text. The output
    is returned even if the validator still rejects it.
    """

    format: Format = Format.MARKDOWN

    def __init__(
        self,
        validator: Validator,
        strategies: Iterable[RepairStrategy],
        extra_strategies: Optional[Iterable[RepairStrategy]] = None,
    ):
        self.validator = validator
        self.pipeline = ChainPipeline([*strategies, *(extra_strategies or [])])
        self._repair_log: List[str] = []
        self.last_applied: List[str] = []

    def add_strategy(self, strategy: RepairStrategy) -> None:
        self.pipeline.add(strategy)

    def _log(self, message: str) -> None:
        self._repair_log.append(message)
        logger.debug(message, extra={"format": self.format.value})

    def get_repair_log(self) -> List[str]:
        return list(self._repair_log)

    def clear_log(self) -> None:
        self._repair_log.clear()

    def repair(self, text: str) -> str:
        self.last_applied = []
        if text is None or not text.strip():
            return ""
        if self.validator.is_valid(text):
            return text
        trimmed = text.strip()
        if self.validator.is_valid(trimmed):
            return trimmed
        return self._finish(trimmed, self._run_chain(trimmed))

    def _run_chain(self, text: str) -> str:
        """run the chain until the text validates or stops changing."""
        current = text
        for _ in range(max(config.MAX_ATTEMPTS, 1)):
            result, applied = self.pipeline.run(current)
            self.last_applied.extend(applied)
            if result == current:
                break
            current = result
            if self.validator.is_valid(current):
                break
        for name in self.last_applied:
            self._log(f"Applied {name}")
        return current

    def _finish(self, original: str, repaired: str) -> str:
        if not self.validator.is_valid(repaired):
            self._log(f"{self.format.value} still invalid after {len(self.last_applied)} strategies")
        return repaired

    def needs_repair(self, text: str) -> bool:
        return not self.validator.is_valid(text)

    def confidence(self, text: str) -> float:
        return get_scorer().score(text, self.format)

    def validate(self, text: str) -> List[str]:
        return self.validator.validate(text)


class ExtractFencedBlock(RepairStrategy):
    """unwrap the first markdown code fence, if the text carries one."""

    name = "ExtractFencedBlock"
    priority = 200

    CODE_FENCE = re.compile(r"```[\w+-]*[ \t]*\n(.*?)```", re.DOTALL)

    def apply(self, text: str) -> str:
        match = self.CODE_FENCE.search(text)
        if match:
            return match.group(1).strip()
        return text
