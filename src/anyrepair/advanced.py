"""Best-of repair across competing strategies.

Where a format repairer runs one chain, :class:`AdvancedRepairer` runs several
whole repair approaches on the same input, scores every output with the
confidence scorer of the detected format and keeps the best one. Candidates
can be evaluated on a thread pool.
"""

import logging
import re
from typing import Dict, List, Optional, Union

from .config import config
from .custom_rules import RulesSource, resolve_rules
from .detection import detect_format
from .formats import get_repairer
from .formats.json_repair import EnhancedJsonRepairer, JsonRepairer
from .interfaces import RepairStrategy, Repairer, Validator
from .models import Candidate, Format
from .pipeline import BestOfPipeline
from .scoring import get_scorer
from .validators import VALIDATORS, get_validator

logger = logging.getLogger(__name__)

BLANK_RUNS = re.compile(r"\n{3,}")


class FormatRepairStrategy(RepairStrategy):
    """the regular repairer of one format"""

    priority = 10

    def __init__(self, fmt: Format, rules: RulesSource = None):
        self.format = fmt
        self.rules = rules
        self.name = f"{fmt.value.capitalize()}Repair"

    def apply(self, text: str) -> str:
        return get_repairer(self.format, rules=self.rules).repair(text)


class JsonChainStrategy(RepairStrategy):
    """JSON strategy chain without the parser fallback"""

    name = "JsonChain"
    priority = 9

    def apply(self, text: str) -> str:
        return JsonRepairer(use_parser=False).repair(text)


class ParserFirstStrategy(RepairStrategy):
    """recovery parser straight away; its errors disqualify the candidate"""

    name = "ParserFirst"
    priority = 8

    def apply(self, text: str) -> str:
        return EnhancedJsonRepairer().repair_json(text, skip_json_loads=True)


class NormalizeWhitespace(RepairStrategy):
    name = "NormalizeWhitespace"
    priority = 1

    def apply(self, text: str) -> str:
        lines = []
        for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
            body = line.lstrip(" \t")
            leading = line[:len(line) - len(body)].replace("\t", "  ")
            lines.append((leading + body).rstrip())
        return BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip()


class AdvancedValidator(Validator):
    """Validates against the format the text is detected as.

    :meth:`validate_all` reports every format's verdict for diagnostics.
    """

    def __init__(self, fmt: Optional[Format] = None):
        self.format = fmt

    def _format_for(self, text: str) -> Format:
        return self.format or detect_format(text)

    def is_valid(self, text: str) -> bool:
        if not text or not text.strip():
            return False
        return get_validator(self._format_for(text)).is_valid(text)

    def validate(self, text: str) -> List[str]:
        if not text or not text.strip():
            return ["Empty content"]
        fmt = self._format_for(text)
        return [f"{fmt.value}: {error}" for error in get_validator(fmt).validate(text)]

    def validate_all(self, text: str) -> Dict[Format, List[str]]:
        return {fmt: validator.validate(text) for fmt, validator in VALIDATORS.items()}

    def formats_accepting(self, text: str) -> List[Format]:
        return [fmt for fmt, validator in VALIDATORS.items() if validator.is_valid(text)]


class AdvancedRepairer(Repairer):
    """Multi-strategy repairer with confidence-based selection.

    Valid input is returned as is. Otherwise every strategy runs on the
    stripped text and the highest-scoring output wins; see
    :class:`~anyrepair.pipeline.BestOfPipeline` for the selection rules.
    """

    def __init__(
        self,
        fmt: Union[Format, str, None] = None,
        threshold: Optional[float] = None,
        parallel: Optional[bool] = None,
        max_workers: Optional[int] = None,
        rules: RulesSource = None,
    ):
        self.format = Format.parse(fmt) if fmt is not None else None
        self.confidence_threshold = threshold if threshold is not None else config.CONFIDENCE_THRESHOLD
        self.parallel = config.ENABLE_PARALLEL if parallel is None else parallel
        self.max_workers = max_workers or config.PARALLEL_WORKERS
        self.rules = resolve_rules(rules)
        self.validator = AdvancedValidator(self.format)
        self.last_candidates: List[Candidate] = []
        self.last_format: Optional[Format] = None
        self._repair_log: List[str] = []

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    @confidence_threshold.setter
    def confidence_threshold(self, value: float) -> None:
        self._threshold = max(0.0, min(1.0, float(value)))

    def set_confidence_threshold(self, threshold: float) -> None:
        self.confidence_threshold = threshold

    def get_repair_log(self) -> List[str]:
        return list(self._repair_log)

    def clear_log(self) -> None:
        self._repair_log.clear()

    def strategies_for(self, fmt: Format) -> List[RepairStrategy]:
        strategies: List[RepairStrategy] = [FormatRepairStrategy(fmt, self.rules), NormalizeWhitespace()]
        if fmt is Format.JSON:
            strategies += [JsonChainStrategy(), ParserFirstStrategy()]
        return strategies

    @property
    def last_applied(self) -> List[str]:
        best = self.best_candidate
        return [best.strategy] if best is not None else []

    @property
    def best_candidate(self) -> Optional[Candidate]:
        usable = [c for c in self.last_candidates if not c.failed]
        return max(usable, key=lambda c: c.score) if usable else None

    def repair(self, text: str) -> str:
        self.last_candidates = []
        if text is None or not text.strip():
            return ""
        fmt = self.format or detect_format(text)
        self.last_format = fmt
        validator = get_validator(fmt)
        if validator.is_valid(text):
            return text
        stripped = text.strip()
        if validator.is_valid(stripped):
            return stripped

        scorer = get_scorer()
        pipeline = BestOfPipeline(
            self.strategies_for(fmt),
            scorer=lambda candidate: scorer.score(candidate, fmt),
            threshold=self.confidence_threshold,
            max_workers=self.max_workers,
            parallel=self.parallel,
        )
        self.last_candidates = pipeline.candidates(stripped)
        best = pipeline.select(self.last_candidates)
        if best is None:
            self._repair_log.append(f"No {fmt.value} strategy produced output")
            return stripped
        self._repair_log.append(f"Selected {best.strategy} ({best.score:.2f}) for {fmt.value}")
        logger.debug(f"best-of selected {best.strategy}",
                     extra={"format": fmt.value, "score": best.score, "candidates": len(self.last_candidates)})
        return best.text

    def needs_repair(self, text: str) -> bool:
        return not self.validator.is_valid(text)

    def confidence(self, text: str) -> float:
        if not text or not text.strip():
            return 0.0
        return get_scorer().score(text, self.format or detect_format(text))

    def validate(self, text: str) -> List[str]:
        return self.validator.validate(text)
