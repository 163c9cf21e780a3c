"""strategy pipelines: sequential chain and best-of selection"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import config
from .interfaces import RepairStrategy
from .models import Candidate

logger = logging.getLogger(__name__)

Scorer = Callable[[str], float]


def sort_strategies(strategies: Iterable[RepairStrategy]) -> List[RepairStrategy]:
    """highest priority first; equal priorities keep registration order."""
    return sorted(strategies, key=lambda s: s.priority, reverse=True)


class ChainPipeline:
    """Apply strategies in priority order, each on the previous output.

    A strategy that raises is logged and skipped; the text it received is
    passed on unchanged.
    """

    def __init__(self, strategies: Iterable[RepairStrategy]):
        self.strategies = sort_strategies(strategies)

    def add(self, strategy: RepairStrategy) -> None:
        self.strategies = sort_strategies([*self.strategies, strategy])

    def run(self, text: str) -> Tuple[str, List[str]]:
        applied: List[str] = []
        current = text
        for strategy in self.strategies:
            try:
                result = strategy.apply(current)
            except Exception as e:
                logger.debug(f"strategy {strategy.name} failed: {e}",
                             extra={"strategy": strategy.name, "error": str(e)})
                continue
            if result != current:
                applied.append(strategy.name)
                current = result
        return current, applied

    def __len__(self) -> int:
        return len(self.strategies)


class BestOfPipeline:
    """Run every strategy on the same input and keep the best-scoring output.

    The highest-scoring candidate wins, earlier priority breaking ties. It
    is returned even when it falls short of ``threshold``; the shortfall is
    only logged. With ``parallel`` the
    strategies run on a thread pool and results are reduced on the calling
    thread.
    """

    def __init__(
        self,
        strategies: Iterable[RepairStrategy],
        scorer: Scorer,
        threshold: Optional[float] = None,
        max_workers: Optional[int] = None,
        parallel: Optional[bool] = None,
    ):
        self.strategies = sort_strategies(strategies)
        self.scorer = scorer
        self.threshold = threshold if threshold is not None else config.CONFIDENCE_THRESHOLD
        self.max_workers = max_workers or config.PARALLEL_WORKERS
        self.parallel = config.ENABLE_PARALLEL if parallel is None else parallel

    @property
    def threshold(self) -> float:
        return self._threshold

    @threshold.setter
    def threshold(self, value: float) -> None:
        self._threshold = max(0.0, min(1.0, float(value)))

    def _evaluate(self, strategy: RepairStrategy, text: str) -> Candidate:
        try:
            output = strategy.apply(text)
        except Exception as e:
            logger.debug(f"strategy {strategy.name} failed: {e}",
                         extra={"strategy": strategy.name, "error": str(e)})
            return Candidate(strategy=strategy.name, text=text, score=0.0, error=str(e))
        try:
            score = self.scorer(output)
        except Exception as e:
            logger.debug(f"scoring {strategy.name} output failed: {e}", extra={"strategy": strategy.name})
            score = 0.0
        return Candidate(strategy=strategy.name, text=output, score=max(0.0, min(1.0, score)))

    def candidates(self, text: str) -> List[Candidate]:
        """score every strategy's output, returned in priority order."""
        if not self.strategies:
            return []
        if not self.parallel or len(self.strategies) == 1:
            return [self._evaluate(strategy, text) for strategy in self.strategies]

        results: Dict[int, Candidate] = {}
        workers = min(self.max_workers, len(self.strategies))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._evaluate, strategy, text): index
                for index, strategy in enumerate(self.strategies)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return [results[i] for i in range(len(self.strategies))]

    def select(self, candidates: List[Candidate]) -> Optional[Candidate]:
        usable = [c for c in candidates if not c.failed]
        if not usable:
            return None
        best = max(usable, key=lambda c: c.score)
        if best.score < self.threshold:
            logger.debug(f"no candidate reached threshold {self.threshold:.2f}, best {best.score:.2f}",
                         extra={"threshold": self.threshold, "best": best.strategy})
        return best

    def run(self, text: str) -> Tuple[str, Optional[Candidate]]:
        best = self.select(self.candidates(text))
        if best is None:
            return text, None
        return best.text, best
