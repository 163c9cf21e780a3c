"""Interfaces shared by every format repairer."""

from abc import ABC, abstractmethod
from typing import List


class RepairStrategy(ABC):
    """A single stateless text transformation.

    Strategies are ordered by ``priority`` (higher runs first). ``apply`` may
    raise; pipelines treat a raising strategy as a no-op.
    """

    name: str = "strategy"
    priority: int = 0

    @abstractmethod
    def apply(self, text: str) -> str:
        """Return the transformed text."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


class Validator(ABC):
    """Strict syntax check for one format."""

    @abstractmethod
    def is_valid(self, text: str) -> bool:
        """True when a strict parser accepts the text."""
        pass

    @abstractmethod
    def validate(self, text: str) -> List[str]:
        """Human-readable problems, empty when valid."""
        pass


class Repairer(ABC):
    """Repairs text of one format."""

    @abstractmethod
    def repair(self, text: str) -> str:
        """Return repaired text; never raises for malformed input."""
        pass

    @abstractmethod
    def needs_repair(self, text: str) -> bool:
        pass

    @abstractmethod
    def confidence(self, text: str) -> float:
        """Score in [0.0, 1.0] that the text is valid for this format."""
        pass

    @abstractmethod
    def validate(self, text: str) -> List[str]:
        pass
