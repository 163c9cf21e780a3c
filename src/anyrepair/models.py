"""shared data types"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Format(Enum):
    """structured text formats the engine can repair."""
    JSON = "json"
    YAML = "yaml"
    XML = "xml"
    TOML = "toml"
    CSV = "csv"
    INI = "ini"
    MARKDOWN = "markdown"

    @classmethod
    def parse(cls, value: "Format | str") -> "Format":
        """accept an enum member or a case-insensitive name/alias."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {"yml": "yaml", "md": "markdown", "cfg": "ini", "conf": "ini"}
        key = aliases.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown format: {value!r}")


@dataclass
class Candidate:
    """one strategy's output in a best-of run."""
    strategy: str
    text: str
    score: float = 0.0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RepairOutcome:
    """Result of a single repair call.

    Carries enough to report what happened without re-running the repair:
    the detected or requested format, the score of the repaired text, and
    the names of the strategies that changed the text.
    """
    original: str
    repaired: str
    format: Format
    confidence: float
    applied: List[str] = field(default_factory=list)
    valid: bool = False

    @property
    def changed(self) -> bool:
        return self.original != self.repaired

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.value,
            "changed": self.changed,
            "valid": self.valid,
            "confidence": round(self.confidence, 4),
            "applied": list(self.applied),
            "repaired": self.repaired,
        }
