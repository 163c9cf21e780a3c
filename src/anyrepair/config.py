import os
import warnings
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


def safe_int(value: Optional[str], default: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    if value is None:
        return default
    try:
        result = int(value)
        if min_val is not None and result < min_val:
            warnings.warn(
                f"Value {result} is below minimum {min_val}, using default {default}",
                RuntimeWarning,
                stacklevel=2
            )
            return default
        if max_val is not None and result > max_val:
            warnings.warn(
                f"Value {result} exceeds maximum {max_val}, using default {default}",
                RuntimeWarning,
                stacklevel=2
            )
            return default
        return result
    except (ValueError, TypeError):
        return default


def safe_float(value: Optional[str], default: float, min_val: Optional[float] = None, max_val: Optional[float] = None) -> float:
    if value is None:
        return default
    try:
        result = float(value)
        if min_val is not None and result < min_val:
            warnings.warn(
                f"Value {result} is below minimum {min_val}, using default {default}",
                RuntimeWarning,
                stacklevel=2
            )
            return default
        if max_val is not None and result > max_val:
            warnings.warn(
                f"Value {result} exceeds maximum {max_val}, using default {default}",
                RuntimeWarning,
                stacklevel=2
            )
            return default
        return result
    except (ValueError, TypeError):
        return default


def env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass
class AnyRepairConfig:
    # nesting cap for the recovery parser, kept well under the interpreter recursion limit
    MAX_DEPTH: int = field(default_factory=lambda: safe_int(
        os.getenv("ANYREPAIR_MAX_DEPTH"), default=200, min_val=10, max_val=900
    ))
    CONFIDENCE_THRESHOLD: float = field(default_factory=lambda: safe_float(
        os.getenv("ANYREPAIR_CONFIDENCE_THRESHOLD"), default=0.7, min_val=0.0, max_val=1.0
    ))
    PARALLEL_WORKERS: int = field(default_factory=lambda: safe_int(
        os.getenv("ANYREPAIR_WORKERS"), default=4, min_val=1, max_val=64
    ))
    ENABLE_PARALLEL: bool = field(default_factory=lambda: env_flag("ANYREPAIR_PARALLEL", True))
    # characters collected before a streamed chunk is repaired
    STREAM_BUFFER_SIZE: int = field(default_factory=lambda: safe_int(
        os.getenv("ANYREPAIR_STREAM_BUFFER"), default=8192, min_val=64, max_val=64 * 1024 * 1024
    ))
    # bound on how far a string-end lookahead may scan
    MAX_LOOKAHEAD: int = field(default_factory=lambda: safe_int(
        os.getenv("ANYREPAIR_MAX_LOOKAHEAD"), default=4096, min_val=16, max_val=1_000_000
    ))
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("ANYREPAIR_LOG_LEVEL", "WARNING"))
    RULES_FILE: Optional[Path] = field(default_factory=lambda: (
        Path(os.environ["ANYREPAIR_RULES_FILE"]) if os.getenv("ANYREPAIR_RULES_FILE") else None
    ))

    MAX_ATTEMPTS: int = 3

    def __post_init__(self) -> None:
        self.LOG_LEVEL = (self.LOG_LEVEL or "WARNING").upper()
        if self.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            warnings.warn(
                f"[config] Invalid ANYREPAIR_LOG_LEVEL='{self.LOG_LEVEL}', defaulting to 'WARNING'",
                RuntimeWarning,
                stacklevel=2,
            )
            self.LOG_LEVEL = "WARNING"
        if self.RULES_FILE is not None and not self.RULES_FILE.exists():
            warnings.warn(
                f"[config] ANYREPAIR_RULES_FILE '{self.RULES_FILE}' does not exist, ignoring",
                RuntimeWarning,
                stacklevel=2,
            )
            self.RULES_FILE = None

    def summary(self) -> Dict[str, Any]:
        return {
            "max_depth": self.MAX_DEPTH,
            "confidence_threshold": self.CONFIDENCE_THRESHOLD,
            "parallel_workers": self.PARALLEL_WORKERS,
            "enable_parallel": self.ENABLE_PARALLEL,
            "max_lookahead": self.MAX_LOOKAHEAD,
            "log_level": self.LOG_LEVEL,
            "rules_file": str(self.RULES_FILE) if self.RULES_FILE else None,
        }


config = AnyRepairConfig()
