"""top-level convenience functions"""

import logging
from typing import List, Optional, Union

from .advanced import AdvancedRepairer
from .custom_rules import RulesSource
from .detection import detect_format
from .formats import get_repairer
from .models import Format, RepairOutcome
from .scoring import get_scorer
from .validators import get_validator

logger = logging.getLogger(__name__)

FormatArg = Union[Format, str, None]


def _resolve_format(text: str, fmt: FormatArg) -> Format:
    if fmt is None:
        return detect_format(text or "")
    return Format.parse(fmt)


def repair_with_report(
    text: str,
    format: FormatArg = None,
    *,
    rules: RulesSource = None,
    advanced: bool = False,
) -> RepairOutcome:
    """Repair ``text`` and describe what was done.

    The format is detected when not given. With ``advanced`` the best-of
    repairer competes several approaches instead of running one chain.
    """
    text = text or ""
    fmt = _resolve_format(text, format)
    if advanced:
        repairer = AdvancedRepairer(fmt, rules=rules)
    else:
        repairer = get_repairer(fmt, rules=rules)
    repaired = repairer.repair(text)
    outcome = RepairOutcome(
        original=text,
        repaired=repaired,
        format=fmt,
        confidence=get_scorer().score(repaired, fmt),
        applied=list(repairer.last_applied),
        valid=get_validator(fmt).is_valid(repaired),
    )
    logger.info(
        f"repaired {fmt.value} input",
        extra={"format": fmt.value, "changed": outcome.changed, "valid": outcome.valid,
               "confidence": outcome.confidence},
    )
    return outcome


def repair(text: str, format: FormatArg = None, *, rules: RulesSource = None) -> str:
    return repair_with_report(text, format, rules=rules).repaired


def confidence(text: str, format: FormatArg = None) -> float:
    if not text or not text.strip():
        return 0.0
    return get_scorer().score(text, _resolve_format(text, format))


def needs_repair(text: str, format: FormatArg = None) -> bool:
    return not get_validator(_resolve_format(text, format)).is_valid(text or "")


def validate(text: str, format: FormatArg = None) -> List[str]:
    return get_validator(_resolve_format(text, format)).validate(text or "")


def supported_formats() -> List[str]:
    return [fmt.value for fmt in Format]


def format_of(name: Optional[str]) -> Optional[Format]:
    """parse a user-supplied format name; ``None`` and ``"auto"`` mean detect."""
    if name is None or name.strip().lower() == "auto":
        return None
    return Format.parse(name)
