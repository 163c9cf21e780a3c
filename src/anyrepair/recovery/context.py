"""lexical context tracking for the recovery parser"""

from enum import Enum
from typing import List, Optional


class ParseContext(Enum):
    ROOT = "root"
    OBJECT = "object"
    OBJECT_KEY = "object_key"
    OBJECT_VALUE = "object_value"
    ARRAY = "array"


class ContextStack:
    """stack of parse contexts; depth mirrors structural nesting."""

    def __init__(self, initial: Optional[ParseContext] = None):
        self._stack: List[ParseContext] = [initial] if initial is not None else []

    def push(self, context: ParseContext) -> None:
        self._stack.append(context)

    def pop(self) -> Optional[ParseContext]:
        if not self._stack:
            return None
        return self._stack.pop()

    def current(self) -> Optional[ParseContext]:
        return self._stack[-1] if self._stack else None

    def is_empty(self) -> bool:
        return not self._stack

    @property
    def depth(self) -> int:
        return len(self._stack)

    def __len__(self) -> int:
        return len(self._stack)

    def __repr__(self) -> str:
        return f"ContextStack({[c.value for c in self._stack]})"
