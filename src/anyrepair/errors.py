"""error types raised by the repair engine"""

from typing import Optional


class RepairError(Exception):
    """base class for repair failures."""


class UnexpectedCharacterError(RepairError):
    """a value position starts with a character no value can start with."""

    def __init__(self, char: str, position: int):
        self.char = char
        self.position = position
        super().__init__(f"Unexpected character {char!r} at position {position}")


class InvalidNumberError(RepairError):
    """a numeric token parses as neither an integer nor a float."""

    def __init__(self, token: str, position: int):
        self.token = token
        self.position = position
        super().__init__(f"Invalid number {token!r} at position {position}")


class TooDeeplyNestedError(RepairError):
    """nesting exceeded the configured depth limit."""

    def __init__(self, depth: int, limit: int):
        self.depth = depth
        self.limit = limit
        super().__init__(f"Nesting depth {depth} exceeds limit {limit}")


class SerializationError(RepairError):
    """the recovered value tree cannot be encoded as JSON."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class ConfigurationError(RepairError):
    """invalid rule file or rule pattern."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)
