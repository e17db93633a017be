"""Operation Error Classes.

TAG: [DAG] [OPERATIONS] [ERRORS]
"""

from dataclasses import dataclass
from typing import Any


class OperationError(Exception):
    """Base exception for operation errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(eq=False)
class OperationValidationError(OperationError):
    """Raised when an operation's inputs fail validation.

    Attributes:
        operation: Registered name of the operation
        errors: List of validation error dictionaries
    """

    operation: str
    errors: list[dict[str, Any]]

    def __post_init__(self) -> None:
        Exception.__init__(self, str(self))
        self.message = str(self)

    def __str__(self) -> str:
        problems = []
        for err in self.errors:
            location = ".".join(str(part) for part in err.get("loc", ())) or "input"
            problems.append(f"{location}: {err.get('msg', 'invalid')}")
        return f"Invalid input for {self.operation}: {'; '.join(problems)}"


@dataclass(eq=False)
class OperationExecutionError(OperationError):
    """Raised when an operation fails while computing its result.

    Attributes:
        operation: Registered name of the operation
        message: Error message
    """

    operation: str
    message: str

    def __post_init__(self) -> None:
        Exception.__init__(self, str(self))

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.message}"


class OperationNotFoundError(OperationError):
    """Raised when a node references an unregistered operation name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown operation: {name}")
        self.name = name

    def __str__(self) -> str:
        return self.message


__all__ = [
    "OperationError",
    "OperationExecutionError",
    "OperationNotFoundError",
    "OperationValidationError",
]
