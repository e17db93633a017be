"""DAG validation, scheduling and execution exceptions.

TAG: [DAG] [EXCEPTIONS]

Structural errors are raised by the graph checks and collected by the
validator into a single outcome. Scheduling errors signal an internal
consistency failure. Execution errors describe node and run level
failures; the coordinator converts all of them into report fields.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


# ============================================================================
# Structural (validation) exceptions
# ============================================================================

class DAGValidationError(Exception):
    """Base exception for DAG validation errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code for API responses.
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class CycleDetectedError(DAGValidationError):
    """Raised when the dependency relation contains a cycle.

    Attributes:
        cycle_path: Node ids forming the cycle, first id repeated at the end.
    """

    def __init__(self, cycle_path: Sequence[str]) -> None:
        cycle_str = " -> ".join(cycle_path)
        super().__init__(
            message=f"Cycle detected: {cycle_str}",
            error_code="CYCLE_DETECTED",
            details={"cycle_path": list(cycle_path)},
        )
        self.cycle_path = list(cycle_path)


class InvalidNodeReferenceError(DAGValidationError):
    """Raised when a node depends on an id that is not in the graph.

    Attributes:
        node_id: The node declaring the dependency.
        missing_nodes: Dependency ids that were not found.
    """

    def __init__(self, node_id: str, missing_nodes: Sequence[str]) -> None:
        missing = ", ".join(missing_nodes)
        super().__init__(
            message=f"Node '{node_id}' depends on unknown node(s): {missing}",
            error_code="NODE_NOT_FOUND",
            details={"node_id": node_id, "missing_nodes": list(missing_nodes)},
        )
        self.node_id = node_id
        self.missing_nodes = list(missing_nodes)


class MissingFieldError(DAGValidationError):
    """Raised when a node lacks a required field.

    Attributes:
        node_id: Id of the offending node (empty when the id itself is missing).
        field: Name of the missing field.
        index: Position of the node in the graph definition.
    """

    def __init__(self, node_id: str, field: str, index: int | None = None) -> None:
        label = f"'{node_id}'" if node_id else f"at index {index}"
        super().__init__(
            message=f"Node {label} is missing required field '{field}'",
            error_code="MISSING_FIELD",
            details={"node_id": node_id, "field": field, "index": index},
        )
        self.node_id = node_id
        self.field = field
        self.index = index


class InvalidExecutionOrderError(DAGValidationError):
    """Raised when an explicit execution order conflicts with the graph."""

    def __init__(self, reason: str, node_ids: Sequence[str] = ()) -> None:
        super().__init__(
            message=f"Invalid execution order: {reason}",
            error_code="INVALID_EXECUTION_ORDER",
            details={"node_ids": list(node_ids)},
        )
        self.node_ids = list(node_ids)


# ============================================================================
# Scheduling exceptions
# ============================================================================

class SchedulingError(Exception):
    """Raised when the scheduler cannot make progress on a validated graph.

    This is an internal consistency failure, distinct from a failed run.

    Attributes:
        unscheduled: Node ids left without a batch.
    """

    error_code = "INTERNAL_CONSISTENCY"

    def __init__(self, message: str, unscheduled: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.unscheduled = list(unscheduled)


# ============================================================================
# Execution exceptions
# ============================================================================

class ExecutionError(Exception):
    """Base exception for DAG execution errors.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NodeExecutionError(ExecutionError):
    """Raised when a node's operation fails.

    Attributes:
        node_id: ID of the node that failed.
        reason: Error message of the underlying failure.
        original_error: The original exception that caused the failure.
    """

    def __init__(self, node_id: str, reason: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Node '{node_id}' execution failed: {reason}")
        self.node_id = node_id
        self.reason = reason
        self.original_error = original_error


class NodeTimeoutError(ExecutionError):
    """Raised when a single node exceeds its timeout.

    Attributes:
        node_id: ID of the node that timed out.
        timeout_ms: Timeout duration in milliseconds.
    """

    def __init__(self, node_id: str, timeout_ms: float) -> None:
        super().__init__(f"Node '{node_id}' timed out after {timeout_ms:g}ms")
        self.node_id = node_id
        self.timeout_ms = timeout_ms


class RunTimeoutError(ExecutionError):
    """Raised when a whole run exceeds the context timeout.

    Attributes:
        timeout_ms: Run timeout in milliseconds.
    """

    def __init__(self, timeout_ms: float) -> None:
        super().__init__(f"Run timed out after {timeout_ms:g}ms")
        self.timeout_ms = timeout_ms


__all__ = [
    "CycleDetectedError",
    "DAGValidationError",
    "ExecutionError",
    "InvalidExecutionOrderError",
    "InvalidNodeReferenceError",
    "MissingFieldError",
    "NodeExecutionError",
    "NodeTimeoutError",
    "RunTimeoutError",
    "SchedulingError",
]
