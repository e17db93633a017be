"""Domain enum definitions for the DAG execution engine.

TAG: [DATABASE] [ENUMS]

This module defines all enum types used across the engine for type-safe
representation of node kinds, policies and run/node states.
"""

from enum import Enum


class NodeKind(str, Enum):
    """Classification of a DAG node.

    The kind is descriptive: execution always dispatches on the node's
    operation name, but the kind drives bottleneck suggestions and reporting.
    """

    CALCULATION = "calculation"
    VALIDATION = "validation"
    TRANSFORMATION = "transformation"
    AGGREGATION = "aggregation"
    DECISION = "decision"
    EXTERNAL_CALL = "external_call"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ErrorHandlingPolicy(str, Enum):
    """What dependents of a node see when that node does not succeed.

    - STOP: dependents are skipped
    - CONTINUE: dependents run, the failed dependency is absent from their inputs
    - FALLBACK: dependents run with the node's fallback value as its result
    """

    STOP = "stop"
    CONTINUE = "continue"
    FALLBACK = "fallback"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ExecutionMode(str, Enum):
    """Invocation mode recorded on the execution context."""

    SYNCHRONOUS = "synchronous"
    ASYNCHRONOUS = "asynchronous"
    BATCH = "batch"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ExecutionPriority(str, Enum):
    """Caller supplied priority of a run."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class NodeStatus(str, Enum):
    """Terminal state of a single node in a run."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class RunStatus(str, Enum):
    """Overall outcome of a run."""

    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class CoordinatorState(str, Enum):
    """States of the execution coordinator for a single run."""

    VALIDATING = "validating"
    OPTIMIZING = "optimizing"
    SCHEDULING = "scheduling"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


__all__ = [
    "CoordinatorState",
    "ErrorHandlingPolicy",
    "ExecutionMode",
    "ExecutionPriority",
    "NodeKind",
    "NodeStatus",
    "RunStatus",
]
