"""Business logic services.

This package contains the DAG execution engine.
"""

from dag_engine.services.dag import (
    DAGValidationError,
    ExecutionCoordinator,
    SchedulingError,
)

__all__ = [
    "DAGValidationError",
    "ExecutionCoordinator",
    "SchedulingError",
]
