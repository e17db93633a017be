"""SQLAlchemy models and domain enums.

TAG: [DATABASE] [MODELS]
"""

from dag_engine.models.audit import DagExecutionAudit
from dag_engine.models.base import GUID, Base, CreatedAtMixin, UUIDMixin
from dag_engine.models.enums import (
    CoordinatorState,
    ErrorHandlingPolicy,
    ExecutionMode,
    ExecutionPriority,
    NodeKind,
    NodeStatus,
    RunStatus,
)

__all__ = [
    "GUID",
    "Base",
    "CoordinatorState",
    "CreatedAtMixin",
    "DagExecutionAudit",
    "ErrorHandlingPolicy",
    "ExecutionMode",
    "ExecutionPriority",
    "NodeKind",
    "NodeStatus",
    "RunStatus",
    "UUIDMixin",
]
