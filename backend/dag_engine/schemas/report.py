"""DAG execution report schemas.

TAG: [SCHEMAS] [REPORT]

Per-node results, performance metrics, optimizer findings and the response
envelope returned by the coordinator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from dag_engine.models.enums import (
    CoordinatorState,
    ExecutionMode,
    ExecutionPriority,
    NodeKind,
    NodeStatus,
    RunStatus,
)
from dag_engine.schemas.base import BaseSchema, ErrorDetail, FrozenSchema


class NodeResult(FrozenSchema):
    """Outcome of a single node; never changes after it is recorded."""

    node_id: str
    status: NodeStatus
    elapsed_ms: float = Field(default=0.0, ge=0)
    result: Any = None
    error: str | None = None
    dependencies_satisfied: bool = False
    parallel_execution: bool = False
    cache_hit: bool = False
    batch_index: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == NodeStatus.SUCCESS


class Bottleneck(BaseSchema):
    """A node whose elapsed time exceeded the bottleneck threshold."""

    node_id: str
    node_name: str = ""
    kind: NodeKind | None = None
    elapsed_ms: float
    suggestion: str


class PerformanceMetrics(BaseSchema):
    """Run-level counters derived from the node results."""

    node_count: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    timed_out: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    cache_hit_rate: float = 0.0
    parallel_nodes: int = 0
    batch_count: int = 0
    sequential_time_ms: float = 0.0
    time_saved_by_parallelism_ms: float = 0.0
    average_node_time_ms: float = 0.0


class OptimizationFindings(BaseSchema):
    """Optimizer annotations and post-run bottleneck analysis."""

    parallel_eligible_nodes: list[str] = Field(default_factory=list)
    node_order: list[str] = Field(default_factory=list)
    dependency_reordered: bool = False
    bottleneck_threshold_ms: float = 0.0
    bottlenecks: list[Bottleneck] = Field(default_factory=list)


class ExecutionReport(BaseSchema):
    """Full record of one completed run."""

    execution_id: UUID
    organization_id: str
    graph_id: str
    status: RunStatus
    execution_mode: ExecutionMode
    priority: ExecutionPriority
    trigger: str
    started_at: datetime
    completed_at: datetime
    total_elapsed_ms: float
    batches: list[list[str]] = Field(default_factory=list)
    node_results: dict[str, NodeResult] = Field(default_factory=dict)
    execution_path: list[str] = Field(default_factory=list)
    final_output: Any = None
    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    optimization_findings: OptimizationFindings = Field(default_factory=OptimizationFindings)


class ValidationIssue(BaseSchema):
    """One structural problem found by the graph validator."""

    code: str
    message: str
    node_ids: list[str] = Field(default_factory=list)


class ValidationOutcome(BaseSchema):
    """Result of graph validation: valid, or every error found."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]


class DagExecutionResponse(BaseSchema):
    """Coordinator response envelope.

    ``report`` is present whenever execution was attempted. A rejected graph
    carries ``validation_errors`` and a ``VALIDATION_FAILED`` error instead.
    ``success`` is true when at least one node of the run succeeded.
    """

    success: bool
    execution_id: UUID
    status: RunStatus
    state: CoordinatorState
    report: ExecutionReport | None = None
    validation_errors: list[str] = Field(default_factory=list)
    error: ErrorDetail | None = None


__all__ = [
    "Bottleneck",
    "DagExecutionResponse",
    "ExecutionReport",
    "NodeResult",
    "OptimizationFindings",
    "PerformanceMetrics",
    "ValidationIssue",
    "ValidationOutcome",
]
