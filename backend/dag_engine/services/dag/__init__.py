"""DAG execution engine.

TAG: [DAG]

Validator, optimizer, batch scheduler, node executor, metrics analyzer and
the coordinator that ties them together.
"""

from dag_engine.services.dag.algorithms import GraphAlgorithms
from dag_engine.services.dag.audit import (
    AuditRecord,
    AuditSink,
    DatabaseAuditSink,
    InMemoryAuditSink,
    emit_audit,
)
from dag_engine.services.dag.cache import ResultCache, get_result_cache, make_cache_key
from dag_engine.services.dag.coordinator import (
    ExecutionCoordinator,
    RunStateMachine,
    run_status,
    select_final_output,
)
from dag_engine.services.dag.exceptions import (
    CycleDetectedError,
    DAGValidationError,
    ExecutionError,
    InvalidExecutionOrderError,
    InvalidNodeReferenceError,
    MissingFieldError,
    NodeExecutionError,
    NodeTimeoutError,
    RunTimeoutError,
    SchedulingError,
)
from dag_engine.services.dag.graph import Graph
from dag_engine.services.dag.metrics import MetricsAnalyzer, RunMetrics
from dag_engine.services.dag.node_executor import NodeExecutor
from dag_engine.services.dag.operations import OperationRegistry, get_registry
from dag_engine.services.dag.optimizer import GraphOptimizer, OptimizationPlan
from dag_engine.services.dag.scheduler import BatchScheduler
from dag_engine.services.dag.validator import GraphValidator

__all__ = [
    "AuditRecord",
    "AuditSink",
    "BatchScheduler",
    "CycleDetectedError",
    "DAGValidationError",
    "DatabaseAuditSink",
    "ExecutionCoordinator",
    "ExecutionError",
    "Graph",
    "GraphAlgorithms",
    "GraphOptimizer",
    "GraphValidator",
    "InMemoryAuditSink",
    "InvalidExecutionOrderError",
    "InvalidNodeReferenceError",
    "MetricsAnalyzer",
    "MissingFieldError",
    "NodeExecutionError",
    "NodeExecutor",
    "NodeTimeoutError",
    "OperationRegistry",
    "OptimizationPlan",
    "ResultCache",
    "RunMetrics",
    "RunStateMachine",
    "RunTimeoutError",
    "SchedulingError",
    "emit_audit",
    "get_registry",
    "get_result_cache",
    "make_cache_key",
    "run_status",
    "select_final_output",
]
