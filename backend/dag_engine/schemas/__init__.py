"""Pydantic schemas for DAG requests, reports and responses.

TAG: [SCHEMAS]
"""

from dag_engine.schemas.base import BaseSchema, ErrorDetail, FrozenSchema
from dag_engine.schemas.dag import (
    DagExecutionRequest,
    ExecutionContext,
    GraphDefinition,
    MonitoringOptions,
    NodeDefinition,
    NodeValidation,
    OperationSpec,
    OptimizationOptions,
)
from dag_engine.schemas.report import (
    Bottleneck,
    DagExecutionResponse,
    ExecutionReport,
    NodeResult,
    OptimizationFindings,
    PerformanceMetrics,
    ValidationIssue,
    ValidationOutcome,
)

__all__ = [
    "BaseSchema",
    "Bottleneck",
    "DagExecutionRequest",
    "DagExecutionResponse",
    "ErrorDetail",
    "ExecutionContext",
    "ExecutionReport",
    "FrozenSchema",
    "GraphDefinition",
    "MonitoringOptions",
    "NodeDefinition",
    "NodeResult",
    "NodeValidation",
    "OperationSpec",
    "OptimizationFindings",
    "OptimizationOptions",
    "PerformanceMetrics",
    "ValidationIssue",
    "ValidationOutcome",
]
