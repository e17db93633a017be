"""DAG request schemas.

TAG: [SCHEMAS] [DAG]

Graph definition, execution context and execution options accepted by the
coordinator. Field names follow the engine's vocabulary; every field also
accepts the key used by the original ``/api/v1/dag/execute`` payload
(``dag_definition``, ``node_id``, ``node_type``, ``execution_config`` ...).

Required node fields (id, kind, operation name) are deliberately optional
at the schema level: the graph validator reports all missing fields of a
graph in one response instead of failing on the first one.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from dag_engine.models.enums import (
    ErrorHandlingPolicy,
    ExecutionMode,
    ExecutionPriority,
    NodeKind,
)
from dag_engine.schemas.base import BaseSchema, FrozenSchema

_MODE_ALIASES = {
    "sync": ExecutionMode.SYNCHRONOUS.value,
    "async": ExecutionMode.ASYNCHRONOUS.value,
}


# ============================================================================
# Node definition
# ============================================================================


class OperationSpec(FrozenSchema):
    """Named operation and its static parameters.

    Attributes:
        function_name: Registry key of the operation (e.g. "apply_markup")
        parameters: Static parameters merged into the operation's inputs
    """

    function_name: str = Field(
        default="",
        validation_alias=AliasChoices("function_name", "function", "name"),
        description="Registered operation name",
        examples=["calculate_cost"],
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Static operation parameters",
        examples=[{"base_amount": 100}],
    )


class NodeValidation(FrozenSchema):
    """Per-node input requirements and error-handling policy.

    Attributes:
        required_fields: Parameter names that must be present before the
            operation is invoked
        error_handling: How dependents react when this node does not succeed
        fallback_value: Result handed to dependents under the fallback policy
    """

    required_fields: list[str] = Field(default_factory=list)
    error_handling: ErrorHandlingPolicy = ErrorHandlingPolicy.STOP
    fallback_value: Any = None


class NodeDefinition(FrozenSchema):
    """One step of the graph."""

    id: str = Field(
        default="",
        validation_alias=AliasChoices("id", "node_id"),
        description="Node id, unique within the graph",
        examples=["cost_calc"],
    )
    name: str = Field(default="", validation_alias=AliasChoices("name", "node_name"))
    kind: NodeKind | None = Field(
        default=None,
        validation_alias=AliasChoices("kind", "node_type"),
    )
    dependencies: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("dependencies", "depends_on"),
    )
    operation: OperationSpec | None = Field(
        default=None,
        validation_alias=AliasChoices("operation", "execution_config"),
    )
    validation: NodeValidation | None = Field(
        default=None,
        validation_alias=AliasChoices("validation", "validation_rules"),
    )
    timeout_ms: int | None = Field(default=None, gt=0)

    # Written by the optimizer only
    parallel_eligible: bool = False

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        """Accept ``external-call`` / upper-case spellings; blank means missing."""
        if isinstance(v, str):
            v = v.strip().lower().replace("-", "_")
            return v or None
        return v

    @field_validator("dependencies", mode="after")
    @classmethod
    def dedupe_dependencies(cls, v: list[str]) -> list[str]:
        """Dependencies are a set; keep first-seen order for stable output."""
        return list(dict.fromkeys(v))

    @property
    def function_name(self) -> str:
        """Operation name, or empty string when no operation is declared."""
        return self.operation.function_name if self.operation else ""

    @property
    def parameters(self) -> dict[str, Any]:
        """Static operation parameters (empty when no operation is declared)."""
        return self.operation.parameters if self.operation else {}

    @property
    def error_policy(self) -> ErrorHandlingPolicy:
        """Effective error-handling policy; ``stop`` unless declared."""
        return self.validation.error_handling if self.validation else ErrorHandlingPolicy.STOP

    @property
    def display_name(self) -> str:
        return self.name or self.id


class GraphDefinition(FrozenSchema):
    """The whole DAG submitted for execution.

    Attributes:
        id: Graph identifier (``dag_id`` on the wire)
        name: Display name
        nodes: Ordered node definitions
        execution_order: Optional explicit order overriding batch derivation
    """

    id: str = Field(default="", validation_alias=AliasChoices("id", "dag_id"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "dag_name"))
    nodes: list[NodeDefinition] = Field(default_factory=list)
    execution_order: list[str] | None = None

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def node_map(self) -> dict[str, NodeDefinition]:
        """Map node id to definition (last definition wins on duplicates)."""
        return {node.id: node for node in self.nodes}

    def dependency_map(self) -> dict[str, list[str]]:
        """Map node id to its declared dependency ids."""
        return {node.id: list(node.dependencies) for node in self.nodes}


# ============================================================================
# Execution context and options
# ============================================================================


class ExecutionContext(FrozenSchema):
    """Per-invocation context shared by every node of a run."""

    trigger: str = Field(
        default="manual",
        validation_alias=AliasChoices("trigger", "trigger_event"),
        examples=["price_update"],
    )
    input_data: dict[str, Any] = Field(
        default_factory=dict,
        examples=[{"base_amount": 100, "markup_percent": 25}],
    )
    execution_mode: ExecutionMode = ExecutionMode.SYNCHRONOUS
    priority: ExecutionPriority = ExecutionPriority.NORMAL
    timeout_ms: int | None = Field(default=None, gt=0)

    @field_validator("execution_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return _MODE_ALIASES.get(v, v)
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class OptimizationOptions(BaseSchema):
    """Switches for the optimizer, the executor's cache and concurrency."""

    enable_parallel_execution: bool = True
    enable_caching: bool = True
    dependency_optimization: bool = True


class MonitoringOptions(BaseSchema):
    """Switches for bottleneck analysis and per-node log verbosity."""

    enable_performance_tracking: bool = True
    enable_detailed_logging: bool = False


class DagExecutionRequest(BaseSchema):
    """Request handed to the coordinator by the request layer."""

    organization_id: str = Field(..., min_length=1)
    graph: GraphDefinition = Field(
        ...,
        validation_alias=AliasChoices("graph", "dag_definition"),
    )
    context: ExecutionContext = Field(
        default_factory=ExecutionContext,
        validation_alias=AliasChoices("context", "execution_context"),
    )
    optimization: OptimizationOptions = Field(
        default_factory=OptimizationOptions,
        validation_alias=AliasChoices("optimization", "optimization_options"),
    )
    monitoring: MonitoringOptions = Field(
        default_factory=MonitoringOptions,
        validation_alias=AliasChoices("monitoring", "monitoring_options"),
    )


__all__ = [
    "DagExecutionRequest",
    "ExecutionContext",
    "GraphDefinition",
    "MonitoringOptions",
    "NodeDefinition",
    "NodeValidation",
    "OperationSpec",
    "OptimizationOptions",
]
