"""Graph validation for submitted DAG definitions.

TAG: [DAG] [VALIDATION]

The validator is pure: it inspects a ``GraphDefinition`` and returns a
``ValidationOutcome`` holding every problem it found. Checks run in order:

1. Required fields (non-empty id, kind, operation name; unique ids)
2. Referential integrity (every dependency names a node of the graph)
3. Acyclicity (DFS with recursion stack, first cycle only)
4. Explicit execution order, when one is supplied and every reference resolves

Errors are collected across checks rather than failing fast, so the
caller receives the full list in one response.
"""

from __future__ import annotations

from collections import Counter

from dag_engine.core.logging import get_logger
from dag_engine.schemas.dag import GraphDefinition
from dag_engine.schemas.report import ValidationIssue, ValidationOutcome
from dag_engine.services.dag.algorithms import GraphAlgorithms
from dag_engine.services.dag.exceptions import (
    CycleDetectedError,
    DAGValidationError,
    InvalidExecutionOrderError,
    InvalidNodeReferenceError,
    MissingFieldError,
)
from dag_engine.services.dag.graph import Graph

logger = get_logger(__name__)


class GraphValidator:
    """Structural validator for DAG definitions.

    TAG: [DAG] [VALIDATION]

    Example:
        >>> outcome = GraphValidator().validate(graph)
        >>> if not outcome.is_valid:
        ...     print(outcome.errors)
    """

    def validate(self, graph: GraphDefinition) -> ValidationOutcome:
        """Run every structural check and collect the failures.

        Args:
            graph: The submitted graph definition.

        Returns:
            ValidationOutcome with ``is_valid`` and one issue per problem.
        """
        errors: list[DAGValidationError] = []

        if not graph.nodes:
            errors.append(DAGValidationError("Graph has no nodes", "EMPTY_GRAPH"))
            return self._outcome(graph, errors)

        errors.extend(self._check_required_fields(graph))
        reference_errors = self._check_references(graph)
        errors.extend(reference_errors)

        dag = self._build_graph(graph)
        cycle_error = self._check_acyclic(dag)
        if cycle_error is not None:
            errors.append(cycle_error)
        elif graph.execution_order is not None and not reference_errors:
            # Order positions are only defined for edges between known nodes
            errors.extend(self._check_execution_order(graph))

        return self._outcome(graph, errors)

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _check_required_fields(self, graph: GraphDefinition) -> list[DAGValidationError]:
        errors: list[DAGValidationError] = []
        for index, node in enumerate(graph.nodes):
            if not node.id:
                errors.append(MissingFieldError(node.id, "id", index))
            if node.kind is None:
                errors.append(MissingFieldError(node.id, "kind", index))
            if not node.function_name:
                errors.append(MissingFieldError(node.id, "operation.function_name", index))

        duplicates = [
            node_id for node_id, count in Counter(n.id for n in graph.nodes if n.id).items()
            if count > 1
        ]
        for node_id in duplicates:
            errors.append(
                DAGValidationError(
                    f"Duplicate node id '{node_id}'",
                    "DUPLICATE_NODE_ID",
                    {"node_id": node_id},
                )
            )
        return errors

    def _check_references(self, graph: GraphDefinition) -> list[DAGValidationError]:
        known = set(graph.node_ids)
        errors: list[DAGValidationError] = []
        for index, node in enumerate(graph.nodes):
            missing = [dep for dep in node.dependencies if dep not in known]
            if missing:
                errors.append(InvalidNodeReferenceError(node.id or f"#{index}", missing))
        return errors

    def _check_acyclic(self, dag: Graph[str]) -> CycleDetectedError | None:
        cycle = GraphAlgorithms.detect_cycle(dag)
        if cycle:
            return CycleDetectedError(cycle)
        return None

    def _check_execution_order(self, graph: GraphDefinition) -> list[DAGValidationError]:
        order = graph.execution_order or []
        known = set(graph.node_ids)
        errors: list[DAGValidationError] = []

        unknown = [node_id for node_id in order if node_id not in known]
        if unknown:
            errors.append(InvalidExecutionOrderError("references unknown node(s)", unknown))

        repeated = [node_id for node_id, count in Counter(order).items() if count > 1]
        if repeated:
            errors.append(InvalidExecutionOrderError("lists node(s) more than once", repeated))

        missing = [node_id for node_id in graph.node_ids if node_id not in order]
        if missing:
            errors.append(InvalidExecutionOrderError("omits node(s)", missing))

        if errors:
            return errors

        position = {node_id: index for index, node_id in enumerate(order)}
        early = [
            node.id
            for node in graph.nodes
            if any(position[dep] > position[node.id] for dep in node.dependencies)
        ]
        if early:
            errors.append(
                InvalidExecutionOrderError("places node(s) before their dependencies", early)
            )
        return errors

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_graph(self, graph: GraphDefinition) -> Graph[str]:
        return Graph[str].from_dependency_map(
            {node.id: node.dependencies for node in graph.nodes if node.id}
        )

    def _outcome(
        self,
        graph: GraphDefinition,
        errors: list[DAGValidationError],
    ) -> ValidationOutcome:
        issues = [
            ValidationIssue(
                code=error.error_code,
                message=error.message,
                node_ids=self._issue_nodes(error),
            )
            for error in errors
        ]
        if issues:
            logger.info(
                "Graph validation failed",
                extra={
                    "context": {
                        "graph_id": graph.id,
                        "error_count": len(issues),
                        "error_codes": sorted({issue.code for issue in issues}),
                    }
                },
            )
        return ValidationOutcome(is_valid=not issues, issues=issues)

    @staticmethod
    def _issue_nodes(error: DAGValidationError) -> list[str]:
        if isinstance(error, CycleDetectedError):
            return list(dict.fromkeys(error.cycle_path))
        if isinstance(error, InvalidNodeReferenceError):
            return [error.node_id]
        if isinstance(error, InvalidExecutionOrderError):
            return error.node_ids
        node_id = error.details.get("node_id")
        return [node_id] if node_id else []


__all__ = ["GraphValidator"]
