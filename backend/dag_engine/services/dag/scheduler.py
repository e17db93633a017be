"""Batch scheduler.

TAG: [DAG] [SCHEDULER]

Groups nodes into an ordered list of batches. Every node of a batch has
all of its dependencies in earlier batches, so nodes of one batch never
depend on each other and may run concurrently. Concatenating the batches
gives a valid topological order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from dag_engine.core.logging import get_logger
from dag_engine.schemas.dag import GraphDefinition
from dag_engine.services.dag.exceptions import SchedulingError

logger = get_logger(__name__)

Batches = list[list[str]]


class BatchScheduler:
    """Derives batches from the dependency map.

    TAG: [DAG] [SCHEDULER]

    Example:
        >>> BatchScheduler().build_batches(
        ...     ["cost", "markup", "tax"],
        ...     {"cost": [], "markup": ["cost"], "tax": []},
        ... )
        [['cost', 'tax'], ['markup']]
    """

    def schedule(self, graph: GraphDefinition) -> Batches:
        """Batches for a graph, honouring its explicit execution order if any."""
        dependency_map = graph.dependency_map()
        if graph.execution_order is not None:
            return self.build_ordered_batches(graph.execution_order, dependency_map)
        return self.build_batches(graph.node_ids, dependency_map)

    def build_batches(
        self,
        node_ids: Sequence[str],
        dependency_map: Mapping[str, Iterable[str]],
    ) -> Batches:
        """Repeatedly scan unscheduled nodes, emitting one batch per scan.

        Args:
            node_ids: Nodes in list order (the order within each batch).
            dependency_map: Declared dependencies per node.

        Returns:
            Ordered batches covering every node exactly once.

        Raises:
            SchedulingError: A scan made no progress while nodes remain.
        """
        dependencies = {node_id: set(dependency_map.get(node_id, ())) for node_id in node_ids}
        remaining = list(dict.fromkeys(node_ids))
        scheduled: set[str] = set()
        batches: Batches = []

        while remaining:
            batch = [node_id for node_id in remaining if dependencies[node_id] <= scheduled]
            if not batch:
                raise SchedulingError(
                    f"Scheduler made no progress with {len(remaining)} node(s) unscheduled",
                    unscheduled=remaining,
                )
            batches.append(batch)
            scheduled.update(batch)
            remaining = [node_id for node_id in remaining if node_id not in scheduled]

        logger.debug(
            "Built execution batches",
            extra={"context": {"batch_count": len(batches), "node_count": len(scheduled)}},
        )
        return batches

    def build_ordered_batches(
        self,
        order: Sequence[str],
        dependency_map: Mapping[str, Iterable[str]],
    ) -> Batches:
        """One single-node batch per entry of an explicit execution order.

        Raises:
            SchedulingError: A node appears before one of its dependencies.
        """
        scheduled: set[str] = set()
        batches: Batches = []
        for position, node_id in enumerate(order):
            missing = set(dependency_map.get(node_id, ())) - scheduled
            if missing:
                raise SchedulingError(
                    f"Explicit order places '{node_id}' before {sorted(missing)}",
                    unscheduled=list(order[position:]),
                )
            batches.append([node_id])
            scheduled.add(node_id)
        return batches


__all__ = ["Batches", "BatchScheduler"]
