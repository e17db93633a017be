"""Graph optimizer.

TAG: [DAG] [OPTIMIZER]

Pure transforms over a validated graph. Neither changes execution
semantics: the batch scheduler still derives order from dependencies.

- Dependency-count ordering: stable ascending sort of the node list by
  number of dependencies, exposing independent nodes earlier.
- Parallel-eligibility marking: nodes with no dependencies are flagged as
  eligible for unconditional parallel start.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dag_engine.schemas.dag import GraphDefinition, NodeDefinition, OptimizationOptions


@dataclass(frozen=True)
class OptimizationPlan:
    """Output of the optimizer.

    Attributes:
        graph: Transformed copy of the input graph
        reordered: Whether the node list order changed
        parallel_eligible: Ids of nodes marked for unconditional parallel start
    """

    graph: GraphDefinition
    reordered: bool = False
    parallel_eligible: list[str] = field(default_factory=list)


class GraphOptimizer:
    """Applies the optional, semantics-preserving graph transforms.

    TAG: [DAG] [OPTIMIZER]

    The optimizer never mutates its input; identical inputs give identical
    plans.
    """

    def optimize(
        self,
        graph: GraphDefinition,
        options: OptimizationOptions | None = None,
    ) -> OptimizationPlan:
        """Build an optimization plan for ``graph``.

        Args:
            graph: A graph that passed validation.
            options: Flags selecting the transforms (all enabled by default).

        Returns:
            OptimizationPlan carrying the transformed graph.
        """
        options = options or OptimizationOptions()

        nodes: list[NodeDefinition] = list(graph.nodes)
        if options.dependency_optimization:
            nodes = sorted(nodes, key=lambda node: len(node.dependencies))

        nodes = [
            self._mark(node, options.enable_parallel_execution and not node.dependencies)
            for node in nodes
        ]

        reordered = [n.id for n in nodes] != graph.node_ids
        optimized = graph.model_copy(update={"nodes": nodes})

        return OptimizationPlan(
            graph=optimized,
            reordered=reordered,
            parallel_eligible=[node.id for node in nodes if node.parallel_eligible],
        )

    @staticmethod
    def _mark(node: NodeDefinition, eligible: bool) -> NodeDefinition:
        if node.parallel_eligible == eligible:
            return node
        return node.model_copy(update={"parallel_eligible": eligible})


__all__ = ["GraphOptimizer", "OptimizationPlan"]
