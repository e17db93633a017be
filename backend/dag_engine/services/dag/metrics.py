"""Run metrics and bottleneck analysis.

TAG: [DAG] [METRICS]

A pure read-and-summarize pass over the terminal node results of a run:
cache hit/miss counts, the execution path, parallelism figures and a
ranked list of bottlenecks with optimization hints.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from dag_engine.models.enums import NodeKind, NodeStatus
from dag_engine.schemas.dag import NodeDefinition
from dag_engine.schemas.report import Bottleneck, NodeResult, PerformanceMetrics

DEFAULT_SUGGESTION = "Review the operation and its parameters for optimization opportunities"

SUGGESTIONS: dict[NodeKind, str] = {
    NodeKind.CALCULATION: "Enable caching for this calculation or reduce its input size",
    NodeKind.VALIDATION: "Simplify validation rules or validate earlier in the graph",
    NodeKind.TRANSFORMATION: "Cache the transformation result or split it into smaller steps",
    NodeKind.AGGREGATION: "Reduce the number of aggregated sources or pre-aggregate upstream",
    NodeKind.DECISION: "Simplify the decision inputs or cache the upstream value",
    NodeKind.EXTERNAL_CALL: "Cache the external response, add a tighter timeout or batch calls",
}


@dataclass
class RunMetrics:
    """Output of the analyzer.

    Attributes:
        execution_path: Node ids by ascending elapsed time
        performance: Aggregated counters
        bottlenecks: Slow nodes, slowest first
    """

    execution_path: list[str] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    bottlenecks: list[Bottleneck] = field(default_factory=list)


class MetricsAnalyzer:
    """Summarizes the node results of a completed run.

    TAG: [DAG] [METRICS]

    Attributes:
        threshold_ms: Elapsed time above which a node is a bottleneck
    """

    def __init__(self, threshold_ms: float) -> None:
        self.threshold_ms = threshold_ms

    def analyze(
        self,
        results: Mapping[str, NodeResult],
        batches: Sequence[Sequence[str]] = (),
        nodes: Mapping[str, NodeDefinition] | None = None,
        *,
        caching_enabled: bool = True,
        track_performance: bool = True,
    ) -> RunMetrics:
        """Build the run metrics.

        Args:
            results: Terminal result of every node, keyed by node id.
            batches: The batches the run executed.
            nodes: Node definitions, used for bottleneck names and kinds.
            caching_enabled: Count non-hit executions as cache misses.
            track_performance: Produce the bottleneck list.

        Returns:
            RunMetrics for the report.
        """
        nodes = nodes or {}
        executed = [r for r in results.values() if r.status != NodeStatus.SKIPPED]

        hits = sum(1 for r in results.values() if r.cache_hit)
        misses = sum(1 for r in executed if not r.cache_hit) if caching_enabled else 0
        lookups = hits + misses

        sequential = sum(r.elapsed_ms for r in executed)
        batch_maxima = sum(
            max((results[n].elapsed_ms for n in batch if n in results), default=0.0)
            for batch in batches
        )

        performance = PerformanceMetrics(
            node_count=len(results),
            succeeded=self._count(results, NodeStatus.SUCCESS),
            failed=self._count(results, NodeStatus.FAILED),
            skipped=self._count(results, NodeStatus.SKIPPED),
            timed_out=self._count(results, NodeStatus.TIMED_OUT),
            cache_hits=hits,
            cache_misses=misses,
            cache_hit_rate=round(hits / lookups, 4) if lookups else 0.0,
            parallel_nodes=sum(1 for r in results.values() if r.parallel_execution),
            batch_count=len(batches),
            sequential_time_ms=round(sequential, 3),
            time_saved_by_parallelism_ms=round(max(sequential - batch_maxima, 0.0), 3),
            average_node_time_ms=round(sequential / len(executed), 3) if executed else 0.0,
        )

        return RunMetrics(
            execution_path=self.execution_path(results),
            performance=performance,
            bottlenecks=self.find_bottlenecks(results, nodes) if track_performance else [],
        )

    @staticmethod
    def execution_path(results: Mapping[str, NodeResult]) -> list[str]:
        """Node ids ordered by ascending elapsed time, ties by node id."""
        return [r.node_id for r in sorted(results.values(), key=lambda r: (r.elapsed_ms, r.node_id))]

    def find_bottlenecks(
        self,
        results: Mapping[str, NodeResult],
        nodes: Mapping[str, NodeDefinition],
    ) -> list[Bottleneck]:
        """Nodes slower than the threshold, slowest first."""
        slow = sorted(
            (r for r in results.values() if r.elapsed_ms > self.threshold_ms),
            key=lambda r: (-r.elapsed_ms, r.node_id),
        )
        bottlenecks = []
        for result in slow:
            node = nodes.get(result.node_id)
            kind = node.kind if node else None
            bottlenecks.append(
                Bottleneck(
                    node_id=result.node_id,
                    node_name=node.display_name if node else result.node_id,
                    kind=kind,
                    elapsed_ms=result.elapsed_ms,
                    suggestion=SUGGESTIONS.get(kind, DEFAULT_SUGGESTION),
                )
            )
        return bottlenecks

    @staticmethod
    def _count(results: Mapping[str, NodeResult], status: NodeStatus) -> int:
        return sum(1 for r in results.values() if r.status == status)


__all__ = ["DEFAULT_SUGGESTION", "SUGGESTIONS", "MetricsAnalyzer", "RunMetrics"]
