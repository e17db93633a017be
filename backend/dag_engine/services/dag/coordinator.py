"""DAG execution coordinator.

TAG: [DAG] [EXECUTION] [COORDINATOR]

Orchestrates one run end to end:

    validating -> optimizing -> scheduling -> executing -> aggregating -> done

with ``failed`` reachable from ``validating`` (structural errors) and from
``scheduling`` (internal consistency failure). Batches run strictly in
order; nodes of one batch run concurrently under a semaphore and all of
them reach a terminal state before the next batch starts.

Dependents of a node that did not succeed follow that node's
``error_handling`` policy:

- ``stop``: dependents are skipped (and, transitively, theirs)
- ``continue``: dependents run with the dependency absent
- ``fallback``: dependents receive the node's ``fallback_value``

A node skipped for any reason always skips its dependents.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from dag_engine.core.config import settings
from dag_engine.core.logging import LogContext, get_logger
from dag_engine.models.enums import (
    CoordinatorState,
    ErrorHandlingPolicy,
    NodeStatus,
    RunStatus,
)
from dag_engine.schemas.base import ErrorDetail
from dag_engine.schemas.dag import DagExecutionRequest, GraphDefinition, NodeDefinition
from dag_engine.schemas.report import (
    DagExecutionResponse,
    ExecutionReport,
    NodeResult,
    OptimizationFindings,
    ValidationOutcome,
)
from dag_engine.services.dag.algorithms import GraphAlgorithms
from dag_engine.services.dag.audit import AuditRecord, AuditSink, emit_audit
from dag_engine.services.dag.cache import ResultCache, get_result_cache
from dag_engine.services.dag.exceptions import ExecutionError, RunTimeoutError, SchedulingError
from dag_engine.services.dag.graph import Graph
from dag_engine.services.dag.metrics import MetricsAnalyzer
from dag_engine.services.dag.node_executor import NodeExecutor, skipped_result, timed_out_result
from dag_engine.services.dag.operations import OperationRegistry, get_registry
from dag_engine.services.dag.optimizer import GraphOptimizer
from dag_engine.services.dag.scheduler import Batches, BatchScheduler
from dag_engine.services.dag.validator import GraphValidator

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[CoordinatorState, frozenset[CoordinatorState]] = {
    CoordinatorState.VALIDATING: frozenset({CoordinatorState.OPTIMIZING, CoordinatorState.FAILED}),
    CoordinatorState.OPTIMIZING: frozenset({CoordinatorState.SCHEDULING}),
    CoordinatorState.SCHEDULING: frozenset({CoordinatorState.EXECUTING, CoordinatorState.FAILED}),
    CoordinatorState.EXECUTING: frozenset({CoordinatorState.AGGREGATING}),
    CoordinatorState.AGGREGATING: frozenset({CoordinatorState.DONE}),
    CoordinatorState.DONE: frozenset(),
    CoordinatorState.FAILED: frozenset(),
}


class RunStateMachine:
    """Tracks the coordinator state of one run and rejects illegal moves."""

    def __init__(self) -> None:
        self.state = CoordinatorState.VALIDATING
        self.history: list[CoordinatorState] = [self.state]

    def transition(self, target: CoordinatorState) -> None:
        """Move to ``target``.

        Raises:
            ExecutionError: If ``target`` is not reachable from the current state.
        """
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise ExecutionError(f"Illegal coordinator transition {self.state} -> {target}")
        logger.debug(f"Coordinator state {self.state} -> {target}")
        self.state = target
        self.history.append(target)

    @property
    def finished(self) -> bool:
        return self.state in (CoordinatorState.DONE, CoordinatorState.FAILED)


@dataclass
class _RunState:
    """Mutable bookkeeping of one execution phase."""

    request: DagExecutionRequest
    nodes: dict[str, NodeDefinition]
    batch_of: dict[str, int]
    semaphore: asyncio.Semaphore
    results: dict[str, NodeResult] = field(default_factory=dict)
    started: dict[str, float] = field(default_factory=dict)
    parallel: set[str] = field(default_factory=set)

    def record(self, result: NodeResult) -> None:
        self.results[result.node_id] = result


def run_status(results: dict[str, NodeResult]) -> RunStatus:
    """``completed`` iff all succeeded, ``failed`` iff all failed, else ``partial``."""
    statuses = [r.status for r in results.values()]
    if statuses and all(s == NodeStatus.SUCCESS for s in statuses):
        return RunStatus.COMPLETED
    if statuses and all(s == NodeStatus.FAILED for s in statuses):
        return RunStatus.FAILED
    return RunStatus.PARTIAL


def select_final_output(graph: Graph[str], results: dict[str, NodeResult]) -> Any:
    """Payload of the single terminal node, or a mapping over several."""
    terminals = GraphAlgorithms.find_terminal_nodes(graph)
    if len(terminals) == 1:
        return results[terminals[0]].result
    return {node_id: results[node_id].result for node_id in terminals}


class ExecutionCoordinator:
    """Runs DAG execution requests.

    TAG: [DAG] [EXECUTION] [COORDINATOR]

    The coordinator owns no cross-request state itself; the result cache and
    operation registry are injected (process-wide singletons by default).

    Example:
        >>> coordinator = ExecutionCoordinator(audit_sink=InMemoryAuditSink())
        >>> response = await coordinator.execute(request)
        >>> response.report.final_output
    """

    def __init__(
        self,
        registry: OperationRegistry | None = None,
        cache: ResultCache | None = None,
        audit_sink: AuditSink | None = None,
        *,
        bottleneck_threshold_ms: float | None = None,
        max_parallel_nodes: int | None = None,
        default_node_timeout_ms: int | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            registry: Operation registry (global registry when None).
            cache: Result cache (process-wide cache when None).
            audit_sink: Receives one record per run; None disables auditing.
            bottleneck_threshold_ms: Overrides ``DAG_BOTTLENECK_THRESHOLD_MS``.
            max_parallel_nodes: Overrides ``DAG_MAX_PARALLEL_NODES``.
            default_node_timeout_ms: Overrides ``DAG_DEFAULT_NODE_TIMEOUT_MS``.
        """
        self.registry = registry or get_registry()
        self.cache = cache or get_result_cache()
        self.audit_sink = audit_sink
        self.validator = GraphValidator()
        self.optimizer = GraphOptimizer()
        self.scheduler = BatchScheduler()
        self.analyzer = MetricsAnalyzer(
            bottleneck_threshold_ms
            if bottleneck_threshold_ms is not None
            else settings.DAG_BOTTLENECK_THRESHOLD_MS
        )
        self.max_parallel_nodes = max_parallel_nodes or settings.DAG_MAX_PARALLEL_NODES
        self.executor = NodeExecutor(self.registry, self.cache, default_node_timeout_ms)

    async def execute(self, request: DagExecutionRequest) -> DagExecutionResponse:
        """Validate, plan and run the request's graph.

        Never raises for request-level problems: structural errors, internal
        consistency failures and node failures are all reported in the
        response.
        """
        execution_id = uuid4()
        graph = request.graph
        with LogContext(
            logger,
            execution_id=str(execution_id),
            organization_id=request.organization_id,
            graph_id=graph.id,
        ):
            started = time.perf_counter()
            started_at = datetime.now(UTC)
            machine = RunStateMachine()

            logger.info(
                "DAG execution started",
                extra={"context": {"node_count": len(graph.nodes), "trigger": request.context.trigger}},
            )

            outcome = self.validator.validate(graph)
            if not outcome.is_valid:
                machine.transition(CoordinatorState.FAILED)
                response = self._rejection(execution_id, outcome)
                await self._audit(request, response, started)
                return response

            machine.transition(CoordinatorState.OPTIMIZING)
            plan = self.optimizer.optimize(graph, request.optimization)

            machine.transition(CoordinatorState.SCHEDULING)
            try:
                batches = self.scheduler.schedule(plan.graph)
            except SchedulingError as e:
                machine.transition(CoordinatorState.FAILED)
                logger.error(
                    f"Scheduling aborted: {e.message}",
                    extra={"context": {"unscheduled": e.unscheduled}},
                )
                response = DagExecutionResponse(
                    success=False,
                    execution_id=execution_id,
                    status=RunStatus.FAILED,
                    state=machine.state,
                    error=ErrorDetail(
                        code=SchedulingError.error_code,
                        message=e.message,
                        details={"unscheduled": e.unscheduled},
                    ),
                )
                await self._audit(request, response, started)
                return response

            machine.transition(CoordinatorState.EXECUTING)
            nodes = plan.graph.node_map()
            results = await self._execute_batches(request, nodes, batches)

            machine.transition(CoordinatorState.AGGREGATING)
            metrics = self.analyzer.analyze(
                results,
                batches,
                nodes,
                caching_enabled=request.optimization.enable_caching,
                track_performance=request.monitoring.enable_performance_tracking,
            )
            status = run_status(results)
            dependency_graph = Graph[str].from_dependency_map(graph.dependency_map())

            report = ExecutionReport(
                execution_id=execution_id,
                organization_id=request.organization_id,
                graph_id=graph.id,
                status=status,
                execution_mode=request.context.execution_mode,
                priority=request.context.priority,
                trigger=request.context.trigger,
                started_at=started_at,
                completed_at=datetime.now(UTC),
                total_elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
                batches=batches,
                node_results=results,
                execution_path=metrics.execution_path,
                final_output=select_final_output(dependency_graph, results),
                performance_metrics=metrics.performance,
                optimization_findings=OptimizationFindings(
                    parallel_eligible_nodes=plan.parallel_eligible,
                    node_order=plan.graph.node_ids,
                    dependency_reordered=plan.reordered,
                    bottleneck_threshold_ms=self.analyzer.threshold_ms,
                    bottlenecks=metrics.bottlenecks,
                ),
            )
            machine.transition(CoordinatorState.DONE)

            response = DagExecutionResponse(
                success=any(r.status == NodeStatus.SUCCESS for r in results.values()),
                execution_id=execution_id,
                status=status,
                state=machine.state,
                report=report,
            )
            await self._audit(request, response, started)

            logger.info(
                f"DAG execution {status}",
                extra={
                    "context": {
                        "elapsed_ms": report.total_elapsed_ms,
                        "batch_count": len(batches),
                        "cache_hits": metrics.performance.cache_hits,
                        "bottlenecks": len(metrics.bottlenecks),
                    }
                },
            )
            return response

    # ------------------------------------------------------------------
    # Execution phase
    # ------------------------------------------------------------------

    async def _execute_batches(
        self,
        request: DagExecutionRequest,
        nodes: dict[str, NodeDefinition],
        batches: Batches,
    ) -> dict[str, NodeResult]:
        """Run every batch in order, bounded by the run timeout.

        Returns:
            Terminal results keyed by node id, in batch order.
        """
        run = _RunState(
            request=request,
            nodes=nodes,
            batch_of={node_id: index for index, batch in enumerate(batches) for node_id in batch},
            semaphore=asyncio.Semaphore(self.max_parallel_nodes),
        )
        timeout_ms = request.context.timeout_ms

        try:
            async with asyncio.timeout(timeout_ms / 1000 if timeout_ms else None):
                for index, batch in enumerate(batches):
                    await self._execute_batch(run, index, batch)
        except TimeoutError:
            self._expire(run, RunTimeoutError(timeout_ms or 0))

        return {node_id: run.results[node_id] for batch in batches for node_id in batch}

    async def _execute_batch(self, run: _RunState, index: int, batch: list[str]) -> None:
        launch: list[tuple[NodeDefinition, dict[str, Any], bool]] = []
        for node_id in batch:
            node = run.nodes[node_id]
            skip_reason, payloads, satisfied = self._resolve_dependencies(node, run)
            if skip_reason is not None:
                run.record(skipped_result(node_id, skip_reason, index))
                continue
            launch.append((node, payloads, satisfied))

        parallel = run.request.optimization.enable_parallel_execution and len(launch) > 1
        logger.debug(
            f"Executing batch {index}",
            extra={"context": {"nodes": [n.id for n, _, _ in launch], "parallel": parallel}},
        )

        if parallel:
            async with asyncio.TaskGroup() as tg:
                for node, payloads, satisfied in launch:
                    tg.create_task(self._run_node(run, index, node, payloads, satisfied, True))
        else:
            for node, payloads, satisfied in launch:
                await self._run_node(run, index, node, payloads, satisfied, False)

    async def _run_node(
        self,
        run: _RunState,
        index: int,
        node: NodeDefinition,
        payloads: dict[str, Any],
        satisfied: bool,
        parallel: bool,
    ) -> None:
        async with run.semaphore:
            run.started[node.id] = time.perf_counter()
            if parallel:
                run.parallel.add(node.id)
            result = await self.executor.execute(
                node,
                payloads,
                run.request.context,
                organization_id=run.request.organization_id,
                enable_caching=run.request.optimization.enable_caching,
                parallel=parallel,
                batch_index=index,
                dependencies_satisfied=satisfied,
                detailed_logging=run.request.monitoring.enable_detailed_logging,
            )
        run.record(self._apply_fallback(node, result))

    @staticmethod
    def _resolve_dependencies(
        node: NodeDefinition,
        run: _RunState,
    ) -> tuple[str | None, dict[str, Any], bool]:
        """Decide whether ``node`` may start and collect its inputs.

        Returns:
            (skip reason or None, dependency payloads, all dependencies succeeded)
        """
        payloads: dict[str, Any] = {}
        satisfied = True
        for dependency in node.dependencies:
            result = run.results[dependency]
            if result.status == NodeStatus.SUCCESS:
                payloads[dependency] = result.result
                continue

            satisfied = False
            if result.status == NodeStatus.SKIPPED:
                return f"dependency '{dependency}' was skipped", {}, False

            policy = run.nodes[dependency].error_policy
            if policy == ErrorHandlingPolicy.STOP:
                return f"dependency '{dependency}' {result.status}", {}, False
            if policy == ErrorHandlingPolicy.FALLBACK:
                payloads[dependency] = result.result
            # continue: the dependency is left out

        return None, payloads, satisfied

    @staticmethod
    def _apply_fallback(node: NodeDefinition, result: NodeResult) -> NodeResult:
        """A failed or timed-out ``fallback`` node carries its fallback value."""
        if (
            result.status in (NodeStatus.FAILED, NodeStatus.TIMED_OUT)
            and node.error_policy == ErrorHandlingPolicy.FALLBACK
            and node.validation is not None
        ):
            return result.model_copy(update={"result": node.validation.fallback_value})
        return result

    def _expire(self, run: _RunState, error: RunTimeoutError) -> None:
        """Give every node without a result its terminal state after a run timeout."""
        now = time.perf_counter()
        expired: list[str] = []
        for node_id, index in run.batch_of.items():
            if node_id in run.results:
                continue
            if node_id in run.started:
                run.record(
                    timed_out_result(
                        node_id,
                        error.message,
                        round((now - run.started[node_id]) * 1000, 3),
                        parallel=node_id in run.parallel,
                        batch_index=index,
                    )
                )
                expired.append(node_id)
            else:
                run.record(skipped_result(node_id, f"{error.message} before node started", index))
        logger.warning(error.message, extra={"context": {"timed_out_nodes": expired}})

    # ------------------------------------------------------------------
    # Responses and audit
    # ------------------------------------------------------------------

    @staticmethod
    def _rejection(execution_id: UUID, outcome: ValidationOutcome) -> DagExecutionResponse:
        return DagExecutionResponse(
            success=False,
            execution_id=execution_id,
            status=RunStatus.FAILED,
            state=CoordinatorState.FAILED,
            validation_errors=outcome.errors,
            error=ErrorDetail(
                code="VALIDATION_FAILED",
                message=f"Graph validation failed with {len(outcome.issues)} error(s)",
                details={"issues": [issue.model_dump() for issue in outcome.issues]},
            ),
        )

    async def _audit(
        self,
        request: DagExecutionRequest,
        response: DagExecutionResponse,
        started: float,
    ) -> None:
        graph: GraphDefinition = request.graph
        await emit_audit(
            self.audit_sink,
            AuditRecord(
                execution_id=response.execution_id,
                organization_id=request.organization_id,
                graph_id=graph.id,
                status=response.status,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
                node_count=len(graph.nodes),
                error_code=response.error.code if response.error else None,
                error_message=response.error.message if response.error else None,
                report=response.model_dump(mode="json"),
            ),
        )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "ExecutionCoordinator",
    "RunStateMachine",
    "run_status",
    "select_final_output",
]
