"""Single-node execution.

TAG: [DAG] [EXECUTION] [NODE]

Runs one node's operation given its dependencies' payloads and the run
context, consulting the result cache first. Every outcome, including
unknown operations, invalid inputs, operation errors and node timeouts,
is returned as a ``NodeResult``; nothing raises past the batch boundary.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from dag_engine.core.config import settings
from dag_engine.core.logging import get_logger
from dag_engine.models.enums import NodeStatus
from dag_engine.schemas.dag import ExecutionContext, NodeDefinition
from dag_engine.schemas.report import NodeResult
from dag_engine.services.dag.cache import ResultCache, make_cache_key
from dag_engine.services.dag.exceptions import NodeExecutionError, NodeTimeoutError
from dag_engine.services.dag.operations import (
    OperationError,
    OperationInputs,
    OperationRegistry,
)

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def skipped_result(node_id: str, reason: str, batch_index: int | None = None) -> NodeResult:
    """Result for a node that never started."""
    return NodeResult(
        node_id=node_id,
        status=NodeStatus.SKIPPED,
        error=reason,
        batch_index=batch_index,
    )


def timed_out_result(
    node_id: str,
    reason: str,
    elapsed_ms: float = 0.0,
    *,
    parallel: bool = False,
    batch_index: int | None = None,
) -> NodeResult:
    """Result for a node cut off by a node or run timeout."""
    return NodeResult(
        node_id=node_id,
        status=NodeStatus.TIMED_OUT,
        elapsed_ms=elapsed_ms,
        error=reason,
        parallel_execution=parallel,
        batch_index=batch_index,
    )


class NodeExecutor:
    """Executes individual nodes against the operation registry.

    TAG: [DAG] [EXECUTION] [NODE]

    Example:
        >>> executor = NodeExecutor(get_registry(), get_result_cache())
        >>> result = await executor.execute(node, {"cost": 100}, context)
    """

    def __init__(
        self,
        registry: OperationRegistry,
        cache: ResultCache,
        default_timeout_ms: int | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            registry: Operation lookup.
            cache: Result cache shared across runs.
            default_timeout_ms: Timeout for nodes without their own
                (``DAG_DEFAULT_NODE_TIMEOUT_MS`` when None).
        """
        self.registry = registry
        self.cache = cache
        self.default_timeout_ms = default_timeout_ms or settings.DAG_DEFAULT_NODE_TIMEOUT_MS

    async def execute(
        self,
        node: NodeDefinition,
        dependency_results: dict[str, Any],
        context: ExecutionContext,
        *,
        organization_id: str = "",
        enable_caching: bool = True,
        parallel: bool = False,
        batch_index: int | None = None,
        dependencies_satisfied: bool = True,
        detailed_logging: bool = False,
    ) -> NodeResult:
        """Execute one node.

        Args:
            node: The node definition.
            dependency_results: Payload of each available dependency.
            context: Run context (input data is merged into parameters).
            organization_id: Tenant namespace of the cache key.
            enable_caching: Consult and populate the result cache.
            parallel: The node runs concurrently with batch siblings.
            batch_index: Position of the node's batch.
            dependencies_satisfied: False when a dependency is absent or
                replaced by a fallback value.
            detailed_logging: Log node outcomes at INFO instead of DEBUG.

        Returns:
            The node's terminal ``NodeResult``.
        """
        started = time.perf_counter()
        log_level = logging.INFO if detailed_logging else logging.DEBUG
        cache_key = make_cache_key(
            organization_id,
            node.id,
            node.function_name,
            node.parameters,
            context.input_data,
            dependency_results,
        )

        if enable_caching:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                result = NodeResult(
                    node_id=node.id,
                    status=NodeStatus.SUCCESS,
                    elapsed_ms=_elapsed_ms(started),
                    result=cached["value"],
                    dependencies_satisfied=dependencies_satisfied,
                    parallel_execution=parallel,
                    cache_hit=True,
                    batch_index=batch_index,
                )
                logger.log(
                    log_level,
                    f"Node '{node.id}' served from cache",
                    extra={"context": {"node_id": node.id, "elapsed_ms": result.elapsed_ms}},
                )
                return result

        params = {**context.input_data, **node.parameters, **dependency_results}

        def failed(reason: str) -> NodeResult:
            return NodeResult(
                node_id=node.id,
                status=NodeStatus.FAILED,
                elapsed_ms=_elapsed_ms(started),
                error=reason,
                dependencies_satisfied=dependencies_satisfied,
                parallel_execution=parallel,
                batch_index=batch_index,
            )

        required = node.validation.required_fields if node.validation else []
        missing = [name for name in required if params.get(name) is None]
        if missing:
            error = NodeExecutionError(node.id, f"missing required field(s): {', '.join(missing)}")
            logger.log(log_level, error.message, extra={"context": {"node_id": node.id}})
            return failed(error.reason)

        timeout_ms = node.timeout_ms or self.default_timeout_ms
        try:
            operation = self.registry.create(node.function_name)
            inputs = OperationInputs(
                node_id=node.id,
                params=params,
                dependency_results=dict(dependency_results),
            )
            async with asyncio.timeout(timeout_ms / 1000):
                payload = await operation.execute(inputs)
        except TimeoutError:
            error = NodeTimeoutError(node.id, timeout_ms)
            logger.warning(error.message, extra={"context": {"node_id": node.id}})
            return timed_out_result(
                node.id,
                error.message,
                _elapsed_ms(started),
                parallel=parallel,
                batch_index=batch_index,
            )
        except OperationError as e:
            logger.log(
                log_level,
                f"Node '{node.id}' failed: {e}",
                extra={"context": {"node_id": node.id, "error_type": type(e).__name__}},
            )
            return failed(str(e))
        except Exception as e:
            # Operations registered by applications may raise anything
            logger.warning(
                f"Node '{node.id}' raised {type(e).__name__}: {e}",
                exc_info=True,
                extra={"context": {"node_id": node.id}},
            )
            return failed(f"{type(e).__name__}: {e}")

        if enable_caching:
            await self.cache.set(cache_key, payload)

        result = NodeResult(
            node_id=node.id,
            status=NodeStatus.SUCCESS,
            elapsed_ms=_elapsed_ms(started),
            result=payload,
            dependencies_satisfied=dependencies_satisfied,
            parallel_execution=parallel,
            batch_index=batch_index,
        )
        logger.log(
            log_level,
            f"Node '{node.id}' completed",
            extra={"context": {"node_id": node.id, "elapsed_ms": result.elapsed_ms}},
        )
        return result


__all__ = ["NodeExecutor", "skipped_result", "timed_out_result"]
