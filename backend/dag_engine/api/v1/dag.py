"""DAG Execution API Router.

TAG: [API] [DAG]

Thin request layer over the execution coordinator: the body is decoded
into a ``DagExecutionRequest`` and the coordinator's response is returned
as-is. The HTTP status reflects the outcome while the body always carries
the structured response.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from dag_engine.api.deps import Cache, Coordinator
from dag_engine.schemas.dag import DagExecutionRequest
from dag_engine.schemas.report import DagExecutionResponse
from dag_engine.services.dag import SchedulingError, get_registry

router = APIRouter(prefix="/dag", tags=["DAG"])


@router.post(
    "/execute",
    response_model=DagExecutionResponse,
    summary="Execute DAG",
    description="Validate, schedule and execute a dependency graph of named operations.",
    responses={
        200: {"description": "Graph executed (completed, partial or failed run)"},
        400: {"description": "Graph rejected by structural validation"},
        500: {"description": "Internal consistency failure while scheduling"},
    },
)
async def execute_dag(
    request: DagExecutionRequest,
    coordinator: Coordinator,
    response: Response,
) -> DagExecutionResponse:
    """Execute a DAG.

    Args:
        request: Graph definition, context and options.
        coordinator: Execution coordinator (injected).
        response: Outgoing response, used to set the status code.

    Returns:
        DagExecutionResponse with the execution report, or validation errors.
    """
    result = await coordinator.execute(request)
    if result.error is not None:
        if result.error.code == SchedulingError.error_code:
            response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        else:
            response.status_code = status.HTTP_400_BAD_REQUEST
    return result


@router.get(
    "/operations",
    summary="List Operations",
    description="Names and descriptions of the registered node operations.",
)
async def list_operations() -> dict[str, str]:
    """Registered operation names mapped to their descriptions."""
    registry = get_registry()
    return {name: registry.get(name).description for name in registry.list_registered()}


@router.get(
    "/cache",
    summary="Result Cache Statistics",
    description="Backend, size and process-wide hit/miss counters of the result cache.",
)
async def cache_stats(cache: Cache) -> dict[str, object]:
    """Current result cache statistics."""
    return cache.stats()
