"""API dependencies.

Common dependencies for API routes: database sessions, the audit sink and
the per-request execution coordinator.

TAG: [API] [DEPENDENCIES]
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dag_engine.db.session import get_db
from dag_engine.services.dag import (
    DatabaseAuditSink,
    ExecutionCoordinator,
    ResultCache,
    get_registry,
    get_result_cache,
)

# =============================================================================
# Database Session Dependency
# =============================================================================

DBSession = Annotated[AsyncSession, Depends(get_db)]
"""Type alias for database session dependency injection.

Usage:
    @router.post("/execute")
    async def execute(db: DBSession):
        ...
"""


# =============================================================================
# Engine Dependencies
# =============================================================================


def get_cache() -> ResultCache:
    """Process-wide result cache."""
    return get_result_cache()


Cache = Annotated[ResultCache, Depends(get_cache)]


def get_coordinator(db: DBSession, cache: Cache) -> ExecutionCoordinator:
    """Build a coordinator whose audit records go to the request's session.

    The cache and operation registry are process-wide; the audit sink is
    bound to the request so the record commits with it.
    """
    return ExecutionCoordinator(
        registry=get_registry(),
        cache=cache,
        audit_sink=DatabaseAuditSink(db),
    )


Coordinator = Annotated[ExecutionCoordinator, Depends(get_coordinator)]
"""Type alias for coordinator dependency injection."""


__all__ = [
    "Cache",
    "Coordinator",
    "DBSession",
    "get_cache",
    "get_coordinator",
]
