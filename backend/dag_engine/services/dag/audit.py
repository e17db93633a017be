"""Audit sinks for DAG executions.

TAG: [DAG] [AUDIT]

The coordinator emits exactly one ``AuditRecord`` per run, whether it
completed, was rejected by validation or aborted. Sinks are write-only
from the engine's perspective, and a failing sink never fails the run.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from dag_engine.core.logging import get_logger
from dag_engine.models.audit import DagExecutionAudit
from dag_engine.models.enums import RunStatus
from dag_engine.schemas.base import BaseSchema

logger = get_logger(__name__)


class AuditRecord(BaseSchema):
    """One append-only audit entry."""

    execution_id: UUID
    organization_id: str
    graph_id: str
    status: RunStatus
    elapsed_ms: float = 0.0
    node_count: int = 0
    error_code: str | None = None
    error_message: str | None = None
    report: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class AuditSink(Protocol):
    """Destination of audit records."""

    async def record(self, entry: AuditRecord) -> None: ...


class InMemoryAuditSink:
    """Keeps records in a list; used by tests and when no database is wired."""

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    async def record(self, entry: AuditRecord) -> None:
        self.records.append(entry)

    def for_organization(self, organization_id: str) -> list[AuditRecord]:
        return [r for r in self.records if r.organization_id == organization_id]


class DatabaseAuditSink:
    """Appends records to the ``dag_execution_audits`` table.

    The row is flushed, not committed: the session owner (``get_db`` for
    HTTP requests) decides commit or rollback.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(self, entry: AuditRecord) -> None:
        row = DagExecutionAudit(
            execution_id=entry.execution_id,
            organization_id=entry.organization_id,
            graph_id=entry.graph_id,
            status=str(entry.status),
            error_code=entry.error_code,
            error_message=entry.error_message,
            elapsed_ms=entry.elapsed_ms,
            node_count=entry.node_count,
            report=entry.report,
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except Exception:
            await self.session.rollback()
            raise


async def emit_audit(sink: AuditSink | None, entry: AuditRecord) -> bool:
    """Send ``entry`` to ``sink``, logging instead of raising on failure.

    Returns:
        True if the sink accepted the record.
    """
    if sink is None:
        return False
    try:
        await sink.record(entry)
    except Exception as e:
        logger.warning(
            f"Audit sink {type(sink).__name__} failed: {e}",
            exc_info=True,
            extra={
                "context": {
                    "execution_id": str(entry.execution_id),
                    "organization_id": entry.organization_id,
                }
            },
        )
        return False
    return True


__all__ = [
    "AuditRecord",
    "AuditSink",
    "DatabaseAuditSink",
    "InMemoryAuditSink",
    "emit_audit",
]
