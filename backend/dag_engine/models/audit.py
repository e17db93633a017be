"""Audit record model for DAG executions.

TAG: [DATABASE] [AUDIT]

Every coordinator run (completed, partial, failed, rejected by validation
or aborted by an internal consistency failure) is appended to this table,
keyed by tenant. The engine never reads it back.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import JSON, Float, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from dag_engine.models.base import GUID, Base, CreatedAtMixin, UUIDMixin

# Use JSONB for PostgreSQL, JSON for other databases (like SQLite for testing)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class DagExecutionAudit(UUIDMixin, CreatedAtMixin, Base):
    """Append-only audit row for one DAG execution.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        execution_id: Execution id reported to the caller
        organization_id: Tenant the run belongs to
        graph_id: Id of the submitted graph
        status: completed | partial | failed
        error_code: Set when the run was rejected or aborted
        elapsed_ms: Wall-clock duration of the whole run
        node_count: Number of nodes in the submitted graph
        report: Full response payload (report, validation errors, error)
        created_at: Timestamp of insertion (from CreatedAtMixin)
    """

    __tablename__ = "dag_execution_audits"

    execution_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        nullable=False,
        index=True,
    )

    organization_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    graph_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    error_code: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    elapsed_ms: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
    )

    node_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    report: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )

    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<DagExecutionAudit(execution_id={self.execution_id}, "
            f"organization_id={self.organization_id!r}, status={self.status!r})>"
        )


__all__ = ["DagExecutionAudit"]
