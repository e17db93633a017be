"""Base Pydantic schemas with common patterns.

TAG: [SCHEMAS] [BASE]

This module defines the base schema configuration shared by the request,
report and response models of the engine.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema with common configuration for all schemas.

    ``populate_by_name`` lets callers use either the field name or the
    wire alias of the original endpoint (``node_id``, ``dag_definition``...).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class FrozenSchema(BaseSchema):
    """Schema whose instances are immutable once constructed.

    Used for graph definitions, contexts and per-node results, which must
    not change during a run.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


class ErrorDetail(BaseSchema):
    """Machine-readable error attached to a failed response."""

    code: str = Field(
        ...,
        description="Error type identifier",
        examples=["VALIDATION_FAILED", "INTERNAL_CONSISTENCY"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Graph validation failed with 2 error(s)"],
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional error details",
    )


__all__ = [
    "BaseSchema",
    "ErrorDetail",
    "FrozenSchema",
]
