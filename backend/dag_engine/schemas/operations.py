"""Operation Schemas.

TAG: [SCHEMAS] [OPERATIONS]

Input/output schemas for the built-in node operations. Inputs are built by
each operation's ``pre_process`` from the merged node parameters and the
upstream results; unknown keys are ignored because the merged parameter
set also carries the run's input data.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ============================================================================
# Pricing
# ============================================================================

class CalculateCostInput(BaseModel):
    """Input schema for ``calculate_cost``.

    Attributes:
        base_amount: Unit cost
        quantity: Number of units
        additional_cost: Flat amount added after multiplication
    """
    model_config = ConfigDict(extra="ignore")

    base_amount: float
    quantity: float = Field(default=1, ge=0)
    additional_cost: float = 0


class ApplyMarkupInput(BaseModel):
    """Input schema for ``apply_markup``."""
    model_config = ConfigDict(extra="ignore")

    amount: float
    markup_percent: float


class ConvertCurrencyInput(BaseModel):
    """Input schema for ``convert_currency``."""
    model_config = ConfigDict(extra="ignore")

    amount: float
    exchange_rate: float = Field(gt=0)
    from_currency: str = "USD"
    to_currency: str = "USD"


class ConvertCurrencyOutput(BaseModel):
    amount: float
    currency: str
    original_amount: float
    original_currency: str
    exchange_rate: float


# ============================================================================
# Validation
# ============================================================================

class ValidateThresholdInput(BaseModel):
    """Input schema for ``validate_threshold``.

    Attributes:
        price: Value under test
        min_value: Inclusive lower bound (unbounded when None)
        max_value: Inclusive upper bound (unbounded when None)
        strict: Fail the node instead of reporting ``valid=False``
    """
    model_config = ConfigDict(extra="ignore")

    price: float
    min_value: float | None = None
    max_value: float | None = None
    strict: bool = False

    @model_validator(mode="after")
    def check_bounds(self) -> "ValidateThresholdInput":
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError("min_value must not exceed max_value")
        return self


class ValidateThresholdOutput(BaseModel):
    valid: bool
    price: float
    min_value: float | None = None
    max_value: float | None = None


# ============================================================================
# Aggregation
# ============================================================================

AggregationStrategy = Literal["sum", "average", "min", "max", "merge", "list"]


class AggregateInput(BaseModel):
    """Input schema for ``aggregate``.

    Attributes:
        strategy: How the sources are combined
        sources: Values to combine, keyed by source (dependency) id
    """
    model_config = ConfigDict(extra="ignore")

    strategy: AggregationStrategy = "sum"
    sources: dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Decision
# ============================================================================

class MakeDecisionInput(BaseModel):
    """Input schema for ``make_decision``."""
    model_config = ConfigDict(extra="ignore")

    value: float
    threshold: float
    if_above: Any = "approve"
    if_below: Any = "reject"


class MakeDecisionOutput(BaseModel):
    decision: Any
    value: float
    threshold: float


# ============================================================================
# External call
# ============================================================================

class ExternalCallInput(BaseModel):
    """Input schema for ``simulate_external_call``.

    Attributes:
        endpoint: Label of the simulated remote endpoint
        latency_ms: Simulated round-trip time
        fail: Raise instead of returning a response
        payload: Data echoed back in the response
    """
    model_config = ConfigDict(extra="ignore")

    endpoint: str = "simulated"
    latency_ms: float = Field(default=50, ge=0)
    fail: bool = False
    payload: Any = None


class ExternalCallOutput(BaseModel):
    status: str
    endpoint: str
    latency_ms: float
    payload: Any = None


__all__ = [
    "AggregateInput",
    "AggregationStrategy",
    "ApplyMarkupInput",
    "CalculateCostInput",
    "ConvertCurrencyInput",
    "ConvertCurrencyOutput",
    "ExternalCallInput",
    "ExternalCallOutput",
    "MakeDecisionInput",
    "MakeDecisionOutput",
    "ValidateThresholdInput",
    "ValidateThresholdOutput",
]
