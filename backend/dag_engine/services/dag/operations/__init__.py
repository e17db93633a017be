"""Named node operations and their registry.

TAG: [DAG] [OPERATIONS]
"""

from dag_engine.services.dag.operations.aggregation import AggregateOperation
from dag_engine.services.dag.operations.base import (
    BaseOperation,
    OperationInputs,
    extract_value,
)
from dag_engine.services.dag.operations.decision import MakeDecisionOperation
from dag_engine.services.dag.operations.errors import (
    OperationError,
    OperationExecutionError,
    OperationNotFoundError,
    OperationValidationError,
)
from dag_engine.services.dag.operations.external import SimulateExternalCallOperation
from dag_engine.services.dag.operations.pricing import (
    ApplyMarkupOperation,
    CalculateCostOperation,
    ConvertCurrencyOperation,
)
from dag_engine.services.dag.operations.registry import OperationRegistry, get_registry
from dag_engine.services.dag.operations.validation import ValidateThresholdOperation

__all__ = [
    "AggregateOperation",
    "ApplyMarkupOperation",
    "BaseOperation",
    "CalculateCostOperation",
    "ConvertCurrencyOperation",
    "MakeDecisionOperation",
    "OperationError",
    "OperationExecutionError",
    "OperationInputs",
    "OperationNotFoundError",
    "OperationRegistry",
    "OperationValidationError",
    "SimulateExternalCallOperation",
    "ValidateThresholdOperation",
    "extract_value",
    "get_registry",
]
