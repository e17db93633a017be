"""Operation Registry.

TAG: [DAG] [OPERATIONS] [REGISTRY]

Maps operation names to operation classes. Built-in operations are
registered at construction; applications may add or replace entries with
``register``. Looking up an unknown name raises ``OperationNotFoundError``,
which the node executor turns into a failed node.
"""

from typing import Any

from dag_engine.services.dag.operations.base import BaseOperation
from dag_engine.services.dag.operations.errors import OperationNotFoundError


class OperationRegistry:
    """Registry for named node operations.

    Example:
        registry = OperationRegistry()
        operation = registry.create("apply_markup")
        result = await operation.execute(inputs)
    """

    def __init__(self) -> None:
        """Initialize registry and register the built-in operations."""
        self._operations: dict[str, type[BaseOperation[Any]]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        from dag_engine.services.dag.operations.aggregation import AggregateOperation
        from dag_engine.services.dag.operations.decision import MakeDecisionOperation
        from dag_engine.services.dag.operations.external import SimulateExternalCallOperation
        from dag_engine.services.dag.operations.pricing import (
            ApplyMarkupOperation,
            CalculateCostOperation,
            ConvertCurrencyOperation,
        )
        from dag_engine.services.dag.operations.validation import ValidateThresholdOperation

        for operation_class in (
            CalculateCostOperation,
            ApplyMarkupOperation,
            ValidateThresholdOperation,
            AggregateOperation,
            ConvertCurrencyOperation,
            MakeDecisionOperation,
            SimulateExternalCallOperation,
        ):
            self.register(operation_class.name, operation_class)

    def register(self, name: str, operation_class: type[BaseOperation[Any]]) -> None:
        """Register an operation class under ``name``.

        An existing registration for the same name is replaced.
        """
        self._operations[name] = operation_class

    def get(self, name: str) -> type[BaseOperation[Any]]:
        """Get the operation class registered under ``name``.

        Raises:
            OperationNotFoundError: If nothing is registered under ``name``
        """
        if name not in self._operations:
            raise OperationNotFoundError(name)
        return self._operations[name]

    def create(self, name: str) -> BaseOperation[Any]:
        """Instantiate the operation registered under ``name``."""
        return self.get(name)()

    def list_registered(self) -> list[str]:
        """Registered operation names, sorted."""
        return sorted(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations


# Module-level singleton for convenience
_registry: OperationRegistry | None = None


def get_registry() -> OperationRegistry:
    """Get the global operation registry singleton."""
    global _registry
    if _registry is None:
        _registry = OperationRegistry()
    return _registry


__all__ = ["OperationRegistry", "get_registry"]
