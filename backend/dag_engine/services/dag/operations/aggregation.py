"""Aggregation operation.

TAG: [DAG] [OPERATIONS] [AGGREGATION]
"""

from numbers import Real
from typing import Any

from dag_engine.schemas.operations import AggregateInput
from dag_engine.services.dag.operations.base import BaseOperation, OperationInputs, extract_value
from dag_engine.services.dag.operations.errors import OperationExecutionError


class AggregateOperation(BaseOperation[AggregateInput]):
    """Combine several upstream results.

    Sources are the node's dependency results (declaration order) or, for a
    node without dependencies, the ``values`` parameter.

    Strategies:
    - ``sum`` / ``average`` / ``min`` / ``max``: numeric reduction
    - ``merge``: shallow merge of dict payloads, later sources win
    - ``list``: payloads collected into a list
    """

    name = "aggregate"
    description = "Combine upstream results with sum, average, min, max, merge or list"
    input_schema = AggregateInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        sources: Any = dict(inputs.dependency_results)
        if not sources:
            values = inputs.params.get("values", {})
            sources = dict(enumerate(values)) if isinstance(values, list) else values
            sources = {str(key): value for key, value in sources.items()}
        return {"strategy": inputs.params.get("strategy", "sum"), "sources": sources}

    async def process(self, validated_input: AggregateInput, inputs: OperationInputs) -> Any:
        strategy = validated_input.strategy
        payloads = list(validated_input.sources.values())

        if strategy == "merge":
            merged: dict[str, Any] = {}
            for payload in payloads:
                if isinstance(payload, dict):
                    merged.update(payload)
            return merged

        if strategy == "list":
            return payloads

        numbers = [extract_value(payload) for payload in payloads]
        invalid = [n for n in numbers if isinstance(n, bool) or not isinstance(n, Real)]
        if invalid:
            raise OperationExecutionError(
                operation=self.name,
                message=f"strategy '{strategy}' needs numeric sources, got {invalid!r}",
            )

        if strategy == "sum":
            return sum(numbers)
        if not numbers:
            raise OperationExecutionError(
                operation=self.name,
                message=f"strategy '{strategy}' needs at least one source",
            )
        if strategy == "average":
            return sum(numbers) / len(numbers)
        if strategy == "min":
            return min(numbers)
        return max(numbers)


__all__ = ["AggregateOperation"]
