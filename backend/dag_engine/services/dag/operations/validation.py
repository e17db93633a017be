"""Threshold validation operation.

TAG: [DAG] [OPERATIONS] [VALIDATION]
"""

from typing import Any

from dag_engine.schemas.operations import ValidateThresholdInput, ValidateThresholdOutput
from dag_engine.services.dag.operations.base import BaseOperation, OperationInputs
from dag_engine.services.dag.operations.errors import OperationExecutionError


class ValidateThresholdOperation(BaseOperation[ValidateThresholdInput]):
    """Check an upstream price against optional inclusive bounds.

    Reports ``valid`` in the payload; with ``strict`` set, an out-of-range
    price fails the node instead.
    """

    name = "validate_threshold"
    description = "Check a price against minimum and maximum bounds"
    input_schema = ValidateThresholdInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        return {
            **inputs.params,
            "price": self.upstream_value(
                inputs,
                explicit=("price", "value"),
                fallback=("amount", "base_amount"),
            ),
        }

    async def process(
        self, validated_input: ValidateThresholdInput, inputs: OperationInputs
    ) -> ValidateThresholdOutput:
        price = validated_input.price
        too_low = validated_input.min_value is not None and price < validated_input.min_value
        too_high = validated_input.max_value is not None and price > validated_input.max_value
        valid = not (too_low or too_high)

        if not valid and validated_input.strict:
            raise OperationExecutionError(
                operation=self.name,
                message=(
                    f"price {price:g} outside "
                    f"[{validated_input.min_value}, {validated_input.max_value}]"
                ),
            )

        return ValidateThresholdOutput(
            valid=valid,
            price=price,
            min_value=validated_input.min_value,
            max_value=validated_input.max_value,
        )


__all__ = ["ValidateThresholdOperation"]
