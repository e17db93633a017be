"""Pricing operations: cost calculation, markup and currency conversion.

TAG: [DAG] [OPERATIONS] [PRICING]
"""

from typing import Any

from dag_engine.schemas.operations import (
    ApplyMarkupInput,
    CalculateCostInput,
    ConvertCurrencyInput,
    ConvertCurrencyOutput,
)
from dag_engine.services.dag.operations.base import BaseOperation, OperationInputs


class CalculateCostOperation(BaseOperation[CalculateCostInput]):
    """``base_amount * quantity + additional_cost``.

    ``base_amount`` comes from the parameters when given, otherwise from the
    upstream result.
    """

    name = "calculate_cost"
    description = "Total cost from a unit amount, a quantity and a flat surcharge"
    input_schema = CalculateCostInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        return {
            **inputs.params,
            "base_amount": self.upstream_value(inputs, explicit=("base_amount", "amount")),
        }

    async def process(self, validated_input: CalculateCostInput, inputs: OperationInputs) -> float:
        return (
            validated_input.base_amount * validated_input.quantity
            + validated_input.additional_cost
        )


class ApplyMarkupOperation(BaseOperation[ApplyMarkupInput]):
    """``amount * (1 + markup_percent / 100)``."""

    name = "apply_markup"
    description = "Increase an upstream amount by a percentage"
    input_schema = ApplyMarkupInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        return {
            **inputs.params,
            "amount": self.upstream_value(inputs, fallback=("base_amount",)),
        }

    async def process(self, validated_input: ApplyMarkupInput, inputs: OperationInputs) -> float:
        return validated_input.amount * (1 + validated_input.markup_percent / 100)


class ConvertCurrencyOperation(BaseOperation[ConvertCurrencyInput]):
    """Multiply an upstream amount by ``exchange_rate``."""

    name = "convert_currency"
    description = "Convert an amount between currencies at a fixed rate"
    input_schema = ConvertCurrencyInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        return {
            **inputs.params,
            "amount": self.upstream_value(inputs, fallback=("base_amount",)),
        }

    async def process(
        self, validated_input: ConvertCurrencyInput, inputs: OperationInputs
    ) -> ConvertCurrencyOutput:
        return ConvertCurrencyOutput(
            amount=validated_input.amount * validated_input.exchange_rate,
            currency=validated_input.to_currency,
            original_amount=validated_input.amount,
            original_currency=validated_input.from_currency,
            exchange_rate=validated_input.exchange_rate,
        )


__all__ = [
    "ApplyMarkupOperation",
    "CalculateCostOperation",
    "ConvertCurrencyOperation",
]
