"""Decision operation.

TAG: [DAG] [OPERATIONS] [DECISION]
"""

from typing import Any

from dag_engine.schemas.operations import MakeDecisionInput, MakeDecisionOutput
from dag_engine.services.dag.operations.base import BaseOperation, OperationInputs


class MakeDecisionOperation(BaseOperation[MakeDecisionInput]):
    """Pick ``if_above`` when the upstream value is at or above ``threshold``."""

    name = "make_decision"
    description = "Choose between two outcomes by comparing a value with a threshold"
    input_schema = MakeDecisionInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        return {
            **inputs.params,
            "value": self.upstream_value(inputs, fallback=("base_amount",)),
        }

    async def process(
        self, validated_input: MakeDecisionInput, inputs: OperationInputs
    ) -> MakeDecisionOutput:
        above = validated_input.value >= validated_input.threshold
        return MakeDecisionOutput(
            decision=validated_input.if_above if above else validated_input.if_below,
            value=validated_input.value,
            threshold=validated_input.threshold,
        )


__all__ = ["MakeDecisionOperation"]
