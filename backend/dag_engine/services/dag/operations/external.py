"""Simulated external call.

TAG: [DAG] [OPERATIONS] [EXTERNAL]

Stands in for a remote lookup (supplier price feed, tax service ...): it
suspends for ``latency_ms`` and echoes a payload back. It is the one
operation that blocks, which makes it the usual subject of timeout and
bottleneck tests.
"""

import asyncio
from typing import Any

from dag_engine.schemas.operations import ExternalCallInput, ExternalCallOutput
from dag_engine.services.dag.operations.base import BaseOperation, OperationInputs
from dag_engine.services.dag.operations.errors import OperationExecutionError


class SimulateExternalCallOperation(BaseOperation[ExternalCallInput]):
    name = "simulate_external_call"
    description = "Sleep for a configured latency and echo a payload"
    input_schema = ExternalCallInput

    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        raw = dict(inputs.params)
        if raw.get("payload") is None and inputs.dependency_results:
            raw["payload"] = dict(inputs.dependency_results)
        return raw

    async def process(
        self, validated_input: ExternalCallInput, inputs: OperationInputs
    ) -> ExternalCallOutput:
        await asyncio.sleep(validated_input.latency_ms / 1000)
        if validated_input.fail:
            raise OperationExecutionError(
                operation=self.name,
                message=f"call to '{validated_input.endpoint}' failed",
            )
        return ExternalCallOutput(
            status="ok",
            endpoint=validated_input.endpoint,
            latency_ms=validated_input.latency_ms,
            payload=validated_input.payload,
        )


__all__ = ["SimulateExternalCallOperation"]
