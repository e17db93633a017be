"""Base Operation Abstract Class.

TAG: [DAG] [OPERATIONS] [BASE]

Every named node operation follows the same lifecycle:

1. ``pre_process``: build and validate a typed input model from the merged
   node parameters and the upstream results
2. ``process``: compute the result
3. ``post_process``: turn the result into the payload handed downstream

Errors raised by ``process`` are wrapped in ``OperationExecutionError``;
input problems surface as ``OperationValidationError``.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import OperationError, OperationExecutionError, OperationValidationError

InputT = TypeVar("InputT", bound=BaseModel)

# Keys probed, in order, when a numeric value is read out of a dict payload
VALUE_KEYS = ("price", "amount", "value", "cost", "result")


@dataclass
class OperationInputs:
    """Everything an operation may read.

    Attributes:
        node_id: Id of the node being executed
        params: Merged parameters (input data < static parameters <
            dependency payloads keyed by dependency id)
        dependency_results: Payloads of the node's available dependencies,
            in declaration order
    """

    node_id: str
    params: dict[str, Any] = field(default_factory=dict)
    dependency_results: dict[str, Any] = field(default_factory=dict)


def extract_value(payload: Any) -> Any:
    """Read the scalar carried by an upstream payload.

    Scalars are returned unchanged; for dicts the first present key of
    ``VALUE_KEYS`` wins. Anything else is returned as-is and left to input
    validation.
    """
    if isinstance(payload, Mapping):
        for key in VALUE_KEYS:
            if key in payload:
                return extract_value(payload[key])
    return payload


class BaseOperation(ABC, Generic[InputT]):
    """Abstract base class for named node operations.

    Subclasses set ``name`` (the registry key), ``input_schema`` and
    implement ``build_input`` and ``process``.
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    input_schema: type[InputT]

    async def execute(self, inputs: OperationInputs) -> Any:
        """Run the full lifecycle and return the downstream payload.

        Raises:
            OperationValidationError: If the inputs do not validate
            OperationExecutionError: If ``process`` fails
        """
        validated = await self.pre_process(inputs)
        try:
            result = await self.process(validated, inputs)
        except OperationError:
            raise
        except (ArithmeticError, TypeError, ValueError, LookupError) as e:
            raise OperationExecutionError(operation=self.name, message=str(e)) from e
        return await self.post_process(result)

    async def pre_process(self, inputs: OperationInputs) -> InputT:
        """Validate the raw input built by ``build_input``."""
        try:
            return self.input_schema.model_validate(self.build_input(inputs))
        except ValidationError as e:
            error_dicts = [
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ]
            raise OperationValidationError(operation=self.name, errors=error_dicts) from e

    @abstractmethod
    def build_input(self, inputs: OperationInputs) -> dict[str, Any]:
        """Assemble the raw input dictionary for ``input_schema``."""

    @abstractmethod
    async def process(self, validated_input: InputT, inputs: OperationInputs) -> Any:
        """Compute the operation's result."""

    async def post_process(self, output: Any) -> Any:
        """Serialize pydantic outputs; plain values pass through."""
        if isinstance(output, BaseModel):
            return output.model_dump()
        return output

    # ------------------------------------------------------------------
    # Input helpers
    # ------------------------------------------------------------------

    @staticmethod
    def upstream_value(
        inputs: OperationInputs,
        explicit: tuple[str, ...] = ("amount", "value"),
        fallback: tuple[str, ...] = (),
    ) -> Any:
        """Resolve the value an operation works on.

        Resolution order:
        1. the first ``explicit`` key present in the parameters
        2. the dependency named by the ``source`` parameter
        3. the only dependency result, when there is exactly one
        4. the first ``fallback`` key present in the parameters

        Returns:
            The resolved value, or None when nothing matched.
        """
        params = inputs.params
        for key in explicit:
            if params.get(key) is not None:
                return extract_value(params[key])

        source = params.get("source")
        if isinstance(source, str) and source in inputs.dependency_results:
            return extract_value(inputs.dependency_results[source])

        if len(inputs.dependency_results) == 1:
            (only,) = inputs.dependency_results.values()
            return extract_value(only)

        for key in fallback:
            if params.get(key) is not None:
                return extract_value(params[key])
        return None


__all__ = [
    "VALUE_KEYS",
    "BaseOperation",
    "OperationInputs",
    "extract_value",
]
