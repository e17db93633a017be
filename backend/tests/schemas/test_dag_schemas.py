"""Tests for DAG request and report schemas.

TAG: [SCHEMAS] [DAG] [TEST]
"""

import pytest
from pydantic import ValidationError

from dag_engine.models.enums import (
    ErrorHandlingPolicy,
    ExecutionMode,
    ExecutionPriority,
    NodeKind,
    NodeStatus,
)
from dag_engine.schemas.dag import (
    DagExecutionRequest,
    ExecutionContext,
    NodeDefinition,
)
from dag_engine.schemas.report import NodeResult, ValidationIssue, ValidationOutcome


class TestNodeDefinition:
    """Node schema parsing."""

    def test_wire_aliases(self):
        node = NodeDefinition.model_validate(
            {
                "node_id": "markup",
                "node_name": "Markup",
                "node_type": "transformation",
                "depends_on": ["cost"],
                "execution_config": {"function": "apply_markup", "parameters": {"markup_percent": 25}},
                "validation_rules": {"required_fields": ["cost"], "error_handling": "continue"},
            }
        )

        assert node.id == "markup"
        assert node.kind == NodeKind.TRANSFORMATION
        assert node.dependencies == ["cost"]
        assert node.function_name == "apply_markup"
        assert node.parameters == {"markup_percent": 25}
        assert node.error_policy == ErrorHandlingPolicy.CONTINUE

    @pytest.mark.parametrize("raw", ["external-call", "EXTERNAL_CALL", " external_call "])
    def test_kind_spellings(self, raw):
        node = NodeDefinition(id="n", kind=raw)
        assert node.kind == NodeKind.EXTERNAL_CALL

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            NodeDefinition(id="n", kind="teleport")

    def test_duplicate_dependencies_collapsed(self):
        node = NodeDefinition(id="n", dependencies=["a", "b", "a"])
        assert node.dependencies == ["a", "b"]

    def test_defaults(self):
        node = NodeDefinition(id="n")

        assert node.function_name == ""
        assert node.parameters == {}
        assert node.error_policy == ErrorHandlingPolicy.STOP
        assert node.display_name == "n"
        assert node.parallel_eligible is False

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValidationError):
            NodeDefinition(id="n", timeout_ms=0)

    def test_immutable(self):
        node = NodeDefinition(id="n")
        with pytest.raises(ValidationError):
            node.id = "other"


class TestExecutionContext:
    """Context normalization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("sync", ExecutionMode.SYNCHRONOUS),
            ("ASYNC", ExecutionMode.ASYNCHRONOUS),
            ("batch", ExecutionMode.BATCH),
        ],
    )
    def test_execution_mode(self, raw, expected):
        assert ExecutionContext(execution_mode=raw).execution_mode == expected

    def test_priority_case_insensitive(self):
        assert ExecutionContext(priority="HIGH").priority == ExecutionPriority.HIGH

    def test_trigger_alias(self):
        assert ExecutionContext.model_validate({"trigger_event": "price_update"}).trigger == "price_update"


class TestDagExecutionRequest:
    """Top-level request parsing."""

    def test_wire_payload(self, pricing_payload):
        request = DagExecutionRequest.model_validate(pricing_payload)

        assert request.graph.id == "pricing"
        assert request.graph.node_ids == ["cost", "markup", "validate"]
        assert request.graph.dependency_map() == {
            "cost": [],
            "markup": ["cost"],
            "validate": ["markup"],
        }
        assert request.context.input_data == {"base_amount": 100, "markup_percent": 25}
        assert request.optimization.enable_caching is True
        assert request.monitoring.enable_detailed_logging is False

    def test_organization_required(self, pricing_payload):
        pricing_payload["organization_id"] = ""
        with pytest.raises(ValidationError):
            DagExecutionRequest.model_validate(pricing_payload)


class TestReportSchemas:
    """Result and validation outcome helpers."""

    def test_node_result_succeeded(self):
        assert NodeResult(node_id="a", status=NodeStatus.SUCCESS).succeeded
        assert not NodeResult(node_id="a", status=NodeStatus.SKIPPED).succeeded

    def test_outcome_errors(self):
        outcome = ValidationOutcome(
            is_valid=False,
            issues=[ValidationIssue(code="CYCLE_DETECTED", message="Cycle detected: a -> a")],
        )
        assert outcome.errors == ["Cycle detected: a -> a"]
