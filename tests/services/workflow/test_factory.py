"""Tests for node and edge construction."""

import re

import pytest
from pydantic import ValidationError

from workflow_builder.models.enums import (
    DelayUnit,
    LogicOperator,
    NodeType,
    SourceHandle,
    TriggerEventType,
    WorkflowActionType,
)
from workflow_builder.schemas.workflow_graph import (
    ActionNodeData,
    ConditionNodeData,
    DelayNodeData,
    Position,
    TriggerNodeData,
)
from workflow_builder.services.workflow.factory import (
    IdGenerator,
    create_edge,
    create_node,
    generate_edge_id,
    generate_node_id,
)


class TestIds:
    """Tests for id sources."""

    def test_random_ids_are_prefixed_and_distinct(self) -> None:
        node_ids = {generate_node_id() for _ in range(50)}
        assert len(node_ids) == 50
        assert all(re.fullmatch(r"node_[0-9a-f]{12}", node_id) for node_id in node_ids)
        assert generate_edge_id().startswith("edge_")

    def test_id_generator_counter_is_per_instance(self) -> None:
        first = IdGenerator(session="a")
        second = IdGenerator(session="b")
        assert first.node_id() == "node_a_1"
        assert first.edge_id() == "edge_a_2"
        assert second.node_id() == "node_b_1"

    def test_id_generator_has_random_session_by_default(self) -> None:
        assert IdGenerator().session != IdGenerator().session


class TestCreateNode:
    """Tests for per-type default payloads."""

    @pytest.mark.parametrize(
        ("node_type", "model"),
        [
            (NodeType.TRIGGER, TriggerNodeData),
            (NodeType.CONDITION, ConditionNodeData),
            (NodeType.ACTION, ActionNodeData),
            (NodeType.DELAY, DelayNodeData),
        ],
    )
    def test_payload_matches_type(self, node_type: NodeType, model: type) -> None:
        node = create_node(node_type, Position(x=10, y=20), "Node")
        assert isinstance(node.data, model)
        assert node.type == node_type
        assert node.position == Position(x=10, y=20)

    def test_defaults(self) -> None:
        trigger = create_node("trigger", Position(), "T")
        condition = create_node("condition", Position(), "C")
        action = create_node("action", Position(), "A")
        delay = create_node("delay", Position(), "D")

        assert trigger.data.event_type == TriggerEventType.MANUAL
        assert condition.data.logic_operator == LogicOperator.AND
        assert condition.data.conditions == []
        assert action.data.action_type == WorkflowActionType.SET_STATUS
        assert action.data.params == {}
        assert (delay.data.amount, delay.data.unit) == (1, DelayUnit.HOURS)

    def test_overrides_accept_wire_keys(self) -> None:
        node = create_node(
            NodeType.ACTION,
            {"x": 0, "y": 0},
            "Approve",
            {"actionType": "approve", "params": {"note": "auto"}},
        )
        assert node.data.action_type == WorkflowActionType.APPROVE
        assert node.data.params == {"note": "auto"}

    def test_overrides_accept_field_names(self) -> None:
        node = create_node(NodeType.TRIGGER, Position(), "T", {"event_type": "return_overdue"})
        assert node.data.event_type == TriggerEventType.RETURN_OVERDUE

    def test_invalid_override_raises(self) -> None:
        with pytest.raises(ValidationError):
            create_node(NodeType.DELAY, Position(), "Wait", {"amount": 0})

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError):
            create_node("loop", Position(), "X")

    def test_id_factory_is_used(self) -> None:
        node = create_node(NodeType.ACTION, Position(), "A", id_factory=lambda: "fixed")
        assert node.id == "fixed"


class TestCreateEdge:
    """Tests for edge literals."""

    def test_plain_edge(self) -> None:
        edge = create_edge("a", "b")
        assert (edge.source, edge.target, edge.source_handle) == ("a", "b", None)
        assert edge.id.startswith("edge_")

    def test_branch_edge(self) -> None:
        edge = create_edge("cond", "b", "false", id_factory=lambda: "e1")
        assert edge.id == "e1"
        assert edge.source_handle == SourceHandle.FALSE
