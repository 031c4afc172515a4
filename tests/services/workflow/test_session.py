"""Tests for BuilderSession: edits, dirty tracking, save and import."""

import asyncio
import json
from types import SimpleNamespace
from uuid import uuid4

import pytest

from workflow_builder.models.enums import NodeType, SourceHandle, TriggerEventType
from workflow_builder.schemas.validation import ValidationErrorCode
from workflow_builder.schemas.workflow_graph import Position, Viewport, WorkflowGraph
from workflow_builder.schemas.workflow_rule import RuleGraphPayload
from workflow_builder.services.workflow.exceptions import (
    GraphImportError,
    SaveInProgressError,
    UnsupportedGraphVersionError,
    WorkflowSaveError,
    WorkflowValidationFailedError,
)
from workflow_builder.services.workflow.serialization import export_graph
from workflow_builder.services.workflow.session import BuilderSession


class RecordingPersist:
    """Persistence double that records payloads and can fail or block."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[object, RuleGraphPayload]] = []
        self.error = error
        self.release: asyncio.Event | None = None

    async def __call__(self, rule_id, payload: RuleGraphPayload) -> None:
        self.calls.append((rule_id, payload))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error


@pytest.fixture
def persist() -> RecordingPersist:
    return RecordingPersist()


@pytest.fixture
def session(valid_graph: WorkflowGraph, persist: RecordingPersist, ids) -> BuilderSession:
    return BuilderSession(
        valid_graph,
        name="Auto approve",
        rule_id=uuid4(),
        trigger_type="status_changed",
        persist=persist,
        ids=ids,
    )


class TestConcreteScenario:
    """Building a workflow from scratch, step by step."""

    def test_build_validate_export_import(self, ids) -> None:
        session = BuilderSession(name="Scenario", ids=ids)

        trigger = session.create_node(
            NodeType.TRIGGER, Position(x=80, y=120), "Return created", {"eventType": "return_created"}
        )
        assert trigger is not None
        assert session.validate() == []

        condition = session.create_node(NodeType.CONDITION, Position(x=400, y=120), "Check")
        assert session.add_edge(trigger.id, condition.id) is not None
        issues = session.validate()
        assert [issue.code for issue in issues] == [ValidationErrorCode.INCOMPLETE_CONDITION]
        assert issues[0].node_id == condition.id

        yes = session.create_node(NodeType.ACTION, Position(x=720, y=40), "Approve")
        no = session.create_node(NodeType.ACTION, Position(x=720, y=220), "Reject")
        assert session.add_edge(condition.id, yes.id, SourceHandle.TRUE) is not None
        assert session.add_edge(condition.id, no.id, SourceHandle.FALSE) is not None
        assert session.validate() == []
        assert session.is_valid

        exported = session.export_json()
        before = session.graph
        session.import_json(exported)
        assert session.graph == before
        assert session.export_json() == exported


class TestEditing:
    """Tests for graph commands and dirty tracking."""

    def test_new_session_is_clean(self, session: BuilderSession) -> None:
        assert not session.dirty
        assert session.errors == []

    def test_edits_mark_dirty_and_revalidate(self, session: BuilderSession) -> None:
        node = session.create_node(NodeType.DELAY, Position(x=10, y=10), "Wait")
        assert session.dirty
        assert [issue.node_id for issue in session.errors] == [node.id]

    def test_duplicate_id_refused(self, session: BuilderSession, node_factory) -> None:
        assert session.add_node(node_factory("check", NodeType.ACTION)) is False
        assert not session.dirty

    def test_second_trigger_refused(self, session: BuilderSession) -> None:
        assert session.create_node(NodeType.TRIGGER, Position(), "Another") is None
        assert len(session.graph.nodes_of_type(NodeType.TRIGGER)) == 1

    def test_move_snaps(self, session: BuilderSession) -> None:
        assert session.move_node("approve", Position(x=731, y=49)) is True
        assert session.graph.get_node("approve").position == Position(x=740, y=40)
        assert session.move_node("ghost", Position()) is False

    def test_update_node_label_and_data(self, session: BuilderSession) -> None:
        assert session.update_node("approve", label="Approve now", data={"actionType": "add_note"})
        node = session.graph.get_node("approve")
        assert node.label == "Approve now"
        assert node.data.action_type.value == "add_note"
        assert session.update_node("ghost", label="x") is False

    def test_update_node_rejects_foreign_payload(self, session: BuilderSession) -> None:
        trigger_data = session.graph.get_node("trigger").data
        with pytest.raises(ValueError):
            session.update_node("approve", data=trigger_data)

    def test_delete_node_removes_edges_and_selection(self, session: BuilderSession) -> None:
        session.canvas.select_node("check")
        assert session.delete_node("check") is True
        assert session.graph.edges == []
        assert session.canvas.selected_node_id is None
        assert session.delete_node("check") is False

    def test_delete_edge(self, session: BuilderSession) -> None:
        edge_id = session.graph.edges[0].id
        session.canvas.select_edge(edge_id)
        assert session.delete_edge(edge_id) is True
        assert session.canvas.selected_edge_id is None
        assert session.delete_edge(edge_id) is False

    def test_add_edge_uses_session_ids(self, session: BuilderSession) -> None:
        session.delete_edge("trigger-check")
        edge = session.add_edge("trigger", "check")
        assert edge.id == "edge_t_1"

    def test_rename(self, session: BuilderSession) -> None:
        session.rename("Auto approve")
        assert not session.dirty
        session.rename("Approve low value")
        assert session.dirty
        assert session.export_filename == "workflow-approve-low-value.json"

    def test_auto_layout_is_an_edit(self, session: BuilderSession) -> None:
        session.auto_layout()
        assert session.dirty
        assert session.graph.get_node("trigger").position == Position(x=60, y=140)


class TestCamera:
    """Camera changes never dirty the session."""

    def test_toolbar_zoom(self, session: BuilderSession) -> None:
        session.zoom_in()
        assert session.viewport.zoom == pytest.approx(0.96)
        session.zoom_out()
        session.zoom_out()
        assert session.viewport.zoom == pytest.approx(0.8 / 1.2)
        session.reset_zoom()
        assert session.viewport == Viewport(x=40, y=40, zoom=1)
        assert not session.dirty

    def test_zoom_clamped(self, session: BuilderSession) -> None:
        for _ in range(10):
            session.zoom_in()
        assert session.viewport.zoom == 2.0
        for _ in range(20):
            session.zoom_out()
        assert session.viewport.zoom == 0.25

    def test_fit_to_view(self, session: BuilderSession) -> None:
        viewport = session.fit_to_view(1200, 800)
        assert session.viewport == viewport
        assert not session.dirty


class TestSave:
    """Tests for the save path."""

    @pytest.mark.asyncio
    async def test_success_clears_dirty(self, session: BuilderSession, persist: RecordingPersist) -> None:
        session.move_node("approve", Position(x=700, y=40))
        payload = await session.save()

        assert not session.dirty
        assert not session.saving
        assert session.save_error is None
        assert session.trigger_type == "return_created"
        [(rule_id, sent)] = persist.calls
        assert rule_id == session.rule_id
        assert sent is payload
        assert payload.name == "Auto approve"
        assert payload.conditions == export_graph(session.graph)
        assert [a.type for a in payload.actions] == ["approve", "reject"]

    @pytest.mark.asyncio
    async def test_invalid_graph_is_not_persisted(
        self, session: BuilderSession, persist: RecordingPersist
    ) -> None:
        session.delete_edge("check-reject-false")
        with pytest.raises(WorkflowValidationFailedError) as exc_info:
            await session.save()
        assert exc_info.value.error_code == "WORKFLOW_INVALID"
        codes = [error["code"] for error in exc_info.value.details["errors"]]
        assert "INCOMPLETE_CONDITION" in codes
        assert persist.calls == []
        assert session.dirty

    @pytest.mark.asyncio
    async def test_failure_keeps_graph_and_dirty(self, session: BuilderSession) -> None:
        failing = RecordingPersist(error=RuntimeError("database unavailable"))
        session = BuilderSession(session.graph, name="x", persist=failing)
        session.rename("y")
        graph_before = session.graph

        with pytest.raises(WorkflowSaveError) as exc_info:
            await session.save()

        assert isinstance(exc_info.value.original_error, RuntimeError)
        assert session.save_error == "database unavailable"
        assert session.dirty
        assert not session.saving
        assert session.graph is graph_before

        session.dismiss_save_error()
        assert session.save_error is None

    @pytest.mark.asyncio
    async def test_without_persistence(self, valid_graph: WorkflowGraph) -> None:
        with pytest.raises(WorkflowSaveError):
            await BuilderSession(valid_graph).save()

    @pytest.mark.asyncio
    async def test_concurrent_save_refused_and_edits_stay_dirty(
        self, session: BuilderSession, persist: RecordingPersist
    ) -> None:
        persist.release = asyncio.Event()
        session.rename("First")

        first = asyncio.create_task(session.save())
        while not persist.calls:
            await asyncio.sleep(0)
        assert session.saving

        with pytest.raises(SaveInProgressError):
            await session.save()

        session.move_node("approve", Position(x=900, y=40))
        persist.release.set()
        await first

        assert len(persist.calls) == 1
        assert not session.saving
        assert session.dirty

    @pytest.mark.asyncio
    async def test_save_clears_legacy_flag(self, persist: RecordingPersist) -> None:
        rule = SimpleNamespace(
            id=uuid4(),
            name="Old rule",
            trigger_type="status_changed",
            conditions={},
            actions=[],
        )
        session = BuilderSession.from_rule(rule, persist)
        assert session.legacy
        await session.save()
        assert not session.legacy
        assert persist.calls[0][1].trigger_type == "return_status_changed"


class TestOpenRule:
    """Tests for opening stored records."""

    def test_graph_record(self, valid_graph: WorkflowGraph) -> None:
        rule = SimpleNamespace(
            id=uuid4(),
            name="Graph rule",
            trigger_type="return_created",
            conditions=export_graph(valid_graph),
            actions=[],
        )
        session = BuilderSession.from_rule(rule)
        assert session.graph == valid_graph
        assert not session.legacy
        assert not session.dirty
        assert session.rule_id == rule.id

    def test_legacy_record(self) -> None:
        rule = SimpleNamespace(
            id=uuid4(),
            name="Legacy",
            trigger_type="return_overdue",
            conditions={"all": []},
            actions=[{"type": "approve", "params": {}}],
        )
        session = BuilderSession.from_rule(rule)
        assert session.legacy
        trigger = session.graph.nodes_of_type(NodeType.TRIGGER)[0]
        assert trigger.data.event_type == TriggerEventType.RETURN_OVERDUE
        assert len(session.graph.nodes_of_type(NodeType.ACTION)) == 1
        # placeholders are not wired up yet
        assert not session.is_valid


class TestImport:
    """Import replaces the graph or changes nothing."""

    def test_wrong_version_leaves_session_untouched(self, session: BuilderSession) -> None:
        document = export_graph(WorkflowGraph())
        document["_graphVersion"] = 1
        session.canvas.select_node("check")
        before = session.export_json()

        with pytest.raises(UnsupportedGraphVersionError):
            session.import_json(json.dumps(document))

        assert session.export_json() == before
        assert not session.dirty
        assert session.canvas.selected_node_id == "check"

    def test_malformed_file_leaves_session_untouched(self, session: BuilderSession) -> None:
        before = session.graph
        with pytest.raises(GraphImportError):
            session.import_json('{"_graphVersion": 2, "nodes": [{"type": "loop"}]}')
        assert session.graph is before

    def test_duplicate_node_ids_leave_session_untouched(self, session: BuilderSession) -> None:
        document = {
            "_graphVersion": 2,
            "nodes": [
                {"id": "t", "type": "trigger"},
                {"id": "a", "type": "action"},
                {"id": "a", "type": "action"},
            ],
            "edges": [{"id": "t-a", "source": "t", "target": "a"}],
        }
        before = session.graph

        with pytest.raises(GraphImportError):
            session.import_json(json.dumps(document))

        assert session.graph is before
        assert not session.dirty

    def test_successful_import_replaces_graph(self, session: BuilderSession, node_factory) -> None:
        replacement = WorkflowGraph(nodes=[node_factory("only", NodeType.TRIGGER)])
        session.canvas.select_node("check")
        session.import_json(json.dumps(export_graph(replacement)))

        assert session.graph == replacement
        assert session.dirty
        assert session.errors == []
        assert session.canvas.selected_node_id is None


class TestNavigationGuard:
    """Tests for leaving with unsaved edits."""

    def test_clean_session_leaves_without_asking(self, session: BuilderSession) -> None:
        asked = []
        assert session.confirm_leave(lambda: asked.append(True) or False) is True
        assert asked == []
        assert session.before_unload() is False

    def test_dirty_session_asks(self, session: BuilderSession) -> None:
        session.rename("Changed")
        assert session.before_unload() is True
        assert session.confirm_leave(lambda: False) is False
        assert session.confirm_leave(lambda: True) is True
