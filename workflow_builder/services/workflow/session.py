"""Builder session: one open workflow in the editor.

The session owns the current graph and everything that hangs off it:

- the ``dirty`` flag (set by every graph edit and by renaming; camera
  changes never set it),
- the validation errors, recomputed after every edit,
- the save state: ``saving`` while a save is in flight, ``save_error``
  after a failed one.

Edits are synchronous and keep working while a save is in flight; only a
second concurrent ``save()`` is refused. Persistence is an injected
coroutine, so the session works the same over the database service, an
HTTP client or a test double.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol
from uuid import UUID

from workflow_builder.core.logging import LogContext, get_logger
from workflow_builder.models.enums import NodeType, SourceHandle
from workflow_builder.schemas.validation import ValidationIssue
from workflow_builder.schemas.workflow_graph import (
    NodeData,
    Position,
    Viewport,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from workflow_builder.schemas.workflow_rule import ActionSummary, RuleGraphPayload
from workflow_builder.services.workflow.exceptions import (
    GraphImportError,
    SaveInProgressError,
    WorkflowSaveError,
    WorkflowValidationFailedError,
)
from workflow_builder.services.workflow.factory import IdGenerator, create_edge, create_node
from workflow_builder.services.workflow.interaction import InteractionController, can_connect
from workflow_builder.services.workflow.layout import (
    auto_layout_graph,
    clamp_zoom,
    compute_fit_to_view,
    default_viewport,
    snap_to_grid,
)
from workflow_builder.services.workflow.serialization import (
    derive_trigger_type,
    export_filename,
    export_graph_json,
    import_graph_json,
    load_rule_graph,
    serialize_workflow_graph,
)
from workflow_builder.services.workflow.validator import validate_workflow

logger = get_logger(__name__)

TOOLBAR_ZOOM_STEP = 1.2

PersistFn = Callable[[UUID | None, RuleGraphPayload], Awaitable[Any]]


class RuleRecord(Protocol):
    """Stored rule fields a session is opened from."""

    id: UUID
    name: str
    trigger_type: str
    conditions: Any
    actions: Any


class BuilderSession:
    """Editing session for one workflow rule.

    Implements the ``CanvasHost`` interface used by its
    ``InteractionController`` (``self.canvas``).

    Attributes:
        rule_id: Rule being edited (``None`` for an unsaved draft).
        name: Rule name as edited.
        trigger_type: Stored trigger type, used when the graph has no trigger.
        dirty: Whether there are edits not yet saved.
        errors: Validation issues of the current graph.
        saving: Whether a save is in flight.
        save_error: Message of the last failed save, until dismissed.
        legacy: Whether the graph was synthesized from a legacy record.

    Example:
        >>> session = BuilderSession(name="Auto approve", persist=service_persist)
        >>> trigger = session.create_node("trigger", Position(x=80, y=120), "Start")
        >>> session.dirty
        True
        >>> await session.save()
    """

    def __init__(
        self,
        graph: WorkflowGraph | None = None,
        *,
        name: str = "",
        rule_id: UUID | None = None,
        trigger_type: str = "manual",
        persist: PersistFn | None = None,
        ids: IdGenerator | None = None,
        legacy: bool = False,
    ) -> None:
        self._graph = graph if graph is not None else WorkflowGraph()
        self._persist = persist
        self._revision = 0
        self.rule_id = rule_id
        self.name = name
        self.trigger_type = trigger_type
        self.ids = ids or IdGenerator()
        self.legacy = legacy
        self.dirty = False
        self.saving = False
        self.save_error: str | None = None
        self.errors: list[ValidationIssue] = validate_workflow(self._graph)
        self.canvas = InteractionController(self, node_id_factory=self.ids.node_id)

    @classmethod
    def from_rule(cls, rule: RuleRecord, persist: PersistFn | None = None) -> BuilderSession:
        """Open a stored rule, upgrading legacy records to a graph.

        Raises:
            GraphImportError: If the stored graph document is corrupt.
        """
        graph, legacy = load_rule_graph(rule.trigger_type, rule.conditions, rule.actions)
        return cls(
            graph,
            name=rule.name,
            rule_id=rule.id,
            trigger_type=rule.trigger_type,
            persist=persist,
            legacy=legacy,
        )

    # ------------------------------------------------------------------
    # Canvas host
    # ------------------------------------------------------------------

    @property
    def graph(self) -> WorkflowGraph:
        return self._graph

    @property
    def viewport(self) -> Viewport:
        return self._graph.viewport

    def set_viewport(self, viewport: Viewport) -> None:
        """Move the camera. Not an edit: ``dirty`` is unchanged."""
        self._graph = self._graph.model_copy(update={"viewport": viewport})

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def _commit(self, graph: WorkflowGraph, action: str) -> None:
        self._graph = graph
        self._revision += 1
        self.dirty = True
        self.errors = validate_workflow(graph)
        logger.debug(
            "Graph updated",
            extra={
                "context": {
                    "action": action,
                    "nodes": len(graph.nodes),
                    "edges": len(graph.edges),
                    "errors": len(self.errors),
                }
            },
        )

    # ------------------------------------------------------------------
    # Node commands
    # ------------------------------------------------------------------

    def add_node(self, node: WorkflowNode) -> bool:
        """Add a node.

        Refused (returns False, graph untouched) for a duplicate id or for
        a second trigger.
        """
        if self._graph.get_node(node.id) is not None:
            return False
        if node.type == NodeType.TRIGGER and self._graph.nodes_of_type(NodeType.TRIGGER):
            logger.debug("Refusing second trigger node", extra={"context": {"node_id": node.id}})
            return False
        self._commit(
            self._graph.model_copy(update={"nodes": [*self._graph.nodes, node]}),
            "add_node",
        )
        return True

    def create_node(
        self,
        node_type: NodeType | str,
        position: Position,
        label: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> WorkflowNode | None:
        """Create a node with a session id and add it.

        Returns:
            The new node, or ``None`` if it was refused.
        """
        node = create_node(node_type, position, label, overrides, id_factory=self.ids.node_id)
        return node if self.add_node(node) else None

    def move_node(self, node_id: str, position: Position) -> bool:
        """Move a node; the position is snapped to the grid."""
        node = self._graph.get_node(node_id)
        if node is None:
            return False
        moved = node.model_copy(update={"position": snap_to_grid(position)})
        self._replace_node(moved, "move_node")
        return True

    def update_node(
        self,
        node_id: str,
        *,
        label: str | None = None,
        data: NodeData | Mapping[str, Any] | None = None,
    ) -> bool:
        """Change a node's label and/or payload.

        Raises:
            pydantic.ValidationError: If ``data`` does not fit the node type.
        """
        node = self._graph.get_node(node_id)
        if node is None:
            return False
        updated = WorkflowNode.model_validate(
            {
                "id": node.id,
                "type": node.type,
                "position": node.position,
                "label": node.label if label is None else label,
                "data": node.data if data is None else data,
            }
        )
        self._replace_node(updated, "update_node")
        return True

    def _replace_node(self, node: WorkflowNode, action: str) -> None:
        nodes = [node if n.id == node.id else n for n in self._graph.nodes]
        self._commit(self._graph.model_copy(update={"nodes": nodes}), action)

    def delete_node(self, node_id: str) -> bool:
        """Delete a node and every edge touching it."""
        if self._graph.get_node(node_id) is None:
            return False
        nodes = [n for n in self._graph.nodes if n.id != node_id]
        edges = [e for e in self._graph.edges if node_id not in (e.source, e.target)]
        self._commit(self._graph.model_copy(update={"nodes": nodes, "edges": edges}), "delete_node")
        if self.canvas.selected_node_id == node_id:
            self.canvas.select_node(None)
        return True

    # ------------------------------------------------------------------
    # Edge commands
    # ------------------------------------------------------------------

    def add_edge(
        self,
        source: str,
        target: str,
        source_handle: SourceHandle | str | None = None,
    ) -> WorkflowEdge | None:
        """Connect two nodes if the connection rules allow it.

        Returns:
            The new edge, or ``None`` if the connection was refused.
        """
        handle = SourceHandle(source_handle) if source_handle is not None else None
        if not can_connect(self._graph, source, target, handle):
            return None
        edge = create_edge(source, target, handle, id_factory=self.ids.edge_id)
        self._commit(
            self._graph.model_copy(update={"edges": [*self._graph.edges, edge]}),
            "add_edge",
        )
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        if self._graph.get_edge(edge_id) is None:
            return False
        edges = [e for e in self._graph.edges if e.id != edge_id]
        self._commit(self._graph.model_copy(update={"edges": edges}), "delete_edge")
        if self.canvas.selected_edge_id == edge_id:
            self.canvas.select_edge(None)
        return True

    # ------------------------------------------------------------------
    # Toolbar
    # ------------------------------------------------------------------

    def rename(self, name: str) -> None:
        if name != self.name:
            self.name = name
            self._revision += 1
            self.dirty = True

    def auto_layout(self) -> None:
        self._commit(auto_layout_graph(self._graph), "auto_layout")

    def zoom_in(self) -> None:
        vp = self.viewport
        self.set_viewport(Viewport(x=vp.x, y=vp.y, zoom=clamp_zoom(vp.zoom * TOOLBAR_ZOOM_STEP)))

    def zoom_out(self) -> None:
        vp = self.viewport
        self.set_viewport(Viewport(x=vp.x, y=vp.y, zoom=clamp_zoom(vp.zoom / TOOLBAR_ZOOM_STEP)))

    def reset_zoom(self) -> None:
        self.set_viewport(default_viewport())

    def fit_to_view(self, canvas_width: float, canvas_height: float) -> Viewport:
        viewport = compute_fit_to_view(self._graph.nodes, canvas_width, canvas_height)
        self.set_viewport(viewport)
        return viewport

    # ------------------------------------------------------------------
    # Validation and persistence
    # ------------------------------------------------------------------

    def validate(self) -> list[ValidationIssue]:
        self.errors = validate_workflow(self._graph)
        return self.errors

    def to_payload(self) -> RuleGraphPayload:
        """What ``save()`` sends to the persistence collaborator."""
        persisted = serialize_workflow_graph(self._graph)
        return RuleGraphPayload(
            name=self.name,
            trigger_type=derive_trigger_type(self._graph, self.trigger_type),
            conditions=persisted.conditions,
            actions=[ActionSummary.model_validate(a) for a in persisted.actions],
        )

    async def save(self) -> RuleGraphPayload:
        """Validate and persist the graph.

        Edits made while the save is in flight keep the session dirty.

        Returns:
            The payload that was persisted.

        Raises:
            SaveInProgressError: If a save is already in flight.
            WorkflowValidationFailedError: If the graph has validation
                errors; nothing is persisted.
            WorkflowSaveError: If persistence failed; the graph and the
                dirty flag are kept so the save can be retried.
        """
        if self.saving:
            raise SaveInProgressError()
        if self.validate():
            raise WorkflowValidationFailedError(self.errors)
        if self._persist is None:
            raise WorkflowSaveError("no persistence configured")

        payload = self.to_payload()
        revision = self._revision
        self.saving = True
        self.save_error = None
        with LogContext(rule_id=str(self.rule_id), operation="save"):
            try:
                await self._persist(self.rule_id, payload)
            except Exception as e:
                self.save_error = str(e) or type(e).__name__
                logger.warning(
                    "Workflow save failed",
                    extra={"context": {"error": self.save_error}},
                )
                raise WorkflowSaveError(self.save_error, original_error=e) from e
            finally:
                self.saving = False

            self.trigger_type = payload.trigger_type
            if self._revision == revision:
                self.dirty = False
            self.legacy = False
            logger.info(
                "Workflow saved",
                extra={
                    "context": {
                        "nodes": len(self._graph.nodes),
                        "edges": len(self._graph.edges),
                        "still_dirty": self.dirty,
                    }
                },
            )
        return payload

    def dismiss_save_error(self) -> None:
        self.save_error = None

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    @property
    def export_filename(self) -> str:
        return export_filename(self.name)

    def export_json(self) -> str:
        return export_graph_json(self._graph)

    def import_json(self, content: str | bytes) -> WorkflowGraph:
        """Replace the graph with an imported file.

        On any error the session is left exactly as it was.

        Raises:
            UnsupportedGraphVersionError: If the file has another version.
            GraphImportError: If the file is not a valid graph.
        """
        try:
            graph = import_graph_json(content)
        except GraphImportError as e:
            logger.warning(
                "Rejected workflow import",
                extra={"context": {"error_code": e.error_code, "reason": e.reason}},
            )
            raise
        self.canvas.pointer_cancel()
        self.canvas.clear_selection()
        self._commit(graph, "import")
        logger.info(
            "Workflow imported",
            extra={"context": {"nodes": len(graph.nodes), "edges": len(graph.edges)}},
        )
        return graph

    # ------------------------------------------------------------------
    # Navigation guard
    # ------------------------------------------------------------------

    def confirm_leave(self, confirm: Callable[[], bool]) -> bool:
        """Whether leaving may proceed; asks ``confirm`` only when dirty."""
        if not self.dirty:
            return True
        return confirm()

    def before_unload(self) -> bool:
        """Whether a page unload must be intercepted."""
        return self.dirty


__all__ = [
    "TOOLBAR_ZOOM_STEP",
    "BuilderSession",
    "PersistFn",
    "RuleRecord",
]
