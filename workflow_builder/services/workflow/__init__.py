"""Workflow graph editing engine.

This package holds everything that edits, checks and stores a workflow
graph, independent of any persistence backend or UI toolkit.

Components:
- Graph / GraphAlgorithms: adjacency structure, BFS reachability, layering,
  cycle detection
- factory: node and edge construction with per-type defaults
- layout: grid snapping, viewport math, fit-to-view and auto-layout
- validator: structural rules (trigger count, reachability, branches, cycles)
- serialization: export/import files, persisted record form, legacy upgrade
- interaction: pointer/wheel/keyboard state machine for the canvas
- session: one editing session (dirty flag, validation, save, import)
- fields / conditions: field catalog and condition preview evaluation

Example:
    >>> from workflow_builder.services.workflow import BuilderSession
    >>> session = BuilderSession(name="Auto approve", persist=persist)
    >>> session.canvas.drop_palette_item(300, 200, "trigger", "Return created")
    >>> session.errors
    []
"""

from workflow_builder.services.workflow.algorithms import GraphAlgorithms
from workflow_builder.services.workflow.conditions import (
    apply_operator,
    branch_for,
    evaluate_condition_node,
    evaluate_field_condition,
    passes_trigger_filters,
    resolve_field_value,
)
from workflow_builder.services.workflow.exceptions import (
    GraphImportError,
    SaveInProgressError,
    UnsupportedGraphVersionError,
    WorkflowBuilderError,
    WorkflowSaveError,
    WorkflowValidationFailedError,
)
from workflow_builder.services.workflow.factory import (
    IdGenerator,
    create_edge,
    create_node,
    generate_edge_id,
    generate_node_id,
)
from workflow_builder.services.workflow.fields import (
    FieldCatalog,
    FieldCatalogEntry,
    FieldMetadata,
    catalog_entries,
)
from workflow_builder.services.workflow.graph import Graph
from workflow_builder.services.workflow.interaction import (
    CanvasHost,
    InteractionController,
    InteractionMode,
    can_connect,
)
from workflow_builder.services.workflow.layout import (
    auto_layout_graph,
    compute_fit_to_view,
    default_viewport,
    snap_to_grid,
)
from workflow_builder.services.workflow.serialization import (
    build_legacy_graph,
    deserialize_workflow_graph,
    export_filename,
    export_graph,
    export_graph_json,
    import_graph_json,
    load_rule_graph,
    parse_graph_document,
    serialize_workflow_graph,
)
from workflow_builder.services.workflow.session import BuilderSession
from workflow_builder.services.workflow.validator import validate_workflow, validation_report

__all__ = [
    # Data structures
    "Graph",
    "GraphAlgorithms",
    # Construction
    "IdGenerator",
    "create_edge",
    "create_node",
    "generate_edge_id",
    "generate_node_id",
    # Layout
    "auto_layout_graph",
    "compute_fit_to_view",
    "default_viewport",
    "snap_to_grid",
    # Validation
    "validate_workflow",
    "validation_report",
    # Serialization
    "build_legacy_graph",
    "deserialize_workflow_graph",
    "export_filename",
    "export_graph",
    "export_graph_json",
    "import_graph_json",
    "load_rule_graph",
    "parse_graph_document",
    "serialize_workflow_graph",
    # Interaction and session
    "BuilderSession",
    "CanvasHost",
    "InteractionController",
    "InteractionMode",
    "can_connect",
    # Fields and conditions
    "FieldCatalog",
    "FieldCatalogEntry",
    "FieldMetadata",
    "apply_operator",
    "branch_for",
    "catalog_entries",
    "evaluate_condition_node",
    "evaluate_field_condition",
    "passes_trigger_filters",
    "resolve_field_value",
    # Exceptions
    "GraphImportError",
    "SaveInProgressError",
    "UnsupportedGraphVersionError",
    "WorkflowBuilderError",
    "WorkflowSaveError",
    "WorkflowValidationFailedError",
]
