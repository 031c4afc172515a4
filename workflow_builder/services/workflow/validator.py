"""Structural validation for workflow graphs.

``validate_workflow`` is run after every edit, so it is a pure function
over the document, linear in nodes plus edges, and it never raises: every
problem becomes a ``ValidationIssue``. An empty result means the graph may
be saved.

Checks run in a fixed order and all of them run:

1. trigger cardinality
2. reachability from the trigger (only when there is exactly one)
3. condition branch completeness
4. cycles (at most one issue per run)
"""

from __future__ import annotations

from workflow_builder.core.logging import get_logger
from workflow_builder.models.enums import NodeType, SourceHandle
from workflow_builder.schemas.validation import (
    ValidationErrorCode,
    ValidationIssue,
    ValidationReport,
)
from workflow_builder.schemas.workflow_graph import WorkflowGraph, WorkflowNode
from workflow_builder.services.workflow.algorithms import GraphAlgorithms
from workflow_builder.services.workflow.graph import Graph

logger = get_logger(__name__)


def _check_trigger_count(triggers: list[WorkflowNode]) -> list[ValidationIssue]:
    if not triggers:
        return [
            ValidationIssue(
                message="Workflow must have a trigger node",
                code=ValidationErrorCode.NO_TRIGGER_NODE,
            )
        ]
    if len(triggers) > 1:
        return [
            ValidationIssue(
                message="Workflow can only have one trigger node",
                code=ValidationErrorCode.MULTIPLE_TRIGGER_NODES,
            )
        ]
    return []


def _check_reachability(
    workflow: WorkflowGraph,
    graph: Graph[str],
    trigger: WorkflowNode,
) -> list[ValidationIssue]:
    reachable = GraphAlgorithms.find_reachable_from(graph, [trigger.id])
    return [
        ValidationIssue(
            node_id=node.id,
            message=f'Node "{node.label}" is not connected to the workflow',
            code=ValidationErrorCode.UNREACHABLE_NODE,
        )
        for node in workflow.nodes
        if node.id not in reachable
    ]


def _check_condition_branches(workflow: WorkflowGraph) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for node in workflow.nodes_of_type(NodeType.CONDITION):
        handles = {edge.source_handle for edge in workflow.outgoing_edges(node.id)}
        if SourceHandle.TRUE not in handles or SourceHandle.FALSE not in handles:
            issues.append(
                ValidationIssue(
                    node_id=node.id,
                    message=f'Condition "{node.label}" needs both True and False branches',
                    code=ValidationErrorCode.INCOMPLETE_CONDITION,
                )
            )
    return issues


def _check_cycles(graph: Graph[str]) -> list[ValidationIssue]:
    cycle = GraphAlgorithms.detect_cycle(graph)
    if cycle is None:
        return []
    logger.debug("Cycle detected", extra={"context": {"cycle": cycle}})
    return [
        ValidationIssue(
            message="Workflow contains a cycle",
            code=ValidationErrorCode.CYCLE_DETECTED,
        )
    ]


def validate_workflow(workflow: WorkflowGraph) -> list[ValidationIssue]:
    """Validate the structure of a workflow graph.

    Edges that reference missing nodes are ignored by the reachability
    and cycle checks.

    Args:
        workflow: The graph to check.

    Returns:
        Issues in check order; empty when the graph is valid.

    Example:
        >>> validate_workflow(WorkflowGraph())[0].message
        'Workflow must have a trigger node'
    """
    graph = Graph.from_workflow(workflow)
    triggers = workflow.nodes_of_type(NodeType.TRIGGER)

    issues = _check_trigger_count(triggers)
    if len(triggers) == 1:
        issues.extend(_check_reachability(workflow, graph, triggers[0]))
    issues.extend(_check_condition_branches(workflow))
    issues.extend(_check_cycles(graph))
    return issues


def validation_report(workflow: WorkflowGraph) -> ValidationReport:
    """``validate_workflow`` wrapped in a report for API responses."""
    return ValidationReport.from_issues(validate_workflow(workflow))


__all__ = [
    "validate_workflow",
    "validation_report",
]
