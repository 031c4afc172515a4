"""Directed graph data structure for workflow analysis.

This module provides an adjacency-list view of a workflow graph used by
the validator and the auto-layout. The view is rebuilt from the document
whenever it is needed; it is never the source of truth.

Time Complexity:
- Node/Edge addition: O(1)
- Building from a workflow: O(V + E)

Space Complexity: O(V + E)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterator
from typing import TYPE_CHECKING, Generic, TypeVar

from workflow_builder.core.logging import get_logger

if TYPE_CHECKING:
    from workflow_builder.schemas.workflow_graph import WorkflowGraph

NodeId = TypeVar("NodeId", bound=Hashable)

logger = get_logger(__name__)


class Graph(Generic[NodeId]):
    """Directed graph with forward adjacency.

    Nodes keep their insertion order, so every traversal over the graph is
    deterministic for a given document.

    Type Parameters:
        NodeId: Hashable type used as node identifier (node id strings).

    Example:
        >>> graph = Graph[str]()
        >>> graph.add_edge("a", "b")
        >>> graph.get_successors("a")
        ['b']
    """

    __slots__ = ("_adjacency", "_edge_count", "_nodes")

    def __init__(self) -> None:
        """Initialize an empty directed graph."""
        self._adjacency: defaultdict[NodeId, list[NodeId]] = defaultdict(list)
        # dict as an ordered set
        self._nodes: dict[NodeId, None] = {}
        self._edge_count: int = 0

    @classmethod
    def from_workflow(cls, workflow: WorkflowGraph) -> Graph[str]:
        """Build the adjacency view of a workflow document.

        Edges whose source or target is not a node of the document are
        skipped, so a dangling reference behaves as a missing edge.

        Args:
            workflow: The graph document.

        Returns:
            A graph keyed by node id, nodes in document order.
        """
        graph: Graph[str] = Graph()
        for node in workflow.nodes:
            graph.add_node(node.id)
        for edge in workflow.edges:
            if edge.source not in graph or edge.target not in graph:
                logger.debug(
                    "Ignoring dangling edge",
                    extra={
                        "context": {
                            "edge_id": edge.id,
                            "source": edge.source,
                            "target": edge.target,
                        }
                    },
                )
                continue
            graph.add_edge(edge.source, edge.target)
        return graph

    @property
    def nodes(self) -> list[NodeId]:
        """Get all nodes in insertion order."""
        return list(self._nodes)

    @property
    def node_count(self) -> int:
        """Get the number of nodes in the graph."""
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Get the number of edges in the graph."""
        return self._edge_count

    def add_node(self, node_id: NodeId) -> None:
        """Add a node to the graph.

        If the node already exists, this is a no-op.

        Args:
            node_id: The identifier for the node to add.
        """
        self._nodes.setdefault(node_id, None)

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        """Add a directed edge from source to target.

        Both nodes are added to the graph if they don't exist. Parallel
        edges (both branches of a condition into one node) are kept.

        Args:
            source: The source node ID.
            target: The target node ID.
        """
        self.add_node(source)
        self.add_node(target)
        self._adjacency[source].append(target)
        self._edge_count += 1

    def get_successors(self, node_id: NodeId) -> list[NodeId]:
        """Get all successor nodes (outgoing neighbors).

        Args:
            node_id: The node ID.

        Returns:
            List of successor node IDs. Empty list for unknown nodes.
        """
        return self._adjacency.get(node_id, [])

    def __contains__(self, node_id: object) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes

    def __iter__(self) -> Iterator[NodeId]:
        """Iterate over nodes in insertion order."""
        return iter(self._nodes)

    def __len__(self) -> int:
        """Get the number of nodes in the graph."""
        return len(self._nodes)

    def __repr__(self) -> str:
        """Return string representation of the graph."""
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"


__all__ = ["Graph"]
