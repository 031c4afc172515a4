"""Graph algorithms for workflow validation and layout.

This module provides the traversals the editor runs after every mutation:
- Reachability analysis using BFS
- Cycle detection using three-colour DFS
- Breadth-first layering for auto-layout

Time Complexity: O(V + E) for all algorithms.
Space Complexity: O(V) for all algorithms.

All traversals are iterative so that long chains cannot exhaust the
interpreter's recursion limit, and all of them treat an unknown node as a
node without successors.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable, Iterable
from enum import IntEnum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from workflow_builder.services.workflow.graph import Graph

NodeId = TypeVar("NodeId", bound=Hashable)


class _Colour(IntEnum):
    WHITE = 0  # unvisited
    GRAY = 1  # on the current DFS path
    BLACK = 2  # fully explored


class GraphAlgorithms(Generic[NodeId]):
    """Collection of graph algorithms for workflow graphs.

    Example:
        >>> graph = Graph[str]()
        >>> graph.add_edge("a", "b")
        >>> graph.add_edge("b", "a")
        >>> GraphAlgorithms.detect_cycle(graph)
        ['a', 'b', 'a']
    """

    @staticmethod
    def find_reachable_from(
        graph: Graph[NodeId],
        start_nodes: Iterable[NodeId],
    ) -> set[NodeId]:
        """Find every node reachable from any start node using BFS.

        Start nodes are part of the result.

        Args:
            graph: The graph to analyze.
            start_nodes: Roots of the traversal (typically the trigger).

        Returns:
            Set of reachable node IDs.

        Example:
            >>> graph = Graph[str]()
            >>> graph.add_edge("a", "b")
            >>> graph.add_edge("c", "d")
            >>> GraphAlgorithms.find_reachable_from(graph, ["a"])
            {'a', 'b'}
        """
        reachable: set[NodeId] = set()
        queue: deque[NodeId] = deque(start_nodes)

        while queue:
            current = queue.popleft()
            if current in reachable:
                continue
            reachable.add(current)
            for successor in graph.get_successors(current):
                if successor not in reachable:
                    queue.append(successor)

        return reachable

    @staticmethod
    def detect_cycle(graph: Graph[NodeId]) -> list[NodeId] | None:
        """Detect a cycle using three-colour depth-first traversal.

        Scanning stops at the first back edge (an edge into a GRAY node),
        so at most one cycle is reported however many the graph contains.

        Args:
            graph: The graph to check for cycles.

        Returns:
            List of node IDs forming the cycle (first node repeated at the
            end) if found, None otherwise.

        Example:
            >>> graph = Graph[str]()
            >>> graph.add_edge("a", "b")
            >>> graph.add_edge("b", "c")
            >>> graph.add_edge("c", "a")
            >>> GraphAlgorithms.detect_cycle(graph)
            ['a', 'b', 'c', 'a']
        """
        colour: dict[NodeId, _Colour] = {node: _Colour.WHITE for node in graph}

        for root in graph:
            if colour[root] is not _Colour.WHITE:
                continue

            # Each frame is (node, index of the next successor to visit)
            path: list[NodeId] = [root]
            stack: list[tuple[NodeId, int]] = [(root, 0)]
            colour[root] = _Colour.GRAY

            while stack:
                node, index = stack[-1]
                successors = graph.get_successors(node)
                if index >= len(successors):
                    stack.pop()
                    path.pop()
                    colour[node] = _Colour.BLACK
                    continue

                stack[-1] = (node, index + 1)
                neighbor = successors[index]
                state = colour.get(neighbor, _Colour.BLACK)
                if state is _Colour.GRAY:
                    cycle_start = path.index(neighbor)
                    return [*path[cycle_start:], neighbor]
                if state is _Colour.WHITE:
                    colour[neighbor] = _Colour.GRAY
                    path.append(neighbor)
                    stack.append((neighbor, 0))

        return None

    @staticmethod
    def bfs_layers(graph: Graph[NodeId], root: NodeId) -> dict[NodeId, int]:
        """Assign each node reachable from ``root`` its BFS layer.

        The first visit wins, so a node's layer is its shortest hop
        distance from the root.

        Args:
            graph: The graph to layer.
            root: Node placed on layer 0.

        Returns:
            Mapping of node ID to layer, in visit order.

        Example:
            >>> graph = Graph[str]()
            >>> graph.add_edge("a", "b")
            >>> graph.add_edge("a", "c")
            >>> graph.add_edge("b", "c")
            >>> GraphAlgorithms.bfs_layers(graph, "a")
            {'a': 0, 'b': 1, 'c': 1}
        """
        layers: dict[NodeId, int] = {root: 0}
        queue: deque[NodeId] = deque([root])

        while queue:
            current = queue.popleft()
            for successor in graph.get_successors(current):
                if successor not in layers:
                    layers[successor] = layers[current] + 1
                    queue.append(successor)

        return layers


__all__ = ["GraphAlgorithms"]
