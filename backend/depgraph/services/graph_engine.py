"""
Core dependency graph for schema impact analysis.
Uses adjacency lists keyed by node identity for O(1) neighbor lookups.
"""
from collections import deque
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef

EdgeFilter = Callable[[Edge], bool]

OUT = "out"
IN = "in"


class DependencyGraph:
    """
    In-memory multigraph of schema entities.

    Key properties:
    1. Node registry keyed by ``kind:key``; first registration wins
    2. Outgoing and incoming edge lists stored separately for both traversal directions
    3. Parallel edges are all kept; dedupe is a presentation concern
    4. Traversals never mutate state, so a built graph is safe to share between readers
    """

    def __init__(self):
        self._nodes: Dict[str, NodeRef] = {}
        self._outgoing: Dict[str, List[Edge]] = {}
        self._incoming: Dict[str, List[Edge]] = {}
        self._edge_count = 0

        # Index for kind filtering
        self._by_kind: Dict[EntityKind, List[str]] = {}

    def add_node(self, node: NodeRef) -> None:
        """Register a node. A later node with the same identity is ignored."""
        nid = node.node_id
        if nid in self._nodes:
            return
        self._nodes[nid] = node
        self._by_kind.setdefault(node.kind, []).append(nid)

    def add_edge(self, edge: Edge) -> None:
        """Register both endpoints and index the edge in both directions."""
        self.add_node(edge.from_)
        self.add_node(edge.to)
        self._outgoing.setdefault(edge.from_.node_id, []).append(edge)
        self._incoming.setdefault(edge.to.node_id, []).append(edge)
        self._edge_count += 1

    def add_edges(self, edges: Iterable[Edge]) -> None:
        for edge in edges:
            self.add_edge(edge)

    def has_node(self, node: NodeRef) -> bool:
        return node.node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[NodeRef]:
        """Get a registered node by its ``kind:key`` identity."""
        return self._nodes.get(node_id)

    def resolve(self, node: NodeRef) -> Optional[NodeRef]:
        """Return the registered node carrying the canonical name, if any."""
        return self._nodes.get(node.node_id)

    def get_outgoing(self, node: NodeRef) -> List[Edge]:
        return self._outgoing.get(node.node_id, [])

    def get_incoming(self, node: NodeRef) -> List[Edge]:
        return self._incoming.get(node.node_id, [])

    def get_all_nodes(self) -> List[NodeRef]:
        return list(self._nodes.values())

    def get_all_edges(self) -> List[Edge]:
        """All edges, grouped by source node in registration order."""
        edges: List[Edge] = []
        for nid in self._nodes:
            edges.extend(self._outgoing.get(nid, []))
        return edges

    def get_nodes_by_kind(self, kind: EntityKind) -> List[NodeRef]:
        return [self._nodes[nid] for nid in self._by_kind.get(kind, [])]

    def get_kinds(self) -> List[str]:
        return sorted(kind.value for kind in self._by_kind)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def _neighbors(
        self, node_id: str, direction: str, edge_filter: Optional[EdgeFilter]
    ) -> List[NodeRef]:
        edges = self._outgoing if direction == OUT else self._incoming
        result = []
        for edge in edges.get(node_id, []):
            if edge_filter is not None and not edge_filter(edge):
                continue
            result.append(edge.to if direction == OUT else edge.from_)
        return result

    def bfs(
        self,
        start: NodeRef,
        direction: str = OUT,
        edge_filter: Optional[EdgeFilter] = None,
    ) -> List[NodeRef]:
        """
        Breadth-first traversal from ``start``.

        Returns nodes in visitation order beginning with ``start``; each
        identity appears once. Unknown start yields an empty list.

        Time complexity: O(V + E) for the subgraph visited
        """
        start_id = start.node_id
        if start_id not in self._nodes:
            return []

        visited: Set[str] = {start_id}
        queue: deque = deque([start_id])
        result: List[NodeRef] = []

        while queue:
            current_id = queue.popleft()
            result.append(self._nodes[current_id])
            for neighbor in self._neighbors(current_id, direction, edge_filter):
                neighbor_id = neighbor.node_id
                if neighbor_id not in visited:
                    visited.add(neighbor_id)
                    queue.append(neighbor_id)

        return result

    def dfs(
        self,
        start: NodeRef,
        direction: str = OUT,
        edge_filter: Optional[EdgeFilter] = None,
    ) -> List[NodeRef]:
        """
        Depth-first (pre-order) traversal from ``start`` using an explicit stack.
        Same visited-once guarantee as :meth:`bfs`.
        """
        start_id = start.node_id
        if start_id not in self._nodes:
            return []

        visited: Set[str] = set()
        stack: List[str] = [start_id]
        result: List[NodeRef] = []

        while stack:
            current_id = stack.pop()
            if current_id in visited:
                continue
            visited.add(current_id)
            result.append(self._nodes[current_id])
            neighbors = self._neighbors(current_id, direction, edge_filter)
            # reversed so the first neighbor is explored first
            for neighbor in reversed(neighbors):
                if neighbor.node_id not in visited:
                    stack.append(neighbor.node_id)

        return result

    def topological_sort(
        self, edge_types: Sequence[EdgeType] = (EdgeType.DERIVES_FROM,)
    ) -> List[NodeRef]:
        """
        Kahn's algorithm over the subgraph induced by ``edge_types``.

        Dependencies come first: for every matching edge, ``edge.to`` is
        placed before ``edge.from_``. Nodes touched by no matching edge have
        no dependencies and appear too. Nodes on a cycle are left out; use
        :meth:`strongly_connected_components` to find them.
        Ties resolve in node registration order.
        """
        types = set(edge_types)
        pending: Dict[str, int] = {}
        for nid in self._nodes:
            pending[nid] = sum(1 for e in self._outgoing.get(nid, []) if e.type in types)

        queue: deque = deque(nid for nid, count in pending.items() if count == 0)
        order: List[NodeRef] = []

        while queue:
            nid = queue.popleft()
            order.append(self._nodes[nid])
            for edge in self._incoming.get(nid, []):
                if edge.type not in types:
                    continue
                dependent = edge.from_.node_id
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    queue.append(dependent)

        return order

    def strongly_connected_components(
        self, edge_types: Sequence[EdgeType] = (EdgeType.DERIVES_FROM,)
    ) -> List[List[NodeRef]]:
        """
        Tarjan's algorithm over the subgraph induced by ``edge_types``,
        driven by an explicit work stack.

        Returns one list per component, singletons included.
        """
        types = set(edge_types)

        def successors(nid: str) -> List[str]:
            return [e.to.node_id for e in self._outgoing.get(nid, []) if e.type in types]

        counter = 0
        indices: Dict[str, int] = {}
        lowlink: Dict[str, int] = {}
        stack: List[str] = []
        on_stack: Set[str] = set()
        components: List[List[NodeRef]] = []

        for root in self._nodes:
            if root in indices:
                continue

            indices[root] = lowlink[root] = counter
            counter += 1
            stack.append(root)
            on_stack.add(root)
            work: List[Tuple[str, Iterable[str]]] = [(root, iter(successors(root)))]

            while work:
                current, children = work[-1]
                descended = False
                for child in children:
                    if child not in indices:
                        indices[child] = lowlink[child] = counter
                        counter += 1
                        stack.append(child)
                        on_stack.add(child)
                        work.append((child, iter(successors(child))))
                        descended = True
                        break
                    if child in on_stack:
                        lowlink[current] = min(lowlink[current], indices[child])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[current])

                if lowlink[current] == indices[current]:
                    component: List[NodeRef] = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(self._nodes[member])
                        if member == current:
                            break
                    components.append(component)

        return components

    def find_cycles(
        self, edge_types: Sequence[EdgeType] = (EdgeType.DERIVES_FROM,)
    ) -> List[List[NodeRef]]:
        """
        Components that form a cycle: more than one member, or a single
        member with a matching self-loop.
        """
        types = set(edge_types)
        cycles = []
        for component in self.strongly_connected_components(edge_types):
            if len(component) > 1:
                cycles.append(component)
                continue
            node = component[0]
            if any(e.type in types and e.to == node for e in self.get_outgoing(node)):
                cycles.append(component)
        return cycles

    def search(
        self,
        query: str,
        limit: int = 50,
        kind_filter: Optional[EntityKind] = None,
    ) -> List[NodeRef]:
        """
        Search nodes by key or name.
        Uses case-insensitive substring matching.
        """
        query_lower = query.lower()
        candidates = self._by_kind.get(kind_filter, []) if kind_filter else list(self._nodes)

        results = []
        for nid in candidates:
            node = self._nodes[nid]
            if query_lower in (node.key or "").lower() or query_lower in (node.name or "").lower():
                results.append(node)
                if len(results) >= limit:
                    break
        return results

    def get_nodes_paginated(
        self,
        page: int = 1,
        page_size: int = 50,
        kind_filter: Optional[EntityKind] = None,
    ) -> Tuple[List[NodeRef], int]:
        """Get paginated list of nodes with an optional kind filter."""
        if kind_filter:
            candidates = list(self._by_kind.get(kind_filter, []))
        else:
            candidates = list(self._nodes.keys())

        # Sort for consistent pagination
        candidates.sort()

        total = len(candidates)
        start = (page - 1) * page_size
        end = start + page_size

        return [self._nodes[nid] for nid in candidates[start:end]], total
