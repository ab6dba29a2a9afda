"""
Render-ready slices of a DependencyGraph.
"""
from dataclasses import dataclass, field
from typing import Dict, List

from depgraph.models.domain import Edge, EntityKind, NodeRef
from depgraph.services.graph_engine import IN, OUT, DependencyGraph

BOTH = "both"


@dataclass
class Subgraph:
    nodes: List[NodeRef] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)


class _SliceCollector:
    """Accumulates nodes by identity and edges by instance, in first-seen order."""

    def __init__(self):
        self.nodes: Dict[str, NodeRef] = {}
        self.edges: List[Edge] = []
        self._edge_ids = set()

    def add_node(self, node: NodeRef) -> None:
        self.nodes.setdefault(node.node_id, node)

    def add_edge(self, edge: Edge) -> None:
        if id(edge) in self._edge_ids:
            return
        self._edge_ids.add(id(edge))
        self.edges.append(edge)

    def result(self) -> Subgraph:
        return Subgraph(nodes=list(self.nodes.values()), edges=self.edges)


def build_subgraph(
    graph: DependencyGraph,
    roots: List[NodeRef],
    direction: str = BOTH,
) -> Subgraph:
    """
    Union of BFS traversals from every root in the requested direction(s)
    ("out", "in" or "both"), plus every edge leaving a visited node in the
    direction it was traversed. Unknown roots contribute nothing.
    """
    collector = _SliceCollector()
    directions = [OUT, IN] if direction == BOTH else [direction]

    for walk in directions:
        for root in roots:
            visited = graph.bfs(root, walk)
            for node in visited:
                collector.add_node(node)
            for node in visited:
                edges = graph.get_outgoing(node) if walk == OUT else graph.get_incoming(node)
                for edge in edges:
                    collector.add_edge(edge)

    return collector.result()


def build_usage_subgraph(graph: DependencyGraph, field_key: str) -> Subgraph:
    """The field plus its one-hop consumers that are fields or views."""
    field_ref = graph.get_node(NodeRef(kind=EntityKind.FIELD, key=field_key).node_id)
    if field_ref is None:
        return Subgraph()

    collector = _SliceCollector()
    collector.add_node(field_ref)
    for edge in graph.get_incoming(field_ref):
        if edge.from_.kind in (EntityKind.FIELD, EntityKind.VIEW):
            collector.add_edge(edge)
            collector.add_node(graph.resolve(edge.from_) or edge.from_)
    return collector.result()


def build_neighborhood_subgraph(
    graph: DependencyGraph,
    root: NodeRef,
    direction: str = IN,
    peer_depth: int = 1,
) -> Subgraph:
    """Depth-bounded BFS slice around ``root``."""
    found = graph.resolve(root)
    if found is None:
        return Subgraph()

    collector = _SliceCollector()
    collector.add_node(found)
    visited = {found.node_id}
    frontier = [found]

    for _ in range(max(peer_depth, 0)):
        next_frontier = []
        for node in frontier:
            hops = []
            if direction in (IN, BOTH):
                hops.extend((edge, edge.from_) for edge in graph.get_incoming(node))
            if direction in (OUT, BOTH):
                hops.extend((edge, edge.to) for edge in graph.get_outgoing(node))
            for edge, neighbor in hops:
                collector.add_edge(edge)
                collector.add_node(graph.resolve(neighbor) or neighbor)
                if neighbor.node_id not in visited:
                    visited.add(neighbor.node_id)
                    next_frontier.append(neighbor)
        frontier = next_frontier

    return collector.result()
