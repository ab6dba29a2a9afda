"""
Impact-analysis queries over a built DependencyGraph.

Unknown nodes give empty answers, never errors.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from depgraph.models.domain import Edge, EntityKind, NodeRef, node_id
from depgraph.services.graph_engine import IN, OUT, DependencyGraph


def where_used(graph: DependencyGraph, node: NodeRef) -> List[Edge]:
    """Direct consumers of ``node``: its incoming edges, one hop."""
    return list(graph.get_incoming(node))


def impact(graph: DependencyGraph, node: NodeRef) -> List[NodeRef]:
    """Everything forward-reachable from ``node``."""
    return graph.bfs(node, OUT)


def depends_on(graph: DependencyGraph, node: NodeRef) -> List[NodeRef]:
    """Everything backward-reachable from ``node``."""
    return graph.bfs(node, IN)


def paths_to(
    graph: DependencyGraph,
    from_node: NodeRef,
    to_node: NodeRef,
    max_depth: int = 6,
) -> List[List[NodeRef]]:
    """
    One shortest path along outgoing edges, or ``[]`` if ``to_node`` is not
    reachable within ``max_depth`` hops. Wrapped in a list so callers can
    treat "no path" and "a path" uniformly.
    """
    start_id = from_node.node_id
    target_id = to_node.node_id
    if graph.get_node(start_id) is None or graph.get_node(target_id) is None:
        return []
    if start_id == target_id:
        return [[graph.get_node(start_id)]]

    parent: Dict[str, Optional[str]] = {start_id: None}
    queue: deque = deque([(graph.get_node(start_id), 0)])
    found = False

    while queue and not found:
        current, depth = queue.popleft()
        if depth >= max_depth:
            continue
        for edge in graph.get_outgoing(current):
            next_id = edge.to.node_id
            if next_id in parent:
                continue
            parent[next_id] = current.node_id
            if next_id == target_id:
                found = True
                break
            queue.append((edge.to, depth + 1))

    if not found:
        return []

    path: List[NodeRef] = []
    cursor: Optional[str] = target_id
    while cursor is not None:
        path.append(graph.get_node(cursor))
        cursor = parent[cursor]
    path.reverse()
    return [path]


@dataclass
class UsageGroup:
    node: NodeRef
    edges: List[Edge] = field(default_factory=list)


@dataclass
class FieldUsage:
    by_fields: List[UsageGroup] = field(default_factory=list)
    by_views: List[UsageGroup] = field(default_factory=list)


def analyze_field_usage(graph: DependencyGraph, field_key: str) -> FieldUsage:
    """
    Incoming edges of a field grouped by the consuming field or view,
    busiest consumer first.
    """
    field_ref = graph.get_node(node_id(EntityKind.FIELD, field_key))
    if field_ref is None:
        return FieldUsage()

    by_fields: Dict[str, UsageGroup] = {}
    by_views: Dict[str, UsageGroup] = {}
    for edge in graph.get_incoming(field_ref):
        if edge.from_.kind == EntityKind.FIELD:
            groups = by_fields
        elif edge.from_.kind == EntityKind.VIEW:
            groups = by_views
        else:
            continue
        consumer = graph.resolve(edge.from_) or edge.from_
        groups.setdefault(consumer.node_id, UsageGroup(node=consumer)).edges.append(edge)

    return FieldUsage(
        by_fields=sorted(by_fields.values(), key=lambda g: len(g.edges), reverse=True),
        by_views=sorted(by_views.values(), key=lambda g: len(g.edges), reverse=True),
    )
