"""
Aggregate statistics for a built graph.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from depgraph.models.domain import EntityKind
from depgraph.services.graph_engine import DependencyGraph


@dataclass
class FieldReferenceCount:
    field_key: str
    references: int
    name: Optional[str] = None


@dataclass
class GraphStats:
    node_count: int
    edge_count: int
    nodes_by_kind: Dict[str, int] = field(default_factory=dict)
    top_referenced_fields: List[FieldReferenceCount] = field(default_factory=list)


def compute_stats(graph: DependencyGraph, top_n: int = 10) -> GraphStats:
    """
    Node and edge totals, node counts per kind, and the ``top_n`` fields
    with the most incoming edges. Ties keep node registration order.
    """
    nodes = graph.get_all_nodes()

    nodes_by_kind: Dict[str, int] = {}
    for node in nodes:
        nodes_by_kind[node.kind.value] = nodes_by_kind.get(node.kind.value, 0) + 1

    counts = [
        FieldReferenceCount(field_key=node.key, references=len(graph.get_incoming(node)), name=node.name)
        for node in nodes
        if node.kind == EntityKind.FIELD
    ]
    # sorted() is stable, so equal counts stay in registration order
    ranked = sorted(counts, key=lambda c: c.references, reverse=True)

    return GraphStats(
        node_count=len(nodes),
        edge_count=graph.edge_count,
        nodes_by_kind=nodes_by_kind,
        top_referenced_fields=ranked[:max(top_n, 0)],
    )
