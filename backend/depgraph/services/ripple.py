"""
Ripple analysis: what is likely affected when a field's value changes.

Dependencies point from dependent to dependency (a derived field
``derivesFrom`` its input, a view ``filtersBy`` a field), so a ripple walks
INCOMING edges away from the changed field.
"""
import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef, node_id
from depgraph.services.graph_engine import DependencyGraph
from depgraph.services.policy import is_edge_allowed
from depgraph.services.subgraph import Subgraph

logger = logging.getLogger(__name__)

DEFAULT_INCLUDED = (
    EdgeType.DERIVES_FROM,
    EdgeType.FILTERS_BY,
    EdgeType.SORTS_BY,
    EdgeType.USES,
)

DEFAULT_EXCLUDED = (
    EdgeType.DISPLAYS,
    EdgeType.CONTAINS,
    EdgeType.CONNECTS_TO,
)

RULE_DETAIL_KEYS = ("criterion", "value", "rule", "ruleCategory")


@dataclass
class FieldRippleResult(Subgraph):
    impacted_fields: List[NodeRef] = field(default_factory=list)
    impacted_views: List[NodeRef] = field(default_factory=list)
    impacted_objects: List[NodeRef] = field(default_factory=list)


@dataclass
class ObjectRippleResult(Subgraph):
    root: Optional[NodeRef] = None


def is_field_list_uses(edge: Edge) -> bool:
    """
    True for ``uses`` edges that come from a plain list of fields (columns,
    static field lists) rather than a rule. ``.rules.fields`` is a rule, and
    so is any edge carrying a rule payload in its details.
    """
    if edge.type != EdgeType.USES:
        return False
    if any(key in edge.details for key in RULE_DETAIL_KEYS):
        return False
    path = edge.location_path or ""
    if ".rules.fields" in path:
        return False
    return path.endswith(".fields") or ".columns" in path or ".fields[" in path


def build_field_ripple(
    graph: DependencyGraph,
    field_key: str,
    include_edge_types: Optional[Iterable[EdgeType]] = None,
    exclude_edge_types: Optional[Iterable[EdgeType]] = None,
    max_depth: Optional[int] = None,
) -> FieldRippleResult:
    include = tuple(DEFAULT_INCLUDED if include_edge_types is None else include_edge_types)
    exclude = tuple(DEFAULT_EXCLUDED if exclude_edge_types is None else exclude_edge_types)

    start = graph.get_node(node_id(EntityKind.FIELD, field_key))
    if start is None:
        return FieldRippleResult()

    logger.debug(f"Building ripple for {start.node_id} (include={include}, max_depth={max_depth})")

    nodes: Dict[str, NodeRef] = {start.node_id: start}
    edges: List[Edge] = []
    visited = {start.node_id}
    queue: deque = deque([(start, 0)])
    edge_type_stats: Counter = Counter()

    while queue:
        current, depth = queue.popleft()
        if max_depth is not None and depth >= max_depth:
            continue

        for edge in graph.get_incoming(current):
            if not is_edge_allowed(edge, include, exclude) or is_field_list_uses(edge):
                continue
            edges.append(edge)
            edge_type_stats[edge.type.value] += 1

            source = graph.resolve(edge.from_) or edge.from_
            nodes.setdefault(source.node_id, source)
            if source.node_id not in visited:
                visited.add(source.node_id)
                queue.append((source, depth + 1))

    logger.debug(
        f"Ripple for {start.node_id} complete: {len(nodes)} nodes, {len(edges)} edges, "
        f"edge types {dict(edge_type_stats)}"
    )

    node_list = list(nodes.values())
    return FieldRippleResult(
        nodes=node_list,
        edges=edges,
        impacted_fields=[n for n in node_list if n.kind == EntityKind.FIELD and n.key != field_key],
        impacted_views=[n for n in node_list if n.kind == EntityKind.VIEW],
        impacted_objects=[n for n in node_list if n.kind == EntityKind.OBJECT],
    )


def summarize_field_ripple(result: FieldRippleResult) -> Dict[str, int]:
    return {
        "total_impacted_nodes": len(result.nodes),
        "total_impacted_fields": len(result.impacted_fields),
        "total_impacted_views": len(result.impacted_views),
        "total_impacted_objects": len(result.impacted_objects),
        "edge_count": len(result.edges),
    }


def build_object_ripple(
    graph: DependencyGraph,
    object_key: str,
    include_edge_types: Optional[Iterable[EdgeType]] = None,
    exclude_edge_types: Optional[Iterable[EdgeType]] = None,
    max_depth: Optional[int] = None,
) -> ObjectRippleResult:
    """The object's own fields plus the ripple of each of them."""
    obj = graph.get_node(node_id(EntityKind.OBJECT, object_key))
    if obj is None:
        return ObjectRippleResult(root=NodeRef(kind=EntityKind.OBJECT, key=object_key))

    nodes: Dict[str, NodeRef] = {obj.node_id: obj}
    edges: List[Edge] = []

    field_keys = []
    for edge in graph.get_outgoing(obj):
        if edge.type != EdgeType.CONTAINS or edge.to.kind != EntityKind.FIELD:
            continue
        edges.append(edge)
        target = graph.resolve(edge.to) or edge.to
        nodes.setdefault(target.node_id, target)
        field_keys.append(edge.to.key)

    logger.debug(f"Object ripple for {obj.node_id}: {len(field_keys)} direct fields")

    for key in field_keys:
        if not key:
            continue
        ripple = build_field_ripple(graph, key, include_edge_types, exclude_edge_types, max_depth)
        for node in ripple.nodes:
            nodes.setdefault(node.node_id, node)
        edges.extend(ripple.edges)

    return ObjectRippleResult(nodes=list(nodes.values()), edges=edges, root=obj)
