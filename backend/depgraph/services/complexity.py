"""
Weighted complexity scores for fields and views, and object rollups.

A score is the sum of weighted feature values. Most features count edges
of a given shape around the node; the chain-depth features measure how far
derived fields stack on top of it.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef, node_id
from depgraph.services.graph_engine import DependencyGraph
from depgraph.services.policy import COMPLEXITY, get_default_exclusions, is_edge_allowed

logger = logging.getLogger(__name__)

EdgeFilter = Callable[[Edge], bool]
EdgeSelector = Callable[[DependencyGraph, NodeRef], List[Edge]]


@dataclass
class ComplexityFeature:
    id: str
    label: str
    weight: float
    applies_to: Sequence[EntityKind]
    compute: Callable[[DependencyGraph, NodeRef, EdgeFilter], float]
    # Only edge-count features have a selector; it backs the contribution view
    select: Optional[EdgeSelector] = None


@dataclass
class ComplexityBreakdownItem:
    feature_id: str
    label: str
    raw: float
    weight: float
    weighted: float


@dataclass
class ComplexityResult:
    node: NodeRef
    score: float = 0.0
    breakdown: List[ComplexityBreakdownItem] = field(default_factory=list)


@dataclass
class ObjectComplexityRollup:
    object: NodeRef
    total_score: float = 0.0
    field_results: List[ComplexityResult] = field(default_factory=list)


@dataclass
class FeatureEdgeContribution:
    feature_id: str
    label: str
    weight: float
    edges: List[Edge] = field(default_factory=list)


def owning_object_key(graph: DependencyGraph, node: NodeRef) -> Optional[str]:
    """Key of the object that contains a field, if any."""
    if node.kind != EntityKind.FIELD:
        return None
    for edge in graph.get_incoming(node):
        if edge.type == EdgeType.CONTAINS and edge.from_.kind == EntityKind.OBJECT:
            return edge.from_.key
    return None


def _incoming(edge_type: EdgeType, from_kind: Optional[EntityKind] = None, category: Optional[str] = None):
    def select(graph: DependencyGraph, node: NodeRef) -> List[Edge]:
        return [
            e
            for e in graph.get_incoming(node)
            if e.type == edge_type
            and (from_kind is None or e.from_.kind == from_kind)
            and (category is None or e.details.get("ruleCategory") == category)
        ]

    return select


def _outgoing(edge_type: EdgeType, to_kind: Optional[EntityKind] = None):
    def select(graph: DependencyGraph, node: NodeRef) -> List[Edge]:
        return [
            e
            for e in graph.get_outgoing(node)
            if e.type == edge_type and (to_kind is None or e.to.kind == to_kind)
        ]

    return select


def _incoming_cross_object_derivations(graph: DependencyGraph, node: NodeRef) -> List[Edge]:
    own = owning_object_key(graph, node)
    return [
        e
        for e in _incoming(EdgeType.DERIVES_FROM, EntityKind.FIELD)(graph, node)
        if owning_object_key(graph, e.from_) != own
    ]


def _outgoing_cross_object_derivations(graph: DependencyGraph, node: NodeRef) -> List[Edge]:
    own = owning_object_key(graph, node)
    return [
        e
        for e in _outgoing(EdgeType.DERIVES_FROM, EntityKind.FIELD)(graph, node)
        if owning_object_key(graph, e.to) != own
    ]


def _edge_count(
    feature_id: str,
    label: str,
    weight: float,
    applies_to: Sequence[EntityKind],
    select: EdgeSelector,
) -> ComplexityFeature:
    return ComplexityFeature(
        id=feature_id,
        label=label,
        weight=weight,
        applies_to=applies_to,
        compute=lambda graph, node, allowed: len([e for e in select(graph, node) if allowed(e)]),
        select=select,
    )


def _chain_depth(graph: DependencyGraph, node: NodeRef, allowed: EdgeFilter, cross_object_step: int = 1) -> int:
    """
    Deepest stack of fields deriving from ``node``, walked with an explicit
    stack. Steps that leave the node's own object count ``cross_object_step``.
    """
    own = owning_object_key(graph, node)
    visited = set()
    stack = [(node, 0)]
    deepest = 0

    while stack:
        current, depth = stack.pop()
        deepest = max(deepest, depth)
        for edge in graph.get_incoming(current):
            if edge.type != EdgeType.DERIVES_FROM or not allowed(edge):
                continue
            source = edge.from_
            if source.node_id in visited:
                continue
            visited.add(source.node_id)
            source_object = owning_object_key(graph, source)
            step = cross_object_step if source_object and own and source_object != own else 1
            stack.append((source, depth + step))

    return deepest


FIELD_ONLY = (EntityKind.FIELD,)

BUILTIN_FEATURES: List[ComplexityFeature] = [
    _edge_count(
        "field.incoming.derivesFrom", "Derived-by fields", 2, FIELD_ONLY,
        _incoming(EdgeType.DERIVES_FROM, EntityKind.FIELD),
    ),
    _edge_count(
        "field.incoming.crossObjectDerivesFrom", "Cross-object derived-by fields", 3, FIELD_ONLY,
        _incoming_cross_object_derivations,
    ),
    _edge_count(
        "field.incoming.viewFilters", "Views filtering by field", 1.5, FIELD_ONLY,
        _incoming(EdgeType.FILTERS_BY, EntityKind.VIEW),
    ),
    _edge_count(
        "field.incoming.viewSorts", "Views sorting by field", 0.25, FIELD_ONLY,
        _incoming(EdgeType.SORTS_BY, EntityKind.VIEW),
    ),
    _edge_count(
        "field.incoming.usedInRules", "Rules/values using field", 1, FIELD_ONLY,
        _incoming(EdgeType.USES),
    ),
    _edge_count(
        "field.incoming.usedInRecordRules", "Record rules using field", 2.5, FIELD_ONLY,
        _incoming(EdgeType.USES, category="record"),
    ),
    _edge_count(
        "field.incoming.usedInDisplayRules", "Display rules using field", 0.25, FIELD_ONLY,
        _incoming(EdgeType.USES, category="display"),
    ),
    _edge_count(
        "field.incoming.usedInEmailRules", "Email rules using field", 0.5, FIELD_ONLY,
        _incoming(EdgeType.USES, category="email"),
    ),
    ComplexityFeature(
        id="field.chainDepth",
        label="Derivation chain depth",
        weight=3,
        applies_to=FIELD_ONLY,
        compute=lambda graph, node, allowed: _chain_depth(graph, node, allowed),
    ),
    _edge_count(
        "field.outgoing.crossObjectDerivesFrom", "Cross-object dependencies", 2, FIELD_ONLY,
        _outgoing_cross_object_derivations,
    ),
    _edge_count(
        "field.outgoing.aggregatesConnections", "Aggregates over connections", 3, FIELD_ONLY,
        _outgoing(EdgeType.CONNECTS_TO, EntityKind.OBJECT),
    ),
    ComplexityFeature(
        id="field.weightedChainDepth",
        label="Weighted chain depth (cross-object heavier)",
        weight=3.5,
        applies_to=FIELD_ONLY,
        compute=lambda graph, node, allowed: _chain_depth(graph, node, allowed, cross_object_step=2),
    ),
    _edge_count(
        "view.filterCount", "Filter rules", 1, (EntityKind.VIEW,),
        _outgoing(EdgeType.FILTERS_BY),
    ),
]


def _edge_filter(
    include: Optional[Iterable[EdgeType]], exclude: Optional[Iterable[EdgeType]]
) -> EdgeFilter:
    defaults = get_default_exclusions(COMPLEXITY)
    include = list(include or ())
    exclude = list(exclude or ())
    return lambda edge: is_edge_allowed(edge, include, exclude, defaults)


def compute_complexity(
    graph: DependencyGraph,
    node: NodeRef,
    include_edge_types: Optional[Iterable[EdgeType]] = None,
    exclude_edge_types: Optional[Iterable[EdgeType]] = None,
    features: Optional[List[ComplexityFeature]] = None,
) -> ComplexityResult:
    """
    Score ``node`` with every feature that applies to its kind.
    Edges pass through the complexity policy before they are counted.
    """
    allowed = _edge_filter(include_edge_types, exclude_edge_types)
    result = ComplexityResult(node=graph.resolve(node) or node)

    for feature in features if features is not None else BUILTIN_FEATURES:
        if node.kind not in feature.applies_to:
            continue
        raw = feature.compute(graph, node, allowed)
        result.breakdown.append(
            ComplexityBreakdownItem(
                feature_id=feature.id,
                label=feature.label,
                raw=raw,
                weight=feature.weight,
                weighted=raw * feature.weight,
            )
        )

    result.score = sum(item.weighted for item in result.breakdown)
    return result


def compute_object_complexity_rollup(
    graph: DependencyGraph,
    object_key: str,
    include_edge_types: Optional[Iterable[EdgeType]] = None,
    exclude_edge_types: Optional[Iterable[EdgeType]] = None,
) -> ObjectComplexityRollup:
    """Sum of the scores of every field the object contains."""
    obj = graph.get_node(node_id(EntityKind.OBJECT, object_key))
    if obj is None:
        return ObjectComplexityRollup(object=NodeRef(kind=EntityKind.OBJECT, key=object_key))

    rollup = ObjectComplexityRollup(object=obj)
    for edge in graph.get_outgoing(obj):
        if edge.type != EdgeType.CONTAINS or edge.to.kind != EntityKind.FIELD:
            continue
        rollup.field_results.append(
            compute_complexity(graph, edge.to, include_edge_types, exclude_edge_types)
        )

    rollup.total_score = sum(r.score for r in rollup.field_results)
    logger.debug(f"Complexity rollup for {obj.node_id}: {len(rollup.field_results)} fields, {rollup.total_score}")
    return rollup


def get_feature_edge_contributions(graph: DependencyGraph, node: NodeRef) -> List[FeatureEdgeContribution]:
    """The edges behind each edge-count feature, after the complexity policy."""
    allowed = _edge_filter(None, None)
    contributions = []
    for feature in BUILTIN_FEATURES:
        if node.kind not in feature.applies_to or feature.select is None:
            continue
        contributions.append(
            FeatureEdgeContribution(
                feature_id=feature.id,
                label=feature.label,
                weight=feature.weight,
                edges=[e for e in feature.select(graph, node) if allowed(e)],
            )
        )
    return contributions


def rank_fields_by_complexity(graph: DependencyGraph, top_n: int = 10) -> List[ComplexityResult]:
    """Highest-scoring fields first; ties keep registration order."""
    results = [compute_complexity(graph, n) for n in graph.get_nodes_by_kind(EntityKind.FIELD)]
    return sorted(results, key=lambda r: r.score, reverse=True)[:max(top_n, 0)]
