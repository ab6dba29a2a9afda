"""
API endpoints for dependency traversal and impact analysis.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from depgraph.config import settings
from depgraph.models.api import (
    ComplexityBreakdownItem,
    ComplexityResponse,
    EdgeListResponse,
    FieldUsageResponse,
    NodeListResponse,
    ObjectComplexityResponse,
    PathResponse,
    RippleResponse,
    SubgraphResponse,
    UsageGroupResponse,
)
from depgraph.models.domain import EntityKind, NodeRef
from depgraph.services.complexity import ComplexityResult, compute_complexity, compute_object_complexity_rollup
from depgraph.services.graph_engine import DependencyGraph
from depgraph.services.query import analyze_field_usage, depends_on, impact, paths_to, where_used
from depgraph.services.ripple import build_field_ripple, build_object_ripple, summarize_field_ripple
from depgraph.services.schema_loader import get_dependency_graph
from depgraph.services.subgraph import build_subgraph

router = APIRouter(tags=["graph"])


@router.get("/graph/paths", response_model=PathResponse)
async def get_paths(
    from_kind: EntityKind,
    from_key: str,
    to_kind: EntityKind,
    to_key: str,
    max_depth: int = Query(default=settings.PATHS_MAX_DEPTH, ge=1, le=20),
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Shortest dependency path between two nodes, if one exists within max_depth hops.
    """
    paths = paths_to(
        graph,
        NodeRef(kind=from_kind, key=from_key),
        NodeRef(kind=to_kind, key=to_key),
        max_depth=max_depth,
    )
    return PathResponse(paths=paths)


@router.get("/graph/{kind}/{key}/where-used", response_model=EdgeListResponse)
async def get_where_used(
    kind: EntityKind,
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Direct consumers of a node (incoming edges, one hop).
    """
    node = NodeRef(kind=kind, key=key)
    return EdgeListResponse(root=graph.resolve(node) or node, edges=where_used(graph, node))


@router.get("/graph/{kind}/{key}/impact", response_model=NodeListResponse)
async def get_impact(
    kind: EntityKind,
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Everything reachable along outgoing edges.
    """
    node = NodeRef(kind=kind, key=key)
    return NodeListResponse(root=graph.resolve(node), nodes=impact(graph, node))


@router.get("/graph/{kind}/{key}/depends-on", response_model=NodeListResponse)
async def get_depends_on(
    kind: EntityKind,
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Everything reachable along incoming edges.
    """
    node = NodeRef(kind=kind, key=key)
    return NodeListResponse(root=graph.resolve(node), nodes=depends_on(graph, node))


@router.get("/graph/{kind}/{key}/subgraph", response_model=SubgraphResponse)
async def get_subgraph(
    kind: EntityKind,
    key: str,
    direction: str = Query(default="both", pattern="^(out|in|both)$"),
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Render-ready slice around a node.
    """
    sub = build_subgraph(graph, [NodeRef(kind=kind, key=key)], direction)
    return SubgraphResponse(nodes=sub.nodes, edges=sub.edges)


@router.get("/fields/{key}/usage", response_model=FieldUsageResponse)
async def get_field_usage(
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Consumers of a field, grouped by consuming field and view.
    """
    usage = analyze_field_usage(graph, key)
    return FieldUsageResponse(
        by_fields=[UsageGroupResponse(node=g.node, edges=g.edges) for g in usage.by_fields],
        by_views=[UsageGroupResponse(node=g.node, edges=g.edges) for g in usage.by_views],
    )


@router.get("/fields/{key}/ripple", response_model=RippleResponse)
async def get_field_ripple(
    key: str,
    max_depth: Optional[int] = Query(default=None, ge=1, le=100),
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Entities likely affected when a field's value changes.
    """
    ripple = build_field_ripple(graph, key, max_depth=max_depth)
    if not ripple.nodes:
        raise HTTPException(status_code=404, detail=f"Field not found: {key}")

    return RippleResponse(
        root=ripple.nodes[0],
        nodes=ripple.nodes,
        edges=ripple.edges,
        summary=summarize_field_ripple(ripple),
    )


@router.get("/objects/{key}/ripple", response_model=RippleResponse)
async def get_object_ripple(
    key: str,
    max_depth: Optional[int] = Query(default=None, ge=1, le=100),
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    An object's fields plus the ripple of each of them.
    """
    ripple = build_object_ripple(graph, key, max_depth=max_depth)
    if not ripple.nodes:
        raise HTTPException(status_code=404, detail=f"Object not found: {key}")

    return RippleResponse(
        root=ripple.root,
        nodes=ripple.nodes,
        edges=ripple.edges,
        summary={"total_nodes": len(ripple.nodes), "edge_count": len(ripple.edges)},
    )


def _complexity_response(result: ComplexityResult) -> ComplexityResponse:
    return ComplexityResponse(
        node=result.node,
        score=result.score,
        breakdown=[
            ComplexityBreakdownItem(
                feature_id=b.feature_id, label=b.label, raw=b.raw, weight=b.weight, weighted=b.weighted
            )
            for b in result.breakdown
        ],
    )


@router.get("/fields/{key}/complexity", response_model=ComplexityResponse)
async def get_field_complexity(
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Weighted complexity score of a field with its breakdown.
    """
    node = NodeRef(kind=EntityKind.FIELD, key=key)
    if not graph.has_node(node):
        raise HTTPException(status_code=404, detail=f"Field not found: {key}")
    return _complexity_response(compute_complexity(graph, node))


@router.get("/objects/{key}/complexity", response_model=ObjectComplexityResponse)
async def get_object_complexity(
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Object complexity as the sum of its fields' scores.
    """
    if not graph.has_node(NodeRef(kind=EntityKind.OBJECT, key=key)):
        raise HTTPException(status_code=404, detail=f"Object not found: {key}")

    rollup = compute_object_complexity_rollup(graph, key)
    return ObjectComplexityResponse(
        object=rollup.object,
        total_score=rollup.total_score,
        fields=[_complexity_response(r) for r in rollup.field_results],
    )
