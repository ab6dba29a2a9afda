"""
API endpoints for search, statistics and schema-wide checks.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from depgraph.config import settings
from depgraph.models.api import CyclesResponse, FieldReference, RuleResponse, StatisticsResponse
from depgraph.models.domain import EdgeType, EntityKind, NodeRef
from depgraph.services.graph_engine import DependencyGraph
from depgraph.services.rules import build_rule_index, filter_rules, sort_rules
from depgraph.services.schema_loader import SchemaSnapshot, get_dependency_graph, get_schema_snapshot
from depgraph.services.stats import compute_stats

router = APIRouter(tags=["search"])


@router.get("/search", response_model=List[NodeRef])
async def search_nodes(
    q: str = Query(..., min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
    kind: Optional[EntityKind] = Query(default=None),
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Search for schema entities by key or name.
    """
    return graph.search(query=q, limit=limit, kind_filter=kind)


@router.get("/kinds", response_model=List[str])
async def get_kinds(
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Get list of entity kinds present in the graph.
    """
    return graph.get_kinds()


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(
    top_n: int = Query(default=settings.STATS_TOP_N, ge=0, le=100),
    snapshot: SchemaSnapshot = Depends(get_schema_snapshot),
):
    """
    Get graph statistics and the most referenced fields.
    """
    stats = compute_stats(snapshot.graph, top_n)

    return StatisticsResponse(
        node_count=stats.node_count,
        edge_count=stats.edge_count,
        nodes_by_kind=stats.nodes_by_kind,
        top_referenced_fields=[
            FieldReference(field_key=f.field_key, name=f.name, references=f.references)
            for f in stats.top_referenced_fields
        ],
        schema_loaded_at=snapshot.loaded_at,
    )


@router.get("/cycles", response_model=CyclesResponse)
async def get_cycles(
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Circular formula and rollup dependencies.
    """
    return CyclesResponse(cycles=graph.find_cycles([EdgeType.DERIVES_FROM]))


@router.get("/rules", response_model=List[RuleResponse])
async def get_rules(
    category: Optional[str] = Query(default=None),
    source: Optional[str] = Query(default=None),
    field_key: Optional[str] = Query(default=None),
    sort_by: str = Query(default="field"),
    snapshot: SchemaSnapshot = Depends(get_schema_snapshot),
):
    """
    Rule-driven field usage, optionally filtered.
    """
    index = build_rule_index(snapshot.graph, snapshot.application)
    rules = sort_rules(filter_rules(index, category=category, source=source, field_key=field_key), sort_by)

    return [
        RuleResponse(
            id=r.id,
            category=r.category,
            source=r.source,
            target_field=r.target_field,
            origin=r.origin,
            location_path=r.location_path,
            operator=r.operator,
            rule_type=r.rule_type,
            view_name=r.view_name,
            scene_name=r.scene_name,
            object_name=r.object_name,
            task_name=r.task_name,
        )
        for r in rules
    ]
