"""
API endpoints for schema entities.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from depgraph.models.api import PagedNodeResponse
from depgraph.models.domain import EntityKind, NodeRef, node_id
from depgraph.services.graph_engine import DependencyGraph
from depgraph.services.schema_loader import get_dependency_graph

router = APIRouter(prefix="/nodes", tags=["nodes"])


@router.get("", response_model=PagedNodeResponse)
async def list_nodes(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=200),
    kind: Optional[EntityKind] = Query(default=None),
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    List all nodes with pagination and an optional kind filter.
    """
    items, total = graph.get_nodes_paginated(
        page=page,
        page_size=page_size,
        kind_filter=kind,
    )

    total_pages = (total + page_size - 1) // page_size

    return PagedNodeResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{kind}/{key}", response_model=NodeRef)
async def get_node(
    kind: EntityKind,
    key: str,
    graph: DependencyGraph = Depends(get_dependency_graph),
):
    """
    Get a single node by kind and key.
    """
    node = graph.get_node(node_id(kind, key))
    if not node:
        raise HTTPException(status_code=404, detail=f"Node not found: {kind.value}:{key}")
    return node
