"""
Pydantic models for API request/response schemas.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel

from .domain import Edge, NodeRef


class EdgeListResponse(BaseModel):
    """Edges touching a node."""
    root: NodeRef
    edges: List[Edge]


class NodeListResponse(BaseModel):
    """Nodes reached by a traversal or listed by a page."""
    root: Optional[NodeRef] = None
    nodes: List[NodeRef]


class PagedNodeResponse(BaseModel):
    """Paginated list of nodes."""
    items: List[NodeRef]
    total: int
    page: int
    page_size: int
    total_pages: int


class PathResponse(BaseModel):
    """Zero or one shortest path."""
    paths: List[List[NodeRef]]


class SubgraphResponse(BaseModel):
    """Render-ready graph slice."""
    nodes: List[NodeRef]
    edges: List[Edge]


class UsageGroupResponse(BaseModel):
    node: NodeRef
    edges: List[Edge]


class FieldUsageResponse(BaseModel):
    by_fields: List[UsageGroupResponse]
    by_views: List[UsageGroupResponse]


class RippleResponse(BaseModel):
    """Ripple slice with its summary counts."""
    root: Optional[NodeRef] = None
    nodes: List[NodeRef]
    edges: List[Edge]
    summary: Dict[str, int]


class FieldReference(BaseModel):
    field_key: Optional[str] = None
    name: Optional[str] = None
    references: int


class StatisticsResponse(BaseModel):
    """Graph statistics."""
    node_count: int
    edge_count: int
    nodes_by_kind: Dict[str, int]
    top_referenced_fields: List[FieldReference]
    schema_loaded_at: Optional[str] = None


class CyclesResponse(BaseModel):
    """Circular formula dependencies."""
    cycles: List[List[NodeRef]]


class RuleResponse(BaseModel):
    id: str
    category: str
    source: str
    target_field: NodeRef
    origin: NodeRef
    location_path: str
    operator: Optional[str] = None
    rule_type: Optional[str] = None
    view_name: Optional[str] = None
    scene_name: Optional[str] = None
    object_name: Optional[str] = None
    task_name: Optional[str] = None


class ComplexityBreakdownItem(BaseModel):
    feature_id: str
    label: str
    raw: float
    weight: float
    weighted: float


class ComplexityResponse(BaseModel):
    """Weighted complexity score with its per-feature breakdown."""
    node: NodeRef
    score: float
    breakdown: List[ComplexityBreakdownItem]


class ObjectComplexityResponse(BaseModel):
    """Object score as the sum of its fields' scores."""
    object: NodeRef
    total_score: float
    fields: List[ComplexityResponse]
