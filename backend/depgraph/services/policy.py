"""
Which edge types take part in which analysis.
"""
from typing import Dict, Iterable, Optional, Tuple

from depgraph.models.domain import Edge, EdgeType

COMPLEXITY = "complexity"
RIPPLE_BUILD = "rippleBuild"
RIPPLE_DISPLAY = "rippleDisplay"

DEFAULT_EXCLUDED: Dict[str, Tuple[EdgeType, ...]] = {
    # sorting adds no operational complexity to a field
    COMPLEXITY: (EdgeType.SORTS_BY,),
    RIPPLE_BUILD: (EdgeType.DISPLAYS, EdgeType.CONTAINS, EdgeType.SORTS_BY),
    RIPPLE_DISPLAY: (EdgeType.CONTAINS, EdgeType.SORTS_BY),
}

# Edge types drawn from the referenced field towards its consumer
_INVERTED_FOR_DISPLAY = {
    EdgeType.FILTERS_BY,
    EdgeType.SORTS_BY,
    EdgeType.USES,
    EdgeType.DERIVES_FROM,
}


def get_default_exclusions(context: str) -> Tuple[EdgeType, ...]:
    return DEFAULT_EXCLUDED.get(context, ())


def is_edge_allowed(
    edge: Edge,
    include: Optional[Iterable[EdgeType]] = None,
    exclude: Optional[Iterable[EdgeType]] = None,
    defaults: Optional[Iterable[EdgeType]] = None,
) -> bool:
    excluded = set(defaults or ()) | set(exclude or ())
    if edge.type in excluded:
        return False
    include = list(include or ())
    if include and edge.type not in include:
        return False
    return True


def is_edge_displayed_in_ripple(edge: Edge) -> bool:
    return is_edge_allowed(edge, defaults=get_default_exclusions(RIPPLE_DISPLAY))


def displayed_endpoints(edge: Edge) -> Tuple[str, str]:
    """
    ``(source_id, target_id)`` for drawing an edge in an impact view.
    Dependency edges are flipped so arrows run from the field outwards
    to whatever depends on it.
    """
    if edge.type in _INVERTED_FOR_DISPLAY:
        return edge.to.node_id, edge.from_.node_id
    return edge.from_.node_id, edge.to.node_id


def should_display_edge_in_ripple(edge: Edge, root_id: Optional[str] = None) -> bool:
    """``contains`` is shown only when it leaves the ripple root."""
    if edge.type == EdgeType.CONTAINS:
        return root_id is not None and edge.from_.node_id == root_id
    return is_edge_displayed_in_ripple(edge)
