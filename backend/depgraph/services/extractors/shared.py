"""
Shared helpers for building nodes and edges out of schema sections.

Every helper is stateless and total: a missing section yields no edges.
"""
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef
from depgraph.services.equation import FIELD_PATTERN


def scene_node(key: Optional[str], name: Optional[str] = None) -> NodeRef:
    return NodeRef(kind=EntityKind.SCENE, key=key, name=name)


def view_node(key: Optional[str], name: Optional[str] = None) -> NodeRef:
    return NodeRef(kind=EntityKind.VIEW, key=key, name=name)


def object_node(key: Optional[str], name: Optional[str] = None) -> NodeRef:
    return NodeRef(kind=EntityKind.OBJECT, key=key, name=name)


def field_node(key: Optional[str], name: Optional[str] = None) -> NodeRef:
    return NodeRef(kind=EntityKind.FIELD, key=key, name=name)


def create_edge(
    from_node: NodeRef,
    to_node: NodeRef,
    edge_type: EdgeType,
    location_path: str,
    details: Optional[Dict[str, Any]] = None,
) -> Edge:
    return Edge(
        from_=from_node,
        to=to_node,
        type=edge_type,
        location_path=location_path,
        details=details or {},
    )


def process_array(
    items: Optional[Iterable[Any]],
    base_path: str,
    processor: Callable[[Any, int, str], List[Edge]],
) -> List[Edge]:
    """
    Run ``processor(item, index, path)`` over each item and flatten the
    results. ``path`` is ``base_path`` with an ``[index]`` suffix.
    """
    if not items or not isinstance(items, (list, tuple)):
        return []

    edges: List[Edge] = []
    for index, item in enumerate(items):
        edges.extend(processor(item, index, f"{base_path}[{index}]"))
    return edges


def extract_from_criteria(
    origin: NodeRef,
    criteria: Optional[List[Mapping[str, Any]]],
    base_path: str,
    extra_details: Optional[Dict[str, Any]] = None,
) -> List[Edge]:
    """``uses`` edges from a rule's criteria list (field + operator)."""

    def _criterion(criterion, index, path):
        if not isinstance(criterion, Mapping) or not criterion.get("field"):
            return []
        details = {"operator": criterion.get("operator"), "criterion": criterion}
        if extra_details:
            details.update(extra_details)
        return [
            create_edge(origin, field_node(criterion["field"]), EdgeType.USES, f"{path}.field", details)
        ]

    return process_array(criteria, f"{base_path}.criteria", _criterion)


def extract_from_values(
    origin: NodeRef,
    values: Optional[List[Mapping[str, Any]]],
    base_path: str,
    extra_details: Optional[Dict[str, Any]] = None,
) -> List[Edge]:
    """``uses`` edges from a rule's values list (field reference)."""

    def _value(value, index, path):
        if not isinstance(value, Mapping) or not value.get("field"):
            return []
        details = {"value": value}
        if extra_details:
            details.update(extra_details)
        return [
            create_edge(origin, field_node(value["field"]), EdgeType.USES, f"{path}.field", details)
        ]

    return process_array(values, f"{base_path}.values", _value)


def extract_fields_from_text(
    origin: NodeRef,
    text: Optional[str],
    base_path: str,
    details: Optional[Dict[str, Any]] = None,
) -> List[Edge]:
    """One ``uses`` edge per ``field_N`` token found in free text."""
    if not isinstance(text, str):
        return []
    return [
        create_edge(origin, field_node(key), EdgeType.USES, base_path, dict(details or {}))
        for key in FIELD_PATTERN.findall(text)
    ]
