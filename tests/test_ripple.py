from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef
from depgraph.services.policy import (
    COMPLEXITY,
    RIPPLE_BUILD,
    displayed_endpoints,
    get_default_exclusions,
    is_edge_allowed,
    is_edge_displayed_in_ripple,
    should_display_edge_in_ripple,
)
from depgraph.services.ripple import (
    build_field_ripple,
    build_object_ripple,
    is_field_list_uses,
    summarize_field_ripple,
)


def edge(edge_type, from_key="field_3", to_key="field_1", path="", details=None):
    from_kind = EntityKind.OBJECT if from_key.startswith("object_") else EntityKind.FIELD
    return Edge(
        from_=NodeRef(kind=from_kind, key=from_key),
        to=NodeRef(kind=EntityKind.FIELD, key=to_key),
        type=edge_type,
        location_path=path,
        details=details or {},
    )


def keys(nodes):
    return [n.key for n in nodes]


def test_field_ripple(graph):
    ripple = build_field_ripple(graph, "field_1")

    assert ripple.nodes[0].key == "field_1"
    assert set(keys(ripple.nodes)) == {
        "field_1",
        "field_3",
        "field_5",
        "field_9",
        "field_7",
        "object_1",
        "view_1",
        "view_2",
        "scene_1",
    }
    assert keys(ripple.impacted_fields) == ["field_3", "field_5", "field_9", "field_7"]
    assert keys(ripple.impacted_views) == ["view_1", "view_2"]
    assert keys(ripple.impacted_objects) == ["object_1"]
    assert not any(e.type in (EdgeType.DISPLAYS, EdgeType.CONTAINS) for e in ripple.edges)

    assert summarize_field_ripple(ripple) == {
        "total_impacted_nodes": 9,
        "total_impacted_fields": 4,
        "total_impacted_views": 2,
        "total_impacted_objects": 1,
        "edge_count": 16,
    }


def test_field_ripple_max_depth(graph):
    ripple = build_field_ripple(graph, "field_1", max_depth=1)
    assert keys(ripple.impacted_fields) == ["field_3", "field_5", "field_9"]
    assert len(ripple.edges) == 6


def test_field_ripple_with_custom_edge_types(graph):
    ripple = build_field_ripple(graph, "field_1", include_edge_types=[EdgeType.DERIVES_FROM])
    assert keys(ripple.nodes) == ["field_1", "field_3", "field_5", "field_7"]
    assert all(e.type == EdgeType.DERIVES_FROM for e in ripple.edges)


def test_field_ripple_unknown_field(graph):
    ripple = build_field_ripple(graph, "field_404")
    assert ripple.nodes == []
    assert summarize_field_ripple(ripple)["edge_count"] == 0


def test_object_ripple(graph):
    ripple = build_object_ripple(graph, "object_2")
    assert ripple.root.name == "Customers"
    assert keys(ripple.nodes) == ["object_2", "field_6", "field_7", "view_2"]
    assert len(ripple.edges) == 3

    missing = build_object_ripple(graph, "object_404")
    assert missing.nodes == []
    assert missing.root.key == "object_404"


def test_field_list_uses():
    assert is_field_list_uses(edge(EdgeType.USES, path="scenes[0].views[1].columns[3].field"))
    assert is_field_list_uses(edge(EdgeType.USES, path="scenes[0].views[1].fields"))
    assert not is_field_list_uses(edge(EdgeType.USES, path="scenes[0].views[1].rules.fields[0].field"))
    assert not is_field_list_uses(
        edge(EdgeType.USES, path="objects[0].fields[5].rules[0].values[0].field", details={"value": {}})
    )
    assert not is_field_list_uses(edge(EdgeType.DISPLAYS, path="scenes[0].views[1].columns[3].field.key"))


def test_default_exclusions():
    assert get_default_exclusions(COMPLEXITY) == (EdgeType.SORTS_BY,)
    assert EdgeType.DISPLAYS in get_default_exclusions(RIPPLE_BUILD)
    assert get_default_exclusions("unknown") == ()


def test_is_edge_allowed():
    derives = edge(EdgeType.DERIVES_FROM)
    assert is_edge_allowed(derives)
    assert not is_edge_allowed(derives, exclude=[EdgeType.DERIVES_FROM])
    assert not is_edge_allowed(derives, include=[EdgeType.USES])
    assert is_edge_allowed(derives, include=[EdgeType.DERIVES_FROM, EdgeType.USES])
    assert not is_edge_allowed(
        edge(EdgeType.SORTS_BY, details={"order": "asc"}), defaults=get_default_exclusions(COMPLEXITY)
    )


def test_display_policy():
    derives = edge(EdgeType.DERIVES_FROM)
    assert displayed_endpoints(derives) == ("field:field_1", "field:field_3")

    contains = edge(EdgeType.CONTAINS, from_key="object_1")
    assert displayed_endpoints(contains) == ("object:object_1", "field:field_1")
    assert should_display_edge_in_ripple(contains, root_id="object:object_1")
    assert not should_display_edge_in_ripple(contains, root_id="field:field_1")
    assert not should_display_edge_in_ripple(contains)

    assert is_edge_displayed_in_ripple(edge(EdgeType.DISPLAYS))
    assert not is_edge_displayed_in_ripple(edge(EdgeType.SORTS_BY, details={"order": "asc"}))
