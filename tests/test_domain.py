import pytest

from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef, node_id


def test_node_identity_ignores_name():
    a = NodeRef(kind=EntityKind.FIELD, key="field_1", name="Quantity")
    b = NodeRef(kind=EntityKind.FIELD, key="field_1")
    assert a == b
    assert hash(a) == hash(b)
    assert a.node_id == "field:field_1"
    assert len({a, b}) == 1


def test_same_key_different_kind_is_a_different_node():
    assert NodeRef(kind=EntityKind.FIELD, key="x") != NodeRef(kind=EntityKind.OBJECT, key="x")


def test_node_id_helper():
    assert node_id(EntityKind.SCENE, "scene_4") == "scene:scene_4"


def test_edge_accepts_from_alias():
    edge = Edge(
        **{
            "from": {"kind": "view", "key": "view_1"},
            "to": {"kind": "field", "key": "field_1"},
            "type": "displays",
        }
    )
    assert edge.from_.kind == EntityKind.VIEW
    assert edge.type == EdgeType.DISPLAYS
    assert edge.details == {}
    assert "from" in edge.model_dump(by_alias=True)


def test_filters_by_edge_requires_operator():
    with pytest.raises(ValueError):
        Edge(
            from_=NodeRef(kind=EntityKind.VIEW, key="view_1"),
            to=NodeRef(kind=EntityKind.FIELD, key="field_1"),
            type=EdgeType.FILTERS_BY,
        )


def test_sorts_by_edge_requires_order():
    with pytest.raises(ValueError):
        Edge(
            from_=NodeRef(kind=EntityKind.VIEW, key="view_1"),
            to=NodeRef(kind=EntityKind.FIELD, key="field_1"),
            type=EdgeType.SORTS_BY,
            details={"sort": {}},
        )

    edge = Edge(
        from_=NodeRef(kind=EntityKind.VIEW, key="view_1"),
        to=NodeRef(kind=EntityKind.FIELD, key="field_1"),
        type=EdgeType.SORTS_BY,
        details={"order": None},
    )
    assert edge.details["order"] is None
