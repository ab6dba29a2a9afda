def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "schema_loaded": True}


def test_requests_before_loading_return_503(empty_client):
    response = empty_client.get("/api/v1/nodes")
    assert response.status_code == 503
    assert "schema" in response.json()["detail"]

    assert empty_client.get("/health").json()["schema_loaded"] is False


def test_list_nodes(client):
    data = client.get("/api/v1/nodes", params={"kind": "field", "page_size": 5}).json()
    assert data["total"] == 8
    assert data["total_pages"] == 2
    assert [n["key"] for n in data["items"]] == ["field_1", "field_2", "field_3", "field_4", "field_5"]


def test_get_node(client):
    response = client.get("/api/v1/nodes/field/field_1")
    assert response.status_code == 200
    assert response.json() == {"kind": "field", "key": "field_1", "name": "Quantity"}

    assert client.get("/api/v1/nodes/field/field_404").status_code == 404
    assert client.get("/api/v1/nodes/widget/field_1").status_code == 422


def test_where_used(client):
    data = client.get("/api/v1/graph/field/field_2/where-used").json()
    assert data["root"]["name"] == "Price"
    assert len(data["edges"]) == 8
    assert all(e["to"]["key"] == "field_2" for e in data["edges"])
    assert "from" in data["edges"][0]

    data = client.get("/api/v1/graph/field/field_404/where-used").json()
    assert data["edges"] == []


def test_impact_and_depends_on(client):
    data = client.get("/api/v1/graph/object/object_2/impact").json()
    assert [n["key"] for n in data["nodes"]][:3] == ["object_2", "field_6", "field_7"]

    data = client.get("/api/v1/graph/field/field_404/depends-on").json()
    assert data == {"root": None, "nodes": []}


def test_paths(client):
    params = {"from_kind": "view", "from_key": "view_1", "to_kind": "field", "to_key": "field_1"}
    data = client.get("/api/v1/graph/paths", params=params).json()
    assert [[n["key"] for n in p] for p in data["paths"]] == [["view_1", "field_1"]]

    params = {"from_kind": "scene", "from_key": "scene_1", "to_kind": "field", "to_key": "field_1", "max_depth": 1}
    assert client.get("/api/v1/graph/paths", params=params).json() == {"paths": []}


def test_subgraph(client):
    data = client.get("/api/v1/graph/field/field_7/subgraph", params={"direction": "out"}).json()
    assert {n["key"] for n in data["nodes"]} == {"field_7", "field_3", "object_2", "field_1", "field_2", "field_6"}

    response = client.get("/api/v1/graph/field/field_7/subgraph", params={"direction": "sideways"})
    assert response.status_code == 422


def test_field_usage(client):
    data = client.get("/api/v1/fields/field_9/usage").json()
    assert data["by_fields"] == []
    assert [(g["node"]["key"], len(g["edges"])) for g in data["by_views"]] == [("view_1", 2), ("view_2", 2)]


def test_field_ripple(client):
    data = client.get("/api/v1/fields/field_1/ripple").json()
    assert data["root"]["key"] == "field_1"
    assert data["summary"]["total_impacted_fields"] == 4
    assert data["summary"]["edge_count"] == 16

    data = client.get("/api/v1/fields/field_1/ripple", params={"max_depth": 1}).json()
    assert data["summary"]["total_impacted_fields"] == 3

    assert client.get("/api/v1/fields/field_404/ripple").status_code == 404


def test_object_ripple(client):
    data = client.get("/api/v1/objects/object_2/ripple").json()
    assert data["root"]["name"] == "Customers"
    assert data["summary"] == {"total_nodes": 4, "edge_count": 3}

    assert client.get("/api/v1/objects/object_404/ripple").status_code == 404


def test_search_and_kinds(client):
    data = client.get("/api/v1/search", params={"q": "total"}).json()
    assert [n["key"] for n in data] == ["field_3", "field_7"]

    assert client.get("/api/v1/search", params={"q": ""}).status_code == 422
    assert client.get("/api/v1/kinds").json() == ["field", "object", "scene", "view"]


def test_statistics(client):
    data = client.get("/api/v1/statistics", params={"top_n": 2}).json()
    assert data["node_count"] == 14
    assert data["edge_count"] == 42
    assert [f["field_key"] for f in data["top_referenced_fields"]] == ["field_1", "field_2"]
    assert data["schema_loaded_at"] is not None


def test_cycles(client):
    assert client.get("/api/v1/cycles").json() == {"cycles": []}


def test_rules(client):
    data = client.get("/api/v1/rules", params={"category": "email"}).json()
    assert len(data) == 4
    assert {r["source"] for r in data} == {"task", "form"}

    data = client.get("/api/v1/rules", params={"field_key": "field_6"}).json()
    assert [(r["category"], r["view_name"]) for r in data] == [("record", "Order Form")]


def test_field_complexity(client):
    data = client.get("/api/v1/fields/field_3/complexity").json()
    assert data["node"]["key"] == "field_3"
    assert data["score"] == 18.5
    assert len(data["breakdown"]) == 12

    assert client.get("/api/v1/fields/field_404/complexity").status_code == 404


def test_object_complexity(client):
    data = client.get("/api/v1/objects/object_2/complexity").json()
    assert data["total_score"] == 8.5
    assert [f["node"]["key"] for f in data["fields"]] == ["field_6", "field_7"]

    assert client.get("/api/v1/objects/object_404/complexity").status_code == 404
