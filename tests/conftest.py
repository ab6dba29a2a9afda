import pytest
from fastapi.testclient import TestClient

from depgraph.services import schema_loader
from depgraph.services.builder import build_graph
from depgraph.services.schema_loader import SchemaLoader


def make_application():
    """Two related objects and one page with a table, a form and a text view."""
    return {
        "name": "Order Desk",
        "objects": [
            {
                "key": "object_1",
                "name": "Orders",
                "fields": [
                    {"key": "field_1", "name": "Quantity", "type": "number"},
                    {"key": "field_2", "name": "Price", "type": "currency"},
                    {
                        "key": "field_3",
                        "name": "Total",
                        "type": "equation",
                        "format": {"equation": "{field_1} * {field_2}"},
                    },
                    {
                        "key": "field_4",
                        "name": "Customer",
                        "type": "connection",
                        "relationship": {"object": "object_2", "has": "one", "belongs_to": "many"},
                    },
                    {
                        "key": "field_5",
                        "name": "Label",
                        "type": "concatenation",
                        "format": {
                            "values": [
                                {"type": "field", "field": "field_1"},
                                {"type": "text", "value": " x "},
                                {"type": "field", "field": "field_3"},
                            ]
                        },
                    },
                    {
                        "key": "field_9",
                        "name": "Status",
                        "type": "short_text",
                        "rules": [
                            {
                                "criteria": [{"field": "field_2", "operator": "is blank"}],
                                "values": [{"field": "field_1", "type": "value", "value": "open"}],
                            }
                        ],
                    },
                ],
                "connections": {
                    "outbound": [
                        {"object": "object_2", "key": "field_4", "has": "one", "belongs_to": "many"}
                    ],
                    "inbound": [],
                },
                "sort": {"field": "field_1", "order": "desc"},
                "tasks": [
                    {
                        "key": "task_1",
                        "name": "Nightly summary",
                        "schedule": {"repeat": "daily"},
                        "action": {
                            "action": "email",
                            "criteria": [{"field": "field_2", "operator": "is blank"}],
                            "email": {"subject": "Nightly", "message": "Order total is field_3"},
                        },
                    }
                ],
            },
            {
                "key": "object_2",
                "name": "Customers",
                "fields": [
                    {"key": "field_6", "name": "Name", "type": "name"},
                    {
                        "key": "field_7",
                        "name": "Order Total",
                        "type": "sum",
                        "format": {"field": {"key": "field_3"}, "connection": {"key": "field_4"}},
                    },
                ],
                "connections": {
                    "inbound": [
                        {"object": "object_1", "key": "field_4", "has": "many", "belongs_to": "one"}
                    ]
                },
            },
        ],
        "scenes": [
            {
                "key": "scene_1",
                "name": "Orders Page",
                "object": "object_1",
                "views": [
                    {
                        "key": "view_1",
                        "name": "Orders Table",
                        "type": "table",
                        "source": {
                            "object": "object_1",
                            "criteria": {"rules": [{"field": "field_2", "operator": "higher than", "value": 10}]},
                            "sort": [{"field": "field_1", "order": "asc"}],
                            "connection_key": "field_4",
                            "relationship_type": "foreign",
                        },
                        "columns": [
                            {"type": "field", "field": {"key": "field_1"}},
                            {"type": "field", "field": {"key": "field_3"}},
                            {
                                "type": "action_link",
                                "action_rules": [
                                    {
                                        "criteria": [{"field": "field_9", "operator": "is"}],
                                        "record_rules": [
                                            {
                                                "values": [{"field": "field_9", "type": "value"}],
                                                "criteria": [{"field": "field_2", "operator": "is"}],
                                            }
                                        ],
                                    }
                                ],
                            },
                        ],
                    },
                    {
                        "key": "view_2",
                        "name": "Order Form",
                        "type": "form",
                        "source": {"object": "object_1"},
                        "groups": [
                            {"columns": [{"inputs": [{"field": {"key": "field_1"}}, {"field": {"key": "field_2"}}]}]}
                        ],
                        "rules": {
                            "fields": [{"field": "field_9", "operator": "is"}],
                            "records": [
                                {
                                    "values": [{"field": "field_6", "type": "value"}],
                                    "criteria": [{"field": "field_1", "operator": "is"}],
                                }
                            ],
                            "emails": [
                                {"field": "field_2 and field_9", "email": {"subject": "Order changed"}}
                            ],
                        },
                    },
                    {"key": "view_3", "name": "Intro", "type": "rich_text"},
                ],
            }
        ],
    }


@pytest.fixture
def application():
    return make_application()


@pytest.fixture
def graph(application):
    return build_graph(application)


@pytest.fixture
def client(monkeypatch, application):
    loader = SchemaLoader()
    loader.load_document({"application": application})
    monkeypatch.setattr(schema_loader, "_schema_loader", loader)

    from depgraph.main import app

    return TestClient(app)


@pytest.fixture
def empty_client(monkeypatch):
    monkeypatch.setattr(schema_loader, "_schema_loader", SchemaLoader())

    from depgraph.main import app

    return TestClient(app)
