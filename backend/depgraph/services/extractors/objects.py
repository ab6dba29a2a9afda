"""
Edge extraction for objects (tables) and their fields and tasks.
"""
from typing import Any, Dict, List, Mapping, Optional

from depgraph.models.domain import Edge, EdgeType, RuleCategory
from depgraph.services.equation import parse_equation
from depgraph.services.extractors.shared import (
    create_edge,
    extract_fields_from_text,
    extract_from_criteria,
    extract_from_values,
    field_node,
    object_node,
    process_array,
)
from depgraph.services.resolvers import (
    Resolvers,
    resolve_connection_target,
    resolve_object_name,
)

EQUATION = "equation"
SUM = "sum"
CONCATENATION = "concatenation"

TASK_RULE_CATEGORIES = {
    "record": RuleCategory.RECORD.value,
    "email": RuleCategory.EMAIL.value,
}


def extract_from_object(
    obj: Mapping[str, Any],
    object_index: int,
    resolvers: Optional[Resolvers] = None,
) -> List[Edge]:
    """
    Containment, formula, relationship, sort and rule edges for one object.
    """
    base_path = f"objects[{object_index}]"
    obj_node = object_node(obj.get("key"), obj.get("name"))
    fields = [f for f in obj.get("fields") or [] if isinstance(f, Mapping)]
    field_by_key = {f["key"]: f for f in fields if f.get("key")}

    def _field(fld, index, path):
        if not isinstance(fld, Mapping):
            return []
        return [
            create_edge(obj_node, field_node(fld.get("key"), fld.get("name")), EdgeType.CONTAINS, path),
            *extract_from_field(fld, obj, field_by_key, object_index, index, resolvers),
        ]

    edges = process_array(obj.get("fields"), f"{base_path}.fields", _field)

    connections = obj.get("connections") or {}
    if isinstance(connections, Mapping):
        for direction in ("outbound", "inbound"):
            edges.extend(
                process_array(
                    connections.get(direction),
                    f"{base_path}.connections.{direction}",
                    lambda conn, i, path, direction=direction: _connection_edge(
                        obj_node, conn, direction, path, resolvers
                    ),
                )
            )

    sort = obj.get("sort")
    if isinstance(sort, Mapping) and sort.get("field"):
        edges.append(
            create_edge(
                obj_node,
                field_node(sort["field"], (field_by_key.get(sort["field"]) or {}).get("name")),
                EdgeType.SORTS_BY,
                f"{base_path}.sort.field",
                {"order": sort.get("order")},
            )
        )

    edges.extend(
        process_array(
            obj.get("tasks"),
            f"{base_path}.tasks",
            lambda task, i, path: _task_edges(obj_node, task, path),
        )
    )

    return edges


def _connection_edge(obj_node, conn, direction, path, resolvers) -> List[Edge]:
    if not isinstance(conn, Mapping) or not conn.get("object"):
        return []
    other = object_node(conn["object"], resolve_object_name(resolvers, conn["object"]))
    from_node, to_node = (obj_node, other) if direction == "outbound" else (other, obj_node)
    return [
        create_edge(
            from_node,
            to_node,
            EdgeType.CONNECTS_TO,
            path,
            {"key": conn.get("key"), "has": conn.get("has"), "belongs_to": conn.get("belongs_to")},
        )
    ]


def _task_edges(obj_node, task, task_path) -> List[Edge]:
    if not isinstance(task, Mapping):
        return []
    action = task.get("action")
    if not isinstance(action, Mapping):
        return []
    category = TASK_RULE_CATEGORIES.get(action.get("action"))
    if category is None:
        return []

    task_details = {
        "ruleCategory": category,
        "taskName": task.get("name"),
        "taskKey": task.get("key"),
        "taskSchedule": task.get("schedule"),
        "ruleSource": "task",
    }
    action_path = f"{task_path}.action"

    edges = extract_from_criteria(
        obj_node, action.get("criteria"), action_path, {**task_details, "ruleType": "criteria"}
    )
    edges.extend(
        extract_from_values(obj_node, action.get("values"), action_path, {**task_details, "ruleType": "values"})
    )

    email = action.get("email")
    if action.get("action") == "email" and isinstance(email, Mapping) and email.get("message"):
        edges.extend(
            extract_fields_from_text(
                obj_node,
                str(email["message"]),
                f"{action_path}.email.message",
                {**task_details, "email": email, "ruleType": "text", "ruleCategory": RuleCategory.EMAIL.value},
            )
        )
    return edges


def extract_from_field(
    fld: Mapping[str, Any],
    obj: Mapping[str, Any],
    field_by_key: Dict[str, Mapping[str, Any]],
    object_index: int,
    field_index: int,
    resolvers: Optional[Resolvers] = None,
) -> List[Edge]:
    """Dispatch on the formula subtype, then pick up conditional rules."""
    base_path = f"objects[{object_index}].fields[{field_index}]"
    this = field_node(fld.get("key"), fld.get("name"))
    fmt = fld.get("format")
    field_type = fld.get("type")
    edges: List[Edge] = []

    if isinstance(fmt, Mapping):
        if field_type == EQUATION:
            edges.extend(_equation_edges(this, fmt, obj, field_by_key, base_path))
        elif field_type == SUM:
            edges.extend(_sum_edges(this, fmt, field_by_key, base_path, resolvers))
        elif field_type == CONCATENATION:
            if isinstance(fmt.get("values"), list):
                edges.extend(_concatenation_value_edges(this, fmt, field_by_key, base_path))
            elif isinstance(fmt.get("equation"), str):
                edges.extend(_equation_edges(this, fmt, obj, field_by_key, base_path))

    def _rule(rule, index, rule_path):
        if not isinstance(rule, Mapping):
            return []
        return [
            *extract_from_values(this, rule.get("values"), rule_path),
            *extract_from_criteria(this, rule.get("criteria"), rule_path),
        ]

    edges.extend(process_array(fld.get("rules"), f"{base_path}.rules", _rule))
    return edges


def _equation_edges(this, fmt, obj, field_by_key, base_path) -> List[Edge]:
    equation = fmt.get("equation")
    referenced = fmt.get("referenced_fields")

    if isinstance(referenced, Mapping):
        edges = []
        for ref_key, ref in referenced.items():
            if not isinstance(ref, Mapping) or not ref.get("field_key"):
                continue
            edges.append(
                create_edge(
                    this,
                    field_node(ref["field_key"], ref.get("field_name")),
                    EdgeType.DERIVES_FROM,
                    f"{base_path}.format.referenced_fields.{ref_key}",
                    {
                        "object_key": ref.get("object_key"),
                        "object_name": ref.get("object_name"),
                        "equation": equation,
                    },
                )
            )
        return edges

    edges = []
    for ref in parse_equation(equation or "").referenced:
        same_object = not ref.object_key or ref.object_key == obj.get("key")
        target_name = (field_by_key.get(ref.field_key) or {}).get("name") if same_object else None
        edges.append(
            create_edge(
                this,
                field_node(ref.field_key, target_name),
                EdgeType.DERIVES_FROM,
                f"{base_path}.format.equation",
                {"object_key": ref.object_key, "equation": equation},
            )
        )
    return edges


def _sum_edges(this, fmt, field_by_key, base_path, resolvers) -> List[Edge]:
    edges = []
    source = fmt.get("field")
    if isinstance(source, Mapping) and source.get("key"):
        edges.append(
            create_edge(
                this,
                field_node(source["key"], (field_by_key.get(source["key"]) or {}).get("name")),
                EdgeType.DERIVES_FROM,
                f"{base_path}.format.field.key",
            )
        )

    connection = fmt.get("connection")
    if isinstance(connection, Mapping) and connection.get("key"):
        # rollups name the connection field; fall back to the raw key
        target_key = resolve_connection_target(resolvers, connection["key"]) or connection["key"]
        edges.append(
            create_edge(
                this,
                object_node(target_key, resolve_object_name(resolvers, target_key)),
                EdgeType.CONNECTS_TO,
                f"{base_path}.format.connection.key",
            )
        )
    return edges


def _concatenation_value_edges(this, fmt, field_by_key, base_path) -> List[Edge]:
    values = fmt["values"]

    def _value(value, index, path):
        if not isinstance(value, Mapping) or value.get("type") != "field" or not value.get("field"):
            return []
        return [
            create_edge(
                this,
                field_node(value["field"], (field_by_key.get(value["field"]) or {}).get("name")),
                EdgeType.DERIVES_FROM,
                path,
                {"values": values},
            )
        ]

    return process_array(values, f"{base_path}.format.values", _value)
