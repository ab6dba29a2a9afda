"""
Edge extraction for scenes (pages) and the views placed on them.
"""
from typing import Any, List, Mapping, Optional

from depgraph.models.domain import Edge, EdgeType, RuleCategory
from depgraph.services.extractors.shared import (
    create_edge,
    extract_fields_from_text,
    extract_from_criteria,
    extract_from_values,
    field_node,
    object_node,
    process_array,
    scene_node,
    view_node,
)
from depgraph.services.resolvers import (
    Resolvers,
    resolve_connection_target,
    resolve_object_name,
)


def extract_from_scene(scene: Mapping[str, Any], scene_index: int) -> List[Edge]:
    """``contains`` per view, plus ``uses`` on the scene's backing object."""
    s_node = scene_node(scene.get("key"), scene.get("name"))

    edges = process_array(
        scene.get("views"),
        f"scenes[{scene_index}].views",
        lambda view, i, path: [
            create_edge(s_node, view_node(view.get("key"), view.get("name")), EdgeType.CONTAINS, path)
        ]
        if isinstance(view, Mapping)
        else [],
    )

    if scene.get("object"):
        edges.append(
            create_edge(
                s_node,
                object_node(scene["object"]),
                EdgeType.USES,
                f"scenes[{scene_index}].object",
            )
        )
    return edges


def extract_from_view(
    view: Mapping[str, Any],
    scene_index: int,
    view_index: int,
    resolvers: Optional[Resolvers] = None,
) -> List[Edge]:
    base_path = f"scenes[{scene_index}].views[{view_index}]"
    v_node = view_node(view.get("key"), view.get("name"))
    edges: List[Edge] = []

    source = view.get("source")
    if isinstance(source, Mapping):
        edges.extend(_source_edges(v_node, source, f"{base_path}.source", resolvers))

    view_type = view.get("type")
    if view_type == "form":
        edges.extend(_form_edges(v_node, view, base_path))
    elif view_type == "table":
        edges.extend(_table_edges(v_node, view, base_path))

    return edges


def _source_edges(v_node, source, source_path, resolvers) -> List[Edge]:
    edges: List[Edge] = []

    if source.get("object"):
        edges.append(
            create_edge(
                v_node,
                object_node(source["object"], resolve_object_name(resolvers, source["object"])),
                EdgeType.USES,
                f"{source_path}.object",
            )
        )

    criteria = source.get("criteria")
    rules = criteria.get("rules") if isinstance(criteria, Mapping) else None
    edges.extend(
        process_array(
            rules,
            f"{source_path}.criteria.rules",
            lambda rule, i, path: [
                create_edge(
                    v_node,
                    field_node(rule["field"]),
                    EdgeType.FILTERS_BY,
                    f"{path}.field",
                    {"operator": rule.get("operator"), "rule": rule},
                )
            ]
            if isinstance(rule, Mapping) and rule.get("field")
            else [],
        )
    )

    edges.extend(
        process_array(
            source.get("sort"),
            f"{source_path}.sort",
            lambda sort, i, path: [
                create_edge(
                    v_node,
                    field_node(sort["field"]),
                    EdgeType.SORTS_BY,
                    f"{path}.field",
                    {"order": sort.get("order"), "sort": sort},
                )
            ]
            if isinstance(sort, Mapping) and sort.get("field")
            else [],
        )
    )

    connection_key = source.get("connection_key")
    if connection_key:
        target_key = resolve_connection_target(resolvers, connection_key) or connection_key
        edges.append(
            create_edge(
                v_node,
                object_node(target_key, resolve_object_name(resolvers, target_key)),
                EdgeType.CONNECTS_TO,
                f"{source_path}.connection_key",
                {"relationship_type": source.get("relationship_type")},
            )
        )

    return edges


def _form_edges(v_node, view, base_path) -> List[Edge]:
    def _input(inp, i, path):
        fld = inp.get("field") if isinstance(inp, Mapping) else None
        if isinstance(fld, Mapping) and fld.get("key"):
            return [create_edge(v_node, field_node(fld["key"]), EdgeType.DISPLAYS, path)]
        return []

    def _column(col, i, path):
        if not isinstance(col, Mapping):
            return []
        return process_array(col.get("inputs"), f"{path}.inputs", _input)

    def _group(group, i, path):
        if not isinstance(group, Mapping):
            return []
        return process_array(group.get("columns"), f"{path}.columns", _column)

    edges = process_array(view.get("groups"), f"{base_path}.groups", _group)

    rules = view.get("rules")
    if not isinstance(rules, Mapping):
        return edges
    rules_path = f"{base_path}.rules"

    edges.extend(
        process_array(
            rules.get("fields"),
            f"{rules_path}.fields",
            lambda rule, i, path: [
                create_edge(
                    v_node,
                    field_node(rule["field"]),
                    EdgeType.USES,
                    f"{path}.field",
                    {"operator": rule.get("operator"), "rule": rule, "ruleCategory": RuleCategory.DISPLAY.value},
                )
            ]
            if isinstance(rule, Mapping) and rule.get("field")
            else [],
        )
    )

    def _record_rule(rule, i, path):
        if not isinstance(rule, Mapping):
            return []
        tag = {"ruleCategory": RuleCategory.RECORD.value, "rule": rule}
        return [
            *extract_from_values(v_node, rule.get("values"), path, {**tag, "ruleType": "values"}),
            *extract_from_criteria(v_node, rule.get("criteria"), path, {**tag, "ruleType": "criteria"}),
        ]

    edges.extend(process_array(rules.get("records"), f"{rules_path}.records", _record_rule))

    edges.extend(
        process_array(
            rules.get("emails"),
            f"{rules_path}.emails",
            lambda rule, i, path: extract_fields_from_text(
                v_node,
                rule.get("field"),
                f"{path}.field",
                {"email": rule, "ruleCategory": RuleCategory.EMAIL.value, "ruleType": "text"},
            )
            if isinstance(rule, Mapping)
            else [],
        )
    )
    return edges


def _table_edges(v_node, view, base_path) -> List[Edge]:
    def _record_rule(rule, i, path):
        if not isinstance(rule, Mapping):
            return []
        return [
            *extract_from_values(v_node, rule.get("values"), path),
            *extract_from_criteria(v_node, rule.get("criteria"), path),
        ]

    def _action_rule(rule, i, path):
        if not isinstance(rule, Mapping):
            return []
        return [
            *extract_from_criteria(v_node, rule.get("criteria"), path),
            *process_array(rule.get("record_rules"), f"{path}.record_rules", _record_rule),
        ]

    def _column(col, i, path):
        if not isinstance(col, Mapping):
            return []
        col_type = col.get("type")
        fld = col.get("field")
        if col_type == "field" and isinstance(fld, Mapping) and fld.get("key"):
            return [create_edge(v_node, field_node(fld["key"]), EdgeType.DISPLAYS, f"{path}.field.key")]
        if col_type == "action_link":
            return process_array(col.get("action_rules"), f"{path}.action_rules", _action_rule)
        return []

    return process_array(view.get("columns"), f"{base_path}.columns", _column)
