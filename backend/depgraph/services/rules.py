"""
Index of rule-driven field usage (display, record and email rules).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from depgraph.models.domain import Edge, EdgeType, EntityKind, NodeRef, RuleCategory
from depgraph.services.graph_engine import DependencyGraph

SOURCE_FORM = "form"
SOURCE_TABLE = "table"
SOURCE_FIELD = "field"
SOURCE_TASK = "task"


@dataclass
class RuleDescriptor:
    id: str
    category: str
    source: str
    target_field: NodeRef
    origin: NodeRef
    location_path: str
    edge: Edge
    task_name: Optional[str] = None
    task_schedule: Any = None
    view_name: Optional[str] = None
    view_type: Optional[str] = None
    scene_name: Optional[str] = None
    object_name: Optional[str] = None
    operator: Optional[str] = None
    rule_type: Optional[str] = None
    email_subject: Optional[str] = None
    email_message: Optional[str] = None
    email_from_name: Optional[str] = None
    email_from_email: Optional[str] = None
    email_recipients: Optional[List[Any]] = None
    record_values: Optional[List[Any]] = None
    record_criteria: Optional[List[Any]] = None


@dataclass
class RuleIndex:
    all_rules: List[RuleDescriptor] = field(default_factory=list)
    by_category: Dict[str, List[RuleDescriptor]] = field(default_factory=dict)
    by_source: Dict[str, List[RuleDescriptor]] = field(default_factory=dict)
    by_field: Dict[str, List[RuleDescriptor]] = field(default_factory=dict)


class _SchemaLookup:
    """Locates views, objects and field owners in the raw schema."""

    def __init__(self, application: Mapping[str, Any]):
        self.views: Dict[str, tuple] = {}
        self.objects: Dict[str, Mapping[str, Any]] = {}
        self.field_owner: Dict[str, Mapping[str, Any]] = {}

        for scene in application.get("scenes") or []:
            if not isinstance(scene, Mapping):
                continue
            for view in scene.get("views") or []:
                if isinstance(view, Mapping) and view.get("key"):
                    self.views.setdefault(view["key"], (view, scene))

        for obj in application.get("objects") or []:
            if not isinstance(obj, Mapping):
                continue
            if obj.get("key"):
                self.objects.setdefault(obj["key"], obj)
            for fld in obj.get("fields") or []:
                if isinstance(fld, Mapping) and fld.get("key"):
                    self.field_owner.setdefault(fld["key"], obj)


def _rule_source(edge: Edge, lookup: _SchemaLookup) -> str:
    if edge.details.get("ruleSource") == SOURCE_TASK:
        return SOURCE_TASK
    if edge.from_.kind == EntityKind.VIEW:
        found = lookup.views.get(edge.from_.key)
        if found and found[0].get("type") == "form":
            return SOURCE_FORM
        return SOURCE_TABLE
    if edge.from_.kind == EntityKind.FIELD:
        return SOURCE_FIELD
    return SOURCE_TASK


def build_rule_index(graph: DependencyGraph, application: Mapping[str, Any]) -> RuleIndex:
    """
    Collect every ``uses`` edge into a field that carries a rule category.
    """
    categories = {c.value for c in RuleCategory}
    lookup = _SchemaLookup(application)
    index = RuleIndex()

    for edge in graph.get_all_edges():
        if edge.type != EdgeType.USES or edge.to.kind != EntityKind.FIELD:
            continue
        category = edge.details.get("ruleCategory")
        if category not in categories:
            continue

        details = edge.details
        descriptor = RuleDescriptor(
            id=f"{edge.from_.node_id}->{edge.to.node_id}:{edge.location_path}",
            category=category,
            source=_rule_source(edge, lookup),
            target_field=graph.resolve(edge.to) or edge.to,
            origin=graph.resolve(edge.from_) or edge.from_,
            location_path=edge.location_path,
            edge=edge,
            task_name=details.get("taskName"),
            task_schedule=details.get("taskSchedule"),
            operator=details.get("operator"),
            rule_type=details.get("ruleType"),
        )

        if edge.from_.kind == EntityKind.VIEW and edge.from_.key in lookup.views:
            view, scene = lookup.views[edge.from_.key]
            descriptor.view_name = view.get("name")
            descriptor.view_type = view.get("type")
            descriptor.scene_name = scene.get("name")
        elif edge.from_.kind == EntityKind.OBJECT and edge.from_.key in lookup.objects:
            descriptor.object_name = lookup.objects[edge.from_.key].get("name")
        elif edge.from_.kind == EntityKind.FIELD and edge.from_.key in lookup.field_owner:
            descriptor.object_name = lookup.field_owner[edge.from_.key].get("name")

        # form email rules nest the message under "email"; tasks carry it directly
        email = details.get("email")
        if isinstance(email, Mapping):
            content = email.get("email") if isinstance(email.get("email"), Mapping) else email
            descriptor.email_subject = content.get("subject")
            descriptor.email_message = content.get("message")
            descriptor.email_from_name = content.get("from_name")
            descriptor.email_from_email = content.get("from_email")
            descriptor.email_recipients = content.get("recipients")

        rule = details.get("rule")
        if isinstance(rule, Mapping):
            descriptor.record_values = rule.get("values")
            descriptor.record_criteria = rule.get("criteria")

        index.all_rules.append(descriptor)
        index.by_category.setdefault(category, []).append(descriptor)
        index.by_source.setdefault(descriptor.source, []).append(descriptor)
        if edge.to.key:
            index.by_field.setdefault(edge.to.key, []).append(descriptor)

    return index


def filter_rules(
    index: RuleIndex,
    category: Optional[str] = None,
    source: Optional[str] = None,
    field_key: Optional[str] = None,
) -> List[RuleDescriptor]:
    rules = index.all_rules
    if category:
        rules = [r for r in rules if r.category == category]
    if source:
        rules = [r for r in rules if r.source == source]
    if field_key:
        rules = [r for r in rules if r.target_field.key == field_key]
    return rules


_SORT_KEYS = {
    "field": lambda r: r.target_field.name or r.target_field.key or "",
    "origin": lambda r: r.origin.name or r.origin.key or "",
    "category": lambda r: r.category,
    "source": lambda r: r.source,
}


def sort_rules(rules: List[RuleDescriptor], sort_by: str = "field") -> List[RuleDescriptor]:
    key = _SORT_KEYS.get(sort_by)
    if key is None:
        return list(rules)
    return sorted(rules, key=key)
