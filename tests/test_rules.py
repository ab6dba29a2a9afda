from depgraph.services.rules import (
    SOURCE_FORM,
    SOURCE_TASK,
    build_rule_index,
    filter_rules,
    sort_rules,
)


def test_rule_index(graph, application):
    index = build_rule_index(graph, application)

    assert len(index.all_rules) == 7
    assert {k: len(v) for k, v in index.by_category.items()} == {"email": 4, "display": 1, "record": 2}
    assert {k: len(v) for k, v in index.by_source.items()} == {SOURCE_TASK: 2, SOURCE_FORM: 5}
    assert len(index.by_field["field_9"]) == 2


def test_task_rules(graph, application):
    index = build_rule_index(graph, application)
    criteria, text = index.by_source[SOURCE_TASK]

    assert criteria.origin.key == "object_1"
    assert criteria.object_name == "Orders"
    assert criteria.task_name == "Nightly summary"
    assert criteria.operator == "is blank"
    assert criteria.email_subject is None

    assert text.rule_type == "text"
    assert text.email_subject == "Nightly"
    assert text.email_message == "Order total is field_3"
    assert text.target_field.name == "Total"


def test_form_rules(graph, application):
    index = build_rule_index(graph, application)

    emails = filter_rules(index, category="email", source=SOURCE_FORM)
    assert [r.target_field.key for r in emails] == ["field_2", "field_9"]
    assert emails[0].email_subject == "Order changed"
    assert emails[0].view_name == "Order Form"
    assert emails[0].view_type == "form"
    assert emails[0].scene_name == "Orders Page"

    records = filter_rules(index, category="record")
    assert records[0].record_values == [{"field": "field_6", "type": "value"}]
    assert records[0].record_criteria == [{"field": "field_1", "operator": "is"}]


def test_untagged_rules_are_not_indexed(graph, application):
    index = build_rule_index(graph, application)
    # field rules and table action rules carry no category
    assert all(r.origin.key not in ("field_9", "view_1") for r in index.all_rules)


def test_filter_by_field(graph, application):
    index = build_rule_index(graph, application)
    assert [r.category for r in filter_rules(index, field_key="field_9")] == ["display", "email"]
    assert filter_rules(index, field_key="field_404") == []
    assert len(filter_rules(index)) == 7


def test_sort_rules(graph, application):
    rules = build_rule_index(graph, application).all_rules

    assert [r.target_field.key for r in sort_rules(rules)] == [
        "field_6",
        "field_2",
        "field_2",
        "field_1",
        "field_9",
        "field_9",
        "field_3",
    ]
    assert [r.source for r in sort_rules(rules, "source")][:5] == [SOURCE_FORM] * 5
    assert sort_rules(rules, "nonsense") == rules
