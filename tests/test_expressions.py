from aws_event_layer.layer.core.client import BOOKKEEPING_UPDATE
from aws_event_layer.layer.expressions import (
    concat_condition_expression,
    concat_update_expression,
)


class TestConcatConditionExpression:
    def test_joins_with_and(self):
        assert concat_condition_expression("#a = :a", "#b = :b") == "#a = :a AND #b = :b"

    def test_keeps_explicit_joiner(self):
        assert concat_condition_expression("#a = :a", "OR #b = :b") == "#a = :a OR #b = :b"
        assert concat_condition_expression("#a = :a", " AND #b = :b") == "#a = :a AND #b = :b"

    def test_empty_sides(self):
        assert concat_condition_expression("", "#b = :b") == "#b = :b"
        assert concat_condition_expression("#a = :a", "  ") == "#a = :a"
        assert concat_condition_expression("", "") == ""


class TestConcatUpdateExpression:
    def test_bare_clauses_belong_to_set(self):
        assert concat_update_expression("#a = :a,", "") == "SET #a = :a"

    def test_merges_sections(self):
        assert (
            concat_update_expression("SET #a = :a,", "ADD d SET b = :b,c = :c,")
            == "SET #a = :a, b = :b, c = :c ADD d"
        )

    def test_section_order(self):
        assert (
            concat_update_expression("REMOVE #x ADD #n :one", "SET #a = :a")
            == "SET #a = :a ADD #n :one REMOVE #x"
        )

    def test_drops_duplicate_clauses(self):
        assert concat_update_expression("SET #a = :a", "SET #a = :a, #b = :b") == (
            "SET #a = :a, #b = :b"
        )

    def test_keeps_function_arguments_together(self):
        merged = concat_update_expression("ADD #n :one", BOOKKEEPING_UPDATE)

        assert merged == (
            "SET #__cr = if_not_exists(#__cr, :__cr), #__up = :__up, #__ts = :__ts "
            "ADD #n :one"
        )

    def test_empty(self):
        assert concat_update_expression("", "") == ""
