"""
DocMeta Backend — Tree Builder Unit Tests
===========================================

What we test:
    ✅ The worked example (nesting, sibling order, orphan promotion)
    ✅ Node count and parent links survive array_to_tree → flatten_tree
    ✅ Two-node and self-referencing cycles terminate without duplicates
    ✅ Inputs are not mutated
    ✅ Extended literals: regex and function tokens, reader round trip
"""

import json
import re
from datetime import datetime, timezone

from docmeta.services.tree import (
    FUNCTION_MARKER,
    REGEXP_MARKER,
    FunctionLiteral,
    RegExpLiteral,
    array_to_tree,
    flatten_tree,
    parse_with_extended_literals,
    stringify_with_extended_literals,
)


def _ids(children):
    return [node["id"] for node in children]


def _count(children):
    return sum(1 + _count(node["children"]) for node in children)


class TestArrayToTree:
    def test_worked_example(self):
        nodes = [
            {"id": 1, "parent": None},
            {"id": 2, "parent": 1},
            {"id": 3, "parent": 1},
            {"id": 4, "parent": 99},
        ]

        tree = array_to_tree(nodes, parent_key="parent")

        assert tree == {
            "children": [
                {
                    "id": 1,
                    "parent": None,
                    "children": [
                        {"id": 2, "parent": 1, "children": []},
                        {"id": 3, "parent": 1, "children": []},
                    ],
                },
                {"id": 4, "parent": 99, "children": []},
            ]
        }

    def test_empty_input(self):
        assert array_to_tree([]) == {"children": []}

    def test_sibling_order_follows_input(self):
        nodes = [
            {"id": 10, "parentId": None},
            {"id": 13, "parentId": 10},
            {"id": 11, "parentId": 10},
            {"id": 12, "parentId": 10},
        ]
        tree = array_to_tree(nodes)
        assert _ids(tree["children"][0]["children"]) == [13, 11, 12]

    def test_child_listed_before_parent(self):
        nodes = [{"id": 2, "parentId": 1}, {"id": 1, "parentId": None}]
        tree = array_to_tree(nodes)
        assert _ids(tree["children"]) == [1]
        assert _ids(tree["children"][0]["children"]) == [2]

    def test_minus_one_parent_is_root(self):
        nodes = [{"id": 5, "parentId": -1}, {"id": 6, "parentId": 5}]
        tree = array_to_tree(nodes)
        assert _ids(tree["children"]) == [5]

    def test_orphan_is_promoted_to_root(self):
        nodes = [{"id": 1, "parentId": None}, {"id": 2, "parentId": 404}]
        tree = array_to_tree(nodes)
        assert _ids(tree["children"]) == [1, 2]

    def test_count_and_parent_links_round_trip(self):
        nodes = [
            {"id": 1, "parentId": None},
            {"id": 2, "parentId": 1},
            {"id": 3, "parentId": 2},
            {"id": 4, "parentId": 2},
            {"id": 5, "parentId": None},
            {"id": 6, "parentId": 5},
            {"id": 7, "parentId": 1},
        ]

        tree = array_to_tree(nodes)
        flat = flatten_tree(tree)

        assert _count(tree["children"]) == len(nodes)
        assert sorted(n["id"] for n in flat) == [n["id"] for n in nodes]
        assert {n["id"]: n["parentId"] for n in flat} == {n["id"]: n["parentId"] for n in nodes}
        assert all("children" not in n for n in flat)

    def test_flatten_is_pre_order(self):
        nodes = [
            {"id": 1, "parentId": None},
            {"id": 2, "parentId": None},
            {"id": 3, "parentId": 1},
        ]
        assert [n["id"] for n in flatten_tree(array_to_tree(nodes))] == [1, 3, 2]

    def test_two_node_cycle_terminates_without_duplicates(self):
        nodes = [{"id": "A", "parentId": "B"}, {"id": "B", "parentId": "A"}]

        tree = array_to_tree(nodes)
        flat_ids = [n["id"] for n in flatten_tree(tree)]

        assert sorted(flat_ids) == ["A", "B"]
        assert tree["children"][0]["id"] == "A"
        assert _ids(tree["children"][0]["children"]) == ["B"]
        assert tree["children"][0]["children"][0]["children"] == []

    def test_cycle_below_a_root(self):
        nodes = [
            {"id": 1, "parentId": None},
            {"id": 2, "parentId": 3},
            {"id": 3, "parentId": 2},
        ]
        tree = array_to_tree(nodes)
        assert sorted(n["id"] for n in flatten_tree(tree)) == [1, 2, 3]

    def test_node_below_cycle_keeps_its_parent(self):
        nodes = [
            {"id": "C", "parentId": "A"},
            {"id": "A", "parentId": "B"},
            {"id": "B", "parentId": "A"},
        ]

        tree = array_to_tree(nodes)

        assert _ids(tree["children"]) == ["A"]
        assert _ids(tree["children"][0]["children"]) == ["C", "B"]
        flat = flatten_tree(tree)
        assert sorted(n["id"] for n in flat) == ["A", "B", "C"]

    def test_self_parent_is_root(self):
        tree = array_to_tree([{"id": 1, "parentId": 1}])
        assert tree == {"children": [{"id": 1, "parentId": 1, "children": []}]}

    def test_input_is_not_mutated(self):
        nodes = [{"id": 1, "parentId": None}, {"id": 2, "parentId": 1}]
        array_to_tree(nodes)
        assert nodes == [{"id": 1, "parentId": None}, {"id": 2, "parentId": 1}]


class TestExtendedLiterals:
    def test_plain_json_round_trips_through_json_loads(self):
        value = {"a": [1, 2.5, None, True], "b": {"c": "text", "d": []}, "e": "ünï"}
        assert json.loads(stringify_with_extended_literals(value)) == value

    def test_compiled_pattern_becomes_regexp_token(self):
        text = stringify_with_extended_literals({"v": re.compile(r"^a+\d$", re.IGNORECASE)})
        assert json.loads(text) == {"v": REGEXP_MARKER + r"/^a+\d$/i"}

    def test_function_literal_becomes_function_token(self):
        text = stringify_with_extended_literals({"v": FunctionLiteral("function () { return 1 }")})
        assert json.loads(text) == {"v": FUNCTION_MARKER + "function () { return 1 }"}

    def test_python_callable_is_carried_as_source(self):
        def default_price():
            return 9.99

        decoded = parse_with_extended_literals(stringify_with_extended_literals([default_price]))

        assert isinstance(decoded[0], FunctionLiteral)
        assert "def default_price" in decoded[0].source

    def test_reader_restores_literals_inside_nested_structures(self):
        original = {
            "props": [
                {"name": "sku", "value": RegExpLiteral("[A-Z]{3}", "gi")},
                {"name": "price", "value": FunctionLiteral("() => 1")},
                {"name": "plain", "value": "just text"},
            ]
        }

        decoded = parse_with_extended_literals(stringify_with_extended_literals(original))

        assert decoded == original

    def test_regexp_literal_compiles_known_flags(self):
        pattern = RegExpLiteral.from_text("/^abc$/gim").compile()
        assert pattern.flags & re.IGNORECASE
        assert pattern.flags & re.MULTILINE
        assert pattern.match("ABC")

    def test_regexp_text_without_slashes_is_bare_source(self):
        assert RegExpLiteral.from_text("abc") == RegExpLiteral(source="abc", flags="")

    def test_datetimes_are_iso_strings(self):
        moment = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        assert json.loads(stringify_with_extended_literals({"at": moment})) == {
            "at": "2026-10-19T12:00:00+00:00"
        }
