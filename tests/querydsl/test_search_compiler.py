"""Tests for the search descriptor where compiler."""

import json

import pytest

from seekql.exceptions import InvalidFilter, UnsupportedInTarget
from seekql.querydsl.ast import LogicalAnd, LogicalNot
from seekql.querydsl.compilers.search import SearchWhereCompiler, metadata_field, search_where
from seekql.querydsl.q import Q


def term(field, value):
    return {"term": {field: value}}


class TestSearchWhereCompiler:
    def test_or_of_range_and_term(self):
        where = {"$or": [{"score": {"$gte": 90}}, {"tag": "ml"}]}
        assert search_where.to_where(where) == [
            {"bool": {"should": [{"range": {"score": {"gte": 90}}}, {"term": {"tag": "ml"}}]}}
        ]

    def test_eq_and_ne(self):
        assert search_where.to_where({"tag": "ml"}) == [term("tag", "ml")]
        assert search_where.to_where({"tag": {"$ne": "ml"}}) == [{"bool": {"must_not": [term("tag", "ml")]}}]

    def test_in_and_nin(self):
        assert search_where.to_where({"tag": {"$in": ["a", "b"]}}) == [
            {"bool": {"should": [term("tag", "a"), term("tag", "b")]}}
        ]
        assert search_where.to_where({"tag": {"$nin": ["a", "b"]}}) == [
            {"bool": {"must_not": [term("tag", "a"), term("tag", "b")]}}
        ]

    def test_same_field_ranges_fold_into_one_node(self):
        assert search_where.to_where({"score": {"$gte": 10, "$lt": 20}}) == [
            {"range": {"score": {"gte": 10, "lt": 20}}}
        ]

    def test_implicit_and_is_flat(self):
        clauses = search_where.to_where({"category": "AI", "score": {"$gt": 1, "$lte": 5}})
        assert clauses == [term("category", "AI"), {"range": {"score": {"gt": 1, "lte": 5}}}]

    def test_explicit_and_folds_ranges_in_group(self):
        where = {"$and": [{"score": {"$gte": 1}}, {"tag": "x"}, {"score": {"$lte": 9}}]}
        assert search_where.to_where(where) == [
            {"bool": {"must": [{"range": {"score": {"gte": 1, "lte": 9}}}, term("tag", "x")]}}
        ]

    def test_repeated_bound_starts_new_range(self):
        where = {"$and": [{"score": {"$gt": 1}}, {"score": {"$gt": 5}}]}
        assert search_where.to_where(where) == [
            {"bool": {"must": [{"range": {"score": {"gt": 1}}}, {"range": {"score": {"gt": 5}}}]}}
        ]

    def test_ranges_in_different_or_branches_stay_apart(self):
        where = {"$or": [{"score": {"$gt": 90}}, {"score": {"$lt": 10}}]}
        assert search_where.to_where(where) == [
            {"bool": {"should": [{"range": {"score": {"gt": 90}}}, {"range": {"score": {"lt": 10}}}]}}
        ]

    def test_multi_clause_children_keep_and_semantics(self):
        assert search_where.to_where({"$not": {"a": 1, "b": 2}}) == [
            {"bool": {"must_not": [{"bool": {"must": [term("a", 1), term("b", 2)]}}]}}
        ]
        assert search_where.to_where({"$or": [{"a": 1, "b": 2}, {"c": 3}]}) == [
            {"bool": {"should": [{"bool": {"must": [term("a", 1), term("b", 2)]}}, term("c", 3)]}}
        ]

    @pytest.mark.parametrize("where", [None, {}])
    def test_empty(self, where):
        assert search_where.to_where(where) == []

    def test_not_of_empty_group_is_rejected(self):
        with pytest.raises(InvalidFilter):
            search_where.compile(LogicalNot(child=LogicalAnd(children=())))

    def test_metadata_field_formatter(self):
        compiler = SearchWhereCompiler(field_formatter=metadata_field)
        assert compiler.to_where({"category": "AI"}) == [term("(JSON_EXTRACT(metadata, '$.category'))", "AI")]

    def test_accepts_q(self):
        q = Q(score__gte=90) | Q(tag="ml")
        assert search_where.to_where(q) == search_where.to_where(
            {"$or": [{"score": {"$gte": 90}}, {"tag": "ml"}]}
        )

    def test_to_expr_is_json(self):
        assert json.loads(search_where.to_expr({"tag": "ml"})) == [term("tag", "ml")]


class TestSearchDocumentFilters:
    def query_string(self, query):
        return {"query_string": {"fields": ["document"], "query": query}}

    def test_contains(self):
        assert search_where.to_where_document({"$contains": "vector"}) == self.query_string("vector")

    def test_all_contains_groups_merge(self):
        assert search_where.to_where_document(
            {"$and": [{"$contains": "vector"}, {"$contains": "search"}]}
        ) == self.query_string("vector search")
        assert search_where.to_where_document(
            {"$or": [{"$contains": "vector"}, {"$contains": "search"}]}
        ) == self.query_string("vector OR search")

    def test_mixed_groups_and_not(self):
        clause = search_where.to_where_document({"$and": [{"$contains": "a"}, {"$not": {"$contains": "b"}}]})
        assert clause == {
            "bool": {"must": [self.query_string("a"), {"bool": {"must_not": [self.query_string("b")]}}]}
        }

    @pytest.mark.parametrize(
        "where_document",
        [{"$regex": "^a"}, {"$or": [{"$contains": "a"}, {"$regex": "b"}]}],
    )
    def test_regex_is_unsupported(self, where_document):
        with pytest.raises(UnsupportedInTarget) as exc_info:
            search_where.to_where_document(where_document)
        assert not isinstance(exc_info.value, InvalidFilter)
        assert exc_info.value.details["operator"] == "$regex"

    def test_empty(self):
        assert search_where.to_where_document(None) is None
