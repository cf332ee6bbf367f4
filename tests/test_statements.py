"""Tests for get / delete / count statement builders."""

import pytest

from seekql.exceptions import InvalidParameter
from seekql.querydsl.q import Q
from seekql.search.statements import build_count, build_delete, build_get, build_where

TABLE = "c$v1$docs"
COLUMNS = "_id, document, metadata, embedding"


class TestBuildWhere:
    def test_empty(self):
        assert build_where().is_empty

    def test_joins_ids_metadata_and_document(self):
        clause, args = build_where(["a", "b"], Q(category="AI"), {"$contains": "x"})
        assert clause == "_id IN (?, ?) AND (JSON_EXTRACT(metadata,'$.category')) = ? AND document LIKE ?"
        assert args == ["a", "b", "AI", "%x%"]


class TestBuildGet:
    def test_unfiltered_uses_default_limit(self):
        sql, args = build_get(TABLE)
        assert sql == f"SELECT {COLUMNS} FROM `c$v1$docs` LIMIT ? OFFSET ?"
        assert args == [1000, 0]

    def test_filtered(self):
        sql, args = build_get(TABLE, ids=["a"], where={"score": {"$gte": 1}}, limit=5, offset=10)
        assert sql == (
            f"SELECT {COLUMNS} FROM `c$v1$docs`"
            " WHERE _id IN (?) AND (JSON_EXTRACT(metadata,'$.score')) >= ? LIMIT ? OFFSET ?"
        )
        assert args == ["a", 1, 5, 10]

    def test_negative_offset(self):
        with pytest.raises(InvalidParameter):
            build_get(TABLE, offset=-1)


class TestBuildDelete:
    def test_by_ids(self):
        assert build_delete(TABLE, ids=["a", "b"]) == ("DELETE FROM `c$v1$docs` WHERE _id IN (?, ?)", ["a", "b"])

    def test_by_filter(self):
        sql, args = build_delete(TABLE, where_document={"$regex": "^old"})
        assert sql == "DELETE FROM `c$v1$docs` WHERE document REGEXP ?"
        assert args == ["^old"]

    @pytest.mark.parametrize("kwargs", [{}, {"ids": []}, {"where": {}}, {"where": Q()}])
    def test_unfiltered_delete_refused(self, kwargs):
        with pytest.raises(InvalidParameter, match="Delete requires"):
            build_delete(TABLE, **kwargs)


def test_build_count():
    assert build_count(TABLE) == ("SELECT COUNT(*) AS cnt FROM `c$v1$docs`", [])
