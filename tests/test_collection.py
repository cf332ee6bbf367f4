"""Tests for the Collection facade."""

import json
import logging
from unittest.mock import patch

import pytest

from seekql.collection import Collection
from seekql.exceptions import EmbeddingFunctionRequired, InvalidParameter
from seekql.querydsl.q import Q
from seekql.search.transport import DbmsHybridSearchTransport


@pytest.fixture
def collection(executor, transport, embedding):
    return Collection("docs", executor, transport=transport, embedding=embedding, distance="cosine")


class TestCollectionInit:
    def test_table_name(self, collection):
        assert collection.table_name == "c$v1$docs"
        assert repr(collection) == "<Collection: docs>"

    @pytest.mark.parametrize("name", ["", "bad-name", "x; DROP TABLE y"])
    def test_invalid_name(self, executor, name):
        with pytest.raises(InvalidParameter):
            Collection(name, executor)

    def test_default_transport_uses_executor(self, executor):
        collection = Collection("docs", executor)
        assert isinstance(collection.transport, DbmsHybridSearchTransport)
        assert collection.transport.executor is executor


class TestQuery:
    def test_query_with_embeddings(self, collection, executor, sample_rows):
        executor.results = [sample_rows]
        result = collection.query(query_embeddings=[0.1, 0.2, 0.3], n_results=2, where={"category": "AI"})

        assert result.ids == [["doc_1", "doc_2"]]
        assert result.distances == [[0.12, 0.5]]
        assert result.metadatas[0][0] == {"category": "AI", "score": 95}
        sql, args = executor.calls[0]
        assert "cosine_distance(embedding, '[0.1,0.2,0.3]')" in sql
        assert args == ["AI", 2]

    def test_one_statement_per_vector(self, collection, executor):
        result = collection.query(query_embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        assert len(executor.calls) == 2
        assert len(result) == 2
        assert result.ids == [[], []]

    def test_texts_embedded_in_one_batch(self, collection, executor, embedding):
        collection.query(query_texts=["a", "b"], n_results=1)
        assert embedding.calls == [["a", "b"]]
        assert "'[1.0,1.0,1.0]'" in executor.calls[0][0]
        assert "'[2.0,2.0,2.0]'" in executor.calls[1][0]

    def test_embeddings_win_over_texts(self, collection, embedding):
        collection.query(query_texts="ignored", query_embeddings=[1.0, 2.0, 3.0])
        assert embedding.calls == []

    def test_texts_without_embedding(self, executor):
        with pytest.raises(EmbeddingFunctionRequired):
            Collection("docs", executor).query(query_texts=["a"])

    def test_no_input(self, collection):
        with pytest.raises(InvalidParameter, match="query_texts or query_embeddings"):
            collection.query()

    def test_dimension_mismatch(self, executor):
        collection = Collection("docs", executor, dimension=3)
        with pytest.raises(InvalidParameter, match="dimension"):
            collection.query(query_embeddings=[1.0, 2.0])
        assert executor.calls == []


class TestRecords:
    def test_get(self, collection, executor, sample_rows):
        executor.results = [sample_rows]
        result = collection.get(ids="doc_1", where=Q(score__gte=90), limit=5)
        assert result.ids == ["doc_1", "doc_2"]
        assert result.embeddings[0] == [0.1, 0.2, 0.3]
        sql, args = executor.calls[0]
        assert sql.startswith("SELECT _id, document, metadata, embedding FROM `c$v1$docs` WHERE _id IN (?)")
        assert args == ["doc_1", 90, 5, 0]

    def test_peek(self, collection, executor):
        collection.peek()
        assert executor.calls[0][1] == [10, 0]
        collection.peek(limit=0)
        assert executor.calls[1][1] == [10, 0]

    def test_peek_reads_default_at_call_time(self, collection, executor):
        with patch("seekql.collection.settings") as mock_settings:
            mock_settings.DEFAULT_PEEK_LIMIT = 3
            collection.peek()
        assert executor.calls[0][1] == [3, 0]

    def test_delete(self, collection, executor):
        executor.affected = 2
        assert collection.delete(ids=["a", "b"]) == 2
        assert executor.calls == [("DELETE FROM `c$v1$docs` WHERE _id IN (?, ?)", ["a", "b"])]

    @pytest.mark.parametrize("kwargs", [{}, {"ids": []}, {"where": {}}])
    def test_delete_nothing_selected(self, collection, executor, kwargs):
        assert collection.delete(**kwargs) == 0
        assert executor.calls == []

    def test_count(self, collection, executor):
        executor.results = [[{"CNT": 7}]]
        assert collection.count() == 7
        assert executor.calls == [("SELECT COUNT(*) AS cnt FROM `c$v1$docs`", [])]
        assert collection.count() == 0

    def test_statements_logged_when_enabled(self, collection, caplog):
        caplog.set_level(logging.DEBUG, logger="seekql")
        with patch("seekql.logger.api_settings") as mock_settings:
            mock_settings.LOG_STATEMENTS = True
            mock_settings.LOG_LEVEL = "INFO"
            collection.count()
        assert "count: SELECT COUNT(*) AS cnt FROM `c$v1$docs` args=[]" in caplog.text


class TestHybridSearch:
    def test_request_sent_through_transport(self, collection, transport):
        transport.rows = [
            {"ID": "doc_1", "_SCORE": "0.75", "DOCUMENT": "text", "METADATA": '{"k": 1}'},
        ]
        result = collection.hybrid_search(
            query={"where_document": {"$contains": "vector"}},
            knn={"query_texts": ["vector"], "size": 3},
            rank={"rrf": {"k": 60}},
            n_results=5,
        )

        table_name, search_parm = transport.requests[0]
        assert table_name == "c$v1$docs"
        assert json.loads(search_parm) == {
            "query": {"query_string": {"fields": ["document"], "query": "vector"}},
            "knn": {"field": "embedding", "k": 3, "query_vector": [1.0, 1.0, 1.0]},
            "rank": {"rrf": {"rank_constant": 60}},
            "size": 5,
        }
        assert result.ids == ["doc_1"]
        assert result.distances == [0.75]
        assert result.metadatas == [{"k": 1}]
        assert result.embeddings == [None]

    def test_empty_request(self, collection, transport):
        with pytest.raises(InvalidParameter):
            collection.hybrid_search()
        assert transport.requests == []

    def test_dimension_checked(self, executor, transport):
        collection = Collection("docs", executor, transport=transport, dimension=2)
        with pytest.raises(InvalidParameter, match="dimension"):
            collection.hybrid_search(knn={"query_vector": [1.0, 2.0, 3.0]})
