"""Tests for OpenAI embedding adapter."""

from unittest.mock import Mock, patch

import pytest

from seekql.embeddings.openai import OpenAIEmbeddingAdapter
from seekql.exceptions import InvalidParameter, MissingConfigError, SearchError


def _response(*vectors):
    data = []
    for vector in vectors:
        item = Mock()
        item.embedding = vector
        data.append(item)
    return Mock(data=data)


@pytest.fixture
def client():
    with patch("seekql.embeddings.openai.OpenAI") as mock_openai_class, patch(
        "seekql.embeddings.openai.settings"
    ) as mock_settings:
        mock_settings.OPENAI_API_KEY = "test-key"
        mock_client = Mock()
        mock_openai_class.return_value = mock_client
        yield mock_client


class TestOpenAIEmbeddingAdapter:
    @pytest.mark.parametrize(
        "model_name,expected_dim",
        [
            ("text-embedding-3-small", 1536),
            ("text-embedding-3-large", 3072),
            ("text-embedding-ada-002", 1536),
        ],
    )
    def test_native_dimensions(self, model_name, expected_dim):
        adapter = OpenAIEmbeddingAdapter(model_name=model_name)
        assert adapter.model_name == model_name
        assert adapter.dim == expected_dim

    def test_shortened_dim(self):
        assert OpenAIEmbeddingAdapter(model_name="text-embedding-3-small", dim=256).dim == 256

    @pytest.mark.parametrize(
        "model_name,dim",
        [
            ("text-embedding-ada-002", 256),
            ("text-embedding-3-small", 4096),
            ("text-embedding-3-large", -1),
        ],
    )
    def test_unsupported_dim(self, model_name, dim):
        with pytest.raises(InvalidParameter, match="Unsupported dim"):
            OpenAIEmbeddingAdapter(model_name=model_name, dim=dim)

    @patch("seekql.embeddings.openai.settings")
    def test_default_model_from_settings(self, mock_settings):
        mock_settings.OPENAI_EMBEDDING_MODEL = "text-embedding-3-large"
        assert OpenAIEmbeddingAdapter().model_name == "text-embedding-3-large"

    def test_unknown_model(self):
        with pytest.raises(InvalidParameter, match="Unknown embedding dimension"):
            OpenAIEmbeddingAdapter(model_name="unknown-model")

    @patch("seekql.embeddings.openai.OpenAI")
    @patch("seekql.embeddings.openai.settings")
    def test_lazy_client(self, mock_settings, mock_openai_class):
        mock_settings.OPENAI_API_KEY = "test-key"
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-small")
        assert adapter._client is None
        assert adapter.client is mock_openai_class.return_value
        mock_openai_class.assert_called_once_with(api_key="test-key")

    @patch("seekql.embeddings.openai.settings")
    def test_missing_api_key_is_not_wrapped(self, mock_settings):
        mock_settings.OPENAI_API_KEY = None
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-small")
        with pytest.raises(MissingConfigError, match="API key not configured"):
            adapter.get_embeddings(["test"])

    def test_native_dim_request(self, client):
        client.embeddings.create.return_value = _response([0.1] * 1536, [0.2] * 1536)
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-small")

        embeddings = adapter.get_embeddings(["line one\nline two", "other"])

        assert embeddings == [[0.1] * 1536, [0.2] * 1536]
        client.embeddings.create.assert_called_once_with(
            input=["line one line two", "other"], model="text-embedding-3-small"
        )

    def test_shortened_dim_is_requested(self, client):
        client.embeddings.create.return_value = _response([0.5, 0.5])
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-large", dim=2)

        assert adapter.get_embeddings(["x"]) == [[0.5, 0.5]]
        assert client.embeddings.create.call_args.kwargs["dimensions"] == 2

    def test_large_input_is_split(self, client):
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-small", dim=1)
        adapter.max_batch_size = 2
        client.embeddings.create.side_effect = [_response([1.0], [2.0]), _response([3.0])]

        assert adapter.get_embeddings(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
        assert [c.kwargs["input"] for c in client.embeddings.create.call_args_list] == [["a", "b"], ["c"]]

    def test_wrong_dimension_from_provider(self, client):
        client.embeddings.create.return_value = _response([0.1, 0.2])
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-small")
        with pytest.raises(SearchError, match="unexpected dimension"):
            adapter.get_embeddings(["x"])

    def test_empty_input(self):
        assert OpenAIEmbeddingAdapter(model_name="text-embedding-3-small").get_embeddings([]) == []

    def test_api_error(self, client):
        client.embeddings.create.side_effect = Exception("API Error")
        adapter = OpenAIEmbeddingAdapter(model_name="text-embedding-3-small")
        with pytest.raises(SearchError, match="Embedding generation failed") as exc_info:
            adapter.get_embeddings(["test"])
        assert exc_info.value.details["model"] == "text-embedding-3-small"
