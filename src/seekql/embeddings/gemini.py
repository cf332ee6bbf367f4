"""Gemini embedding adapter for query-time text embedding."""

from typing import Any, List, Optional

from google import genai
from google.genai import types

from seekql.abc import EmbeddingAdapter
from seekql.exceptions import InvalidParameter, MissingConfigError, SearchError
from seekql.settings import settings as api_settings


class GeminiEmbeddingAdapter(EmbeddingAdapter):
    """Embed query texts with the Gemini ``embed_content`` API.

    Only ``gemini-embedding-001`` accepts an output dimension (768, 1536 or
    3072); the text-embedding models listed below are fixed at 768.

    Args:
        model_name: Model id, with or without the ``models/`` prefix
            (default from GEMINI_EMBEDDING_MODEL)
        api_key: Overrides GEMINI_API_KEY / GOOGLE_API_KEY
        task_type: ``retrieval_query`` for search input,
            ``retrieval_document`` when embedding stored content
        dim: Output dimension for gemini-embedding-001
    """

    _FIXED_DIMENSIONS = {
        "models/text-embedding-004": 768,
        "models/text-embedding-005": 768,
        "models/text-multilingual-embedding-002": 768,
        "models/embedding-001": 768,
    }
    _FLEXIBLE_MODEL = "models/gemini-embedding-001"
    _FLEXIBLE_DIMENSIONS = (768, 1536, 3072)
    _FLEXIBLE_DEFAULT = 1536

    # Contents accepted by one embed_content request
    max_batch_size = 100

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        task_type: str = "retrieval_query",
        dim: Optional[int] = None,
    ) -> None:
        model_name = model_name or api_settings.GEMINI_EMBEDDING_MODEL
        if not model_name.startswith("models/"):
            model_name = f"models/{model_name}"
        super().__init__(model_name=model_name, dim=self._resolve_dim(model_name, dim))
        if dim is not None and dim != self._dim:
            self.logger.warning("%s has a fixed dimension; ignoring dim=%d and using %d", model_name, dim, self._dim)
        self.task_type = task_type
        self._api_key = api_key or api_settings.GEMINI_API_KEY or api_settings.GOOGLE_API_KEY
        self._client: Any = None
        self.logger.message("Gemini embeddings: model=%s dim=%d task_type=%s", model_name, self._dim, task_type)

    def _resolve_dim(self, model_name: str, dim: Optional[int]) -> int:
        if model_name == self._FLEXIBLE_MODEL:
            if dim is None:
                return self._FLEXIBLE_DEFAULT
            if dim not in self._FLEXIBLE_DIMENSIONS:
                raise InvalidParameter(
                    "Invalid dim for gemini-embedding-001",
                    dim=dim,
                    expected=list(self._FLEXIBLE_DIMENSIONS),
                )
            return dim
        return self._FIXED_DIMENSIONS.get(model_name, self._FLEXIBLE_DEFAULT)

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise MissingConfigError("API key not configured", config_key="GEMINI_API_KEY")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def get_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed ``texts``, one request per ``max_batch_size`` chunk.

        Raises:
            MissingConfigError: If no API key is configured
            SearchError: If a request fails or returns malformed vectors
        """
        if not texts:
            return []
        config = types.EmbedContentConfig(task_type=self.task_type, output_dimensionality=self._dim)
        vectors: List[List[float]] = []
        for batch in self.batches(texts):
            try:
                result = self.client.models.embed_content(model=self.model_name, contents=batch, config=config)
            except MissingConfigError:
                raise
            except Exception as e:
                self.logger.error("Gemini embed_content failed: %s", e, exc_info=True)
                raise SearchError(
                    "Embedding generation failed",
                    model=self.model_name,
                    task_type=self.task_type,
                ) from e
            vectors.extend(list(embedding.values) for embedding in result.embeddings)
        return self.check_vectors(texts, vectors)
