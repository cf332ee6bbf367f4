"""OpenAI embedding adapter for query-time text embedding."""

from typing import Any, Dict, List, Optional

from openai import OpenAI

from seekql.abc import EmbeddingAdapter
from seekql.exceptions import InvalidParameter, MissingConfigError, SearchError
from seekql.settings import settings


class OpenAIEmbeddingAdapter(EmbeddingAdapter):
    """Embed query texts with the OpenAI embeddings endpoint.

    ``dim`` defaults to the model's native size. The ``text-embedding-3``
    family can be shortened server-side, so a smaller ``dim`` is sent as the
    ``dimensions`` request parameter; ada-002 only produces its native size.
    """

    _NATIVE_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }
    _SHORTENABLE = ("text-embedding-3-small", "text-embedding-3-large")

    # Inputs accepted by one embeddings request
    max_batch_size = 2048

    def __init__(self, model_name: Optional[str] = None, dim: Optional[int] = None) -> None:
        model_name = model_name or settings.OPENAI_EMBEDDING_MODEL
        native = self._NATIVE_DIMENSIONS.get(model_name)
        if native is None:
            raise InvalidParameter(
                "Unknown embedding dimension",
                model_name=model_name,
                expected=sorted(self._NATIVE_DIMENSIONS),
            )
        if dim is not None and dim != native:
            if model_name not in self._SHORTENABLE or not 0 < dim < native:
                raise InvalidParameter(
                    "Unsupported dim for embedding model",
                    model_name=model_name,
                    dim=dim,
                    native=native,
                )
        super().__init__(model_name=model_name, dim=dim or native)
        self._native_dim = native
        self._client: Optional[OpenAI] = None
        self.logger.message("OpenAI embeddings: model=%s dim=%d", model_name, self._dim)

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise MissingConfigError("API key not configured", config_key="OPENAI_API_KEY")
            self._client = OpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    def _request_params(self, batch: List[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {"input": [text.replace("\n", " ") for text in batch], "model": self.model_name}
        if self._dim != self._native_dim:
            params["dimensions"] = self._dim
        return params

    def get_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed ``texts`` in as few requests as the provider allows.

        Raises:
            MissingConfigError: If no API key is configured
            SearchError: If the request fails or returns malformed vectors
        """
        if not texts:
            return []
        vectors: List[List[float]] = []
        for batch in self.batches(texts):
            try:
                response = self.client.embeddings.create(**self._request_params(batch))
            except MissingConfigError:
                raise
            except Exception as e:
                self.logger.error("OpenAI embeddings request failed: %s", e, exc_info=True)
                raise SearchError("Embedding generation failed", model=self.model_name, batch_size=len(batch)) from e
            vectors.extend(list(item.embedding) for item in response.data)
        return self.check_vectors(texts, vectors)
