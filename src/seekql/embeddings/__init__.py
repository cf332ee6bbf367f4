from .gemini import GeminiEmbeddingAdapter
from .openai import OpenAIEmbeddingAdapter

__all__ = ("OpenAIEmbeddingAdapter", "GeminiEmbeddingAdapter")
