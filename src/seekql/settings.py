"""Settings for SeekQL."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class SeekQLSettings(BaseSettings):
    """SeekQL configuration settings."""

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Gemini
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_EMBEDDING_MODEL: str = "gemini-embedding-001"

    # Collection table layout
    TABLE_NAME_PREFIX: str = "c$v1$"
    ID_COLUMN: str = "_id"
    DOCUMENT_COLUMN: str = "document"
    METADATA_COLUMN: str = "metadata"
    EMBEDDING_COLUMN: str = "embedding"

    # Vector settings
    VECTOR_METRIC: str = "cosine"
    VECTOR_SEARCH_LIMIT: int = 10
    DEFAULT_KNN_K: int = 10
    DEFAULT_GET_LIMIT: int = 1000
    DEFAULT_PEEK_LIMIT: int = 10

    LOG_LEVEL: str = "INFO"
    LOG_STATEMENTS: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = SeekQLSettings()
