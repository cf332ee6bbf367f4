"""Utility functions for seekql.

Shared helpers for statement builders, the collection facade and result
mapping.
"""

import json
import numbers
import re
from typing import Any, Dict, List, Optional, Sequence, Union

from .exceptions import InvalidParameter
from .settings import settings

_COLLECTION_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


# ===========================================================================
# Vector helpers
# ===========================================================================


def vector_to_string(vector: Sequence[Any]) -> str:
    """Format a numeric vector as the literal ``[v1,v2,...]`` token.

    Only numbers are accepted; the token is inlined into SQL text so anything
    else is rejected.
    """
    parts: List[str] = []
    for i, v in enumerate(vector):
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            raise InvalidParameter("Vector entries must be numeric", index=i, value=v)
        parts.append(str(v))
    return "[" + ",".join(parts) + "]"


def normalize_texts(texts: Union[str, List[str], None]) -> List[str]:
    """Normalize text input to list of strings."""
    if texts is None:
        return []
    return [texts] if isinstance(texts, str) else list(texts)


def normalize_vectors(vectors: Union[Sequence[float], Sequence[Sequence[float]], None]) -> List[List[float]]:
    """Normalize a single vector or a batch of vectors to a list of vectors."""
    if not vectors:
        return []
    first = vectors[0]
    if isinstance(first, numbers.Real):
        return [list(vectors)]  # type: ignore[arg-type]
    return [list(v) for v in vectors]  # type: ignore[union-attr]


# ===========================================================================
# Table naming
# ===========================================================================


def get_table_name(collection_name: str) -> str:
    """Return the database table name for a collection."""
    if not collection_name or not _COLLECTION_NAME_RE.match(collection_name):
        raise InvalidParameter("Invalid collection name", collection_name=collection_name)
    return settings.TABLE_NAME_PREFIX + collection_name


def quote_table(table_name: str) -> str:
    """Quote a table name with backticks (table names contain ``$``)."""
    return "`" + table_name.replace("`", "``") + "`"


# ===========================================================================
# Row helpers
# ===========================================================================


def lookup_column(row: Dict[str, Any], *aliases: str) -> Any:
    """Return the first non-missing column among ``aliases``, case-insensitively.

    Hybrid search rows carry different column names depending on which
    sub-search surfaced them, so lookups must tolerate both case and alias.
    """
    lowered = {str(k).lower(): v for k, v in row.items()}
    for alias in aliases:
        key = alias.lower()
        if key in lowered:
            return lowered[key]
    return None


def to_str(value: Any) -> str:
    """Convert a column value to text ('' for NULL)."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def to_float(value: Any) -> float:
    """Convert a column value to float (0.0 for NULL or unparsable text)."""
    if value is None:
        return 0.0
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    if isinstance(value, numbers.Real):
        return float(value)
    return 0.0


def parse_json_column(value: Any) -> Any:
    """Decode a JSON-encoded column, passing through already-decoded values."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        if not value:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, ValueError):
            return None
    return value


def parse_metadata(value: Any) -> Dict[str, Any]:
    parsed = parse_json_column(value)
    return parsed if isinstance(parsed, dict) else {}


def parse_embedding(value: Any) -> Optional[List[float]]:
    parsed = parse_json_column(value)
    if isinstance(parsed, list):
        return [float(x) for x in parsed]
    return None

