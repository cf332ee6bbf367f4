"""Type aliases for seekql package.

This module provides reusable type definitions to ensure consistency
across the codebase and improve code readability.
"""

from typing import Any, Dict, List

# Raw filter mappings as supplied by applications
Filter = Dict[str, Any]

# A single embedding and a batch of embeddings
Vector = List[float]
Vectors = List[List[float]]

# Rows returned by the SQL execution / hybrid transport collaborators
Row = Dict[str, Any]

# One node of the search descriptor query document
SearchClause = Dict[str, Any]
