"""
Memory store backends.

All backends satisfy the ``MemoryStore`` protocol:
- InMemoryVectorStore: in-process dict, exact cosine search
- PostgresMemoryStore: PostgreSQL table, exact cosine search
- PgVectorMemoryStore: PostgreSQL + pgvector, indexed distance search

``ChatScopedStore`` / ``get_store`` wrap any of them to isolate one conversation.
"""

from .base import MemoryStore, ScoredEntry, cosine_similarity
from .inmemory import InMemoryVectorStore
from .pgvector import PgVectorConfig, PgVectorMemoryStore
from .postgres import PostgresMemoryStore
from .scoped import ChatScopedStore, get_store

__all__ = [
    "MemoryStore",
    "ScoredEntry",
    "cosine_similarity",
    "InMemoryVectorStore",
    "PostgresMemoryStore",
    "PgVectorConfig",
    "PgVectorMemoryStore",
    "ChatScopedStore",
    "get_store",
]
