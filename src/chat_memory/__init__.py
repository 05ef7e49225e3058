"""
Conversational memory with pluggable context retrieval.

Persists conversation turns in interchangeable async stores and assembles a
size-estimated prompt context for a language model:

- Stores: in-process, PostgreSQL table, PostgreSQL + pgvector index
- ChatScopedStore: pins every access to a single conversation
- Strategies: recent window, semantic search with a score threshold,
  keyword-based user preferences
- ContextBuilder: runs strategies in order and formats the result as a
  prompt string or LangChain chat messages
"""

from .config import MemoryConfig
from .context import Context, ContextBuilder, ContextMetadata
from .embedding import EmbeddingService, create_embedding_service
from .errors import ChatMemoryError, EmbeddingError, MemoryStoreError
from .factory import create_recent_store, create_store, default_strategies, load_config
from .loader import LoadResult, MessageRecord, load
from .middleware import MemoryMiddleware
from .stores import (
    ChatScopedStore,
    InMemoryVectorStore,
    MemoryStore,
    PgVectorConfig,
    PgVectorMemoryStore,
    PostgresMemoryStore,
    get_store,
)
from .strategies import (
    EMPTY,
    ContextStrategy,
    Empty,
    MessageCategory,
    Messages,
    Preferences,
    RecentMessagesStrategy,
    SemanticSearchStrategy,
    StoreKind,
    StrategyResult,
    UserPreferencesStrategy,
)
from .tokens import estimate_tokens
from .types import MemoryEntry, MemoryMetadata, MemoryRole

__all__ = [
    "MemoryConfig",
    "Context",
    "ContextBuilder",
    "ContextMetadata",
    "EmbeddingService",
    "create_embedding_service",
    "ChatMemoryError",
    "EmbeddingError",
    "MemoryStoreError",
    "create_recent_store",
    "create_store",
    "default_strategies",
    "load_config",
    "LoadResult",
    "MessageRecord",
    "load",
    "MemoryMiddleware",
    "ChatScopedStore",
    "InMemoryVectorStore",
    "MemoryStore",
    "PgVectorConfig",
    "PgVectorMemoryStore",
    "PostgresMemoryStore",
    "get_store",
    "EMPTY",
    "ContextStrategy",
    "Empty",
    "MessageCategory",
    "Messages",
    "Preferences",
    "RecentMessagesStrategy",
    "SemanticSearchStrategy",
    "StoreKind",
    "StrategyResult",
    "UserPreferencesStrategy",
    "estimate_tokens",
    "MemoryEntry",
    "MemoryMetadata",
    "MemoryRole",
]
