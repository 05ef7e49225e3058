"""
Assembly helpers: stores and strategies from a MemoryConfig.
"""

import logging
from typing import Optional

from dotenv import load_dotenv

from .config import MemoryConfig
from .embedding import EmbeddingService
from .stores import (
    InMemoryVectorStore,
    MemoryStore,
    PgVectorConfig,
    PgVectorMemoryStore,
    PostgresMemoryStore,
)
from .strategies import (
    ContextStrategy,
    RecentMessagesStrategy,
    SemanticSearchStrategy,
    UserPreferencesStrategy,
)

logger = logging.getLogger(__name__)


def load_config() -> MemoryConfig:
    """Load MemoryConfig from the environment (a local .env file is honoured)."""
    load_dotenv()
    return MemoryConfig.from_env()


def create_store(config: MemoryConfig, pool=None) -> MemoryStore:
    """
    Create the primary memory store.

    PostgreSQL-backed stores need a shared ``psycopg_pool.AsyncConnectionPool``;
    call their ``setup()`` once before use.
    """
    if config.store_type == "memory":
        logger.info("Using in-memory store")
        return InMemoryVectorStore()

    if pool is None:
        raise ValueError(f"store_type {config.store_type!r} requires a connection pool")

    if config.store_type == "postgres":
        logger.info("Using PostgreSQL store (table=%s)", config.table_name)
        return PostgresMemoryStore(pool, table_name=config.table_name)

    pg_config = PgVectorConfig(
        table_name=config.table_name,
        embedding_dim=config.get_embedding_dim(),
        distance_type=config.distance_type,
    )
    logger.info(
        "Using pgvector store (table=%s, dim=%d, distance=%s)",
        pg_config.table_name, pg_config.embedding_dim, pg_config.distance_type,
    )
    return PgVectorMemoryStore(pool, pg_config)


def create_recent_store(config: MemoryConfig, primary: MemoryStore) -> MemoryStore:
    """Store used by recent-message strategies."""
    if config.recent_use_postgres or config.store_type == "memory":
        return primary
    return InMemoryVectorStore()


def default_strategies(
    config: MemoryConfig,
    embedding_service: Optional[EmbeddingService] = None,
) -> list[ContextStrategy]:
    """Recent window, semantic search (when embeddings are available), preferences."""
    strategies: list[ContextStrategy] = [RecentMessagesStrategy(config.recent_limit)]
    if embedding_service is not None:
        strategies.append(
            SemanticSearchStrategy(
                config.relevant_top_k,
                embedding_service,
                min_score=config.semantic_min_score,
            )
        )
    else:
        logger.info("No embedding service configured, semantic search disabled")
    strategies.append(UserPreferencesStrategy())
    return strategies
