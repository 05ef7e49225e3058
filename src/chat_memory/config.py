"""
Memory configuration and embedding model dimension mappings.
"""

import os
from dataclasses import dataclass

# Embedding model → vector dimension
EMBEDDING_DIMENSIONS: dict[str, int] = {
    # OpenAI
    "text-embedding-3-large": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-ada-002": 1536,
    # Zhipu (BigModel)
    "embedding-3": 2048,
    "embedding-2": 1024,
}

DEFAULT_EMBEDDING_DIM = 1536

STORE_TYPES = ("memory", "postgres", "pgvector")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def embedding_dim_for_model(model_name: str) -> int:
    """Resolve the vector size of an embedding model by name."""
    if model_name in EMBEDDING_DIMENSIONS:
        return EMBEDDING_DIMENSIONS[model_name]
    # embedding-3-xxx variants share the base dimension
    for key, dim in EMBEDDING_DIMENSIONS.items():
        if model_name.startswith(key):
            return dim
    return DEFAULT_EMBEDDING_DIM


@dataclass
class MemoryConfig:
    """Configuration for memory storage and context retrieval."""

    # Backend: "memory" (in-process), "postgres" (table), "pgvector" (indexed)
    store_type: str = "memory"
    database_url: str = ""
    table_name: str = "memory_entries"
    distance_type: str = "cosine"

    # Recent-message strategies read from the primary store when true,
    # otherwise from a separate in-process store
    recent_use_postgres: bool = False

    # Retrieval
    recent_limit: int = 10
    relevant_top_k: int = 5
    semantic_min_score: float = 0.0

    # Advisory size limit reported on built contexts
    context_token_limit: int = 4096

    # Embeddings
    embedding_model: str = "text-embedding-3-small"
    embedding_base_url: str = ""
    embedding_api_key: str = ""
    embedding_dim: int = 0  # 0 = derive from embedding_model

    # Turn persistence
    save_user_messages: bool = True
    save_ai_responses: bool = True

    def __post_init__(self):
        if self.store_type not in STORE_TYPES:
            raise ValueError(
                f"Unknown store type {self.store_type!r}, expected one of {STORE_TYPES}"
            )

    @classmethod
    def from_env(cls) -> "MemoryConfig":
        """Load configuration from environment variables."""
        return cls(
            store_type=os.getenv("MEMORY_STORE_TYPE", "memory").lower(),
            database_url=os.getenv("DATABASE_URL", ""),
            table_name=os.getenv("MEMORY_TABLE_NAME", "memory_entries"),
            distance_type=os.getenv("MEMORY_DISTANCE_TYPE", "cosine").lower(),
            recent_use_postgres=_env_bool("MEMORY_RECENT_USE_POSTGRES", "false"),
            recent_limit=int(os.getenv("MEMORY_RECENT_LIMIT", "10")),
            relevant_top_k=int(os.getenv("MEMORY_RELEVANT_TOP_K", "5")),
            semantic_min_score=float(os.getenv("MEMORY_SEMANTIC_MIN_SCORE", "0.0")),
            context_token_limit=int(os.getenv("MEMORY_CONTEXT_TOKEN_LIMIT", "4096")),
            embedding_model=os.getenv("MEMORY_EMBEDDING_MODEL", "text-embedding-3-small"),
            embedding_base_url=os.getenv("MEMORY_EMBEDDING_BASE_URL", ""),
            embedding_api_key=os.getenv("MEMORY_EMBEDDING_API_KEY", ""),
            embedding_dim=int(os.getenv("MEMORY_EMBEDDING_DIM", "0")),
            save_user_messages=_env_bool("MEMORY_SAVE_USER_MESSAGES", "true"),
            save_ai_responses=_env_bool("MEMORY_SAVE_AI_RESPONSES", "true"),
        )

    def get_embedding_dim(self) -> int:
        """Resolve embedding dimension from config or model name."""
        if self.embedding_dim > 0:
            return self.embedding_dim
        return embedding_dim_for_model(self.embedding_model)
