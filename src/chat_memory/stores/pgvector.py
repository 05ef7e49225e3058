"""
Vector-indexed memory store using PostgreSQL + pgvector.

Embeddings are kept in a ``vector(dim)`` column and searched with pgvector's
distance operators, optionally through an approximate HNSW / IVFFlat index:

  cosine → ``<=>``  similarity = 1 - distance
  l2     → ``<->``  similarity = 1 / (1 + distance)
  dot    → ``<#>``  similarity = inner product (pgvector returns its negation)

Search refinement (``ivfflat.probes`` / ``hnsw.ef_search``) is applied per
query with ``SET LOCAL`` so it never leaks into other pooled sessions.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Sequence

from ..types import MemoryEntry
from .base import ScoredEntry
from .postgres import entry_params, row_to_entry, run_query, validate_table_name

logger = logging.getLogger(__name__)

DISTANCE_OPERATORS = {
    "cosine": "<=>",
    "l2": "<->",
    "dot": "<#>",
}

INDEX_OPCLASSES = {
    "cosine": "vector_cosine_ops",
    "l2": "vector_l2_ops",
    "dot": "vector_ip_ops",
}

INDEX_TYPES = ("hnsw", "ivfflat")

SELECT_COLUMNS = (
    "id, content, embedding::real[] AS embedding, user_id, conversation_id, "
    "role, timestamp, tokens, importance"
)


@dataclass
class PgVectorConfig:
    """Configuration for PgVectorMemoryStore."""

    table_name: str = "memory_entries"
    embedding_dim: int = 1536
    distance_type: str = "cosine"

    # ANN index (None = exact scan)
    index_type: Optional[str] = None
    ivfflat_lists: int = 100

    # Query-time refinement
    ivfflat_probes: Optional[int] = None
    hnsw_ef_search: Optional[int] = None

    def __post_init__(self):
        validate_table_name(self.table_name)
        if self.distance_type not in DISTANCE_OPERATORS:
            raise ValueError(f"Unknown distance type: {self.distance_type!r}")
        if self.index_type is not None and self.index_type not in INDEX_TYPES:
            raise ValueError(f"Unknown index type: {self.index_type!r}")
        if self.embedding_dim <= 0:
            raise ValueError("embedding_dim must be positive")


def distance_to_similarity(distance: float, distance_type: str) -> float:
    """Convert a pgvector distance into a higher-is-better score."""
    if distance_type == "cosine":
        return 1.0 - distance
    if distance_type == "l2":
        return 1.0 / (1.0 + distance)
    return -distance


class PgVectorMemoryStore:
    """``MemoryStore`` with approximate nearest-neighbour search via pgvector."""

    def __init__(self, pool, config: Optional[PgVectorConfig] = None):
        self._pool = pool
        self.config = config or PgVectorConfig()

    @property
    def table_name(self) -> str:
        return self.config.table_name

    async def setup(self):
        """Enable pgvector and create the entries table with lookup indexes."""
        t = self.table_name
        await run_query(self._pool, "CREATE EXTENSION IF NOT EXISTS vector")
        await run_query(self._pool, f"""
            CREATE TABLE IF NOT EXISTS {t} (
                id UUID PRIMARY KEY,
                content TEXT NOT NULL,
                embedding vector({self.config.embedding_dim}),
                user_id TEXT,
                conversation_id TEXT,
                role TEXT NOT NULL,
                timestamp TIMESTAMPTZ NOT NULL,
                tokens INT,
                importance REAL
            )
        """)
        await run_query(self._pool, f"CREATE INDEX IF NOT EXISTS idx_{t}_user ON {t} (user_id)")
        await run_query(
            self._pool,
            f"CREATE INDEX IF NOT EXISTS idx_{t}_conversation ON {t} (conversation_id)",
        )
        await run_query(
            self._pool, f"CREATE INDEX IF NOT EXISTS idx_{t}_timestamp ON {t} (timestamp)"
        )
        if self.config.index_type:
            await self.create_index(self.config.index_type)
        logger.info(
            "pgvector table %s ready (dim=%d, distance=%s)",
            t, self.config.embedding_dim, self.config.distance_type,
        )

    async def create_index(self, index_type: str = "hnsw"):
        """Build the ANN index matching the configured distance metric."""
        if index_type not in INDEX_TYPES:
            raise ValueError(f"Unknown index type: {index_type!r}")
        t = self.table_name
        opclass = INDEX_OPCLASSES[self.config.distance_type]
        with_clause = (
            f" WITH (lists = {int(self.config.ivfflat_lists)})"
            if index_type == "ivfflat" else ""
        )
        await run_query(
            self._pool,
            f"CREATE INDEX IF NOT EXISTS idx_{t}_embedding_{index_type} "
            f"ON {t} USING {index_type} (embedding {opclass}){with_clause}",
        )
        logger.info("Created %s index on %s.embedding (%s)", index_type, t, opclass)

    async def add(self, entry: MemoryEntry) -> None:
        if entry.embedding is not None and len(entry.embedding) != self.config.embedding_dim:
            raise ValueError(
                f"Embedding dimension {len(entry.embedding)} does not match "
                f"configured {self.config.embedding_dim}"
            )
        await run_query(
            self._pool,
            f"""
            INSERT INTO {self.table_name}
                (id, content, embedding, user_id, conversation_id, role, timestamp, tokens, importance)
            VALUES (%(id)s, %(content)s, %(embedding)s::vector, %(user_id)s, %(conversation_id)s,
                    %(role)s, %(timestamp)s, %(tokens)s, %(importance)s)
            ON CONFLICT (id) DO UPDATE SET
                content = EXCLUDED.content,
                embedding = EXCLUDED.embedding,
                user_id = EXCLUDED.user_id,
                conversation_id = EXCLUDED.conversation_id,
                role = EXCLUDED.role,
                timestamp = EXCLUDED.timestamp,
                tokens = EXCLUDED.tokens,
                importance = EXCLUDED.importance
            """,
            entry_params(entry),
        )

    async def get(self, entry_id: uuid.UUID) -> Optional[MemoryEntry]:
        row = await run_query(
            self._pool,
            f"SELECT {SELECT_COLUMNS} FROM {self.table_name} WHERE id = %s",
            (entry_id,),
            fetch="one",
        )
        return row_to_entry(row) if row else None

    async def update(self, entry: MemoryEntry) -> None:
        await self.add(entry)

    async def delete(self, entry_id: uuid.UUID) -> None:
        await run_query(
            self._pool, f"DELETE FROM {self.table_name} WHERE id = %s", (entry_id,)
        )

    async def search_by_user(self, user_id: str) -> list[MemoryEntry]:
        rows = await run_query(
            self._pool,
            f"""
            SELECT {SELECT_COLUMNS} FROM {self.table_name}
            WHERE user_id = %s ORDER BY timestamp DESC
            """,
            (user_id,),
            fetch="all",
        )
        return [row_to_entry(r) for r in rows]

    async def search_by_conversation(self, conversation_id: str) -> list[MemoryEntry]:
        rows = await run_query(
            self._pool,
            f"""
            SELECT {SELECT_COLUMNS} FROM {self.table_name}
            WHERE conversation_id = %s ORDER BY timestamp DESC
            """,
            (conversation_id,),
            fetch="all",
        )
        return [row_to_entry(r) for r in rows]

    async def list_recent(self, limit: int) -> list[MemoryEntry]:
        """Most recent entries across all users and conversations, newest first."""
        rows = await run_query(
            self._pool,
            f"SELECT {SELECT_COLUMNS} FROM {self.table_name} ORDER BY timestamp DESC LIMIT %s",
            (limit,),
            fetch="all",
        )
        return [row_to_entry(r) for r in rows]

    def _search_prelude(self) -> list[str]:
        prelude = []
        if self.config.ivfflat_probes is not None:
            prelude.append(f"SET LOCAL ivfflat.probes = {int(self.config.ivfflat_probes)}")
        if self.config.hnsw_ef_search is not None:
            prelude.append(f"SET LOCAL hnsw.ef_search = {int(self.config.hnsw_ef_search)}")
        return prelude

    async def semantic_search(
        self,
        query_embedding: Sequence[float],
        limit: int,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> list[ScoredEntry]:
        if limit <= 0:
            return []
        op = DISTANCE_OPERATORS[self.config.distance_type]
        vector = list(query_embedding)

        conditions = ["embedding IS NOT NULL"]
        params: list = [vector]
        if user_id is not None:
            conditions.append("user_id = %s")
            params.append(user_id)
        if conversation_id is not None:
            conditions.append("conversation_id = %s")
            params.append(conversation_id)
        params.extend([vector, limit])

        rows = await run_query(
            self._pool,
            f"""
            SELECT {SELECT_COLUMNS}, embedding {op} %s::vector AS distance
            FROM {self.table_name}
            WHERE {' AND '.join(conditions)}
            ORDER BY embedding {op} %s::vector
            LIMIT %s
            """,
            params,
            fetch="all",
            prelude=self._search_prelude(),
        )
        results = [
            (distance_to_similarity(float(r["distance"]), self.config.distance_type), row_to_entry(r))
            for r in rows
        ]
        logger.debug(
            "pgvector search (%s, limit=%d, user=%s, conversation=%s) returned %d",
            self.config.distance_type, limit, user_id, conversation_id, len(results),
        )
        return results
