"""
Relational memory store on a plain PostgreSQL table.

Schema:
  memory_entries(id UUID PK, content, embedding double precision[],
                 user_id, conversation_id, role, timestamp, tokens, importance)

Semantic search is exact: candidate rows matching the filters are loaded and
ranked by cosine similarity in Python. Use ``PgVectorMemoryStore`` when the
table is large enough to need an approximate index.

The store never owns a connection: it borrows one per operation from a
shared ``psycopg_pool.AsyncConnectionPool`` handed in by the caller.
"""

import logging
import re
import uuid
from typing import Any, Optional, Sequence

import psycopg
from psycopg.rows import dict_row

from ..errors import MemoryStoreError
from ..types import MemoryEntry, MemoryMetadata
from .base import ScoredEntry, rank_by_similarity

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ENTRY_COLUMNS = (
    "id, content, embedding, user_id, conversation_id, role, timestamp, tokens, importance"
)


def validate_table_name(name: str) -> str:
    """Table names are interpolated into SQL, so only plain identifiers are allowed."""
    if not _IDENTIFIER_RE.match(name or ""):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


def row_to_entry(row: dict) -> MemoryEntry:
    """Convert a ``dict_row`` result into a MemoryEntry."""
    try:
        return MemoryEntry.from_dict({
            "id": row["id"],
            "content": row["content"],
            "embedding": row.get("embedding"),
            "metadata": {
                "user_id": row.get("user_id"),
                "conversation_id": row.get("conversation_id"),
                "role": row["role"],
                "timestamp": row["timestamp"],
                "tokens": row.get("tokens"),
                "importance": row.get("importance"),
            },
        })
    except KeyError as e:
        raise MemoryStoreError(f"Malformed memory row, missing column {e}") from e


def entry_params(entry: MemoryEntry, embedding: Any = None) -> dict:
    """Named SQL parameters for an INSERT/UPDATE of ``entry``."""
    meta: MemoryMetadata = entry.metadata
    return {
        "id": entry.id,
        "content": entry.content,
        "embedding": embedding if embedding is not None else entry.embedding,
        "user_id": meta.user_id,
        "conversation_id": meta.conversation_id,
        "role": meta.role.value,
        "timestamp": meta.timestamp,
        "tokens": meta.tokens,
        "importance": meta.importance,
    }


async def run_query(
    pool,
    sql: str,
    params: Any = None,
    fetch: Optional[str] = None,
    prelude: Sequence[str] = (),
):
    """
    Execute ``sql`` on a pooled connection and optionally fetch results.

    Args:
        pool: psycopg_pool.AsyncConnectionPool (or compatible).
        fetch: None, "one" or "all".
        prelude: statements run first in the same transaction (e.g. SET LOCAL).

    Driver errors are re-raised as MemoryStoreError.
    """
    try:
        async with pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                for stmt in prelude:
                    await cur.execute(stmt)
                await cur.execute(sql, params)
                if fetch == "one":
                    return await cur.fetchone()
                if fetch == "all":
                    return await cur.fetchall()
                return None
    except psycopg.Error as e:
        logger.error("PostgreSQL memory query failed: %s", e)
        raise MemoryStoreError(f"PostgreSQL memory query failed: {e}") from e


class PostgresMemoryStore:
    """``MemoryStore`` backed by a PostgreSQL table with exact similarity search."""

    def __init__(self, pool, table_name: str = "memory_entries"):
        self._pool = pool
        self.table_name = validate_table_name(table_name)

    async def setup(self):
        """Create the entries table and its lookup indexes."""
        t = self.table_name
        await run_query(self._pool, f"""
            CREATE TABLE IF NOT EXISTS {t} (
                id UUID PRIMARY KEY,
                content TEXT NOT NULL,
                embedding DOUBLE PRECISION[],
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
        logger.info("Memory table %s ready", t)

    async def add(self, entry: MemoryEntry) -> None:
        await run_query(
            self._pool,
            f"""
            INSERT INTO {self.table_name} ({ENTRY_COLUMNS})
            VALUES (%(id)s, %(content)s, %(embedding)s, %(user_id)s, %(conversation_id)s,
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
        logger.debug(
            "Stored entry %s in %s (conversation=%s)",
            entry.id, self.table_name, entry.metadata.conversation_id,
        )

    async def get(self, entry_id: uuid.UUID) -> Optional[MemoryEntry]:
        row = await run_query(
            self._pool,
            f"SELECT {ENTRY_COLUMNS} FROM {self.table_name} WHERE id = %s",
            (entry_id,),
            fetch="one",
        )
        return row_to_entry(row) if row else None

    async def update(self, entry: MemoryEntry) -> None:
        # Full replacement; identical to add for a keyed upsert
        await self.add(entry)

    async def delete(self, entry_id: uuid.UUID) -> None:
        await run_query(
            self._pool, f"DELETE FROM {self.table_name} WHERE id = %s", (entry_id,)
        )

    async def search_by_user(self, user_id: str) -> list[MemoryEntry]:
        rows = await run_query(
            self._pool,
            f"""
            SELECT {ENTRY_COLUMNS} FROM {self.table_name}
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
            SELECT {ENTRY_COLUMNS} FROM {self.table_name}
            WHERE conversation_id = %s ORDER BY timestamp DESC
            """,
            (conversation_id,),
            fetch="all",
        )
        return [row_to_entry(r) for r in rows]

    async def semantic_search(
        self,
        query_embedding: Sequence[float],
        limit: int,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> list[ScoredEntry]:
        conditions = ["embedding IS NOT NULL"]
        params: list = []
        if user_id is not None:
            conditions.append("user_id = %s")
            params.append(user_id)
        if conversation_id is not None:
            conditions.append("conversation_id = %s")
            params.append(conversation_id)
        rows = await run_query(
            self._pool,
            f"SELECT {ENTRY_COLUMNS} FROM {self.table_name} WHERE {' AND '.join(conditions)}",
            params,
            fetch="all",
        )
        results = rank_by_similarity(query_embedding, [row_to_entry(r) for r in rows], limit)
        logger.debug(
            "Exact semantic search over %d rows returned %d (limit=%d)",
            len(rows), len(results), limit,
        )
        return results
