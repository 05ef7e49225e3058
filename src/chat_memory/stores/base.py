"""
Storage contract shared by every memory backend.

Backends (in-process, PostgreSQL table, pgvector index) implement the same
coroutine methods and are used interchangeably through ``MemoryStore``.
"""

import math
import uuid
from typing import Optional, Protocol, Sequence, runtime_checkable

from ..types import MemoryEntry

ScoredEntry = tuple[float, MemoryEntry]


@runtime_checkable
class MemoryStore(Protocol):
    """Async CRUD + search capability over memory entries.

    - ``add`` / ``update`` upsert by ``entry.id``
    - ``get`` returns None when absent; ``delete`` ignores absent ids
    - search results are in backend-defined order; re-sort if order matters
    - ``semantic_search`` returns at most ``limit`` (score, entry) pairs,
      highest score first

    Backend failures raise ``MemoryStoreError``.
    """

    async def add(self, entry: MemoryEntry) -> None: ...

    async def get(self, entry_id: uuid.UUID) -> Optional[MemoryEntry]: ...

    async def update(self, entry: MemoryEntry) -> None: ...

    async def delete(self, entry_id: uuid.UUID) -> None: ...

    async def search_by_user(self, user_id: str) -> list[MemoryEntry]: ...

    async def search_by_conversation(self, conversation_id: str) -> list[MemoryEntry]: ...

    async def semantic_search(
        self,
        query_embedding: Sequence[float],
        limit: int,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> list[ScoredEntry]: ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; 0.0 for empty or zero-norm vectors."""
    if not a or not b:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def matches_filters(
    entry: MemoryEntry,
    user_id: Optional[str],
    conversation_id: Optional[str],
) -> bool:
    """True if the entry satisfies the optional user / conversation filters."""
    if user_id is not None and entry.metadata.user_id != user_id:
        return False
    if conversation_id is not None and entry.metadata.conversation_id != conversation_id:
        return False
    return True


def rank_by_similarity(
    query_embedding: Sequence[float],
    entries,
    limit: int,
) -> list[ScoredEntry]:
    """Exact cosine ranking of entries that carry an embedding."""
    scored = [
        (cosine_similarity(query_embedding, entry.embedding), entry)
        for entry in entries
        if entry.embedding is not None
    ]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return scored[: max(limit, 0)]
