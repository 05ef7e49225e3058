"""
In-process memory store for development, tests and short-lived recent history.

Entries live in a dict keyed by id; semantic search is an exact cosine scan.
"""

import asyncio
import logging
import uuid
from typing import Optional, Sequence

from ..types import MemoryEntry
from .base import ScoredEntry, matches_filters, rank_by_similarity

logger = logging.getLogger(__name__)


class InMemoryVectorStore:
    """Dict-backed ``MemoryStore``. Safe to share between tasks of one event loop."""

    def __init__(self):
        self._entries: dict[uuid.UUID, MemoryEntry] = {}
        self._lock = asyncio.Lock()

    async def len(self) -> int:
        async with self._lock:
            return len(self._entries)

    async def is_empty(self) -> bool:
        return await self.len() == 0

    async def clear(self):
        async with self._lock:
            self._entries.clear()

    async def add(self, entry: MemoryEntry) -> None:
        async with self._lock:
            self._entries[entry.id] = entry
        logger.debug(
            "Stored entry %s (user=%s, conversation=%s, role=%s, embedding=%s)",
            entry.id,
            entry.metadata.user_id,
            entry.metadata.conversation_id,
            entry.metadata.role.value,
            entry.embedding is not None,
        )

    async def get(self, entry_id: uuid.UUID) -> Optional[MemoryEntry]:
        async with self._lock:
            return self._entries.get(entry_id)

    async def update(self, entry: MemoryEntry) -> None:
        async with self._lock:
            self._entries[entry.id] = entry

    async def delete(self, entry_id: uuid.UUID) -> None:
        async with self._lock:
            self._entries.pop(entry_id, None)

    async def search_by_user(self, user_id: str) -> list[MemoryEntry]:
        async with self._lock:
            results = [e for e in self._entries.values() if e.metadata.user_id == user_id]
        logger.debug("search_by_user(%s) returned %d entries", user_id, len(results))
        return results

    async def search_by_conversation(self, conversation_id: str) -> list[MemoryEntry]:
        async with self._lock:
            results = [
                e for e in self._entries.values()
                if e.metadata.conversation_id == conversation_id
            ]
        logger.debug(
            "search_by_conversation(%s) returned %d entries", conversation_id, len(results)
        )
        return results

    async def semantic_search(
        self,
        query_embedding: Sequence[float],
        limit: int,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> list[ScoredEntry]:
        async with self._lock:
            candidates = [
                e for e in self._entries.values()
                if matches_filters(e, user_id, conversation_id)
            ]
        results = rank_by_similarity(query_embedding, candidates, limit)
        logger.debug(
            "semantic_search(dim=%d, limit=%d, user=%s, conversation=%s) returned %d",
            len(query_embedding), limit, user_id, conversation_id, len(results),
        )
        return results
