"""
Chat-scoped view of a memory store.

Pins writes, conversation lookups and semantic searches to one conversation
so that tools and agents holding the view cannot read or write other chats.
User-scoped queries and id-keyed operations pass through untouched.
"""

import uuid
from typing import Optional, Sequence

from ..types import MemoryEntry
from .base import MemoryStore, ScoredEntry


class ChatScopedStore:
    """``MemoryStore`` wrapper fixed to a single conversation id."""

    def __init__(self, inner: MemoryStore, chat_id: str):
        self._inner = inner
        self._chat_id = chat_id

    @property
    def chat_id(self) -> str:
        return self._chat_id

    @property
    def inner(self) -> MemoryStore:
        return self._inner

    async def add(self, entry: MemoryEntry) -> None:
        await self._inner.add(entry.with_conversation(self._chat_id))

    async def get(self, entry_id: uuid.UUID) -> Optional[MemoryEntry]:
        return await self._inner.get(entry_id)

    async def update(self, entry: MemoryEntry) -> None:
        await self._inner.update(entry.with_conversation(self._chat_id))

    async def delete(self, entry_id: uuid.UUID) -> None:
        await self._inner.delete(entry_id)

    async def search_by_user(self, user_id: str) -> list[MemoryEntry]:
        return await self._inner.search_by_user(user_id)

    async def search_by_conversation(self, conversation_id: str) -> list[MemoryEntry]:
        # Always the pinned chat, whatever id is passed
        return await self._inner.search_by_conversation(self._chat_id)

    async def semantic_search(
        self,
        query_embedding: Sequence[float],
        limit: int,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> list[ScoredEntry]:
        return await self._inner.semantic_search(
            query_embedding, limit, user_id, self._chat_id
        )


def get_store(inner: MemoryStore, chat_id: str) -> MemoryStore:
    """Return a view of ``inner`` restricted to ``chat_id``."""
    return ChatScopedStore(inner, chat_id)
