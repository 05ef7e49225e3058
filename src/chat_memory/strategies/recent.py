"""
Recent messages strategy: a sliding window over the latest turns.
"""

import logging
from typing import Optional

from ..stores.base import MemoryStore
from .base import EMPTY, ContextStrategy, MessageCategory, Messages, StoreKind, StrategyResult
from .utils import format_message

logger = logging.getLogger(__name__)


class RecentMessagesStrategy(ContextStrategy):
    """
    Keep the ``limit`` most recent non-empty turns, oldest first.

    Lookup priority: conversation id, then user id, else Empty.
    """

    name = "RecentMessages"
    store_kind = StoreKind.RECENT

    def __init__(self, limit: int = 10):
        if limit < 0:
            raise ValueError("limit must be >= 0")
        self.limit = limit

    async def build_context(
        self,
        store: MemoryStore,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        query: Optional[str] = None,
    ) -> StrategyResult:
        if conversation_id is not None:
            scope = f"conversation {conversation_id}"
            entries = await store.search_by_conversation(conversation_id)
        elif user_id is not None:
            scope = f"user {user_id}"
            entries = await store.search_by_user(user_id)
        else:
            logger.debug("RecentMessages: no user or conversation id, returning Empty")
            return EMPTY

        entries = [e for e in entries if e.content]
        entries.sort(key=lambda e: e.metadata.timestamp)
        if len(entries) > self.limit:
            entries = entries[len(entries) - self.limit:]

        lines = [format_message(e) for e in entries]
        logger.info("RecentMessages: %d messages for %s (limit=%d)", len(lines), scope, self.limit)
        return Messages(MessageCategory.RECENT, lines)
