"""
Memory middleware for a chat handler pipeline.

Sits around the model call of a message handler:

- before():  persist the incoming user turn (role User)
- prepare_messages(): build the conversation context and return the
  chat-model messages [System] + [context block] + question
- after():   persist the assistant reply (role Assistant)

Turns are written to the primary store immediately as they are observed.
Persistence failures are logged and never block the reply; context build
failures propagate to the handler.
"""

import logging
from typing import Optional, Sequence

from langchain_core.messages import BaseMessage

from .config import MemoryConfig
from .context import Context, ContextBuilder
from .stores.base import MemoryStore
from .stores.scoped import get_store
from .strategies.base import ContextStrategy
from .tokens import estimate_tokens
from .types import MemoryEntry, MemoryMetadata, MemoryRole

logger = logging.getLogger(__name__)


class MemoryMiddleware:
    """
    Conversation memory middleware.

    Usage:
        middleware = MemoryMiddleware(store, config, strategies)
        await middleware.before(user_id, chat_id, text)
        messages = await middleware.prepare_messages(user_id, chat_id, text)
        reply = await llm.ainvoke(messages)
        await middleware.after(user_id, chat_id, reply.content)
    """

    def __init__(
        self,
        store: MemoryStore,
        config: Optional[MemoryConfig] = None,
        strategies: Sequence[ContextStrategy] = (),
        recent_store: Optional[MemoryStore] = None,
        system_message: Optional[str] = None,
    ):
        self.store = store
        self.config = config or MemoryConfig()
        self.strategies = list(strategies)
        self.recent_store = recent_store
        self.system_message = system_message

    def _make_entry(
        self, user_id: str, conversation_id: str, text: str, role: MemoryRole
    ) -> MemoryEntry:
        metadata = MemoryMetadata(
            role=role,
            user_id=user_id,
            conversation_id=conversation_id,
            tokens=estimate_tokens(text),
        )
        return MemoryEntry.new(text, metadata)

    async def _save(self, entry: MemoryEntry, what: str) -> Optional[MemoryEntry]:
        """Write to the primary store, then the recent store.

        Returns the entry when the primary write succeeded; a recent-store
        failure is logged on its own and does not undo the primary write.
        """
        try:
            await self.store.add(entry)
        except Exception as e:
            logger.error("Failed to save %s to primary memory store: %s", what, e)
            return None
        if self.recent_store is not None and self.recent_store is not self.store:
            try:
                await self.recent_store.add(entry)
            except Exception as e:
                logger.error("Failed to save %s to recent memory store: %s", what, e)
        logger.info(
            "Saved %s %s (user=%s, conversation=%s)",
            what, entry.id, entry.metadata.user_id, entry.metadata.conversation_id,
        )
        return entry

    async def before(
        self, user_id: str, conversation_id: str, text: str
    ) -> Optional[MemoryEntry]:
        """Persist the incoming user message. Returns the stored entry, if any."""
        if not self.config.save_user_messages:
            logger.debug("save_user_messages disabled, skipping user message")
            return None
        entry = self._make_entry(user_id, conversation_id, text, MemoryRole.USER)
        return await self._save(entry, "user message")

    async def after(
        self, user_id: str, conversation_id: str, reply: Optional[str]
    ) -> Optional[MemoryEntry]:
        """Persist the assistant reply. Empty replies are not stored."""
        if not self.config.save_ai_responses or not reply:
            return None
        entry = self._make_entry(user_id, conversation_id, reply, MemoryRole.ASSISTANT)
        return await self._save(entry, "assistant reply")

    async def build_context(
        self, user_id: str, conversation_id: str, query: Optional[str] = None
    ) -> Context:
        """Build the context for one request, isolated to ``conversation_id``."""
        builder = ContextBuilder(get_store(self.store, conversation_id))
        if self.recent_store is not None:
            builder.with_recent_store(get_store(self.recent_store, conversation_id))
        for strategy in self.strategies:
            builder.with_strategy(strategy)
        builder.with_token_limit(self.config.context_token_limit)
        builder.for_user(user_id).for_conversation(conversation_id)
        if query:
            builder.with_query(query)
        if self.system_message:
            builder.with_system_message(self.system_message)
        return await builder.build()

    async def prepare_messages(
        self, user_id: str, conversation_id: str, question: str
    ) -> list[BaseMessage]:
        """Build context and return the model messages for ``question``."""
        context = await self.build_context(user_id, conversation_id, question)
        if context.exceeds_limit(self.config.context_token_limit):
            logger.warning(
                "Context for conversation %s is ~%d tokens, over the %d limit",
                conversation_id,
                context.metadata.total_tokens,
                self.config.context_token_limit,
            )
        return context.to_messages(True, question)
