"""
Context builder: runs retrieval strategies and assembles a Context.

Usage:
    context = await (
        ContextBuilder(store)
        .with_strategy(RecentMessagesStrategy(10))
        .with_strategy(SemanticSearchStrategy(5, embeddings, min_score=0.7))
        .with_strategy(UserPreferencesStrategy())
        .with_token_limit(4096)
        .for_user("u1")
        .for_conversation("c1")
        .with_query("what did we decide about the trip?")
        .build()
    )
    messages = context.to_messages(True, "what did we decide about the trip?")

Strategies run one after another in registration order. A failing strategy
aborts the build with its original exception.
"""

import logging
from typing import Optional

from ..stores.base import MemoryStore
from ..strategies.base import (
    ContextStrategy,
    Empty,
    MessageCategory,
    Messages,
    Preferences,
    StoreKind,
    StrategyResult,
)
from ..tokens import estimate_total_tokens
from ..types import utc_now
from .types import Context, ContextMetadata

logger = logging.getLogger(__name__)


class ContextBuilder:
    """Fluent builder for a token-estimated prompt context."""

    def __init__(self, store: MemoryStore):
        self.store = store
        self.recent_store: Optional[MemoryStore] = None
        self.strategies: list[ContextStrategy] = []
        self.token_limit: Optional[int] = None
        self.user_id: Optional[str] = None
        self.conversation_id: Optional[str] = None
        self.query: Optional[str] = None
        self.system_message: Optional[str] = None

    def with_recent_store(self, recent_store: MemoryStore) -> "ContextBuilder":
        self.recent_store = recent_store
        return self

    def with_strategy(self, strategy: ContextStrategy) -> "ContextBuilder":
        self.strategies.append(strategy)
        return self

    def with_token_limit(self, limit: int) -> "ContextBuilder":
        self.token_limit = limit
        return self

    def for_user(self, user_id: str) -> "ContextBuilder":
        self.user_id = user_id
        return self

    def for_conversation(self, conversation_id: str) -> "ContextBuilder":
        self.conversation_id = conversation_id
        return self

    def with_query(self, query: str) -> "ContextBuilder":
        self.query = query
        return self

    def with_system_message(self, message: str) -> "ContextBuilder":
        self.system_message = message
        return self

    def _store_for(self, strategy: ContextStrategy) -> MemoryStore:
        if strategy.store_kind == StoreKind.RECENT and self.recent_store is not None:
            return self.recent_store
        return self.store

    async def build(self) -> Context:
        logger.debug(
            "Building context (user=%s, conversation=%s, strategies=%d)",
            self.user_id, self.conversation_id, len(self.strategies),
        )
        recent: list[str] = []
        semantic: list[str] = []
        preferences: Optional[str] = None

        for index, strategy in enumerate(self.strategies):
            logger.info("Executing context strategy #%d %s", index, strategy.name)
            try:
                result = await strategy.build_context(
                    self._store_for(strategy),
                    self.user_id,
                    self.conversation_id,
                    self.query,
                )
            except Exception as e:
                logger.error(
                    "Context build: strategy #%d %s failed: %s", index, strategy.name, e
                )
                raise
            preferences = _apply_result(
                strategy, index, result, recent, semantic, preferences
            )

        total_tokens = estimate_total_tokens(
            recent, semantic, extra=(self.system_message, preferences)
        )
        metadata = ContextMetadata(
            user_id=self.user_id,
            conversation_id=self.conversation_id,
            total_tokens=total_tokens,
            message_count=len(recent) + len(semantic),
            created_at=utc_now(),
        )
        logger.info(
            "Context built: %d recent, %d semantic, preferences=%s, ~%d tokens",
            len(recent), len(semantic), preferences is not None, total_tokens,
        )
        if self.token_limit is not None and total_tokens > self.token_limit:
            logger.info(
                "Context estimate %d exceeds token limit %d (not truncated)",
                total_tokens, self.token_limit,
            )
        _log_context_detail(recent, semantic, preferences)

        return Context(
            system_message=self.system_message,
            recent_messages=tuple(recent),
            semantic_messages=tuple(semantic),
            user_preferences=preferences,
            metadata=metadata,
        )


def _apply_result(
    strategy: ContextStrategy,
    index: int,
    result: StrategyResult,
    recent: list[str],
    semantic: list[str],
    preferences: Optional[str],
) -> Optional[str]:
    """Merge one strategy result into the accumulators; returns the preferences value."""
    if isinstance(result, Messages):
        target = recent if result.category == MessageCategory.RECENT else semantic
        target.extend(result.lines)
        logger.info(
            "Strategy #%d %s returned %d %s messages",
            index, strategy.name, len(result.lines), result.category.value,
        )
        return preferences
    if isinstance(result, Preferences):
        logger.info("Strategy #%d %s returned user preferences", index, strategy.name)
        return result.text
    if isinstance(result, Empty):
        logger.info("Strategy #%d %s returned Empty", index, strategy.name)
        return preferences
    raise TypeError(f"Strategy {strategy.name} returned unsupported result {result!r}")


def _log_context_detail(recent: list[str], semantic: list[str], preferences: Optional[str]):
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for i, line in enumerate(recent):
        logger.debug("recent[%d]: %s", i, line)
    for i, line in enumerate(semantic):
        logger.debug("semantic[%d]: %s", i, line)
    logger.debug("preferences: %s", preferences if preferences is not None else "(none)")
