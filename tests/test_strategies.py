"""
Tests for the context retrieval strategies.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from chat_memory.embedding import EmbeddingService
from chat_memory.errors import EmbeddingError, MemoryStoreError
from chat_memory.stores import InMemoryVectorStore
from chat_memory.strategies import (
    EMPTY,
    MessageCategory,
    Messages,
    Preferences,
    RecentMessagesStrategy,
    SemanticSearchStrategy,
    StoreKind,
    UserPreferencesStrategy,
    extract_preferences,
    format_message,
)
from chat_memory.types import MemoryRole


async def _store_with(*entries):
    store = InMemoryVectorStore()
    for entry in entries:
        await store.add(entry)
    return store


def _embedding_service(vector=None, error=None):
    service = MagicMock()
    service.embed = AsyncMock(return_value=vector or [1.0, 0.0], side_effect=error)
    return service


def _scored_store(pairs=None, error=None):
    store = MagicMock()
    store.semantic_search = AsyncMock(return_value=pairs or [], side_effect=error)
    return store


# ── Helper Tests ──


class TestHelpers:
    def test_format_message_roles(self, make_entry):
        assert format_message(make_entry("hello")) == "User: hello"
        assert format_message(make_entry("hi", role=MemoryRole.ASSISTANT)) == "Assistant: hi"
        assert format_message(make_entry("rules", role=MemoryRole.SYSTEM)) == "System: rules"

    def test_extract_preferences_takes_tail_from_match(self, make_entry):
        prefs = extract_preferences([make_entry("Honestly, I Prefer green tea")])
        assert prefs == ["i prefer green tea"]

    def test_extract_preferences_like_wins_over_prefer(self, make_entry):
        prefs = extract_preferences([make_entry("I prefer tea but I like pizza")])
        assert prefs == ["i like pizza"]

    def test_extract_preferences_ignores_other_content(self, make_entry):
        assert extract_preferences([make_entry("What's the weather?")]) == []


# ── Recent Messages Tests ──


class TestRecentMessagesStrategy:
    def test_store_kind_is_recent(self):
        assert RecentMessagesStrategy(5).store_kind is StoreKind.RECENT

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            RecentMessagesStrategy(-1)

    def test_keeps_most_recent_in_ascending_order(self, make_entry):
        async def scenario():
            store = await _store_with(
                make_entry("m3", minutes=3),
                make_entry("m1", minutes=1),
                make_entry("m5", minutes=5),
                make_entry("m2", minutes=2),
                make_entry("m4", minutes=4),
            )
            return await RecentMessagesStrategy(3).build_context(store, "user123", "conv1")

        result = asyncio.run(scenario())
        assert isinstance(result, Messages)
        assert result.category is MessageCategory.RECENT
        assert list(result.lines) == ["User: m3", "User: m4", "User: m5"]

    def test_drops_empty_content(self, make_entry):
        async def scenario():
            store = await _store_with(
                make_entry("", minutes=2),
                make_entry("kept", minutes=1),
            )
            return await RecentMessagesStrategy(10).build_context(store, None, "conv1")

        assert list(asyncio.run(scenario()).lines) == ["User: kept"]

    def test_conversation_takes_priority_over_user(self, make_entry):
        async def scenario():
            store = await _store_with(
                make_entry("in conv", conversation_id="c1"),
                make_entry("elsewhere", conversation_id="c2", minutes=1),
            )
            return await RecentMessagesStrategy(10).build_context(store, "user123", "c1")

        assert list(asyncio.run(scenario()).lines) == ["User: in conv"]

    def test_falls_back_to_user(self, make_entry):
        async def scenario():
            store = await _store_with(
                make_entry("q", conversation_id="c1"),
                make_entry("a", conversation_id="c2", role=MemoryRole.ASSISTANT, minutes=1),
            )
            return await RecentMessagesStrategy(10).build_context(store, "user123", None)

        assert list(asyncio.run(scenario()).lines) == ["User: q", "Assistant: a"]

    def test_no_ids_returns_empty(self):
        store = InMemoryVectorStore()
        assert asyncio.run(RecentMessagesStrategy(10).build_context(store)) == EMPTY

    def test_store_error_propagates(self):
        store = MagicMock()
        store.search_by_conversation = AsyncMock(side_effect=MemoryStoreError("down"))
        with pytest.raises(MemoryStoreError):
            asyncio.run(RecentMessagesStrategy(10).build_context(store, None, "c1"))


# ── Semantic Search Tests ──


class TestSemanticSearchStrategy:
    def test_store_kind_is_primary(self):
        assert SemanticSearchStrategy(5, _embedding_service()).store_kind is StoreKind.PRIMARY

    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_blank_query_returns_empty(self, query):
        service = _embedding_service()
        store = _scored_store()
        result = asyncio.run(
            SemanticSearchStrategy(5, service).build_context(store, "u1", "c1", query)
        )
        assert result == EMPTY
        service.embed.assert_not_called()
        store.semantic_search.assert_not_called()

    def test_min_score_filters_and_keeps_order(self, make_entry):
        a = make_entry("A")
        b = make_entry("B")
        store = _scored_store([(0.4, a), (0.9, b)])
        strict = SemanticSearchStrategy(5, _embedding_service(), min_score=0.7)
        loose = SemanticSearchStrategy(5, _embedding_service(), min_score=0.0)

        strict_result = asyncio.run(strict.build_context(store, None, "c1", "query"))
        loose_result = asyncio.run(loose.build_context(store, None, "c1", "query"))

        assert strict_result.category is MessageCategory.SEMANTIC
        assert list(strict_result.lines) == ["User: B"]
        assert list(loose_result.lines) == ["User: A", "User: B"]

    def test_passes_vector_limit_and_conversation(self):
        service = _embedding_service([0.3, 0.4])
        store = _scored_store()
        asyncio.run(
            SemanticSearchStrategy(7, service).build_context(store, "u1", "c1", "  tea?  ")
        )
        service.embed.assert_awaited_once_with("tea?")
        store.semantic_search.assert_awaited_once_with([0.3, 0.4], 7, None, "c1")

    def test_embedding_failure_is_soft(self):
        service = _embedding_service(error=EmbeddingError("provider down"))
        store = _scored_store()
        result = asyncio.run(SemanticSearchStrategy(5, service).build_context(store, query="hi"))
        assert result == EMPTY
        store.semantic_search.assert_not_called()

    def test_store_failure_is_hard(self):
        store = _scored_store(error=MemoryStoreError("index unavailable"))
        strategy = SemanticSearchStrategy(5, _embedding_service())
        with pytest.raises(MemoryStoreError):
            asyncio.run(strategy.build_context(store, query="hi"))

    def test_all_below_threshold_gives_empty_messages(self, make_entry):
        store = _scored_store([(0.1, make_entry("A"))])
        result = asyncio.run(
            SemanticSearchStrategy(5, _embedding_service(), min_score=0.5).build_context(
                store, query="hi"
            )
        )
        assert isinstance(result, Messages)
        assert result.lines == ()

    def test_end_to_end_with_fake_embeddings(self, make_entry):
        embeddings = DeterministicFakeEmbedding(size=16)
        service = EmbeddingService(embeddings)

        async def scenario():
            store = InMemoryVectorStore()
            for text in ["I booked a flight to Rome", "The cat sleeps"]:
                vector = await service.embed(text)
                await store.add(make_entry(text, embedding=vector))
            strategy = SemanticSearchStrategy(1, service, min_score=0.99)
            return await strategy.build_context(store, None, "conv1", "I booked a flight to Rome")

        result = asyncio.run(scenario())
        assert list(result.lines) == ["User: I booked a flight to Rome"]


# ── User Preferences Tests ──


class TestUserPreferencesStrategy:
    def test_no_user_returns_empty(self):
        store = MagicMock()
        store.search_by_user = AsyncMock()
        result = asyncio.run(UserPreferencesStrategy().build_context(store, None, "c1"))
        assert result == EMPTY
        store.search_by_user.assert_not_called()

    def test_like_and_prefer_in_one_entry(self, make_entry):
        async def scenario():
            store = await _store_with(make_entry("I like pizza and I prefer tea"))
            return await UserPreferencesStrategy().build_context(store, "user123")

        result = asyncio.run(scenario())
        assert isinstance(result, Preferences)
        assert result.text == "User Preferences: i like pizza and i prefer tea"
        assert "like" in result.text

    def test_joins_across_entries_and_conversations(self, make_entry):
        async def scenario():
            store = await _store_with(
                make_entry("I like jazz", conversation_id="c1"),
                make_entry("Generally I prefer mornings", conversation_id="c2"),
                make_entry("unrelated", conversation_id="c3"),
            )
            return await UserPreferencesStrategy().build_context(store, "user123", "c1")

        text = asyncio.run(scenario()).text
        assert text.startswith("User Preferences: ")
        assert "i like jazz" in text
        assert "i prefer mornings" in text
        assert text.count(", ") == 1

    def test_no_phrases_returns_empty(self, make_entry):
        async def scenario():
            store = await _store_with(make_entry("just chatting"))
            return await UserPreferencesStrategy().build_context(store, "user123")

        assert asyncio.run(scenario()) == EMPTY
