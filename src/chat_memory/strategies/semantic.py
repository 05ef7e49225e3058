"""
Semantic search strategy: embed the query and retrieve similar past turns.

Embedding failures degrade to Empty (semantic recall is an optional
enrichment); store failures propagate and abort the context build.
"""

import logging
from typing import Optional

from ..embedding import EmbeddingService
from ..stores.base import MemoryStore
from .base import EMPTY, ContextStrategy, MessageCategory, Messages, StrategyResult
from .utils import format_message

logger = logging.getLogger(__name__)


class SemanticSearchStrategy(ContextStrategy):
    """Retrieve up to ``limit`` entries whose similarity is >= ``min_score``."""

    name = "SemanticSearch"

    def __init__(
        self,
        limit: int,
        embedding_service: EmbeddingService,
        min_score: float = 0.0,
    ):
        self.limit = limit
        self.embedding_service = embedding_service
        self.min_score = min_score

    async def build_context(
        self,
        store: MemoryStore,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        query: Optional[str] = None,
    ) -> StrategyResult:
        query_text = (query or "").strip()
        if not query_text:
            logger.debug("SemanticSearch: no query text, skipping")
            return EMPTY

        try:
            query_embedding = await self.embedding_service.embed(query_text)
        except Exception as e:
            logger.warning("SemanticSearch: embedding failed, skipping semantic search: %s", e)
            return EMPTY

        scored = await store.semantic_search(
            query_embedding, self.limit, None, conversation_id
        )

        if scored:
            scores = [s for s, _ in scored]
            logger.info(
                "SemanticSearch: %d candidates, score min=%.3f mean=%.3f max=%.3f",
                len(scores), min(scores), sum(scores) / len(scores), max(scores),
            )

        kept = [entry for score, entry in scored if score >= self.min_score]
        if scored and not kept:
            logger.warning(
                "SemanticSearch: all %d results below min_score %.3f",
                len(scored), self.min_score,
            )

        lines = [format_message(e) for e in kept]
        logger.info(
            "SemanticSearch: %d messages for query (%d chars, limit=%d)",
            len(lines), len(query_text), self.limit,
        )
        return Messages(MessageCategory.SEMANTIC, lines)
