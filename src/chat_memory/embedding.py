"""
Embedding provider used by semantic retrieval and bulk loading.

Wraps any LangChain ``Embeddings`` implementation (OpenAI-compatible APIs in
production, fake embeddings in tests) behind two coroutines:

  embed(text)         → one vector
  embed_batch(texts)  → one vector per text, same order

Provider failures are raised as ``EmbeddingError``.
"""

import logging
from typing import Optional

from langchain_core.embeddings import Embeddings

from .config import MemoryConfig
from .errors import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Async embedding facade over a LangChain embeddings model."""

    def __init__(self, model: Embeddings):
        self._model = model

    async def embed(self, text: str) -> list[float]:
        try:
            vector = await self._model.aembed_query(text)
        except Exception as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        logger.debug("Embedded query (%d chars) into %d dimensions", len(text), len(vector))
        return list(vector)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            vectors = await self._model.aembed_documents(list(texts))
        except Exception as e:
            raise EmbeddingError(f"Batch embedding request failed: {e}") from e
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Provider returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return [list(v) for v in vectors]


def create_embedding_service(
    config: MemoryConfig,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> EmbeddingService:
    """
    Create an embedding service for an OpenAI-compatible embeddings API.

    Credentials: dedicated MEMORY_EMBEDDING_* config values > explicit args.
    """
    from langchain_openai import OpenAIEmbeddings

    embed_api_key = config.embedding_api_key or api_key
    embed_base_url = config.embedding_base_url or base_url

    embed_kwargs = {}
    if embed_api_key:
        embed_kwargs["api_key"] = embed_api_key
    if embed_base_url:
        embed_kwargs["base_url"] = embed_base_url
    if config.embedding_dim > 0 and config.embedding_model.startswith("text-embedding-3"):
        embed_kwargs["dimensions"] = config.embedding_dim

    model = OpenAIEmbeddings(model=config.embedding_model, **embed_kwargs)
    logger.info("Embedding service ready (model=%s)", config.embedding_model)
    return EmbeddingService(model)
