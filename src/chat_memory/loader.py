"""
Bulk import of existing chat history into a memory store.

Message records (e.g. rows exported from a bot's message log) are converted
to memory entries, embedded in batches and written to the target store:

  records → batches of ``batch_size`` → embed_batch → store.add per entry

Embedding and store failures propagate; nothing is skipped silently.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from .embedding import EmbeddingService
from .stores.base import MemoryStore
from .types import MemoryEntry, MemoryMetadata, MemoryRole, utc_now

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100

# Message log direction → memory role
DIRECTION_ROLES = {
    "received": MemoryRole.USER,
    "sent": MemoryRole.ASSISTANT,
}


@dataclass
class MessageRecord:
    """One message from a chat log."""

    id: str
    user_id: str
    chat_id: str
    content: str
    direction: str = "received"
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class LoadResult:
    total: int
    loaded: int
    elapsed_secs: float


def convert(record: MessageRecord) -> MemoryEntry:
    """Convert a message record into a memory entry (no embedding yet)."""
    try:
        entry_id = uuid.UUID(str(record.id))
    except ValueError:
        entry_id = uuid.uuid4()
    return MemoryEntry(
        id=entry_id,
        content=record.content,
        metadata=MemoryMetadata(
            role=DIRECTION_ROLES.get(record.direction, MemoryRole.USER),
            user_id=str(record.user_id),
            conversation_id=str(record.chat_id),
            timestamp=record.created_at,
        ),
    )


def _batched(records: list, size: int):
    for start in range(0, len(records), size):
        yield records[start:start + size]


async def load(
    records: Iterable[MessageRecord],
    store: MemoryStore,
    embedding_service: Optional[EmbeddingService] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> LoadResult:
    """
    Load message records into ``store``.

    Args:
        records: Messages to import.
        store: Target memory store.
        embedding_service: When given, every entry is embedded before writing.
        batch_size: Records per embedding request.

    Returns:
        LoadResult with totals and elapsed wall time.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    start = time.monotonic()
    records = list(records)
    total = len(records)
    logger.info("Loading %d messages into memory (batch_size=%d)", total, batch_size)

    loaded = 0
    for batch in _batched(records, batch_size):
        entries = [convert(r) for r in batch]
        if embedding_service is not None:
            vectors = await embedding_service.embed_batch([e.content for e in entries])
            entries = [e.with_embedding(v) for e, v in zip(entries, vectors)]
        for entry in entries:
            await store.add(entry)
            loaded += 1
        logger.info("Progress: %d/%d messages loaded", loaded, total)

    elapsed = time.monotonic() - start
    logger.info("Load completed: total=%d loaded=%d elapsed=%.1fs", total, loaded, elapsed)
    return LoadResult(total=total, loaded=loaded, elapsed_secs=elapsed)
