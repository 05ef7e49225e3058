"""
Core value types for stored conversation turns.

- MemoryRole: who produced a turn (user / assistant / system)
- MemoryMetadata: ownership and bookkeeping fields for a turn
- MemoryEntry: one stored turn with optional embedding vector
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .errors import MemoryStoreError


class MemoryRole(str, Enum):
    """Role of the message sender."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"

    @property
    def label(self) -> str:
        """Display label used in formatted context lines ("User", ...)."""
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str) -> "MemoryRole":
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MemoryStoreError(f"Unknown memory role: {value!r}") from None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            ts = datetime.fromisoformat(str(value))
        except ValueError:
            raise MemoryStoreError(f"Malformed timestamp: {value!r}") from None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class MemoryMetadata:
    """Metadata attached to a memory entry."""

    role: MemoryRole
    user_id: Optional[str] = None
    conversation_id: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)
    tokens: Optional[int] = None  # estimated token count
    importance: Optional[float] = None  # 0.0 - 1.0

    def __post_init__(self):
        # Naive timestamps are taken as UTC
        self.timestamp = _parse_timestamp(self.timestamp)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "conversation_id": self.conversation_id,
            "role": self.role.value,
            "timestamp": self.timestamp.isoformat(),
            "tokens": self.tokens,
            "importance": self.importance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryMetadata":
        if "role" not in data:
            raise MemoryStoreError("Metadata is missing 'role'")
        return cls(
            role=MemoryRole.parse(data["role"]),
            user_id=data.get("user_id"),
            conversation_id=data.get("conversation_id"),
            timestamp=_parse_timestamp(data.get("timestamp") or utc_now()),
            tokens=data.get("tokens"),
            importance=data.get("importance"),
        )


@dataclass
class MemoryEntry:
    """A single conversation turn as stored in a memory backend.

    Entries are treated as immutable values: stores and wrappers copy an
    entry (see ``with_conversation``) instead of mutating the caller's object.
    """

    id: uuid.UUID
    content: str
    metadata: MemoryMetadata
    embedding: Optional[list[float]] = None

    @classmethod
    def new(
        cls,
        content: str,
        metadata: MemoryMetadata,
        embedding: Optional[list[float]] = None,
    ) -> "MemoryEntry":
        """Create an entry with a freshly generated id."""
        return cls(id=uuid.uuid4(), content=content, metadata=metadata, embedding=embedding)

    def with_conversation(self, conversation_id: str) -> "MemoryEntry":
        """Return a copy whose metadata is pinned to ``conversation_id``."""
        return replace(
            self,
            metadata=replace(self.metadata, conversation_id=conversation_id),
        )

    def with_embedding(self, embedding: Optional[list[float]]) -> "MemoryEntry":
        return replace(self, embedding=list(embedding) if embedding is not None else None)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "content": self.content,
            "embedding": list(self.embedding) if self.embedding is not None else None,
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryEntry":
        try:
            entry_id = uuid.UUID(str(data["id"]))
            content = data["content"]
            metadata = data["metadata"]
        except (KeyError, ValueError) as e:
            raise MemoryStoreError(f"Malformed memory entry: {e}") from e
        embedding = data.get("embedding")
        return cls(
            id=entry_id,
            content=content if content is not None else "",
            metadata=MemoryMetadata.from_dict(metadata),
            embedding=[float(x) for x in embedding] if embedding is not None else None,
        )
