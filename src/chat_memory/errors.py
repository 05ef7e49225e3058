"""
Exceptions raised by the conversational memory package.

Backend failures are always raised, never reported as an empty result,
so callers can tell a broken store apart from "nothing found".
"""


class ChatMemoryError(Exception):
    """Base class for all chat_memory errors."""


class MemoryStoreError(ChatMemoryError):
    """A storage backend failed (connectivity, malformed rows, ...)."""


class EmbeddingError(ChatMemoryError):
    """The embedding provider failed to produce a vector."""
