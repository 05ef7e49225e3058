"""
Shared pytest setup.

Puts ``src/`` on the import path so tests run against the source tree
without installing the package, and provides entry factories.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from chat_memory.types import MemoryEntry, MemoryMetadata, MemoryRole  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_entry():
    """Factory: make_entry("hello", user_id="u1", minutes=3, role=MemoryRole.ASSISTANT)."""

    def _make(
        content: str,
        user_id="user123",
        conversation_id="conv1",
        role: MemoryRole = MemoryRole.USER,
        minutes: int = 0,
        embedding=None,
    ) -> MemoryEntry:
        metadata = MemoryMetadata(
            role=role,
            user_id=user_id,
            conversation_id=conversation_id,
            timestamp=BASE_TIME + timedelta(minutes=minutes),
        )
        return MemoryEntry.new(content, metadata, embedding=embedding)

    return _make
