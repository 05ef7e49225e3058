"""
Context retrieval strategies.

- RecentMessagesStrategy: latest turns of a conversation (or user)
- SemanticSearchStrategy: embedding similarity search with a score threshold
- UserPreferencesStrategy: "i like" / "i prefer" extraction from user history
"""

from .base import (
    EMPTY,
    ContextStrategy,
    Empty,
    MessageCategory,
    Messages,
    Preferences,
    StoreKind,
    StrategyResult,
)
from .preferences import UserPreferencesStrategy
from .recent import RecentMessagesStrategy
from .semantic import SemanticSearchStrategy
from .utils import extract_preferences, format_message

__all__ = [
    "EMPTY",
    "ContextStrategy",
    "Empty",
    "MessageCategory",
    "Messages",
    "Preferences",
    "StoreKind",
    "StrategyResult",
    "RecentMessagesStrategy",
    "SemanticSearchStrategy",
    "UserPreferencesStrategy",
    "extract_preferences",
    "format_message",
]
