"""
User preferences strategy: keyword scan of a user's history.
"""

import logging
from typing import Optional

from ..stores.base import MemoryStore
from .base import EMPTY, ContextStrategy, Preferences, StoreKind, StrategyResult
from .utils import PREFERENCES_PREFIX, extract_preferences

logger = logging.getLogger(__name__)


class UserPreferencesStrategy(ContextStrategy):
    """Collect "i like ..." / "i prefer ..." fragments across all of a user's turns."""

    name = "UserPreferences"
    store_kind = StoreKind.RECENT

    async def build_context(
        self,
        store: MemoryStore,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        query: Optional[str] = None,
    ) -> StrategyResult:
        if user_id is None:
            logger.debug("UserPreferences: no user id, returning Empty")
            return EMPTY

        entries = await store.search_by_user(user_id)
        preferences = extract_preferences(entries)
        if not preferences:
            logger.debug(
                "UserPreferences: no preferences in %d entries for user %s",
                len(entries), user_id,
            )
            return EMPTY

        logger.info(
            "UserPreferences: %d preferences extracted for user %s", len(preferences), user_id
        )
        return Preferences(PREFERENCES_PREFIX + ", ".join(preferences))
