"""
Built context and its metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from langchain_core.messages import BaseMessage

from ..types import utc_now
from . import prompt


@dataclass(frozen=True)
class ContextMetadata:
    user_id: Optional[str] = None
    conversation_id: Optional[str] = None
    total_tokens: int = 0  # character-based estimate, see tokens.estimate_tokens
    message_count: int = 0
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Context:
    """Context assembled for one model request. Never mutated after build."""

    system_message: Optional[str] = None
    recent_messages: tuple[str, ...] = ()
    semantic_messages: tuple[str, ...] = ()
    user_preferences: Optional[str] = None
    metadata: ContextMetadata = field(default_factory=ContextMetadata)

    def __post_init__(self):
        object.__setattr__(self, "recent_messages", tuple(self.recent_messages))
        object.__setattr__(self, "semantic_messages", tuple(self.semantic_messages))

    def format_for_model(self, include_system: bool = False) -> str:
        return prompt.format_for_model(
            include_system,
            self.system_message,
            self.user_preferences,
            self.recent_messages,
            self.semantic_messages,
        )

    def to_messages(self, include_system: bool, current_question: str) -> list[BaseMessage]:
        return prompt.format_as_messages(
            include_system,
            self.system_message,
            self.user_preferences,
            self.recent_messages,
            self.semantic_messages,
            current_question,
        )

    def is_empty(self) -> bool:
        return not self.recent_messages and not self.semantic_messages

    def exceeds_limit(self, limit: int) -> bool:
        """Advisory check; the builder never truncates on its own."""
        return self.metadata.total_tokens > limit
