"""
Strategy interface and the result union strategies produce.

A strategy contributes one StrategyResult to a context build:

- Messages(category, lines): formatted "Role: content" lines, either recent
  dialogue (RECENT) or semantically retrieved reference (SEMANTIC)
- Preferences(text): one extracted user-preference string
- Empty: no contribution
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..stores.base import MemoryStore


class MessageCategory(str, Enum):
    """Which section of the prompt a Messages result belongs to."""

    RECENT = "recent"
    SEMANTIC = "semantic"


class StoreKind(str, Enum):
    """Store a strategy prefers when the builder holds a separate recent store."""

    PRIMARY = "primary"
    RECENT = "recent"


@dataclass(frozen=True)
class Messages:
    category: MessageCategory
    lines: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class Preferences:
    text: str


@dataclass(frozen=True)
class Empty:
    pass


EMPTY = Empty()

StrategyResult = Union[Messages, Preferences, Empty]


class ContextStrategy(ABC):
    """A pluggable retrieval policy run by the ContextBuilder."""

    #: Diagnostic name used in logs
    name: str = "Strategy"

    #: RECENT strategies run against the builder's recent store when one is set
    store_kind: StoreKind = StoreKind.PRIMARY

    @abstractmethod
    async def build_context(
        self,
        store: MemoryStore,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        query: Optional[str] = None,
    ) -> StrategyResult:
        """Produce this strategy's contribution to the context."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
