"""
Context assembly for language-model requests.
"""

from .builder import ContextBuilder
from .prompt import (
    DEFAULT_SYSTEM_MESSAGE,
    SECTION_RECENT,
    SECTION_SEMANTIC,
    format_as_messages,
    format_for_model,
    parse_message_line,
)
from .types import Context, ContextMetadata

__all__ = [
    "Context",
    "ContextBuilder",
    "ContextMetadata",
    "DEFAULT_SYSTEM_MESSAGE",
    "SECTION_RECENT",
    "SECTION_SEMANTIC",
    "format_as_messages",
    "format_for_model",
    "parse_message_line",
]
