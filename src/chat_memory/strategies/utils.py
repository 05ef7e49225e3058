"""
Formatting and keyword helpers shared by the strategies.
"""

from typing import Iterable

from ..types import MemoryEntry

PREFERENCE_MARKERS = ("i like", "i prefer")  # checked in priority order
PREFERENCES_PREFIX = "User Preferences: "


def format_message(entry: MemoryEntry) -> str:
    """Render an entry as a context line: "User: hello"."""
    return f"{entry.metadata.role.label}: {entry.content}"


def extract_preferences(entries: Iterable[MemoryEntry]) -> list[str]:
    """
    Extract preference fragments from entry contents.

    Content is lower-cased; the fragment runs from the first marker match to
    the end of the content. Only one fragment per entry: "i like" wins over
    "i prefer" when both appear.
    """
    preferences = []
    for entry in entries:
        content = entry.content.lower()
        for marker in PREFERENCE_MARKERS:
            start = content.find(marker)
            if start != -1:
                preferences.append(content[start:])
                break
    return preferences
