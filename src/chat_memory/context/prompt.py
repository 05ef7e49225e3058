"""
Prompt formatting for built contexts.

Text layout (sections omitted when empty):

    System: {system}                       (only when requested)

    User Preferences: {preferences}

    Conversation (recent):
    User: ...
    Assistant: ...

    Relevant reference (semantic):
    User: ...

Message layout for chat models: [System] + [Human(context block)] + Human(question).
"""

from typing import Iterable, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

DEFAULT_SYSTEM_MESSAGE = "You are a helpful assistant."
SECTION_RECENT = "Conversation (recent):"
SECTION_SEMANTIC = "Relevant reference (semantic):"
PREFERENCES_LABEL = "User Preferences: "


def _preferences_text(preferences: str) -> str:
    # Strategy output already carries the label; never render it twice
    if preferences.startswith(PREFERENCES_LABEL):
        return preferences[len(PREFERENCES_LABEL):]
    return preferences


def _context_block(
    user_preferences: Optional[str],
    recent_messages: Iterable[str],
    semantic_messages: Iterable[str],
) -> str:
    out = []
    if user_preferences is not None:
        out.append(f"{PREFERENCES_LABEL}{_preferences_text(user_preferences)}\n\n")

    recent = list(recent_messages)
    if recent:
        out.append(SECTION_RECENT + "\n")
        out.extend(line + "\n" for line in recent)
        out.append("\n")

    semantic = list(semantic_messages)
    if semantic:
        out.append(SECTION_SEMANTIC + "\n")
        out.extend(line + "\n" for line in semantic)

    return "".join(out)


def format_for_model(
    include_system: bool,
    system_message: Optional[str],
    user_preferences: Optional[str],
    recent_messages: Iterable[str],
    semantic_messages: Iterable[str],
) -> str:
    """Render context sections into a single prompt string."""
    head = ""
    if include_system and system_message is not None:
        head = f"System: {system_message}\n\n"
    return head + _context_block(user_preferences, recent_messages, semantic_messages)


def format_as_messages(
    include_system: bool,
    system_message: Optional[str],
    user_preferences: Optional[str],
    recent_messages: Iterable[str],
    semantic_messages: Iterable[str],
    current_question: str,
) -> list[BaseMessage]:
    """
    Build the chat-model message envelope.

    However many strategies contributed, the result is at most three
    messages: optional system, one context block, the live question.
    The context block is left out when there is nothing to put in it.
    """
    messages: list[BaseMessage] = []
    if include_system and system_message is not None:
        messages.append(SystemMessage(content=system_message))

    block = _context_block(user_preferences, recent_messages, semantic_messages)
    if block:
        messages.append(HumanMessage(content=block))

    messages.append(HumanMessage(content=current_question))
    return messages


def parse_message_line(line: str) -> Optional[BaseMessage]:
    """Parse a "Role: content" context line back into a chat message.

    Returns None for blank lines and unknown role prefixes.
    """
    line = line.strip()
    if not line:
        return None
    for prefix, cls in (("User:", HumanMessage), ("Assistant:", AIMessage), ("System:", SystemMessage)):
        if line.startswith(prefix):
            return cls(content=line[len(prefix):].strip())
    return None
