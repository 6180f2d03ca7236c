"""Conversation context assembly."""

from typing import List, Sequence

from ..models.chat import ConversationTurn


def assemble_context(history: Sequence[ConversationTurn], message: str) -> List[ConversationTurn]:
    """Return ``[*history, user:message]``. The caller's list is left untouched."""
    return [*history, ConversationTurn(role="user", text=message)]
