"""
Validation of raw chat request bodies.
"""

import logging
import uuid
from typing import Any, Callable, List, Optional

from .errors import InvalidInputError, MessageTooLongError
from ..models.chat import ChatRequest, ConversationTurn

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500

_ROLE_ALIASES = {
    "user": "user",
    "assistant": "assistant",
    "model": "assistant",
}


def new_session_id() -> str:
    """Random UUID-v4 string. Collisions with existing sessions are not checked."""
    return str(uuid.uuid4())


def _parse_turn(raw: Any) -> Optional[ConversationTurn]:
    if not isinstance(raw, dict):
        return None
    role = _ROLE_ALIASES.get(raw.get("role"))
    if role is None:
        return None

    text = raw.get("text")
    if text is None:
        # Gemini wire format: {"role": ..., "parts": [{"text": ...}]}
        parts = raw.get("parts")
        if not isinstance(parts, list) or not parts:
            return None
        texts = [part.get("text") for part in parts if isinstance(part, dict)]
        if not texts or not all(isinstance(t, str) for t in texts):
            return None
        text = "".join(texts)

    if not isinstance(text, str):
        return None
    return ConversationTurn(role=role, text=text)


def parse_history(raw_history: Any) -> List[ConversationTurn]:
    """
    Read the caller-supplied history.

    A non-list history, or one with any unreadable turn, is treated as empty.
    """
    if raw_history is None:
        return []
    if not isinstance(raw_history, list):
        logger.warning(f"Ignoring malformed chat history of type {type(raw_history).__name__}")
        return []

    turns = []
    for index, raw in enumerate(raw_history):
        turn = _parse_turn(raw)
        if turn is None:
            logger.warning(f"Ignoring chat history: unreadable turn at index {index}")
            return []
        turns.append(turn)
    return turns


def validate_chat_request(
    body: Any,
    max_length: int = MAX_MESSAGE_LENGTH,
    session_id_factory: Callable[[], str] = new_session_id,
) -> ChatRequest:
    """
    Turn a parsed JSON body into a ``ChatRequest``.

    Raises:
        InvalidInputError: body is not an object, or message is missing/blank
        MessageTooLongError: message exceeds ``max_length`` characters
    """
    if not isinstance(body, dict):
        raise InvalidInputError()

    message = body.get("message")
    if not isinstance(message, str) or not message.strip():
        raise InvalidInputError()
    if len(message) > max_length:
        raise MessageTooLongError()

    session_id = body.get("sessionId")
    if not isinstance(session_id, str) or not session_id:
        session_id = session_id_factory()

    return ChatRequest(
        message=message,
        session_id=session_id,
        history=parse_history(body.get("history")),
    )
