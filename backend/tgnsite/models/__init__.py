"""Models module."""

from .chat import ConversationTurn, Source, ChatRequest, ChatResponse
from .session import ChatSessionRecord, ChatMessageRecord
from .post import Post, PostPayload
from .news import UnifiedNewsItem

__all__ = [
    'ConversationTurn', 'Source', 'ChatRequest', 'ChatResponse',
    'ChatSessionRecord', 'ChatMessageRecord',
    'Post', 'PostPayload',
    'UnifiedNewsItem',
]
