"""
Session Models - Rows of the chat session log.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from .chat import Source


class ChatSessionRecord(BaseModel):
    """Chat session row."""
    id: str
    user_agent: Optional[str] = None
    ip_hash: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ChatMessageRecord(BaseModel):
    """Single logged turn of a session."""
    id: int
    session_id: str
    role: str  # user, assistant
    content: str
    sources: Optional[List[Source]] = None
    created_at: datetime
