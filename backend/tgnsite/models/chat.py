"""
Chat Models - Conversation turns, requests and responses of the Qちゃん widget.
"""

from typing import List, Literal
from pydantic import BaseModel, Field


class ConversationTurn(BaseModel):
    """One turn of a conversation, replayed verbatim to the model."""
    role: Literal["user", "assistant"]
    text: str

    class Config:
        frozen = True


class Source(BaseModel):
    """Contextual link attached to an assistant reply."""
    title: str
    url: str

    class Config:
        frozen = True


class ChatRequest(BaseModel):
    """Validated chat request."""
    message: str
    session_id: str
    history: List[ConversationTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Successful chat reply as sent to the widget."""
    reply: str
    sources: List[Source] = Field(default_factory=list)
    session_id: str = Field(..., alias="sessionId")
    success: bool = True

    class Config:
        populate_by_name = True
