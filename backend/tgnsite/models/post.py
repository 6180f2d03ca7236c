"""
Post Models - News articles managed from the admin screen.
"""

from typing import Optional
from pydantic import BaseModel


class PostPayload(BaseModel):
    """Body of create/update requests. Required fields are checked by the route."""
    id: Optional[int] = None
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    published_at: Optional[str] = None  # ISO date, e.g. 2025-04-01


class Post(BaseModel):
    """Stored article."""
    id: int
    title: str
    content: str
    category: str = "info"
    image_url: Optional[str] = None
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
