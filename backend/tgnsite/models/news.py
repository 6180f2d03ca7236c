"""
News Models - Unified news items from local articles and the note RSS feed.
"""

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field


class UnifiedNewsItem(BaseModel):
    """News entry shown on the top page, local or external."""
    id: str
    title: str
    date: datetime  # always timezone-aware
    description: Optional[str] = None
    category: Literal["info", "event", "note"]
    href: str
    is_external: bool = Field(False, alias="isExternal")
    thumbnail: Optional[str] = None

    class Config:
        populate_by_name = True
