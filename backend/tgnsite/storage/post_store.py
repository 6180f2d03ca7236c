"""
Post Store - CRUD over the posts table.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import text

from .database import Database
from ..models.post import Post, PostPayload


class PostStore:
    """Articles identified by integer id."""

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    def _values(payload: PostPayload) -> dict:
        return {
            "title": payload.title,
            "content": payload.content,
            "category": payload.category or "info",
            "image_url": payload.image_url or None,
            "published_at": payload.published_at or date.today().isoformat(),
        }

    async def list_posts(self) -> List[Post]:
        """All posts, newest first (published date, else creation time)."""
        async with self.database.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT * FROM posts ORDER BY COALESCE(published_at, created_at) DESC, id DESC")
            )
            return [Post(**row) for row in result.mappings().all()]

    async def get_post(self, post_id: int) -> Optional[Post]:
        async with self.database.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT * FROM posts WHERE id = :id"), {"id": post_id}
            )
            row = result.mappings().first()
        return Post(**row) if row else None

    async def create_post(self, payload: PostPayload) -> int:
        """Insert a post and return its id."""
        async with self.database.engine.begin() as conn:
            result = await conn.execute(
                text(
                    "INSERT INTO posts (title, content, category, image_url, published_at) "
                    "VALUES (:title, :content, :category, :image_url, :published_at)"
                ),
                self._values(payload),
            )
            return result.lastrowid

    async def update_post(self, payload: PostPayload) -> bool:
        """Overwrite a post. Returns False when no row has ``payload.id``."""
        async with self.database.engine.begin() as conn:
            result = await conn.execute(
                text(
                    "UPDATE posts SET title = :title, content = :content, category = :category, "
                    "image_url = :image_url, published_at = :published_at, "
                    "updated_at = CURRENT_TIMESTAMP WHERE id = :id"
                ),
                {**self._values(payload), "id": payload.id},
            )
            return result.rowcount > 0

    async def delete_post(self, post_id: int) -> bool:
        async with self.database.engine.begin() as conn:
            result = await conn.execute(
                text("DELETE FROM posts WHERE id = :id"), {"id": post_id}
            )
            return result.rowcount > 0
