"""
Posts API endpoints - news article CRUD.

Reads are public; create/update/delete require the admin cookie.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..core.errors import AppError, InvalidInputError, NotFoundError
from ..models.post import PostPayload
from ..storage.database import get_database
from ..storage.post_store import PostStore
from ..utils.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])

POST_NOT_FOUND = "記事が見つかりません"


def get_post_store() -> PostStore:
    return PostStore(get_database())


def _database_error(message: str, error: Exception) -> AppError:
    logger.error(f"{message}: {error!r}")
    return AppError(message, status_code=500)


@router.get("")
async def get_posts(
    id: Optional[int] = Query(None),
    store: PostStore = Depends(get_post_store),
):
    """List all posts, or fetch one with ``?id=``."""
    try:
        if id is not None:
            post = await store.get_post(id)
            if post is None:
                raise NotFoundError(POST_NOT_FOUND)
            return post.model_dump()

        posts = await store.list_posts()
    except SQLAlchemyError as e:
        raise _database_error("データベースエラー", e)

    return {"posts": [post.model_dump() for post in posts]}


@router.post("")
async def create_post(
    payload: PostPayload,
    authenticated: bool = Depends(require_admin),
    store: PostStore = Depends(get_post_store),
):
    if not payload.title or not payload.content:
        raise InvalidInputError("タイトルと本文は必須です")

    try:
        post_id = await store.create_post(payload)
    except SQLAlchemyError as e:
        raise _database_error("記事の作成に失敗しました", e)

    logger.info(f"Post created: {post_id}")
    return {"success": True, "id": post_id}


@router.put("")
async def update_post(
    payload: PostPayload,
    authenticated: bool = Depends(require_admin),
    store: PostStore = Depends(get_post_store),
):
    if payload.id is None:
        raise InvalidInputError("IDが必要です")
    if not payload.title or not payload.content:
        raise InvalidInputError("タイトルと本文は必須です")

    try:
        updated = await store.update_post(payload)
    except SQLAlchemyError as e:
        raise _database_error("記事の更新に失敗しました", e)

    if not updated:
        raise NotFoundError(POST_NOT_FOUND)
    logger.info(f"Post updated: {payload.id}")
    return {"success": True}


@router.delete("")
async def delete_post(
    id: Optional[int] = Query(None),
    authenticated: bool = Depends(require_admin),
    store: PostStore = Depends(get_post_store),
):
    if id is None:
        raise InvalidInputError("IDが必要です")

    try:
        deleted = await store.delete_post(id)
    except SQLAlchemyError as e:
        raise _database_error("記事の削除に失敗しました", e)

    if not deleted:
        raise NotFoundError(POST_NOT_FOUND)
    logger.info(f"Post deleted: {id}")
    return {"success": True}
