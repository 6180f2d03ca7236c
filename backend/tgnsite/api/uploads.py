"""
Upload API endpoints - admin image upload and public file serving.
"""

import logging
import re
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse, Response

from ..config import settings
from ..core.errors import AppError, InvalidInputError
from ..storage.interface import StorageInterface
from ..storage.local_storage import LocalStorage
from ..utils.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])

CACHE_CONTROL = "public, max-age=31536000"  # 1 year
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")

_storage: Optional[StorageInterface] = None


def get_blob_storage() -> StorageInterface:
    global _storage
    if _storage is None:
        _storage = LocalStorage(settings.local_storage_path)
    return _storage


def make_upload_key(filename: str, timestamp_ms: Optional[int] = None) -> str:
    """``<epoch-ms>-<filename>`` with anything outside [a-zA-Z0-9.-] replaced by ``_``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}-{_UNSAFE_CHARS.sub('_', filename)}"


@router.post("/api/upload")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    authenticated: bool = Depends(require_admin),
    storage: StorageInterface = Depends(get_blob_storage),
):
    """Store an uploaded image and return its public URL."""
    if file is None or not file.filename:
        raise InvalidInputError("ファイルが必要です")

    key = make_upload_key(file.filename)
    content = await file.read()
    saved = await storage.save(
        key,
        content,
        metadata={"content_type": file.content_type or DEFAULT_CONTENT_TYPE},
    )
    if not saved:
        raise AppError("アップロードに失敗しました", status_code=500)

    logger.info(f"Uploaded {key} ({len(content)} bytes)")
    return {
        "success": True,
        "url": f"{settings.upload_url_prefix}/{key}",
        "fileName": key,
    }


@router.get(settings.upload_url_prefix + "/{path:path}")
async def serve_file(
    path: str,
    storage: StorageInterface = Depends(get_blob_storage),
):
    """Serve a stored file with its content type and a long cache lifetime."""
    content = await storage.load(path) if path else None
    if content is None:
        return PlainTextResponse("Not Found", status_code=404)

    metadata = await storage.get_metadata(path) or {}
    return Response(
        content=content,
        media_type=metadata.get("content_type", DEFAULT_CONTENT_TYPE),
        headers={"Cache-Control": CACHE_CONTROL},
    )
