"""
Local Filesystem Blob Storage.
Stores uploads under a base directory with a JSON ``.meta`` sidecar per file.
"""

import json
import logging
import aiofiles
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """Local filesystem storage implementation."""

    def __init__(self, base_dir: str = "./data/uploads"):
        """
        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, path: str) -> Path:
        """Resolve a key inside the base directory."""
        full_path = (self.base_dir / path).resolve()

        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise ValueError(f"Invalid path: {path} - path traversal detected")

        return full_path

    @staticmethod
    def _meta_path(full_path: Path) -> Path:
        return full_path.with_suffix(full_path.suffix + '.meta')

    async def save(
        self,
        path: str,
        content: bytes | str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        try:
            full_path = self._get_full_path(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)

            if isinstance(content, str):
                async with aiofiles.open(full_path, 'w', encoding='utf-8') as f:
                    await f.write(content)
            else:
                async with aiofiles.open(full_path, 'wb') as f:
                    await f.write(content)

            if metadata:
                async with aiofiles.open(self._meta_path(full_path), 'w', encoding='utf-8') as f:
                    await f.write(json.dumps(metadata, indent=2))

            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error saving file {path}: {e}")
            return False

    async def load(self, path: str) -> Optional[bytes]:
        try:
            full_path = self._get_full_path(path)
            if not full_path.is_file() or full_path.name.endswith('.meta'):
                return None

            async with aiofiles.open(full_path, 'rb') as f:
                return await f.read()
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading file {path}: {e}")
            return None

    async def get_metadata(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            full_path = self._get_full_path(path)
            if not full_path.is_file():
                return None

            stat = full_path.stat()
            metadata: Dict[str, Any] = {
                'size': stat.st_size,
                'modified_at': datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
                'path': path
            }

            metadata_path = self._meta_path(full_path)
            if metadata_path.exists():
                async with aiofiles.open(metadata_path, 'r', encoding='utf-8') as f:
                    metadata.update(json.loads(await f.read()))

            return metadata
        except (OSError, ValueError) as e:
            logger.warning(f"Error getting metadata for {path}: {e}")
            return None
