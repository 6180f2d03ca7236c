"""
Blob Storage Interface - Abstract base class for uploaded-file storage.
Implementations can target the local filesystem, R2, S3, etc.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class StorageInterface(ABC):
    """
    Contract for all blob storage implementations.
    Keys are relative paths such as "1717000000000-poster.png".
    """

    @abstractmethod
    async def save(
        self,
        path: str,
        content: bytes | str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Save content under the given key.

        Args:
            path: Relative key
            content: Content to save
            metadata: Optional metadata stored alongside (e.g. content_type)

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content for a key.

        Returns:
            Optional[bytes]: Content, or None if the key doesn't exist
        """
        pass

    @abstractmethod
    async def get_metadata(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Get metadata for a key.

        Returns:
            Optional[Dict]: size, timestamps and any metadata given to save()
        """
        pass
