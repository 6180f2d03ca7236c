"""Storage module - relational store, session log, posts and blob storage."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .database import Database, get_database
from .session_store import SessionStore
from .post_store import PostStore

__all__ = [
    'StorageInterface', 'LocalStorage',
    'Database', 'get_database',
    'SessionStore', 'PostStore',
]
