"""API module."""

from .auth import router as auth_router
from .chat import router as chat_router
from .checkout import router as checkout_router
from .news import router as news_router
from .posts import router as posts_router
from .uploads import router as uploads_router

__all__ = [
    'auth_router', 'chat_router', 'checkout_router',
    'news_router', 'posts_router', 'uploads_router',
]
