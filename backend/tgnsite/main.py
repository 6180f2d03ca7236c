"""
TGN Website API - Main FastAPI Application
"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .config import settings
from .api import (
    auth_router, chat_router, checkout_router, news_router, posts_router, uploads_router,
)
from .core.errors import AppError
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .storage.database import get_database

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    setup_logging(settings)

    database = get_database()
    await database.create_schema()

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Blob storage path: {settings.local_storage_path}")
    logger.info(f"Chat model: {settings.llm_provider}/{settings.llm_model} "
                f"(api key {'set' if settings.gemini_api_key else 'missing'})")
    logger.info(f"Admin token mode: {settings.auth_token_mode}")
    yield
    logger.info(f"Shutting down {settings.app_name}")
    await database.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Backend of the TGN (つくば院生ネットワーク) website: Qちゃん chat, news, uploads and donations",
    lifespan=lifespan
)

# No app-wide CORS: chat and checkout answer their own preflights

if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render AppError raised by non-chat routes as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(checkout_router)
app.include_router(news_router)
app.include_router(posts_router)
app.include_router(uploads_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    database_ok = await get_database().check_health()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": database_ok,
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tgnsite.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
