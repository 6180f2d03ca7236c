"""
Chat API endpoint - Qちゃん conversational proxy.

Every exit returns a JSON body with the widget's CORS headers, including
configuration, rate-limit, validation and upstream failures.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..config import settings
from ..core.chat_proxy import ChatProxy
from ..core.errors import AppError
from ..core.rate_limiter import RateLimiter
from ..core.session_log import SessionLog
from ..core.system_prompt import get_system_prompt
from ..llm.base import LLMProvider
from ..llm.factory import create_llm_provider
from ..storage.database import get_database
from ..storage.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# One limiter per process, shared by all requests
_rate_limiter = RateLimiter(
    limit=settings.chat_rate_limit,
    window_ms=settings.chat_rate_window_ms,
)


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


def get_llm_provider() -> Optional[LLMProvider]:
    """Get configured LLM provider or None."""
    return create_llm_provider(
        provider=settings.llm_provider,
        api_key=settings.gemini_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        default_temperature=settings.llm_temperature,
        default_max_tokens=settings.llm_max_output_tokens,
        timeout=settings.llm_timeout,
    )


def get_session_log() -> SessionLog:
    return SessionLog(SessionStore(get_database()), settings.ip_hash_salt)


def get_chat_proxy(
    llm_provider: Optional[LLMProvider] = Depends(get_llm_provider),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> ChatProxy:
    return ChatProxy(
        llm_provider=llm_provider,
        rate_limiter=rate_limiter,
        system_prompt=get_system_prompt(settings.system_prompt),
        max_message_length=settings.chat_max_message_length,
    )


def get_client_key(request: Request) -> str:
    """Client network identifier used for rate limiting."""
    forwarded_ip = request.headers.get(settings.client_ip_header)
    if forwarded_ip:
        return forwarded_ip.strip()
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _json_response(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


@router.post("/chat")
async def chat(
    request: Request,
    background_tasks: BackgroundTasks,
    proxy: ChatProxy = Depends(get_chat_proxy),
    session_log: SessionLog = Depends(get_session_log),
):
    """
    Answer one chat message.

    Body: ``{message, sessionId?, history?}``.
    Returns ``{reply, sources, sessionId, success}`` or ``{error, reply}``.
    """
    try:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None

        exchange = await proxy.handle(
            get_client_key(request),
            body,
            user_agent=request.headers.get("user-agent"),
        )
    except AppError as e:
        if e.status_code >= 500:
            logger.error(f"Chat failed: {e.message}")
        return _json_response(e.to_payload(), status_code=e.status_code)
    except Exception as e:
        logger.error(f"Chat API Error: {e!r}", exc_info=True)
        return _json_response(AppError().to_payload(), status_code=500)

    # Runs after the response is sent; never affects it
    background_tasks.add_task(session_log.record_exchange, exchange)

    return _json_response(exchange.to_response().model_dump(by_alias=True))


@router.options("/chat")
async def chat_preflight():
    """CORS preflight."""
    return Response(status_code=200, headers=CORS_HEADERS)
