"""
Chat Proxy - Qちゃん conversation pipeline.

rate check -> validate -> assemble context -> generate -> classify.
Persisting the exchange is left to the caller, after the response is fixed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .chat_validation import MAX_MESSAGE_LENGTH, validate_chat_request
from .context import assemble_context
from .errors import ConfigurationError, RateLimitedError
from .rate_limiter import RateLimiter
from .system_prompt import DEFAULT_SYSTEM_PROMPT
from .topic_classifier import classify_topics
from ..llm.base import LLMProvider
from ..models.chat import ChatRequest, ChatResponse, Source

logger = logging.getLogger(__name__)


@dataclass
class ChatExchange:
    """A completed exchange, ready to be returned and logged."""
    request: ChatRequest
    reply: str
    sources: List[Source] = field(default_factory=list)
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None

    def to_response(self) -> ChatResponse:
        return ChatResponse(
            reply=self.reply,
            sources=self.sources,
            session_id=self.request.session_id,
        )


class ChatProxy:
    """Orchestrates one chat exchange. Raises ``AppError`` subclasses on every failure exit."""

    def __init__(
        self,
        llm_provider: Optional[LLMProvider],
        rate_limiter: RateLimiter,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_message_length: int = MAX_MESSAGE_LENGTH,
    ):
        self.llm_provider = llm_provider
        self.rate_limiter = rate_limiter
        self.system_prompt = system_prompt
        self.max_message_length = max_message_length

    async def handle(
        self,
        client_key: str,
        body: Any,
        user_agent: Optional[str] = None,
    ) -> ChatExchange:
        if self.llm_provider is None:
            logger.error("Gemini API key is not configured")
            raise ConfigurationError()

        if not self.rate_limiter.allow(client_key):
            logger.warning(
                "Chat rate limit exceeded",
                extra={"extra_fields": {"client": client_key}}
            )
            raise RateLimitedError()

        request = validate_chat_request(body, max_length=self.max_message_length)
        turns = assemble_context(request.history, request.message)

        # Upstream errors propagate; the route turns them into an apology body
        response = await self.llm_provider.generate(self.system_prompt, turns)

        sources = classify_topics(request.message, response.content)
        logger.info(
            "Chat reply generated",
            extra={"extra_fields": {
                "session_id": request.session_id,
                "history_turns": len(request.history),
                "sources": [s.url for s in sources],
            }}
        )

        return ChatExchange(
            request=request,
            reply=response.content,
            sources=sources,
            client_ip=client_key,
            user_agent=user_agent,
        )
