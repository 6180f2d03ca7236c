"""
Best-effort chat session log.

Writes never raise: a failing store is logged and the chat response is left
exactly as it was.
"""

import hashlib
import logging
from typing import Optional, Sequence, TYPE_CHECKING

from .errors import PersistenceError
from ..models.chat import Source
from ..storage.session_store import SessionStore

if TYPE_CHECKING:
    from .chat_proxy import ChatExchange

logger = logging.getLogger(__name__)

IP_HASH_LENGTH = 16


def hash_client_ip(client_ip: Optional[str], salt: str) -> Optional[str]:
    """Salted, truncated SHA-256 of the client address. The address itself is never stored."""
    if not client_ip:
        return None
    digest = hashlib.sha256(f"{salt}:{client_ip}".encode("utf-8")).hexdigest()
    return digest[:IP_HASH_LENGTH]


class SessionLog:
    """Records chat turns through a SessionStore."""

    def __init__(self, store: SessionStore, ip_hash_salt: str):
        self.store = store
        self.ip_hash_salt = ip_hash_salt

    async def record(
        self,
        session_id: str,
        role: str,
        content: str,
        sources: Optional[Sequence[Source]] = None,
        user_agent: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> bool:
        """
        Append one turn to the session log.

        Returns:
            bool: True if written. Failures are logged, never raised.
        """
        try:
            await self.store.append_message(
                session_id=session_id,
                role=role,
                content=content,
                sources=list(sources or []) if role == "assistant" else None,
                user_agent=user_agent,
                ip_hash=hash_client_ip(client_ip, self.ip_hash_salt),
            )
            return True
        except Exception as e:
            error = PersistenceError(f"Failed to record {role} turn: {e!r}")
            logger.error(
                error.message,
                exc_info=True,
                extra={"extra_fields": {"session_id": session_id, "role": role}}
            )
            return False

    async def record_exchange(self, exchange: "ChatExchange") -> None:
        """Persist the user turn, then the assistant turn with its sources."""
        await self.record(
            exchange.request.session_id,
            "user",
            exchange.request.message,
            user_agent=exchange.user_agent,
            client_ip=exchange.client_ip,
        )
        await self.record(
            exchange.request.session_id,
            "assistant",
            exchange.reply,
            sources=exchange.sources,
            user_agent=exchange.user_agent,
            client_ip=exchange.client_ip,
        )
