"""
Session Store - chat_sessions / chat_messages tables.
"""

import json
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import text

from .database import Database
from ..models.chat import Source
from ..models.session import ChatMessageRecord, ChatSessionRecord


UPSERT_SESSION = text("""
    INSERT INTO chat_sessions (id, user_agent, ip_hash, created_at, updated_at)
    VALUES (:id, :user_agent, :ip_hash, :now, :now)
    ON CONFLICT(id) DO UPDATE SET updated_at = excluded.updated_at
""")

INSERT_MESSAGE = text("""
    INSERT INTO chat_messages (session_id, role, content, sources, created_at)
    VALUES (:session_id, :role, :content, :sources, :now)
""")


class SessionStore:
    """Parameterized writes and reads of the chat session log."""

    def __init__(self, database: Database):
        self.database = database

    async def append_message(
        self,
        session_id: str,
        role: str,
        content: str,
        sources: Optional[Sequence[Source]] = None,
        user_agent: Optional[str] = None,
        ip_hash: Optional[str] = None,
    ) -> None:
        """
        Ensure the session row exists (or touch it) and append one message,
        in a single transaction.
        """
        now = datetime.now(timezone.utc).isoformat()
        sources_json = (
            json.dumps([s.model_dump() for s in sources], ensure_ascii=False)
            if sources is not None else None
        )

        async with self.database.engine.begin() as conn:
            await conn.execute(UPSERT_SESSION, {
                "id": session_id,
                "user_agent": user_agent,
                "ip_hash": ip_hash,
                "now": now,
            })
            await conn.execute(INSERT_MESSAGE, {
                "session_id": session_id,
                "role": role,
                "content": content,
                "sources": sources_json,
                "now": now,
            })

    async def get_session(self, session_id: str) -> Optional[ChatSessionRecord]:
        async with self.database.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT * FROM chat_sessions WHERE id = :id"), {"id": session_id}
            )
            row = result.mappings().first()
        return ChatSessionRecord(**row) if row else None

    async def list_messages(self, session_id: str) -> List[ChatMessageRecord]:
        async with self.database.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT * FROM chat_messages WHERE session_id = :id ORDER BY id"),
                {"id": session_id},
            )
            rows = result.mappings().all()

        messages = []
        for row in rows:
            data = dict(row)
            data["sources"] = json.loads(data["sources"]) if data["sources"] else None
            messages.append(ChatMessageRecord(**data))
        return messages
