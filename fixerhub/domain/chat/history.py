"""In-memory chat history keyed by user or session id"""

import logging
from collections import deque
from datetime import datetime, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

MAX_MESSAGES = 50
IDLE_EXPIRY = timedelta(hours=24)


def conversation_key(session_id: Optional[str] = None, user_id: Optional[int] = None) -> str:
    return session_id or f"user_{user_id or 'anonymous'}"


class ConversationStore:
    """Keeps the last MAX_MESSAGES entries per conversation; idle conversations expire"""

    def __init__(self, max_messages: int = MAX_MESSAGES, idle_expiry: timedelta = IDLE_EXPIRY):
        self.max_messages = max_messages
        self.idle_expiry = idle_expiry
        self._conversations: dict[str, dict] = {}

    def append(self, key: str, sender: str, text: str) -> dict:
        now = datetime.utcnow()
        conversation = self._conversations.setdefault(
            key, {"messages": deque(maxlen=self.max_messages), "lastActivity": now}
        )
        entry = {"sender": sender, "text": text, "timestamp": now}
        conversation["messages"].append(entry)
        conversation["lastActivity"] = now
        return entry

    def history(self, key: str) -> tuple[list[dict], Optional[datetime]]:
        conversation = self._conversations.get(key)
        if not conversation:
            return [], None
        return list(conversation["messages"]), conversation["lastActivity"]

    def clear(self, key: str) -> bool:
        return self._conversations.pop(key, None) is not None

    def cleanup(self, now: Optional[datetime] = None) -> int:
        """Drop conversations idle for longer than idle_expiry"""
        cutoff = (now or datetime.utcnow()) - self.idle_expiry
        stale = [k for k, c in self._conversations.items() if c["lastActivity"] < cutoff]
        for key in stale:
            del self._conversations[key]
        if stale:
            logger.info(f"🧹 Cleared {len(stale)} idle chat conversations")
        return len(stale)


conversation_store = ConversationStore()
