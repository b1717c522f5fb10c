"""Conversation Memory — append-only, bounded per-conversation message logs.

Invariants:
    - Conversations live under the "conversations" key as {id: Conversation}
    - Created lazily on first append; clear() is a hard delete (no tombstone)
    - Never more than max_messages stored per conversation: FIFO eviction on append
    - The conversation id is always passed explicitly; there is no default conversation
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from finledger.core.conversation_window import (
    CONTEXT_TURNS, MAX_MESSAGES, bound_messages, recent_messages,
)
from finledger.core.domain_types import Role, StoreKey
from finledger.core.records import Conversation, ConversationMessage
from finledger.core.repository_protocols import KeyValueStore

logger = logging.getLogger(__name__)


def _parse_conversation(conversation_id: str, raw: Any) -> Conversation | None:
    if raw is None:
        return None
    try:
        return Conversation.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            f"Discarding malformed conversation: {e.error_count()} errors",
            extra={"conversation_id": conversation_id},
        )
        return None


class ConversationMemory:

    def __init__(self, store: KeyValueStore, max_messages: int = MAX_MESSAGES):
        self._store = store
        self.max_messages = max_messages

    async def _all(self) -> dict:
        raw = await self._store.get(StoreKey.CONVERSATIONS.value)
        return raw if isinstance(raw, dict) else {}

    async def append(self, conversation_id: str, role: Role, content: str) -> Conversation:
        """Append one message, evicting the oldest beyond max_messages."""
        result: list[Conversation] = []

        def _append(current: Any) -> dict:
            result.clear()
            conversations = current if isinstance(current, dict) else {}
            now = datetime.now(timezone.utc)
            conversation = _parse_conversation(
                conversation_id, conversations.get(conversation_id),
            ) or Conversation(id=conversation_id, started_at=now)
            messages = conversation.messages + [
                ConversationMessage(role=role, content=content, timestamp=now),
            ]
            conversation = conversation.model_copy(update={
                "messages": bound_messages(messages, self.max_messages),
                "last_updated": now,
            })
            conversations[conversation_id] = conversation.model_dump(mode="json")
            result.append(conversation)
            return conversations

        await self._store.update(StoreKey.CONVERSATIONS.value, _append, default={})
        return result[0]

    async def history(self, conversation_id: str) -> Conversation | None:
        conversations = await self._all()
        return _parse_conversation(conversation_id, conversations.get(conversation_id))

    async def recent(
        self, conversation_id: str, k: int = CONTEXT_TURNS,
    ) -> list[ConversationMessage]:
        conversation = await self.history(conversation_id)
        if conversation is None:
            return []
        return recent_messages(conversation.messages, k)

    async def clear(self, conversation_id: str) -> bool:
        """Hard-delete a conversation. Returns whether it existed."""
        existed: list[bool] = [False]

        def _clear(current: Any) -> dict:
            conversations = current if isinstance(current, dict) else {}
            existed[0] = conversations.pop(conversation_id, None) is not None
            return conversations

        await self._store.update(StoreKey.CONVERSATIONS.value, _clear, default={})
        return existed[0]

    async def list_conversations(self) -> list[dict]:
        """Summaries, most recently updated first."""
        summaries = []
        for conversation_id, raw in (await self._all()).items():
            conversation = _parse_conversation(conversation_id, raw)
            if conversation is None:
                continue
            summaries.append({
                "id": conversation.id,
                "message_count": len(conversation.messages),
                "started_at": conversation.started_at,
                "last_updated": conversation.last_updated,
            })
        summaries.sort(key=lambda s: s["last_updated"], reverse=True)
        return summaries
