"""Conversation Window — pure functions bounding and shaping conversation history.

Invariants:
    - All functions are pure (no IO, no async)
    - Returns NEW lists — never mutates input
    - Bounding is FIFO truncation: oldest messages evicted first, no summarization
    - Model history always starts with a user turn and alternates roles
"""

from finledger.core.domain_types import Role
from finledger.core.records import ConversationMessage

MAX_MESSAGES = 50
CONTEXT_TURNS = 5


# === Public API ===============================================================

def bound_messages(
    messages: list[ConversationMessage], max_messages: int = MAX_MESSAGES,
) -> list[ConversationMessage]:
    """Keep only the newest max_messages."""
    if max_messages <= 0:
        return []
    return list(messages[-max_messages:])


def recent_messages(
    messages: list[ConversationMessage], k: int = CONTEXT_TURNS,
) -> list[ConversationMessage]:
    if k <= 0:
        return []
    return list(messages[-k:])


def to_model_history(messages: list[ConversationMessage]) -> list[dict]:
    """Convert stored messages to Anthropic message dicts.

    Leading assistant turns are dropped and consecutive same-role turns are merged,
    since the Messages API requires a user-first alternating sequence.
    """
    history: list[dict] = []
    for msg in messages:
        text = msg.content.strip()
        if not text:
            continue
        if not history and msg.role != Role.USER:
            continue
        if history and history[-1]["role"] == msg.role.value:
            history[-1] = {
                "role": msg.role.value,
                "content": f"{history[-1]['content']}\n\n{text}",
            }
        else:
            history.append({"role": msg.role.value, "content": text})
    return history


def with_current_message(history: list[dict], message: str) -> list[dict]:
    """Append the current user message, merging if history ends on a user turn."""
    result = list(history)
    if result and result[-1]["role"] == Role.USER.value:
        result[-1] = {
            "role": Role.USER.value,
            "content": f"{result[-1]['content']}\n\n{message}",
        }
    else:
        result.append({"role": Role.USER.value, "content": message})
    return result
