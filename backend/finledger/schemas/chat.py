"""Chat Schemas — request/response contract for POST /api/v1/chat and conversations.

Invariants:
    - conversationId is required: there is no implicit default conversation
    - message: 1-4000 chars, stripped, non-empty
    - Optional multi-step fields are omitted from the response when absent
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finledger.core.domain_types import Role


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, max_length=4000)
    conversation_id: str = Field(
        alias="conversationId", min_length=1, max_length=128,
        pattern=r"^[A-Za-z0-9_.:-]+$",
    )

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message cannot be empty or whitespace")
        return v


class FunctionResultOut(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None
    action: str | None = None
    error_code: str | None = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    action: str | None = None
    functions_called: list[str] | None = Field(None, alias="functionsCalled")
    function_results: list[FunctionResultOut] | None = Field(None, alias="functionResults")
    steps_executed: int | None = Field(None, alias="stepsExecuted")


class MessageOut(BaseModel):
    role: Role
    content: str
    timestamp: datetime


class ConversationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    messages: list[MessageOut]
    started_at: datetime = Field(alias="startedAt")
    last_updated: datetime = Field(alias="lastUpdated")


class ConversationSummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    message_count: int = Field(alias="messageCount")
    started_at: datetime = Field(alias="startedAt")
    last_updated: datetime = Field(alias="lastUpdated")
