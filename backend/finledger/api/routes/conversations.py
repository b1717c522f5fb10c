"""Conversations — list, read and clear per-conversation message logs."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from finledger.api.dependencies import get_services
from finledger.core.errors import ResourceNotFoundError
from finledger.schemas.chat import ConversationOut, ConversationSummaryOut, MessageOut
from finledger.services.service_container import AppServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])

ConversationId = Annotated[
    str, Path(min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_.:-]+$"),
]


@router.get("", response_model=list[ConversationSummaryOut], response_model_by_alias=True)
async def list_conversations(services: AppServices = Depends(get_services)):
    return [
        ConversationSummaryOut(**summary)
        for summary in await services.memory.list_conversations()
    ]


@router.get("/{conversation_id}", response_model=ConversationOut, response_model_by_alias=True)
async def get_conversation(
    conversation_id: ConversationId,
    services: AppServices = Depends(get_services),
):
    conversation = await services.memory.history(conversation_id)
    if conversation is None:
        raise ResourceNotFoundError("Conversation", conversation_id)
    return ConversationOut(
        id=conversation.id,
        messages=[
            MessageOut(role=m.role, content=m.content, timestamp=m.timestamp)
            for m in conversation.messages
        ],
        started_at=conversation.started_at,
        last_updated=conversation.last_updated,
    )


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_conversation(
    conversation_id: ConversationId,
    services: AppServices = Depends(get_services),
):
    """Hard delete. Clearing an unknown conversation is a 404."""
    if not await services.memory.clear(conversation_id):
        raise ResourceNotFoundError("Conversation", conversation_id)
    logger.info("Conversation cleared", extra={"conversation_id": conversation_id})
