"""Chat — natural-language entry point into the ledger.

Invariants:
    - One request = one orchestrator turn; the reply is always natural language
    - Only store faults (LedgerStoreError 503, ConcurrencyError 409) produce error responses
    - Multi-step fields are omitted when no directive ran
"""

import logging

from fastapi import APIRouter, Depends

from finledger.api.dependencies import get_services
from finledger.schemas.chat import ChatRequest, ChatResponse, FunctionResultOut
from finledger.services.service_container import AppServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.post(
    "", response_model=ChatResponse,
    response_model_exclude_none=True, response_model_by_alias=True,
)
async def chat(body: ChatRequest, services: AppServices = Depends(get_services)):
    reply = await services.orchestrator.handle_message(body.conversation_id, body.message)
    results = None
    if reply.function_results is not None:
        results = [
            FunctionResultOut.model_validate(r.model_dump(mode="json"))
            for r in reply.function_results
        ]
    return ChatResponse(
        response=reply.response,
        action=reply.action,
        functions_called=reply.functions_called,
        function_results=results,
        steps_executed=reply.steps_executed,
    )
