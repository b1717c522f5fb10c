"""Conversation Orchestrator — one user message in, one natural-language answer out.

Invariants:
    - Recent turns are read before the current user message is appended
    - The router runs before any model call; a routed answer never touches the model
    - Directives execute strictly sequentially in textual order; each step is awaited
      before the next starts, so later steps observe earlier mutations
    - A failed step is recorded and the batch continues; earlier steps are never rolled back
    - After a batch, aggregates are recomputed from the store, never reused
    - Both model calls run under asyncio.wait_for ceilings
    - Every branch ends in text; only store faults (LedgerStoreError, ConcurrencyError)
      escape handle_message

Design Decisions:
    - Malformed directive syntax → the raw model text is the answer, nothing executes
    - Inference timeout or API failure → deterministic answer from known aggregates
    - Confirmation failure → step messages joined
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from finledger.core.aggregates import LedgerTotals, ZERO, compute_totals, format_money, plural
from finledger.core.directive_parser import extract_directives, has_directive
from finledger.core.domain_types import ActionName, Role
from finledger.core.errors import (
    ConcurrencyError, ErrorContext, InferenceAPIError, InferenceMalformedError,
    InferenceTimeoutError, LedgerStoreError,
)
from finledger.core.query_router import route_query
from finledger.core.records import FunctionCall, FunctionResult
from finledger.core.repository_protocols import InferenceClient
from finledger.services.action_dispatch import ActionDispatch
from finledger.services.context_assembler import ContextAssembler
from finledger.services.conversation_memory import ConversationMemory
from finledger.services.ledger_store import LedgerStore
from finledger.services.system_prompt import CONFIRMATION_PROMPT

logger = logging.getLogger(__name__)

MULTI_STEP_COMPLETED = "multi_step_completed"


@dataclass
class ChatReply:
    response: str
    action: str | None = None
    functions_called: list[str] | None = None
    function_results: list[FunctionResult] | None = None
    steps_executed: int | None = None
    intent: str | None = None


# -- Deterministic texts -------------------------------------------------------

def empty_answer(totals: LedgerTotals) -> str:
    return (
        f"I have access to your financial data: Balance is {format_money(totals.balance)}, "
        f"with {format_money(totals.total_expenses)} in total expenses across "
        f"{plural(totals.transaction_count, 'transaction')}. What would you like to know?"
    )


def fallback_answer(totals: LedgerTotals) -> str:
    return (
        "I have access to your financial data but encountered an issue. "
        f"Your current balance is {format_money(totals.balance)} with "
        f"{format_money(totals.total_expenses)} in expenses. "
        "Please try rephrasing your question."
    )


def summarize_steps(results: Sequence[FunctionResult]) -> str:
    return " ".join(r.message for r in results)


def build_confirmation_request(
    message: str,
    calls: Sequence[FunctionCall],
    results: Sequence[FunctionResult],
    totals: LedgerTotals,
) -> str:
    """Step results, batch totals and freshly recomputed aggregates as one user turn."""
    steps = "\n".join(
        f"{i}. {call.name}: {'Success' if result.success else 'Failed'} - {result.message}"
        for i, (call, result) in enumerate(zip(calls, results), start=1)
    )
    parts = [
        f"User request: {message}",
        f"Executed {len(calls)} function(s):\n{steps}",
    ]

    added: dict[str, Decimal] = {}
    grand_total = ZERO
    count = 0
    for call, result in zip(calls, results):
        if call.name != ActionName.ADD_TRANSACTION.value or not result.success:
            continue
        tx = (result.data or {}).get("transaction") or {}
        amount = Decimal(str(tx.get("amount", "0")))
        category = tx.get("category", "other")
        added[category] = added.get(category, ZERO) + amount
        grand_total += amount
        count += 1
    if count:
        by_category = ", ".join(f"{cat} {format_money(amt)}" for cat, amt in added.items())
        parts.append(
            "CALCULATED TOTALS (use these exact numbers):\n"
            f"- Total transactions added: {count}\n"
            f"- Grand total added: {format_money(grand_total)}\n"
            f"- By category: {by_category}"
        )

    parts.append(
        "UPDATED FINANCIAL STATUS (use these exact numbers):\n"
        f"- Current Balance: {format_money(totals.balance)}\n"
        f"- Total Income: {format_money(totals.total_income)}\n"
        f"- Total Expenses: {format_money(totals.total_expenses)}\n"
        f"- Total Transactions: {totals.transaction_count}"
    )
    parts.append(
        "Provide a brief confirmation of what was done. Answer ONLY what was asked; "
        "do not volunteer balance or financial status unless specifically requested."
    )
    return "\n\n".join(parts)


# -- Orchestrator --------------------------------------------------------------

class ConversationOrchestrator:
    """Router → context → model → directives → confirmation, for one ledger."""

    def __init__(
        self,
        *,
        ledger: LedgerStore,
        memory: ConversationMemory,
        inference: InferenceClient,
        assembler: ContextAssembler,
        dispatch: ActionDispatch,
        inference_timeout_seconds: float = 30.0,
        confirmation_timeout_seconds: float = 30.0,
        answer_max_tokens: int = 512,
        confirmation_max_tokens: int = 150,
        context_turns: int = 5,
    ):
        self.ledger = ledger
        self.memory = memory
        self.inference = inference
        self.assembler = assembler
        self.dispatch = dispatch
        self.inference_timeout_seconds = inference_timeout_seconds
        self.confirmation_timeout_seconds = confirmation_timeout_seconds
        self.answer_max_tokens = answer_max_tokens
        self.confirmation_max_tokens = confirmation_max_tokens
        self.context_turns = context_turns

    async def handle_message(self, conversation_id: str, message: str) -> ChatReply:
        transactions = await self.ledger.list_transactions()
        recent = await self.memory.recent(conversation_id, self.context_turns)
        await self.memory.append(conversation_id, Role.USER, message)

        routed = route_query(message, transactions)
        if routed is not None:
            logger.info(
                f"Answered by router ({routed.intent})",
                extra={"conversation_id": conversation_id, "intent": routed.intent},
            )
            reply = ChatReply(response=routed.text, intent=routed.intent)
        else:
            reply = await self._interpret(conversation_id, message, transactions, recent)

        await self.memory.append(conversation_id, Role.ASSISTANT, reply.response)
        return reply

    async def _interpret(self, conversation_id, message, transactions, recent) -> ChatReply:
        context = ErrorContext(conversation_id=conversation_id)
        assembled = await self.assembler.assemble(message, transactions, recent)

        try:
            text = await self._call_model(
                assembled.system_prompt, assembled.messages,
                self.answer_max_tokens, self.inference_timeout_seconds, context,
            )
        except (InferenceTimeoutError, InferenceAPIError) as e:
            logger.warning(
                f"Inference failed, answering from aggregates: {e.message}",
                extra={"conversation_id": conversation_id, "error_code": e.code},
            )
            return ChatReply(response=fallback_answer(assembled.totals))

        if not text.strip():
            return ChatReply(response=empty_answer(assembled.totals))

        if not has_directive(text):
            return ChatReply(response=text)

        try:
            calls = extract_directives(text)
        except InferenceMalformedError as e:
            logger.warning(
                f"Malformed directive, returning raw text: {e.message}",
                extra={"conversation_id": conversation_id, "error_code": e.code},
            )
            return ChatReply(response=text)
        return await self._run_batch(conversation_id, message, calls)

    async def _run_batch(
        self, conversation_id: str, message: str, calls: list[FunctionCall],
    ) -> ChatReply:
        results: list[FunctionResult] = []
        for step, call in enumerate(calls, start=1):
            ctx = ErrorContext(conversation_id=conversation_id, action_name=call.name, step=step)
            result = await self._execute_action_safe(call, ctx)
            logger.info(
                f"Step {step}/{len(calls)} {call.name}: "
                f"{'ok' if result.success else 'failed'}",
                extra={
                    "conversation_id": conversation_id, "action_name": call.name,
                    "step": step, "error_code": result.error_code,
                },
            )
            results.append(result)

        totals = compute_totals(await self.ledger.list_transactions())
        confirmation = await self._confirm(conversation_id, message, calls, results, totals)
        return ChatReply(
            response=confirmation,
            action=MULTI_STEP_COMPLETED if any(r.action for r in results) else None,
            functions_called=[c.name for c in calls],
            function_results=results,
            steps_executed=len(calls),
        )

    async def _execute_action_safe(
        self, call: FunctionCall, context: ErrorContext,
    ) -> FunctionResult:
        """Execute one action with an error boundary; store faults still propagate."""
        try:
            return await self.dispatch.execute(call, context)
        except (LedgerStoreError, ConcurrencyError):
            raise
        except Exception as e:
            logger.error(
                f"Unexpected error in action '{call.name}': {e}",
                exc_info=True,
                extra={"action_name": call.name, "step": context.step},
            )
            return FunctionResult.failed(
                f"Internal error executing {call.name}", "ACTION_EXECUTION_ERROR",
            )

    async def _confirm(self, conversation_id, message, calls, results, totals) -> str:
        request = build_confirmation_request(message, calls, results, totals)
        context = ErrorContext(conversation_id=conversation_id)
        try:
            text = await self._call_model(
                CONFIRMATION_PROMPT, [{"role": Role.USER.value, "content": request}],
                self.confirmation_max_tokens, self.confirmation_timeout_seconds, context,
            )
        except (InferenceTimeoutError, InferenceAPIError) as e:
            logger.warning(
                f"Confirmation failed, joining step messages: {e.message}",
                extra={"conversation_id": conversation_id, "error_code": e.code},
            )
            return summarize_steps(results)
        return text.strip() or summarize_steps(results)

    async def _call_model(
        self,
        system: str,
        messages: list[dict],
        max_tokens: int,
        timeout_seconds: float,
        context: ErrorContext,
    ) -> str:
        try:
            return await asyncio.wait_for(
                self.inference.complete(system, messages, max_tokens, context=context),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise InferenceTimeoutError(timeout_seconds, context=context)
