"""Context Assembler — builds the model prompt from pre-computed ledger figures.

Invariants:
    - Every figure in the prompt is computed here from the live transaction list
    - Monthly breakdown ≤ 12 entries, daily ≤ 90, knowledge ≤ 3, similar ≤ 5
    - Recent turns are the last N stored messages, normalized to a user-first
      alternating history, followed by the current message
    - A retrieval fault never blocks assembly (Retriever returns an empty context)
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from finledger.core.aggregates import (
    DaySummary, LedgerTotals, MonthSummary, category_totals, compute_totals,
    daily_breakdown, format_money, monthly_breakdown, plural,
)
from finledger.core.conversation_window import to_model_history, with_current_message
from finledger.core.domain_types import Category
from finledger.core.records import (
    ConversationMessage, KnowledgeEntry, RetrievalContext, RetrievalMatch, Transaction,
)
from finledger.services.action_catalog import render_catalog
from finledger.services.retrieval import Retriever
from finledger.services.system_prompt import build_system_prompt

logger = logging.getLogger(__name__)


@dataclass
class AssembledContext:
    system_prompt: str
    messages: list[dict]
    totals: LedgerTotals
    retrieval: RetrievalContext = field(default_factory=RetrievalContext)


# -- Section formatters --------------------------------------------------------

def format_overview(totals: LedgerTotals) -> str:
    return "\n".join([
        f"Current Balance: {format_money(totals.balance)}",
        f"Total Income: {format_money(totals.total_income)}",
        f"Total Expenses: {format_money(totals.total_expenses)}",
        f"Total Transactions: {totals.transaction_count}",
    ])


def format_category_totals(totals: list[tuple[Category, object]]) -> str:
    if not totals:
        return "No expenses recorded yet"
    return "\n".join(f"- {cat.value}: {format_money(amount)}" for cat, amount in totals)


def format_monthly(months: Sequence[MonthSummary]) -> str:
    if not months:
        return "No monthly data available"
    return "\n".join(
        f"{m.label}: {format_money(m.spent)} spent, {format_money(m.earned)} earned "
        f"({plural(m.count, 'transaction')})"
        for m in months
    )


def format_daily(days: Sequence[DaySummary]) -> str:
    if not days:
        return "No daily spending data available"
    return "\n".join(
        f"{d.day.isoformat()}: {format_money(d.spent)} spent "
        f"({plural(d.count, 'transaction')}, top: {d.top_category.value} "
        f"{format_money(d.top_category_amount)})"
        for d in days
    )


def format_knowledge(entries: Sequence[KnowledgeEntry]) -> str:
    return "\n\n".join(
        f"{i}. {entry.category.upper()}:\n{entry.content}"
        for i, entry in enumerate(entries, start=1)
    )


def format_similar(matches: Sequence[RetrievalMatch]) -> str:
    lines = []
    for match in matches:
        meta = match.metadata
        amount = meta.get("amount")
        amount_text = f" ${amount}" if amount is not None else ""
        lines.append(
            f"- {meta.get('description', match.id)} ({meta.get('category', '?')}, "
            f"{meta.get('type', '?')}){amount_text} on {meta.get('date', '?')}"
        )
    return "\n".join(lines)


# -- Assembler -----------------------------------------------------------------

class ContextAssembler:

    def __init__(self, retriever: Retriever | None = None):
        self.retriever = retriever

    async def assemble(
        self,
        message: str,
        transactions: Sequence[Transaction],
        recent: list[ConversationMessage],
    ) -> AssembledContext:
        totals = compute_totals(transactions)
        retrieval = RetrievalContext()
        if self.retriever is not None:
            retrieval = await self.retriever.retrieve_context(message)

        system_prompt = build_system_prompt(
            action_catalog=render_catalog(),
            overview=format_overview(totals),
            categories=format_category_totals(category_totals(transactions)),
            monthly=format_monthly(monthly_breakdown(transactions)),
            daily=format_daily(daily_breakdown(transactions)),
            knowledge=format_knowledge(retrieval.knowledge),
            similar_transactions=format_similar(retrieval.similar_transactions),
        )
        messages = with_current_message(to_model_history(recent), message)
        return AssembledContext(
            system_prompt=system_prompt,
            messages=messages,
            totals=totals,
            retrieval=retrieval,
        )
