"""Ledger Routes — direct entry, summary, budgets, reset and knowledge indexing.

Invariants:
    - All figures are recomputed from the stored transactions on every request
    - Direct-entry expenses without a category get a suggested one (other on any fault)
    - GET /budgets merges stored limits over the default limits
    - Indexing after entry or reset is best-effort; it never fails the request

Design Decisions:
    - Reset replaces both transactions and budgets in one call; conversations survive
"""

import logging

from fastapi import APIRouter, Depends, status

from finledger.api.dependencies import get_services
from finledger.core.aggregates import category_totals, compute_totals
from finledger.core.domain_types import Category, TransactionType
from finledger.core.records import Transaction
from finledger.core.sample_data import DEFAULT_BUDGETS, generate_sample_transactions
from finledger.schemas.ledger import (
    BudgetsOut, BudgetUpdate, KnowledgeInitOut, LedgerSummaryOut, ResetOut,
    TransactionCreate, TransactionCreated, TransactionOut,
)
from finledger.services.service_container import AppServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["ledger"])


def _money(amount) -> str:
    return f"{amount:.2f}"


def _budget_strings(budgets: dict) -> dict[str, str]:
    return {category.value: _money(limit) for category, limit in budgets.items()}


@router.post(
    "/transactions", response_model=TransactionCreated,
    status_code=status.HTTP_201_CREATED, response_model_by_alias=True,
)
async def create_transaction(
    body: TransactionCreate, services: AppServices = Depends(get_services),
):
    suggested, confidence = None, None
    category = body.category
    if category is None:
        if body.type == TransactionType.EXPENSE:
            suggested, confidence = await services.retriever.suggest_category(body.description)
            category = suggested
        else:
            category = Category.OTHER

    tx = Transaction(
        amount=body.amount,
        description=body.description,
        category=category,
        type=body.type,
        date=body.date or services.today(),
    )
    await services.ledger.append_transaction(tx)
    await services.retriever.index_transaction(tx)
    logger.info(f"Transaction added via direct entry ({tx.type.value}, {tx.category.value})")
    return TransactionCreated(
        transaction=TransactionOut.from_record(tx),
        suggested_category=suggested,
        confidence=confidence,
    )


@router.get("/summary", response_model=LedgerSummaryOut, response_model_by_alias=True)
async def get_summary(services: AppServices = Depends(get_services)):
    transactions = await services.ledger.list_transactions()
    today = services.today()
    totals = compute_totals(transactions)
    this_month = compute_totals([
        tx for tx in transactions
        if tx.date.year == today.year and tx.date.month == today.month
    ])
    newest_first = sorted(transactions, key=lambda tx: tx.created_at, reverse=True)
    return LedgerSummaryOut(
        balance=_money(totals.balance),
        total_income=_money(totals.total_income),
        total_expenses=_money(totals.total_expenses),
        monthly_income=_money(this_month.total_income),
        monthly_expenses=_money(this_month.total_expenses),
        category_breakdown={
            category.value: _money(amount)
            for category, amount in category_totals(transactions)
        },
        transactions=[TransactionOut.from_record(tx) for tx in newest_first],
    )


@router.post("/budgets", response_model=BudgetsOut)
async def set_budget(body: BudgetUpdate, services: AppServices = Depends(get_services)):
    await services.ledger.set_budget(body.category, body.amount)
    return BudgetsOut(budgets=_budget_strings(await services.ledger.get_budgets()))


@router.get("/budgets", response_model=BudgetsOut)
async def get_budgets(services: AppServices = Depends(get_services)):
    merged = {**DEFAULT_BUDGETS, **await services.ledger.get_budgets()}
    return BudgetsOut(budgets=_budget_strings(merged))


@router.post("/reset", response_model=ResetOut, response_model_by_alias=True)
async def reset_ledger(services: AppServices = Depends(get_services)):
    transactions = generate_sample_transactions()
    await services.ledger.replace_all(transactions, DEFAULT_BUDGETS)
    indexed = await services.retriever.index_transactions(transactions)
    logger.info(f"Ledger reset to sample data ({len(transactions)} transactions)")
    return ResetOut(
        transaction_count=len(transactions),
        budgets=_budget_strings(DEFAULT_BUDGETS),
        indexed=indexed,
    )


@router.post("/knowledge/initialize", response_model=KnowledgeInitOut)
async def initialize_knowledge(services: AppServices = Depends(get_services)):
    """Re-index the curated corpus. RetrievalUnavailableError surfaces as 503."""
    indexed = await services.retriever.index_knowledge_base(force=True)
    return KnowledgeInitOut(indexed=indexed, backend=services.retriever.index.name)
