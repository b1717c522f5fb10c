"""Action Handlers — add_transaction, set_budget, get_spending_summary, get_budget_status,
delete_transaction.

Invariants:
    - Handlers receive already-validated argument models (schemas/actions.py)
    - Every read recomputes from the ledger; no handler caches aggregates
    - Mutations happen through LedgerStore only; a handler mutates at most one record
    - Not-found deletes raise ResourceNotFoundError (reported in-band by dispatch)
    - "today" is injected, so month-relative actions are deterministic under test

Design Decisions:
    - Money in result payloads is rendered as 2dp strings (JSON-safe, no float drift)
    - Transaction indexing for similarity search is best-effort after the append
"""

import logging
from datetime import date
from decimal import Decimal

from finledger.core.aggregates import (
    ZERO, budget_report, format_money, month_label, parse_month, plural,
    resolve_month_year, select_spending,
)
from finledger.core.domain_types import ActionTag, TransactionType
from finledger.core.errors import ErrorContext, ResourceNotFoundError
from finledger.core.records import FunctionResult, Transaction
from finledger.core.repository_protocols import TodayProvider
from finledger.schemas.actions import (
    AddTransactionArgs, BudgetStatusArgs, DeleteTransactionArgs,
    SetBudgetArgs, SpendingSummaryArgs,
)
from finledger.services.ledger_store import LedgerStore
from finledger.services.retrieval import Retriever

logger = logging.getLogger(__name__)

RECENT_MATCHES = 5


def _money(amount: Decimal) -> str:
    return f"{amount:.2f}"


def _tx_payload(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "amount": _money(tx.amount),
        "description": tx.description,
        "category": tx.category.value,
        "type": tx.type.value,
        "date": tx.date.isoformat(),
    }


class LedgerActionHandlers:
    """Executes validated actions against one ledger."""

    def __init__(
        self,
        ledger: LedgerStore,
        retriever: Retriever | None = None,
        today: TodayProvider = date.today,
    ):
        self.ledger = ledger
        self.retriever = retriever
        self.today = today

    async def add_transaction(self, args: AddTransactionArgs) -> FunctionResult:
        tx = Transaction(
            amount=args.amount,
            description=args.description,
            category=args.category,
            type=args.type,
            date=args.date or self.today(),
        )
        await self.ledger.append_transaction(tx)
        if self.retriever is not None:
            await self.retriever.index_transaction(tx)

        tag = ActionTag.INCOME_ADDED if tx.type == TransactionType.INCOME else ActionTag.EXPENSE_ADDED
        return FunctionResult.ok(
            f'Added {tx.type.value} of {format_money(tx.amount)} for "{tx.description}" '
            f"in {tx.category.value} category",
            data={"transaction": _tx_payload(tx)},
            action=tag,
        )

    async def set_budget(self, args: SetBudgetArgs) -> FunctionResult:
        previous = await self.ledger.set_budget(args.category, args.amount)
        if previous is not None:
            message = (
                f"Budget for {args.category.value} updated from {format_money(previous)} "
                f"to {format_money(args.amount)}/month"
            )
        else:
            message = f"Budget for {args.category.value} set to {format_money(args.amount)}/month"
        return FunctionResult.ok(
            message,
            data={
                "category": args.category.value,
                "amount": _money(args.amount),
                "previous": _money(previous) if previous is not None else None,
            },
            action=ActionTag.BUDGET_SET,
        )

    async def get_spending_summary(self, args: SpendingSummaryArgs) -> FunctionResult:
        transactions = await self.ledger.list_transactions()
        month = year = None
        if args.month == "current":
            today = self.today()
            month, year = today.month, today.year
        elif args.month:
            month = parse_month(args.month)
            year = resolve_month_year(transactions, month)

        slice_, matched = select_spending(
            transactions, month=month, year=year, category=args.category_filter,
        )
        scope = []
        if args.category_filter:
            scope.append(f"on {args.category_filter.value}")
        if month:
            scope.append(f"in {month_label(month)}" + (f" {year}" if year else ""))
        suffix = f" {' '.join(scope)}" if scope else ""

        return FunctionResult.ok(
            f"Found {plural(slice_.count, 'transaction')}{suffix} totaling {format_money(slice_.total)}",
            data={
                "total": _money(slice_.total),
                "count": slice_.count,
                "breakdown": {cat.value: _money(amt) for cat, amt in slice_.by_category.items()},
                "transactions": [_tx_payload(tx) for tx in matched[-RECENT_MATCHES:]],
            },
        )

    async def get_budget_status(self, args: BudgetStatusArgs) -> FunctionResult:
        budgets = await self.ledger.get_budgets()
        if not budgets:
            return FunctionResult.ok(
                "No budgets set",
                data={"budgets": [], "overBudget": [], "underBudget": [],
                      "totalBudget": _money(ZERO), "totalSpent": _money(ZERO)},
            )

        report = budget_report(await self.ledger.list_transactions(), budgets, self.today())
        flagged = report.over_or_at_limit
        under = report.under_budget
        message = (
            f"Budget status: {len(flagged)} at or over budget, {len(under)} under budget"
        )
        if flagged:
            details = ", ".join(
                f"{line.category.value} {format_money(line.spent)} of "
                f"{format_money(line.limit)} ({line.status.value})"
                for line in flagged
            )
            message += f" ({details})"

        return FunctionResult.ok(
            message,
            data={
                "budgets": [
                    {
                        "category": line.category.value,
                        "budget": _money(line.limit),
                        "spent": _money(line.spent),
                        "remaining": _money(line.remaining),
                        "percentage": str(line.percentage),
                        "status": line.status.value,
                    }
                    for line in report.lines
                ],
                "overBudget": [line.category.value for line in flagged],
                "underBudget": [line.category.value for line in under],
                "totalBudget": _money(report.total_budget),
                "totalSpent": _money(report.total_spent),
            },
        )

    async def delete_transaction(self, args: DeleteTransactionArgs) -> FunctionResult:
        needle = args.description.lower()
        removed = await self.ledger.remove_transaction(
            lambda tx: needle in tx.description.lower(),
        )
        if removed is None:
            raise ResourceNotFoundError(
                "Transaction", args.description,
                context=ErrorContext(
                    user_message=f'No transaction found matching "{args.description}"',
                ),
            )
        if self.retriever is not None:
            await self.retriever.forget_transaction(removed)
        return FunctionResult.ok(
            f"Deleted transaction: {removed.description} ({format_money(removed.amount)})",
            data={"transaction": _tx_payload(removed)},
            action=ActionTag.TRANSACTION_DELETED,
        )
