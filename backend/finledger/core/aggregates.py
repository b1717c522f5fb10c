"""Ledger Aggregates — pure functions computing derived figures from a transaction list.

Invariants:
    - Aggregates are never stored: every call recomputes from the list it is given
    - Decimal arithmetic only; money is rendered at exactly 2 decimal places
    - Iteration follows ledger order, so "first encountered" is well defined
    - Only expenses count as spending; income only feeds balance and "earned"

Design Decisions:
    - Frozen dataclasses for results (pure, hashable, no validation cost on hot paths)
    - Month → year resolution picks the most recent year that has spending in that month
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from finledger.core.domain_types import BudgetHealth, Category
from finledger.core.records import Transaction

ZERO = Decimal("0.00")
WARNING_RATIO = Decimal("0.9")
UNDER_RATIO = Decimal("0.8")

MONTHLY_BREAKDOWN_LIMIT = 12
DAILY_BREAKDOWN_LIMIT = 90

MONTH_ALIASES: dict[str, int] = {}
for _num in range(1, 13):
    MONTH_ALIASES[calendar.month_name[_num].lower()] = _num
    MONTH_ALIASES[calendar.month_abbr[_num].lower()] = _num
MONTH_ALIASES["sept"] = 9


# ─── Formatting ──────────────────────────────────────────────────

def format_money(amount: Decimal) -> str:
    """$1234.5 → '$1234.50'; negatives render as '-$20.00'."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):.2f}"


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def parse_month(name: str) -> int | None:
    """'September' / 'sep' / 'Sept.' → 9; anything else → None."""
    return MONTH_ALIASES.get(name.strip().lower().rstrip("."))


def month_label(month: int) -> str:
    return calendar.month_name[month]


# ─── Result Types ────────────────────────────────────────────────

@dataclass(frozen=True)
class LedgerTotals:
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    transaction_count: int
    expense_count: int


@dataclass(frozen=True)
class MonthSummary:
    year: int
    month: int
    spent: Decimal
    earned: Decimal
    count: int

    @property
    def label(self) -> str:
        return f"{calendar.month_abbr[self.month]} {self.year}"


@dataclass(frozen=True)
class DaySummary:
    day: date
    spent: Decimal
    count: int
    top_category: Category
    top_category_amount: Decimal


@dataclass(frozen=True)
class SpendingSlice:
    """Expense subset selected by month and/or category."""
    total: Decimal
    count: int
    by_category: dict[Category, Decimal] = field(default_factory=dict)

    @property
    def top_category(self) -> tuple[Category, Decimal] | None:
        return top_entry(self.by_category)


@dataclass(frozen=True)
class BudgetLine:
    category: Category
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    status: BudgetHealth


@dataclass(frozen=True)
class BudgetReport:
    lines: list[BudgetLine]
    total_budget: Decimal
    total_spent: Decimal

    @property
    def over_or_at_limit(self) -> list[BudgetLine]:
        return [
            line for line in self.lines
            if line.status in (BudgetHealth.OVER, BudgetHealth.AT_LIMIT)
        ]

    @property
    def under_budget(self) -> list[BudgetLine]:
        return [line for line in self.lines if line.spent < line.limit * UNDER_RATIO]


# ─── Core Aggregates ─────────────────────────────────────────────

def expenses(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in transactions if tx.is_expense]


def compute_totals(transactions: Sequence[Transaction]) -> LedgerTotals:
    income = ZERO
    spent = ZERO
    expense_count = 0
    for tx in transactions:
        if tx.is_expense:
            spent += tx.amount
            expense_count += 1
        else:
            income += tx.amount
    return LedgerTotals(
        total_income=income,
        total_expenses=spent,
        balance=income - spent,
        transaction_count=len(transactions),
        expense_count=expense_count,
    )


def top_entry(by_category: dict[Category, Decimal]) -> tuple[Category, Decimal] | None:
    """Largest category; ties keep the first inserted."""
    best: tuple[Category, Decimal] | None = None
    for category, amount in by_category.items():
        if best is None or amount > best[1]:
            best = (category, amount)
    return best


def category_totals(transactions: Iterable[Transaction]) -> list[tuple[Category, Decimal]]:
    """Expense totals per category, sorted descending (stable for ties)."""
    totals: dict[Category, Decimal] = {}
    for tx in expenses(transactions):
        totals[tx.category] = totals.get(tx.category, ZERO) + tx.amount
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def select_spending(
    transactions: Iterable[Transaction],
    *,
    month: int | None = None,
    year: int | None = None,
    category: Category | None = None,
) -> tuple[SpendingSlice, list[Transaction]]:
    """Filter expenses by month/year/category. Returns the slice and matching records."""
    matched: list[Transaction] = []
    by_category: dict[Category, Decimal] = {}
    total = ZERO
    for tx in expenses(transactions):
        if month is not None and tx.date.month != month:
            continue
        if year is not None and tx.date.year != year:
            continue
        if category is not None and tx.category != category:
            continue
        matched.append(tx)
        total += tx.amount
        by_category[tx.category] = by_category.get(tx.category, ZERO) + tx.amount
    return SpendingSlice(total=total, count=len(matched), by_category=by_category), matched


def resolve_month_year(transactions: Iterable[Transaction], month: int) -> int | None:
    """Most recent year with at least one expense in the given month."""
    years = {tx.date.year for tx in expenses(transactions) if tx.date.month == month}
    return max(years) if years else None


# ─── Breakdowns ──────────────────────────────────────────────────

def monthly_breakdown(
    transactions: Iterable[Transaction], limit: int = MONTHLY_BREAKDOWN_LIMIT,
) -> list[MonthSummary]:
    """Per year-month spent/earned/count, newest first."""
    buckets: dict[tuple[int, int], list[Decimal | int]] = defaultdict(
        lambda: [ZERO, ZERO, 0],
    )
    for tx in transactions:
        bucket = buckets[(tx.date.year, tx.date.month)]
        if tx.is_expense:
            bucket[0] += tx.amount
        else:
            bucket[1] += tx.amount
        bucket[2] += 1
    ordered = sorted(buckets.items(), key=lambda item: item[0], reverse=True)
    return [
        MonthSummary(year=y, month=m, spent=spent, earned=earned, count=count)
        for (y, m), (spent, earned, count) in ordered[:limit]
    ]


def spending_by_day(transactions: Iterable[Transaction]) -> dict[date, DaySummary]:
    """Expense totals per day, keyed in first-encountered ledger order."""
    totals: dict[date, Decimal] = {}
    counts: dict[date, int] = {}
    per_category: dict[date, dict[Category, Decimal]] = {}
    for tx in expenses(transactions):
        totals[tx.date] = totals.get(tx.date, ZERO) + tx.amount
        counts[tx.date] = counts.get(tx.date, 0) + 1
        cats = per_category.setdefault(tx.date, {})
        cats[tx.category] = cats.get(tx.category, ZERO) + tx.amount

    result: dict[date, DaySummary] = {}
    for day, total in totals.items():
        top_cat, top_amount = top_entry(per_category[day])
        result[day] = DaySummary(
            day=day, spent=total, count=counts[day],
            top_category=top_cat, top_category_amount=top_amount,
        )
    return result


def daily_breakdown(
    transactions: Iterable[Transaction], limit: int = DAILY_BREAKDOWN_LIMIT,
) -> list[DaySummary]:
    """Per-day expense summary, newest first."""
    days = spending_by_day(transactions)
    return sorted(days.values(), key=lambda d: d.day, reverse=True)[:limit]


def find_extreme_day(
    transactions: Iterable[Transaction],
    *,
    highest: bool,
    month: int | None = None,
    year: int | None = None,
) -> DaySummary | None:
    """Highest/lowest spending day. Strict comparison: on ties the first day encountered wins."""
    scoped = [
        tx for tx in transactions
        if (month is None or tx.date.month == month)
        and (year is None or tx.date.year == year)
    ]
    best: DaySummary | None = None
    for summary in spending_by_day(scoped).values():
        if best is None:
            best = summary
        elif highest and summary.spent > best.spent:
            best = summary
        elif not highest and summary.spent < best.spent:
            best = summary
    return best


# ─── Budgets ─────────────────────────────────────────────────────

def classify_budget(spent: Decimal, limit: Decimal) -> BudgetHealth:
    if spent > limit:
        return BudgetHealth.OVER
    if spent == limit:
        return BudgetHealth.AT_LIMIT
    if spent > limit * WARNING_RATIO:
        return BudgetHealth.WARNING
    return BudgetHealth.GOOD


def budget_report(
    transactions: Iterable[Transaction],
    budgets: dict[Category, Decimal],
    today: date,
) -> BudgetReport:
    """Current calendar month expenses per budgeted category vs. its limit."""
    slice_, _ = select_spending(transactions, month=today.month, year=today.year)
    lines: list[BudgetLine] = []
    total_budget = ZERO
    total_spent = ZERO
    for category, limit in budgets.items():
        spent = slice_.by_category.get(category, ZERO)
        percentage = (spent / limit * 100).quantize(Decimal("0.1")) if limit else ZERO
        lines.append(BudgetLine(
            category=category,
            limit=limit,
            spent=spent,
            remaining=limit - spent,
            percentage=percentage,
            status=classify_budget(spent, limit),
        ))
        total_budget += limit
        total_spent += spent
    return BudgetReport(lines=lines, total_budget=total_budget, total_spent=total_spent)
