"""Deterministic Query Router — answers common ledger questions without the model.

Invariants:
    - One ordered intent table; the first matching rule answers, later rules never run
    - Read-only: handlers receive the transaction list and return text
    - Every answer is computed from the live list passed in (no cached aggregates)
    - Zero matches still produce an answer that cites the overall expense total

Design Decisions:
    - Rule order: day-extreme, month-total, category-total, balance. Category precedes
      balance so "how much have I spent on food" is not read as a balance question
    - Month → year: most recent year with spending in that month
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Sequence

from finledger.core.aggregates import (
    category_totals, compute_totals, find_extreme_day, format_money,
    month_label, parse_month, plural, resolve_month_year, select_spending,
)
from finledger.core.domain_types import Category
from finledger.core.records import Transaction

MONTH_PATTERN = (
    r"january|february|march|april|may|june|july|august|september|october|"
    r"november|december|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec"
)


@dataclass(frozen=True)
class RoutedAnswer:
    intent: str
    text: str


IntentHandler = Callable[[re.Match, str, Sequence[Transaction]], str]


@dataclass(frozen=True)
class IntentRule:
    name: str
    pattern: re.Pattern
    handler: IntentHandler


# ─── Handlers ────────────────────────────────────────────────────

def _answer_extreme_day(match: re.Match, text: str, transactions: Sequence[Transaction]) -> str:
    lowered = text.lower()
    highest = not re.search(r"\b(least|lowest)\b", lowered)
    superlative = "highest" if highest else "lowest"
    totals = compute_totals(transactions)

    month_match = re.search(rf"\b(?:in|of|during)\s+({MONTH_PATTERN})\b", lowered)
    month = parse_month(month_match.group(1)) if month_match else None
    year = resolve_month_year(transactions, month) if month else None
    scope = f" in {month_label(month)}" if month else ""

    day = None
    if month is None or year is not None:
        day = find_extreme_day(transactions, highest=highest, month=month, year=year)
    if day is None:
        scope_for = f" for {month_label(month)}" if month else ""
        return (
            f"I couldn't find daily spending data{scope_for}. "
            f"Your transactions show total spending of {format_money(totals.total_expenses)}."
        )

    d = day.day
    return (
        f"{d:%A}, {d:%B} {d.day}, {d.year} was your {superlative} spending day{scope} "
        f"with {format_money(day.spent)} spent across {plural(day.count, 'transaction')}. "
        f"Most of it went to {day.top_category.value} ({format_money(day.top_category_amount)})."
    )


def _answer_month_total(match: re.Match, text: str, transactions: Sequence[Transaction]) -> str:
    month = parse_month(match.group("month"))
    label = month_label(month)
    year = resolve_month_year(transactions, month)
    if year is None:
        totals = compute_totals(transactions)
        return (
            f"I don't have spending data for {label}. "
            f"Your total recorded spending is {format_money(totals.total_expenses)}."
        )

    slice_, _ = select_spending(transactions, month=month, year=year)
    answer = (
        f"In {label}, you spent {format_money(slice_.total)} "
        f"across {plural(slice_.count, 'transaction')}."
    )
    top = slice_.top_category
    if top:
        answer += f" Your highest spending was in {top[0].value} ({format_money(top[1])})."
    return answer


def _answer_category_total(match: re.Match, text: str, transactions: Sequence[Transaction]) -> str:
    word = match.group("category").lower()
    totals = compute_totals(transactions)
    try:
        category = Category(word)
    except ValueError:
        category = None

    amount = Decimal("0.00")
    if category is not None:
        slice_, _ = select_spending(transactions, category=category)
        amount = slice_.total

    if amount > 0:
        percentage = (amount / totals.total_expenses * 100).quantize(Decimal("0.1"))
        return (
            f"You've spent {format_money(amount)} on {word}, which is {percentage}% "
            f"of your total expenses ({format_money(totals.total_expenses)})."
        )

    recorded = ", ".join(cat.value for cat, _ in category_totals(transactions)) or "none yet"
    return (
        f"You haven't recorded any spending in the {word} category yet. "
        f"Your total expenses are {format_money(totals.total_expenses)} "
        f"(categories: {recorded})."
    )


def _answer_balance(match: re.Match, text: str, transactions: Sequence[Transaction]) -> str:
    totals = compute_totals(transactions)
    return (
        f"Your current balance is {format_money(totals.balance)}. "
        f"You have {format_money(totals.total_income)} in total income and "
        f"{format_money(totals.total_expenses)} in expenses across "
        f"{plural(totals.transaction_count, 'transaction')}."
    )


# ─── Intent Table ────────────────────────────────────────────────

INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        "extreme_spending_day",
        re.compile(
            r"which day.*spen[dt].*\b(most|least|highest|lowest)\b"
            r"|what day.*\b(most|least)\b.*spen[dt]"
            r"|\b(highest|lowest)\b.*spending.*\bday\b"
            r"|\b(most|least)\b.*money.*\bday\b",
            re.IGNORECASE,
        ),
        _answer_extreme_day,
    ),
    IntentRule(
        "month_total",
        re.compile(
            r"how much.*\b(did|do|have)\b.*\bspen[dt].*\b(in|during|for)\s+"
            rf"(?P<month>{MONTH_PATTERN})\b",
            re.IGNORECASE,
        ),
        _answer_month_total,
    ),
    IntentRule(
        "category_total",
        re.compile(
            r"how much.*\b(did|do|have)\b.*\bspen[dt].*\bon\s+(?:my\s+|the\s+)?(?P<category>\w+)",
            re.IGNORECASE,
        ),
        _answer_category_total,
    ),
    IntentRule(
        "balance",
        re.compile(
            r"what.*\bmy\b.*\bbalance\b|\bcurrent\s+balance\b|how much (money )?do i have",
            re.IGNORECASE,
        ),
        _answer_balance,
    ),
)


def match_intent(text: str) -> tuple[IntentRule, re.Match] | None:
    for rule in INTENT_RULES:
        found = rule.pattern.search(text)
        if found:
            return rule, found
    return None


def route_query(text: str, transactions: Sequence[Transaction]) -> RoutedAnswer | None:
    """Answer directly from the ledger when a fast-path intent matches; None otherwise."""
    matched = match_intent(text)
    if matched is None:
        return None
    rule, found = matched
    return RoutedAnswer(intent=rule.name, text=rule.handler(found, text, transactions))
