"""Ledger Aggregates — pure figure computation over transaction lists.

Tests cover:
    - Totals, balance and money formatting
    - Month/category selection agrees with a naive recomputation
    - Breakdown ordering and limits
    - Extreme-day ties keep the first day encountered
    - Budget classification boundaries and current-month scoping
"""

from datetime import date, timedelta
from decimal import Decimal

from finledger.core.aggregates import (
    budget_report, category_totals, classify_budget, compute_totals, daily_breakdown,
    find_extreme_day, format_money, monthly_breakdown, parse_month, resolve_month_year,
    select_spending,
)
from finledger.core.domain_types import BudgetHealth, Category, TransactionType
from finledger.core.records import Transaction
from finledger.core.sample_data import generate_sample_transactions


def _tx(amount, category=Category.FOOD, day=date(2025, 9, 1),
        type=TransactionType.EXPENSE, description="item"):
    return Transaction(
        amount=Decimal(str(amount)), description=description,
        category=category, type=type, date=day,
    )


def test_compute_totals_splits_income_and_expenses():
    txs = [
        _tx("1000", Category.OTHER, type=TransactionType.INCOME),
        _tx("30.50"),
        _tx("19.50", Category.TRANSPORTATION),
    ]
    totals = compute_totals(txs)
    assert totals.total_income == Decimal("1000.00")
    assert totals.total_expenses == Decimal("50.00")
    assert totals.balance == Decimal("950.00")
    assert totals.transaction_count == 3
    assert totals.expense_count == 2


def test_compute_totals_empty_ledger_is_zero():
    totals = compute_totals([])
    assert totals.balance == Decimal("0")
    assert totals.transaction_count == 0


def test_format_money_two_decimals_and_negative_sign():
    assert format_money(Decimal("1234.5")) == "$1234.50"
    assert format_money(Decimal("-20")) == "-$20.00"
    assert format_money(Decimal("0")) == "$0.00"


def test_parse_month_accepts_names_and_abbreviations():
    assert parse_month("September") == 9
    assert parse_month("sept.") == 9
    assert parse_month("Oct") == 10
    assert parse_month("smarch") is None


def test_select_spending_matches_naive_recomputation():
    txs = generate_sample_transactions()
    for month in (8, 9, 10):
        for category in (None, Category.FOOD, Category.TRANSPORTATION):
            slice_, matched = select_spending(txs, month=month, year=2025, category=category)
            naive = [
                t for t in txs
                if t.type == TransactionType.EXPENSE and t.date.month == month
                and (category is None or t.category == category)
            ]
            assert slice_.total == sum((t.amount for t in naive), Decimal("0"))
            assert slice_.count == len(naive)
            assert matched == naive


def test_select_spending_ignores_income():
    txs = [_tx("500", Category.OTHER, type=TransactionType.INCOME), _tx("20")]
    slice_, _ = select_spending(txs)
    assert slice_.total == Decimal("20.00")
    assert slice_.count == 1


def test_category_totals_sorted_descending():
    txs = [_tx("10", Category.SHOPPING), _tx("40", Category.FOOD), _tx("25", Category.SHOPPING)]
    assert category_totals(txs) == [
        (Category.FOOD, Decimal("40.00")),
        (Category.SHOPPING, Decimal("35.00")),
    ]


def test_resolve_month_year_picks_most_recent_year_with_spending():
    txs = [_tx("10", day=date(2023, 9, 3)), _tx("10", day=date(2024, 9, 3))]
    assert resolve_month_year(txs, 9) == 2024
    assert resolve_month_year(txs, 3) is None


def test_monthly_breakdown_newest_first_with_limit():
    txs = [_tx("10", day=date(2025, m, 1)) for m in range(1, 11)]
    months = monthly_breakdown(txs, limit=3)
    assert [(m.year, m.month) for m in months] == [(2025, 10), (2025, 9), (2025, 8)]
    assert months[0].label == "Oct 2025"


def _one_per_day(start: date, days: int) -> list[Transaction]:
    return [_tx("10", day=start + timedelta(days=n)) for n in range(days)]


def test_breakdowns_cap_at_newest_twelve_months_and_ninety_days():
    txs = _one_per_day(date(2024, 9, 1), 400)

    months = monthly_breakdown(txs)
    assert len(months) == 12
    assert (months[0].year, months[0].month) == (2025, 10)
    assert (months[-1].year, months[-1].month) == (2024, 11)

    days = daily_breakdown(txs)
    assert len(days) == 90
    assert days[0].day == date(2025, 10, 5)
    assert days[-1].day == date(2025, 7, 8)


def test_monthly_breakdown_counts_earned_separately():
    txs = [
        _tx("100", Category.OTHER, type=TransactionType.INCOME),
        _tx("40"),
    ]
    (month,) = monthly_breakdown(txs)
    assert month.spent == Decimal("40.00")
    assert month.earned == Decimal("100.00")
    assert month.count == 2


def test_daily_breakdown_reports_top_category_per_day():
    txs = [
        _tx("12", Category.FOOD, day=date(2025, 9, 2)),
        _tx("30", Category.SHOPPING, day=date(2025, 9, 2)),
        _tx("5", Category.FOOD, day=date(2025, 9, 1)),
    ]
    days = daily_breakdown(txs)
    assert [d.day for d in days] == [date(2025, 9, 2), date(2025, 9, 1)]
    assert days[0].spent == Decimal("42.00")
    assert days[0].top_category == Category.SHOPPING
    assert days[0].count == 2


def test_find_extreme_day_highest_and_lowest():
    txs = [
        _tx("20", day=date(2025, 9, 1)),
        _tx("80", day=date(2025, 9, 2)),
        _tx("5", day=date(2025, 9, 3)),
    ]
    assert find_extreme_day(txs, highest=True).day == date(2025, 9, 2)
    assert find_extreme_day(txs, highest=False).day == date(2025, 9, 3)


def test_find_extreme_day_tie_keeps_first_encountered():
    txs = [_tx("50", day=date(2025, 9, 5)), _tx("50", day=date(2025, 9, 1))]
    assert find_extreme_day(txs, highest=True).day == date(2025, 9, 5)
    assert find_extreme_day(txs, highest=False).day == date(2025, 9, 5)


def test_find_extreme_day_none_without_expenses():
    txs = [_tx("100", Category.OTHER, type=TransactionType.INCOME)]
    assert find_extreme_day(txs, highest=True) is None


def test_classify_budget_boundaries():
    limit = Decimal("50.00")
    assert classify_budget(Decimal("51.00"), limit) == BudgetHealth.OVER
    assert classify_budget(Decimal("50.00"), limit) == BudgetHealth.AT_LIMIT
    assert classify_budget(Decimal("46.00"), limit) == BudgetHealth.WARNING
    assert classify_budget(Decimal("45.00"), limit) == BudgetHealth.GOOD


def test_budget_report_only_counts_current_month():
    txs = [
        _tx("30", day=date(2025, 10, 2)),
        _tx("400", day=date(2025, 9, 2)),
    ]
    report = budget_report(txs, {Category.FOOD: Decimal("100.00")}, today=date(2025, 10, 15))
    (line,) = report.lines
    assert line.spent == Decimal("30.00")
    assert line.remaining == Decimal("70.00")
    assert line.percentage == Decimal("30.0")
    assert line.status == BudgetHealth.GOOD
    assert [l.category for l in report.under_budget] == [Category.FOOD]
    assert report.over_or_at_limit == []
