"""Sample Ledger — deterministic demo transactions and default budget limits.

Invariants:
    - Same output on every call (ids derived from date + description)
    - Returned in chronological order; income uses category "other"
"""

import re
from datetime import date, datetime, time, timezone
from decimal import Decimal

from finledger.core.domain_types import Category, TransactionType
from finledger.core.records import Transaction

DEFAULT_BUDGETS: dict[Category, Decimal] = {
    Category.FOOD: Decimal("500.00"),
    Category.TRANSPORTATION: Decimal("300.00"),
    Category.HOUSING: Decimal("1000.00"),
    Category.ENTERTAINMENT: Decimal("200.00"),
    Category.SHOPPING: Decimal("300.00"),
    Category.HEALTHCARE: Decimal("400.00"),
    Category.OTHER: Decimal("200.00"),
}

_I = TransactionType.INCOME
_E = TransactionType.EXPENSE

# (year, month) → [(day, amount, description, category, type)]
_MONTHS: dict[tuple[int, int], list[tuple[int, str, str, Category, TransactionType]]] = {
    (2025, 8): [
        (1, "3200", "Monthly Salary", Category.OTHER, _I),
        (1, "950", "Rent payment", Category.HOUSING, _E),
        (2, "35.00", "Gym membership", Category.HEALTHCARE, _E),
        (3, "125.50", "Whole Foods groceries", Category.FOOD, _E),
        (4, "65.00", "Gas station fill-up", Category.TRANSPORTATION, _E),
        (5, "85", "Electric bill", Category.HOUSING, _E),
        (6, "45.80", "Restaurant dinner", Category.FOOD, _E),
        (7, "15.99", "Netflix subscription", Category.ENTERTAINMENT, _E),
        (10, "98.30", "Weekly groceries", Category.FOOD, _E),
        (11, "89.99", "New shoes", Category.SHOPPING, _E),
        (12, "18.50", "Uber ride", Category.TRANSPORTATION, _E),
        (15, "250", "Freelance project", Category.OTHER, _I),
        (16, "28.00", "Movie tickets", Category.ENTERTAINMENT, _E),
        (17, "125.00", "Electronics", Category.SHOPPING, _E),
        (19, "72.00", "Gas station", Category.TRANSPORTATION, _E),
        (20, "87.40", "Grocery shopping", Category.FOOD, _E),
        (21, "150.00", "Doctor visit copay", Category.HEALTHCARE, _E),
        (24, "52.90", "Restaurant lunch", Category.FOOD, _E),
    ],
    (2025, 9): [
        (1, "3150", "Monthly Salary", Category.OTHER, _I),
        (1, "950", "Rent payment", Category.HOUSING, _E),
        (1, "35.00", "Gym membership", Category.HEALTHCARE, _E),
        (2, "142.30", "Costco groceries", Category.FOOD, _E),
        (4, "15.99", "Spotify Premium", Category.ENTERTAINMENT, _E),
        (5, "68.00", "Gas fill-up", Category.TRANSPORTATION, _E),
        (6, "92", "Electric & gas bill", Category.HOUSING, _E),
        (7, "38.90", "Brunch", Category.FOOD, _E),
        (12, "156.80", "Clothing haul", Category.SHOPPING, _E),
        (14, "105.60", "Weekly shopping", Category.FOOD, _E),
        (15, "52.00", "Theater show", Category.ENTERTAINMENT, _E),
        (18, "70.00", "Gas station", Category.TRANSPORTATION, _E),
        (20, "180", "Freelance consulting", Category.OTHER, _I),
        (23, "95.80", "Grocery store", Category.FOOD, _E),
        (25, "45.00", "Oil change", Category.TRANSPORTATION, _E),
        (26, "120.00", "Dental cleaning", Category.HEALTHCARE, _E),
        (28, "48.70", "Dinner out", Category.FOOD, _E),
    ],
    (2025, 10): [
        (1, "3300", "Monthly Salary", Category.OTHER, _I),
        (1, "950", "Rent payment", Category.HOUSING, _E),
        (2, "15.99", "Netflix", Category.ENTERTAINMENT, _E),
        (3, "132.50", "Grocery haul", Category.FOOD, _E),
        (4, "72.00", "Gas station", Category.TRANSPORTATION, _E),
        (5, "42.30", "Restaurant dinner", Category.FOOD, _E),
        (7, "18.90", "Coffee & pastries", Category.FOOD, _E),
    ],
}


def _sample_id(day: date, description: str) -> str:
    return f"sample-{day.isoformat()}-{re.sub(r'[^a-z0-9]+', '-', description.lower()).strip('-')}"


def generate_sample_transactions() -> list[Transaction]:
    transactions: list[Transaction] = []
    for (year, month), rows in _MONTHS.items():
        for day_num, amount, description, category, tx_type in rows:
            day = date(year, month, day_num)
            transactions.append(Transaction(
                id=_sample_id(day, description),
                amount=Decimal(amount),
                description=description,
                category=category,
                type=tx_type,
                date=day,
                created_at=datetime.combine(day, time(12, 0), tzinfo=timezone.utc),
            ))
    return sorted(transactions, key=lambda tx: tx.created_at)
