"""Ledger Schemas — direct-entry transactions, budgets and summary payloads.

Invariants:
    - amount > 0, quantized to cents; category in the fixed enum when given
    - Money leaves the API as 2dp strings
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finledger.core.domain_types import Category, TransactionType
from finledger.core.records import Transaction, to_money


class TransactionCreate(BaseModel):
    """Direct entry. Expenses without a category get a suggested one."""
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    category: Category | None = None
    type: TransactionType = TransactionType.EXPENSE
    date: dt.date | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description cannot be empty or whitespace")
        return v


class TransactionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    amount: str
    description: str
    category: Category
    type: TransactionType
    date: dt.date
    created_at: dt.datetime = Field(alias="createdAt")

    @classmethod
    def from_record(cls, tx: Transaction) -> "TransactionOut":
        return cls(
            id=tx.id,
            amount=f"{tx.amount:.2f}",
            description=tx.description,
            category=tx.category,
            type=tx.type,
            date=tx.date,
            created_at=tx.created_at,
        )


class TransactionCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transaction: TransactionOut
    suggested_category: Category | None = Field(None, alias="suggestedCategory")
    confidence: float | None = None


class BudgetUpdate(BaseModel):
    category: Category
    amount: Decimal = Field(gt=0)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)


class BudgetsOut(BaseModel):
    budgets: dict[str, str]


class LedgerSummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    balance: str
    total_income: str = Field(alias="totalIncome")
    total_expenses: str = Field(alias="totalExpenses")
    monthly_income: str = Field(alias="monthlyIncome")
    monthly_expenses: str = Field(alias="monthlyExpenses")
    category_breakdown: dict[str, str] = Field(alias="categoryBreakdown")
    transactions: list[TransactionOut]


class ResetOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transaction_count: int = Field(alias="transactionCount")
    budgets: dict[str, str]
    indexed: int


class KnowledgeInitOut(BaseModel):
    indexed: int
    backend: str
