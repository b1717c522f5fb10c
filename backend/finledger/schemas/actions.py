"""Action Argument Schemas — per-action Pydantic models validated before execution.

Invariants:
    - Every registered action has exactly one argument model
    - amount > 0 and quantized to cents; category must be in the fixed enum
    - Unknown extra arguments are ignored, never executed
    - Validation failure means the action does not run (no partial mutation)

Design Decisions:
    - Category and month are normalized to lowercase before validation
    - Income without a category is filed under "other"
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finledger.core.aggregates import parse_month
from finledger.core.domain_types import Category, TransactionType
from finledger.core.records import to_money


class ActionArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _normalize_token(v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v


class AddTransactionArgs(ActionArgs):
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    category: Category | None = None
    type: TransactionType = TransactionType.EXPENSE
    date: dt.date | None = None

    @field_validator("category", "type", mode="before")
    @classmethod
    def normalize_enums(cls, v: Any) -> Any:
        return _normalize_token(v)

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

    @model_validator(mode="after")
    def default_category(self) -> "AddTransactionArgs":
        if self.category is None:
            if self.type == TransactionType.INCOME:
                self.category = Category.OTHER
            else:
                raise ValueError("category is required for expenses")
        return self


class SetBudgetArgs(ActionArgs):
    category: Category
    amount: Decimal = Field(gt=0)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Any:
        return _normalize_token(v)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)


class SpendingSummaryArgs(ActionArgs):
    """category: enum value or "all"; month: month name, "current" or "all"."""
    category: str | None = None
    month: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> Any:
        v = _normalize_token(v)
        if v in (None, "", "all"):
            return None
        Category(v)
        return v

    @field_validator("month", mode="before")
    @classmethod
    def validate_month(cls, v: Any) -> Any:
        v = _normalize_token(v)
        if v in (None, "", "all"):
            return None
        if v != "current" and parse_month(v) is None:
            raise ValueError(f"unknown month '{v}'")
        return v

    @property
    def category_filter(self) -> Category | None:
        return Category(self.category) if self.category else None


class BudgetStatusArgs(ActionArgs):
    pass


class DeleteTransactionArgs(ActionArgs):
    description: str = Field(min_length=1, max_length=500)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description cannot be empty or whitespace")
        return v
