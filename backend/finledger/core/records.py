"""Ledger Records — tagged, validated record types for transactions, messages and actions.

Invariants:
    - Transaction.amount > 0, quantized to cents (Decimal, never float)
    - Transaction is frozen: records are created or deleted, never edited in place
    - Category and type are closed enums — malformed entries fail validation
    - Conversation.messages is ordered oldest → newest
    - FunctionResult is the only shape an action returns (success or failure)

Design Decisions:
    - Pydantic at the store boundary: a stored dict becomes a Transaction or is rejected
      before it can reach aggregate computation
    - Floats coerced through str() so 0.1 stays 0.10 instead of 0.1000000000000000055
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finledger.core.domain_types import (
    ActionTag, Category, Role, TransactionType,
)

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal to a cent-quantized Decimal."""
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError("amount must be finite")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError("amount too large")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Transaction(BaseModel):
    """One ledger entry — expense or income."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    category: Category = Category.OTHER
    type: TransactionType
    date: date
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("amount", mode="before")
    @classmethod
    def quantize_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description cannot be empty or whitespace")
        return v

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    def to_storage(self) -> dict:
        return self.model_dump(mode="json")


class ConversationMessage(BaseModel):
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_utc_now)


class Conversation(BaseModel):
    """Ordered, bounded message log for one conversation id."""
    id: str
    messages: list[ConversationMessage] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utc_now)
    last_updated: datetime = Field(default_factory=_utc_now)


class FunctionCall(BaseModel):
    """One parsed ACTION_CALL directive. Arguments are validated later, per action."""
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class FunctionResult(BaseModel):
    """Outcome of one executed action."""
    success: bool
    message: str
    data: dict[str, Any] | None = None
    action: ActionTag | None = None
    error_code: str | None = None

    @classmethod
    def ok(
        cls, message: str, data: dict[str, Any] | None = None,
        action: ActionTag | None = None,
    ) -> "FunctionResult":
        return cls(success=True, message=message, data=data, action=action)

    @classmethod
    def failed(cls, message: str, error_code: str) -> "FunctionResult":
        return cls(success=False, message=message, error_code=error_code)


class KnowledgeEntry(BaseModel):
    """Curated knowledge article — static corpus, not user data."""
    id: str
    content: str
    category: str
    tags: list[str] = Field(default_factory=list)
    source: str = "builtin"
    score: float | None = None


class RetrievalMatch(BaseModel):
    """Transient vector search hit."""
    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievalContext(BaseModel):
    """Knowledge snippets plus similar past transactions for one query."""
    knowledge: list[KnowledgeEntry] = Field(default_factory=list)
    similar_transactions: list[RetrievalMatch] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.knowledge and not self.similar_transactions
