"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - Category is a closed set: food, transportation, housing, entertainment,
      shopping, healthcare, other
    - All valid states encoded as Enums — no raw string matching
    - Store keys are fixed logical names (StoreKey)

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Category(str, Enum):
    """Spending categories — fixed enum shared by ledger, budgets and actions."""
    FOOD = "food"
    TRANSPORTATION = "transportation"
    HOUSING = "housing"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    HEALTHCARE = "healthcare"
    OTHER = "other"


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class Role(str, Enum):
    """Conversation message author."""
    USER = "user"
    ASSISTANT = "assistant"


class ActionName(str, Enum):
    """Registered actions the model may request via ACTION_CALL directives."""
    ADD_TRANSACTION = "add_transaction"
    SET_BUDGET = "set_budget"
    GET_SPENDING_SUMMARY = "get_spending_summary"
    GET_BUDGET_STATUS = "get_budget_status"
    DELETE_TRANSACTION = "delete_transaction"


class ActionTag(str, Enum):
    """Tags attached to results of mutating actions (clients refresh on these)."""
    EXPENSE_ADDED = "expense_added"
    INCOME_ADDED = "income_added"
    BUDGET_SET = "budget_set"
    TRANSACTION_DELETED = "transaction_deleted"


class BudgetHealth(str, Enum):
    """Per-category budget standing for the current month."""
    OVER = "over"
    AT_LIMIT = "at_limit"
    WARNING = "warning"
    GOOD = "good"


class StoreKey(str, Enum):
    """Fixed logical keys in the key-value ledger object."""
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    CONVERSATIONS = "conversations"


CATEGORY_VALUES: tuple[str, ...] = tuple(c.value for c in Category)
