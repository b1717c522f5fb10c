"""Action Dispatch — explicit routing from action name to argument schema and handler.

Invariants:
    - Every action → (schema, handler) mapping is visible in one dict; no getattr magic
    - Every action advertised in the prompt catalog has a handler (checked at construction)
    - Unknown actions return a failed result with UNKNOWN_ACTION (never raises)
    - Invalid arguments return VALIDATION_ERROR before the handler runs (no mutation)
    - In-band action errors (validation, not-found) become failed FunctionResults
    - Store faults (LedgerStoreError, ConcurrencyError) propagate to the caller
"""

import logging

from pydantic import ValidationError

from finledger.core.domain_types import ActionName
from finledger.core.errors import (
    ActionValidationError, ConcurrencyError, ErrorContext, FinLedgerError,
    LedgerStoreError, ResourceNotFoundError,
)
from finledger.core.records import FunctionCall, FunctionResult
from finledger.schemas.actions import (
    AddTransactionArgs, BudgetStatusArgs, DeleteTransactionArgs,
    SetBudgetArgs, SpendingSummaryArgs,
)
from finledger.services.action_catalog import action_names
from finledger.services.handle_actions import LedgerActionHandlers

logger = logging.getLogger(__name__)


def _describe_validation(e: ValidationError) -> tuple[str, str]:
    """First error as (field, human message)."""
    first = e.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or "arguments"
    return field, f"Invalid {field}: {first.get('msg', 'invalid value')}"


class ActionDispatch:
    """Routes action name → validated handler call. Explicit registration."""

    def __init__(self, handlers: LedgerActionHandlers):
        self._handlers = {
            ActionName.ADD_TRANSACTION.value: (AddTransactionArgs, handlers.add_transaction),
            ActionName.SET_BUDGET.value: (SetBudgetArgs, handlers.set_budget),
            ActionName.GET_SPENDING_SUMMARY.value: (SpendingSummaryArgs, handlers.get_spending_summary),
            ActionName.GET_BUDGET_STATUS.value: (BudgetStatusArgs, handlers.get_budget_status),
            ActionName.DELETE_TRANSACTION.value: (DeleteTransactionArgs, handlers.delete_transaction),
        }
        unhandled = [name for name in action_names() if name not in self._handlers]
        if unhandled:
            raise ValueError(f"Catalog actions without a handler: {', '.join(unhandled)}")

    async def execute(
        self, call: FunctionCall, context: ErrorContext | None = None,
    ) -> FunctionResult:
        entry = self._handlers.get(call.name)
        if entry is None:
            logger.warning(
                f"Unknown action '{call.name}'",
                extra={"action_name": call.name, "error_code": "UNKNOWN_ACTION"},
            )
            return FunctionResult.failed(f"Unknown function: {call.name}", "UNKNOWN_ACTION")

        schema, handler = entry
        try:
            args = schema.model_validate(call.arguments)
        except ValidationError as e:
            field, message = _describe_validation(e)
            error = ActionValidationError(message, field, context=context)
            logger.warning(
                error.message,
                extra={"action_name": call.name, "error_code": error.code},
            )
            return FunctionResult.failed(error.message, error.code)

        try:
            return await handler(args)
        except (LedgerStoreError, ConcurrencyError):
            raise
        except (ActionValidationError, ResourceNotFoundError) as e:
            logger.info(
                e.message, extra={"action_name": call.name, "error_code": e.code},
            )
            return FunctionResult.failed(e.context.user_message or e.message, e.code)
        except FinLedgerError as e:
            logger.warning(
                f"Action error: {e.message}",
                extra={"action_name": call.name, "error_code": e.code},
            )
            return FunctionResult.failed(e.context.user_message or e.message, e.code)
