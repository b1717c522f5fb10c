"""Action Catalog — the fixed registry of actions the model may request.

Invariants:
    - Exactly five actions; names match ActionName and ActionDispatch's handler dict
    - Parameter descriptions mirror the argument schemas in schemas/actions.py
    - render_catalog() is the only text the model sees about actions
"""

from finledger.core.domain_types import CATEGORY_VALUES, ActionName

DIRECTIVE_FORMAT = 'ACTION_CALL: {"name": "<action_name>", "arguments": {<parameters>}}'

_CATEGORIES = ", ".join(CATEGORY_VALUES)

ACTION_CATALOG = [
    {
        "name": ActionName.ADD_TRANSACTION.value,
        "description": "Record a new expense or income.",
        "parameters": {
            "amount": "number > 0 (required)",
            "description": "short text (required)",
            "category": f"one of: {_CATEGORIES} (required for expenses)",
            "type": "expense | income (default expense)",
            "date": "YYYY-MM-DD (optional, defaults to today)",
        },
    },
    {
        "name": ActionName.SET_BUDGET.value,
        "description": "Create or replace the monthly budget limit for a category.",
        "parameters": {
            "category": f"one of: {_CATEGORIES} (required)",
            "amount": "number > 0 (required)",
        },
    },
    {
        "name": ActionName.GET_SPENDING_SUMMARY.value,
        "description": "Analyze expenses, optionally for one category and/or month.",
        "parameters": {
            "category": f"one of: {_CATEGORIES}, or all (optional)",
            "month": "month name, current, or all (optional)",
        },
    },
    {
        "name": ActionName.GET_BUDGET_STATUS.value,
        "description": "Compare this month's spending against every budget.",
        "parameters": {},
    },
    {
        "name": ActionName.DELETE_TRANSACTION.value,
        "description": "Delete the first transaction whose description contains the text.",
        "parameters": {
            "description": "text to match, case-insensitive (required)",
        },
    },
]

_EXAMPLES = """\
User: "Set my food budget to $500"
ACTION_CALL: {"name": "set_budget", "arguments": {"category": "food", "amount": 500}}

User: "I spent $50 on groceries. Am I over budget on food?"
ACTION_CALL: {"name": "add_transaction", "arguments": {"amount": 50, "description": "groceries", "category": "food", "type": "expense"}}
ACTION_CALL: {"name": "get_budget_status", "arguments": {}}

User: "Remove the Netflix charge"
ACTION_CALL: {"name": "delete_transaction", "arguments": {"description": "netflix"}}"""


def action_names() -> list[str]:
    return [action["name"] for action in ACTION_CATALOG]


def render_catalog() -> str:
    """Action list, directive format and examples as prompt text."""
    lines = []
    for action in ACTION_CATALOG:
        params = action["parameters"]
        if params:
            signature = "; ".join(f"{k}: {v}" for k, v in params.items())
        else:
            signature = "no parameters"
        lines.append(f"- {action['name']}: {action['description']} ({signature})")
    return (
        "\n".join(lines)
        + "\n\nTo perform actions, emit one line per action, in the order they must run:\n"
        + DIRECTIVE_FORMAT
        + "\n\nExamples:\n"
        + _EXAMPLES
    )
