"""System Prompts — main interpreter prompt and the constrained confirmation prompt.

Invariants:
    - The model is told to use only the pre-computed figures and never do arithmetic
    - Optional sections (knowledge, similar transactions) are omitted when empty
    - The confirmation prompt restricts output to what was asked, under 50 words
"""

IDENTITY = (
    "You are a financial assistant with access to the user's ledger and the "
    "ability to take actions on it."
)

RULES = """\
<rules>
1. NEVER make up numbers or guess. Use ONLY the figures in <financial_data>.
2. NEVER do arithmetic yourself. Every total below is already computed.
3. Be specific: quote dollar amounts and transaction counts exactly as given.
4. If there is no data for a period or category, say so clearly.
5. Keep answers under 100 words and about the current question only.
6. Use conversation history for context; do not repeat earlier answers.
</rules>"""

CONFIRMATION_PROMPT = """\
You are a financial assistant confirming actions that were just executed.

<rules>
1. Confirm ONLY what the user asked for.
2. If expenses were added, confirm them and state the total added.
3. Do NOT mention the balance unless the user asked about it.
4. Use the exact numbers provided. Never calculate or invent figures.
5. Keep it under 50 words.
</rules>"""


def _section(tag: str, body: str) -> str:
    return f"<{tag}>\n{body}\n</{tag}>"


def build_system_prompt(
    *,
    action_catalog: str,
    overview: str,
    categories: str,
    monthly: str,
    daily: str,
    knowledge: str = "",
    similar_transactions: str = "",
) -> str:
    """Assemble the main prompt from pre-rendered sections."""
    parts = [
        IDENTITY,
        RULES,
        _section("actions", (
            "When the user wants to DO something (add, set, delete, check budgets, "
            "analyze spending), request actions instead of answering directly.\n"
            + action_catalog
            + "\n\nFor informational questions, answer in plain text without ACTION_CALL lines."
        )),
    ]
    if knowledge:
        parts.append(_section("knowledge", (
            "Relevant financial guidance; use it when giving advice.\n" + knowledge
        )))
    if similar_transactions:
        parts.append(_section("similar_transactions", similar_transactions))
    parts.append(_section("financial_data", "\n\n".join([
        overview,
        "SPENDING BY CATEGORY (all time):\n" + categories,
        "MONTHLY BREAKDOWN (newest first):\n" + monthly,
        "DAILY SPENDING (newest first):\n" + daily,
    ])))
    parts.append(
        "Answer using ONLY the data above, or request actions. Cite exact figures."
    )
    return "\n\n".join(parts)
