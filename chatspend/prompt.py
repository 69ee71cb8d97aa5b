"""
Prompt builders for expense extraction and monthly insights.
"""

from typing import Any, Iterable, Mapping, Optional

from chatspend.llm_system_prompt import EXPENSE_EXTRACTION_PROMPT, INSIGHTS_PROMPT
from chatspend.schemas import CATEGORY_NAMES, CURRENCIES

DEFAULT_INSIGHTS_LIMIT = 100


def build_expense_prompt(text: str) -> str:
    """
    Generate a complete prompt asking the model to turn a chat message into
    a JSON expense object.

    Args:
        text: The user's message, embedded verbatim

    Returns:
        Complete prompt string ready to send to the model
    """
    return EXPENSE_EXTRACTION_PROMPT.format(
        text=text,
        categories=", ".join(CATEGORY_NAMES),
        currencies=", ".join(CURRENCIES),
    )


def _field(expense: Any, name: str) -> Any:
    if isinstance(expense, Mapping):
        return expense.get(name)
    return getattr(expense, name, None)


def _format_amount(amount: Any) -> Any:
    """Stored amounts are floats; show 45000.0 as 45000."""
    if isinstance(amount, float) and amount.is_integer():
        return int(amount)
    return amount


def summarize_expenses(
    expenses: Iterable[Any], limit: Optional[int] = DEFAULT_INSIGHTS_LIMIT
) -> str:
    """
    Render expenses one per line as "{description}: {amount} {currency} for {category}".

    Expenses may be pydantic models or plain mappings. Only the first
    `limit` records are included (all of them when limit is None).
    """
    lines = []
    for index, expense in enumerate(expenses):
        if limit is not None and index >= limit:
            break
        description = _field(expense, "description") or "Expense"
        amount = _format_amount(_field(expense, "amount"))
        currency = _field(expense, "currency")
        category = _field(expense, "category")
        lines.append(f"{description}: {amount} {currency} for {category}")
    return "\n".join(lines)


def build_insights_prompt(
    expenses: Iterable[Any],
    month: int,
    year: int,
    limit: Optional[int] = DEFAULT_INSIGHTS_LIMIT,
) -> str:
    """
    Generate a prompt asking for three spending insights as a JSON array.

    Args:
        expenses: Expense summaries with description, amount, currency
            and category
        month: Month number (1-12) the expenses belong to
        year: Four digit year
        limit: Maximum number of expenses embedded in the prompt

    Returns:
        Complete prompt string ready to send to the model
    """
    return INSIGHTS_PROMPT.format(
        month=month,
        year=year,
        expenses_summary=summarize_expenses(expenses, limit),
    )
