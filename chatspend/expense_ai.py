"""
Expense extraction and monthly insights backed by a language model.
"""

import logging
import os
import time
from typing import Any, Iterable, Optional

from chatspend.call_llm import Generator, get_generator
from chatspend.prompt import (
    DEFAULT_INSIGHTS_LIMIT,
    build_expense_prompt,
    build_insights_prompt,
)
from chatspend.reconcile import reconcile_expense, reconcile_insights
from chatspend.schemas import ExtractedExpense

logger = logging.getLogger(__name__)

EXTRACTION_TEMPERATURE = 0.1
INSIGHTS_TEMPERATURE = 0.2

INSIGHTS_UNAVAILABLE_MESSAGE = (
    "Unable to generate insights at this time. Please try again later."
)


def insights_limit() -> int:
    """Number of expenses embedded in the insights prompt (INSIGHTS_MAX_EXPENSES)."""
    raw = os.getenv("INSIGHTS_MAX_EXPENSES", str(DEFAULT_INSIGHTS_LIMIT))
    try:
        limit = int(raw)
    except ValueError:
        limit = -1
    if limit < 1:
        logger.warning(
            f"Invalid INSIGHTS_MAX_EXPENSES={raw!r}, using {DEFAULT_INSIGHTS_LIMIT}"
        )
        return DEFAULT_INSIGHTS_LIMIT
    return limit


async def extract_expense(
    text: str, generate: Optional[Generator] = None
) -> Optional[ExtractedExpense]:
    """
    Extract a structured expense from a free-text chat message.

    Args:
        text: The user's message, e.g. "an phở 30k"
        generate: Async callable sending a prompt to the model and returning
            its raw text; defaults to the configured provider

    Returns:
        The extracted expense, or None when the model call fails or nothing
        could be recovered
    """
    generate = generate or get_generator(temperature=EXTRACTION_TEMPERATURE)
    logger.info(f"Analyzing expense text: {text}")

    try:
        start_time = time.time()
        reply = await generate(build_expense_prompt(text))
        logger.info(f"LLM call completed in {time.time() - start_time:.2f}s")
    except Exception as e:
        logger.error(f"Error extracting expense from text: {str(e)}", exc_info=True)
        return None

    logger.debug(f"Raw model response: {reply}")
    return reconcile_expense(reply, text)


async def generate_insights(
    expenses: Iterable[Any],
    month: int,
    year: int,
    generate: Optional[Generator] = None,
) -> list[str]:
    """
    Ask the model for spending insights on one month of expenses.

    Args:
        expenses: Expense summaries (description, amount, currency, category)
        month: Month number (1-12)
        year: Four digit year
        generate: Async prompt-to-text callable; defaults to the configured
            provider

    Returns:
        A non-empty list of insight sentences
    """
    expenses = list(expenses)
    generate = generate or get_generator(temperature=INSIGHTS_TEMPERATURE)
    limit = insights_limit()
    logger.info(
        f"Generating insights for {month}/{year} with {len(expenses)} expenses"
    )

    try:
        start_time = time.time()
        reply = await generate(build_insights_prompt(expenses, month, year, limit))
        logger.info(f"LLM call completed in {time.time() - start_time:.2f}s")
    except Exception as e:
        logger.error(f"Error generating monthly insights: {str(e)}", exc_info=True)
        return [INSIGHTS_UNAVAILABLE_MESSAGE]

    logger.debug(f"Raw insights response: {reply}")
    return reconcile_insights(reply)
