"""
Dashboard aggregates: monthly totals, category breakdown and spending trend.
"""

import calendar
from collections import defaultdict
from typing import Iterable, Optional

from chatspend.schemas import (
    Budget,
    Category,
    CategoryBreakdown,
    Expense,
    MonthlySummary,
    TrendPoint,
)

TREND_SAMPLE_DAYS = [1, 5, 10, 15, 20, 25, 30]


def category_breakdown(
    expenses: Iterable[Expense], categories: Iterable[Category]
) -> list[CategoryBreakdown]:
    """
    Total spend per category with its share of the month, largest first.

    Expenses whose category is unknown are counted under "Other" when that
    category exists. Categories without spend are left out.
    """
    by_id = {category.id: category for category in categories}
    other = next((c for c in by_id.values() if c.name == "Other"), None)

    totals = defaultdict(float)
    for expense in expenses:
        category = by_id.get(expense.categoryId, other)
        if category is not None:
            totals[category.id] += expense.amount

    grand_total = sum(totals.values())
    breakdown = [
        CategoryBreakdown(
            **by_id[category_id].model_dump(),
            amount=amount,
            percentage=round(amount / grand_total * 100) if grand_total else 0,
        )
        for category_id, amount in totals.items()
        if amount > 0
    ]
    breakdown.sort(key=lambda item: item.amount, reverse=True)
    return breakdown


def spending_trend(expenses: Iterable[Expense], month: int, year: int) -> list[TrendPoint]:
    """Cumulative spend at fixed sample days of the month."""
    days_in_month = calendar.monthrange(year, month)[1]
    by_day = defaultdict(float)
    for expense in expenses:
        by_day[expense.date.day] += expense.amount

    points = []
    for sample_day in TREND_SAMPLE_DAYS:
        if sample_day > days_in_month:
            continue
        total = sum(amount for day, amount in by_day.items() if day <= sample_day)
        points.append(TrendPoint(day=sample_day, amount=total))
    return points


def budget_usage(total: float, budget_amount: Optional[float]) -> int:
    """Percentage of the budget spent, capped at 100."""
    if not budget_amount or budget_amount <= 0:
        return 0
    return min(100, round(total / budget_amount * 100))


def monthly_summary(
    expenses: Iterable[Expense],
    categories: Iterable[Category],
    month: int,
    year: int,
    budget: Optional[Budget] = None,
) -> MonthlySummary:
    expenses = list(expenses)
    total = sum(expense.amount for expense in expenses)
    budget_amount = budget.amount if budget else None
    return MonthlySummary(
        month=month,
        year=year,
        totalAmount=total,
        categories=category_breakdown(expenses, categories),
        trend=spending_trend(expenses, month, year),
        budgetAmount=budget_amount,
        budgetPercentage=budget_usage(total, budget_amount),
    )
