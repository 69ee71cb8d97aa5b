"""
Process-lifetime in-memory storage for users, categories, expenses and budgets.
"""

import itertools
import logging
from datetime import datetime
from typing import Callable, Iterator, Optional

from chatspend.schemas import (
    DEFAULT_CURRENCY,
    Budget,
    Category,
    Expense,
    InsertBudget,
    InsertCategory,
    InsertExpense,
    InsertUser,
    User,
)

logger = logging.getLogger(__name__)

# (name, icon, color)
DEFAULT_CATEGORIES = [
    ("Food", "restaurant", "blue"),
    ("Transport", "directions_car", "indigo"),
    ("Entertainment", "celebration", "purple"),
    ("Groceries", "shopping_basket", "green"),
    ("Utilities", "bolt", "yellow"),
    ("Housing", "home", "orange"),
    ("Healthcare", "local_hospital", "red"),
    ("Shopping", "shopping_bag", "pink"),
    ("Other", "more_horiz", "gray"),
]


def _naive(value: datetime) -> datetime:
    """Drop timezone info so aware and naive dates compare."""
    if value.tzinfo is not None:
        return value.replace(tzinfo=None) - value.utcoffset()
    return value


class MemStorage:
    """
    Map-backed CRUD store.

    Each entity kind draws ids from its own sequence produced by
    `id_factory`, which must return a fresh iterator of ints on every call
    (itertools.count(1) by default).
    """

    def __init__(self, id_factory: Optional[Callable[[], Iterator[int]]] = None):
        id_factory = id_factory or (lambda: itertools.count(1))

        self.users: dict[int, User] = {}
        self.categories: dict[int, Category] = {}
        self.expenses: dict[int, Expense] = {}
        self.budgets: dict[int, Budget] = {}

        self._user_ids = id_factory()
        self._category_ids = id_factory()
        self._expense_ids = id_factory()
        self._budget_ids = id_factory()

        self._initialize_default_categories()

    def _initialize_default_categories(self) -> None:
        for name, icon, color in DEFAULT_CATEGORIES:
            self.create_category(InsertCategory(name=name, icon=icon, color=color))
        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    def create_user(self, data: InsertUser) -> User:
        user = User(id=next(self._user_ids), **data.model_dump())
        self.users[user.id] = user
        logger.info(f"Created user {user.id} ({user.username})")
        return user

    # Categories

    def get_categories(self) -> list[Category]:
        return list(self.categories.values())

    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Case-insensitive lookup ignoring surrounding whitespace."""
        wanted = name.strip().lower()
        for category in self.categories.values():
            if category.name.lower() == wanted:
                return category
        return None

    def create_category(self, data: InsertCategory) -> Category:
        category = Category(id=next(self._category_ids), **data.model_dump())
        self.categories[category.id] = category
        return category

    # Expenses

    def create_expense(self, data: InsertExpense) -> Expense:
        expense = Expense(
            id=next(self._expense_ids),
            userId=data.userId,
            categoryId=data.categoryId,
            amount=data.amount,
            description=data.description or None,
            date=data.date or datetime.now(),
            location=data.location or None,
            currency=data.currency or DEFAULT_CURRENCY,
        )
        self.expenses[expense.id] = expense
        logger.info(
            f"Created expense {expense.id} for user {expense.userId}: "
            f"{expense.amount} {expense.currency}"
        )
        return expense

    def get_expenses_by_user_id(self, user_id: int) -> list[Expense]:
        return [e for e in self.expenses.values() if e.userId == user_id]

    def get_expenses_by_user_id_and_month(
        self, user_id: int, month: int, year: int
    ) -> list[Expense]:
        return [
            e
            for e in self.expenses.values()
            if e.userId == user_id and e.date.month == month and e.date.year == year
        ]

    def get_recent_expenses_by_user_id(self, user_id: int, limit: int) -> list[Expense]:
        expenses = sorted(
            self.get_expenses_by_user_id(user_id),
            key=lambda e: _naive(e.date),
            reverse=True,
        )
        return expenses[:limit]

    # Budgets

    def get_budget_by_user_id_and_month(
        self, user_id: int, month: int, year: int
    ) -> Optional[Budget]:
        for budget in self.budgets.values():
            if budget.userId == user_id and budget.month == month and budget.year == year:
                return budget
        return None

    def create_budget(self, data: InsertBudget) -> Budget:
        budget = Budget(id=next(self._budget_ids), **data.model_dump())
        self.budgets[budget.id] = budget
        return budget

    def update_budget(self, budget_id: int, amount: float) -> Optional[Budget]:
        budget = self.budgets.get(budget_id)
        if budget is None:
            return None
        updated = budget.model_copy(update={"amount": amount})
        self.budgets[budget_id] = updated
        return updated
