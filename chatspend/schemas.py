"""
Pydantic models shared by the store, the AI service and the REST layer.
"""

import math
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

CATEGORY_NAMES = [
    "Food",
    "Transport",
    "Entertainment",
    "Groceries",
    "Utilities",
    "Housing",
    "Healthcare",
    "Shopping",
    "Other",
]

CURRENCIES = ["VND", "USD", "EUR"]
DEFAULT_CURRENCY = "VND"


def coerce_amount(value: Any) -> Optional[float]:
    """
    Coerce an amount to a finite non-negative float.

    Strings keep only digits and dots before parsing, so "150,000" and
    "150.000 VND" both survive. Returns None when nothing usable is left.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.]", "", value)
        try:
            value = float(cleaned)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return None
    return value


def validate_amount(value: Any) -> float:
    amount = coerce_amount(value)
    if amount is None:
        raise ValueError("amount must be a finite, non-negative number")
    return amount


class InsertUser(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class User(InsertUser):
    id: int


class PublicUser(BaseModel):
    id: int
    username: str


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class InsertCategory(BaseModel):
    name: str
    icon: str
    color: str


class Category(InsertCategory):
    id: int


class InsertExpense(BaseModel):
    userId: Optional[int] = None
    categoryId: Optional[int] = None
    amount: float
    description: Optional[str] = None
    date: Optional[datetime] = None
    location: Optional[str] = None
    currency: Optional[str] = DEFAULT_CURRENCY

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        """Accept "150,000"-style strings; reject negative or non-finite amounts."""
        return validate_amount(v)


class Expense(BaseModel):
    id: int
    userId: Optional[int] = None
    categoryId: Optional[int] = None
    amount: float
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = None
    currency: str = DEFAULT_CURRENCY


class InsertBudget(BaseModel):
    userId: Optional[int] = None
    amount: float
    month: int = Field(..., ge=1, le=12)
    year: int

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        return validate_amount(v)


class Budget(InsertBudget):
    id: int


class BudgetUpdate(BaseModel):
    amount: float

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        return validate_amount(v)


class ExtractedExpense(BaseModel):
    """Expense fields recovered from a model reply or from the user's text."""

    amount: float = Field(..., ge=0)
    category: str
    date: str
    description: Optional[str] = None
    location: Optional[str] = None
    currency: str = DEFAULT_CURRENCY


class AnalyzeRequest(BaseModel):
    text: Optional[str] = None


class AnalyzeResponse(ExtractedExpense):
    categoryId: int
    categoryName: str
    categoryIcon: str
    categoryColor: str


class InsightsResponse(BaseModel):
    insights: list[str]


class CategoryBreakdown(Category):
    amount: float
    percentage: int


class TrendPoint(BaseModel):
    day: int
    amount: float


class MonthlySummary(BaseModel):
    month: int
    year: int
    totalAmount: float
    categories: list[CategoryBreakdown]
    trend: list[TrendPoint]
    budgetAmount: Optional[float] = None
    budgetPercentage: int = 0
