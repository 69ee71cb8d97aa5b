import logging
import os
from typing import List

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chatspend.call_llm import Generator, get_generator, get_provider
from chatspend.expense_ai import (
    EXTRACTION_TEMPERATURE,
    INSIGHTS_TEMPERATURE,
    extract_expense,
    generate_insights,
)
from chatspend.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    Budget,
    BudgetUpdate,
    Category,
    Expense,
    InsertBudget,
    InsertExpense,
    InsertUser,
    InsightsResponse,
    LoginRequest,
    MonthlySummary,
    PublicUser,
)
from chatspend.storage import MemStorage
from chatspend.summary import monthly_summary

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

NO_EXPENSES_MESSAGE = "No expenses found for this month."

# Single store for the lifetime of the process
storage = MemStorage()

app = FastAPI(title="chatspend")


def get_storage() -> MemStorage:
    return storage


def get_extraction_generator() -> Generator:
    return get_generator(temperature=EXTRACTION_TEMPERATURE)


def get_insights_generator() -> Generator:
    return get_generator(temperature=INSIGHTS_TEMPERATURE)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=400,
        content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


def check_month(month: int) -> None:
    if month < 1 or month > 12:
        raise HTTPException(status_code=400, detail="Invalid parameters")


@app.get("/")
def read_root():
    return {
        "message": "Expense chat API - POST free text to /api/analyze/expense",
        "categories": "/api/categories",
    }


@app.get("/health")
def health_check():
    logger.info("Health check endpoint called")
    return {"status": "healthy", "provider": get_provider()}


# Users


@app.post("/api/auth/register", response_model=PublicUser, status_code=201)
async def register(data: InsertUser, store: MemStorage = Depends(get_storage)):
    if store.get_user_by_username(data.username):
        raise HTTPException(status_code=409, detail="Username already exists")

    user = store.create_user(data)
    return PublicUser(id=user.id, username=user.username)


@app.post("/api/auth/login", response_model=PublicUser)
async def login(data: LoginRequest, store: MemStorage = Depends(get_storage)):
    """
    Plaintext credential check without sessions; returns the user on success.
    """
    if not data.username or not data.password:
        raise HTTPException(
            status_code=400, detail="Username and password are required"
        )

    user = store.get_user_by_username(data.username)
    if user is None or user.password != data.password:
        raise HTTPException(status_code=401, detail="Invalid username or password")

    return PublicUser(id=user.id, username=user.username)


# Categories


@app.get("/api/categories", response_model=List[Category])
async def get_categories(store: MemStorage = Depends(get_storage)):
    return store.get_categories()


# Expenses


@app.post("/api/expenses", response_model=Expense, status_code=201)
async def create_expense(data: InsertExpense, store: MemStorage = Depends(get_storage)):
    return store.create_expense(data)


@app.get("/api/expenses/user/{user_id}", response_model=List[Expense])
async def get_user_expenses(user_id: int, store: MemStorage = Depends(get_storage)):
    return store.get_expenses_by_user_id(user_id)


@app.get("/api/expenses/recent/{user_id}", response_model=List[Expense])
async def get_recent_expenses(
    user_id: int, limit: int = 5, store: MemStorage = Depends(get_storage)
):
    return store.get_recent_expenses_by_user_id(user_id, limit)


@app.get("/api/expenses/monthly/{user_id}/{month}/{year}", response_model=List[Expense])
async def get_monthly_expenses(
    user_id: int, month: int, year: int, store: MemStorage = Depends(get_storage)
):
    check_month(month)
    return store.get_expenses_by_user_id_and_month(user_id, month, year)


# Budgets


@app.post("/api/budgets", response_model=Budget, status_code=201)
async def create_budget(data: InsertBudget, store: MemStorage = Depends(get_storage)):
    return store.create_budget(data)


@app.get("/api/budgets/{user_id}/{month}/{year}", response_model=Budget)
async def get_budget(
    user_id: int, month: int, year: int, store: MemStorage = Depends(get_storage)
):
    check_month(month)
    budget = store.get_budget_by_user_id_and_month(user_id, month, year)
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@app.put("/api/budgets/{budget_id}", response_model=Budget)
async def update_budget(
    budget_id: int, data: BudgetUpdate, store: MemStorage = Depends(get_storage)
):
    budget = store.update_budget(budget_id, data.amount)
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


# AI analysis


@app.post("/api/analyze/expense", response_model=AnalyzeResponse)
async def analyze_expense(
    data: AnalyzeRequest,
    store: MemStorage = Depends(get_storage),
    generate: Generator = Depends(get_extraction_generator),
):
    """
    Turn a chat message into an expense draft with its category metadata.

    The draft is not stored; the client confirms it through POST /api/expenses.

    Returns:
        The extracted expense plus categoryId, categoryName, categoryIcon
        and categoryColor
    """
    if not data.text or not data.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    try:
        expense = await extract_expense(data.text, generate)
        if expense is None:
            raise HTTPException(
                status_code=422, detail="Could not extract expense information"
            )

        category = store.get_category_by_name(expense.category)
        if category is None:
            raise HTTPException(
                status_code=404, detail=f'Category "{expense.category}" not found'
            )

        return AnalyzeResponse(
            **expense.model_dump(),
            categoryId=category.id,
            categoryName=category.name,
            categoryIcon=category.icon,
            categoryColor=category.color,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error analyzing expense: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error analyzing expense")


@app.get("/api/insights/{user_id}/{month}/{year}", response_model=InsightsResponse)
async def get_insights(
    user_id: int,
    month: int,
    year: int,
    store: MemStorage = Depends(get_storage),
    generate: Generator = Depends(get_insights_generator),
):
    check_month(month)

    try:
        expenses = store.get_expenses_by_user_id_and_month(user_id, month, year)
        if not expenses:
            return InsightsResponse(insights=[NO_EXPENSES_MESSAGE])

        names = {category.id: category.name for category in store.get_categories()}
        summaries = [
            {
                "description": expense.description,
                "amount": expense.amount,
                "currency": expense.currency,
                "category": names.get(expense.categoryId, "Other"),
            }
            for expense in expenses
        ]
        insights = await generate_insights(summaries, month, year, generate)
        return InsightsResponse(insights=insights)
    except Exception as e:
        logger.error(f"Error generating insights: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate insights")


# Dashboard


@app.get("/api/summary/{user_id}/{month}/{year}", response_model=MonthlySummary)
async def get_summary(
    user_id: int, month: int, year: int, store: MemStorage = Depends(get_storage)
):
    """Totals, category breakdown, cumulative trend and budget usage for a month."""
    check_month(month)
    expenses = store.get_expenses_by_user_id_and_month(user_id, month, year)
    budget = store.get_budget_by_user_id_and_month(user_id, month, year)
    return monthly_summary(expenses, store.get_categories(), month, year, budget)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
    )
