from chatspend.expense_ai import INSIGHTS_UNAVAILABLE_MESSAGE
from chatspend.reconcile import NO_INSIGHTS_MESSAGE
from chatspend.schemas import InsertExpense


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    body = client.get("/health").json()
    assert body["status"] == "healthy"


def test_register_and_login(client):
    response = client.post("/api/auth/register", json={"username": "lan", "password": "secret"})
    assert response.status_code == 201
    assert response.json() == {"id": 1, "username": "lan"}

    duplicate = client.post("/api/auth/register", json={"username": "lan", "password": "x"})
    assert duplicate.status_code == 409

    ok = client.post("/api/auth/login", json={"username": "lan", "password": "secret"})
    assert ok.status_code == 200
    assert "password" not in ok.json()

    bad = client.post("/api/auth/login", json={"username": "lan", "password": "nope"})
    assert bad.status_code == 401

    missing = client.post("/api/auth/login", json={"username": "lan"})
    assert missing.status_code == 400


def test_register_validation_error(client):
    response = client.post("/api/auth/register", json={"username": "lan"})

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_categories(client):
    categories = client.get("/api/categories").json()

    assert len(categories) == 9
    assert categories[0] == {"id": 1, "name": "Food", "icon": "restaurant", "color": "blue"}


def test_expense_endpoints(client):
    for amount, date in [(10, "2024-05-01T10:00:00"), (20, "2024-05-15T10:00:00"), (30, "2024-06-01T10:00:00")]:
        response = client.post(
            "/api/expenses",
            json={"userId": 1, "categoryId": 1, "amount": amount, "date": date},
        )
        assert response.status_code == 201
        assert response.json()["currency"] == "VND"

    assert len(client.get("/api/expenses/user/1").json()) == 3

    recent = client.get("/api/expenses/recent/1", params={"limit": 2}).json()
    assert [e["amount"] for e in recent] == [30, 20]

    may = client.get("/api/expenses/monthly/1/5/2024").json()
    assert [e["amount"] for e in may] == [10, 20]

    assert client.get("/api/expenses/monthly/1/13/2024").status_code == 400
    assert client.get("/api/expenses/user/abc").status_code == 400


def test_budget_endpoints(client):
    created = client.post("/api/budgets", json={"userId": 1, "amount": 6000000, "month": 5, "year": 2024})
    assert created.status_code == 201
    budget_id = created.json()["id"]

    assert client.get("/api/budgets/1/5/2024").json()["amount"] == 6000000
    assert client.get("/api/budgets/1/6/2024").status_code == 404

    updated = client.put(f"/api/budgets/{budget_id}", json={"amount": 5000000})
    assert updated.json()["amount"] == 5000000
    assert client.put("/api/budgets/99", json={"amount": 1}).status_code == 404


def test_analyze_expense_with_model_json(client, model):
    model.reply = '{"amount": "150,000", "category": "Food", "description": "Lunch", "currency": "VND"}'

    response = client.post("/api/analyze/expense", json={"text": "lunch 150k"})

    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 150000
    assert body["category"] == "Food"
    assert body["categoryId"] == 1
    assert body["categoryName"] == "Food"
    assert body["categoryIcon"] == "restaurant"
    assert body["categoryColor"] == "blue"
    assert body["date"]
    assert "lunch 150k" in model.prompts[0]


def test_analyze_expense_heuristic_fallback(client, model):
    model.reply = "I could not understand."

    body = client.post("/api/analyze/expense", json={"text": "an phở 30k"}).json()

    assert body["amount"] == 30000
    assert body["categoryName"] == "Food"


def test_analyze_expense_requires_text(client):
    assert client.post("/api/analyze/expense", json={}).status_code == 400
    assert client.post("/api/analyze/expense", json={"text": "  "}).status_code == 400


def test_analyze_expense_model_failure_is_422(client, model):
    model.reply = ConnectionError("down")

    response = client.post("/api/analyze/expense", json={"text": "an phở 30k"})

    assert response.status_code == 422


def test_insights_without_expenses_skips_model(client, model):
    body = client.get("/api/insights/1/5/2024").json()

    assert body == {"insights": ["No expenses found for this month."]}
    assert model.prompts == []


def test_insights_from_model(client, store, model):
    store.create_expense(InsertExpense(userId=1, categoryId=2, amount=45000, description="Grab", date="2024-05-03T08:00:00"))
    model.reply = '["Transport is your only spending.", "Try the bus.", "Set a budget."]'

    body = client.get("/api/insights/1/5/2024").json()

    assert body["insights"] == ["Transport is your only spending.", "Try the bus.", "Set a budget."]
    assert "Grab: 45000 VND for Transport" in model.prompts[0]


def test_insights_fallbacks(client, store, model):
    store.create_expense(InsertExpense(userId=1, amount=1, date="2024-05-03T08:00:00"))

    model.reply = ""
    assert client.get("/api/insights/1/5/2024").json()["insights"] == [NO_INSIGHTS_MESSAGE]

    model.reply = RuntimeError("bad key")
    assert client.get("/api/insights/1/5/2024").json()["insights"] == [INSIGHTS_UNAVAILABLE_MESSAGE]


def test_summary(client, store):
    store.create_expense(InsertExpense(userId=1, categoryId=1, amount=300, date="2024-05-02T08:00:00"))
    store.create_expense(InsertExpense(userId=1, categoryId=2, amount=100, date="2024-05-12T08:00:00"))
    client.post("/api/budgets", json={"userId": 1, "amount": 800, "month": 5, "year": 2024})

    body = client.get("/api/summary/1/5/2024").json()

    assert body["totalAmount"] == 400
    assert [(c["name"], c["percentage"]) for c in body["categories"]] == [("Food", 75), ("Transport", 25)]
    assert body["budgetPercentage"] == 50
    assert body["trend"][0] == {"day": 1, "amount": 0}
    assert body["trend"][-1] == {"day": 30, "amount": 400}


def test_expense_amount_string_with_separators(client):
    response = client.post("/api/expenses", json={"userId": 1, "amount": "150,000"})

    assert response.status_code == 201
    assert response.json()["amount"] == 150000


def test_expense_amount_must_be_finite_and_non_negative(client, store):
    for amount in ["inf", -5, "", True]:
        response = client.post("/api/expenses", json={"userId": 1, "amount": amount})
        assert response.status_code == 400, amount
        assert response.json()["message"] == "Validation error"

    assert store.get_expenses_by_user_id(1) == []


def test_budget_amounts_are_validated(client):
    created = client.post("/api/budgets", json={"userId": 1, "amount": "6,000,000", "month": 5, "year": 2024})
    assert created.status_code == 201
    assert created.json()["amount"] == 6000000

    budget_id = created.json()["id"]
    assert client.put(f"/api/budgets/{budget_id}", json={"amount": -1}).status_code == 400
    assert client.post("/api/budgets", json={"userId": 1, "amount": "nan", "month": 5, "year": 2024}).status_code == 400
    assert client.get("/api/budgets/1/5/2024").json()["amount"] == 6000000
