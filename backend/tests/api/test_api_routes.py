"""HTTP API — chat, conversations, ledger, budgets, reset, knowledge and health.

Tests cover:
    - Direct entry returns 201, suggests a category for uncategorized expenses
    - Summary, budgets (merged with defaults) and reset payloads
    - Chat: routed answers, multi-step fields, validation → 400
    - Conversations: list, read, clear, unknown → 404
    - Store faults surface as 503 through the domain error handler
    - Liveness and readiness probes
"""

from finledger.core.errors import LedgerStoreError
from finledger.core.knowledge_base import FINANCIAL_KNOWLEDGE
from finledger.core.sample_data import generate_sample_transactions
from finledger.infrastructure import database


async def _add(client, **body):
    body.setdefault("type", "expense")
    return await client.post("/api/v1/transactions", json=body)


# -- Ledger --------------------------------------------------------------------

async def test_create_transaction_with_category(client):
    resp = await _add(client, amount=12.5, description="Lunch", category="food")
    assert resp.status_code == 201
    data = resp.json()
    tx = data["transaction"]
    assert tx["amount"] == "12.50"
    assert tx["category"] == "food"
    assert tx["date"] == "2025-10-15"
    assert "createdAt" in tx
    assert data["suggestedCategory"] is None


async def test_create_transaction_suggests_category(client):
    for description in ("Uber ride downtown", "Uber ride to airport", "Uber ride home"):
        await _add(client, amount=20, description=description, category="transportation")

    resp = await _add(client, amount=18, description="Uber ride to work")
    data = resp.json()
    assert resp.status_code == 201
    assert data["suggestedCategory"] == "transportation"
    assert data["transaction"]["category"] == "transportation"
    assert data["confidence"] == 1.0


async def test_income_without_category_is_other(client):
    resp = await _add(client, amount=3000, description="Salary", type="income")
    assert resp.json()["transaction"]["category"] == "other"
    assert resp.json()["suggestedCategory"] is None


async def test_create_transaction_rejects_non_positive_amount(client):
    resp = await _add(client, amount=0, description="Nothing", category="food")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unrepresentable_amounts_are_validation_errors(client):
    resp = await _add(client, amount=1e30, description="Yacht", category="shopping")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    resp = await client.post("/api/v1/budgets", json={"category": "food", "amount": 1e30})
    assert resp.status_code == 400


async def test_summary_totals_and_breakdown(client):
    await _add(client, amount=3000, description="Salary", type="income")
    await _add(client, amount=40, description="Dinner", category="food")
    await _add(client, amount=60, description="Concert", category="entertainment",
               date="2025-09-20")

    data = (await client.get("/api/v1/summary")).json()
    assert data["balance"] == "2900.00"
    assert data["totalIncome"] == "3000.00"
    assert data["totalExpenses"] == "100.00"
    assert data["monthlyIncome"] == "3000.00"
    assert data["monthlyExpenses"] == "40.00"
    assert data["categoryBreakdown"] == {"entertainment": "60.00", "food": "40.00"}
    assert [t["description"] for t in data["transactions"]][0] == "Concert"


async def test_budgets_merge_stored_over_defaults(client):
    resp = await client.post("/api/v1/budgets", json={"category": "food", "amount": 250})
    assert resp.json() == {"budgets": {"food": "250.00"}}

    budgets = (await client.get("/api/v1/budgets")).json()["budgets"]
    assert budgets["food"] == "250.00"
    assert budgets["housing"] == "1000.00"


async def test_budget_rejects_unknown_category(client):
    resp = await client.post("/api/v1/budgets", json={"category": "yachts", "amount": 10})
    assert resp.status_code == 400


async def test_reset_replaces_ledger_with_sample_data(client, services):
    await _add(client, amount=5, description="Tea", category="food")
    expected = len(generate_sample_transactions())

    data = (await client.post("/api/v1/reset")).json()
    assert data["transactionCount"] == expected
    assert data["indexed"] == expected
    assert data["budgets"]["food"] == "500.00"

    stored = await services.ledger.list_transactions()
    assert len(stored) == expected
    assert all(tx.description != "Tea" for tx in stored)


async def test_knowledge_initialize(client, services):
    data = (await client.post("/api/v1/knowledge/initialize")).json()
    assert data == {"indexed": len(FINANCIAL_KNOWLEDGE), "backend": "memory"}
    assert services.retriever.knowledge_indexed


# -- Chat ----------------------------------------------------------------------

async def test_chat_routed_answer(client, inference):
    await _add(client, amount=40, description="Dinner", category="food")
    resp = await client.post(
        "/api/v1/chat", json={"message": "What's my balance?", "conversationId": "c1"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["response"].startswith("Your current balance is -$40.00.")
    assert "functionsCalled" not in data
    assert inference.calls == []


async def test_chat_multi_step_fields(client, inference):
    inference.replies = [
        'ACTION_CALL: {"name": "set_budget", "arguments": {"category": "food", "amount": 200}}',
        "Food budget set.",
    ]
    resp = await client.post(
        "/api/v1/chat", json={"message": "Set food budget to 200", "conversationId": "c1"},
    )
    data = resp.json()
    assert data["response"] == "Food budget set."
    assert data["functionsCalled"] == ["set_budget"]
    assert data["stepsExecuted"] == 1
    assert data["functionResults"][0]["success"] is True


async def test_chat_requires_conversation_id(client):
    resp = await client.post("/api/v1/chat", json={"message": "hello"})
    assert resp.status_code == 400
    fields = [d["field"] for d in resp.json()["error"]["details"]]
    assert "body.conversationId" in fields


async def test_chat_store_fault_is_503(client, services, monkeypatch):
    async def broken(*args, **kwargs):
        raise LedgerStoreError("Connection or operational error", "execute")

    monkeypatch.setattr(services.orchestrator, "handle_message", broken)
    resp = await client.post(
        "/api/v1/chat", json={"message": "What's my balance?", "conversationId": "c1"},
    )
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "LEDGER_STORE_ERROR"


# -- Conversations -------------------------------------------------------------

async def test_conversation_lifecycle(client):
    await client.post(
        "/api/v1/chat", json={"message": "What's my balance?", "conversationId": "c1"},
    )

    listed = (await client.get("/api/v1/conversations")).json()
    assert [(c["id"], c["messageCount"]) for c in listed] == [("c1", 2)]

    conversation = (await client.get("/api/v1/conversations/c1")).json()
    assert [m["role"] for m in conversation["messages"]] == ["user", "assistant"]
    assert "startedAt" in conversation

    assert (await client.delete("/api/v1/conversations/c1")).status_code == 204
    assert (await client.get("/api/v1/conversations/c1")).status_code == 404


async def test_unknown_conversation_is_404(client):
    resp = await client.delete("/api/v1/conversations/missing")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


# -- Health --------------------------------------------------------------------

async def test_liveness(client):
    resp = await client.get("/api/v1/health/")
    assert resp.json()["status"] == "healthy"


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(database, "db_manager", None)
    data = (await client.get("/api/v1/health/ready")).json()
    assert data["status"] == "ready"
    assert data["checks"]["vector_index"] == "memory"
    assert data["checks"]["knowledge_indexed"] is False
