"""HTTP contract: auth, chat, balance and admin routes."""

from app.services import ledger
from stubs import answer, auth_headers, blocked

REGISTRATION = {
    "email": "nigar@example.com",
    "phone": "+994551234567",
    "password": "parol123",
    "name": "Nigar",
    "lastname": "Əliyeva",
}


async def test_register_chat_credit_scenario(client, backend, admin):
    r = await client.post("/api/auth/register", json=REGISTRATION)
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["tokenBalance"] == 20
    headers = {"Authorization": f"Bearer {body['token']}"}
    user_id = body["user"]["id"]

    r = await client.get("/api/balance", headers=headers)
    assert r.json() == {"balance": 20}

    backend.queue(answer("Cavab", chunks=[{"file_search": {"display_name": "YHQ.pdf"}}]))
    r = await client.post("/api/chat", json={"message": "Sual", "history": []}, headers=headers)
    assert r.status_code == 200
    assert r.json()["balance"] == 19
    assert r.json()["response"].startswith("Cavab")

    r = await client.get("/api/balance/history", headers=headers)
    items = r.json()["items"]
    assert [(i["type"], i["amount"], i["balanceAfter"]) for i in items] == [("debit", 1, 19), ("initial", 20, 20)]

    r = await client.post("/api/admin/add-tokens", json={"userId": user_id, "amount": 50}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["newBalance"] == 69

    r = await client.get(f"/api/admin/transactions/{user_id}", headers=auth_headers(admin))
    latest = r.json()["transactions"][0]
    assert (latest["type"], latest["amount"], latest["balanceAfter"]) == ("credit", 50, 69)
    assert latest["adminId"] == str(admin.id)


async def test_register_requires_all_fields(client):
    r = await client.post("/api/auth/register", json={**REGISTRATION, "lastname": ""})
    assert r.status_code == 400
    r = await client.post("/api/auth/register", json={**REGISTRATION, "email": "not-an-email"})
    assert r.status_code == 400


async def test_register_duplicate_email(client):
    assert (await client.post("/api/auth/register", json=REGISTRATION)).status_code == 201
    r = await client.post("/api/auth/register", json={**REGISTRATION, "phone": "+994559999999"})
    assert r.status_code == 400
    assert r.json()["code"] == "CONFLICT"
    assert r.json()["error"] == "Email already registered"


async def test_login(client, account):
    r = await client.post("/api/auth/login", json={"email": "user@example.com", "password": "secret123"})
    assert r.status_code == 200
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {r.json()['token']}"})
    assert r.json()["user"]["email"] == "user@example.com"
    assert "password_hash" not in r.json()["user"]

    r = await client.post("/api/auth/login", json={"email": "user@example.com", "password": "wrong"})
    assert r.status_code == 401


async def test_chat_requires_identity(client, backend):
    r = await client.post("/api/chat", json={"message": "Sual"})
    assert r.status_code == 401
    r = await client.post("/api/chat", json={"message": "Sual"}, headers={"Authorization": "Bearer forged"})
    assert r.status_code == 401
    assert backend.calls == []


async def test_chat_empty_message(client, backend, account):
    r = await client.post("/api/chat", json={"message": "  "}, headers=auth_headers(account))
    assert r.status_code == 400
    assert backend.calls == []


async def test_chat_exhausted_balance(client, backend, account):
    await ledger.adjust(account.id, 20, "debit")
    r = await client.post("/api/chat", json={"message": "Sual"}, headers=auth_headers(account))
    assert r.status_code == 403
    body = r.json()
    assert body["balance"] == 0
    assert body["supportEmail"] == "support@yoldash.live"
    assert "support@yoldash.live" in body["error"]
    assert backend.calls == []


async def test_chat_blocked_twice(client, backend, account):
    backend.queue(blocked(), blocked())
    r = await client.post("/api/chat", json={"message": "Sual"}, headers=auth_headers(account))
    assert r.status_code == 500
    assert r.json()["code"] == "CONTENT_BLOCKED"
    assert r.json()["details"]
    assert (await client.get("/api/balance", headers=auth_headers(account))).json() == {"balance": 20}


async def test_admin_routes_require_admin(client, account):
    r = await client.get("/api/admin/users", headers=auth_headers(account))
    assert r.status_code == 403


async def test_admin_lists_users(client, account, admin):
    r = await client.get("/api/admin/users", headers=auth_headers(admin))
    emails = {u["email"] for u in r.json()["users"]}
    assert emails == {"user@example.com", "admin@example.com"}


async def test_admin_add_tokens_validation(client, account, admin):
    r = await client.post("/api/admin/add-tokens", json={"userId": str(account.id), "amount": 0}, headers=auth_headers(admin))
    assert r.status_code == 400
    r = await client.post("/api/admin/add-tokens", json={"userId": "64b000000000000000000000", "amount": 5}, headers=auth_headers(admin))
    assert r.status_code == 404


async def test_admin_delete(client, account, admin):
    r = await client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))
    assert r.status_code == 400

    r = await client.delete(f"/api/admin/users/{account.id}", headers=auth_headers(admin))
    assert r.status_code == 200
    r = await client.get(f"/api/admin/transactions/{account.id}", headers=auth_headers(admin))
    assert r.json() == {"transactions": []}

    r = await client.delete(f"/api/admin/users/{account.id}", headers=auth_headers(admin))
    assert r.status_code == 404
    r = await client.get("/api/balance", headers=auth_headers(account))
    assert r.status_code == 401


async def test_admin_cannot_delete_self_with_uppercase_id(client, admin):
    r = await client.delete(f"/api/admin/users/{str(admin.id).upper()}", headers=auth_headers(admin))
    assert r.status_code == 400
    assert await ledger.get_balance(admin.id) == 20
