# --- START OF FILE: tests/test_api.py ---
import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import auth_header, token_for
from marketdesk.domain.entities import UserRole
from marketdesk.interfaces.api.main import create_app


@pytest.fixture
def client(services) -> TestClient:
    """Provides a TestClient over an app wired to the recording broadcaster."""
    return TestClient(create_app(services))


ORDER = {"symbol": "BTC/USD", "amount": 100, "duration": 60, "ror": 5, "entryPrice": 50000}


def test_root_and_health(client: TestClient):
    assert "MarketDesk API" in client.get("/").json()["message"]
    assert client.get("/health").json() == {"status": "ok"}


def test_metrics_endpoint(client: TestClient):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "md_orders_opened_total" in r.text


def test_missing_token_uses_error_envelope(client: TestClient):
    r = client.get("/orders")
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Authentication token required", "errorCode": "UNAUTHORIZED"}


def test_invalid_token_rejected(client: TestClient):
    r = client.get("/chat/sessions", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["errorCode"] == "UNAUTHORIZED"


def test_option_order_open_and_complete(client: TestClient, make_user):
    user = make_user(balance="100")
    headers = auth_header(user)

    r = client.post("/orders/option", json=ORDER, headers=headers)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    order = body["data"]
    assert order["status"] == "ACTIVE"
    assert order["symbol"] == "BTC/USD"
    assert order["periodSeconds"] == 60

    r = client.post(f"/orders/{order['id']}/complete", headers=headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["order"]["status"] == "COMPLETED"
    assert data["order"]["isWon"] is True
    assert data["profit"] == 5.0
    assert data["newBalance"] == 105.0

    r = client.post(f"/orders/{order['id']}/complete", headers=headers)
    assert r.status_code == 409
    assert r.json()["errorCode"] == "INVALID_STATE"

    listed = client.get("/orders", headers=headers).json()["data"]
    assert [o["id"] for o in listed] == [order["id"]]


def test_option_order_errors(client: TestClient, make_user):
    poor = make_user(balance="10")
    headers = auth_header(poor)

    r = client.post("/orders/option", json=ORDER, headers=headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "INSUFFICIENT_BALANCE"

    r = client.post("/orders/option", json={**ORDER, "ror": 150}, headers=headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "VALIDATION_ERROR"

    r = client.post("/orders/option", json={k: v for k, v in ORDER.items() if k != "symbol"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert r.json()["errorCode"] == "VALIDATION_ERROR"

    r = client.post("/orders/unknown/complete", headers=headers)
    assert r.status_code == 404
    assert r.json()["errorCode"] == "ORDER_NOT_FOUND"


def test_complete_someone_elses_order_is_forbidden(client: TestClient, make_user):
    owner, other = make_user(balance="100"), make_user(balance="100")
    order = client.post("/orders/option", json=ORDER, headers=auth_header(owner)).json()["data"]
    r = client.post(f"/orders/{order['id']}/complete", headers=auth_header(other))
    assert r.status_code == 403
    assert r.json()["errorCode"] == "FORBIDDEN"


def test_chat_flow(client: TestClient, make_user):
    customer, admin = make_user(), make_user(role=UserRole.ADMIN)
    cust_h, admin_h = auth_header(customer), auth_header(admin)

    session = client.get("/chat/session", headers=cust_h).json()["data"]
    assert session["status"] == "OPEN"
    assert client.get("/chat/session", headers=cust_h).json()["data"]["id"] == session["id"]

    r = client.post("/chat/message", json={"sessionId": session["id"], "message": "Need help"}, headers=cust_h)
    assert r.status_code == 201
    assert r.json()["data"]["senderType"] == "USER"

    assert client.get("/chat/unread", headers=cust_h).json()["data"] == {"count": 0}

    r = client.post(f"/chat/{session['id']}/assign", json={"adminId": admin.id}, headers=admin_h)
    assert r.json()["data"]["adminId"] == admin.id
    assert client.get("/chat/unread", headers=admin_h).json()["data"] == {"count": 1}

    client.post("/chat/message", json={"sessionId": session["id"], "message": "On it"}, headers=admin_h)

    mine = client.get("/chat/sessions", headers=cust_h).json()["data"]
    assert mine[0]["lastMessage"]["message"] == "On it"
    assert mine[0]["unreadCount"] == 1

    page = client.get(f"/chat/{session['id']}/messages?page=1&limit=1", headers=cust_h).json()["data"]
    assert [m["message"] for m in page["messages"]] == ["Need help"]
    assert page["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}

    assert client.post(f"/chat/{session['id']}/read", headers=cust_h).json()["data"] == {"count": 1}

    closed = client.post(f"/chat/{session['id']}/close", headers=cust_h).json()["data"]
    assert closed["status"] == "CLOSED"
    r = client.post("/chat/message", json={"sessionId": session["id"], "message": "hello?"}, headers=cust_h)
    assert r.status_code == 409

    all_closed = client.get("/chat/sessions/all?status=CLOSED", headers=admin_h).json()["data"]
    assert [s["id"] for s in all_closed] == [session["id"]]


def test_chat_access_is_enforced(client: TestClient, make_user):
    owner, stranger = make_user(), make_user()
    session = client.get("/chat/session", headers=auth_header(owner)).json()["data"]
    h = auth_header(stranger)

    r = client.get(f"/chat/{session['id']}/messages", headers=h)
    assert r.status_code == 404
    r = client.post("/chat/message", json={"sessionId": session["id"], "message": "hi"}, headers=h)
    assert r.status_code == 404
    assert client.post(f"/chat/{session['id']}/read", headers=h).json()["data"] == {"count": 0}
    assert client.get("/chat/sessions/all", headers=h).status_code == 403


def test_chat_message_validation(client: TestClient, make_user):
    user = make_user()
    h = auth_header(user)
    session = client.get("/chat/session", headers=h).json()["data"]

    r = client.post("/chat/message", json={"sessionId": session["id"]}, headers=h)
    assert r.status_code == 400
    r = client.post("/chat/message", json={"sessionId": session["id"], "message": "x" * 5001}, headers=h)
    assert r.status_code == 400
    r = client.get(f"/chat/{session['id']}/messages?limit=500", headers=h)
    assert r.status_code == 400


def test_rest_message_is_relayed_to_socket_members(client: TestClient, services, broadcaster, make_user):
    customer, admin = make_user(), make_user(role=UserRole.ADMIN)
    gateway = services["gateway"]
    h = auth_header(customer)
    session = client.get("/chat/session", headers=h).json()["data"]

    async def join():
        await gateway.connect("adm", {"token": token_for(admin)}, {})
        await gateway.on_join_session("adm", {"sessionId": session["id"]})

    asyncio.run(join())
    client.post("/chat/message", json={"sessionId": session["id"], "message": "via REST"}, headers=h)

    [relayed] = broadcaster.events("adm", "new-message")
    assert relayed["message"]["message"] == "via REST"
    assert broadcaster.events("adm", "new-chat-request") == [{"sessionId": session["id"], "userId": customer.id}]

    client.get(f"/chat/{session['id']}/messages", headers=h)
    client.post(f"/chat/{session['id']}/read", headers=h)
    assert len(broadcaster.events("adm", "new-message")) == 1
# --- END OF FILE ---
