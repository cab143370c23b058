# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from lendtrust.core.rate_limiter import limiter
from lendtrust.core.security import get_services
from lendtrust.core.utils import DAY_MS
from lendtrust.main import app

API = "/api/v1"


@pytest.fixture
def client(services):
    # No lifespan: services come from the in-memory fixture instead of init_db
    app.dependency_overrides[get_services] = lambda: services
    limiter.enabled = False
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.enabled = True


def register(client, username, display_name=None, password="secret123"):
    response = client.post(f"{API}/auth/register", json={
        "username": username, "password": password, "display_name": display_name or username.title(),
        "email": f"{username}@example.com",
    })
    assert response.status_code == 201, response.text
    token = client.post(f"{API}/auth/token", data={"username": username, "password": password})
    assert token.status_code == 200, token.text
    return {"Authorization": f"Bearer {token.json()['access_token']}"}


@pytest.fixture
def users(client):
    return {name: register(client, name) for name in ("alice", "bob", "carol")}


@pytest.fixture
def item_id(client, users):
    response = client.post(f"{API}/items", headers=users["alice"], json={
        "name": "Ladder", "category": "tools", "condition": "good", "is_public": True,
    })
    assert response.status_code == 201, response.text
    return response.json()["item"]["id"]


def offer_payload(item_id, clock, **terms):
    return {
        "item_id": item_id,
        "borrower": {"username": "bob"},
        "terms": {"date_lent": clock.now, "expected_return_date": clock.now + 7 * DAY_MS, **terms},
    }


def create_offer(client, users, item_id, clock, **terms):
    response = client.post(f"{API}/lendings", headers=users["alice"], json=offer_payload(item_id, clock, **terms))
    assert response.status_code == 201, response.text
    return response.json()["lending"]


# --- Public and auth ---
def test_public_paths(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json()["status"] == "ok"


def test_protected_path_requires_token(client):
    response = client.get(f"{API}/lendings")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "unauthenticated"

    bad = client.get(f"{API}/lendings", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_register_login_me(client):
    headers = register(client, "Dana", display_name="Dana D")
    me = client.get(f"{API}/auth/me", headers=headers)
    assert me.status_code == 200
    body = me.json()
    assert body["username"] == "dana"
    assert body["trust_score"] == 50
    assert body["badge"]["badge"] == "New User"
    assert "hashed_password" not in body


def test_duplicate_registration_and_bad_password(client):
    register(client, "erin")
    dup = client.post(f"{API}/auth/register", json={"username": "ERIN", "password": "secret123"})
    assert dup.status_code == 400
    assert dup.json()["detail"]["message"] == "Username already exists"

    wrong = client.post(f"{API}/auth/token", data={"username": "erin", "password": "nope-nope"})
    assert wrong.status_code == 401


# --- Lending lifecycle over HTTP ---
def test_offer_accept_return_rate(client, users, item_id, clock):
    lending = create_offer(client, users, item_id, clock)
    assert lending["status"] == "pending"
    lending_id = lending["id"]

    pending = client.get(f"{API}/lendings/pending", headers=users["bob"]).json()["requests"]
    assert [r["id"] for r in pending] == [lending_id]
    outgoing = client.get(f"{API}/lendings/outgoing", headers=users["alice"]).json()["requests"]
    assert [r["id"] for r in outgoing] == [lending_id]

    # lender cannot accept their own offer
    assert client.post(f"{API}/lendings/{lending_id}/accept", headers=users["alice"]).status_code == 403
    accepted = client.post(f"{API}/lendings/{lending_id}/accept", headers=users["bob"])
    assert accepted.status_code == 200
    assert accepted.json()["lending"]["status"] == "active"
    assert accepted.json()["lending"]["is_borrower"] is True

    active = client.get(f"{API}/lendings/active", headers=users["alice"]).json()["lendings"]
    assert active[0]["days_until_due"] == 7
    assert active[0]["is_overdue"] is False
    assert active[0]["item"]["status"] == "lent"
    assert active[0]["borrower"]["username"] == "bob"

    assert client.post(f"{API}/lendings/{lending_id}/return/initiate", headers=users["bob"]).status_code == 200
    confirmed = client.post(f"{API}/lendings/{lending_id}/return/confirm", headers=users["alice"], json={})
    assert confirmed.json()["lending"]["status"] == "completed"

    rate = client.post(f"{API}/lendings/{lending_id}/rate", headers=users["bob"], json={"rating": 5, "is_lender_rating": True})
    assert rate.status_code == 200
    again = client.post(f"{API}/lendings/{lending_id}/rate", headers=users["bob"], json={"rating": 1, "is_lender_rating": True})
    assert again.status_code == 409
    assert again.json()["detail"] == {"error": "conflict", "message": "Rating already submitted"}

    profile = client.get(f"{API}/users/alice", headers=users["carol"]).json()["user"]
    assert profile["trust_score"] == 65


def test_lending_detail_is_private(client, users, item_id, clock):
    lending = create_offer(client, users, item_id, clock)
    assert client.get(f"{API}/lendings/{lending['id']}", headers=users["carol"]).status_code == 403
    detail = client.get(f"{API}/lendings/{lending['id']}", headers=users["alice"]).json()["lending"]
    assert detail["is_lender"] is True
    assert detail["lender"]["username"] == "alice"
    assert client.get(f"{API}/lendings/missing", headers=users["alice"]).status_code == 404


def test_borrowings_include_lender_profile(client, users, item_id, clock):
    lending = create_offer(client, users, item_id, clock)
    client.post(f"{API}/lendings/{lending['id']}/accept", headers=users["bob"])
    for path in ("/lendings/borrowings", "/lendings/borrowings/active"):
        borrowings = client.get(f"{API}{path}", headers=users["bob"]).json()["borrowings"]
        assert borrowings[0]["lender"]["username"] == "alice"
        assert borrowings[0]["lender"]["badge"]["badge"] == "New User"

    clock.advance(days=8)
    overdue = client.get(f"{API}/lendings/overdue", headers=users["bob"]).json()
    assert overdue["borrowings"][0]["lender"]["username"] == "alice"
    assert overdue["borrowings"][0]["days_overdue"] == 1


def test_dashboard(client, users, item_id, clock):
    lending = create_offer(client, users, item_id, clock)
    client.post(f"{API}/lendings/{lending['id']}/accept", headers=users["bob"])

    owner = client.get(f"{API}/analytics/dashboard", headers=users["alice"])
    assert owner.status_code == 200
    body = owner.json()
    assert body["lending"]["lent_items"] == 1
    assert body["lending"]["active_lendings"] == 1
    assert body["trust"] == {
        "score": 50, "badge": {"badge": "New User", "color": "gray"},
        "total_ratings": 0, "on_time_returns": 0, "late_returns": 0,
    }
    borrower = client.get(f"{API}/analytics/dashboard", headers=users["bob"]).json()
    assert borrower["borrowing"]["active_borrowings"] == 1
    assert client.get(f"{API}/analytics/dashboard").status_code == 401


def test_failure_kinds_map_to_status_codes(client, users, item_id, clock):
    zero_deposit = client.post(
        f"{API}/lendings", headers=users["alice"],
        json=offer_payload(item_id, clock, require_deposit=True, deposit_amount=0),
    )
    assert zero_deposit.status_code == 400
    assert zero_deposit.json()["detail"] == {
        "error": "validation-error", "message": "Deposit amount must be greater than zero",
    }

    lending = create_offer(client, users, item_id, clock)
    not_found = client.post(f"{API}/lendings/nope/accept", headers=users["bob"])
    assert not_found.status_code == 404
    early_return = client.post(f"{API}/lendings/{lending['id']}/return/initiate", headers=users["bob"])
    assert early_return.status_code == 400
    assert early_return.json()["detail"]["error"] == "invalid-state"


def test_creation_route_checks(client, users, item_id, clock):
    to_self = offer_payload(item_id, clock)
    to_self["borrower"] = {"username": "alice"}
    assert client.post(f"{API}/lendings", headers=users["alice"], json=to_self).json()["detail"]["error"] == "self-lending"

    unknown = offer_payload(item_id, clock)
    unknown["borrower"] = {"username": "zed"}
    assert client.post(f"{API}/lendings", headers=users["alice"], json=unknown).status_code == 400

    no_contact = offer_payload(item_id, clock)
    no_contact["borrower"] = {"name": "Ned"}
    response = client.post(f"{API}/lendings", headers=users["alice"], json=no_contact)
    assert response.json()["detail"]["error"] == "required-contact"

    not_owner = client.post(f"{API}/lendings", headers=users["bob"], json=offer_payload(item_id, clock))
    assert not_owner.status_code == 403


def test_external_borrower_lending(client, users, item_id, clock):
    payload = offer_payload(item_id, clock)
    payload["borrower"] = {"name": "Ned", "phone": "555-0100"}
    lending = client.post(f"{API}/lendings", headers=users["alice"], json=payload).json()["lending"]
    assert lending["status"] == "active"

    busy = client.post(f"{API}/lendings", headers=users["alice"], json=offer_payload(item_id, clock))
    assert busy.json()["detail"]["error"] == "item-unavailable"


def test_borrow_request_flow(client, users, item_id, clock):
    response = client.post(
        f"{API}/items/{item_id}/borrow-request", headers=users["bob"],
        json={"message": "for the gutters", "proposed_return_date": clock.now + 5 * DAY_MS},
    )
    assert response.status_code == 201, response.text
    lending = response.json()["lending"]
    assert lending["is_borrow_request"] is True
    assert lending["terms"]["allow_extensions"] is True

    assert client.post(f"{API}/lendings/{lending['id']}/accept", headers=users["bob"]).status_code == 403
    pending = client.get(f"{API}/lendings/pending", headers=users["alice"]).json()["requests"]
    assert [r["id"] for r in pending] == [lending["id"]]
    assert client.post(f"{API}/lendings/{lending['id']}/accept", headers=users["alice"]).status_code == 200


def test_borrow_request_checks(client, users, item_id):
    own = client.post(f"{API}/items/{item_id}/borrow-request", headers=users["alice"], json={"proposed_return_date": "2030-01-01"})
    assert own.json()["detail"]["error"] == "own-item"
    no_date = client.post(f"{API}/items/{item_id}/borrow-request", headers=users["bob"], json={})
    assert no_date.json()["detail"]["error"] == "required-date"


def test_negotiation_limit_over_http(client, users, item_id, clock):
    lending_id = create_offer(client, users, item_id, clock)["id"]
    url = f"{API}/lendings/{lending_id}/negotiate"
    assert client.post(url, headers=users["bob"], json={"new_terms": {}}).status_code == 400
    for caller in ("bob", "alice", "bob"):
        assert client.post(url, headers=users[caller], json={"new_terms": {"deposit_amount": 5}}).status_code == 200

    last = client.post(url, headers=users["alice"], json={"new_terms": {"deposit_amount": 5}})
    assert last.status_code == 400
    detail = last.json()["detail"]
    assert detail["error"] == "declined"
    assert detail["lending"]["status"] == "declined"


def test_extension_over_http(client, users, item_id, clock):
    lending_id = create_offer(client, users, item_id, clock, allow_extensions=True)["id"]
    client.post(f"{API}/lendings/{lending_id}/accept", headers=users["bob"])
    new_date = clock.now + 10 * DAY_MS
    requested = client.post(f"{API}/lendings/{lending_id}/extension", headers=users["bob"], json={"new_return_date": new_date})
    assert requested.status_code == 200
    assert client.post(f"{API}/lendings/{lending_id}/extension/respond", headers=users["alice"], json={}).status_code == 400
    approved = client.post(f"{API}/lendings/{lending_id}/extension/respond", headers=users["alice"], json={"approved": True})
    assert approved.json()["lending"]["terms"]["expected_return_date"] == new_date


def test_dispute_over_http(client, users, item_id, clock):
    lending_id = create_offer(client, users, item_id, clock)["id"]
    client.post(f"{API}/lendings/{lending_id}/accept", headers=users["bob"])
    missing = client.post(f"{API}/lendings/{lending_id}/dispute", headers=users["alice"], json={})
    assert missing.status_code == 400
    filed = client.post(f"{API}/lendings/{lending_id}/dispute", headers=users["alice"], json={"reason": "scratched"})
    assert filed.json()["lending"]["status"] == "disputed"
    assert client.get(f"{API}/users/bob", headers=users["alice"]).json()["user"]["trust_score"] == 45


def test_item_history_is_owner_only(client, users, item_id, clock):
    create_offer(client, users, item_id, clock)
    assert client.get(f"{API}/lendings/item/{item_id}/history", headers=users["bob"]).status_code == 403
    history = client.get(f"{API}/lendings/item/{item_id}/history", headers=users["alice"]).json()["history"]
    assert len(history) == 1


def test_activities_feed(client, users, item_id, clock):
    create_offer(client, users, item_id, clock)
    assert client.get(f"{API}/activities/unread-count", headers=users["bob"]).json() == {"count": 1}
    feed = client.get(f"{API}/activities", headers=users["bob"]).json()["activities"]
    assert feed[0]["type"] == "lending_request"

    assert client.post(f"{API}/activities/{feed[0]['id']}/read", headers=users["bob"]).status_code == 200
    assert client.post(f"{API}/activities/unknown/read", headers=users["bob"]).status_code == 404
    assert client.get(f"{API}/activities/unread-count", headers=users["bob"]).json() == {"count": 0}


def test_items_and_users_endpoints(client, users, item_id):
    public = client.get(f"{API}/items/public", headers=users["bob"]).json()["items"]
    assert [i["id"] for i in public] == [item_id]
    assert public[0]["owner"]["username"] == "alice"
    assert client.get(f"{API}/items/public", headers=users["alice"]).json()["items"] == []

    invalid = client.post(f"{API}/items", headers=users["alice"], json={"name": "Car", "category": "vehicles", "condition": "good"})
    assert invalid.json()["detail"]["message"] == "Invalid category"

    found = client.get(f"{API}/users/search", params={"q": "ali"}, headers=users["bob"]).json()["users"]
    assert [u["username"] for u in found] == ["alice"]
    assert client.get(f"{API}/users/nobody", headers=users["bob"]).status_code == 404

    updated = client.patch(f"{API}/users/me", headers=users["bob"], json={"display_name": "Bobby"})
    assert updated.json()["user"]["display_name"] == "Bobby"
