from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import redis
from fastapi.testclient import TestClient

from storefront.api import deps
from storefront.data.database import get_db
from storefront.domain.errors import RemoteOperationError
from storefront.domain.models import AuthSession, User
from storefront.main import create_app
from storefront.services.session_store import SessionStore

AUTH = {"Authorization": "Bearer test-token"}


@pytest.fixture
def app(db, gateway, identity):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[deps.get_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_public_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_identity] = lambda: identity
    app.dependency_overrides[deps.get_current_user] = lambda: identity.get_user()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def shelf(make):
    c = make.category("Fruit")
    a = make.product("Apple", "2.00", stock=2)
    b = make.product("Banana", "1.00", stock=10, category_id=c)
    d = make.product("Date", "4.00", stock=10, category_id=c)
    p = make.pack("Fruit box", "9.00", fixed=[(a, 1)], slots=[(c, 2)])
    return {"c": c, "a": a, "b": b, "d": d, "p": p}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_missing_token_is_401(db):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    response = TestClient(app).get("/cart")
    assert response.status_code == 401


def test_catalog_is_public(client, shelf):
    products = client.get("/products").json()
    assert {p["name"] for p in products} == {"Apple", "Banana", "Date"}

    pack = client.get(f"/packs/{shelf['p']}").json()
    assert pack["pack"]["categories"][0]["products_count"] == 2
    assert {p["name"] for p in pack["available"][shelf["c"]]} == {"Banana", "Date"}


def test_cart_flow(client, shelf):
    response = client.post("/cart/items", json={"product_id": shelf["a"], "quantity": 1}, headers=AUTH)
    assert response.status_code == 200
    assert Decimal(response.json()["total"]) == Decimal("2.00")

    response = client.post("/cart/items", json={"product_id": shelf["a"], "quantity": 2}, headers=AUTH)
    assert response.status_code == 409
    assert response.json()["available"] == 2

    response = client.post("/cart/items", json={"product_id": "nope"}, headers=AUTH)
    assert response.status_code == 400
    assert response.json()["field"] == "product_id"


def test_incomplete_pack_lists_categories(client, shelf):
    response = client.post(
        "/cart/packs",
        json={"pack_id": shelf["p"], "selections": {shelf["c"]: [{"product_id": shelf["b"], "quantity": 1}]}},
        headers=AUTH,
    )
    assert response.status_code == 400
    assert shelf["c"] in response.json()["incomplete_categories"]


def test_pack_and_quantity_routes(client, shelf):
    selections = {shelf["c"]: [{"product_id": shelf["b"], "quantity": 1}, {"product_id": shelf["d"], "quantity": 1}]}
    cart = client.post("/cart/packs", json={"pack_id": shelf["p"], "selections": selections}, headers=AUTH).json()
    assert len(cart["packs"]) == 1
    assert Decimal(cart["packs"][0]["unit_price"]) == Decimal("3")

    line_id = cart["items"][0]["id"]
    cart = client.patch(f"/cart/items/{line_id}", json={"quantity": 0, "is_pack": True, "pack_id": shelf["p"]}, headers=AUTH).json()
    assert cart["items"] == []


def test_shared_order_routes(client, shelf):
    client.post("/cart/items", json={"product_id": shelf["b"], "quantity": 4}, headers=AUTH)

    created = client.post("/shared-orders", json={"name": "Friday"}, headers=AUTH)
    assert created.status_code == 201
    body = created.json()
    assert body["participants"][0]["role"] == "owner"
    assert Decimal(body["individual_share"]) == Decimal("4.00")

    assert client.post("/shared-orders/XYZ/join", headers=AUTH).status_code == 404


def test_reorder_with_nothing_available_is_422(client, make, shelf):
    client.post("/cart/items", json={"product_id": shelf["b"]}, headers=AUTH)
    favorite = client.post("/favorites", json={"name": "Snack"}, headers=AUTH).json()
    make.deactivate("products", shelf["b"])

    response = client.post(f"/favorites/{favorite['id']}/reorder", headers=AUTH)
    assert response.status_code == 422


def test_remote_failures_are_generic_502(app, client):
    broken = MagicMock()
    broken.select.side_effect = RemoteOperationError("select on categories failed: relation missing")
    app.dependency_overrides[deps.get_public_gateway] = lambda: broken

    response = client.get("/categories")

    assert response.status_code == 502
    assert "relation" not in response.json()["detail"]


def test_addresses(client):
    payload = {
        "name": "Home",
        "recipient_name": "Ana",
        "street": "Main 1",
        "city": "Lisbon",
        "postal_code": "1000-001",
        "phone": "600100200",
        "is_default": True,
    }
    created = client.post("/addresses", json=payload, headers=AUTH)
    assert created.status_code == 201
    listed = client.get("/addresses", headers=AUTH).json()
    assert [a["id"] for a in listed] == [created.json()["id"]]


@pytest.fixture
def stored_sessions(db, gateway):
    store = MagicMock(spec=SessionStore)
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[deps.get_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_session_store] = lambda: store
    yield store, TestClient(app)
    app.dependency_overrides.clear()


def test_persisted_session_resolves_the_caller(stored_sessions, user_id):
    store, client = stored_sessions
    store.load.return_value = AuthSession(access_token="test-token", user=User(id=user_id))

    response = client.get("/cart", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["items"] == []
    key = store.load.call_args.args[0]
    assert "test-token" not in key


def test_session_store_outage_is_502(stored_sessions):
    store, client = stored_sessions
    store.load.side_effect = redis.ConnectionError("connection refused")

    response = client.get("/cart", headers=AUTH)

    assert response.status_code == 502
    assert "refused" not in response.json()["detail"]
