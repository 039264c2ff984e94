from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.data.sql_gateway import SqlGateway
from storefront.domain.errors import (
    ExpiredError,
    InactiveError,
    InsufficientStockError,
    InvalidCodeError,
    RemoteOperationError,
    ValidationError,
)
from storefront.domain.models import utcnow
from storefront.services.cart_service import CartService
from storefront.services.shared_order_service import SharedOrderService


class FailingGateway(SqlGateway):
    def __init__(self, db, fail_on):
        super().__init__(db)
        self.fail_on = fail_on

    def insert(self, table, rows):
        if table == self.fail_on:
            raise RemoteOperationError(f"insert on {table} failed")
        return super().insert(table, rows)


@pytest.fixture
def shelf(make):
    c = make.category("Fruit")
    a = make.product("Apple", "2.00", stock=10)
    b = make.product("Banana", "1.00", stock=10, category_id=c)
    d = make.product("Date", "4.00", stock=10, category_id=c)
    x = make.product("Milk", "10.00", stock=10)
    p = make.pack("Fruit box", "9.00", fixed=[(a, 1)], slots=[(c, 2)])
    return {"c": c, "a": a, "b": b, "d": d, "x": x, "p": p}


@pytest.fixture
def shared(gateway, identity, cart):
    return SharedOrderService(gateway, identity, cart=cart)


def picks(*pairs):
    return [{"product_id": pid, "quantity": q} for pid, q in pairs]


def test_create_from_cart_copies_items_and_adds_owner(shared, cart, make, shelf, user_id):
    cart.add_item(shelf["x"], 2)
    cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})

    view = shared.create_from_cart()

    assert view.order.status == "active"
    assert view.is_active and not view.is_expired
    assert [(p.user_id, p.role) for p in view.participants] == [(user_id, "owner")]
    assert len(view.items) == 4
    assert view.total == cart.compute_total() == Decimal("29.00")
    delta = view.order.expires_at - view.order.created_at
    assert timedelta(hours=23, minutes=59) < delta <= timedelta(hours=24, seconds=1)


def test_fan_out_recomputes_pack_unit_price(shared, cart, make, gateway, shelf):
    cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})
    gateway.update("cart_items", {"pack_price": Decimal("1.00")}, {"pack_id": shelf["p"]})

    view = shared.create_from_cart()

    rows = make.rows("shared_order_items", shared_order_id=view.order.id)
    assert {r["pack_price"] for r in rows} == {Decimal("3.00")}
    assert view.total == Decimal("9.00")


def test_empty_cart_cannot_be_shared(shared, make):
    with pytest.raises(ValidationError):
        shared.create_from_cart()
    assert make.rows("shared_orders") == []


def test_individual_share_ignores_who_added_what(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"], 4)
    order_id = shared.create_from_cart().order.id

    friend = make.user("Bea")
    SharedOrderService(gateway, fake_identity(friend)).join(order_id)
    view = shared.load(order_id)

    assert view.total == Decimal("40.00")
    assert view.individual_share == Decimal("20.00")
    assert shared.calculate_individual_share(Decimal("40.00"), 2) == Decimal("20.00")


def test_per_user_totals_are_informational(shared, cart, gateway, make, shelf, fake_identity, user_id):
    cart.add_item(shelf["x"], 1)
    order_id = shared.create_from_cart().order.id
    friend = make.user("Bea")
    friend_side = SharedOrderService(gateway, fake_identity(friend))
    friend_side.join(order_id)
    friend_side.add_pack(order_id, shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})

    view = shared.load(order_id)

    assert view.user_totals == {user_id: Decimal("10.00"), friend: Decimal("9.00")}
    assert view.total == Decimal("19.00")
    assert view.individual_share == Decimal("9.50")


def test_join_is_idempotent(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    friend_side = SharedOrderService(gateway, fake_identity(make.user("Bea")))

    first = friend_side.join(order_id)
    second = friend_side.join(order_id)

    assert first.id == second.id
    assert len(make.rows("shared_order_participants", shared_order_id=order_id)) == 2


def test_owner_joining_own_order_is_a_noop(shared, cart, make, shelf):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    assert shared.join(order_id).role == "owner"


def test_join_with_bad_code(shared, make):
    with pytest.raises(InvalidCodeError):
        shared.join("ABC123")
    with pytest.raises(InvalidCodeError):
        shared.join("6f1c7a3e-2b7d-4c1e-9a55-0d3b2e7c9f10")


def test_join_after_expiry(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    later = SharedOrderService(
        gateway, fake_identity(make.user("Bea")), clock=lambda: utcnow() + timedelta(hours=25)
    )
    with pytest.raises(ExpiredError):
        later.join(order_id)


def test_join_completed_order(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    shared.complete(order_id)

    with pytest.raises(InactiveError):
        SharedOrderService(gateway, fake_identity(make.user("Bea"))).join(order_id)


def test_only_participants_contribute(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    stranger = SharedOrderService(gateway, fake_identity(make.user("Cid")))

    with pytest.raises(PermissionError):
        stranger.add_item(order_id, shelf["a"])


def test_contributions_recheck_stock_and_merge(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    friend = make.user("Bea")
    friend_side = SharedOrderService(gateway, fake_identity(friend))
    friend_side.join(order_id)

    friend_side.add_item(order_id, shelf["a"], 4)
    view = friend_side.add_item(order_id, shelf["a"], 6)
    assert [i.quantity for i in view.items if i.user_id == friend] == [10]

    with pytest.raises(InsufficientStockError):
        friend_side.add_item(order_id, shelf["a"], 1)


def test_no_changes_after_expiry(shared, cart, gateway, make, shelf, identity):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id
    later = SharedOrderService(gateway, identity, clock=lambda: utcnow() + timedelta(days=2))

    with pytest.raises(ExpiredError):
        later.add_item(order_id, shelf["a"])
    assert later.load(order_id).is_expired


def test_remove_item(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    view = shared.create_from_cart()
    order_id = view.order.id
    friend_side = SharedOrderService(gateway, fake_identity(make.user("Bea")))
    friend_side.join(order_id)

    with pytest.raises(PermissionError):
        friend_side.remove_item(order_id, view.items[0].id)

    view = shared.remove_item(order_id, view.items[0].id)
    assert view.items == ()
    assert view.total == Decimal("0.00")


def test_removing_a_pack_line_removes_the_whole_pack(shared, cart, gateway, make, shelf, fake_identity):
    cart.add_item(shelf["x"])
    cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})
    view = shared.create_from_cart()
    order_id = view.order.id
    friend = make.user("Bea")
    friend_side = SharedOrderService(gateway, fake_identity(friend))
    friend_side.join(order_id)
    friend_side.add_pack(order_id, shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})

    pack_line = next(i for i in view.items if i.pack_id)
    view = shared.remove_item(order_id, pack_line.id)

    mine = [i for i in view.items if i.user_id != friend]
    assert [i.product.id for i in mine] == [shelf["x"]]
    assert len([i for i in view.items if i.user_id == friend]) == 3
    assert view.total == Decimal("19.00")


def test_complete_only_once(shared, cart, make, shelf):
    cart.add_item(shelf["x"])
    order_id = shared.create_from_cart().order.id

    assert shared.complete(order_id).status == "completed"
    with pytest.raises(InactiveError):
        shared.complete(order_id)
    assert not shared.load(order_id).is_active


def test_failed_fan_out_is_cleaned_up(db, cart, identity, make, shelf):
    cart.add_item(shelf["x"])
    failing = FailingGateway(db, fail_on="shared_order_items")
    service = SharedOrderService(failing, identity, cart=CartService(failing, identity))

    with pytest.raises(RemoteOperationError):
        service.create_from_cart()

    assert make.rows("shared_orders") == []
    assert make.rows("shared_order_participants") == []
