from datetime import timedelta

from storefront.domain.models import utcnow
from storefront.tasks.sweep import sweep_orphaned_shared_orders


def shared_order(gateway, owner, expires_in, with_item=None, status="active"):
    order = gateway.insert_one(
        "shared_orders",
        {"created_by": owner, "status": status, "expires_at": utcnow() + expires_in},
    )
    gateway.insert_one(
        "shared_order_participants", {"shared_order_id": order["id"], "user_id": owner, "role": "owner"}
    )
    if with_item:
        gateway.insert_one(
            "shared_order_items",
            {"shared_order_id": order["id"], "user_id": owner, "product_id": with_item, "quantity": 1},
        )
    return order["id"]


def test_sweep_removes_only_expired_empty_orders(gateway, make, user_id):
    product = make.product()
    orphan = shared_order(gateway, user_id, timedelta(hours=-1))
    expired_with_items = shared_order(gateway, user_id, timedelta(hours=-1), with_item=product)
    fresh_empty = shared_order(gateway, user_id, timedelta(hours=23))

    removed = sweep_orphaned_shared_orders(gateway)

    assert removed == 1
    remaining = {row["id"] for row in make.rows("shared_orders")}
    assert remaining == {expired_with_items, fresh_empty}
    assert make.rows("shared_order_participants", shared_order_id=orphan) == []


def test_sweep_ignores_completed_orders(gateway, make, user_id):
    shared_order(gateway, user_id, timedelta(hours=-1), status="completed")
    assert sweep_orphaned_shared_orders(gateway) == 0


def test_sweep_uses_given_clock(gateway, make, user_id):
    shared_order(gateway, user_id, timedelta(hours=1))
    assert sweep_orphaned_shared_orders(gateway, now=utcnow() + timedelta(hours=2)) == 1
