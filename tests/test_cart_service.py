from decimal import Decimal

import pytest

from storefront.domain.errors import (
    AuthRequiredError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.services.cart_service import CartService


@pytest.fixture
def shelf(make):
    c = make.category("Fruit")
    a = make.product("Apple", "2.00", stock=10)
    b = make.product("Banana", "1.00", stock=10, category_id=c)
    d = make.product("Date", "4.00", stock=10, category_id=c)
    p = make.pack("Fruit box", "9.00", fixed=[(a, 1)], slots=[(c, 2)])
    return {"c": c, "a": a, "b": b, "d": d, "p": p}


def picks(*pairs):
    return [{"product_id": pid, "quantity": q} for pid, q in pairs]


def test_adding_same_product_twice_merges_lines(cart, make, user_id):
    x = make.product("Milk", "1.10", stock=10)
    cart.add_item(x, 1)
    state = cart.add_item(x, 2)

    rows = make.rows("cart_items", user_id=user_id, product_id=x)
    assert len(rows) == 1
    assert rows[0]["quantity"] == 3
    assert state.total == Decimal("3.30")


def test_stock_is_checked_against_existing_quantity(cart, make, user_id):
    x = make.product("Milk", "1.10", stock=2)
    cart.add_item(x, 1)

    with pytest.raises(InsufficientStockError) as exc:
        cart.add_item(x, 2)

    assert exc.value.requested == 3
    assert exc.value.available == 2
    assert make.rows("cart_items", product_id=x)[0]["quantity"] == 1


def test_inactive_or_malformed_product(cart, make):
    x = make.product("Old milk", "1.10", is_active=False)
    with pytest.raises(NotFoundError):
        cart.add_item(x)
    with pytest.raises(ValidationError):
        cart.add_item("42")
    assert make.rows("cart_items") == []


def test_non_positive_add_quantity_is_rejected(cart, make):
    x = make.product()
    with pytest.raises(ValidationError):
        cart.add_item(x, 0)


def test_add_pack_inserts_one_line_per_product(cart, make, shelf):
    state = cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})

    rows = make.rows("cart_items", pack_id=shelf["p"])
    assert sorted(r["product_id"] for r in rows) == sorted([shelf["a"], shelf["b"], shelf["d"]])
    assert all(r["pack_price"] == Decimal("3.00") for r in rows)
    assert all(r["quantity"] == 1 for r in rows)

    assert state.total == Decimal("9.00")
    group = state.group_for(shelf["p"])
    assert group.unit_price == Decimal("3")
    assert group.subtotal == Decimal("9.00")


def test_incomplete_pack_writes_nothing(cart, make, shelf):
    with pytest.raises(ValidationError):
        cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1))})
    assert make.rows("cart_items") == []


def test_adding_identical_pack_again_increments_every_line(cart, make, shelf):
    selection = {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))}
    cart.add_pack(shelf["p"], selection)
    state = cart.add_pack(shelf["p"], selection)

    rows = make.rows("cart_items", pack_id=shelf["p"])
    assert len(rows) == 3
    assert {r["quantity"] for r in rows} == {2}
    assert state.total == Decimal("18.00")


def test_same_pack_with_other_picks_is_rejected(cart, make, shelf):
    cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})
    with pytest.raises(ValidationError):
        cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 2))})
    assert len(make.rows("cart_items")) == 3


def test_pack_stock_shortfall_aborts_the_whole_pack(cart, make, shelf):
    make.set_stock(shelf["d"], 0)
    with pytest.raises(InsufficientStockError) as exc:
        cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})
    assert exc.value.product_id == shelf["d"]
    assert make.rows("cart_items") == []


def test_pack_stock_counts_units_per_instance(cart, make):
    yogurt = make.product("Yogurt", "0.90", stock=3)
    p = make.pack("Yogurt duo", "1.50", fixed=[(yogurt, 2)])

    cart.add_pack(p)
    with pytest.raises(InsufficientStockError) as exc:
        cart.add_pack(p)
    assert exc.value.requested == 4
    assert make.rows("cart_items")[0]["quantity"] == 1


def test_several_pack_instances_are_checked_before_writing(cart, make):
    yogurt = make.product("Yogurt", "0.90", stock=5)
    p = make.pack("Yogurt duo", "1.50", fixed=[(yogurt, 2)])

    with pytest.raises(InsufficientStockError) as exc:
        cart.add_pack(p, quantity=3)
    assert exc.value.requested == 6
    assert make.rows("cart_items") == []

    state = cart.add_pack(p, quantity=2)
    assert state.group_for(p).quantity == 2
    assert state.total == Decimal("3.00")


@pytest.mark.parametrize("quantity", [0, -5])
def test_update_below_one_removes_the_line(cart, make, quantity):
    x = make.product()
    line_id = cart.add_item(x, 2).items[0].id

    state = cart.update_quantity(line_id, quantity)

    assert state.is_empty
    assert make.rows("cart_items") == []


@pytest.mark.parametrize("quantity", [0, -5])
def test_update_below_one_removes_the_pack(cart, make, shelf, quantity):
    state = cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})
    line_id = state.items[0].id

    state = cart.update_quantity(line_id, quantity, is_pack=True, pack_id=shelf["p"])

    assert state.is_empty


def test_pack_quantity_update_is_group_wide(cart, make, shelf):
    state = cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})
    line_id = state.items[1].id

    # the flag is not needed, a pack line always moves with its group
    state = cart.update_quantity(line_id, 3)

    assert {r["quantity"] for r in make.rows("cart_items")} == {3}
    assert state.total == Decimal("27.00")


def test_update_quantity_rechecks_stock(cart, make):
    x = make.product(stock=3)
    line_id = cart.add_item(x, 1).items[0].id

    with pytest.raises(InsufficientStockError):
        cart.update_quantity(line_id, 4)
    state = cart.update_quantity(line_id, 3)
    assert state.items[0].quantity == 3


def test_remove_pack_deletes_all_lines(cart, make, shelf):
    x = make.product("Milk", "1.10")
    cart.add_item(x)
    cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})

    state = cart.remove_pack(shelf["p"])

    assert [l.product.id for l in state.items] == [x]
    assert state.packs == ()


def test_total_mixes_packs_and_loose_lines(cart, make, shelf):
    x = make.product("Milk", "1.10")
    cart.add_item(x, 2)
    cart.add_pack(shelf["p"], {shelf["c"]: picks((shelf["b"], 1), (shelf["d"], 1))})

    assert cart.compute_total() == Decimal("11.20")
    assert len(cart.state.individual) == 1
    assert len(cart.state.packs) == 1


def test_load_cart_is_idempotent(cart, make, shelf, user_id):
    cart.add_item(make.product("Milk", "1.10"), 2)
    cart.add_pack(shelf["p"])

    first = cart.load_cart(user_id).total
    second = cart.load_cart(user_id).total
    assert first == second == Decimal("11.20")


def test_subscribers_get_every_new_state(cart, make):
    x = make.product()
    seen = []
    unsubscribe = cart.subscribe(seen.append)

    cart.add_item(x)
    cart.add_item(x)
    unsubscribe()
    cart.add_item(x)

    assert [s.items[0].quantity for s in seen] == [1, 2]


def test_closed_cart_drops_reads(cart, make, user_id):
    x = make.product()
    cart.add_item(x)
    before = cart.state
    cart.close()

    result = cart.add_item(x)

    assert result.items[0].quantity == 2
    assert cart.state is before


def test_signed_out_user_cannot_mutate(gateway, make, fake_identity):
    cart = CartService(gateway, fake_identity())
    with pytest.raises(AuthRequiredError):
        cart.add_item(make.product())
