from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.domain.pricing import (
    compute_total,
    group_lines,
    pack_unit_price,
    per_user_totals,
    round_money,
    split_evenly,
    to_minor_units,
)


def line(product_id, price, quantity, pack=None, user_id="u1", pack_units=None, pack_price=None):
    return SimpleNamespace(
        product=SimpleNamespace(id=product_id, price=Decimal(price)),
        quantity=quantity,
        pack_id=pack.id if pack else None,
        pack=pack,
        user_id=user_id,
        pack_units=pack_units,
        pack_price=pack_price,
    )


def test_round_money_half_up():
    assert round_money("2.345") == Decimal("2.35")
    assert round_money("2.344") == Decimal("2.34")


def test_to_minor_units():
    assert to_minor_units("12.345") == 1235
    assert to_minor_units(Decimal("40")) == 4000
    assert to_minor_units(0.1) == 10


def test_pack_unit_price_is_even_split():
    assert pack_unit_price(Decimal("9.00"), 3) == Decimal("3")
    with pytest.raises(ValueError):
        pack_unit_price(Decimal("9.00"), 0)


def test_split_evenly():
    assert split_evenly(Decimal("40.00"), 2) == Decimal("20.00")
    assert split_evenly(Decimal("10.00"), 3) == Decimal("3.33")
    with pytest.raises(ValueError):
        split_evenly(Decimal("10.00"), 0)


def test_pack_group_counted_once_per_group():
    pack = SimpleNamespace(id="p1", price=Decimal("9.00"))
    lines = [
        line("a", "5.00", 2, pack=pack),
        line("b", "1.00", 2, pack=pack),
        line("c", "7.00", 2, pack=pack),
        line("x", "1.50", 2),
    ]
    # 9.00 x 2 for the pack, 1.50 x 2 for the loose line
    assert compute_total(lines) == Decimal("21.00")

    groups, individual = group_lines(lines)
    assert len(groups) == 1 and len(individual) == 1
    group = groups[0]
    assert group.quantity == 2
    assert group.unit_price * len(group.lines) * group.quantity == group.subtotal


def test_same_pack_from_two_users_is_two_groups():
    pack = SimpleNamespace(id="p1", price=Decimal("6.00"))
    lines = [
        line("a", "1.00", 1, pack=pack, user_id="u1"),
        line("b", "1.00", 1, pack=pack, user_id="u1"),
        line("a", "1.00", 1, pack=pack, user_id="u2"),
        line("b", "1.00", 1, pack=pack, user_id="u2"),
        line("z", "4.00", 1, user_id="u2"),
    ]
    groups, _ = group_lines(lines)
    assert len(groups) == 2

    totals = per_user_totals(lines)
    assert totals == {"u1": Decimal("6.00"), "u2": Decimal("10.00")}
    assert sum(totals.values()) == compute_total(lines)


def test_group_without_pack_row_falls_back_to_stored_prices():
    missing = SimpleNamespace(id="gone", price=None)
    lines = [
        line("a", "1.00", 1, pack_units=1, pack_price=Decimal("2.50")),
        line("b", "1.00", 1, pack_units=1, pack_price=Decimal("2.50")),
    ]
    for l in lines:
        l.pack_id = missing.id
    assert compute_total(lines) == Decimal("5.00")


def test_empty_total_is_zero():
    assert compute_total([]) == Decimal("0.00")
