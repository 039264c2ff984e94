# storefront/domain/pricing.py
"""
Money arithmetic shared by the cart and the shared orders.

Lines are grouped before they are summed: every pack group contributes
pack.price x group quantity exactly once, loose lines contribute
product.price x quantity. Lines are duck typed, anything with `product`,
`quantity`, `pack_id`, `pack` and `user_id` attributes works.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value, places: int = 2) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """12.345 -> 1235 (cents, half up)."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def pack_unit_price(pack_price, line_count: int) -> Decimal:
    """Even split of the flat pack price over the lines of one pack group."""
    if line_count < 1:
        raise ValueError("A pack group needs at least one line")
    return to_decimal(pack_price) / Decimal(line_count)


def split_evenly(total, parts: int) -> Decimal:
    if parts < 1:
        raise ValueError("Cannot split between zero participants")
    return round_money(to_decimal(total) / Decimal(parts))


@dataclass
class LineGroup:
    pack_id: str
    owner_id: Optional[str]
    pack: Any
    quantity: int
    lines: List[Any] = field(default_factory=list)

    @property
    def price(self) -> Decimal:
        if self.pack is not None:
            return to_decimal(self.pack.price)
        # pack row no longer readable, fall back to what was stored on the lines
        return sum((to_decimal(l.pack_price or 0) for l in self.lines), ZERO)

    @property
    def unit_price(self) -> Decimal:
        return pack_unit_price(self.price, len(self.lines))

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @property
    def composition(self) -> Dict[str, int]:
        return {line.product.id: (line.pack_units or 1) for line in self.lines}


def group_lines(lines: Iterable[Any]) -> Tuple[List[LineGroup], List[Any]]:
    """
    Split lines into pack groups and loose lines, keeping first-seen order.

    A pack group is keyed by (owner, pack) so two participants adding the
    same pack in a shared order stay two groups.
    """
    groups: Dict[Tuple[Optional[str], str], LineGroup] = {}
    individual: List[Any] = []

    for line in lines:
        if not line.pack_id:
            individual.append(line)
            continue
        key = (getattr(line, "user_id", None), line.pack_id)
        group = groups.get(key)
        if group is None:
            # the first line carries the group quantity, the rest are kept in sync with it
            group = LineGroup(
                pack_id=line.pack_id,
                owner_id=key[0],
                pack=line.pack,
                quantity=line.quantity,
            )
            groups[key] = group
        group.lines.append(line)

    return list(groups.values()), individual


def compute_total(lines: Iterable[Any]) -> Decimal:
    groups, individual = group_lines(lines)
    total = sum((g.subtotal for g in groups), ZERO)
    total += sum((to_decimal(l.product.price) * l.quantity for l in individual), ZERO)
    return total


def per_user_totals(lines: Iterable[Any]) -> Dict[str, Decimal]:
    by_user: Dict[str, List[Any]] = {}
    for line in lines:
        by_user.setdefault(line.user_id, []).append(line)
    return {user_id: compute_total(user_lines) for user_id, user_lines in by_user.items()}
