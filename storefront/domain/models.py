# storefront/domain/models.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

from storefront.domain.pricing import ZERO, LineGroup, group_lines, compute_total, pack_unit_price


def _aware(value):
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Row(BaseModel):
    """Base for rows coming back from the gateway, extra columns are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True, arbitrary_types_allowed=True)


# ---------------------------------------------------------------- catalog

class Category(_Row):
    id: str
    name: str
    image_url: Optional[str] = None


class Product(_Row):
    id: str
    name: str
    price: Decimal
    stock: int = 0
    is_active: bool = True
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


class PackProduct(_Row):
    """A fixed line of a pack: product x units always included."""

    id: Optional[str] = None
    quantity: int
    is_fixed: bool = True
    product: Product

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PackProduct":
        return cls(product=Product(**row["products"]), **row)


class PackCategory(_Row):
    """A customizable slot: the buyer picks `products_count` units from the category."""

    id: Optional[str] = None
    category_id: str
    products_count: int
    name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PackCategory":
        category = row.get("categories") or {}
        return cls(name=category.get("name"), **row)


class Pack(_Row):
    id: str
    name: str
    price: Decimal
    is_active: bool = True
    products_count: int = 0
    description: Optional[str] = None
    image_url: Optional[str] = None
    fixed_lines: Tuple[PackProduct, ...] = ()
    categories: Tuple[PackCategory, ...] = ()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Pack":
        fixed = tuple(
            PackProduct.from_row(pp)
            for pp in row.get("pack_products") or []
            if pp.get("is_fixed", True)
        )
        slots = tuple(PackCategory.from_row(pc) for pc in row.get("pack_categories") or [])
        return cls(fixed_lines=fixed, categories=slots, **row)

    @property
    def is_customizable(self) -> bool:
        return bool(self.categories)


# ---------------------------------------------------------------- selections

class SelectedProduct(_Row):
    product_id: str
    quantity: int = Field(1, ge=1)


class PackSelections(RootModel[Dict[str, List[SelectedProduct]]]):
    """category id -> ordered picks for that category."""

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check(self):
        for category_id, picks in self.root.items():
            if not category_id or not category_id.strip():
                raise ValueError("Category id must not be empty")
            seen = set()
            for pick in picks:
                if pick.product_id in seen:
                    raise ValueError(
                        f"Product {pick.product_id} selected twice in category {category_id}"
                    )
                seen.add(pick.product_id)
        return self

    def categories(self) -> List[str]:
        return list(self.root)

    def picks(self, category_id: str) -> List[SelectedProduct]:
        return list(self.root.get(category_id, []))

    def total_for(self, category_id: str) -> int:
        return sum(p.quantity for p in self.root.get(category_id, []))


class ExpandedLine(_Row):
    product: Product
    units: int
    is_fixed: bool
    category_id: Optional[str] = None


class PackExpansion(_Row):
    pack: Pack
    lines: Tuple[ExpandedLine, ...]

    @property
    def unit_price(self) -> Decimal:
        return pack_unit_price(self.pack.price, len(self.lines))

    @property
    def composition(self) -> Dict[str, int]:
        return {line.product.id: line.units for line in self.lines}


class PackCustomization(_Row):
    pack: Pack
    available: Dict[str, Tuple[Product, ...]]


# ---------------------------------------------------------------- cart

class CartLine(_Row):
    id: str
    user_id: str
    quantity: int
    product: Product
    pack_id: Optional[str] = None
    pack_price: Optional[Decimal] = None
    pack_units: Optional[int] = None
    pack: Optional[Pack] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CartLine":
        pack = row.get("packs")
        return cls(
            product=Product(**row["products"]),
            pack=Pack(**pack) if pack else None,
            **row,
        )

    @property
    def is_pack(self) -> bool:
        return self.pack_id is not None


class CartState(_Row):
    items: Tuple[CartLine, ...] = ()
    packs: Tuple[LineGroup, ...] = ()
    individual: Tuple[CartLine, ...] = ()
    total: Decimal = ZERO

    @classmethod
    def from_lines(cls, lines) -> "CartState":
        lines = tuple(lines)
        groups, individual = group_lines(lines)
        return cls(
            items=lines,
            packs=tuple(groups),
            individual=tuple(individual),
            total=compute_total(lines),
        )

    def group_for(self, pack_id: str) -> Optional[LineGroup]:
        return next((g for g in self.packs if g.pack_id == pack_id), None)

    @property
    def is_empty(self) -> bool:
        return not self.items


# ---------------------------------------------------------------- shared orders

class SharedOrder(_Row):
    id: str
    created_by: str
    name: Optional[str] = None
    status: str
    expires_at: datetime
    created_at: Optional[datetime] = None

    @field_validator("expires_at", "created_at")
    @classmethod
    def ensure_utc(cls, value):
        return _aware(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.status == "active" and (now or utcnow()) > self.expires_at

    def accepts_changes(self, now: Optional[datetime] = None) -> bool:
        return self.status == "active" and not self.is_expired(now)


class Participant(_Row):
    id: Optional[str] = None
    shared_order_id: str
    user_id: str
    role: str
    name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Participant":
        user = row.get("users") or {}
        return cls(name=user.get("name"), **row)


class SharedOrderItem(_Row):
    id: str
    shared_order_id: str
    user_id: str
    quantity: int
    product: Product
    pack_id: Optional[str] = None
    pack_price: Optional[Decimal] = None
    pack_units: Optional[int] = None
    pack: Optional[Pack] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SharedOrderItem":
        pack = row.get("packs")
        return cls(
            product=Product(**row["products"]),
            pack=Pack(**pack) if pack else None,
            **row,
        )


class SharedOrderView(_Row):
    order: SharedOrder
    participants: Tuple[Participant, ...]
    items: Tuple[SharedOrderItem, ...]
    total: Decimal
    individual_share: Decimal
    user_totals: Dict[str, Decimal]
    is_expired: bool
    is_active: bool


# ---------------------------------------------------------------- favorites

class FavoriteEntry(_Row):
    product_id: Optional[str] = None
    pack_id: Optional[str] = None
    quantity: int = Field(1, ge=1)
    selections: Optional[Dict[str, List[SelectedProduct]]] = None


class FavoriteOrder(_Row):
    id: str
    user_id: str
    name: str
    items: Tuple[Dict[str, Any], ...] = ()
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, value):
        return _aware(value)


class FavoriteItemView(_Row):
    """A snapshot entry resolved against the live catalog for display."""

    product_id: Optional[str] = None
    pack_id: Optional[str] = None
    quantity: int
    name: str
    available: bool


class ReorderResult(_Row):
    added: int
    skipped: Tuple[str, ...] = ()
    message: str

    @property
    def partial(self) -> bool:
        return bool(self.skipped)


# ---------------------------------------------------------------- identity

class User(_Row):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)


class AuthSession(_Row):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: Optional[User] = None


class Profile(_Row):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


# ---------------------------------------------------------------- checkout

class Address(_Row):
    id: str
    user_id: str
    name: str
    recipient_name: str
    street: str
    apartment: Optional[str] = None
    floor: Optional[str] = None
    building_code: Optional[str] = None
    city: str
    postal_code: str
    phone: str
    instructions: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None


class PaymentOutcome(_Row):
    intent_id: str
    status: str

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class OrderLine(_Row):
    id: Optional[str] = None
    product_id: str
    quantity: int
    price: Decimal
    pack_id: Optional[str] = None
    product_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OrderLine":
        product = row.get("products") or {}
        return cls(product_name=product.get("name"), **row)


class Order(_Row):
    id: str
    client_id: str
    status: str
    total: Decimal
    address_id: Optional[str] = None
    created_at: Optional[datetime] = None
    items: Tuple[OrderLine, ...] = ()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Order":
        lines = tuple(OrderLine.from_row(r) for r in row.get("order_items") or [])
        return cls(items=lines, **{k: v for k, v in row.items() if k != "order_items"})
