# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.models import CartState, FavoriteItemView, FavoriteOrder, SharedOrderView


# ---------------------------------------------------------------- auth

class SignUpIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    password: str
    phone: Optional[str] = None


class SignInIn(BaseModel):
    email: str
    password: str


class SessionOut(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileOut(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateIn(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


# ---------------------------------------------------------------- catalog

class CategoryOut(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: str
    name: str
    price: Decimal
    stock: int
    is_active: bool
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PackLineOut(BaseModel):
    quantity: int
    product: ProductOut

    model_config = ConfigDict(from_attributes=True)


class PackSlotOut(BaseModel):
    category_id: str
    name: Optional[str] = None
    products_count: int

    model_config = ConfigDict(from_attributes=True)


class PackOut(BaseModel):
    id: str
    name: str
    price: Decimal
    products_count: int
    description: Optional[str] = None
    image_url: Optional[str] = None
    fixed_lines: List[PackLineOut] = []
    categories: List[PackSlotOut] = []

    model_config = ConfigDict(from_attributes=True)


class CustomizationOut(BaseModel):
    pack: PackOut
    available: Dict[str, List[ProductOut]]

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- cart

class SelectedProductIn(BaseModel):
    product_id: str
    quantity: int = Field(1, gt=0)


class ItemIn(BaseModel):
    product_id: str
    quantity: int = Field(1, gt=0, description="Units to add")


class PackIn(BaseModel):
    pack_id: str
    selections: Optional[Dict[str, List[SelectedProductIn]]] = None

    def plain_selections(self):
        if self.selections is None:
            return None
        return {cid: [p.model_dump() for p in picks] for cid, picks in self.selections.items()}


class QuantityIn(BaseModel):
    """A quantity below 1 removes the line (or the whole pack)."""

    quantity: int
    is_pack: bool = False
    pack_id: Optional[str] = None


class CartLineOut(BaseModel):
    id: str
    quantity: int
    product: ProductOut
    pack_id: Optional[str] = None
    pack_units: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class PackGroupOut(BaseModel):
    pack_id: str
    owner_id: Optional[str] = None
    name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    lines: List[CartLineOut]


class CartOut(BaseModel):
    items: List[CartLineOut]
    packs: List[PackGroupOut]
    individual: List[CartLineOut]
    total: Decimal


def pack_group_out(group) -> PackGroupOut:
    return PackGroupOut(
        pack_id=group.pack_id,
        owner_id=group.owner_id,
        name=group.pack.name if group.pack is not None else None,
        quantity=group.quantity,
        unit_price=group.unit_price,
        subtotal=group.subtotal,
        lines=[CartLineOut.model_validate(line) for line in group.lines],
    )


def cart_out(state: CartState) -> CartOut:
    return CartOut(
        items=[CartLineOut.model_validate(line) for line in state.items],
        packs=[pack_group_out(g) for g in state.packs],
        individual=[CartLineOut.model_validate(line) for line in state.individual],
        total=state.total,
    )


# ---------------------------------------------------------------- shared orders

class SharedOrderCreateIn(BaseModel):
    name: Optional[str] = Field(None, max_length=100)


class ParticipantOut(BaseModel):
    user_id: str
    role: str
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SharedItemOut(CartLineOut):
    user_id: str


class SharedOrderOut(BaseModel):
    id: str
    name: Optional[str] = None
    status: str
    created_by: str
    expires_at: datetime
    is_expired: bool
    is_active: bool
    total: Decimal
    individual_share: Decimal
    user_totals: Dict[str, Decimal]
    participants: List[ParticipantOut]
    items: List[SharedItemOut]


def shared_order_out(view: SharedOrderView) -> SharedOrderOut:
    return SharedOrderOut(
        id=view.order.id,
        name=view.order.name,
        status=view.order.status,
        created_by=view.order.created_by,
        expires_at=view.order.expires_at,
        is_expired=view.is_expired,
        is_active=view.is_active,
        total=view.total,
        individual_share=view.individual_share,
        user_totals=view.user_totals,
        participants=[ParticipantOut.model_validate(p) for p in view.participants],
        items=[SharedItemOut.model_validate(i) for i in view.items],
    )


# ---------------------------------------------------------------- favorites

class FavoriteIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class FavoriteItemOut(BaseModel):
    product_id: Optional[str] = None
    pack_id: Optional[str] = None
    quantity: int
    name: str
    available: bool

    model_config = ConfigDict(from_attributes=True)


class FavoriteOut(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None
    items: List[FavoriteItemOut]


def favorite_out(favorite: FavoriteOrder, items: List[FavoriteItemView]) -> FavoriteOut:
    return FavoriteOut(
        id=favorite.id,
        name=favorite.name,
        created_at=favorite.created_at,
        items=[FavoriteItemOut.model_validate(i) for i in items],
    )


class ReorderOut(BaseModel):
    added: int
    skipped: List[str]
    partial: bool
    message: str

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- addresses / checkout

class AddressIn(BaseModel):
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


class AddressOut(AddressIn):
    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CheckoutIn(BaseModel):
    address_id: str


class SharedCheckoutIn(BaseModel):
    mode: Literal["individual", "group"] = "individual"


class PaymentOut(BaseModel):
    intent_id: str
    status: str

    model_config = ConfigDict(from_attributes=True)


class OrderLineOut(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    quantity: int
    price: Decimal
    pack_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    status: str
    total: Decimal
    address_id: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderLineOut]

    model_config = ConfigDict(from_attributes=True)
