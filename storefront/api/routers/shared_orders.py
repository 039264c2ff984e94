# storefront/api/routers/shared_orders.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_current_user, get_gateway, get_identity
from storefront.data.gateway import Gateway
from storefront.domain.models import User
from storefront.domain.schemas import (
    ItemIn,
    PackIn,
    ParticipantOut,
    SharedOrderCreateIn,
    SharedOrderOut,
    shared_order_out,
)
from storefront.services.cart_service import CartService
from storefront.services.identity import IdentityClient
from storefront.services.shared_order_service import SharedOrderService

router = APIRouter(prefix="/shared-orders", tags=["shared-orders"])


def get_service(
    gateway: Gateway = Depends(get_gateway),
    identity: IdentityClient = Depends(get_identity),
    user: User = Depends(get_current_user),
) -> SharedOrderService:
    return SharedOrderService(gateway, identity, cart=CartService(gateway, identity))


@router.post("", response_model=SharedOrderOut, status_code=201)
def create_from_cart(payload: SharedOrderCreateIn, svc: SharedOrderService = Depends(get_service)):
    return shared_order_out(svc.create_from_cart(name=payload.name))


@router.get("/{order_id}", response_model=SharedOrderOut)
def get_shared_order(order_id: str, svc: SharedOrderService = Depends(get_service)):
    return shared_order_out(svc.load(order_id))


@router.post("/{order_id}/join", response_model=ParticipantOut)
def join(order_id: str, svc: SharedOrderService = Depends(get_service)):
    return svc.join(order_id)


@router.post("/{order_id}/items", response_model=SharedOrderOut)
def add_item(order_id: str, payload: ItemIn, svc: SharedOrderService = Depends(get_service)):
    return shared_order_out(svc.add_item(order_id, payload.product_id, payload.quantity))


@router.post("/{order_id}/packs", response_model=SharedOrderOut)
def add_pack(order_id: str, payload: PackIn, svc: SharedOrderService = Depends(get_service)):
    return shared_order_out(svc.add_pack(order_id, payload.pack_id, payload.plain_selections()))


@router.delete("/{order_id}/items/{item_id}", response_model=SharedOrderOut)
def remove_item(order_id: str, item_id: str, svc: SharedOrderService = Depends(get_service)):
    return shared_order_out(svc.remove_item(order_id, item_id))
