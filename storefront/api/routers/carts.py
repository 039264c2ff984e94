# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_current_user, get_gateway, get_identity
from storefront.data.gateway import Gateway
from storefront.domain.models import User
from storefront.domain.schemas import CartOut, ItemIn, PackIn, QuantityIn, cart_out
from storefront.services.cart_service import CartService
from storefront.services.identity import IdentityClient

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(
    gateway: Gateway = Depends(get_gateway),
    identity: IdentityClient = Depends(get_identity),
    user: User = Depends(get_current_user),
) -> CartService:
    return CartService(gateway, identity)


@router.get("", response_model=CartOut)
def get_cart(svc: CartService = Depends(get_service)):
    return cart_out(svc.load_cart())


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, svc: CartService = Depends(get_service)):
    return cart_out(svc.add_item(payload.product_id, payload.quantity))


@router.post("/packs", response_model=CartOut)
def add_pack(payload: PackIn, svc: CartService = Depends(get_service)):
    return cart_out(svc.add_pack(payload.pack_id, payload.plain_selections()))


@router.patch("/items/{line_id}", response_model=CartOut)
def update_quantity(line_id: str, payload: QuantityIn, svc: CartService = Depends(get_service)):
    return cart_out(svc.update_quantity(line_id, payload.quantity, payload.is_pack, payload.pack_id))


@router.delete("/items/{line_id}", response_model=CartOut)
def remove_item(line_id: str, svc: CartService = Depends(get_service)):
    return cart_out(svc.remove_item(line_id))


@router.delete("/packs/{pack_id}", response_model=CartOut)
def remove_pack(pack_id: str, svc: CartService = Depends(get_service)):
    return cart_out(svc.remove_pack(pack_id))


@router.delete("", response_model=CartOut)
def clear_cart(svc: CartService = Depends(get_service)):
    return cart_out(svc.clear())
