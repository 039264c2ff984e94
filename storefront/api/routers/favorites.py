from typing import List

from fastapi import APIRouter, Depends

from storefront.api.deps import get_current_user, get_gateway, get_identity
from storefront.data.gateway import Gateway
from storefront.domain.models import User
from storefront.domain.schemas import FavoriteIn, FavoriteOut, ReorderOut, favorite_out
from storefront.services.cart_service import CartService
from storefront.services.favorite_service import FavoriteService
from storefront.services.identity import IdentityClient

router = APIRouter(prefix="/favorites", tags=["favorites"])


def get_service(
    gateway: Gateway = Depends(get_gateway),
    identity: IdentityClient = Depends(get_identity),
    user: User = Depends(get_current_user),
) -> FavoriteService:
    return FavoriteService(gateway, identity, cart=CartService(gateway, identity))


@router.get("", response_model=List[FavoriteOut])
def list_favorites(svc: FavoriteService = Depends(get_service)):
    return [favorite_out(f, svc.describe(f)) for f in svc.list_favorites()]


@router.post("", response_model=FavoriteOut, status_code=201)
def save_favorite(payload: FavoriteIn, svc: FavoriteService = Depends(get_service)):
    state = svc.cart.load_cart()
    favorite = svc.save_favorite(None, payload.name, state.items)
    return favorite_out(favorite, svc.describe(favorite))


@router.post("/{favorite_id}/reorder", response_model=ReorderOut)
def reorder(favorite_id: str, svc: FavoriteService = Depends(get_service)):
    return svc.reorder(svc.get_favorite(favorite_id))


@router.delete("/{favorite_id}", status_code=204)
def delete_favorite(favorite_id: str, svc: FavoriteService = Depends(get_service)):
    svc.delete_favorite(favorite_id)
