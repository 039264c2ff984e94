# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends

from storefront.api.deps import get_current_user, get_gateway, get_identity, get_token
from storefront.data.gateway import Gateway
from storefront.domain.models import User
from storefront.domain.schemas import CheckoutIn, OrderOut, PaymentOut, SharedCheckoutIn
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService, OrderHistoryService
from storefront.services.identity import IdentityClient
from storefront.services.payment_client import PaymentClient
from storefront.services.shared_order_service import SharedOrderService

router = APIRouter(tags=["orders"])


def get_payments(token: str = Depends(get_token)) -> PaymentClient:
    return PaymentClient(access_token=token)


def get_service(
    gateway: Gateway = Depends(get_gateway),
    identity: IdentityClient = Depends(get_identity),
    payments: PaymentClient = Depends(get_payments),
    user: User = Depends(get_current_user),
) -> CheckoutService:
    cart = CartService(gateway, identity)
    shared = SharedOrderService(gateway, identity, cart=cart)
    return CheckoutService(gateway, identity, cart, shared, payments)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout_cart(payload: CheckoutIn, svc: CheckoutService = Depends(get_service)):
    return svc.checkout_cart(payload.address_id)


@router.post("/shared-orders/{order_id}/checkout", response_model=PaymentOut)
def checkout_shared_order(
    order_id: str,
    payload: SharedCheckoutIn,
    svc: CheckoutService = Depends(get_service),
):
    return svc.checkout_shared_order(order_id, payload.mode)


@router.get("/orders", response_model=List[OrderOut])
def list_orders(user: User = Depends(get_current_user), gateway: Gateway = Depends(get_gateway)):
    return OrderHistoryService(gateway).list_orders(user.id)
