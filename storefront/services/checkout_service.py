# storefront/services/checkout_service.py
from typing import List

from storefront.data.gateway import Gateway
from storefront.domain.errors import (
    AuthRequiredError,
    ExpiredError,
    InactiveError,
    RemoteOperationError,
    ValidationError,
)
from storefront.domain.models import Order, PaymentOutcome
from storefront.domain.pricing import round_money
from storefront.repos.address_repo import AddressRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.payment_client import PaymentClient
from storefront.utils.ids import require_uuid
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

INDIVIDUAL = "individual"
GROUP = "group"


class CheckoutService:
    """
    Checkout for a single cart and for a shared order.

    1. checks the caller may pay (address ownership, order participation)
    2. creates and confirms the payment
    3. records the outcome (order rows, or the shared order completion)
    """

    def __init__(self, gateway: Gateway, identity, cart, shared_orders, payments: PaymentClient):
        self.addresses = AddressRepo(gateway)
        self.orders = OrderRepo(gateway)
        self.identity = identity
        self.cart = cart
        self.shared_orders = shared_orders
        self.payments = payments

    def _user_id(self) -> str:
        user = self.identity.get_user()
        if user is None:
            raise AuthRequiredError()
        return user.id

    def checkout_cart(self, address_id: str) -> Order:
        user_id = self._user_id()
        require_uuid(address_id, "address_id")
        if not self.addresses.get(address_id, user_id):
            raise ValidationError("Choose one of your delivery addresses", field="address_id")

        state = self.cart.load_cart(user_id)
        if state.is_empty:
            raise ValidationError("Your cart is empty", field="cart")

        outcome = self.payments.pay(state.total)
        logger.info(f"Cart of {user_id} paid with {outcome.intent_id}")

        try:
            order = self.orders.create_order({
                "client_id": user_id,
                "address_id": address_id,
                "status": "confirmed",
                "total": round_money(state.total),
            })
            rows = [
                {
                    "order_id": order["id"],
                    "product_id": line.product.id,
                    "quantity": line.quantity,
                    "price": line.product.price,
                }
                for line in state.individual
            ]
            for group in state.packs:
                unit_price = round_money(group.unit_price)
                rows.extend(
                    {
                        "order_id": order["id"],
                        "product_id": line.product.id,
                        "quantity": group.quantity,
                        "price": unit_price,
                        "pack_id": group.pack_id,
                    }
                    for line in group.lines
                )
            self.orders.add_items(rows)
        except RemoteOperationError:
            # the money is taken at this point, this needs a human
            logger.error(f"Payment {outcome.intent_id} succeeded but the order of {user_id} was not recorded")
            raise

        self.cart.clear()
        logger.info(f"Order {order['id']} created for {user_id}")
        return Order.from_row(self.orders.get_order(order["id"], user_id))

    def checkout_shared_order(self, order_id: str, mode: str = INDIVIDUAL) -> PaymentOutcome:
        user_id = self._user_id()
        if mode not in (INDIVIDUAL, GROUP):
            raise ValidationError("Payment mode must be individual or group", field="mode")

        view = self.shared_orders.load(order_id)
        if view.is_expired:
            raise ExpiredError("This shared order has expired")
        if not view.is_active:
            raise InactiveError("This shared order is no longer active")
        if not any(p.user_id == user_id for p in view.participants):
            raise PermissionError("Only participants can pay for this shared order")

        amount = view.individual_share if mode == INDIVIDUAL else view.total
        outcome = self.payments.pay(amount)
        logger.info(f"Shared order {order_id}: {mode} payment {outcome.intent_id} by {user_id}")

        # any successful payment closes the order
        self.shared_orders.complete(order_id)
        return outcome


class OrderHistoryService:
    def __init__(self, gateway: Gateway):
        self.repo = OrderRepo(gateway)

    def list_orders(self, user_id: str) -> List[Order]:
        require_uuid(user_id, "user_id")
        return [Order.from_row(row) for row in self.repo.list_for_client(user_id)]
