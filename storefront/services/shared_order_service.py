# storefront/services/shared_order_service.py
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Sequence

from storefront.data.gateway import Gateway, Row
from storefront.domain.errors import (
    AuthRequiredError,
    ExpiredError,
    InactiveError,
    InsufficientStockError,
    InvalidCodeError,
    NotFoundError,
    RemoteOperationError,
    ValidationError,
)
from storefront.domain.models import (
    PackSelections,
    Participant,
    SharedOrder,
    SharedOrderItem,
    SharedOrderView,
    utcnow,
)
from storefront.domain.pricing import (
    ZERO,
    compute_total,
    group_lines,
    per_user_totals,
    round_money,
    split_evenly,
)
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.shared_order_repo import SharedOrderRepo
from storefront.services.pack_service import PackService
from storefront.utils.ids import is_valid_uuid, require_uuid
from storefront.utils.logging import get_logger
from storefront.utils.settings import SHARED_ORDER_TTL_SECONDS

logger = get_logger(__name__)

OWNER = "owner"
PARTICIPANT = "participant"
ACTIVE = "active"
COMPLETED = "completed"


class SharedOrderService:
    """
    Shared Order Coordinator.

    -creating a group order out of the owner's cart (order, owner, item fan-out)
    -joining by code
    -participant contributions while the order is open
    -totals, equal share per participant, informational per-user subtotals

    The writes are separate round trips. When the fan-out breaks halfway the
    rows already written are deleted on a best-effort basis, whatever
    survives is picked up by the sweep task.
    """

    def __init__(
        self,
        gateway: Gateway,
        identity=None,
        cart=None,
        packs: PackService | None = None,
        ttl_seconds: int = SHARED_ORDER_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = SharedOrderRepo(gateway)
        self.catalog = CatalogRepo(gateway)
        self.packs = packs or PackService(gateway)
        self.identity = identity
        self.cart = cart
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    def _user_id(self, user_id: str | None) -> str:
        if user_id:
            return require_uuid(user_id, "user_id")
        user = self.identity.get_user() if self.identity is not None else None
        if user is None:
            raise AuthRequiredError()
        return user.id

    def _get_order(self, order_id: str) -> SharedOrder:
        require_uuid(order_id, "order_id")
        row = self.repo.get_order(order_id)
        if not row:
            raise NotFoundError("Shared order not found")
        return SharedOrder(**row)

    def _require_open(self, order_id: str, user_id: str) -> SharedOrder:
        order = self._get_order(order_id)
        if order.status != ACTIVE:
            raise InactiveError("This shared order is no longer active")
        if order.is_expired(self.clock()):
            raise ExpiredError("This shared order has expired")
        if not self.repo.get_participant(order_id, user_id):
            raise PermissionError("Only participants can change this shared order")
        return order

    # ------------------------------------------------------------- pricing

    @staticmethod
    def calculate_total(items: Iterable) -> Decimal:
        return compute_total(items)

    @staticmethod
    def calculate_individual_share(total, participants) -> Decimal:
        count = participants if isinstance(participants, int) else len(participants)
        if count < 1:
            return ZERO
        return split_evenly(total, count)

    @staticmethod
    def per_user_totals(items: Iterable) -> Dict[str, Decimal]:
        return per_user_totals(items)

    # ------------------------------------------------------------- queries

    def load(self, order_id: str) -> SharedOrderView:
        order = self._get_order(order_id)
        participants = tuple(Participant.from_row(r) for r in self.repo.participants(order_id))
        items = tuple(
            SharedOrderItem.from_row(r) for r in self.repo.items(order_id) if r.get("products")
        )
        total = self.calculate_total(items)
        now = self.clock()
        return SharedOrderView(
            order=order,
            participants=participants,
            items=items,
            total=total,
            individual_share=self.calculate_individual_share(total, participants),
            user_totals=self.per_user_totals(items),
            is_expired=order.is_expired(now),
            is_active=order.accepts_changes(now),
        )

    # ------------------------------------------------------------- commands

    def _fan_out(self, order_id: str, user_id: str, lines: Sequence) -> List[Row]:
        groups, individual = group_lines(lines)
        rows = [
            {
                "shared_order_id": order_id,
                "user_id": user_id,
                "product_id": line.product.id,
                "quantity": line.quantity,
            }
            for line in individual
        ]
        for group in groups:
            # split again here, the stored cart value may come from another grouping
            unit_price = round_money(group.unit_price)
            rows.extend(
                {
                    "shared_order_id": order_id,
                    "user_id": user_id,
                    "product_id": line.product.id,
                    "quantity": group.quantity,
                    "pack_id": group.pack_id,
                    "pack_price": unit_price,
                    "pack_units": line.pack_units or 1,
                }
                for line in group.lines
            )
        return rows

    def _compensate(self, order_id: str) -> None:
        try:
            self.repo.delete_order(order_id)
            logger.info(f"Rolled back partial shared order {order_id}")
        except RemoteOperationError as e:
            logger.error(f"Cleanup of shared order {order_id} failed, left for the sweep: {e}")

    def create_from_cart(self, user_id: str | None = None, name: str | None = None) -> SharedOrderView:
        if self.cart is None:
            raise RuntimeError("SharedOrderService needs a cart to create orders from")
        user_id = self._user_id(user_id)
        state = self.cart.load_cart(user_id)
        if state.is_empty:
            raise ValidationError("Cannot share an empty cart", field="cart")

        now = self.clock()
        order = self.repo.create_order({
            "created_by": user_id,
            "name": name,
            "status": ACTIVE,
            "expires_at": now + self.ttl,
        })
        order_id = order["id"]
        logger.info(f"Shared order {order_id} created by {user_id}")

        try:
            self.repo.add_participant(order_id, user_id, OWNER)
            rows = self._fan_out(order_id, user_id, state.items)
            self.repo.insert_items(rows)
        except RemoteOperationError as e:
            logger.error(f"Shared order {order_id} fan-out failed: {e}")
            self._compensate(order_id)
            raise RemoteOperationError("Could not create the shared order") from e

        logger.info(f"Shared order {order_id}: copied {len(rows)} items")
        return self.load(order_id)

    def join(self, order_id: str, user_id: str | None = None) -> Participant:
        user_id = self._user_id(user_id)
        if not is_valid_uuid(order_id):
            raise InvalidCodeError("Invalid shared order code")
        row = self.repo.get_order(order_id)
        if not row:
            raise InvalidCodeError("No shared order with this code")

        order = SharedOrder(**row)
        if order.is_expired(self.clock()):
            raise ExpiredError("This shared order has expired")
        if order.status != ACTIVE:
            raise InactiveError("This shared order is no longer active")

        existing = self.repo.get_participant(order_id, user_id)
        if existing:
            logger.info(f"User {user_id} already in shared order {order_id}")
            return Participant(**existing)

        created = self.repo.add_participant(order_id, user_id, PARTICIPANT)
        logger.info(f"User {user_id} joined shared order {order_id}")
        return Participant(**created)

    def add_item(
        self, order_id: str, product_id: str, quantity: int = 1, user_id: str | None = None
    ) -> SharedOrderView:
        user_id = self._user_id(user_id)
        self._require_open(order_id, user_id)
        require_uuid(product_id, "product_id")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity")

        product = self.catalog.get_product(product_id)
        if not product or not product.get("is_active", True):
            raise NotFoundError("Product not found or no longer available")
        existing = self.repo.find_loose_item(order_id, user_id, product_id)
        requested = (existing["quantity"] if existing else 0) + quantity
        if requested > (product.get("stock") or 0):
            raise InsufficientStockError(product_id, requested, product.get("stock") or 0)

        if existing:
            self.repo.set_item_quantity(existing["id"], requested)
        else:
            self.repo.insert_items([{
                "shared_order_id": order_id,
                "user_id": user_id,
                "product_id": product_id,
                "quantity": quantity,
            }])
        logger.info(f"User {user_id} added product {product_id} x{quantity} to shared order {order_id}")
        return self.load(order_id)

    def add_pack(
        self,
        order_id: str,
        pack_id: str,
        selections: Mapping | PackSelections | None = None,
        user_id: str | None = None,
    ) -> SharedOrderView:
        user_id = self._user_id(user_id)
        self._require_open(order_id, user_id)
        expansion = self.packs.expand(pack_id, selections)

        existing = self.repo.user_pack_items(order_id, user_id, pack_id)
        if existing:
            composition = {r["product_id"]: r.get("pack_units") or 1 for r in existing}
            if composition != expansion.composition:
                raise ValidationError(
                    f"Pack {expansion.pack.name} was already added with a different selection",
                    field="pack_id",
                )
            instances = existing[0]["quantity"] + 1
        else:
            instances = 1

        for line in expansion.lines:
            if line.units * instances > line.product.stock:
                raise InsufficientStockError(line.product.id, line.units * instances, line.product.stock)

        if existing:
            self.repo.set_pack_quantity(order_id, user_id, pack_id, instances)
        else:
            unit_price = round_money(expansion.unit_price)
            self.repo.insert_items([
                {
                    "shared_order_id": order_id,
                    "user_id": user_id,
                    "product_id": line.product.id,
                    "quantity": 1,
                    "pack_id": pack_id,
                    "pack_price": unit_price,
                    "pack_units": line.units,
                }
                for line in expansion.lines
            ])
        logger.info(f"User {user_id} added pack {pack_id} to shared order {order_id}")
        return self.load(order_id)

    def remove_item(self, order_id: str, item_id: str, user_id: str | None = None) -> SharedOrderView:
        user_id = self._user_id(user_id)
        order = self._require_open(order_id, user_id)
        require_uuid(item_id, "item_id")

        item = self.repo.get_item(item_id)
        if not item or item["shared_order_id"] != order_id:
            raise NotFoundError("Item not found in this shared order")
        if item["user_id"] != user_id and order.created_by != user_id:
            raise PermissionError("Only the owner can remove items added by someone else")

        if item.get("pack_id"):
            # a pack line never leaves alone, the whole instance of that participant goes
            deleted = self.repo.delete_pack_items(order_id, item["user_id"], item["pack_id"])
        else:
            deleted = self.repo.delete_item(item_id)
        logger.info(f"Removed item {item_id} from shared order {order_id} ({len(deleted)} rows)")
        return self.load(order_id)

    def complete(self, order_id: str) -> SharedOrder:
        order = self._get_order(order_id)
        if order.status != ACTIVE:
            raise InactiveError("Only active shared orders can be completed")
        if order.is_expired(self.clock()):
            raise ExpiredError("This shared order has expired")

        self.repo.set_status(order_id, COMPLETED)
        logger.info(f"Shared order {order_id} completed")
        return order.model_copy(update={"status": COMPLETED})
