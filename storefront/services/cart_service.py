# storefront/services/cart_service.py
from decimal import Decimal
from typing import Callable, Dict, List, Mapping

from storefront.data.gateway import Gateway, Row
from storefront.domain.errors import (
    AuthRequiredError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.domain.models import CartLine, CartState, PackSelections
from storefront.domain.pricing import round_money
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.pack_service import PackService
from storefront.utils.ids import require_uuid
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CartListener = Callable[[CartState], None]


def _require_quantity(value, allow_non_positive: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Quantity must be a whole number", field="quantity")
    if value < 1 and not allow_non_positive:
        raise ValidationError("Quantity must be at least 1", field="quantity")
    return value


def _check_stock(product: Row | None, requested: int) -> None:
    if not product or not product.get("is_active", True):
        raise NotFoundError("Product not found or no longer available")
    available = product.get("stock") or 0
    if requested > available:
        raise InsufficientStockError(product["id"], requested, available)


class CartService:
    """
    Cart Aggregator, one instance per signed-in session.

    commands (add, update, remove) write through the gateway and finish
    with a full reload, query (state, compute_total) only reads the last
    loaded snapshot. Listeners get every new CartState.
    """

    def __init__(self, gateway: Gateway, identity, packs: PackService | None = None):
        self.repo = CartRepo(gateway)
        self.catalog = CatalogRepo(gateway)
        self.packs = packs or PackService(gateway)
        self.identity = identity
        self._state = CartState()
        self._listeners: List[CartListener] = []
        self._alive = True

    # query
    @property
    def state(self) -> CartState:
        return self._state

    def compute_total(self) -> Decimal:
        return self._state.total

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop publishing, reads still in flight are dropped."""
        self._alive = False
        self._listeners.clear()

    def _user_id(self) -> str:
        user = self.identity.get_user()
        if user is None:
            raise AuthRequiredError()
        return user.id

    def load_cart(self, user_id: str | None = None) -> CartState:
        user_id = require_uuid(user_id or self._user_id(), "user_id")
        rows = self.repo.list_lines(user_id)
        # a line whose product row is gone cannot be priced
        lines = [CartLine.from_row(r) for r in rows if r.get("products")]
        if len(lines) != len(rows):
            logger.warning(f"Cart of {user_id}: {len(rows) - len(lines)} lines reference missing products")
        state = CartState.from_lines(lines)

        if not self._alive:
            logger.info(f"Cart of {user_id} loaded after close, result dropped")
            return state

        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return state

    # commands
    def add_item(self, product_id: str, quantity: int = 1) -> CartState:
        user_id = self._user_id()
        require_uuid(product_id, "product_id")
        quantity = _require_quantity(quantity)

        product = self.catalog.get_product(product_id)
        existing = self.repo.find_loose_line(user_id, product_id)
        already = existing["quantity"] if existing else 0
        _check_stock(product, already + quantity)

        if existing:
            logger.info(
                f"Product {product_id} already in cart of {user_id}, "
                f"quantity {already} -> {already + quantity}"
            )
            self.repo.set_quantity(existing["id"], user_id, already + quantity)
        else:
            logger.info(f"Adding product {product_id} x{quantity} to cart of {user_id}")
            self.repo.insert_lines([{"user_id": user_id, "product_id": product_id, "quantity": quantity}])

        return self.load_cart(user_id)

    def add_pack(
        self,
        pack_id: str,
        selections: Mapping | PackSelections | None = None,
        quantity: int = 1,
    ) -> CartState:
        """Add `quantity` instances of a pack, stock is checked for all of them before any write."""
        user_id = self._user_id()
        quantity = _require_quantity(quantity)
        expansion = self.packs.expand(pack_id, selections)

        existing = self.repo.pack_lines(user_id, pack_id)
        if existing:
            composition = {r["product_id"]: r.get("pack_units") or 1 for r in existing}
            if composition != expansion.composition:
                raise ValidationError(
                    f"Pack {expansion.pack.name} is already in the cart with a different selection",
                    field="pack_id",
                )
            instances = existing[0]["quantity"] + quantity
        else:
            instances = quantity

        # every constituent is checked before anything is written
        for line in expansion.lines:
            _check_stock(line.product.model_dump(), line.units * instances)

        if existing:
            logger.info(f"Pack {pack_id} already in cart of {user_id}, quantity -> {instances}")
            self.repo.set_pack_quantity(user_id, pack_id, instances)
        else:
            unit_price = round_money(expansion.unit_price)
            logger.info(f"Adding pack {pack_id} x{instances} to cart of {user_id} as {len(expansion.lines)} lines")
            self.repo.insert_lines([
                {
                    "user_id": user_id,
                    "product_id": line.product.id,
                    "quantity": instances,
                    "pack_id": pack_id,
                    "pack_price": unit_price,
                    "pack_units": line.units,
                }
                for line in expansion.lines
            ])

        return self.load_cart(user_id)

    def update_quantity(
        self,
        line_id: str,
        new_quantity: int,
        is_pack: bool = False,
        pack_id: str | None = None,
    ) -> CartState:
        user_id = self._user_id()
        require_uuid(line_id, "line_id")
        new_quantity = _require_quantity(new_quantity, allow_non_positive=True)

        line = None
        if not is_pack or pack_id is None:
            line = self.repo.get_line(line_id, user_id)
            if not line:
                raise NotFoundError("Cart line not found")
            # a pack line is never changed alone, the whole group moves with it
            if line.get("pack_id"):
                is_pack, pack_id = True, line["pack_id"]

        if is_pack:
            require_uuid(pack_id, "pack_id")
            if new_quantity < 1:
                return self.remove_pack(pack_id)
            return self._set_pack_quantity(user_id, pack_id, new_quantity)

        if new_quantity < 1:
            return self.remove_item(line_id)

        if new_quantity > line["quantity"]:
            _check_stock(self.catalog.get_product(line["product_id"]), new_quantity)
        logger.info(f"Cart line {line_id} quantity {line['quantity']} -> {new_quantity}")
        self.repo.set_quantity(line_id, user_id, new_quantity)
        return self.load_cart(user_id)

    def _set_pack_quantity(self, user_id: str, pack_id: str, new_quantity: int) -> CartState:
        lines = self.repo.pack_lines(user_id, pack_id)
        if not lines:
            raise NotFoundError("Pack not found in cart")

        if new_quantity > lines[0]["quantity"]:
            products: Dict[str, Row] = self.catalog.get_products(r["product_id"] for r in lines)
            for r in lines:
                _check_stock(products.get(r["product_id"]), (r.get("pack_units") or 1) * new_quantity)

        logger.info(f"Pack {pack_id} in cart of {user_id}: quantity -> {new_quantity}")
        self.repo.set_pack_quantity(user_id, pack_id, new_quantity)
        return self.load_cart(user_id)

    def remove_item(self, line_id: str) -> CartState:
        user_id = self._user_id()
        require_uuid(line_id, "line_id")
        deleted = self.repo.delete_line(line_id, user_id)
        logger.info(f"Removed cart line {line_id} ({len(deleted)} rows)")
        return self.load_cart(user_id)

    def remove_pack(self, pack_id: str) -> CartState:
        user_id = self._user_id()
        require_uuid(pack_id, "pack_id")
        deleted = self.repo.delete_pack(user_id, pack_id)
        logger.info(f"Removed pack {pack_id} from cart of {user_id} ({len(deleted)} rows)")
        return self.load_cart(user_id)

    def clear(self) -> CartState:
        user_id = self._user_id()
        self.repo.clear(user_id)
        logger.info(f"Cleared cart of {user_id}")
        return self.load_cart(user_id)
