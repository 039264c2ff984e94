# storefront/services/favorite_service.py
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError as SchemaError

from storefront.data.gateway import Gateway, Row
from storefront.domain.errors import (
    AuthRequiredError,
    InsufficientStockError,
    NotFoundError,
    NothingAvailableError,
    ValidationError,
)
from storefront.domain.models import (
    FavoriteEntry,
    FavoriteItemView,
    FavoriteOrder,
    Pack,
    ReorderResult,
)
from storefront.domain.pricing import LineGroup, group_lines
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.favorite_repo import FavoriteRepo
from storefront.utils.ids import is_valid_uuid, require_uuid
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

UNAVAILABLE = "No longer available"


class FavoriteService:
    """
    Favorite/Reorder Resolver.

    A favorite is an immutable snapshot of references and quantities, no
    names or prices. Everything is looked up again when it is displayed or
    reordered.
    """

    def __init__(self, gateway: Gateway, identity=None, cart=None):
        self.repo = FavoriteRepo(gateway)
        self.catalog = CatalogRepo(gateway)
        self.identity = identity
        self.cart = cart

    def _user_id(self, user_id: str | None) -> str:
        if user_id:
            return require_uuid(user_id, "user_id")
        user = self.identity.get_user() if self.identity is not None else None
        if user is None:
            raise AuthRequiredError()
        return user.id

    # ------------------------------------------------------------- snapshot

    def _pack_selections(self, group: LineGroup) -> Dict[str, List[Row]] | None:
        """Picks of a customized pack group, the units on top of the fixed lines."""
        row = self.catalog.get_pack(group.pack_id)
        if not row:
            return None
        pack = Pack.from_row(row)
        if not pack.is_customizable:
            return None

        fixed_units: Dict[str, int] = {}
        for line in pack.fixed_lines:
            fixed_units[line.product.id] = fixed_units.get(line.product.id, 0) + line.quantity

        selections: Dict[str, List[Row]] = {}
        for line in group.lines:
            extra = (line.pack_units or 1) - fixed_units.get(line.product.id, 0)
            if extra > 0 and line.product.category_id:
                selections.setdefault(line.product.category_id, []).append(
                    {"product_id": line.product.id, "quantity": extra}
                )
        # added with the fixed lines only
        return selections or None

    def snapshot(self, items: Sequence) -> List[Row]:
        groups, individual = group_lines(items)
        entries = [
            {"product_id": line.product.id, "pack_id": None, "quantity": line.quantity}
            for line in individual
        ]
        for group in groups:
            entry = {"product_id": None, "pack_id": group.pack_id, "quantity": group.quantity}
            selections = self._pack_selections(group)
            if selections is not None:
                entry["selections"] = selections
            entries.append(entry)
        return entries

    def save_favorite(self, user_id: str | None, name: str, current_cart_items: Sequence | None = None) -> FavoriteOrder:
        user_id = self._user_id(user_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Favorite name is required", field="name")

        if current_cart_items is None:
            if self.cart is None:
                raise ValidationError("Nothing to save", field="items")
            current_cart_items = self.cart.state.items

        entries = self.snapshot(current_cart_items)
        if not entries:
            raise ValidationError("Cannot save an empty cart as a favorite", field="items")

        row = self.repo.create(user_id, name, entries)
        logger.info(f"Favorite {row['id']} saved for {user_id} with {len(entries)} entries")
        return FavoriteOrder(**row)

    # ------------------------------------------------------------- queries

    def list_favorites(self, user_id: str | None = None) -> List[FavoriteOrder]:
        user_id = self._user_id(user_id)
        return [FavoriteOrder(**row) for row in self.repo.list_for_user(user_id)]

    def get_favorite(self, favorite_id: str, user_id: str | None = None) -> FavoriteOrder:
        user_id = self._user_id(user_id)
        require_uuid(favorite_id, "favorite_id")
        row = self.repo.get(favorite_id, user_id)
        if not row:
            raise NotFoundError("Favorite not found")
        return FavoriteOrder(**row)

    def describe(self, favorite: FavoriteOrder) -> List[FavoriteItemView]:
        views = []
        for raw in favorite.items:
            try:
                entry = FavoriteEntry.model_validate(raw)
            except SchemaError:
                continue
            row = self._resolve(entry)
            views.append(FavoriteItemView(
                product_id=entry.product_id,
                pack_id=entry.pack_id,
                quantity=entry.quantity,
                name=row["name"] if row else UNAVAILABLE,
                available=row is not None,
            ))
        return views

    def _resolve(self, entry: FavoriteEntry) -> Row | None:
        """Active product or pack behind an entry, None when it cannot be used."""
        if entry.pack_id:
            if not is_valid_uuid(entry.pack_id):
                return None
            row = self.catalog.get_pack(entry.pack_id, with_lines=False)
        elif entry.product_id:
            if not is_valid_uuid(entry.product_id):
                return None
            row = self.catalog.get_product(entry.product_id)
        else:
            return None
        if not row or not row.get("is_active", True):
            return None
        return row

    # ------------------------------------------------------------- commands

    def reorder(self, favorite: FavoriteOrder) -> ReorderResult:
        if self.cart is None:
            raise RuntimeError("FavoriteService needs a cart to reorder into")

        valid: List[tuple] = []
        skipped: List[str] = []
        for raw in favorite.items:
            try:
                entry = FavoriteEntry.model_validate(raw)
            except SchemaError:
                skipped.append("malformed entry")
                continue
            row = self._resolve(entry)
            if row is None:
                skipped.append(entry.pack_id or entry.product_id or "unknown entry")
                continue
            valid.append((entry, row["name"]))

        if not valid:
            logger.info(f"Reorder of favorite {favorite.id}: nothing available")
            raise NothingAvailableError(skipped=skipped)

        added = 0
        for entry, label in valid:
            try:
                self._add(entry)
                added += 1
            except (ValidationError, NotFoundError, InsufficientStockError) as e:
                logger.warning(f"Reorder of favorite {favorite.id}: skipped {label}: {e.message}")
                skipped.append(label)

        if not added:
            raise NothingAvailableError(skipped=skipped)

        if skipped:
            message = f"{added} of {added + len(skipped)} items were added to your cart"
        else:
            message = f"All {added} items were added to your cart"
        logger.info(f"Reorder of favorite {favorite.id}: {message}")
        return ReorderResult(added=added, skipped=tuple(skipped), message=message)

    def _add(self, entry: FavoriteEntry) -> None:
        if not entry.pack_id:
            self.cart.add_item(entry.product_id, entry.quantity)
            return

        selections: Any = None
        # an empty mapping from older snapshots means fixed lines only too
        if entry.selections:
            selections = {cid: [p.model_dump() for p in picks] for cid, picks in entry.selections.items()}
        self.cart.add_pack(entry.pack_id, selections, quantity=entry.quantity)

    def delete_favorite(self, favorite_id: str, user_id: str | None = None) -> None:
        user_id = self._user_id(user_id)
        require_uuid(favorite_id, "favorite_id")
        deleted = self.repo.delete(favorite_id, user_id)
        logger.info(f"Favorite {favorite_id} delete for {user_id}: {len(deleted)} rows")
