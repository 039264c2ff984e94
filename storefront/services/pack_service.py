# storefront/services/pack_service.py
from typing import Any, Dict, Mapping

from pydantic import ValidationError as SchemaError

from storefront.data.gateway import Gateway
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.models import (
    ExpandedLine,
    Pack,
    PackCustomization,
    PackExpansion,
    PackSelections,
    Product,
)
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.ids import is_valid_uuid, require_uuid
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def coerce_selections(selections: Any) -> PackSelections | None:
    """None stays None, plain mappings are validated into PackSelections."""
    if selections is None or isinstance(selections, PackSelections):
        return selections
    try:
        return PackSelections.model_validate(selections)
    except SchemaError as e:
        raise ValidationError(f"Invalid pack selection: {e.errors()[0]['msg']}", field="selections") from e


class PackService:
    """
    Pack Expansion Engine.

    Turns a pack definition plus the buyer's category picks into concrete
    lines, one per distinct product. Nothing is written here, persisting the
    lines is the caller's job.
    """

    def __init__(self, gateway: Gateway):
        self.catalog = CatalogRepo(gateway)

    def load_pack(self, pack_id: str) -> Pack:
        require_uuid(pack_id, "pack_id")
        row = self.catalog.get_pack(pack_id)
        if not row or not row.get("is_active", True):
            raise NotFoundError("Pack not found or no longer available")
        return Pack.from_row(row)

    def check_completeness(self, pack: Pack, selections: PackSelections) -> None:
        slots = {slot.category_id: slot for slot in pack.categories}

        unknown = [cid for cid in selections.categories() if cid not in slots]
        if unknown:
            raise ValidationError(
                f"Pack {pack.name} has no customizable category {', '.join(unknown)}",
                field="selections",
            )

        incomplete: Dict[str, str] = {}
        for category_id, slot in slots.items():
            chosen = selections.total_for(category_id)
            if chosen != slot.products_count:
                label = slot.name or category_id
                incomplete[category_id] = f"{label}: selected {chosen} of {slot.products_count}"

        if incomplete:
            raise ValidationError(
                "Incomplete pack selection: " + "; ".join(incomplete.values()),
                field="selections",
                incomplete_categories=incomplete,
            )

    def _selected_products(self, pack: Pack, selections: PackSelections) -> Dict[str, Product]:
        wanted = [p.product_id for cid in selections.categories() for p in selections.picks(cid)]
        for product_id in wanted:
            if not is_valid_uuid(product_id):
                raise ValidationError(f"Invalid product id {product_id}", field="selections")

        rows = self.catalog.get_products(wanted)
        products = {}
        for category_id in selections.categories():
            for pick in selections.picks(category_id):
                row = rows.get(pick.product_id)
                if not row or not row.get("is_active", True):
                    raise NotFoundError(f"Product {pick.product_id} is no longer available")
                product = Product(**row)
                if product.category_id != category_id:
                    raise ValidationError(
                        f"{product.name} does not belong to the selected category",
                        field="selections",
                    )
                products[product.id] = product
        return products

    def expand(self, pack_id: str, selections: Mapping | PackSelections | None = None) -> PackExpansion:
        pack = self.load_pack(pack_id)
        selections = coerce_selections(selections)

        units: Dict[str, int] = {}
        products: Dict[str, Product] = {}
        fixed: Dict[str, bool] = {}
        origin: Dict[str, str | None] = {}

        for line in pack.fixed_lines:
            if not line.product.is_active:
                raise NotFoundError(f"{line.product.name} in pack {pack.name} is no longer available")
            pid = line.product.id
            products[pid] = line.product
            units[pid] = units.get(pid, 0) + line.quantity
            fixed[pid] = True
            origin.setdefault(pid, None)

        # no selections at all means a plain pack made of its fixed lines
        if selections is not None:
            self.check_completeness(pack, selections)
            chosen = self._selected_products(pack, selections)
            for category_id in selections.categories():
                for pick in selections.picks(category_id):
                    pid = pick.product_id
                    products[pid] = chosen[pid]
                    units[pid] = units.get(pid, 0) + pick.quantity
                    fixed.setdefault(pid, False)
                    origin[pid] = origin.get(pid) or category_id

        if not units:
            raise ValidationError(f"Pack {pack.name} has no products", field="pack_id")

        lines = tuple(
            ExpandedLine(
                product=products[pid],
                units=units[pid],
                is_fixed=fixed[pid],
                category_id=origin[pid],
            )
            for pid in units
        )
        logger.info(f"Expanded pack {pack.id} into {len(lines)} lines")
        return PackExpansion(pack=pack, lines=lines)

    def load_customization(self, pack_id: str) -> PackCustomization:
        pack = self.load_pack(pack_id)
        available = {
            slot.category_id: tuple(
                Product(**row) for row in self.catalog.list_products(category_id=slot.category_id)
            )
            for slot in pack.categories
        }
        return PackCustomization(pack=pack, available=available)
