# storefront/repos/catalog_repo.py
from typing import Dict, Iterable, List, Optional

from storefront.data.gateway import Gateway, Row

PACK_EMBED = ("pack_products.products", "pack_categories.categories")


class CatalogRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def get_product(self, product_id: str) -> Optional[Row]:
        return self.gateway.first("products", {"id": product_id})

    def get_products(self, product_ids: Iterable[str]) -> Dict[str, Row]:
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return {}
        rows = self.gateway.select("products", {"id__in": ids})
        return {row["id"]: row for row in rows}

    def list_products(self, category_id: Optional[str] = None, active_only: bool = True) -> List[Row]:
        filters = {}
        if category_id:
            filters["category_id"] = category_id
        if active_only:
            filters["is_active"] = True
        return self.gateway.select("products", filters, order=["name"])

    def list_categories(self) -> List[Row]:
        return self.gateway.select("categories", order=["name"])

    def get_pack(self, pack_id: str, with_lines: bool = True) -> Optional[Row]:
        embed = PACK_EMBED if with_lines else ()
        return self.gateway.first("packs", {"id": pack_id}, embed=embed)

    def list_packs(self, active_only: bool = True) -> List[Row]:
        filters = {"is_active": True} if active_only else None
        return self.gateway.select("packs", filters, order=["name"])
