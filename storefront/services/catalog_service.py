from typing import List

from storefront.data.gateway import Gateway
from storefront.domain.errors import NotFoundError
from storefront.domain.models import Category, Pack, Product
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.ids import require_uuid


class CatalogService:
    def __init__(self, gateway: Gateway):
        self.repo = CatalogRepo(gateway)

    def list_categories(self) -> List[Category]:
        return [Category(**row) for row in self.repo.list_categories()]

    def list_products(self, category_id: str | None = None) -> List[Product]:
        if category_id:
            require_uuid(category_id, "category_id")
        return [Product(**row) for row in self.repo.list_products(category_id=category_id)]

    def get_product(self, product_id: str) -> Product:
        require_uuid(product_id, "product_id")
        row = self.repo.get_product(product_id)
        if not row or not row.get("is_active", True):
            raise NotFoundError("Product not found")
        return Product(**row)

    def list_packs(self) -> List[Pack]:
        return [Pack(**row) for row in self.repo.list_packs()]
