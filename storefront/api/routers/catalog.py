from typing import List

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_public_gateway
from storefront.data.gateway import Gateway
from storefront.domain.schemas import CategoryOut, CustomizationOut, PackOut, ProductOut
from storefront.services.catalog_service import CatalogService
from storefront.services.pack_service import PackService

router = APIRouter(tags=["catalog"])


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(gateway: Gateway = Depends(get_public_gateway)):
    return CatalogService(gateway).list_categories()


@router.get("/products", response_model=List[ProductOut])
def list_products(
    category_id: str | None = Query(None),
    gateway: Gateway = Depends(get_public_gateway),
):
    return CatalogService(gateway).list_products(category_id)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: str, gateway: Gateway = Depends(get_public_gateway)):
    return CatalogService(gateway).get_product(product_id)


@router.get("/packs", response_model=List[PackOut])
def list_packs(gateway: Gateway = Depends(get_public_gateway)):
    return CatalogService(gateway).list_packs()


@router.get("/packs/{pack_id}", response_model=CustomizationOut)
def get_pack(pack_id: str, gateway: Gateway = Depends(get_public_gateway)):
    return PackService(gateway).load_customization(pack_id)
