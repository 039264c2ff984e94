# every model is imported here so SQLAlchemy registers it on Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.catalog import (
    CategoryModel,
    ProductModel,
    PackModel,
    PackProductModel,
    PackCategoryModel,
)
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.shared_order import (
    SharedOrderModel,
    SharedOrderParticipantModel,
    SharedOrderItemModel,
)
from storefront.data.models.favorite_order import FavoriteOrderModel
from storefront.data.models.address import DeliveryAddressModel
from storefront.data.models.order import OrderModel, OrderItemModel

__all__ = [
    "UserModel",
    "CategoryModel",
    "ProductModel",
    "PackModel",
    "PackProductModel",
    "PackCategoryModel",
    "CartItemModel",
    "SharedOrderModel",
    "SharedOrderParticipantModel",
    "SharedOrderItemModel",
    "FavoriteOrderModel",
    "DeliveryAddressModel",
    "OrderModel",
    "OrderItemModel",
]
