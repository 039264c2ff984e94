# storefront/repos/shared_order_repo.py
from datetime import datetime
from typing import List, Optional, Sequence

from storefront.data.gateway import Gateway, Row

ITEM_EMBED = ("products", "packs", "users")


class SharedOrderRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def create_order(self, row: Row) -> Row:
        return self.gateway.insert_one("shared_orders", row)

    def get_order(self, order_id: str) -> Optional[Row]:
        return self.gateway.first("shared_orders", {"id": order_id})

    def set_status(self, order_id: str, status: str) -> List[Row]:
        return self.gateway.update("shared_orders", {"status": status}, {"id": order_id})

    def add_participant(self, order_id: str, user_id: str, role: str) -> Row:
        return self.gateway.insert_one(
            "shared_order_participants",
            {"shared_order_id": order_id, "user_id": user_id, "role": role},
        )

    def get_participant(self, order_id: str, user_id: str) -> Optional[Row]:
        return self.gateway.first(
            "shared_order_participants", {"shared_order_id": order_id, "user_id": user_id}
        )

    def participants(self, order_id: str) -> List[Row]:
        return self.gateway.select(
            "shared_order_participants",
            {"shared_order_id": order_id},
            order=["created_at"],
            embed=("users",),
        )

    def items(self, order_id: str) -> List[Row]:
        return self.gateway.select(
            "shared_order_items", {"shared_order_id": order_id}, order=["created_at"], embed=ITEM_EMBED
        )

    def user_pack_items(self, order_id: str, user_id: str, pack_id: str) -> List[Row]:
        return self.gateway.select(
            "shared_order_items",
            {"shared_order_id": order_id, "user_id": user_id, "pack_id": pack_id},
        )

    def find_loose_item(self, order_id: str, user_id: str, product_id: str) -> Optional[Row]:
        return self.gateway.first(
            "shared_order_items",
            {"shared_order_id": order_id, "user_id": user_id, "product_id": product_id, "pack_id": None},
        )

    def insert_items(self, rows: Sequence[Row]) -> List[Row]:
        return self.gateway.insert("shared_order_items", rows)

    def set_item_quantity(self, item_id: str, quantity: int) -> List[Row]:
        return self.gateway.update("shared_order_items", {"quantity": quantity}, {"id": item_id})

    def set_pack_quantity(self, order_id: str, user_id: str, pack_id: str, quantity: int) -> List[Row]:
        return self.gateway.update(
            "shared_order_items",
            {"quantity": quantity},
            {"shared_order_id": order_id, "user_id": user_id, "pack_id": pack_id},
        )

    def get_item(self, item_id: str) -> Optional[Row]:
        return self.gateway.first("shared_order_items", {"id": item_id})

    def delete_item(self, item_id: str) -> List[Row]:
        return self.gateway.delete("shared_order_items", {"id": item_id})

    def delete_pack_items(self, order_id: str, user_id: str, pack_id: str) -> List[Row]:
        return self.gateway.delete(
            "shared_order_items",
            {"shared_order_id": order_id, "user_id": user_id, "pack_id": pack_id},
        )

    def delete_order(self, order_id: str) -> None:
        # children first, the backend does not cascade for us
        self.gateway.delete("shared_order_items", {"shared_order_id": order_id})
        self.gateway.delete("shared_order_participants", {"shared_order_id": order_id})
        self.gateway.delete("shared_orders", {"id": order_id})

    def expired_before(self, moment: datetime) -> List[Row]:
        return self.gateway.select(
            "shared_orders",
            {"status": "active", "expires_at__lt": moment},
            embed=("shared_order_items",),
        )
