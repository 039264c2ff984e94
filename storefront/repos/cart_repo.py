# storefront/repos/cart_repo.py
from typing import List, Optional, Sequence

from storefront.data.gateway import Gateway, Row

LINE_EMBED = ("products", "packs")


class CartRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def list_lines(self, user_id: str) -> List[Row]:
        return self.gateway.select(
            "cart_items", {"user_id": user_id}, order=["created_at"], embed=LINE_EMBED
        )

    def get_line(self, line_id: str, user_id: str) -> Optional[Row]:
        return self.gateway.first("cart_items", {"id": line_id, "user_id": user_id})

    def find_loose_line(self, user_id: str, product_id: str) -> Optional[Row]:
        return self.gateway.first(
            "cart_items", {"user_id": user_id, "product_id": product_id, "pack_id": None}
        )

    def pack_lines(self, user_id: str, pack_id: str) -> List[Row]:
        return self.gateway.select("cart_items", {"user_id": user_id, "pack_id": pack_id})

    def insert_lines(self, rows: Sequence[Row]) -> List[Row]:
        return self.gateway.insert("cart_items", rows)

    def set_quantity(self, line_id: str, user_id: str, quantity: int) -> List[Row]:
        return self.gateway.update(
            "cart_items", {"quantity": quantity}, {"id": line_id, "user_id": user_id}
        )

    def set_pack_quantity(self, user_id: str, pack_id: str, quantity: int) -> List[Row]:
        return self.gateway.update(
            "cart_items", {"quantity": quantity}, {"user_id": user_id, "pack_id": pack_id}
        )

    def delete_line(self, line_id: str, user_id: str) -> List[Row]:
        return self.gateway.delete("cart_items", {"id": line_id, "user_id": user_id})

    def delete_pack(self, user_id: str, pack_id: str) -> List[Row]:
        return self.gateway.delete("cart_items", {"user_id": user_id, "pack_id": pack_id})

    def clear(self, user_id: str) -> List[Row]:
        return self.gateway.delete("cart_items", {"user_id": user_id})
