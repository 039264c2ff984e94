from typing import List, Optional

from storefront.data.gateway import Gateway, Row


class AddressRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def list_for_user(self, user_id: str) -> List[Row]:
        return self.gateway.select(
            "delivery_addresses",
            {"user_id": user_id},
            order=["is_default.desc", "created_at.desc"],
        )

    def get(self, address_id: str, user_id: str) -> Optional[Row]:
        return self.gateway.first("delivery_addresses", {"id": address_id, "user_id": user_id})

    def create(self, row: Row) -> Row:
        return self.gateway.insert_one("delivery_addresses", row)

    def clear_default(self, user_id: str) -> List[Row]:
        return self.gateway.update(
            "delivery_addresses", {"is_default": False}, {"user_id": user_id, "is_default": True}
        )

    def mark_default(self, address_id: str, user_id: str) -> List[Row]:
        return self.gateway.update(
            "delivery_addresses", {"is_default": True}, {"id": address_id, "user_id": user_id}
        )

    def delete(self, address_id: str, user_id: str) -> List[Row]:
        return self.gateway.delete("delivery_addresses", {"id": address_id, "user_id": user_id})
