from typing import Optional

from storefront.data.gateway import Gateway, Row


class UserRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def get_user(self, user_id: str) -> Optional[Row]:
        return self.gateway.first("users", {"id": user_id})

    def create_user(self, row: Row) -> Row:
        return self.gateway.insert_one("users", row)

    def update_user(self, user_id: str, patch: Row) -> Optional[Row]:
        rows = self.gateway.update("users", patch, {"id": user_id})
        return rows[0] if rows else None
