from typing import List, Optional, Sequence

from storefront.data.gateway import Gateway, Row


class FavoriteRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def create(self, user_id: str, name: str, items: Sequence[Row]) -> Row:
        return self.gateway.insert_one(
            "favorite_orders", {"user_id": user_id, "name": name, "items": list(items)}
        )

    def list_for_user(self, user_id: str) -> List[Row]:
        return self.gateway.select("favorite_orders", {"user_id": user_id}, order=["created_at.desc"])

    def get(self, favorite_id: str, user_id: str) -> Optional[Row]:
        return self.gateway.first("favorite_orders", {"id": favorite_id, "user_id": user_id})

    def delete(self, favorite_id: str, user_id: str) -> List[Row]:
        return self.gateway.delete("favorite_orders", {"id": favorite_id, "user_id": user_id})
