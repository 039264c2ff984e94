# storefront/repos/order_repo.py
from typing import List, Sequence

from storefront.data.gateway import Gateway, Row


class OrderRepo:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    def create_order(self, row: Row) -> Row:
        return self.gateway.insert_one("orders", row)

    def add_items(self, rows: Sequence[Row]) -> List[Row]:
        return self.gateway.insert("order_items", rows)

    def list_for_client(self, client_id: str) -> List[Row]:
        return self.gateway.select(
            "orders",
            {"client_id": client_id},
            order=["created_at.desc"],
            embed=("order_items.products",),
        )

    def get_order(self, order_id: str, client_id: str):
        return self.gateway.first(
            "orders", {"id": order_id, "client_id": client_id}, embed=("order_items.products",)
        )
