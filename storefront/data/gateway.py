# storefront/data/gateway.py
"""
Remote Data Gateway contract.

Filters are dicts. A plain key means equality (None means IS NULL), a
`__op` suffix picks another operator: neq, lt, lte, gt, gte, in, is.
Order entries are "column" or "column.desc". Embeds are dotted paths with
an optional alias, e.g. "pack_products.products" or "creator:users".
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

OPERATORS = {"eq", "neq", "lt", "lte", "gt", "gte", "in", "is"}

Row = Dict[str, Any]
Filters = Optional[Dict[str, Any]]


def parse_filter_key(key: str) -> Tuple[str, str]:
    column, sep, op = key.partition("__")
    if not sep:
        return key, "eq"
    if op not in OPERATORS:
        raise ValueError(f"Unknown filter operator: {op}")
    return column, op


def parse_order(order: Optional[Sequence[str]]) -> List[Tuple[str, bool]]:
    parsed = []
    for entry in order or ():
        column, _, direction = entry.partition(".")
        parsed.append((column, direction == "desc"))
    return parsed


def embed_tree(embed: Iterable[str]) -> Dict[str, dict]:
    """["a.b", "a.c", "d"] -> {"a": {"b": {}, "c": {}}, "d": {}}"""
    tree: Dict[str, dict] = {}
    for path in embed or ():
        node = tree
        for part in path.split("."):
            node = node.setdefault(part, {})
    return tree


def split_alias(name: str) -> Tuple[str, str]:
    """"creator:users" -> ("creator", "users"), "products" -> ("products", "products")"""
    alias, sep, table = name.partition(":")
    return (alias, table) if sep else (name, name)


class Gateway(ABC):
    """Generic collection access. Every failure raises RemoteOperationError."""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Filters = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        embed: Iterable[str] = (),
    ) -> List[Row]:
        ...

    @abstractmethod
    def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        ...

    @abstractmethod
    def update(self, table: str, patch: Row, filters: Filters) -> List[Row]:
        ...

    @abstractmethod
    def delete(self, table: str, filters: Filters) -> List[Row]:
        ...

    def first(
        self,
        table: str,
        filters: Filters = None,
        order: Optional[Sequence[str]] = None,
        embed: Iterable[str] = (),
    ) -> Optional[Row]:
        rows = self.select(table, filters=filters, order=order, limit=1, embed=embed)
        return rows[0] if rows else None

    def insert_one(self, table: str, row: Row) -> Row:
        return self.insert(table, [row])[0]
