# storefront/data/sql_gateway.py
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data import models
from storefront.data.gateway import (
    Filters,
    Gateway,
    Row,
    embed_tree,
    parse_filter_key,
    parse_order,
    split_alias,
)
from storefront.domain.errors import RemoteOperationError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

TABLES = {
    model.__tablename__: model
    for model in (getattr(models, name) for name in models.__all__)
}

# table -> embed alias -> (cardinality, target table, column)
# "one": target.id == row[column], "many": target[column] == row.id
RELATIONS: Dict[str, Dict[str, tuple]] = {
    "products": {"categories": ("one", "categories", "category_id")},
    "packs": {
        "pack_products": ("many", "pack_products", "pack_id"),
        "pack_categories": ("many", "pack_categories", "pack_id"),
    },
    "pack_products": {"products": ("one", "products", "product_id")},
    "pack_categories": {"categories": ("one", "categories", "category_id")},
    "cart_items": {
        "products": ("one", "products", "product_id"),
        "packs": ("one", "packs", "pack_id"),
    },
    "shared_orders": {
        "creator": ("one", "users", "created_by"),
        "shared_order_participants": ("many", "shared_order_participants", "shared_order_id"),
        "shared_order_items": ("many", "shared_order_items", "shared_order_id"),
    },
    "shared_order_participants": {"users": ("one", "users", "user_id")},
    "shared_order_items": {
        "products": ("one", "products", "product_id"),
        "packs": ("one", "packs", "pack_id"),
        "users": ("one", "users", "user_id"),
    },
    "orders": {"order_items": ("many", "order_items", "order_id")},
    "order_items": {"products": ("one", "products", "product_id")},
}


class SqlGateway(Gateway):
    """
    Gateway over a SQLAlchemy session, for local development and tests.

    Each call commits on its own, multi-table writes are not atomic, the
    same as against the hosted backend.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------- helpers

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise RemoteOperationError(f"Unknown collection: {table}")

    def _column(self, model, column: str):
        if column not in model.__table__.columns:
            raise RemoteOperationError(f"Unknown column {model.__tablename__}.{column}")
        return getattr(model, column)

    def _conditions(self, model, filters: Filters) -> list:
        conditions = []
        for key, value in (filters or {}).items():
            column, op = parse_filter_key(key)
            col = self._column(model, column)
            if op == "eq":
                conditions.append(col.is_(None) if value is None else col == value)
            elif op == "neq":
                conditions.append(col.is_not(None) if value is None else col != value)
            elif op == "lt":
                conditions.append(col < value)
            elif op == "lte":
                conditions.append(col <= value)
            elif op == "gt":
                conditions.append(col > value)
            elif op == "gte":
                conditions.append(col >= value)
            elif op == "in":
                conditions.append(col.in_(list(value)))
            elif op == "is":
                conditions.append(col.is_(value))
        return conditions

    @staticmethod
    def _to_dict(obj) -> Row:
        return {attr.key: getattr(obj, attr.key) for attr in sa_inspect(obj).mapper.column_attrs}

    def _embed(self, table: str, row: Row, tree: Dict[str, dict]) -> Row:
        for name, subtree in tree.items():
            alias, target = split_alias(name)
            relation = RELATIONS.get(table, {}).get(alias)
            if relation is None or relation[1] != target:
                raise RemoteOperationError(f"No relation {name} on {table}")
            kind, target_table, column = relation
            target_model = self._model(target_table)

            if kind == "one":
                ref = row.get(column)
                obj = self.db.get(target_model, ref) if ref else None
                row[alias] = self._embed(target_table, self._to_dict(obj), subtree) if obj else None
            else:
                children = self.db.execute(
                    select(target_model).where(getattr(target_model, column) == row["id"])
                ).scalars().all()
                row[alias] = [self._embed(target_table, self._to_dict(c), subtree) for c in children]
        return row

    def _run(self, action: str, table: str, fn: Callable[[], List[Row]]) -> List[Row]:
        try:
            return fn()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} on {table} failed: {e}")
            raise RemoteOperationError(f"{action} on {table} failed") from e

    def _matching(self, model, filters: Filters) -> list:
        return self.db.execute(
            select(model).where(*self._conditions(model, filters))
        ).scalars().all()

    # ------------------------------------------------------------- contract

    def select(
        self,
        table: str,
        filters: Filters = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        embed: Iterable[str] = (),
    ) -> List[Row]:
        model = self._model(table)
        stmt = select(model).where(*self._conditions(model, filters))
        for column, descending in parse_order(order):
            col = self._column(model, column)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        tree = embed_tree(embed)

        def run():
            objs = self.db.execute(stmt).scalars().all()
            return [self._embed(table, self._to_dict(o), tree) for o in objs]

        return self._run("select", table, run)

    def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        model = self._model(table)
        for row in rows:
            for key in row:
                self._column(model, key)

        def run():
            objs = [model(**row) for row in rows]
            self.db.add_all(objs)
            self.db.commit()
            for o in objs:
                self.db.refresh(o)
            return [self._to_dict(o) for o in objs]

        return self._run("insert", table, run)

    def update(self, table: str, patch: Row, filters: Filters) -> List[Row]:
        if not filters:
            raise RemoteOperationError(f"Refusing to update {table} without filters")
        model = self._model(table)
        for key in patch:
            self._column(model, key)

        def run():
            objs = self._matching(model, filters)
            for o in objs:
                for key, value in patch.items():
                    setattr(o, key, value)
            self.db.commit()
            return [self._to_dict(o) for o in objs]

        return self._run("update", table, run)

    def delete(self, table: str, filters: Filters) -> List[Row]:
        if not filters:
            raise RemoteOperationError(f"Refusing to delete from {table} without filters")
        model = self._model(table)

        def run():
            objs = self._matching(model, filters)
            deleted = [self._to_dict(o) for o in objs]
            for o in objs:
                self.db.delete(o)
            self.db.commit()
            return deleted

        return self._run("delete", table, run)
