import os
from decimal import Decimal

import pytest

os.environ.setdefault("DATA_BACKEND", "sql")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data import models  # noqa: F401
from storefront.data.database import Base, new_id
from storefront.data.sql_gateway import SqlGateway
from storefront.domain.models import User
from storefront.services.cart_service import CartService


class FakeIdentity:
    """Stands in for the hosted auth service."""

    def __init__(self, user_id=None):
        self.user = User(id=user_id) if user_id else None
        self.signed_out = False

    def get_user(self):
        return self.user

    def sign_up(self, email, password, attributes=None):
        self.user = User(id=new_id(), email=email, user_metadata=attributes or {})
        return self.user

    def sign_in_with_password(self, email, password):
        raise NotImplementedError

    def sign_out(self):
        self.signed_out = True
        self.user = None


class Factory:
    def __init__(self, gateway):
        self.gateway = gateway

    def user(self, name="Ana"):
        row = {"id": new_id(), "name": name, "email": f"{name.lower()}@example.com"}
        return self.gateway.insert_one("users", row)["id"]

    def category(self, name="Fruit"):
        return self.gateway.insert_one("categories", {"name": name})["id"]

    def product(self, name="Apple", price="2.00", stock=10, category_id=None, is_active=True):
        row = {
            "name": name,
            "price": Decimal(price),
            "stock": stock,
            "category_id": category_id,
            "is_active": is_active,
        }
        return self.gateway.insert_one("products", row)["id"]

    def pack(self, name="Pack", price="9.00", fixed=(), slots=(), is_active=True):
        count = sum(q for _, q in fixed) + sum(c for _, c in slots)
        pack_id = self.gateway.insert_one(
            "packs", {"name": name, "price": Decimal(price), "products_count": count, "is_active": is_active}
        )["id"]
        for product_id, quantity in fixed:
            self.gateway.insert_one(
                "pack_products", {"pack_id": pack_id, "product_id": product_id, "quantity": quantity}
            )
        for category_id, products_count in slots:
            self.gateway.insert_one(
                "pack_categories",
                {"pack_id": pack_id, "category_id": category_id, "products_count": products_count},
            )
        return pack_id

    def deactivate(self, table, row_id):
        self.gateway.update(table, {"is_active": False}, {"id": row_id})

    def set_stock(self, product_id, stock):
        self.gateway.update("products", {"stock": stock}, {"id": product_id})

    def rows(self, table, **filters):
        return self.gateway.select(table, filters or None)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def gateway(db):
    return SqlGateway(db)


@pytest.fixture
def make(gateway):
    return Factory(gateway)


@pytest.fixture
def user_id(make):
    return make.user("Ana")


@pytest.fixture
def identity(user_id):
    return FakeIdentity(user_id)


@pytest.fixture
def cart(gateway, identity):
    return CartService(gateway, identity)


@pytest.fixture
def fake_identity():
    return FakeIdentity
