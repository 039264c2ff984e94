# storefront/data/models/catalog.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from storefront.data.database import Base, new_id, utcnow


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=True)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class PackModel(Base):
    __tablename__ = "packs"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # flat price for the whole pack
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    products_count = Column(Integer, nullable=False, default=0)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class PackProductModel(Base):
    __tablename__ = "pack_products"

    id = Column(String(36), primary_key=True, default=new_id)
    pack_id = Column(String(36), ForeignKey("packs.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    is_fixed = Column(Boolean, nullable=False, default=True)


class PackCategoryModel(Base):
    __tablename__ = "pack_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    pack_id = Column(String(36), ForeignKey("packs.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    # units the buyer has to pick from this category
    products_count = Column(Integer, nullable=False)
