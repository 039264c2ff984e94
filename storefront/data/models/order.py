from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from storefront.data.database import Base, new_id, utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    client_id = Column(String(36), nullable=False, index=True)
    address_id = Column(String(36), ForeignKey("delivery_addresses.id"), nullable=True)
    status = Column(String, nullable=False, default="pending")  # pending, confirmed, delivered, cancelled
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    pack_id = Column(String(36), ForeignKey("packs.id"), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
