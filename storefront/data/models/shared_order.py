# storefront/data/models/shared_order.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from storefront.data.database import Base, new_id, utcnow


class SharedOrderModel(Base):
    __tablename__ = "shared_orders"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String, nullable=False, default="active")  # active, completed
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SharedOrderParticipantModel(Base):
    __tablename__ = "shared_order_participants"

    id = Column(String(36), primary_key=True, default=new_id)
    shared_order_id = Column(
        String(36), ForeignKey("shared_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    role = Column(String, nullable=False, default="participant")  # owner, participant
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SharedOrderItemModel(Base):
    __tablename__ = "shared_order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    shared_order_id = Column(
        String(36), ForeignKey("shared_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    pack_id = Column(String(36), ForeignKey("packs.id"), nullable=True)
    pack_price = Column(Numeric(10, 2), nullable=True)
    pack_units = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
