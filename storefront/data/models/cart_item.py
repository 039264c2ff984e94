from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from storefront.data.database import Base, new_id, utcnow


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)

    # product units for loose lines, pack instances for pack lines
    quantity = Column(Integer, nullable=False)

    pack_id = Column(String(36), ForeignKey("packs.id"), nullable=True, index=True)
    pack_price = Column(Numeric(10, 2), nullable=True)
    pack_units = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
