from sqlalchemy import JSON, Column, DateTime, String

from storefront.data.database import Base, new_id, utcnow


class FavoriteOrderModel(Base):
    __tablename__ = "favorite_orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String, nullable=False)
    # snapshot: [{"product_id", "pack_id", "quantity", "selections"}]
    items = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
