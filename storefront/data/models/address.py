from sqlalchemy import Boolean, Column, DateTime, String, Text

from storefront.data.database import Base, new_id, utcnow


class DeliveryAddressModel(Base):
    __tablename__ = "delivery_addresses"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String, nullable=False)
    recipient_name = Column(String, nullable=False)
    street = Column(String, nullable=False)
    apartment = Column(String, nullable=True)
    floor = Column(String, nullable=True)
    building_code = Column(String, nullable=True)
    city = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    instructions = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
