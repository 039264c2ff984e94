from sqlalchemy import Column, DateTime, String

from storefront.data.database import Base, utcnow


class UserModel(Base):
    """Profile row, keyed by the id issued by the auth service."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
