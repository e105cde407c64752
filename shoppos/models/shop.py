"""Shop model."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shoppos.database import Base, BigIntegerPK


class Shop(Base):
    """Shop (point of sale location) belonging to a business."""

    __tablename__ = 'shop'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    business_id = Column(BigIntegerPK, ForeignKey('business.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    business = relationship('Business', back_populates='shops')
    products = relationship('ShopProduct', back_populates='shop', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Shop(id={self.id}, name='{self.name}')>"
