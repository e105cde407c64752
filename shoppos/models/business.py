"""Business model - the tenant that owns shops, customers and debts."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shoppos.database import Base, BigIntegerPK


class Business(Base):
    """Business (tenant)."""

    __tablename__ = 'business'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    shops = relationship('Shop', back_populates='business')
    users = relationship('AppUser', back_populates='business')

    def __repr__(self):
        return f"<Business(id={self.id}, name='{self.name}')>"
