"""Customer model."""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shoppos.database import Base, BigIntegerPK


class Customer(Base):
    """Customer (debtor when a sale is part-paid)."""

    __tablename__ = 'customer'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    business_id = Column(BigIntegerPK, ForeignKey('business.id'), nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='customer')
    debts = relationship('Debt', back_populates='customer')

    def __repr__(self):
        return f"<Customer(id={self.id}, full_name='{self.full_name}')>"
