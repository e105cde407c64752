"""Debt model."""
from sqlalchemy import Column, BigInteger, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func, false
from shoppos.database import Base, BigIntegerPK


class Debt(Base):
    """Outstanding customer debt. Sales accrue into the single open (uncleared) row."""

    __tablename__ = 'debt'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    customer_id = Column(BigIntegerPK, ForeignKey('customer.id'), nullable=False, index=True)
    business_id = Column(BigIntegerPK, ForeignKey('business.id'), nullable=False, index=True)
    total_amount = Column(BigInteger, nullable=False)
    amount_paid = Column(BigInteger, nullable=False, default=0)
    balance = Column(BigInteger, nullable=False)
    is_cleared = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='debts')

    def __repr__(self):
        return f"<Debt(id={self.id}, customer_id={self.customer_id}, balance={self.balance})>"


# Predicate shared by the partial index and the upsert conflict target
OPEN_DEBT_PREDICATE = Debt.is_cleared == false()

Index(
    'uq_debt_open_per_customer',
    Debt.customer_id,
    unique=True,
    postgresql_where=OPEN_DEBT_PREDICATE,
    sqlite_where=OPEN_DEBT_PREDICATE,
)
