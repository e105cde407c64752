"""Sale model."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shoppos.database import Base, BigIntegerPK


class Sale(Base):
    """Sale (completed point-of-sale transaction). Never updated after commit."""

    __tablename__ = 'sale'
    __table_args__ = (
        CheckConstraint('amount_paid >= 0', name='ck_sale_amount_paid_non_negative'),
        CheckConstraint('balance >= 0', name='ck_sale_balance_non_negative'),
        CheckConstraint('amount_paid + balance = total', name='ck_sale_balance_matches_total'),
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    shop_id = Column(BigIntegerPK, ForeignKey('shop.id'), nullable=False, index=True)
    sold_by_id = Column(BigIntegerPK, ForeignKey('app_user.id'), nullable=False)
    customer_id = Column(BigIntegerPK, ForeignKey('customer.id'), nullable=True)
    # Free-text label, never used to identify the customer
    customer_name = Column(String(200), nullable=True)
    total = Column(Integer, nullable=False)
    amount_paid = Column(Integer, nullable=False)
    balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    shop = relationship('Shop')
    sold_by = relationship('AppUser')
    customer = relationship('Customer', back_populates='sales')
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan',
                         order_by='SaleItem.id')

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total}, balance={self.balance})>"
