"""Sale Item model."""
from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from shoppos.database import Base, BigIntegerPK


class SaleItem(Base):
    """Sale Item (one cart line). Name is a snapshot taken at sale time."""

    __tablename__ = 'sale_item'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_sale_item_quantity_positive'),
        CheckConstraint('price > 0', name='ck_sale_item_price_positive'),
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    sale_id = Column(BigIntegerPK, ForeignKey('sale.id', ondelete='CASCADE'), nullable=False, index=True)
    shop_product_id = Column(BigIntegerPK, ForeignKey('shop_product.id'), nullable=False)
    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='items')
    shop_product = relationship('ShopProduct')

    @property
    def subtotal(self):
        return self.quantity * self.price

    def __repr__(self):
        return f"<SaleItem(id={self.id}, name='{self.name}', quantity={self.quantity})>"
