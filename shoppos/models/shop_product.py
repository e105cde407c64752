"""Shop Product model."""
from flask import current_app, has_app_context
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
from shoppos.database import Base, BigIntegerPK
from shoppos.exceptions import ValidationError

MISC_PRODUCT_NAME = '__POS_MISC__'


def misc_product_name() -> str:
    """Name of the per-shop placeholder product for goods sold outside stock."""
    if has_app_context():
        return current_app.config.get('POS_MISC_PRODUCT_NAME', MISC_PRODUCT_NAME)
    return MISC_PRODUCT_NAME


class ShopProduct(Base):
    """Product stocked in a single shop. Quantity is mutated only by conditional updates."""

    __tablename__ = 'shop_product'
    __table_args__ = (
        UniqueConstraint('shop_id', 'name', name='uq_shop_product_shop_name'),
        CheckConstraint('quantity >= 0', name='ck_shop_product_quantity_non_negative'),
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    shop_id = Column(BigIntegerPK, ForeignKey('shop.id'), nullable=False, index=True)
    business_id = Column(BigIntegerPK, ForeignKey('business.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    selling_price = Column(Integer, nullable=False, default=0)
    cost_price = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    shop = relationship('Shop', back_populates='products')

    @validates('name')
    def validate_name(self, key, name):
        # The placeholder row is only ever created by get_or_create_misc_product
        if name == misc_product_name():
            raise ValidationError(f'{name} is a reserved product name')
        return name

    def __repr__(self):
        return f"<ShopProduct(id={self.id}, name='{self.name}', quantity={self.quantity})>"
