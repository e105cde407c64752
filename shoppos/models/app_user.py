"""Operator account. Sessions and passwords are handled outside this service."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shoppos.database import Base, BigIntegerPK


class AppUser(Base):
    """Operator that rings up sales."""

    __tablename__ = 'app_user'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    business_id = Column(BigIntegerPK, ForeignKey('business.id'), nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default='SALES')
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    business = relationship('Business', back_populates='users')

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', role='{self.role}')>"
