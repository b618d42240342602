"""Product model (pricebook entry)."""
from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.sql import func
from pos_register.database import Base


class Product(Base):
    """Product model, keyed by UPC/product code."""

    __tablename__ = 'products'

    upc = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Product(upc='{self.upc}', name='{self.name}', price={self.price})>"
