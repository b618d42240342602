"""Transaction item model."""
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from pos_register.database import Base


class TransactionItem(Base):
    """Transaction Item - one ledger line, with the product denormalized at sale time."""

    __tablename__ = 'transaction_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Integer, ForeignKey('transactions.id', ondelete='CASCADE'),
                            nullable=False, index=True)
    upc = Column(String(50), nullable=False)
    product_name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    # Relationships
    transaction = relationship('RegisterTransaction', back_populates='items')

    def __repr__(self):
        return f"<TransactionItem(id={self.id}, upc='{self.upc}', quantity={self.quantity})>"
