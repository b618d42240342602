"""Register transaction model."""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos_register.database import Base
import enum


class TransactionStatus(str, enum.Enum):
    """Lifecycle status of a register transaction."""
    ACTIVE = 'ACTIVE'
    SUSPENDED = 'SUSPENDED'
    VOIDED = 'VOIDED'
    COMPLETED = 'COMPLETED'

    @property
    def is_terminal(self):
        return self in (TransactionStatus.VOIDED, TransactionStatus.COMPLETED)


class RegisterTransaction(Base):
    """
    Register Transaction - persisted snapshot of one sale.

    Created on the first scanned item, re-synced on every ledger mutation,
    and left as an immutable record once voided or completed.
    """

    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(Enum(TransactionStatus, name='transaction_status'), nullable=False,
                    default=TransactionStatus.ACTIVE)
    transaction_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    # Payment (set on completion)
    payment_type = Column(String(20))
    amount_tendered = Column(Numeric(10, 2))
    change_amount = Column(Numeric(10, 2))
    completed_at = Column(DateTime(timezone=True))

    void_reason = Column(String(255))
    voided_at = Column(DateTime(timezone=True))
    suspended_at = Column(DateTime(timezone=True))
    resumed_at = Column(DateTime(timezone=True))

    # Relationships
    items = relationship('TransactionItem', back_populates='transaction',
                         cascade='all, delete-orphan', order_by='TransactionItem.id')

    def __repr__(self):
        return f"<RegisterTransaction(id={self.id}, total={self.total}, status={self.status.value})>"
