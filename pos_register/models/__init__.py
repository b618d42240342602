"""Models package - exports all SQLAlchemy models."""
from pos_register.models.product import Product
from pos_register.models.transaction import RegisterTransaction, TransactionStatus
from pos_register.models.transaction_item import TransactionItem

__all__ = [
    'Product',
    'RegisterTransaction', 'TransactionStatus',
    'TransactionItem',
]
