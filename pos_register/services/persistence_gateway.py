"""
Persistence gateway - SQLAlchemy storage for products, transactions and items.

Each write commits immediately. Storage failures are rolled back and raised
as PersistenceError; nothing is retried here.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from pos_register.exceptions import NotFoundError, PersistenceError, InvalidStateError
from pos_register.models import Product, RegisterTransaction, TransactionItem, TransactionStatus
from pos_register.services.ledger_service import LineItem, ProductInfo
from pos_register.services.pricing_service import to_money

logger = logging.getLogger(__name__)


@dataclass
class ResumedTransaction:
    """Typed payload loaded for a suspended transaction."""
    id: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    items: List[LineItem] = field(default_factory=list)
    created_at: Optional[datetime] = None


class TransactionGateway:
    """Storage operations consumed by the register engine."""

    def __init__(self, session):
        self.session = session

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[DB] {operation} failed: {e}")
            raise PersistenceError(f'Database error during {operation}: {e}')

    def _get(self, transaction_id: int) -> RegisterTransaction:
        trans = self.session.get(RegisterTransaction, transaction_id)
        if trans is None:
            raise NotFoundError(f'Transaction #{transaction_id} not found')
        return trans

    # ==================== Catalog ====================

    def get_product_by_code(self, code: str) -> Optional[ProductInfo]:
        with self._guard('product lookup'):
            product = self.session.get(Product, code)
            if product is None:
                return None
            return ProductInfo(code=product.upc, name=product.name, unit_price=Decimal(product.price))

    def load_pricebook(self, products: Iterable[ProductInfo]) -> int:
        """Replace the products table with the given entries."""
        with self._guard('pricebook load'):
            self.session.query(Product).delete()
            count = 0
            for info in products:
                self.session.add(Product(upc=info.code, name=info.name, price=to_money(info.unit_price)))
                count += 1
            self.session.commit()
            return count

    # ==================== Transactions ====================

    def create_transaction(self, subtotal, tax, total) -> int:
        with self._guard('create transaction'):
            trans = RegisterTransaction(
                status=TransactionStatus.ACTIVE,
                subtotal=to_money(subtotal),
                tax=to_money(tax),
                total=to_money(total),
            )
            self.session.add(trans)
            self.session.commit()
            return trans.id

    def get_status(self, transaction_id: int) -> TransactionStatus:
        with self._guard('status lookup'):
            return self._get(transaction_id).status

    def clear_items(self, transaction_id: int) -> None:
        with self._guard('clear items'):
            self.session.query(TransactionItem).filter(
                TransactionItem.transaction_id == transaction_id
            ).delete(synchronize_session=False)
            self.session.commit()

    def save_item(self, transaction_id: int, line: LineItem) -> None:
        with self._guard('save item'):
            self.session.add(TransactionItem(
                transaction_id=transaction_id,
                upc=line.product.code,
                product_name=line.product.name,
                price=to_money(line.product.unit_price),
                quantity=line.quantity,
                total=to_money(line.total),
            ))
            self.session.commit()

    def replace_items(self, transaction_id: int, lines: Iterable[LineItem]) -> None:
        """clear_items + save_item for every line, in one commit."""
        with self._guard('save items'):
            self.session.query(TransactionItem).filter(
                TransactionItem.transaction_id == transaction_id
            ).delete(synchronize_session=False)
            for line in lines:
                self.session.add(TransactionItem(
                    transaction_id=transaction_id,
                    upc=line.product.code,
                    product_name=line.product.name,
                    price=to_money(line.product.unit_price),
                    quantity=line.quantity,
                    total=to_money(line.total),
                ))
            self.session.commit()

    def update_totals(self, transaction_id: int, subtotal, tax, total) -> None:
        with self._guard('update totals'):
            trans = self._get(transaction_id)
            trans.subtotal = to_money(subtotal)
            trans.tax = to_money(tax)
            trans.total = to_money(total)
            self.session.commit()

    def update_payment(self, transaction_id: int, payment_type: str, tendered, change) -> None:
        """Store payment fields and mark the transaction COMPLETED."""
        with self._guard('update payment'):
            trans = self._get(transaction_id)
            trans.payment_type = payment_type
            trans.amount_tendered = to_money(tendered)
            trans.change_amount = to_money(change)
            trans.status = TransactionStatus.COMPLETED
            trans.completed_at = datetime.now()
            self.session.commit()

    def void_transaction(self, transaction_id: int, reason: str) -> None:
        with self._guard('void transaction'):
            trans = self._get(transaction_id)
            trans.status = TransactionStatus.VOIDED
            trans.void_reason = reason
            trans.voided_at = datetime.now()
            self.session.commit()

    def suspend_transaction(self, transaction_id: int) -> None:
        with self._guard('suspend transaction'):
            trans = self._get(transaction_id)
            trans.status = TransactionStatus.SUSPENDED
            trans.suspended_at = datetime.now()
            self.session.commit()

    def list_suspended(self) -> List[int]:
        """Ids of suspended transactions, newest first."""
        with self._guard('list suspended'):
            rows = self.session.query(RegisterTransaction.id).filter(
                RegisterTransaction.status == TransactionStatus.SUSPENDED
            ).order_by(RegisterTransaction.id.desc()).all()
            return [row.id for row in rows]

    def load_suspended(self, transaction_id: int) -> ResumedTransaction:
        """Mark a suspended transaction ACTIVE again and return its items and totals."""
        with self._guard('resume transaction'):
            trans = self._get(transaction_id)
            if trans.status != TransactionStatus.SUSPENDED:
                raise InvalidStateError(
                    f'Transaction #{transaction_id} is {trans.status.value}, not SUSPENDED'
                )
            trans.status = TransactionStatus.ACTIVE
            trans.resumed_at = datetime.now()
            items = [
                LineItem(
                    product=ProductInfo(code=item.upc, name=item.product_name, unit_price=Decimal(item.price)),
                    quantity=item.quantity,
                )
                for item in trans.items
            ]
            result = ResumedTransaction(
                id=trans.id,
                subtotal=Decimal(trans.subtotal),
                tax=Decimal(trans.tax),
                total=Decimal(trans.total),
                items=items,
                created_at=trans.transaction_date,
            )
            self.session.commit()
            return result

    # ==================== Reporting ====================

    def get_transaction(self, transaction_id: int) -> Dict[str, Any]:
        with self._guard('transaction lookup'):
            return _transaction_to_dict(self._get(transaction_id))

    def transaction_history(self, include_voided: bool = True, include_suspended: bool = True) -> List[Dict[str, Any]]:
        with self._guard('transaction history'):
            query = self.session.query(RegisterTransaction)
            if not include_voided:
                query = query.filter(RegisterTransaction.status != TransactionStatus.VOIDED)
            if not include_suspended:
                query = query.filter(RegisterTransaction.status != TransactionStatus.SUSPENDED)
            query = query.order_by(RegisterTransaction.id.desc())
            return [_transaction_to_dict(trans) for trans in query.all()]


def _transaction_to_dict(trans: RegisterTransaction) -> Dict[str, Any]:
    return {
        'id': trans.id,
        'status': trans.status.value,
        'date': trans.transaction_date,
        'subtotal': trans.subtotal,
        'tax': trans.tax,
        'total': trans.total,
        'payment_type': trans.payment_type,
        'amount_tendered': trans.amount_tendered,
        'change_amount': trans.change_amount,
        'void_reason': trans.void_reason,
        'completed_at': trans.completed_at,
        'resumed': trans.resumed_at is not None,
    }
