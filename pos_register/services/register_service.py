"""
Register service - transaction lifecycle for one register terminal.

RegisterEngine owns the ledger of the transaction currently open and drives
pricing, persistence and the journal on every mutation:

    (idle, id=-1) --add_item--> ACTIVE --suspend--> SUSPENDED --resume--> ACTIVE
                                ACTIVE --void-----> VOIDED     (terminal)
                                ACTIVE --complete-> COMPLETED  (terminal)

One engine per terminal; engines are not thread-safe.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from pos_register.exceptions import (
    ValidationError, NotFoundError, InvalidStateError, InsufficientPaymentError
)
from pos_register.models import TransactionStatus
from pos_register.services.discount_service import DiscountResolver, DiscountResult
from pos_register.services.journal_service import JournalReplicator
from pos_register.services.ledger_service import Ledger, LineItem, ProductInfo, validate_quantity
from pos_register.services.persistence_gateway import TransactionGateway
from pos_register.services.pricing_service import Totals, EMPTY_TOTALS, compute_totals, to_money

logger = logging.getLogger(__name__)

NO_TRANSACTION = -1
DEFAULT_VOID_REASON = 'Voided by cashier'
PAYMENT_TYPES = ('CASH', 'CREDIT', 'DEBIT')


@dataclass(frozen=True)
class TransactionSnapshot:
    """Read-only view of a transaction for the presentation layer."""
    id: int
    status: Optional[TransactionStatus]
    lines: Tuple[LineItem, ...] = ()
    totals: Totals = EMPTY_TOTALS
    discount: Optional[DiscountResult] = None
    payment_type: Optional[str] = None
    tendered: Optional[Decimal] = None
    change: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    resumed: bool = False

    @property
    def applied_discounts(self) -> List[str]:
        return list(self.discount.applied_discounts) if self.discount else []

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'status': self.status.value if self.status else None,
            'resumed': self.resumed,
            'lines': [
                {
                    'code': line.product.code,
                    'name': line.product.name,
                    'unit_price': str(to_money(line.product.unit_price)),
                    'quantity': line.quantity,
                    'total': str(to_money(line.total)),
                }
                for line in self.lines
            ],
            'subtotal': str(self.totals.subtotal),
            'discount': str(self.totals.discount),
            'tax': str(self.totals.tax),
            'total': str(self.totals.total),
            'discount_status': self.discount.status.value if self.discount else None,
            'discount_message': self.discount.message if self.discount else None,
            'applied_discounts': self.applied_discounts,
            'payment_type': self.payment_type,
            'tendered': str(self.tendered) if self.tendered is not None else None,
            'change': str(self.change) if self.change is not None else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }


def _parse_amount(value, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f'{name} must be a number')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{name} must be a number, got {value!r}')
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f'{name} must be a non-negative amount')
    return to_money(amount)


class RegisterEngine:
    """Transaction state machine for one terminal."""

    def __init__(
        self,
        gateway: TransactionGateway,
        discount_resolver: DiscountResolver,
        journal: JournalReplicator,
        catalog=None,
    ):
        self.gateway = gateway
        self.catalog = catalog if catalog is not None else gateway
        self.discount_resolver = discount_resolver
        self.journal = journal
        self.ledger = Ledger()
        self._reset_state()

    def _reset_state(self) -> None:
        self.ledger.clear()
        self._id = NO_TRANSACTION
        self._status: Optional[TransactionStatus] = None
        self._discount: Optional[DiscountResult] = None
        self._totals: Totals = EMPTY_TOTALS
        self._created_at: Optional[datetime] = None
        self._resumed = False

    # ==================== Queries ====================

    @property
    def transaction_id(self) -> int:
        return self._id

    @property
    def status(self) -> Optional[TransactionStatus]:
        return self._status

    @property
    def totals(self) -> Totals:
        return self._totals.rounded()

    @property
    def discount(self) -> Optional[DiscountResult]:
        return self._discount

    def snapshot(self) -> TransactionSnapshot:
        return self._build_snapshot(self._status)

    def list_suspended(self) -> List[int]:
        return self.gateway.list_suspended()

    def history(self, include_voided: bool = True, include_suspended: bool = True):
        return self.gateway.transaction_history(include_voided, include_suspended)

    # ==================== Ledger mutations ====================

    def add_item(self, code: str, qty: int = 1) -> TransactionSnapshot:
        """Scan qty of code; the first item persists a new ACTIVE transaction."""
        if code is not None and not isinstance(code, str):
            raise ValidationError(f'Product code must be a string, got {code!r}')
        code = (code or '').strip()
        if not code:
            raise ValidationError('Product code is required')
        validate_quantity(qty)
        self._require_mutable()

        product: Optional[ProductInfo] = self.catalog.get_product_by_code(code)
        if product is None:
            raise NotFoundError(f'Product not found with code: {code}')

        if self._id == NO_TRANSACTION:
            self._start_transaction()

        self.ledger.add(product, qty)
        self.journal.log_item(product.code, product.name, product.unit_price)
        self._recalculate()
        self._sync()
        logger.info(f"[REGISTER] #{self._id} add {code} x{qty}")
        return self.snapshot()

    def void_item(self, index: int) -> TransactionSnapshot:
        """Remove the line at index. IndexError if out of range."""
        self._require_mutable()
        line = self.ledger.remove(index)
        self.journal.log_void_item(line.code, line.product.name, line.quantity)
        self._recalculate()
        self._sync()
        logger.info(f"[REGISTER] #{self._id} void line {index} ({line.code})")
        return self.snapshot()

    def change_quantity(self, index: int, new_qty: int) -> TransactionSnapshot:
        validate_quantity(new_qty)
        self._require_mutable()
        old_qty = self.ledger.change_quantity(index, new_qty)
        line = self.ledger[index]
        self.journal.log_quantity_change(line.code, line.product.name, old_qty, new_qty)
        self.journal.log_item(line.code, line.product.name, line.product.unit_price)
        self._recalculate()
        self._sync()
        return self.snapshot()

    # ==================== Lifecycle ====================

    def suspend(self) -> TransactionSnapshot:
        """Park the current transaction in storage and clear the register."""
        self._require_active('suspend')
        if self.ledger.is_empty:
            raise ValidationError('No items to suspend')

        self._sync()
        self.journal.log_suspend_transaction(self._id)
        self.gateway.suspend_transaction(self._id)

        result = self._build_snapshot(TransactionStatus.SUSPENDED)
        logger.info(f"[REGISTER] #{self._id} suspended")
        self._reset_state()
        return result

    def resume(self, transaction_id: int) -> TransactionSnapshot:
        """Load a suspended transaction into this register."""
        if self._id != NO_TRANSACTION:
            raise InvalidStateError(
                f'Transaction #{self._id} is in progress; suspend or void it before resuming another'
            )

        status = self.gateway.get_status(transaction_id)
        if status != TransactionStatus.SUSPENDED:
            raise InvalidStateError(f'Transaction #{transaction_id} is {status.value} and cannot be resumed')

        data = self.gateway.load_suspended(transaction_id)
        self.ledger.replace(data.items)
        self._id = data.id
        self._status = TransactionStatus.ACTIVE
        self._resumed = True
        self._created_at = data.created_at

        self.journal.log_resume_transaction(self._id)
        self._recalculate()
        self.gateway.update_totals(self._id, self._totals.subtotal, self._totals.tax, self._totals.total)
        logger.info(f"[REGISTER] #{self._id} resumed with {len(self.ledger)} lines")
        return self.snapshot()

    def void(self, reason: str = DEFAULT_VOID_REASON, transaction_id: Optional[int] = None) -> TransactionSnapshot:
        """
        Void the current transaction, or a suspended one by id.

        Voided transactions stay in storage as a historical record.
        """
        reason = (reason or DEFAULT_VOID_REASON).strip()

        if transaction_id is None or transaction_id == self._id:
            self._require_active('void')
            self.journal.log_void_transaction(self._id, reason)
            self.gateway.void_transaction(self._id, reason)
            result = self._build_snapshot(TransactionStatus.VOIDED)
            logger.info(f"[REGISTER] #{self._id} voided: {reason}")
            self._reset_state()
            return result

        status = self.gateway.get_status(transaction_id)
        if status != TransactionStatus.SUSPENDED:
            raise InvalidStateError(f'Transaction #{transaction_id} is {status.value} and cannot be voided here')
        self.journal.log_void_transaction(transaction_id, reason)
        self.gateway.void_transaction(transaction_id, reason)
        logger.info(f"[REGISTER] suspended #{transaction_id} voided: {reason}")
        return TransactionSnapshot(id=transaction_id, status=TransactionStatus.VOIDED)

    def complete(self, payment_type: str, tendered) -> TransactionSnapshot:
        """
        Take payment and close the transaction.

        Raises:
            InsufficientPaymentError: tendered < total; nothing is changed or persisted
        """
        self._require_active('complete')
        if self.ledger.is_empty:
            raise ValidationError('No items in transaction')
        payment_type = (payment_type or '').strip().upper()
        if not payment_type:
            raise ValidationError('Payment type is required')
        if payment_type not in PAYMENT_TYPES:
            raise ValidationError(f'Invalid payment type: {payment_type}')
        tendered = _parse_amount(tendered, 'Tendered amount')

        if self._discount is None:
            self._recalculate()
        totals = self._totals.rounded()
        if tendered < totals.total:
            raise InsufficientPaymentError(totals.total, tendered)
        change = totals.change_for(tendered)

        self._sync()
        self.journal.log_subtotal(totals.subtotal)
        self.journal.log_discount(totals.discount, self._discount.applied_discounts if self._discount else [])
        self.journal.log_tax(totals.tax)
        self.journal.log_total(totals.total)
        self.journal.log_payment(payment_type, tendered, change)
        self.journal.log_transaction_complete(self._id)
        self.gateway.update_payment(self._id, payment_type, tendered, change)

        result = self._build_snapshot(
            TransactionStatus.COMPLETED,
            payment_type=payment_type,
            tendered=tendered,
            change=change,
            completed_at=datetime.now(),
        )
        logger.info(f"[REGISTER] #{self._id} completed {payment_type} total={totals.total} change={change}")
        self._reset_state()
        return result

    def reset(self) -> None:
        """Drop in-memory state without touching storage."""
        if self._id != NO_TRANSACTION:
            logger.warning(f"[REGISTER] #{self._id} discarded from memory without void/suspend")
        self._reset_state()

    def close(self) -> None:
        self.journal.close()

    # ==================== Internals ====================

    def _start_transaction(self) -> None:
        self._id = self.gateway.create_transaction(0, 0, 0)
        self._status = TransactionStatus.ACTIVE
        self._created_at = datetime.now()
        self.journal.log_transaction_start(self._id)
        logger.info(f"[REGISTER] Transaction #{self._id} started")

    def _require_mutable(self) -> None:
        if self._status is not None and self._status != TransactionStatus.ACTIVE:
            raise InvalidStateError(f'Transaction #{self._id} is {self._status.value}')

    def _require_active(self, action: str) -> None:
        if self._id == NO_TRANSACTION:
            raise InvalidStateError(f'No transaction to {action}')
        self._require_mutable()

    def _recalculate(self) -> None:
        self._discount = self.discount_resolver.resolve(self.ledger.lines)
        self._totals = compute_totals(self.ledger.lines, self._discount)

    def _sync(self) -> None:
        """Write the ledger and totals through to storage."""
        if self._id == NO_TRANSACTION:
            return
        self.gateway.replace_items(self._id, self.ledger.lines)
        self.gateway.update_totals(self._id, self._totals.subtotal, self._totals.tax, self._totals.total)

    def _build_snapshot(self, status: TransactionStatus, **payment) -> TransactionSnapshot:
        return TransactionSnapshot(
            id=self._id,
            status=status,
            lines=tuple(LineItem(line.product, line.quantity) for line in self.ledger),
            totals=self._totals.rounded(),
            discount=self._discount,
            created_at=self._created_at,
            resumed=self._resumed,
            **payment,
        )
