"""
Virtual journal - audit trail written locally and mirrored to a remote collector.

The local file is the system of record. Every line written locally is also
sent to the collector when connected; remote delivery is best-effort and
at-most-once.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from pos_register.services.journal_client import JournalClientConfig, JournalSocketClient

logger = logging.getLogger(__name__)

RULE = '=' * 60
THIN_RULE = '-' * 60
LABEL_WIDTH = 50
NAME_WIDTH = 30
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def money(value) -> str:
    """Format an amount like 1,234.50."""
    return f"{Decimal(str(value)):,.2f}"


def truncate(text: str, width: int = NAME_WIDTH) -> str:
    if len(text) <= width:
        return text
    return text[:width - 3] + '...'


def amount_line(label: str, value, sign: str = '') -> str:
    return f"{label:>{LABEL_WIDTH}} {sign}${money(value)}"


class JournalReplicator:
    """
    Writes audit lines to a local log and mirrors them to the journal collector.

    The remote connection is attempted once, at construction, with the retry
    budget from the client config. If that fails, the replicator stays local-only
    for the rest of the process.
    """

    def __init__(
        self,
        path: str,
        client_config: Optional[JournalClientConfig] = None,
        client: Optional[JournalSocketClient] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.path = path
        self._clock = clock
        self._writer = None
        try:
            self._writer = open(path, 'a', encoding='utf-8')
        except OSError as e:
            logger.error(f"[JOURNAL] Error opening journal file {path}: {e}")

        self.client = client or JournalSocketClient(client_config or JournalClientConfig(enabled=False))
        if self.client.config.enabled and not self.client.is_connected():
            if not self.client.connect():
                logger.warning("[JOURNAL] Failed to connect to journal server, will log locally only")

    def is_connected(self) -> bool:
        return self.client.is_connected()

    # ==================== Events ====================

    def log_transaction_start(self, transaction_id: int) -> None:
        self._emit([RULE, f"TRANSACTION #{transaction_id} - {self._now()}", RULE])

    def log_item(self, code: str, name: str, price) -> None:
        self._emit([f"{code:<20} {truncate(name):<30} ${money(price):<8}"])

    def log_void_item(self, code: str, name: str, qty: int) -> None:
        self._emit([f"*** VOID ITEM: {code} {name} QTY: {qty} ***"])

    def log_quantity_change(self, code: str, name: str, old_qty: int, new_qty: int) -> None:
        self._emit([f"*** QTY CHANGE: {code} {name} FROM {old_qty} TO {new_qty} ***"])

    def log_subtotal(self, subtotal) -> None:
        self._emit(['', amount_line('SUBTOTAL:', subtotal)])

    def log_discount(self, discount_amount, applied_discounts: Iterable[str]) -> None:
        if Decimal(str(discount_amount)) <= 0:
            return
        lines = [amount_line('DISCOUNT:', discount_amount, sign='-')]
        lines.extend(f"{'':>{LABEL_WIDTH}}   {label}" for label in applied_discounts)
        self._emit(lines)

    def log_tax(self, tax) -> None:
        self._emit([amount_line('TAX (7%):', tax)])

    def log_total(self, total) -> None:
        self._emit([amount_line('TOTAL:', total), THIN_RULE])

    def log_payment(self, payment_type: str, tendered, change) -> None:
        lines = ['', f"PAYMENT TYPE: {payment_type}", amount_line('AMOUNT TENDERED:', tendered)]
        if Decimal(str(change)) > 0:
            lines.append(amount_line('CHANGE:', change))
        self._emit(lines)

    def log_void_transaction(self, transaction_id: int, reason: str = '') -> None:
        lines = ['', f"*** TRANSACTION #{transaction_id} VOIDED ***"]
        if reason:
            lines.append(f"*** REASON: {reason} ***")
        lines.extend([f"*** VOIDED AT: {self._now()} ***", RULE, ''])
        self._emit(lines)
        self.flush()

    def log_suspend_transaction(self, transaction_id: int) -> None:
        self._emit([
            '',
            f"*** TRANSACTION #{transaction_id} SUSPENDED ***",
            f"*** SUSPENDED AT: {self._now()} ***",
            RULE,
            '',
        ])
        self.flush()

    def log_resume_transaction(self, transaction_id: int) -> None:
        self._emit([
            '',
            f"*** TRANSACTION #{transaction_id} RESUMED ***",
            f"*** RESUMED AT: {self._now()} ***",
            RULE,
        ])

    def log_transaction_complete(self, transaction_id: int) -> None:
        self._emit([
            '',
            f"TRANSACTION #{transaction_id} COMPLETED",
            f"COMPLETED AT: {self._now()}",
            RULE,
            '',
        ])
        self.flush()

    # ==================== Plumbing ====================

    def _now(self) -> str:
        return self._clock().strftime(DATE_FORMAT)

    def _emit(self, lines: List[str]) -> None:
        """Write lines locally first, then mirror each one if connected."""
        for line in lines:
            self._write_local(line)
        for line in lines:
            if not self.client.is_connected():
                break
            self.client.send_line(line)

    def _write_local(self, line: str) -> None:
        if self._writer is None:
            return
        try:
            self._writer.write(line + '\n')
        except (OSError, ValueError) as e:
            logger.error(f"[JOURNAL] Error writing to journal: {e}")

    def flush(self) -> None:
        if self._writer is None:
            return
        try:
            self._writer.flush()
        except (OSError, ValueError) as e:
            logger.error(f"[JOURNAL] Error flushing journal: {e}")

    def close(self) -> None:
        """Flush and close the local log and the remote connection."""
        if self._writer is not None:
            try:
                self._writer.flush()
                self._writer.close()
            except OSError as e:
                logger.error(f"[JOURNAL] Error closing journal: {e}")
            self._writer = None
        self.client.disconnect()
