"""Line-item ledger - in-memory lines of the transaction currently open."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Iterator

from pos_register.exceptions import ValidationError


@dataclass(frozen=True)
class ProductInfo:
    """Immutable catalog entry as seen by the register."""
    code: str
    name: str
    unit_price: Decimal


@dataclass
class LineItem:
    """One ledger line. Quantity is validated by the ledger, not here."""
    product: ProductInfo
    quantity: int

    @property
    def code(self) -> str:
        return self.product.code

    @property
    def total(self) -> Decimal:
        return self.product.unit_price * self.quantity


def validate_quantity(qty) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise ValidationError(f'Quantity must be an integer, got {qty!r}')
    if qty <= 0:
        raise ValidationError('Quantity must be greater than 0')
    return qty


class Ledger:
    """
    Ordered collection of line items, unique per product code.

    Adding a code that is already present increases that line's quantity
    instead of appending a duplicate row.
    """

    def __init__(self, lines: Optional[List[LineItem]] = None):
        self._lines: List[LineItem] = list(lines or [])

    def __len__(self):
        return len(self._lines)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(list(self._lines))

    def __getitem__(self, index: int) -> LineItem:
        return self._lines[self._check_index(index)]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def lines(self) -> List[LineItem]:
        """Copy of the current lines in insertion order."""
        return list(self._lines)

    def find(self, code: str) -> Optional[LineItem]:
        for line in self._lines:
            if line.code == code:
                return line
        return None

    def add(self, product: ProductInfo, qty: int) -> LineItem:
        """Add qty of product, merging into an existing line for the same code."""
        validate_quantity(qty)
        line = self.find(product.code)
        if line is not None:
            line.quantity += qty
            return line
        line = LineItem(product=product, quantity=qty)
        self._lines.append(line)
        return line

    def remove(self, index: int) -> LineItem:
        """Remove and return the line at index. IndexError if out of range."""
        return self._lines.pop(self._check_index(index))

    def change_quantity(self, index: int, new_qty: int) -> int:
        """Replace the quantity at index; returns the previous quantity."""
        validate_quantity(new_qty)
        line = self._lines[self._check_index(index)]
        old_qty = line.quantity
        line.quantity = new_qty
        return old_qty

    def replace(self, lines: List[LineItem]) -> None:
        self._lines = list(lines)

    def clear(self) -> None:
        self._lines.clear()

    def _check_index(self, index: int) -> int:
        # Negative indexes would silently address lines from the end
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._lines):
            raise IndexError(f'Line index {index!r} out of range (0..{len(self._lines) - 1})')
        return index
