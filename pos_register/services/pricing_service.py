"""Pricing pipeline - totals derived from the ledger and the discount result."""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

TAX_RATE = Decimal('0.07')
CENT = Decimal('0.01')
ZERO = Decimal('0')


def to_money(value) -> Decimal:
    """Quantize a value to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    """Unrounded totals for the current ledger; round with to_money() for display/storage."""
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal

    @property
    def taxable(self) -> Decimal:
        return self.subtotal - self.discount

    def change_for(self, tendered: Decimal) -> Decimal:
        return to_money(tendered) - to_money(self.total)

    def rounded(self) -> 'Totals':
        return Totals(
            subtotal=to_money(self.subtotal),
            discount=to_money(self.discount),
            tax=to_money(self.tax),
            total=to_money(self.total),
        )


EMPTY_TOTALS = Totals(ZERO, ZERO, ZERO, ZERO)


def compute_totals(lines: Iterable, discount_result: Optional[object] = None) -> Totals:
    """
    Compute subtotal/discount/tax/total.

    subtotal = sum(line.total)
    taxable  = subtotal - discount
    tax      = taxable * TAX_RATE
    total    = taxable + tax

    discount is 0 when there is no discount result or it carries no amount
    (DISABLED, FALLBACK, NO_ITEMS).
    """
    subtotal = sum((line.total for line in lines), ZERO)
    discount = ZERO
    if discount_result is not None:
        discount = Decimal(str(discount_result.discount_amount or 0))
    taxable = subtotal - discount
    tax = taxable * TAX_RATE
    return Totals(subtotal=subtotal, discount=discount, tax=tax, total=taxable + tax)
