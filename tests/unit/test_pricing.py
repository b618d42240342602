"""
Unit tests for the pricing pipeline.
"""

from decimal import Decimal

from pos_register.services.discount_service import DiscountResult, DiscountStatus
from pos_register.services.ledger_service import LineItem, ProductInfo
from pos_register.services.pricing_service import compute_totals, to_money, TAX_RATE

SKU1 = ProductInfo(code='SKU1', name='Test Product', unit_price=Decimal('10.00'))
SKU2 = ProductInfo(code='SKU2', name='Soda', unit_price=Decimal('2.50'))


class TestComputeTotals:
    """Tests for compute_totals."""

    def test_no_discount(self):
        """SKU1 x2 at $10.00: subtotal 20.00, tax 1.40, total 21.40."""
        totals = compute_totals([LineItem(SKU1, 2)]).rounded()

        assert totals.subtotal == Decimal('20.00')
        assert totals.discount == Decimal('0.00')
        assert totals.tax == Decimal('1.40')
        assert totals.total == Decimal('21.40')

    def test_discount_reduces_taxable_amount(self):
        """Tax is charged on subtotal minus discount."""
        result = DiscountResult(
            status=DiscountStatus.SUCCESS,
            discount_amount=Decimal('5.00'),
            applied_discounts=['$5 off'],
        )
        totals = compute_totals([LineItem(SKU1, 2), LineItem(SKU2, 2)], result)

        assert totals.subtotal == Decimal('25.00')
        assert totals.taxable == Decimal('20.00')
        assert totals.tax == Decimal('20.00') * TAX_RATE
        assert totals.rounded().total == Decimal('21.40')

    def test_fallback_and_disabled_results_add_no_discount(self):
        lines = [LineItem(SKU2, 3)]
        for result in (DiscountResult.fallback(Decimal('7.50'), 'timeout'),
                       DiscountResult.disabled(Decimal('7.50')),
                       None):
            totals = compute_totals(lines, result)
            assert totals.discount == 0
            assert totals.rounded().total == Decimal('8.03')

    def test_empty_ledger(self):
        totals = compute_totals([], DiscountResult.no_items())
        assert totals.subtotal == 0
        assert totals.total == 0

    def test_total_identity(self):
        """total == (subtotal - discount) * (1 + tax rate)."""
        result = DiscountResult(status=DiscountStatus.SUCCESS, discount_amount=Decimal('1.25'))
        totals = compute_totals([LineItem(SKU1, 3), LineItem(SKU2, 1)], result)

        assert totals.total == (totals.subtotal - totals.discount) * (1 + TAX_RATE)

    def test_change_for(self):
        totals = compute_totals([LineItem(SKU1, 2)])
        assert totals.change_for(Decimal('25.00')) == Decimal('3.60')

    def test_to_money_rounds_half_up(self):
        assert to_money(Decimal('0.345')) == Decimal('0.35')
        assert to_money('1') == Decimal('1.00')
