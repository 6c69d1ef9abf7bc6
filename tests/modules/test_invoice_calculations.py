"""
Tests for the pure invoice arithmetic.
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ledger_kernel.exceptions import InvalidAmountError, InvalidRateError
from ledger_modules.invoicing.calculations import (
    amount_due,
    compute_invoice_totals,
    compute_line_amounts,
    payment_status,
)
from ledger_modules.invoicing.models import InvoiceStatus

quantities = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000"), places=2)
prices = st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2)
rates = st.decimals(min_value=Decimal("0"), max_value=Decimal("1"), places=4)


class TestLineAmounts:

    def test_taxed_line(self):
        line = compute_line_amounts(1, "100", tax_rate="0.10")
        assert line.gross == Decimal("100.00")
        assert line.discount_amount == Decimal("0.00")
        assert line.tax_amount == Decimal("10.00")
        assert line.line_total == Decimal("110.00")

    def test_discounted_line(self):
        line = compute_line_amounts(2, "50", discount_rate="0.10")
        assert line.gross == Decimal("100.00")
        assert line.discount_amount == Decimal("10.00")
        assert line.tax_amount == Decimal("0.00")
        assert line.line_total == Decimal("90.00")

    def test_tax_applies_after_discount(self):
        line = compute_line_amounts(1, "200", tax_rate="0.20", discount_rate="0.25")
        # 200 * 0.75 * 1.20
        assert line.line_total == Decimal("180.00")
        assert line.tax_amount == Decimal("30.00")

    def test_half_up_rounding(self):
        line = compute_line_amounts(3, "0.335")
        assert line.gross == Decimal("1.01")

    @pytest.mark.parametrize("quantity", [0, "-1"])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(InvalidAmountError):
            compute_line_amounts(quantity, "10")

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_line_amounts(1, "-0.01")

    def test_float_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_line_amounts(1, 9.99)

    @pytest.mark.parametrize("field", ["tax_rate", "discount_rate"])
    @pytest.mark.parametrize("rate", ["-0.01", "1.01", "abc"])
    def test_rates_bounded(self, field, rate):
        with pytest.raises(InvalidRateError):
            compute_line_amounts(1, "10", **{field: rate})

    @given(quantities, prices, rates, rates)
    @settings(max_examples=200)
    def test_components_reconcile(self, quantity, price, tax, discount):
        line = compute_line_amounts(quantity, price, tax, discount)
        assert line.gross - line.discount_amount + line.tax_amount == line.line_total
        assert line.line_total == line.line_total.quantize(Decimal("0.01"))
        assert line.tax_amount >= Decimal("-0.01")


class TestInvoiceTotals:

    def test_two_line_invoice(self):
        lines = [
            compute_line_amounts(1, "100", tax_rate="0.10"),
            compute_line_amounts(2, "50", discount_rate="0.10"),
        ]
        totals = compute_invoice_totals(lines)
        assert totals.subtotal == Decimal("200.00")
        assert totals.tax_amount == Decimal("10.00")
        assert totals.discount_amount == Decimal("10.00")
        assert totals.total_amount == Decimal("200.00")
        assert str(totals.total_amount) == "200.00"

    def test_empty_invoice(self):
        totals = compute_invoice_totals([])
        assert totals.total_amount == Decimal("0")

    @given(st.lists(st.tuples(quantities, prices, rates, rates), max_size=8))
    @settings(max_examples=100)
    def test_total_is_sum_of_line_totals(self, specs):
        lines = [compute_line_amounts(*spec) for spec in specs]
        totals = compute_invoice_totals(lines)
        assert totals.total_amount == sum((line.line_total for line in lines), Decimal("0"))


class TestPaymentStatus:

    @pytest.mark.parametrize(
        "total,paid,expected",
        [
            ("100", "0", InvoiceStatus.SENT),
            ("100", "50", InvoiceStatus.PARTIALLY_PAID),
            ("100", "100", InvoiceStatus.PAID),
            ("100", "150", InvoiceStatus.PAID),
            ("0", "0", InvoiceStatus.SENT),
        ],
    )
    def test_threshold_rule(self, total, paid, expected):
        assert payment_status(Decimal(total), Decimal(paid)) is expected

    def test_amount_due_floors_at_zero(self):
        assert amount_due(Decimal("100"), Decimal("150")) == Decimal("0")
        assert amount_due(Decimal("100"), Decimal("40")) == Decimal("60")
