"""
Invoice arithmetic -- pure functions, no I/O.

Line item:
    gross           = quantity * unit_price
    discount_amount = gross * discount_rate
    line_total      = gross * (1 - discount_rate) * (1 + tax_rate)
    tax_amount      = line_total - (gross - discount_amount)

Each figure is rounded to 2 places (ROUND_HALF_UP) and tax_amount is taken
as the remainder, so gross - discount + tax == line_total holds exactly.

Invoice:
    subtotal        = sum(gross)
    discount_amount = sum(line discount)
    tax_amount      = sum(line tax)
    total_amount    = subtotal + tax_amount - discount_amount
    amount_due      = max(0, total_amount - amount_paid)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.db.types import ONE, ZERO, round_money, to_decimal
from ledger_kernel.exceptions import InvalidAmountError, InvalidRateError
from ledger_modules.invoicing.models import InvoiceStatus


@dataclass(frozen=True)
class LineAmounts:
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount_rate: Decimal
    gross: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


def _number(value, field_name: str) -> Decimal:
    try:
        return to_decimal(value, field_name)
    except ValueError as exc:
        raise InvalidAmountError(field_name, str(value), str(exc)) from None


def _rate(value, field_name: str) -> Decimal:
    try:
        rate = to_decimal(value, field_name)
    except ValueError:
        raise InvalidRateError(field_name, str(value)) from None
    if rate < ZERO or rate > ONE:
        raise InvalidRateError(field_name, str(rate))
    return rate


def compute_line_amounts(quantity, unit_price, tax_rate=ZERO, discount_rate=ZERO) -> LineAmounts:
    """
    Validate and price one line item.

    Raises:
        InvalidAmountError: quantity <= 0 or unit_price < 0.
        InvalidRateError: a rate outside [0, 1].
    """
    qty = _number(quantity, "quantity")
    price = _number(unit_price, "unit_price")
    if qty <= ZERO:
        raise InvalidAmountError("quantity", str(qty), "must be positive")
    if price < ZERO:
        raise InvalidAmountError("unit_price", str(price), "must not be negative")
    tax = _rate(tax_rate, "tax_rate")
    discount = _rate(discount_rate, "discount_rate")

    raw_gross = qty * price
    gross = round_money(raw_gross)
    discount_amount = round_money(raw_gross * discount)
    line_total = round_money(raw_gross * (ONE - discount) * (ONE + tax))
    tax_amount = line_total - (gross - discount_amount)

    return LineAmounts(
        quantity=qty,
        unit_price=price,
        tax_rate=tax,
        discount_rate=discount,
        gross=gross,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        line_total=line_total,
    )


def compute_invoice_totals(lines: Iterable[LineAmounts]) -> InvoiceTotals:
    """Aggregate the full current line-item set."""
    subtotal = tax_amount = discount_amount = ZERO
    for line in lines:
        subtotal += line.gross
        tax_amount += line.tax_amount
        discount_amount += line.discount_amount
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_amount=subtotal + tax_amount - discount_amount,
    )


def amount_due(total_amount: Decimal, amount_paid: Decimal) -> Decimal:
    return max(ZERO, total_amount - amount_paid)


def payment_status(total_amount: Decimal, amount_paid: Decimal) -> InvoiceStatus:
    """Threshold rule: paid >= total -> paid; 0 < paid < total -> partially_paid; else sent."""
    if amount_paid > ZERO and amount_paid >= total_amount:
        return InvoiceStatus.PAID
    if amount_paid > ZERO:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.SENT
