"""
Invoicing Domain Models (``ledger_modules.invoicing.models``).

Responsibility
--------------
Enums and frozen dataclass value objects for invoices, line items and
payments.  Services return these; callers never see ORM rows.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""

    DRAFT = "draft"
    APPROVED = "approved"
    SENT = "sent"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELED = "canceled"
    VOID = "void"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    DIRECT_DEBIT = "direct_debit"
    CHEQUE = "cheque"
    OTHER = "other"


@dataclass(frozen=True)
class LineItemInput:
    """Caller-supplied values for a new or replaced line item."""

    description: str
    quantity: Decimal | int | str
    unit_price: Decimal | int | str
    tax_rate: Decimal | int | str = Decimal("0")
    discount_rate: Decimal | int | str = Decimal("0")
    sort_order: int | None = None


@dataclass(frozen=True)
class InvoiceLineItemInfo:
    id: UUID
    invoice_id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal
    sort_order: int


@dataclass(frozen=True)
class PaymentInfo:
    id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    reference_number: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class InvoiceInfo:
    """An invoice with its line items and payments."""

    id: UUID
    tenant_id: int
    invoice_number: str
    client_id: int | None
    entity_id: int | None
    status: InvoiceStatus
    issue_date: date
    due_date: date | None
    currency_code: str
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    notes: str | None
    is_deleted: bool
    line_items: tuple[InvoiceLineItemInfo, ...] = field(default_factory=tuple)
    payments: tuple[PaymentInfo, ...] = field(default_factory=tuple)
