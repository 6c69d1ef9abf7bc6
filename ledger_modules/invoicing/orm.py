"""
Invoicing ORM Models (``ledger_modules.invoicing.orm``).

Responsibility
--------------
SQLAlchemy persistence models for invoices, line items and payments.  Maps
rows to the frozen dataclasses of ``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db`` and
sibling ``models.py``.  MUST NOT be imported by ``ledger_kernel``.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantTrackedBase
from ledger_kernel.db.types import Money, Rate
from ledger_modules.invoicing.models import (
    InvoiceInfo,
    InvoiceLineItemInfo,
    InvoiceStatus,
    PaymentInfo,
    PaymentMethod,
)

# ---------------------------------------------------------------------------
# 1. InvoiceModel
# ---------------------------------------------------------------------------


class InvoiceModel(TenantTrackedBase):
    """
    ORM model for client invoices.

    Guarantees:
        - invoice_number unique per tenant (uq_invoices_tenant_number).
        - Money fields are only written by InvoiceService, which recomputes
          them from the full line-item and payment sets.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoices_tenant_number"),
        Index("idx_invoices_tenant_status", "tenant_id", "status"),
        Index("idx_invoices_client", "tenant_id", "client_id"),
    )
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    client_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    entity_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=InvoiceStatus.DRAFT.value, nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency_code: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    subtotal: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    discount_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    total_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    amount_paid: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    amount_due: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    line_items: Mapped[list["InvoiceLineItemModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceLineItemModel.sort_order",
    )
    payments: Mapped[list["PaymentModel"]] = relationship(
        back_populates="invoice",
        lazy="selectin",
        order_by="PaymentModel.payment_date",
    )

    def to_dto(self) -> InvoiceInfo:
        """Convert ORM model to frozen dataclass."""
        return InvoiceInfo(
            id=self.id,
            tenant_id=self.tenant_id,
            invoice_number=self.invoice_number,
            client_id=self.client_id,
            entity_id=self.entity_id,
            status=InvoiceStatus(self.status),
            issue_date=self.issue_date,
            due_date=self.due_date,
            currency_code=self.currency_code,
            subtotal=self.subtotal,
            tax_amount=self.tax_amount,
            discount_amount=self.discount_amount,
            total_amount=self.total_amount,
            amount_paid=self.amount_paid,
            amount_due=self.amount_due,
            notes=self.notes,
            is_deleted=self.is_deleted,
            line_items=tuple(item.to_dto() for item in self.line_items),
            payments=tuple(p.to_dto() for p in self.payments),
        )

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.invoice_number} [{self.status}]>"


# ---------------------------------------------------------------------------
# 2. InvoiceLineItemModel
# ---------------------------------------------------------------------------


class InvoiceLineItemModel(TenantTrackedBase):
    """ORM model for invoice line items; amounts are derived at write time."""

    __tablename__ = "invoice_line_items"

    __table_args__ = (
        Index("idx_invoice_line_items_invoice", "invoice_id"),
    )
    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Money] = mapped_column(nullable=False)
    tax_rate: Mapped[Rate] = mapped_column(default=Decimal("0"), nullable=False)
    discount_rate: Mapped[Rate] = mapped_column(default=Decimal("0"), nullable=False)
    discount_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    line_total: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="line_items")

    def to_dto(self) -> InvoiceLineItemInfo:
        return InvoiceLineItemInfo(
            id=self.id,
            invoice_id=self.invoice_id,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
            discount_rate=self.discount_rate,
            discount_amount=self.discount_amount,
            tax_amount=self.tax_amount,
            line_total=self.line_total,
            sort_order=self.sort_order,
        )


# ---------------------------------------------------------------------------
# 3. PaymentModel
# ---------------------------------------------------------------------------


class PaymentModel(TenantTrackedBase):
    """ORM model for payments received against an invoice."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payments_invoice", "invoice_id"),
        Index("idx_payments_tenant_date", "tenant_id", "payment_date"),
    )
    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    amount: Mapped[Money] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="payments")

    def to_dto(self) -> PaymentInfo:
        return PaymentInfo(
            id=self.id,
            invoice_id=self.invoice_id,
            amount=self.amount,
            payment_date=self.payment_date,
            payment_method=PaymentMethod(self.payment_method),
            reference_number=self.reference_number,
            notes=self.notes,
        )
