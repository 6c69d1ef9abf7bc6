"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries, their debit/credit lines,
    and the tenant's catalogue of journal entry types.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced (by JournalService before any write):
    - Every line carries a positive amount on exactly one side.
    - Per entry, sum(debit_amount) == sum(credit_amount) at 2 decimal places.
    - Lines reference active accounts of the entry's tenant.
    - source_document_id is present unless source_document == "manual".

Soft deletion:
    is_deleted entries are never physically removed and never contribute to
    any balance or report.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantTrackedBase, UUIDString
from ledger_kernel.db.types import Money

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class SourceDocumentType(str, Enum):
    """What produced a journal entry.

    Contract: INVOICE and PAYMENT entries always carry the source row's id;
    MANUAL entries never need one.
    """

    INVOICE = "invoice"
    PAYMENT = "payment"
    MANUAL = "manual"


class JournalEntryType(TenantTrackedBase):
    """Tenant-scoped catalogue entry, e.g. JE / INV / INVAP / PMT."""

    __tablename__ = "journal_entry_types"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_journal_entry_type_code"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<JournalEntryType {self.code}: {self.name}>"


class JournalEntry(TenantTrackedBase):
    """
    A balanced set of debit/credit lines.

    Contract:
        Inserted together with its lines by JournalService.  Once accepted,
        entries are only ever posted or soft-deleted.

    Guarantees:
        - total_amount equals the debit total recorded at validation.
        - Only is_posted and not is_deleted entries reach balances.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        Index("idx_journal_tenant_date", "tenant_id", "entry_date"),
        Index("idx_journal_source", "tenant_id", "source_document", "source_document_id"),
    )

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    # Code of a JournalEntryType (JE, INVAP, PMT, ...)
    entry_type_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    source_document: Mapped[SourceDocumentType] = mapped_column(
        String(20),
        default=SourceDocumentType.MANUAL.value,
        nullable=False,
    )

    # Id of the invoice / payment row; null for manual entries
    source_document_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    is_posted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    total_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalEntryLine.line_order",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.id} {self.entry_date} {self.reference}>"

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalEntryLine(TenantTrackedBase):
    """
    One side of a journal entry against one account.

    account_id is nullable only so that a hard-deleted account can be
    detached from soft-deleted history; live lines always reference one.
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "tenant_id", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    debit_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    credit_amount: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    line_order: Mapped[int] = mapped_column(Integer, nullable=False)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account | None"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<JournalEntryLine {self.line_order} account={self.account_id} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )
