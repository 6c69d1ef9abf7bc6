"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their lines,
    with each line's account code and name resolved for ledger views.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - DTO convention: public methods return JournalEntryDTO / JournalLineDTO,
      never raw ORM models.
    - Lines are sorted by line_order.

Failure modes:
    - Returns None or an empty list when no matching entries exist for the
      tenant (never raises on absence of data).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, SourceDocumentType
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class JournalLineDTO:
    """Data transfer object for a journal line with its account resolved."""

    id: UUID
    account_id: UUID | None
    account_code: str | None
    account_name: str | None
    debit_amount: Decimal
    credit_amount: Decimal
    description: str | None
    line_order: int


@dataclass(frozen=True)
class JournalEntryDTO:
    """Data transfer object for a journal entry."""

    id: UUID
    tenant_id: int
    entry_date: date
    reference: str | None
    description: str | None
    entry_type_code: str | None
    source_document: SourceDocumentType
    source_document_id: UUID | None
    is_posted: bool
    is_deleted: bool
    total_amount: Decimal
    lines: tuple[JournalLineDTO, ...]

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalSelector(BaseSelector[JournalEntry]):
    """Read-only access to journal entries of one tenant at a time."""

    def __init__(self, session: Session):
        super().__init__(session)

    def _account_labels(self, entries: list[JournalEntry]) -> dict[UUID, tuple[str, str]]:
        account_ids = {
            line.account_id
            for entry in entries
            for line in entry.lines
            if line.account_id is not None
        }
        if not account_ids:
            return {}
        rows = self.session.execute(
            select(Account.id, Account.account_code, Account.name).where(
                Account.id.in_(account_ids)
            )
        ).all()
        return {row.id: (row.account_code, row.name) for row in rows}

    def _to_dto(
        self,
        entry: JournalEntry,
        labels: dict[UUID, tuple[str, str]],
    ) -> JournalEntryDTO:
        lines = []
        for line in sorted(entry.lines, key=lambda ln: ln.line_order):
            code, name = labels.get(line.account_id, (None, None))
            lines.append(
                JournalLineDTO(
                    id=line.id,
                    account_id=line.account_id,
                    account_code=code,
                    account_name=name,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                    description=line.description,
                    line_order=line.line_order,
                )
            )
        return JournalEntryDTO(
            id=entry.id,
            tenant_id=entry.tenant_id,
            entry_date=entry.entry_date,
            reference=entry.reference,
            description=entry.description,
            entry_type_code=entry.entry_type_code,
            source_document=SourceDocumentType(entry.source_document),
            source_document_id=entry.source_document_id,
            is_posted=entry.is_posted,
            is_deleted=entry.is_deleted,
            total_amount=entry.total_amount,
            lines=tuple(lines),
        )

    def get_entry(self, tenant_id: int, entry_id: UUID) -> JournalEntryDTO | None:
        """Get one entry (deleted or not) with resolved lines."""
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if entry is None:
            return None
        return self._to_dto(entry, self._account_labels([entry]))

    def list_entries(
        self,
        tenant_id: int,
        source_document: SourceDocumentType | str | None = None,
        source_document_id: UUID | None = None,
        include_deleted: bool = False,
        start_date: date | None = None,
        end_date: date | None = None,
        posted_only: bool = False,
    ) -> list[JournalEntryDTO]:
        """
        List entries of a tenant, newest first.

        Args:
            tenant_id: Owning tenant.
            source_document: Restrict to a source document type.
            source_document_id: Restrict to one source row.
            include_deleted: Include soft-deleted entries.
            start_date: Inclusive lower bound on entry_date.
            end_date: Inclusive upper bound on entry_date.
            posted_only: Only entries with is_posted = True.
        """
        query = select(JournalEntry).where(JournalEntry.tenant_id == tenant_id)

        if source_document is not None:
            query = query.where(
                JournalEntry.source_document == SourceDocumentType(source_document).value
            )
        if source_document_id is not None:
            query = query.where(JournalEntry.source_document_id == source_document_id)
        if not include_deleted:
            query = query.where(JournalEntry.is_deleted.is_(False))
        if start_date is not None:
            query = query.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            query = query.where(JournalEntry.entry_date <= end_date)
        if posted_only:
            query = query.where(JournalEntry.is_posted.is_(True))

        query = query.order_by(JournalEntry.entry_date.desc(), JournalEntry.created_at.desc())

        entries = list(self.session.execute(query).scalars().all())
        labels = self._account_labels(entries)
        return [self._to_dto(entry, labels) for entry in entries]

    def count_entries_for_sources(
        self,
        tenant_id: int,
        sources: list[tuple[SourceDocumentType, UUID]],
    ) -> int:
        """
        Count entries (deleted or not) referencing any of the given source rows.

        Soft-deleted entries still count: they are kept for audit continuity
        and still point at their source document.
        """
        if not sources:
            return 0
        conditions = [
            (JournalEntry.source_document == SourceDocumentType(kind).value)
            & (JournalEntry.source_document_id == source_id)
            for kind, source_id in sources
        ]
        query = select(func.count(JournalEntry.id)).where(
            JournalEntry.tenant_id == tenant_id,
            or_(*conditions),
        )
        return self.session.execute(query).scalar_one()
