"""
JournalService -- validated posting, posting of drafts, soft deletion, and the
journal entry type catalogue.

Responsibility:
    The only writer of journal_entries / journal_entry_lines.  Every entry
    is validated in full before anything is written: at least two lines,
    exactly one positive side per line, active accounts of the same tenant,
    and sum(debits) == sum(credits) at 2 decimal places.

Balances:
    Never maintained incrementally.  After every posting or deletion the
    Account.current_balance display cache of each touched account is
    recomputed from the effective lines (LedgerSelector).

Invariants enforced:
    - Soft deletion only: is_deleted flips, rows are never removed.
    - Non-manual entries carry the id of their invoice / payment.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, round_money, to_decimal
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    DuplicateValueError,
    EntryAlreadyPostedError,
    EntryDeletedError,
    HasDependenciesError,
    InvalidAmountError,
    InvalidLineError,
    InvalidSourceDocumentError,
    JournalEntryNotFoundError,
    JournalEntryTypeNotFoundError,
    MissingFieldError,
    UnbalancedEntryError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryType,
    SourceDocumentType,
)
from ledger_kernel.selectors.journal_selector import JournalEntryDTO, JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector, signed_balance
from ledger_kernel.services.base import BaseService

logger = get_logger("services.journal")

MIN_LINES = 2


@dataclass(frozen=True)
class JournalLineSpec:
    """One requested line: a positive amount on exactly one side."""

    account_id: UUID
    debit_amount: Decimal | int | str = Decimal("0")
    credit_amount: Decimal | int | str = Decimal("0")
    description: str | None = None

    @classmethod
    def debit(cls, account_id: UUID, amount, description: str | None = None) -> "JournalLineSpec":
        return cls(account_id=account_id, debit_amount=amount, description=description)

    @classmethod
    def credit(cls, account_id: UUID, amount, description: str | None = None) -> "JournalLineSpec":
        return cls(account_id=account_id, credit_amount=amount, description=description)


@dataclass(frozen=True)
class JournalEntrySpec:
    """Header of a requested journal entry."""

    entry_date: date
    reference: str | None = None
    description: str | None = None
    entry_type_code: str | None = None
    source_document: SourceDocumentType = SourceDocumentType.MANUAL
    source_document_id: UUID | None = None
    is_posted: bool = True


@dataclass(frozen=True)
class JournalEntryTypeInfo:
    """Immutable DTO for a journal entry type."""

    id: UUID
    tenant_id: int
    code: str
    name: str
    description: str | None
    is_active: bool


@dataclass(frozen=True)
class _ValidatedLine:
    account_id: UUID
    debit_amount: Decimal
    credit_amount: Decimal
    description: str | None
    line_order: int


def _money(value, field_name: str) -> Decimal:
    try:
        amount = to_decimal(value, field_name)
    except ValueError as exc:
        raise InvalidAmountError(field_name, str(value), str(exc)) from None
    if amount != round_money(amount):
        raise InvalidAmountError(field_name, str(value), "more than 2 decimal places")
    return amount


def validate_lines(lines: Sequence[JournalLineSpec]) -> tuple[list[_ValidatedLine], Decimal]:
    """
    Check line shape and balance without touching the database.

    Returns:
        The normalized lines (numbered from 1) and the debit total.

    Raises:
        InvalidLineError: Fewer than two lines, a negative amount, or a line
            with both or neither side set.
        InvalidAmountError: A non-numeric amount or one with sub-cent digits.
        UnbalancedEntryError: Debits != credits.
    """
    if len(lines) < MIN_LINES:
        raise InvalidLineError(len(lines), f"an entry needs at least {MIN_LINES} lines")

    validated = []
    for order, spec in enumerate(lines, start=1):
        if spec.account_id is None:
            raise InvalidLineError(order, "account_id is required")
        debit = _money(spec.debit_amount, "debit_amount")
        credit = _money(spec.credit_amount, "credit_amount")
        if debit < ZERO or credit < ZERO:
            raise InvalidLineError(order, "amounts must not be negative")
        if (debit > ZERO) == (credit > ZERO):
            raise InvalidLineError(order, "exactly one of debit_amount / credit_amount must be positive")
        validated.append(
            _ValidatedLine(
                account_id=spec.account_id,
                debit_amount=debit,
                credit_amount=credit,
                description=spec.description,
                line_order=order,
            )
        )

    debits = round_money(sum((v.debit_amount for v in validated), ZERO))
    credits = round_money(sum((v.credit_amount for v in validated), ZERO))
    if debits != credits:
        raise UnbalancedEntryError(str(debits), str(credits))
    return validated, debits


def validate_source_document(source_document: SourceDocumentType | str, source_document_id: UUID | None) -> SourceDocumentType:
    """Non-manual entries need the source row id; manual entries must not carry one."""
    kind = SourceDocumentType(source_document)
    if kind is SourceDocumentType.MANUAL:
        if source_document_id is not None:
            raise InvalidSourceDocumentError(kind.value, "manual entries have no source document id")
    elif source_document_id is None:
        raise InvalidSourceDocumentError(kind.value, "source_document_id is required")
    return kind


class JournalService(BaseService[JournalEntry]):
    """
    Service for writing journal entries.

    Contract:
        Validation happens entirely before the first INSERT, so a rejected
        entry leaves no partial rows.  The service flushes; the caller's
        ``session_scope()`` commits.
    """

    def __init__(self, session: Session):
        super().__init__(session)
        self._ledger = LedgerSelector(session)
        self._journal = JournalSelector(session)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_entry(self, tenant_id: int, entry_id: UUID, for_update: bool = False) -> JournalEntry:
        return self._get_owned(JournalEntry, tenant_id, entry_id, JournalEntryNotFoundError, for_update=for_update)

    def _check_accounts(self, tenant_id: int, account_ids: set[UUID]) -> None:
        """Every referenced account must exist for the tenant and be active."""
        rows = self.session.execute(
            select(Account.id, Account.is_active).where(
                Account.tenant_id == tenant_id,
                Account.id.in_(account_ids),
            )
        ).all()
        found = {row.id: row.is_active for row in rows}
        for account_id in sorted(account_ids, key=str):
            if account_id not in found:
                raise AccountNotFoundError(str(account_id))
            if not found[account_id]:
                raise AccountInactiveError(str(account_id))

    def refresh_current_balances(self, tenant_id: int, account_ids: Sequence[UUID]) -> None:
        """Recompute the display cache of the given accounts from their lines."""
        account_ids = [a for a in set(account_ids) if a is not None]
        if not account_ids:
            return
        totals = self._ledger.line_totals(tenant_id, account_ids)
        accounts = self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.id.in_(account_ids))
        ).scalars().all()
        for account in accounts:
            t = totals.get(account.id)
            if t is None:
                account.current_balance = ZERO
            else:
                account.current_balance = signed_balance(
                    account.account_type, t.debit_total, t.credit_total
                )
        self.session.flush()
        logger.debug(
            "current_balances_refreshed",
            extra={"tenant_id": tenant_id, "account_count": len(accounts)},
        )

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    def post_journal_entry(
        self,
        tenant_id: int,
        entry: JournalEntrySpec,
        lines: Sequence[JournalLineSpec],
        actor_id: int | None = None,
    ) -> JournalEntryDTO:
        """
        Insert an entry and its lines as a unit.

        With ``entry.is_posted`` False the entry is saved as a draft and
        only reaches balances once ``post_entry`` is called.

        Raises:
            InvalidSourceDocumentError, InvalidLineError, InvalidAmountError,
            UnbalancedEntryError, AccountNotFoundError, AccountInactiveError.
        """
        if entry.entry_date is None:
            raise MissingFieldError("entry_date")
        kind = validate_source_document(entry.source_document, entry.source_document_id)
        validated, total = validate_lines(lines)
        self._check_accounts(tenant_id, {v.account_id for v in validated})

        row = JournalEntry(
            tenant_id=tenant_id,
            entry_date=entry.entry_date,
            reference=entry.reference,
            description=entry.description,
            entry_type_code=entry.entry_type_code,
            source_document=kind.value,
            source_document_id=entry.source_document_id,
            is_posted=entry.is_posted,
            is_deleted=False,
            total_amount=total,
            created_by_id=actor_id,
        )
        for v in validated:
            row.lines.append(
                JournalEntryLine(
                    tenant_id=tenant_id,
                    account_id=v.account_id,
                    debit_amount=v.debit_amount,
                    credit_amount=v.credit_amount,
                    description=v.description,
                    line_order=v.line_order,
                    created_by_id=actor_id,
                )
            )
        self.session.add(row)
        self.session.flush()

        with LogContext.bind(entry_id=str(row.id)):
            logger.info(
                "journal_entry_created",
                extra={
                    "tenant_id": tenant_id,
                    "source_document": kind.value,
                    "source_document_id": entry.source_document_id,
                    "entry_type_code": entry.entry_type_code,
                    "line_count": len(validated),
                    "total_amount": str(total),
                    "is_posted": entry.is_posted,
                },
            )

        if entry.is_posted:
            self.refresh_current_balances(tenant_id, [v.account_id for v in validated])

        return self._journal.get_entry(tenant_id, row.id)

    def post_entry(self, tenant_id: int, entry_id: UUID, actor_id: int | None = None) -> JournalEntryDTO:
        """
        Post a saved draft.

        Lines are re-validated: an account deactivated since the draft was
        saved blocks posting.

        Raises:
            JournalEntryNotFoundError, EntryDeletedError, EntryAlreadyPostedError,
            AccountInactiveError, UnbalancedEntryError.
        """
        entry = self._get_entry(tenant_id, entry_id, for_update=True)
        if entry.is_deleted:
            raise EntryDeletedError(str(entry.id))
        if entry.is_posted:
            raise EntryAlreadyPostedError(str(entry.id))

        specs = [
            JournalLineSpec(
                account_id=line.account_id,
                debit_amount=round_money(line.debit_amount),
                credit_amount=round_money(line.credit_amount),
                description=line.description,
            )
            for line in entry.lines
        ]
        validated, total = validate_lines(specs)
        self._check_accounts(tenant_id, {v.account_id for v in validated})

        entry.is_posted = True
        entry.total_amount = total
        entry.updated_by_id = actor_id
        self.session.flush()

        with LogContext.bind(entry_id=str(entry.id)):
            logger.info("journal_entry_posted", extra={"tenant_id": tenant_id, "total_amount": str(total)})

        self.refresh_current_balances(tenant_id, [v.account_id for v in validated])
        return self._journal.get_entry(tenant_id, entry.id)

    def delete_journal_entry(self, tenant_id: int, entry_id: UUID, actor_id: int | None = None) -> JournalEntryDTO:
        """
        Soft-delete an entry.  The rows stay; balances stop counting them.

        Deleting an already deleted entry is a no-op.

        Raises:
            JournalEntryNotFoundError: Missing, or owned by another tenant.
        """
        entry = self._get_entry(tenant_id, entry_id, for_update=True)
        if not entry.is_deleted:
            entry.is_deleted = True
            entry.updated_by_id = actor_id
            self.session.flush()
            with LogContext.bind(entry_id=str(entry.id)):
                logger.info("journal_entry_deleted", extra={"tenant_id": tenant_id})
            self.refresh_current_balances(tenant_id, [line.account_id for line in entry.lines])
        return self._journal.get_entry(tenant_id, entry.id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_entry(self, tenant_id: int, entry_id: UUID) -> JournalEntryDTO:
        """
        Get one entry with resolved lines.

        Raises:
            JournalEntryNotFoundError: Missing, or owned by another tenant.
        """
        dto = self._journal.get_entry(tenant_id, entry_id)
        if dto is None:
            raise JournalEntryNotFoundError(str(entry_id))
        return dto

    def list_entries(
        self,
        tenant_id: int,
        source_document: SourceDocumentType | str | None = None,
        source_document_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> list[JournalEntryDTO]:
        return self._journal.list_entries(
            tenant_id,
            source_document=source_document,
            source_document_id=source_document_id,
            include_deleted=include_deleted,
        )

    # ------------------------------------------------------------------
    # Entry types
    # ------------------------------------------------------------------

    @staticmethod
    def _type_to_dto(row: JournalEntryType) -> JournalEntryTypeInfo:
        return JournalEntryTypeInfo(
            id=row.id,
            tenant_id=row.tenant_id,
            code=row.code,
            name=row.name,
            description=row.description,
            is_active=row.is_active,
        )

    def _get_type(self, tenant_id: int, type_id: UUID) -> JournalEntryType:
        row = self.session.execute(
            select(JournalEntryType).where(
                JournalEntryType.id == type_id,
                JournalEntryType.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if row is None:
            raise JournalEntryTypeNotFoundError(str(type_id))
        return row

    def create_entry_type(
        self,
        tenant_id: int,
        code: str,
        name: str,
        description: str | None = None,
        actor_id: int | None = None,
    ) -> JournalEntryTypeInfo:
        """
        Add a type to the tenant's catalogue.

        Raises:
            MissingFieldError, DuplicateValueError (code taken).
        """
        if not code or not code.strip():
            raise MissingFieldError("code")
        if not name or not name.strip():
            raise MissingFieldError("name")
        code = code.strip().upper()
        clash = self.session.execute(
            select(JournalEntryType.id).where(
                JournalEntryType.tenant_id == tenant_id,
                JournalEntryType.code == code,
            )
        ).first()
        if clash is not None:
            raise DuplicateValueError("journal entry type code", code)

        row = JournalEntryType(
            tenant_id=tenant_id,
            code=code,
            name=name.strip(),
            description=description,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()
        logger.info("journal_entry_type_created", extra={"tenant_id": tenant_id, "code": code})
        return self._type_to_dto(row)

    def get_entry_type(self, tenant_id: int, type_id: UUID) -> JournalEntryTypeInfo:
        return self._type_to_dto(self._get_type(tenant_id, type_id))

    def get_entry_type_by_code(self, tenant_id: int, code: str) -> JournalEntryTypeInfo:
        row = self.session.execute(
            select(JournalEntryType).where(
                JournalEntryType.tenant_id == tenant_id,
                JournalEntryType.code == code.strip().upper(),
            )
        ).scalar_one_or_none()
        if row is None:
            raise JournalEntryTypeNotFoundError(code)
        return self._type_to_dto(row)

    def list_entry_types(self, tenant_id: int, include_inactive: bool = False) -> list[JournalEntryTypeInfo]:
        stmt = select(JournalEntryType).where(JournalEntryType.tenant_id == tenant_id)
        if not include_inactive:
            stmt = stmt.where(JournalEntryType.is_active.is_(True))
        rows = self.session.execute(stmt.order_by(JournalEntryType.code)).scalars().all()
        return [self._type_to_dto(r) for r in rows]

    def delete_entry_type(self, tenant_id: int, type_id: UUID) -> None:
        """
        Remove a type no live entry uses.

        Raises:
            JournalEntryTypeNotFoundError, HasDependenciesError.
        """
        row = self._get_type(tenant_id, type_id)
        count = self.session.execute(
            select(func.count(JournalEntry.id)).where(
                JournalEntry.tenant_id == tenant_id,
                JournalEntry.entry_type_code == row.code,
                JournalEntry.is_deleted.is_(False),
            )
        ).scalar_one()
        if count:
            raise HasDependenciesError("journal entry type", row.code, "journal entries", count)
        self.session.delete(row)
        self.session.flush()
        logger.info("journal_entry_type_deleted", extra={"tenant_id": tenant_id, "code": row.code})

    def seed_entry_types(self, tenant_id: int, templates, actor_id: int | None = None) -> int:
        """
        Create the catalogue's missing types; existing codes are kept.

        Args:
            templates: Iterable of objects with code / name / description.

        Returns:
            Number of types created.
        """
        existing = set(
            self.session.execute(
                select(JournalEntryType.code).where(JournalEntryType.tenant_id == tenant_id)
            ).scalars()
        )
        created = 0
        for template in templates:
            if template.code.upper() in existing:
                continue
            self.create_entry_type(
                tenant_id, template.code, template.name, template.description, actor_id=actor_id
            )
            existing.add(template.code.upper())
            created += 1
        return created
