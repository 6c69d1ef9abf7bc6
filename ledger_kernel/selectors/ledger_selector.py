"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries: type-aware account balances, bulk
    balances for reports, trial balance, and raw ledger lines.  The ledger is
    a derived view over posted, non-deleted journal lines.
Architecture position: Kernel > Selectors.  May import from models/, domain/
    and selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Only lines of entries with is_posted = True and is_deleted = False are
      ever summed.
    - Sign convention: asset / expense balances are debits - credits;
      liability / equity / revenue balances are credits - debits.
    - Every query is filtered by tenant_id.

Failure modes:
    - AccountNotFoundError from account_balance() when the account does not
      exist for the tenant.
    - Returns zero balances / empty lists when no effective lines exist.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.chart import AccountType, balance_sign
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.base import BaseSelector

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LineTotals:
    """Raw debit / credit sums for one account."""

    account_id: UUID
    debit_total: Decimal
    credit_total: Decimal
    line_count: int


@dataclass(frozen=True)
class AccountBalance:
    """Type-aware balance for a single account over a window."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: Decimal
    credit_total: Decimal
    line_count: int
    start_date: date | None
    end_date: date | None

    @property
    def balance(self) -> Decimal:
        """Signed by account type (see module docstring)."""
        return signed_balance(self.account_type, self.debit_total, self.credit_total)


@dataclass(frozen=True)
class TrialBalanceRow:
    """A single row in a trial balance report."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        return signed_balance(self.account_type, self.debit_total, self.credit_total)


@dataclass(frozen=True)
class LedgerLine:
    """A single effective journal line with its entry context."""

    journal_entry_id: UUID
    journal_line_id: UUID
    entry_date: date
    reference: str | None
    account_id: UUID
    account_code: str
    account_name: str
    debit_amount: Decimal
    credit_amount: Decimal
    description: str | None
    line_order: int


def signed_balance(
    account_type: AccountType | str,
    debit_total: Decimal,
    credit_total: Decimal,
) -> Decimal:
    """Apply the type-dependent sign rule to raw debit / credit totals."""
    return (debit_total - credit_total) * balance_sign(account_type)


class LedgerSelector(BaseSelector[JournalEntryLine]):
    """
    Selector for ledger queries -- the authoritative balance computation.

    Contract:
        The ledger is a derived view over effective journal lines.  All
        queries filter by tenant, is_posted and not is_deleted, and by
        entry_date within [start_date, end_date] when bounds are given.

    Guarantees:
        - No stored balance is ever read; Account.current_balance is ignored.
        - All balance methods return Decimal (never float).
    """

    def __init__(self, session: Session):
        super().__init__(session)

    @staticmethod
    def _effective(
        tenant_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list:
        """WHERE clauses selecting effective lines of a tenant within a window."""
        clauses = [
            JournalEntryLine.tenant_id == tenant_id,
            JournalEntry.tenant_id == tenant_id,
            JournalEntry.is_posted.is_(True),
            JournalEntry.is_deleted.is_(False),
        ]
        if start_date is not None:
            clauses.append(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            clauses.append(JournalEntry.entry_date <= end_date)
        return clauses

    def line_totals(
        self,
        tenant_id: int,
        account_ids: list[UUID] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[UUID, LineTotals]:
        """
        Debit / credit sums per account in one grouped query.

        Args:
            tenant_id: Owning tenant.
            account_ids: Restrict to these accounts (None = every account).
            start_date: Inclusive lower bound on entry_date.
            end_date: Inclusive upper bound on entry_date.

        Returns:
            Mapping account_id -> LineTotals.  Accounts without effective
            lines are absent.
        """
        if account_ids is not None and not account_ids:
            return {}

        query = (
            select(
                JournalEntryLine.account_id,
                func.coalesce(func.sum(JournalEntryLine.debit_amount), _ZERO).label("debit_total"),
                func.coalesce(func.sum(JournalEntryLine.credit_amount), _ZERO).label("credit_total"),
                func.count(JournalEntryLine.id).label("line_count"),
            )
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(and_(*self._effective(tenant_id, start_date, end_date)))
            .where(JournalEntryLine.account_id.is_not(None))
            .group_by(JournalEntryLine.account_id)
        )

        if account_ids is not None:
            query = query.where(JournalEntryLine.account_id.in_(account_ids))

        return {
            row.account_id: LineTotals(
                account_id=row.account_id,
                debit_total=Decimal(row.debit_total or _ZERO),
                credit_total=Decimal(row.credit_total or _ZERO),
                line_count=row.line_count,
            )
            for row in self.session.execute(query).all()
        }

    def account_balance(
        self,
        account_id: UUID,
        tenant_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AccountBalance:
        """
        Type-aware balance of one account over an optional window.

        Raises:
            AccountNotFoundError: If the account does not exist for the tenant.
        """
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))

        totals = self.line_totals(tenant_id, [account_id], start_date, end_date).get(account_id)

        return AccountBalance(
            account_id=account.id,
            account_code=account.account_code,
            account_name=account.name,
            account_type=AccountType(account.account_type),
            debit_total=totals.debit_total if totals else _ZERO,
            credit_total=totals.credit_total if totals else _ZERO,
            line_count=totals.line_count if totals else 0,
            start_date=start_date,
            end_date=end_date,
        )

    def trial_balance(
        self,
        tenant_id: int,
        as_of_date: date | None = None,
    ) -> list[TrialBalanceRow]:
        """
        Trial balance as of a date, one row per account with effective lines.

        Sum of debit_total over all rows equals sum of credit_total, since
        only balanced entries are ever accepted.
        """
        query = (
            select(
                Account.id.label("account_id"),
                Account.account_code,
                Account.name.label("account_name"),
                Account.account_type,
                func.coalesce(func.sum(JournalEntryLine.debit_amount), _ZERO).label("debit_total"),
                func.coalesce(func.sum(JournalEntryLine.credit_amount), _ZERO).label("credit_total"),
            )
            .select_from(JournalEntryLine)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalEntryLine.account_id == Account.id)
            .where(and_(*self._effective(tenant_id, None, as_of_date)))
            .group_by(Account.id, Account.account_code, Account.name, Account.account_type)
            .order_by(Account.account_code)
        )

        return [
            TrialBalanceRow(
                account_id=row.account_id,
                account_code=row.account_code,
                account_name=row.account_name,
                account_type=AccountType(row.account_type),
                debit_total=Decimal(row.debit_total or _ZERO),
                credit_total=Decimal(row.credit_total or _ZERO),
            )
            for row in self.session.execute(query).all()
        ]

    def total_debits_credits(
        self,
        tenant_id: int,
        as_of_date: date | None = None,
    ) -> tuple[Decimal, Decimal]:
        """Total debits and credits across every account of a tenant."""
        query = (
            select(
                func.coalesce(func.sum(JournalEntryLine.debit_amount), _ZERO),
                func.coalesce(func.sum(JournalEntryLine.credit_amount), _ZERO),
            )
            .select_from(JournalEntryLine)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(and_(*self._effective(tenant_id, None, as_of_date)))
        )
        debits, credits = self.session.execute(query).one()
        return Decimal(debits or _ZERO), Decimal(credits or _ZERO)

    def lines(
        self,
        tenant_id: int,
        account_ids: list[UUID] | None = None,
        entry_ids: list[UUID] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[LedgerLine]:
        """
        Effective lines, optionally restricted to accounts and/or entries.

        Ordered by entry_date, entry id, then line_order.
        """
        if account_ids is not None and not account_ids:
            return []
        if entry_ids is not None and not entry_ids:
            return []

        query = (
            select(
                JournalEntryLine,
                JournalEntry.entry_date,
                JournalEntry.reference,
                Account.account_code,
                Account.name,
            )
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalEntryLine.account_id == Account.id)
            .where(and_(*self._effective(tenant_id, start_date, end_date)))
            .order_by(
                JournalEntry.entry_date,
                JournalEntry.id,
                JournalEntryLine.line_order,
            )
        )
        if account_ids is not None:
            query = query.where(JournalEntryLine.account_id.in_(account_ids))
        if entry_ids is not None:
            query = query.where(JournalEntryLine.journal_entry_id.in_(entry_ids))

        return [
            LedgerLine(
                journal_entry_id=line.journal_entry_id,
                journal_line_id=line.id,
                entry_date=entry_date,
                reference=reference,
                account_id=line.account_id,
                account_code=account_code,
                account_name=account_name,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                description=line.description,
                line_order=line.line_order,
            )
            for line, entry_date, reference, account_code, account_name in self.session.execute(query).all()
        ]

    def count_live_lines(self, tenant_id: int, account_id: UUID) -> int:
        """
        Lines of non-deleted entries referencing an account.

        Unposted drafts count: they still reference the account.
        """
        query = (
            select(func.count(JournalEntryLine.id))
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntryLine.tenant_id == tenant_id,
                JournalEntryLine.account_id == account_id,
                JournalEntry.is_deleted.is_(False),
            )
        )
        return self.session.execute(query).scalar_one()
