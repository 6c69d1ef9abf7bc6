"""
Financial Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for report outputs: the account rollup
tree shared by every statement, and the Profit & Loss, Balance Sheet,
Cash Flow, Tax Summary, Expense and Trial Balance reports.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``ReportingService`` and ``statements.render_to_dict``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* A rollup node's ``total`` is the sum of its children's totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.chart import AccountRole, AccountType
from ledger_kernel.selectors.hierarchy_selector import GroupRef


class ReportType(str, Enum):
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    TAX_SUMMARY = "tax_summary"
    EXPENSE_REPORT = "expense_report"
    TRIAL_BALANCE = "trial_balance"


class CashFlowBucket(str, Enum):
    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


# =========================================================================
# Shared
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Echo of the parameters a report was generated with."""

    report_type: ReportType
    tenant_id: int
    start_date: date | None
    end_date: date
    generated_at: datetime


@dataclass(frozen=True)
class AccountLine:
    """One collected account: hierarchy path plus type-aware balance."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    role: AccountRole | None
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal
    main_group: GroupRef
    element_group: GroupRef
    sub_element_group: GroupRef
    detailed_group: GroupRef


@dataclass(frozen=True)
class RollupNode:
    """
    A node of the Main -> Element -> SubElement -> Detailed -> Account tree.

    Leaves have ``level == "account"`` and no children.
    """

    level: str
    id: UUID
    code: str
    name: str
    label: str
    total: Decimal
    children: tuple[RollupNode, ...] = ()


# =========================================================================
# Statements
# =========================================================================


@dataclass(frozen=True)
class ProfitAndLossReport:
    metadata: ReportMetadata
    revenue_tree: tuple[RollupNode, ...]
    expense_tree: tuple[RollupNode, ...]
    revenue_accounts: tuple[AccountLine, ...]
    expense_accounts: tuple[AccountLine, ...]
    total_revenue: Decimal
    total_expense: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet as of ``metadata.end_date``, cumulative since inception.

    Assets = Liabilities + Equity + current period earnings when the
    ledger is consistent; ``is_balanced`` reports the check.
    """

    metadata: ReportMetadata
    asset_tree: tuple[RollupNode, ...]
    liability_tree: tuple[RollupNode, ...]
    equity_tree: tuple[RollupNode, ...]
    asset_accounts: tuple[AccountLine, ...]
    liability_accounts: tuple[AccountLine, ...]
    equity_accounts: tuple[AccountLine, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    current_period_earnings: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class CashFlowLine:
    """Cash moved by one counter-account line of an entry touching cash."""

    journal_entry_id: UUID
    entry_date: date
    reference: str | None
    counter_account_id: UUID
    counter_account_code: str
    counter_account_name: str
    sub_element_name: str | None
    amount: Decimal  # positive = cash in


@dataclass(frozen=True)
class CashFlowSection:
    bucket: CashFlowBucket
    lines: tuple[CashFlowLine, ...]
    total: Decimal


@dataclass(frozen=True)
class CashFlowReport:
    metadata: ReportMetadata
    cash_accounts: tuple[AccountLine, ...]
    operating: CashFlowSection
    investing: CashFlowSection
    financing: CashFlowSection
    net_cash_flow: Decimal
    opening_cash: Decimal
    closing_cash: Decimal


@dataclass(frozen=True)
class TaxLine:
    account_id: UUID
    account_code: str
    account_name: str
    tax_collected: Decimal  # credits
    tax_paid: Decimal  # debits
    net_tax: Decimal  # credits - debits


@dataclass(frozen=True)
class TaxSummaryReport:
    metadata: ReportMetadata
    lines: tuple[TaxLine, ...]
    total_tax: Decimal


@dataclass(frozen=True)
class ExpenseReport:
    metadata: ReportMetadata
    category: GroupRef | None
    expense_tree: tuple[RollupNode, ...]
    expense_accounts: tuple[AccountLine, ...]
    total_expense: Decimal


@dataclass(frozen=True)
class TrialBalanceLine:
    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    lines: tuple[TrialBalanceLine, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool
