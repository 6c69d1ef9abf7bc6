"""
Financial Reporting Module (``ledger_modules.reporting``).

Responsibility
--------------
Read-only module that derives financial statements from the ledger:
Profit & Loss, Balance Sheet, Cash Flow, Tax Summary, Expense Report and
Trial Balance, each with a Main -> Element -> SubElement -> Detailed ->
Account rollup tree where applicable.

Architecture position
---------------------
**Modules layer** -- does NOT post journal entries.  Statement math is
implemented as pure functions in ``statements.py``.

Invariants enforced
-------------------
* No ledger state is mutated by this module.
* Balances derive entirely from posted, non-deleted journal lines; the
  cached ``Account.current_balance`` is never read.

Failure modes
-------------
* Tenant without a matching hierarchy -> empty report with zero totals.
"""

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AccountLine,
    BalanceSheetReport,
    CashFlowBucket,
    CashFlowLine,
    CashFlowReport,
    CashFlowSection,
    ExpenseReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    RollupNode,
    TaxLine,
    TaxSummaryReport,
    TrialBalanceLine,
    TrialBalanceReport,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import build_rollup, render_to_dict

__all__ = [
    "AccountLine",
    "BalanceSheetReport",
    "CashFlowBucket",
    "CashFlowLine",
    "CashFlowReport",
    "CashFlowSection",
    "ExpenseReport",
    "ProfitAndLossReport",
    "ReportMetadata",
    "ReportType",
    "ReportingConfig",
    "ReportingService",
    "RollupNode",
    "TaxLine",
    "TaxSummaryReport",
    "TrialBalanceLine",
    "TrialBalanceReport",
    "build_rollup",
    "render_to_dict",
]
