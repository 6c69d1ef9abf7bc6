"""
Reporting Module Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Orchestrates financial statement generation -- Profit & Loss, Balance
Sheet, Cash Flow, Tax Summary, Expense Report and Trial Balance -- by
bridging the kernel selectors (``HierarchySelector``, ``LedgerSelector``)
to the pure transformation functions in ``statements.py``.  This is a
**read-only** service: no journal entries are posted and nothing is
flushed.

Architecture position
---------------------
**Modules layer** -- thin glue.  Constructor: ``session`` + ``clock`` +
``config``.

Invariants enforced
-------------------
* Read-only -- no mutations to the ledger.
* Only posted, non-deleted journal lines contribute (selector contract).
* Only active accounts are collected.
* Report metadata echoes the effective date range, including
  server-chosen defaults.

Failure modes
-------------
* ``InvalidDateRangeError`` when ``start_date`` is after ``end_date``,
  raised before any query.
* A tenant without matching accounts or an unknown expense category
  yields an empty report with zero totals.
"""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.chart import AccountRole, AccountType, DetailedGroupName
from ledger_kernel.domain.clock import Clock, SystemClock, fiscal_year_start
from ledger_kernel.exceptions import InvalidDateRangeError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.hierarchy_selector import AccountPath, HierarchySelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AccountLine,
    BalanceSheetReport,
    CashFlowReport,
    ExpenseReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TaxSummaryReport,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    build_balance_sheet,
    build_cash_flow,
    build_expense_report,
    build_profit_and_loss,
    build_tax_summary,
    build_trial_balance,
    classify_cash_flows,
    collect_account_lines,
    sum_balances,
)

logger = get_logger("modules.reporting.service")

CASH_ROLES = (AccountRole.CASH, AccountRole.BANK)


class ReportingService:
    """
    Financial statement generation service.

    Contract
    --------
    * Every public method returns a typed frozen report DTO.
    * All methods are **read-only**; calling one twice with the same
      arguments and no intervening writes returns identical totals.

    Guarantees
    ----------
    * No financial logic lives in this class; it loads data and delegates
      to ``statements.py``.
    * Clock is injectable for deterministic default periods.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._hierarchy = HierarchySelector(session)
        self._ledger = LedgerSelector(session)

        logger.debug(
            "reporting_service_initialized",
            extra={"fiscal_year_start_month": self._config.fiscal_year_start_month},
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _resolve_period(
        self,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[date, date]:
        """Default to the current fiscal year up to today."""
        end = end_date or self._clock.today()
        if start_date is None:
            start = fiscal_year_start(end, self._config.fiscal_year_start_month)
        else:
            start = start_date
        if start > end:
            raise InvalidDateRangeError(start.isoformat(), end.isoformat())
        return start, end

    def _metadata(
        self,
        report_type: ReportType,
        tenant_id: int,
        start_date: date | None,
        end_date: date,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            tenant_id=tenant_id,
            start_date=start_date,
            end_date=end_date,
            generated_at=self._clock.now(),
        )

    def _collect(
        self,
        paths: list[AccountPath],
        tenant_id: int,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[AccountLine, ...]:
        totals = self._ledger.line_totals(
            tenant_id,
            account_ids=[p.account_id for p in paths],
            start_date=start_date,
            end_date=end_date,
        )
        return collect_account_lines(paths, totals)

    def _collect_type(
        self,
        tenant_id: int,
        account_type: AccountType,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[AccountLine, ...]:
        paths = self._hierarchy.accounts_with_path(tenant_id, account_types=[account_type])
        return self._collect(paths, tenant_id, start_date, end_date)

    def _cash_account_paths(self, tenant_id: int) -> list[AccountPath]:
        """Accounts tagged cash/bank plus any under a cash & bank balances group."""
        by_role = self._hierarchy.accounts_with_path(tenant_id, roles=list(CASH_ROLES))
        by_group = self._hierarchy.accounts_with_path(
            tenant_id,
            detailed_group_names=[DetailedGroupName.CASH_BANK_BALANCES.value],
        )
        merged = {p.account_id: p for p in by_role}
        for path in by_group:
            merged.setdefault(path.account_id, path)
        return sorted(merged.values(), key=lambda p: p.account_code)

    def _tax_account_paths(self, tenant_id: int) -> list[AccountPath]:
        """Accounts tagged tax_liability plus any under a tax payables group."""
        by_role = self._hierarchy.accounts_with_path(
            tenant_id, roles=[AccountRole.TAX_LIABILITY],
        )
        by_group = self._hierarchy.accounts_with_path(
            tenant_id,
            detailed_group_names=[DetailedGroupName.TAX_PAYABLES.value],
        )
        merged = {p.account_id: p for p in by_role}
        for path in by_group:
            merged.setdefault(path.account_id, path)
        return sorted(merged.values(), key=lambda p: p.account_code)

    def _log_generated(self, metadata: ReportMetadata, **fields) -> None:
        logger.info(
            "report_generated",
            extra={
                "report_type": metadata.report_type.value,
                "tenant_id": metadata.tenant_id,
                "start_date": metadata.start_date.isoformat() if metadata.start_date else None,
                "end_date": metadata.end_date.isoformat(),
                **fields,
            },
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def profit_and_loss(
        self,
        tenant_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ProfitAndLossReport:
        """
        Revenue and expense over ``[start_date, end_date]``.

        Defaults to the start of the current fiscal year through today.
        """
        start, end = self._resolve_period(start_date, end_date)
        revenue = self._collect_type(tenant_id, AccountType.REVENUE, start, end)
        expense = self._collect_type(tenant_id, AccountType.EXPENSE, start, end)

        metadata = self._metadata(ReportType.PROFIT_AND_LOSS, tenant_id, start, end)
        report = build_profit_and_loss(metadata, revenue, expense)
        self._log_generated(metadata, net_income=str(report.net_income))
        return report

    def balance_sheet(
        self,
        tenant_id: int,
        as_of_date: date | None = None,
    ) -> BalanceSheetReport:
        """
        Assets, liabilities and equity cumulative through ``as_of_date``.

        Net income not yet closed to equity is reported as
        ``current_period_earnings`` so that the sheet balances.
        """
        as_of = as_of_date or self._clock.today()
        assets = self._collect_type(tenant_id, AccountType.ASSET, None, as_of)
        liabilities = self._collect_type(tenant_id, AccountType.LIABILITY, None, as_of)
        equity = self._collect_type(tenant_id, AccountType.EQUITY, None, as_of)

        revenue = self._collect_type(tenant_id, AccountType.REVENUE, None, as_of)
        expense = self._collect_type(tenant_id, AccountType.EXPENSE, None, as_of)
        earnings = sum_balances(revenue) - sum_balances(expense)

        metadata = self._metadata(ReportType.BALANCE_SHEET, tenant_id, None, as_of)
        report = build_balance_sheet(metadata, assets, liabilities, equity, earnings)
        if not report.is_balanced:
            logger.warning(
                "balance_sheet_out_of_balance",
                extra={
                    "tenant_id": tenant_id,
                    "total_assets": str(report.total_assets),
                    "total_liabilities_and_equity": str(report.total_liabilities_and_equity),
                },
            )
        self._log_generated(metadata, is_balanced=report.is_balanced)
        return report

    def cash_flow(
        self,
        tenant_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> CashFlowReport:
        """
        Cash movements over the period, split into operating / investing /
        financing by the counter account's sub-element group.
        """
        start, end = self._resolve_period(start_date, end_date)
        cash_paths = self._cash_account_paths(tenant_id)
        cash_ids = [p.account_id for p in cash_paths]
        cash_accounts = self._collect(cash_paths, tenant_id, start, end)

        opening_totals = self._ledger.line_totals(
            tenant_id, account_ids=cash_ids, end_date=start - timedelta(days=1),
        )
        opening_cash = sum_balances(collect_account_lines(cash_paths, opening_totals))

        cash_lines = self._ledger.lines(tenant_id, account_ids=cash_ids, start_date=start, end_date=end)
        entry_ids = list(dict.fromkeys(line.journal_entry_id for line in cash_lines))
        entry_lines = self._ledger.lines(tenant_id, entry_ids=entry_ids, start_date=start, end_date=end)

        counter_ids = list(
            dict.fromkeys(line.account_id for line in entry_lines if line.account_id not in cash_ids)
        )
        sub_elements = {
            p.account_id: p.sub_element_group.name
            for p in self._hierarchy.accounts_with_path(
                tenant_id, active_only=False, account_ids=counter_ids,
            )
        }

        buckets = classify_cash_flows(entry_lines, frozenset(cash_ids), sub_elements, self._config)
        metadata = self._metadata(ReportType.CASH_FLOW, tenant_id, start, end)
        report = build_cash_flow(metadata, cash_accounts, buckets, opening_cash)
        self._log_generated(
            metadata,
            cash_account_count=len(cash_ids),
            net_cash_flow=str(report.net_cash_flow),
        )
        return report

    def tax_summary(
        self,
        tenant_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> TaxSummaryReport:
        """Tax collected (credits) less tax paid (debits) per tax account."""
        start, end = self._resolve_period(start_date, end_date)
        tax_accounts = self._collect(self._tax_account_paths(tenant_id), tenant_id, start, end)

        metadata = self._metadata(ReportType.TAX_SUMMARY, tenant_id, start, end)
        report = build_tax_summary(metadata, tax_accounts)
        self._log_generated(metadata, total_tax=str(report.total_tax))
        return report

    def expense_report(
        self,
        tenant_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        category_id: UUID | None = None,
    ) -> ExpenseReport:
        """
        Expense accounts over the period, optionally limited to one
        sub-element group (the expense category).
        """
        start, end = self._resolve_period(start_date, end_date)

        category = None
        if category_id is not None:
            category = self._hierarchy.find_sub_element_group(tenant_id, category_id)
            if category is None:
                logger.warning(
                    "expense_category_not_found",
                    extra={"tenant_id": tenant_id, "category_id": str(category_id)},
                )
                metadata = self._metadata(ReportType.EXPENSE_REPORT, tenant_id, start, end)
                return build_expense_report(metadata, None, ())

        paths = self._hierarchy.accounts_with_path(
            tenant_id,
            account_types=[AccountType.EXPENSE],
            sub_element_group_id=category_id,
        )
        expense = self._collect(paths, tenant_id, start, end)

        metadata = self._metadata(ReportType.EXPENSE_REPORT, tenant_id, start, end)
        report = build_expense_report(metadata, category, expense)
        self._log_generated(metadata, total_expense=str(report.total_expense))
        return report

    def trial_balance(
        self,
        tenant_id: int,
        as_of_date: date | None = None,
    ) -> TrialBalanceReport:
        """Debit and credit totals per account through ``as_of_date``."""
        as_of = as_of_date or self._clock.today()
        rows = self._ledger.trial_balance(tenant_id, as_of_date=as_of)

        metadata = self._metadata(ReportType.TRIAL_BALANCE, tenant_id, None, as_of)
        report = build_trial_balance(metadata, rows)
        self._log_generated(metadata, line_count=len(report.lines), is_balanced=report.is_balanced)
        return report

