"""
Pure financial statement transformation functions.

These functions turn collected account lines and ledger lines into
statement dataclasses.  ZERO I/O. ZERO side effects.

Every statement shares two steps:

1. collect -- ``AccountLine`` per account: hierarchy path plus type-aware
   balance (done by the service through the kernel selectors)
2. roll up -- ``build_rollup`` folds the flat list into the
   Main -> Element -> SubElement -> Detailed -> Account tree, accumulating
   a running total at every ancestor as each leaf is folded in

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No clock access
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO, format_money
from ledger_kernel.selectors.hierarchy_selector import AccountPath
from ledger_kernel.selectors.ledger_selector import (
    LedgerLine,
    LineTotals,
    TrialBalanceRow,
    signed_balance,
)
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
    RollupNode,
    TaxLine,
    TaxSummaryReport,
    TrialBalanceLine,
    TrialBalanceReport,
)

_LEVELS = ("main_group", "element_group", "sub_element_group", "detailed_group")


# =========================================================================
# 1. COLLECT
# =========================================================================


def collect_account_lines(
    paths: Iterable[AccountPath],
    totals: dict[UUID, LineTotals],
) -> tuple[AccountLine, ...]:
    """Attach type-aware balances to accounts; accounts without lines balance to zero."""
    lines = []
    for path in paths:
        t = totals.get(path.account_id)
        debit = t.debit_total if t else ZERO
        credit = t.credit_total if t else ZERO
        lines.append(
            AccountLine(
                account_id=path.account_id,
                account_code=path.account_code,
                account_name=path.account_name,
                account_type=path.account_type,
                role=path.role,
                debit_total=debit,
                credit_total=credit,
                balance=signed_balance(path.account_type, debit, credit),
                main_group=path.main_group,
                element_group=path.element_group,
                sub_element_group=path.sub_element_group,
                detailed_group=path.detailed_group,
            )
        )
    return tuple(lines)


def sum_balances(lines: Iterable[AccountLine]) -> Decimal:
    return sum((line.balance for line in lines), ZERO)


# =========================================================================
# 2. ROLL UP
# =========================================================================


def build_rollup(lines: Sequence[AccountLine]) -> tuple[RollupNode, ...]:
    """
    Fold account lines into a four-level tree with totals at every node.

    Node order follows the first appearance of each group in ``lines``.
    """
    roots: dict[UUID, dict] = {}

    for line in lines:
        siblings = roots
        ancestors = []
        for level in _LEVELS:
            ref = getattr(line, level)
            node = siblings.get(ref.id)
            if node is None:
                node = {
                    "level": level,
                    "ref": ref,
                    "total": ZERO,
                    "children": {},
                    "accounts": [],
                }
                siblings[ref.id] = node
            ancestors.append(node)
            siblings = node["children"]

        for node in ancestors:
            node["total"] += line.balance
        ancestors[-1]["accounts"].append(
            RollupNode(
                level="account",
                id=line.account_id,
                code=line.account_code,
                name=line.account_name,
                label=line.account_name,
                total=line.balance,
            )
        )

    def freeze(node: dict) -> RollupNode:
        ref = node["ref"]
        if node["level"] == _LEVELS[-1]:
            children = tuple(node["accounts"])
        else:
            children = tuple(freeze(child) for child in node["children"].values())
        return RollupNode(
            level=node["level"],
            id=ref.id,
            code=ref.code,
            name=ref.name,
            label=ref.label,
            total=node["total"],
            children=children,
        )

    return tuple(freeze(root) for root in roots.values())


# =========================================================================
# 3. STATEMENTS
# =========================================================================


def build_profit_and_loss(
    metadata: ReportMetadata,
    revenue: Sequence[AccountLine],
    expense: Sequence[AccountLine],
) -> ProfitAndLossReport:
    total_revenue = sum_balances(revenue)
    total_expense = sum_balances(expense)
    return ProfitAndLossReport(
        metadata=metadata,
        revenue_tree=build_rollup(revenue),
        expense_tree=build_rollup(expense),
        revenue_accounts=tuple(revenue),
        expense_accounts=tuple(expense),
        total_revenue=total_revenue,
        total_expense=total_expense,
        net_income=total_revenue - total_expense,
    )


def build_balance_sheet(
    metadata: ReportMetadata,
    assets: Sequence[AccountLine],
    liabilities: Sequence[AccountLine],
    equity: Sequence[AccountLine],
    current_period_earnings: Decimal,
) -> BalanceSheetReport:
    total_assets = sum_balances(assets)
    total_liabilities = sum_balances(liabilities)
    total_equity = sum_balances(equity)
    total_le = total_liabilities + total_equity + current_period_earnings
    return BalanceSheetReport(
        metadata=metadata,
        asset_tree=build_rollup(assets),
        liability_tree=build_rollup(liabilities),
        equity_tree=build_rollup(equity),
        asset_accounts=tuple(assets),
        liability_accounts=tuple(liabilities),
        equity_accounts=tuple(equity),
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_equity=total_equity,
        current_period_earnings=current_period_earnings,
        total_liabilities_and_equity=total_le,
        is_balanced=total_assets == total_le,
    )


def classify_cash_flows(
    ledger_lines: Sequence[LedgerLine],
    cash_account_ids: frozenset[UUID],
    sub_element_by_account: dict[UUID, str | None],
    config: ReportingConfig,
) -> dict[CashFlowBucket, list[CashFlowLine]]:
    """
    Partition the cash movements of entries touching a cash account.

    Each non-cash line of such an entry moves ``credit - debit`` of cash
    (balanced entries make these sum to the cash lines' ``debit - credit``)
    and is bucketed by its account's sub-element group.  Entries moving
    cash only between cash accounts contribute nothing.
    """
    by_entry: dict[UUID, list[LedgerLine]] = {}
    for line in ledger_lines:
        by_entry.setdefault(line.journal_entry_id, []).append(line)

    buckets: dict[CashFlowBucket, list[CashFlowLine]] = {b: [] for b in CashFlowBucket}
    for entry_lines in by_entry.values():
        if not any(line.account_id in cash_account_ids for line in entry_lines):
            continue
        for line in entry_lines:
            if line.account_id in cash_account_ids:
                continue
            sub_element = sub_element_by_account.get(line.account_id)
            bucket = CashFlowBucket(config.bucket_for(sub_element))
            buckets[bucket].append(
                CashFlowLine(
                    journal_entry_id=line.journal_entry_id,
                    entry_date=line.entry_date,
                    reference=line.reference,
                    counter_account_id=line.account_id,
                    counter_account_code=line.account_code,
                    counter_account_name=line.account_name,
                    sub_element_name=sub_element,
                    amount=line.credit_amount - line.debit_amount,
                )
            )
    return buckets


def build_cash_flow(
    metadata: ReportMetadata,
    cash_accounts: Sequence[AccountLine],
    buckets: dict[CashFlowBucket, list[CashFlowLine]],
    opening_cash: Decimal,
) -> CashFlowReport:
    sections = {
        bucket: CashFlowSection(
            bucket=bucket,
            lines=tuple(buckets.get(bucket, ())),
            total=sum((line.amount for line in buckets.get(bucket, ())), ZERO),
        )
        for bucket in CashFlowBucket
    }
    net = sum((s.total for s in sections.values()), ZERO)
    return CashFlowReport(
        metadata=metadata,
        cash_accounts=tuple(cash_accounts),
        operating=sections[CashFlowBucket.OPERATING],
        investing=sections[CashFlowBucket.INVESTING],
        financing=sections[CashFlowBucket.FINANCING],
        net_cash_flow=net,
        opening_cash=opening_cash,
        closing_cash=opening_cash + net,
    )


def build_tax_summary(metadata: ReportMetadata, tax_accounts: Sequence[AccountLine]) -> TaxSummaryReport:
    lines = tuple(
        TaxLine(
            account_id=a.account_id,
            account_code=a.account_code,
            account_name=a.account_name,
            tax_collected=a.credit_total,
            tax_paid=a.debit_total,
            net_tax=a.credit_total - a.debit_total,
        )
        for a in tax_accounts
    )
    return TaxSummaryReport(
        metadata=metadata,
        lines=lines,
        total_tax=sum((line.net_tax for line in lines), ZERO),
    )


def build_expense_report(metadata: ReportMetadata, category, expense: Sequence[AccountLine]) -> ExpenseReport:
    return ExpenseReport(
        metadata=metadata,
        category=category,
        expense_tree=build_rollup(expense),
        expense_accounts=tuple(expense),
        total_expense=sum_balances(expense),
    )


def build_trial_balance(metadata: ReportMetadata, rows: Sequence[TrialBalanceRow]) -> TrialBalanceReport:
    lines = tuple(
        TrialBalanceLine(
            account_id=row.account_id,
            account_code=row.account_code,
            account_name=row.account_name,
            account_type=row.account_type,
            debit_total=row.debit_total,
            credit_total=row.credit_total,
            balance=row.balance,
        )
        for row in rows
    )
    total_debits = sum((line.debit_total for line in lines), ZERO)
    total_credits = sum((line.credit_total for line in lines), ZERO)
    return TrialBalanceReport(
        metadata=metadata,
        lines=lines,
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=total_debits == total_credits,
    )


# =========================================================================
# 4. RENDERER (dict/JSON output)
# =========================================================================


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def render_to_dict(obj: object) -> dict | list | str | int | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - field names -> camelCase (``total_revenue`` -> ``totalRevenue``)
    - Decimal -> 2-decimal string (``"1000.00"``)
    - UUID -> str
    - date / datetime -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return format_money(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            _camel(f.name): render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, bool)):
        return obj
    return str(obj)
