"""
Tests for the pure statement functions.

No database: account lines and ledger lines are built by hand.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ledger_kernel.domain.chart import AccountType
from ledger_kernel.selectors.hierarchy_selector import AccountPath, GroupRef
from ledger_kernel.selectors.ledger_selector import LedgerLine, LineTotals, TrialBalanceRow
from ledger_modules.reporting import CashFlowBucket, ReportingConfig, ReportMetadata, ReportType
from ledger_modules.reporting.statements import (
    build_cash_flow,
    build_profit_and_loss,
    build_rollup,
    build_trial_balance,
    classify_cash_flows,
    collect_account_lines,
    render_to_dict,
)


def ref(code: str, name: str) -> GroupRef:
    return GroupRef(id=uuid4(), code=code, name=name, label=name)


PL = ref("PL", "profit_and_loss")
INCOMES = ref("PL-I", "incomes")
EXPENSES = ref("PL-E", "expenses")
SALES = ref("PL-I-S", "sales")
OTHER_INCOME = ref("PL-I-OI", "other_income")
OPEX = ref("PL-E-OE", "operating_expenses")
SALES_DETAIL = ref("PL-I-S-SR", "custom")
OTHER_DETAIL = ref("PL-I-OI-IN", "custom")
OPEX_DETAIL = ref("PL-E-OE-GE", "custom")


def path(code, name, account_type, element, sub, detailed, main=PL) -> AccountPath:
    return AccountPath(
        account_id=uuid4(),
        account_code=code,
        account_name=name,
        account_type=account_type,
        role=None,
        is_active=True,
        is_system_account=False,
        main_group=main,
        element_group=element,
        sub_element_group=sub,
        detailed_group=detailed,
    )


def metadata(report_type=ReportType.PROFIT_AND_LOSS) -> ReportMetadata:
    return ReportMetadata(
        report_type=report_type,
        tenant_id=1,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 6, 30),
        generated_at=datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def income_paths():
    return [
        path("PL-I.PL-I-S.PL-I-S-SR.001", "Product Sales", AccountType.REVENUE, INCOMES, SALES, SALES_DETAIL),
        path("PL-I.PL-I-S.PL-I-S-SR.002", "Online Sales", AccountType.REVENUE, INCOMES, SALES, SALES_DETAIL),
        path("PL-I.PL-I-OI.PL-I-OI-IN.001", "Interest", AccountType.REVENUE, INCOMES, OTHER_INCOME, OTHER_DETAIL),
    ]


class TestCollect:

    def test_signed_balances(self, income_paths):
        totals = {
            income_paths[0].account_id: LineTotals(income_paths[0].account_id, Decimal("5"), Decimal("105"), 2),
        }
        lines = collect_account_lines(income_paths, totals)
        assert [line.balance for line in lines] == [Decimal("100"), Decimal("0"), Decimal("0")]
        assert lines[0].debit_total == Decimal("5")

    def test_expense_is_debit_normal(self):
        expense = path("PL-E.x.001", "Rent", AccountType.EXPENSE, EXPENSES, OPEX, OPEX_DETAIL)
        totals = {expense.account_id: LineTotals(expense.account_id, Decimal("40"), Decimal("0"), 1)}
        (line,) = collect_account_lines([expense], totals)
        assert line.balance == Decimal("40")


class TestRollup:

    def test_ancestor_totals(self, income_paths):
        totals = {
            p.account_id: LineTotals(p.account_id, Decimal("0"), amount, 1)
            for p, amount in zip(income_paths, [Decimal("100"), Decimal("50"), Decimal("7.5")])
        }
        (root,) = build_rollup(collect_account_lines(income_paths, totals))

        assert root.level == "main_group"
        assert root.total == Decimal("157.5")
        (incomes,) = root.children
        assert incomes.total == Decimal("157.5")
        sales, other = incomes.children
        assert (sales.name, sales.total) == ("sales", Decimal("150"))
        assert (other.name, other.total) == ("other_income", Decimal("7.5"))

        (detail,) = sales.children
        assert detail.level == "detailed_group"
        assert [(a.level, a.name, a.total) for a in detail.children] == [
            ("account", "Product Sales", Decimal("100")),
            ("account", "Online Sales", Decimal("50")),
        ]

    def test_first_seen_order(self, income_paths):
        lines = collect_account_lines(list(reversed(income_paths)), {})
        (root,) = build_rollup(lines)
        assert [child.name for child in root.children[0].children] == ["other_income", "sales"]

    def test_empty(self):
        assert build_rollup([]) == ()

    def test_two_main_groups(self):
        bs = ref("BS", "balance_sheet")
        assets = ref("BS-A", "assets")
        ca = ref("BS-A-CA", "current_assets")
        cb = ref("BS-A-CA-CB", "cash_bank_balances")
        paths = [
            path("BS-A.1", "Bank", AccountType.ASSET, assets, ca, cb, main=bs),
            path("PL-E.1", "Rent", AccountType.EXPENSE, EXPENSES, OPEX, OPEX_DETAIL),
        ]
        roots = build_rollup(collect_account_lines(paths, {}))
        assert [r.code for r in roots] == ["BS", "PL"]


class TestProfitAndLoss:

    def test_net_income(self, income_paths):
        expense = path("PL-E.x.001", "Rent", AccountType.EXPENSE, EXPENSES, OPEX, OPEX_DETAIL)
        totals = {
            income_paths[0].account_id: LineTotals(income_paths[0].account_id, Decimal("0"), Decimal("1000"), 1),
            expense.account_id: LineTotals(expense.account_id, Decimal("250"), Decimal("0"), 1),
        }
        revenue = collect_account_lines(income_paths, totals)
        costs = collect_account_lines([expense], totals)

        report = build_profit_and_loss(metadata(), revenue, costs)
        assert report.total_revenue == Decimal("1000")
        assert report.total_expense == Decimal("250")
        assert report.net_income == Decimal("750")
        (root,) = report.revenue_tree
        assert root.total == report.total_revenue


class TestCashFlowClassification:

    BANK = uuid4()
    PETTY = uuid4()
    SALES_ACCOUNT = uuid4()
    EQUIPMENT = uuid4()
    LOAN = uuid4()

    def line(self, entry_id, account_id, debit="0", credit="0", name="x"):
        return LedgerLine(
            journal_entry_id=entry_id,
            journal_line_id=uuid4(),
            entry_date=date(2024, 3, 1),
            reference=None,
            account_id=account_id,
            account_code=name,
            account_name=name,
            debit_amount=Decimal(debit),
            credit_amount=Decimal(credit),
            description=None,
            line_order=1,
        )

    @property
    def sub_elements(self) -> dict[UUID, str | None]:
        return {
            self.SALES_ACCOUNT: "sales",
            self.EQUIPMENT: "non_current_assets",
            self.LOAN: "non_current_liabilities",
        }

    def classify(self, lines):
        return classify_cash_flows(
            lines, frozenset({self.BANK, self.PETTY}), self.sub_elements, ReportingConfig()
        )

    def test_buckets(self):
        sale, purchase, loan = uuid4(), uuid4(), uuid4()
        buckets = self.classify(
            [
                self.line(sale, self.BANK, debit="200"),
                self.line(sale, self.SALES_ACCOUNT, credit="200"),
                self.line(purchase, self.EQUIPMENT, debit="80"),
                self.line(purchase, self.BANK, credit="80"),
                self.line(loan, self.BANK, debit="500"),
                self.line(loan, self.LOAN, credit="500"),
            ]
        )
        assert [l.amount for l in buckets[CashFlowBucket.OPERATING]] == [Decimal("200")]
        assert [l.amount for l in buckets[CashFlowBucket.INVESTING]] == [Decimal("-80")]
        assert [l.amount for l in buckets[CashFlowBucket.FINANCING]] == [Decimal("500")]

    def test_cash_to_cash_transfer_ignored(self):
        transfer = uuid4()
        buckets = self.classify(
            [self.line(transfer, self.PETTY, debit="50"), self.line(transfer, self.BANK, credit="50")]
        )
        assert all(lines == [] for lines in buckets.values())

    def test_entry_without_cash_ignored(self):
        accrual = uuid4()
        buckets = self.classify(
            [self.line(accrual, self.EQUIPMENT, debit="10"), self.line(accrual, self.LOAN, credit="10")]
        )
        assert all(lines == [] for lines in buckets.values())

    def test_split_entry_allocates_per_counter_line(self):
        split = uuid4()
        buckets = self.classify(
            [
                self.line(split, self.BANK, debit="300"),
                self.line(split, self.SALES_ACCOUNT, credit="100"),
                self.line(split, self.LOAN, credit="200"),
            ]
        )
        assert buckets[CashFlowBucket.OPERATING][0].amount == Decimal("100")
        assert buckets[CashFlowBucket.FINANCING][0].amount == Decimal("200")

    def test_unknown_sub_element_uses_default_bucket(self):
        entry = uuid4()
        unknown = uuid4()
        buckets = classify_cash_flows(
            [self.line(entry, self.BANK, debit="5"), self.line(entry, unknown, credit="5")],
            frozenset({self.BANK}),
            {},
            ReportingConfig(default_cash_flow_bucket="financing"),
        )
        assert buckets[CashFlowBucket.FINANCING][0].sub_element_name is None

    def test_build_cash_flow_totals(self):
        sale = uuid4()
        buckets = self.classify(
            [self.line(sale, self.BANK, debit="200"), self.line(sale, self.SALES_ACCOUNT, credit="200")]
        )
        report = build_cash_flow(metadata(ReportType.CASH_FLOW), (), buckets, Decimal("1000"))
        assert report.operating.total == Decimal("200")
        assert report.investing.total == Decimal("0")
        assert report.net_cash_flow == Decimal("200")
        assert report.closing_cash == Decimal("1200")


class TestTrialBalance:

    def test_totals(self):
        rows = [
            TrialBalanceRow(uuid4(), "A.1", "Bank", AccountType.ASSET, Decimal("300"), Decimal("100")),
            TrialBalanceRow(uuid4(), "I.1", "Sales", AccountType.REVENUE, Decimal("0"), Decimal("200")),
        ]
        report = build_trial_balance(metadata(ReportType.TRIAL_BALANCE), rows)
        assert report.total_debits == report.total_credits == Decimal("300")
        assert report.is_balanced is True
        assert [line.balance for line in report.lines] == [Decimal("200"), Decimal("200")]


class TestRenderToDict:

    def test_camel_case_and_money(self, income_paths):
        totals = {
            income_paths[0].account_id: LineTotals(income_paths[0].account_id, Decimal("0"), Decimal("1000"), 1),
        }
        report = build_profit_and_loss(metadata(), collect_account_lines(income_paths, totals), ())
        payload = render_to_dict(report)

        assert payload["totalRevenue"] == "1000.00"
        assert payload["netIncome"] == "1000.00"
        assert payload["totalExpense"] == "0.00"
        assert payload["metadata"] == {
            "reportType": "profit_and_loss",
            "tenantId": 1,
            "startDate": "2024-01-01",
            "endDate": "2024-06-30",
            "generatedAt": "2024-06-30T12:00:00+00:00",
        }
        account = payload["revenueAccounts"][0]
        assert account["accountId"] == str(income_paths[0].account_id)
        assert account["accountType"] == "revenue"
        assert account["mainGroup"]["code"] == "PL"
        assert isinstance(payload["revenueTree"], list)
        assert payload["revenueTree"][0]["children"][0]["label"] == "incomes"

    def test_negative_zero_and_rounding(self):
        assert render_to_dict(Decimal("-0.00")) == "0.00"
        assert render_to_dict(Decimal("12.345")) == "12.35"

    def test_passthrough(self):
        assert render_to_dict(None) is None
        assert render_to_dict(True) is True
        assert render_to_dict({"a": (1, 2)}) == {"a": [1, 2]}
