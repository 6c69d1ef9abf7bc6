"""
Tests for LedgerSelector -- balances are always derived from effective lines.

Validates:
- Sign convention: debit-normal (asset, expense) vs credit-normal types
- Soft-deleted and unposted entries never count
- Inclusive date windows
- Trial balance totals always agree
- Tenant isolation
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.chart import AccountType
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.selectors.ledger_selector import LedgerSelector, signed_balance

TENANT_ID = 1
OTHER_TENANT = 2


@pytest.fixture
def ledger(session):
    return LedgerSelector(session)


class TestSignedBalance:

    @pytest.mark.parametrize(
        "account_type,expected",
        [
            (AccountType.ASSET, Decimal("100")),
            (AccountType.EXPENSE, Decimal("100")),
            (AccountType.LIABILITY, Decimal("-100")),
            (AccountType.EQUITY, Decimal("-100")),
            (AccountType.REVENUE, Decimal("-100")),
        ],
    )
    def test_debit_heavy_account(self, account_type, expected):
        assert signed_balance(account_type, Decimal("150"), Decimal("50")) == expected


class TestAccountBalance:

    def test_same_entry_opposite_signs(self, ledger, role_accounts, account_by_name, post_entry):
        """Debit an asset 100, credit a liability 100: asset +100, liability +100."""
        payable = account_by_name("Accounts Payable")
        post_entry(debit=role_accounts["bank"], credit=payable, amount="100.00")

        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("100.00")
        assert ledger.account_balance(payable, TENANT_ID).balance == Decimal("100.00")

    def test_liability_debited_goes_negative(self, ledger, role_accounts, account_by_name, post_entry):
        payable = account_by_name("Accounts Payable")
        post_entry(debit=payable, credit=role_accounts["bank"], amount="100.00")

        assert ledger.account_balance(payable, TENANT_ID).balance == Decimal("-100.00")
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("-100.00")

    def test_soft_deleted_entries_excluded(self, ledger, journal_service, role_accounts, post_entry):
        kept = post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="70.00")
        dropped = post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="30.00")
        journal_service.delete_journal_entry(TENANT_ID, dropped.id)

        balance = ledger.account_balance(role_accounts["bank"], TENANT_ID)
        assert balance.balance == Decimal("70.00")
        assert balance.line_count == 1
        assert kept.id != dropped.id

    def test_drafts_excluded(self, ledger, role_accounts, post_entry):
        post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="70.00", is_posted=False)
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).line_count == 0

    def test_window_bounds_inclusive(self, ledger, role_accounts, post_entry):
        bank, revenue = role_accounts["bank"], role_accounts["revenue"]
        post_entry(debit=bank, credit=revenue, amount="1.00", entry_date=date(2024, 1, 1))
        post_entry(debit=bank, credit=revenue, amount="10.00", entry_date=date(2024, 1, 31))
        post_entry(debit=bank, credit=revenue, amount="100.00", entry_date=date(2024, 2, 1))

        january = ledger.account_balance(bank, TENANT_ID, date(2024, 1, 1), date(2024, 1, 31))
        assert january.balance == Decimal("11.00")
        from_feb = ledger.account_balance(bank, TENANT_ID, start_date=date(2024, 2, 1))
        assert from_feb.balance == Decimal("100.00")

    def test_unknown_account(self, ledger, role_accounts):
        with pytest.raises(AccountNotFoundError):
            ledger.account_balance(role_accounts["bank"], OTHER_TENANT)


class TestAggregates:

    def test_line_totals_omit_untouched_accounts(self, ledger, role_accounts, post_entry):
        post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="25.00")
        totals = ledger.line_totals(TENANT_ID)
        assert set(totals) == {role_accounts["bank"], role_accounts["revenue"]}
        assert totals[role_accounts["bank"]].debit_total == Decimal("25.00")
        assert totals[role_accounts["revenue"]].credit_total == Decimal("25.00")

    def test_line_totals_empty_filter(self, ledger):
        assert ledger.line_totals(TENANT_ID, account_ids=[]) == {}

    def test_trial_balance_balances(self, ledger, role_accounts, account_by_name, post_entry):
        post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="500.00")
        post_entry(debit=account_by_name("General Expenses"), credit=role_accounts["bank"], amount="120.00")

        rows = ledger.trial_balance(TENANT_ID)
        debits = sum((r.debit_total for r in rows), Decimal("0"))
        credits = sum((r.credit_total for r in rows), Decimal("0"))
        assert debits == credits == Decimal("620.00")
        assert [r.account_code for r in rows] == sorted(r.account_code for r in rows)
        assert ledger.total_debits_credits(TENANT_ID) == (Decimal("620.00"), Decimal("620.00"))

    def test_trial_balance_as_of(self, ledger, role_accounts, post_entry):
        post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="5.00", entry_date=date(2024, 5, 1))
        assert ledger.trial_balance(TENANT_ID, as_of_date=date(2024, 4, 30)) == []

    def test_lines_carry_entry_context(self, ledger, role_accounts, post_entry):
        entry = post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="5.00", reference="R-1")
        lines = ledger.lines(TENANT_ID, entry_ids=[entry.id])
        assert [ln.line_order for ln in lines] == [1, 2]
        assert {ln.reference for ln in lines} == {"R-1"}
        assert lines[0].account_name == "Main Bank Account"

    def test_other_tenant_sees_nothing(self, ledger, role_accounts, post_entry):
        post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="5.00")
        assert ledger.line_totals(OTHER_TENANT) == {}
        assert ledger.trial_balance(OTHER_TENANT) == []

    def test_count_live_lines_includes_drafts(self, ledger, role_accounts, post_entry):
        post_entry(debit=role_accounts["bank"], credit=role_accounts["revenue"], amount="5.00", is_posted=False)
        assert ledger.count_live_lines(TENANT_ID, role_accounts["bank"]) == 1
