"""
Tests for payment reconciliation and ledger postings of invoices.

Validates:
- Threshold rule: sent -> partially_paid -> paid as payments accumulate
- Overpayment floors amount_due at zero
- Updating and deleting payments re-derives amounts and status
- Approval and payment postings hit the role-tagged accounts
- Canceled / void invoices reverse their own entries and refuse payments
- Line items freeze once the receivable is posted or the invoice is closed
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.exceptions import (
    AccountRoleNotFoundError,
    InvalidAccountTypeError,
    InvalidAmountError,
    InvalidStatusTransitionError,
    InvoiceLockedError,
    PaymentNotFoundError,
)
from ledger_kernel.models.journal import SourceDocumentType
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_modules.invoicing import InvoiceService, InvoiceStatus, LineItemInput, PaymentMethod

TENANT_ID = 1
OTHER_TENANT = 2


@pytest.fixture
def invoice_service(session, deterministic_clock):
    return InvoiceService(session, clock=deterministic_clock)


@pytest.fixture
def ledger(session):
    return LedgerSelector(session)


@pytest.fixture
def sent_invoice(invoice_service):
    """A 100.00 invoice in ``sent`` status, nothing posted."""
    invoice = invoice_service.create_invoice(
        TENANT_ID,
        "INV-100",
        issue_date=date(2024, 3, 1),
        line_items=[LineItemInput("Retainer", 1, "100")],
    )
    return invoice_service.change_status(TENANT_ID, invoice.id, InvoiceStatus.SENT)


@pytest.fixture
def taxed_invoice(invoice_service, seeded_chart):
    """A 110.00 draft invoice (100 net + 10 tax) for a seeded tenant."""
    return invoice_service.create_invoice(
        TENANT_ID,
        "INV-TAX",
        issue_date=date(2024, 3, 1),
        line_items=[LineItemInput("Consulting", 1, "100", tax_rate="0.10")],
    )


class TestApplyPayment:

    def test_threshold_progression(self, invoice_service, sent_invoice):
        assert sent_invoice.status is InvoiceStatus.SENT

        first = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "50.00", payment_date=date(2024, 3, 5))
        assert first.invoice.status is InvoiceStatus.PARTIALLY_PAID
        assert first.invoice.amount_paid == Decimal("50.00")
        assert first.invoice.amount_due == Decimal("50.00")
        assert first.journal_entry_id is None

        second = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "50.00", payment_date=date(2024, 3, 9))
        assert second.invoice.status is InvoiceStatus.PAID
        assert second.invoice.amount_due == Decimal("0")
        assert len(second.invoice.payments) == 2

    def test_overpayment_floors_due(self, invoice_service, sent_invoice):
        result = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "150.00")
        assert result.invoice.status is InvoiceStatus.PAID
        assert result.invoice.amount_paid == Decimal("150.00")
        assert result.invoice.amount_due == Decimal("0")

    def test_default_date_and_method(self, invoice_service, sent_invoice):
        payment = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "10.00").payment
        assert payment.payment_date == date(2024, 6, 30)
        assert payment.payment_method is PaymentMethod.BANK_TRANSFER

    @pytest.mark.parametrize("amount", ["0", "-5", "1.234", 12.5])
    def test_invalid_amounts(self, invoice_service, sent_invoice, amount):
        with pytest.raises(InvalidAmountError):
            invoice_service.apply_payment(TENANT_ID, sent_invoice.id, amount)

    @pytest.mark.parametrize("closed", [InvoiceStatus.CANCELED, InvoiceStatus.VOID])
    def test_closed_invoice_refuses_payment(self, invoice_service, sent_invoice, closed):
        invoice_service.change_status(TENANT_ID, sent_invoice.id, closed)
        with pytest.raises(InvalidStatusTransitionError):
            invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "10.00")

    def test_posting_requires_role_accounts(self, invoice_service, sent_invoice):
        # Tenant has no seeded chart: nothing is written
        with pytest.raises(AccountRoleNotFoundError):
            invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "10.00", post_to_ledger=True)
        assert invoice_service.get_invoice(TENANT_ID, sent_invoice.id).payments == ()


class TestUpdateAndDeletePayment:

    def test_update_reverses_old_amount(self, invoice_service, sent_invoice):
        payment = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "100.00").payment
        result = invoice_service.update_payment(TENANT_ID, payment.id, amount="40.00")
        assert result.payment.amount == Decimal("40.00")
        assert result.invoice.amount_paid == Decimal("40.00")
        assert result.invoice.amount_due == Decimal("60.00")
        assert result.invoice.status is InvoiceStatus.PARTIALLY_PAID

    def test_delete_reverses_amount(self, invoice_service, sent_invoice):
        first = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "30.00").payment
        invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "70.00")

        invoice = invoice_service.delete_payment(TENANT_ID, first.id)
        assert invoice.amount_paid == Decimal("70.00")
        assert invoice.status is InvoiceStatus.PARTIALLY_PAID
        assert len(invoice_service.list_payments(TENANT_ID, sent_invoice.id)) == 1

    def test_delete_last_payment_returns_to_sent(self, invoice_service, sent_invoice):
        payment = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "30.00").payment
        invoice = invoice_service.delete_payment(TENANT_ID, payment.id)
        assert invoice.amount_paid == Decimal("0")
        assert invoice.status is InvoiceStatus.SENT

    def test_cross_tenant_payment(self, invoice_service, sent_invoice):
        payment = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "30.00").payment
        with pytest.raises(PaymentNotFoundError):
            invoice_service.update_payment(OTHER_TENANT, payment.id, amount="1.00")
        with pytest.raises(PaymentNotFoundError):
            invoice_service.delete_payment(OTHER_TENANT, payment.id)


class TestLedgerPostings:

    def test_approval_posts_receivable(self, invoice_service, taxed_invoice, ledger, role_accounts):
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)

        assert ledger.account_balance(role_accounts["accounts_receivable"], TENANT_ID).balance == Decimal("110.00")
        assert ledger.account_balance(role_accounts["revenue"], TENANT_ID).balance == Decimal("100.00")
        assert ledger.account_balance(role_accounts["tax_liability"], TENANT_ID).balance == Decimal("10.00")

    def test_approval_posts_once(self, invoice_service, journal_service, taxed_invoice):
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.SENT, post_to_ledger=True)
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        entries = journal_service.list_entries(
            TENANT_ID, source_document=SourceDocumentType.INVOICE, source_document_id=taxed_invoice.id
        )
        assert len(entries) == 1
        assert entries[0].entry_type_code == "INVAP"
        assert entries[0].reference == "INV-INV-TAX"

    def test_zero_invoice_not_posted(self, invoice_service, seeded_chart):
        empty = invoice_service.create_invoice(TENANT_ID, "INV-0")
        with pytest.raises(InvalidAmountError):
            invoice_service.change_status(TENANT_ID, empty.id, InvoiceStatus.APPROVED, post_to_ledger=True)

    def test_revenue_override_must_be_revenue(self, invoice_service, taxed_invoice, role_accounts):
        with pytest.raises(InvalidAccountTypeError):
            invoice_service.change_status(
                TENANT_ID,
                taxed_invoice.id,
                InvoiceStatus.APPROVED,
                post_to_ledger=True,
                revenue_account_id=role_accounts["bank"],
            )
        assert invoice_service.get_invoice(TENANT_ID, taxed_invoice.id).status is InvoiceStatus.DRAFT

    def test_payment_posts_to_bank(self, invoice_service, taxed_invoice, ledger, role_accounts):
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        result = invoice_service.apply_payment(TENANT_ID, taxed_invoice.id, "110.00", post_to_ledger=True)

        assert result.journal_entry_id is not None
        assert result.invoice.status is InvoiceStatus.PAID
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("110.00")
        assert ledger.account_balance(role_accounts["accounts_receivable"], TENANT_ID).balance == Decimal("0")

    def test_cash_payment_posts_to_cash(self, invoice_service, taxed_invoice, ledger, role_accounts):
        invoice_service.apply_payment(
            TENANT_ID, taxed_invoice.id, "20.00", payment_method=PaymentMethod.CASH, post_to_ledger=True
        )
        assert ledger.account_balance(role_accounts["cash"], TENANT_ID).balance == Decimal("20.00")
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("0")

    def test_update_posted_payment_reposts(self, invoice_service, journal_service, taxed_invoice, ledger, role_accounts):
        result = invoice_service.apply_payment(TENANT_ID, taxed_invoice.id, "60.00", post_to_ledger=True)
        updated = invoice_service.update_payment(TENANT_ID, result.payment.id, amount="45.00")

        assert updated.journal_entry_id is not None
        assert updated.journal_entry_id != result.journal_entry_id
        assert journal_service.get_entry(TENANT_ID, result.journal_entry_id).is_deleted is True
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("45.00")

    def test_delete_posted_payment_reverses_entry(self, invoice_service, taxed_invoice, ledger, role_accounts):
        result = invoice_service.apply_payment(TENANT_ID, taxed_invoice.id, "60.00", post_to_ledger=True)
        invoice_service.delete_payment(TENANT_ID, result.payment.id)
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("0")

    def test_void_reverses_invoice_entries_only(self, invoice_service, taxed_invoice, ledger, role_accounts):
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        invoice_service.apply_payment(TENANT_ID, taxed_invoice.id, "110.00", post_to_ledger=True)
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.VOID)

        assert ledger.account_balance(role_accounts["revenue"], TENANT_ID).balance == Decimal("0")
        assert ledger.account_balance(role_accounts["bank"], TENANT_ID).balance == Decimal("110.00")
        assert ledger.account_balance(role_accounts["accounts_receivable"], TENANT_ID).balance == Decimal("-110.00")


class TestInvoiceLocking:

    def test_posted_invoice_refuses_line_item_changes(self, invoice_service, taxed_invoice, ledger, role_accounts):
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        line_id = taxed_invoice.line_items[0].id

        with pytest.raises(InvoiceLockedError) as exc_info:
            invoice_service.add_line_item(TENANT_ID, taxed_invoice.id, LineItemInput("Extra", 1, "50"))
        assert exc_info.value.status == "approved"
        with pytest.raises(InvoiceLockedError):
            invoice_service.update_line_item(TENANT_ID, line_id, LineItemInput("Consulting", 2, "100"))
        with pytest.raises(InvoiceLockedError):
            invoice_service.remove_line_item(TENANT_ID, line_id)

        invoice = invoice_service.get_invoice(TENANT_ID, taxed_invoice.id)
        receivable = ledger.account_balance(role_accounts["accounts_receivable"], TENANT_ID).balance
        assert invoice.total_amount == Decimal("110.00")
        assert receivable == invoice.total_amount

    def test_reopened_invoice_is_editable(self, invoice_service, taxed_invoice):
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.CANCELED)
        invoice_service.change_status(TENANT_ID, taxed_invoice.id, InvoiceStatus.DRAFT)

        invoice = invoice_service.add_line_item(TENANT_ID, taxed_invoice.id, LineItemInput("Extra", 1, "50"))
        assert invoice.total_amount == Decimal("160.00")

    @pytest.mark.parametrize("closed", [InvoiceStatus.CANCELED, InvoiceStatus.VOID])
    def test_closed_invoice_refuses_line_item_changes(self, invoice_service, sent_invoice, closed):
        invoice_service.change_status(TENANT_ID, sent_invoice.id, closed)
        line_id = sent_invoice.line_items[0].id

        with pytest.raises(InvoiceLockedError):
            invoice_service.add_line_item(TENANT_ID, sent_invoice.id, LineItemInput("Extra", 1, "50"))
        with pytest.raises(InvoiceLockedError):
            invoice_service.update_line_item(TENANT_ID, line_id, LineItemInput("Retainer", 1, "150"))
        with pytest.raises(InvoiceLockedError):
            invoice_service.remove_line_item(TENANT_ID, line_id)

        invoice = invoice_service.get_invoice(TENANT_ID, sent_invoice.id)
        assert invoice.status is closed
        assert invoice.total_amount == Decimal("100.00")

    def test_void_invoice_refuses_payment_update(self, invoice_service, sent_invoice):
        payment = invoice_service.apply_payment(TENANT_ID, sent_invoice.id, "30.00").payment
        invoice_service.change_status(TENANT_ID, sent_invoice.id, InvoiceStatus.VOID)

        with pytest.raises(InvalidStatusTransitionError):
            invoice_service.update_payment(TENANT_ID, payment.id, amount="90.00")

        invoice = invoice_service.get_invoice(TENANT_ID, sent_invoice.id)
        assert invoice.status is InvoiceStatus.VOID
        assert invoice.amount_paid == Decimal("30.00")
