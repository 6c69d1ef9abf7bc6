"""
Tests for InvoiceService -- invoices and line items.

Validates:
- Money fields are recomputed from the full line-item set on every change
- Invoice numbers are unique per tenant
- Tenant isolation on every read and mutation
- Soft delete hides invoices; hard delete is blocked by journal entries
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    DuplicateInvoiceNumberError,
    HasDependenciesError,
    InvalidDateRangeError,
    InvalidRateError,
    InvoiceLineItemNotFoundError,
    InvoiceNotFoundError,
    MissingFieldError,
)
from ledger_modules.invoicing import InvoiceService, InvoiceStatus, LineItemInput

TENANT_ID = 1
OTHER_TENANT = 2


@pytest.fixture
def invoice_service(session, deterministic_clock):
    return InvoiceService(session, clock=deterministic_clock)


@pytest.fixture
def two_line_invoice(invoice_service):
    return invoice_service.create_invoice(
        TENANT_ID,
        "INV-0001",
        issue_date=date(2024, 3, 1),
        due_date=date(2024, 3, 31),
        client_id=42,
        line_items=[
            LineItemInput("Consulting", 1, "100", tax_rate="0.10"),
            LineItemInput("Widgets", 2, "50", discount_rate="0.10"),
        ],
    )


def assert_consistent(invoice):
    """The reconciliation identities every invoice satisfies after any call."""
    gross = [li.line_total - li.tax_amount + li.discount_amount for li in invoice.line_items]
    assert invoice.subtotal == sum(gross, Decimal("0"))
    assert invoice.tax_amount == sum((li.tax_amount for li in invoice.line_items), Decimal("0"))
    assert invoice.discount_amount == sum((li.discount_amount for li in invoice.line_items), Decimal("0"))
    assert invoice.total_amount == invoice.subtotal + invoice.tax_amount - invoice.discount_amount
    assert invoice.amount_paid == sum((p.amount for p in invoice.payments), Decimal("0"))
    assert invoice.amount_due == max(Decimal("0"), invoice.total_amount - invoice.amount_paid)


class TestCreateInvoice:

    def test_two_line_totals(self, two_line_invoice):
        assert two_line_invoice.status is InvoiceStatus.DRAFT
        assert two_line_invoice.subtotal == Decimal("200.00")
        assert two_line_invoice.tax_amount == Decimal("10.00")
        assert two_line_invoice.discount_amount == Decimal("10.00")
        assert two_line_invoice.total_amount == Decimal("200.00")
        assert two_line_invoice.amount_due == Decimal("200.00")
        assert [li.line_total for li in two_line_invoice.line_items] == [Decimal("110.00"), Decimal("90.00")]
        assert [li.sort_order for li in two_line_invoice.line_items] == [1, 2]
        assert_consistent(two_line_invoice)

    def test_defaults(self, invoice_service):
        invoice = invoice_service.create_invoice(TENANT_ID, " INV-7 ")
        assert invoice.invoice_number == "INV-7"
        assert invoice.issue_date == date(2024, 6, 30)
        assert invoice.currency_code == "USD"
        assert invoice.total_amount == Decimal("0")
        assert invoice.line_items == ()

    def test_duplicate_number_rejected(self, invoice_service, two_line_invoice):
        with pytest.raises(DuplicateInvoiceNumberError):
            invoice_service.create_invoice(TENANT_ID, "INV-0001")

    def test_same_number_other_tenant(self, invoice_service, two_line_invoice):
        other = invoice_service.create_invoice(OTHER_TENANT, "INV-0001")
        assert other.id != two_line_invoice.id

    def test_blank_number_rejected(self, invoice_service):
        with pytest.raises(MissingFieldError):
            invoice_service.create_invoice(TENANT_ID, "  ")

    def test_due_before_issue_rejected(self, invoice_service):
        with pytest.raises(InvalidDateRangeError):
            invoice_service.create_invoice(
                TENANT_ID, "INV-9", issue_date=date(2024, 3, 10), due_date=date(2024, 3, 1)
            )

    def test_invalid_line_rejected(self, invoice_service):
        with pytest.raises(InvalidRateError):
            invoice_service.create_invoice(
                TENANT_ID, "INV-9", line_items=[LineItemInput("Bad", 1, "10", tax_rate="1.5")]
            )

    def test_creation_logged(self, invoice_service, captured_logs):
        invoice_service.create_invoice(TENANT_ID, "INV-LOG")
        created = [r for r in captured_logs() if r["message"] == "invoice_created"]
        assert created[0]["invoice_number"] == "INV-LOG"
        assert "invoice_id" in created[0]


class TestLineItems:

    def test_add_recomputes(self, invoice_service, two_line_invoice):
        invoice = invoice_service.add_line_item(
            TENANT_ID, two_line_invoice.id, LineItemInput("Support", 3, "33.333")
        )
        assert invoice.subtotal == Decimal("300.00")
        assert invoice.total_amount == Decimal("300.00")
        assert invoice.line_items[-1].sort_order == 3
        assert_consistent(invoice)

    def test_update_recomputes(self, invoice_service, two_line_invoice):
        first = two_line_invoice.line_items[0]
        invoice = invoice_service.update_line_item(
            TENANT_ID, first.id, LineItemInput("Consulting", 2, "100", tax_rate="0.10")
        )
        assert invoice.subtotal == Decimal("300.00")
        assert invoice.tax_amount == Decimal("20.00")
        assert invoice.total_amount == Decimal("310.00")
        assert invoice.line_items[0].sort_order == 1
        assert_consistent(invoice)

    def test_remove_recomputes(self, invoice_service, two_line_invoice):
        invoice = invoice_service.remove_line_item(TENANT_ID, two_line_invoice.line_items[1].id)
        assert invoice.subtotal == Decimal("100.00")
        assert invoice.total_amount == Decimal("110.00")
        assert_consistent(invoice)

    def test_sequence_of_operations_stays_consistent(self, invoice_service, two_line_invoice):
        invoice = invoice_service.add_line_item(TENANT_ID, two_line_invoice.id, LineItemInput("A", "1.5", "19.99", "0.07"))
        assert_consistent(invoice)
        invoice = invoice_service.apply_payment(TENANT_ID, invoice.id, "50.00").invoice
        assert_consistent(invoice)
        invoice = invoice_service.update_line_item(
            TENANT_ID, invoice.line_items[2].id, LineItemInput("A", "2", "19.99", "0.07", "0.05")
        )
        assert_consistent(invoice)
        invoice = invoice_service.remove_line_item(TENANT_ID, invoice.line_items[0].id)
        assert_consistent(invoice)
        assert invoice.status is InvoiceStatus.PARTIALLY_PAID

    def test_edit_without_payments_keeps_status(self, invoice_service, two_line_invoice):
        invoice = invoice_service.add_line_item(TENANT_ID, two_line_invoice.id, LineItemInput("B", 1, "5"))
        assert invoice.status is InvoiceStatus.DRAFT

    def test_removing_lines_below_payments_marks_paid(self, invoice_service, two_line_invoice):
        invoice = invoice_service.apply_payment(TENANT_ID, two_line_invoice.id, "150.00").invoice
        assert invoice.status is InvoiceStatus.PARTIALLY_PAID
        invoice = invoice_service.remove_line_item(TENANT_ID, invoice.line_items[0].id)
        assert invoice.status is InvoiceStatus.PAID
        assert invoice.amount_due == Decimal("0")

    def test_cross_tenant_line_item(self, invoice_service, two_line_invoice):
        with pytest.raises(InvoiceLineItemNotFoundError):
            invoice_service.remove_line_item(OTHER_TENANT, two_line_invoice.line_items[0].id)

    def test_unknown_invoice(self, invoice_service):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.add_line_item(TENANT_ID, uuid4(), LineItemInput("X", 1, "1"))


class TestReadsAndUpdates:

    def test_get_cross_tenant(self, invoice_service, two_line_invoice):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.get_invoice(OTHER_TENANT, two_line_invoice.id)

    def test_update_header(self, invoice_service, two_line_invoice):
        invoice = invoice_service.update_invoice(
            TENANT_ID, two_line_invoice.id, due_date=date(2024, 4, 30), notes="Net 60", currency_code="EUR"
        )
        assert invoice.due_date == date(2024, 4, 30)
        assert invoice.notes == "Net 60"
        assert invoice.currency_code == "EUR"
        assert invoice.total_amount == Decimal("200.00")

    def test_update_due_before_issue(self, invoice_service, two_line_invoice):
        with pytest.raises(InvalidDateRangeError):
            invoice_service.update_invoice(TENANT_ID, two_line_invoice.id, due_date=date(2024, 2, 1))

    def test_list_filters(self, invoice_service, two_line_invoice):
        invoice_service.create_invoice(TENANT_ID, "INV-0002", client_id=7)
        assert [i.invoice_number for i in invoice_service.list_invoices(TENANT_ID, client_id=42)] == ["INV-0001"]
        assert len(invoice_service.list_invoices(TENANT_ID, status=InvoiceStatus.DRAFT)) == 2
        assert invoice_service.list_invoices(OTHER_TENANT) == []


class TestDeletion:

    def test_soft_delete_hides(self, invoice_service, two_line_invoice):
        invoice_service.soft_delete_invoice(TENANT_ID, two_line_invoice.id)
        assert invoice_service.list_invoices(TENANT_ID) == []
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.get_invoice(TENANT_ID, two_line_invoice.id)
        hidden = invoice_service.get_invoice(TENANT_ID, two_line_invoice.id, include_deleted=True)
        assert hidden.is_deleted is True

    def test_hard_delete_without_entries(self, invoice_service, two_line_invoice):
        invoice_service.apply_payment(TENANT_ID, two_line_invoice.id, "10.00")
        invoice_service.delete_invoice(TENANT_ID, two_line_invoice.id)
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.get_invoice(TENANT_ID, two_line_invoice.id, include_deleted=True)

    def test_hard_delete_blocked_by_entries(self, invoice_service, two_line_invoice, seeded_chart):
        invoice_service.change_status(TENANT_ID, two_line_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        with pytest.raises(HasDependenciesError):
            invoice_service.delete_invoice(TENANT_ID, two_line_invoice.id)

    def test_hard_delete_blocked_by_deleted_entries(self, invoice_service, two_line_invoice, seeded_chart):
        invoice_service.change_status(TENANT_ID, two_line_invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
        invoice_service.change_status(TENANT_ID, two_line_invoice.id, InvoiceStatus.CANCELED)
        with pytest.raises(HasDependenciesError) as exc_info:
            invoice_service.delete_invoice(TENANT_ID, two_line_invoice.id)
        assert exc_info.value.dependency_count == 1
