"""
Invoicing ledger postings.

Builds the journal entries an invoice produces, as kernel
``JournalEntrySpec`` / ``JournalLineSpec`` values:

  approval  Dr accounts receivable  total
            Cr revenue              total - tax
            Cr tax liability        tax            (only when tax > 0)

  payment   Dr bank (or cash)       amount
            Cr accounts receivable  amount

Accounts are found by role through ``AccountRoleResolver``; nothing is
matched by name.
"""

from dataclasses import dataclass
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.chart import AccountRole
from ledger_kernel.models.journal import SourceDocumentType
from ledger_kernel.services.journal_service import JournalEntrySpec, JournalLineSpec
from ledger_kernel.services.role_resolver import AccountRoleResolver
from ledger_modules.invoicing.models import PaymentMethod

APPROVAL_ENTRY_TYPE = "INVAP"
PAYMENT_ENTRY_TYPE = "PMT"

# Methods that settle into the cash account; everything else hits the bank
CASH_METHODS = frozenset({PaymentMethod.CASH})


@dataclass(frozen=True)
class Posting:
    entry: JournalEntrySpec
    lines: tuple[JournalLineSpec, ...]


def approval_posting(invoice, resolver: AccountRoleResolver, revenue_account_id: UUID | None = None) -> Posting:
    """
    Receivable / revenue / tax entry for an approved invoice.

    Raises:
        AccountRoleNotFoundError: A required role account is missing.
    """
    number = invoice.invoice_number
    receivable = resolver.resolve(AccountRole.ACCOUNTS_RECEIVABLE)
    revenue = revenue_account_id or resolver.resolve(AccountRole.REVENUE)
    tax = invoice.tax_amount
    net = invoice.total_amount - tax

    lines = [JournalLineSpec.debit(receivable, invoice.total_amount, f"Accounts Receivable - Invoice {number}")]
    if net > ZERO:
        lines.append(JournalLineSpec.credit(revenue, net, f"Revenue - Invoice {number}"))
    if tax > ZERO:
        tax_account = resolver.resolve(AccountRole.TAX_LIABILITY)
        lines.append(JournalLineSpec.credit(tax_account, tax, f"Tax Liability - Invoice {number}"))

    entry = JournalEntrySpec(
        entry_date=invoice.issue_date,
        reference=f"INV-{number}",
        description=f"Invoice {number} approved",
        entry_type_code=APPROVAL_ENTRY_TYPE,
        source_document=SourceDocumentType.INVOICE,
        source_document_id=invoice.id,
    )
    return Posting(entry=entry, lines=tuple(lines))


def payment_posting(invoice, payment, resolver: AccountRoleResolver) -> Posting:
    """
    Cash-receipt entry for one payment.

    Raises:
        AccountRoleNotFoundError: A required role account is missing.
    """
    number = invoice.invoice_number
    method = PaymentMethod(payment.payment_method)
    role = AccountRole.CASH if method in CASH_METHODS else AccountRole.BANK
    settlement = resolver.resolve(role)
    receivable = resolver.resolve(AccountRole.ACCOUNTS_RECEIVABLE)

    entry = JournalEntrySpec(
        entry_date=payment.payment_date,
        reference=f"PMT-{payment.id}",
        description=f"Payment received for Invoice {number}",
        entry_type_code=PAYMENT_ENTRY_TYPE,
        source_document=SourceDocumentType.PAYMENT,
        source_document_id=payment.id,
    )
    lines = (
        JournalLineSpec.debit(settlement, payment.amount, f"Cash/Bank - Payment for Invoice {number}"),
        JournalLineSpec.credit(receivable, payment.amount, f"Accounts Receivable - Payment for Invoice {number}"),
    )
    return Posting(entry=entry, lines=lines)
