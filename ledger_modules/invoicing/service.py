"""
Invoicing Module Service -- invoice, line item and payment reconciliation.

Thin glue layer that:
1. Keeps every invoice's money fields consistent with its line items and
   payments (full recomputation on each mutation, never delta patching)
2. Enforces the status workflow (``workflows.INVOICE_WORKFLOW``)
3. Optionally posts approval / payment entries through the kernel
   ``JournalService``

Every mutation loads the invoice with ``SELECT ... FOR UPDATE`` so the
read-compute-write cycle is atomic per invoice.  The service flushes; the
caller's ``session_scope()`` commits.

Usage:
    service = InvoiceService(session)
    invoice = service.create_invoice(tenant_id, "INV-0001", issue_date=date(2024, 3, 1))
    invoice = service.add_line_item(tenant_id, invoice.id, LineItemInput("Audit", 1, "1000"))
    invoice = service.change_status(tenant_id, invoice.id, InvoiceStatus.APPROVED, post_to_ledger=True)
    result = service.apply_payment(tenant_id, invoice.id, Decimal("500"), post_to_ledger=True)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, round_money, to_decimal
from ledger_kernel.domain.chart import AccountRole, AccountType
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    DuplicateInvoiceNumberError,
    HasDependenciesError,
    InvalidAccountTypeError,
    InvalidAmountError,
    InvalidDateRangeError,
    InvalidStatusTransitionError,
    InvoiceLockedError,
    InvoiceLineItemNotFoundError,
    InvoiceNotFoundError,
    MissingFieldError,
    PaymentNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import SourceDocumentType
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.role_resolver import AccountRoleResolver
from ledger_modules.invoicing.calculations import (
    amount_due,
    compute_invoice_totals,
    compute_line_amounts,
    payment_status,
)
from ledger_modules.invoicing.models import (
    InvoiceInfo,
    InvoiceStatus,
    LineItemInput,
    PaymentInfo,
    PaymentMethod,
)
from ledger_modules.invoicing.orm import InvoiceLineItemModel, InvoiceModel, PaymentModel
from ledger_modules.invoicing.postings import CASH_METHODS, approval_posting, payment_posting
from ledger_modules.invoicing.workflows import CLOSED_STATES, INVOICE_WORKFLOW, REVERSING_STATES

logger = get_logger("modules.invoicing.service")

# Statuses from which an invoice can fall overdue
_OPEN_STATES = frozenset({InvoiceStatus.SENT, InvoiceStatus.APPROVED, InvoiceStatus.PARTIALLY_PAID})

# Statuses that must agree with the payment threshold rule
_PAYMENT_STATES = frozenset({InvoiceStatus.PAID, InvoiceStatus.PARTIALLY_PAID})


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of recording or changing a payment."""

    payment: PaymentInfo
    invoice: InvoiceInfo
    journal_entry_id: UUID | None = None


class InvoiceService(BaseService[InvoiceModel]):
    """
    Orchestrates the invoice lifecycle.

    Contract:
        Money fields satisfy, after every call:
            total_amount = subtotal + tax_amount - discount_amount
            amount_paid  = sum(payments)
            amount_due   = max(0, total_amount - amount_paid)
        Ids owned by another tenant raise the same NotFound error as
        missing ids.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._journal = JournalService(session)
        self._journal_reader = JournalSelector(session)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_invoice(
        self,
        tenant_id: int,
        invoice_id: UUID,
        for_update: bool = False,
        include_deleted: bool = False,
    ) -> InvoiceModel:
        return self._get_owned(
            InvoiceModel,
            tenant_id,
            invoice_id,
            InvoiceNotFoundError,
            for_update=for_update,
            where=() if include_deleted else (InvoiceModel.is_deleted.is_(False),),
        )

    def _get_line_item(self, tenant_id: int, line_item_id: UUID) -> InvoiceLineItemModel:
        return self._get_owned(InvoiceLineItemModel, tenant_id, line_item_id, InvoiceLineItemNotFoundError)

    def _get_payment(self, tenant_id: int, payment_id: UUID) -> PaymentModel:
        return self._get_owned(PaymentModel, tenant_id, payment_id, PaymentNotFoundError)

    @staticmethod
    def _payment_amount(value) -> Decimal:
        try:
            amount = to_decimal(value, "amount")
        except ValueError as exc:
            raise InvalidAmountError("amount", str(value), str(exc)) from None
        if amount <= ZERO:
            raise InvalidAmountError("amount", str(amount), "must be positive")
        if amount != round_money(amount):
            raise InvalidAmountError("amount", str(amount), "more than 2 decimal places")
        return amount

    def _recompute(self, invoice: InvoiceModel, derive_status: bool) -> None:
        """
        Recompute every money field from the full line-item and payment sets.

        With ``derive_status`` the payment threshold rule sets the status;
        otherwise the status only follows the amounts when payments exist.
        """
        amounts = []
        for item in invoice.line_items:
            line = compute_line_amounts(item.quantity, item.unit_price, item.tax_rate, item.discount_rate)
            item.discount_amount = line.discount_amount
            item.tax_amount = line.tax_amount
            item.line_total = line.line_total
            amounts.append(line)

        totals = compute_invoice_totals(amounts)
        paid = sum((p.amount for p in invoice.payments), ZERO)

        invoice.subtotal = totals.subtotal
        invoice.tax_amount = totals.tax_amount
        invoice.discount_amount = totals.discount_amount
        invoice.total_amount = totals.total_amount
        invoice.amount_paid = paid
        invoice.amount_due = amount_due(totals.total_amount, paid)

        status = InvoiceStatus(invoice.status)
        if status not in CLOSED_STATES and (derive_status or paid > ZERO):
            invoice.status = payment_status(totals.total_amount, paid).value

    def _reverse_entries(self, tenant_id: int, kind: SourceDocumentType, source_id: UUID, actor_id: int | None) -> int:
        """Soft-delete the live entries sourced from one document."""
        entries = self._journal_reader.list_entries(tenant_id, source_document=kind, source_document_id=source_id)
        for entry in entries:
            self._journal.delete_journal_entry(tenant_id, entry.id, actor_id=actor_id)
        return len(entries)

    def _check_revenue_account(self, tenant_id: int, account_id: UUID) -> None:
        account = self._get_owned(Account, tenant_id, account_id, AccountNotFoundError)
        if AccountType(account.account_type) is not AccountType.REVENUE:
            raise InvalidAccountTypeError(account.account_type, "revenue account override must be a revenue account")

    def _check_amounts_editable(self, tenant_id: int, invoice: InvoiceModel) -> None:
        """Line items are frozen on closed invoices and once the receivable is posted."""
        status = InvoiceStatus(invoice.status)
        if status in CLOSED_STATES:
            raise InvoiceLockedError(str(invoice.id), status.value, "invoice is closed")
        posted = self._journal_reader.list_entries(
            tenant_id, source_document=SourceDocumentType.INVOICE, source_document_id=invoice.id
        )
        if posted:
            raise InvoiceLockedError(str(invoice.id), status.value, "receivable already posted to the ledger")

    # =========================================================================
    # Invoices
    # =========================================================================

    def create_invoice(
        self,
        tenant_id: int,
        invoice_number: str,
        issue_date: date | None = None,
        due_date: date | None = None,
        client_id: int | None = None,
        entity_id: int | None = None,
        currency_code: str = "USD",
        notes: str | None = None,
        line_items: list[LineItemInput] | None = None,
        actor_id: int | None = None,
    ) -> InvoiceInfo:
        """
        Create a draft invoice, optionally with its first line items.

        Raises:
            MissingFieldError: Blank invoice number.
            DuplicateInvoiceNumberError: Number already used by the tenant.
            InvalidDateRangeError: due_date before issue_date.
        """
        if not invoice_number or not invoice_number.strip():
            raise MissingFieldError("invoice_number")
        invoice_number = invoice_number.strip()
        issue_date = issue_date or self._clock.today()
        if due_date is not None and due_date < issue_date:
            raise InvalidDateRangeError(str(issue_date), str(due_date))

        clash = self.session.execute(
            select(InvoiceModel.id).where(
                InvoiceModel.tenant_id == tenant_id,
                InvoiceModel.invoice_number == invoice_number,
            )
        ).first()
        if clash is not None:
            raise DuplicateInvoiceNumberError(invoice_number)

        invoice = InvoiceModel(
            tenant_id=tenant_id,
            invoice_number=invoice_number,
            client_id=client_id,
            entity_id=entity_id,
            status=InvoiceStatus.DRAFT.value,
            issue_date=issue_date,
            due_date=due_date,
            currency_code=currency_code,
            notes=notes,
            is_deleted=False,
            created_by_id=actor_id,
        )
        self.session.add(invoice)
        for order, spec in enumerate(line_items or (), start=1):
            invoice.line_items.append(self._new_line_item(tenant_id, spec, order, actor_id))
        self._recompute(invoice, derive_status=False)
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "invoice_created",
                extra={
                    "tenant_id": tenant_id,
                    "invoice_number": invoice_number,
                    "line_count": len(invoice.line_items),
                    "total_amount": str(invoice.total_amount),
                },
            )
        return invoice.to_dto()

    def update_invoice(
        self,
        tenant_id: int,
        invoice_id: UUID,
        due_date: date | None = None,
        client_id: int | None = None,
        entity_id: int | None = None,
        currency_code: str | None = None,
        notes: str | None = None,
        actor_id: int | None = None,
    ) -> InvoiceInfo:
        """Update header fields.  Money fields and status are not settable here."""
        invoice = self._get_invoice(tenant_id, invoice_id, for_update=True)
        if due_date is not None:
            if due_date < invoice.issue_date:
                raise InvalidDateRangeError(str(invoice.issue_date), str(due_date))
            invoice.due_date = due_date
        if client_id is not None:
            invoice.client_id = client_id
        if entity_id is not None:
            invoice.entity_id = entity_id
        if currency_code is not None:
            invoice.currency_code = currency_code
        if notes is not None:
            invoice.notes = notes
        invoice.updated_by_id = actor_id
        self.session.flush()
        return invoice.to_dto()

    def get_invoice(self, tenant_id: int, invoice_id: UUID, include_deleted: bool = False) -> InvoiceInfo:
        return self._get_invoice(tenant_id, invoice_id, include_deleted=include_deleted).to_dto()

    def list_invoices(
        self,
        tenant_id: int,
        status: InvoiceStatus | str | None = None,
        client_id: int | None = None,
        include_deleted: bool = False,
    ) -> list[InvoiceInfo]:
        stmt = select(InvoiceModel).where(InvoiceModel.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(InvoiceModel.status == InvoiceStatus(status).value)
        if client_id is not None:
            stmt = stmt.where(InvoiceModel.client_id == client_id)
        if not include_deleted:
            stmt = stmt.where(InvoiceModel.is_deleted.is_(False))
        stmt = stmt.order_by(InvoiceModel.issue_date.desc(), InvoiceModel.invoice_number)
        return [inv.to_dto() for inv in self.session.execute(stmt).scalars().all()]

    def soft_delete_invoice(self, tenant_id: int, invoice_id: UUID, actor_id: int | None = None) -> InvoiceInfo:
        """Hide an invoice from listings; rows and ledger entries stay."""
        invoice = self._get_invoice(tenant_id, invoice_id, for_update=True)
        invoice.is_deleted = True
        invoice.updated_by_id = actor_id
        self.session.flush()
        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info("invoice_soft_deleted", extra={"tenant_id": tenant_id})
        return invoice.to_dto()

    def delete_invoice(self, tenant_id: int, invoice_id: UUID) -> None:
        """
        Hard-delete an invoice with its payments and line items.

        Raises:
            InvoiceNotFoundError: Missing, or owned by another tenant.
            HasDependenciesError: A journal entry (deleted or not) references
                the invoice or one of its payments.
        """
        invoice = self._get_invoice(tenant_id, invoice_id, for_update=True, include_deleted=True)
        sources = [(SourceDocumentType.INVOICE, invoice.id)]
        sources.extend((SourceDocumentType.PAYMENT, p.id) for p in invoice.payments)
        count = self._journal_reader.count_entries_for_sources(tenant_id, sources)
        if count:
            raise HasDependenciesError("invoice", str(invoice.id), "journal entries", count)

        for payment in list(invoice.payments):
            self.session.delete(payment)
        self.session.flush()
        for item in list(invoice.line_items):
            self.session.delete(item)
        self.session.flush()
        self.session.expire(invoice, ["payments", "line_items"])
        self.session.delete(invoice)
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice_id)):
            logger.info("invoice_deleted", extra={"tenant_id": tenant_id, "invoice_number": invoice.invoice_number})

    # =========================================================================
    # Line items
    # =========================================================================

    @staticmethod
    def _new_line_item(tenant_id: int, spec: LineItemInput, sort_order: int, actor_id: int | None) -> InvoiceLineItemModel:
        if not spec.description or not spec.description.strip():
            raise MissingFieldError("description")
        line = compute_line_amounts(spec.quantity, spec.unit_price, spec.tax_rate, spec.discount_rate)
        return InvoiceLineItemModel(
            tenant_id=tenant_id,
            description=spec.description.strip(),
            quantity=line.quantity,
            unit_price=line.unit_price,
            tax_rate=line.tax_rate,
            discount_rate=line.discount_rate,
            discount_amount=line.discount_amount,
            tax_amount=line.tax_amount,
            line_total=line.line_total,
            sort_order=spec.sort_order if spec.sort_order is not None else sort_order,
            created_by_id=actor_id,
        )

    def add_line_item(
        self,
        tenant_id: int,
        invoice_id: UUID,
        item: LineItemInput,
        actor_id: int | None = None,
    ) -> InvoiceInfo:
        """
        Append a line item and recompute the invoice.

        Raises:
            InvoiceNotFoundError, MissingFieldError, InvalidAmountError,
            InvalidRateError.
            InvoiceLockedError: Invoice canceled or void, or its receivable
                already posted.
        """
        invoice = self._get_invoice(tenant_id, invoice_id, for_update=True)
        self._check_amounts_editable(tenant_id, invoice)
        next_order = max((li.sort_order for li in invoice.line_items), default=0) + 1
        invoice.line_items.append(self._new_line_item(tenant_id, item, next_order, actor_id))
        self._recompute(invoice, derive_status=False)
        invoice.updated_by_id = actor_id
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "invoice_line_item_added",
                extra={"tenant_id": tenant_id, "total_amount": str(invoice.total_amount)},
            )
        return invoice.to_dto()

    def update_line_item(
        self,
        tenant_id: int,
        line_item_id: UUID,
        item: LineItemInput,
        actor_id: int | None = None,
    ) -> InvoiceInfo:
        """Replace a line item's values and recompute the invoice."""
        existing = self._get_line_item(tenant_id, line_item_id)
        invoice = self._get_invoice(tenant_id, existing.invoice_id, for_update=True)
        self._check_amounts_editable(tenant_id, invoice)

        replacement = self._new_line_item(
            tenant_id, item, existing.sort_order, actor_id
        )
        for attr in (
            "description",
            "quantity",
            "unit_price",
            "tax_rate",
            "discount_rate",
            "discount_amount",
            "tax_amount",
            "line_total",
            "sort_order",
        ):
            setattr(existing, attr, getattr(replacement, attr))
        existing.updated_by_id = actor_id

        self._recompute(invoice, derive_status=False)
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "invoice_line_item_updated",
                extra={
                    "tenant_id": tenant_id,
                    "line_item_id": str(line_item_id),
                    "total_amount": str(invoice.total_amount),
                },
            )
        return invoice.to_dto()

    def remove_line_item(self, tenant_id: int, line_item_id: UUID, actor_id: int | None = None) -> InvoiceInfo:
        """Delete a line item and recompute the invoice."""
        existing = self._get_line_item(tenant_id, line_item_id)
        invoice = self._get_invoice(tenant_id, existing.invoice_id, for_update=True)
        self._check_amounts_editable(tenant_id, invoice)
        invoice.line_items.remove(existing)
        self._recompute(invoice, derive_status=False)
        invoice.updated_by_id = actor_id
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "invoice_line_item_removed",
                extra={
                    "tenant_id": tenant_id,
                    "line_item_id": str(line_item_id),
                    "total_amount": str(invoice.total_amount),
                },
            )
        return invoice.to_dto()

    # =========================================================================
    # Payments
    # =========================================================================

    def _post_payment(self, tenant_id: int, invoice: InvoiceModel, payment: PaymentModel, resolver, actor_id) -> UUID:
        posting = payment_posting(invoice, payment, resolver)
        entry = self._journal.post_journal_entry(tenant_id, posting.entry, posting.lines, actor_id=actor_id)
        return entry.id

    @staticmethod
    def _resolve_payment_roles(resolver: AccountRoleResolver, method: PaymentMethod) -> None:
        resolver.resolve(AccountRole.CASH if method in CASH_METHODS else AccountRole.BANK)
        resolver.resolve(AccountRole.ACCOUNTS_RECEIVABLE)

    def apply_payment(
        self,
        tenant_id: int,
        invoice_id: UUID,
        amount: Decimal | int | str,
        payment_date: date | None = None,
        payment_method: PaymentMethod | str = PaymentMethod.BANK_TRANSFER,
        reference_number: str | None = None,
        notes: str | None = None,
        post_to_ledger: bool = False,
        actor_id: int | None = None,
    ) -> PaymentResult:
        """
        Record a payment and re-derive the invoice status.

        Overpayment is accepted: amount_due floors at zero and the invoice
        becomes ``paid``.

        Raises:
            InvoiceNotFoundError, InvalidAmountError,
            InvalidStatusTransitionError (canceled or void invoice),
            AccountRoleNotFoundError (post_to_ledger, before any write).
        """
        value = self._payment_amount(amount)
        method = PaymentMethod(payment_method)
        invoice = self._get_invoice(tenant_id, invoice_id, for_update=True)
        status = InvoiceStatus(invoice.status)
        if status in CLOSED_STATES:
            target = payment_status(invoice.total_amount, invoice.amount_paid + value)
            raise InvalidStatusTransitionError(str(invoice.id), status.value, target.value)

        resolver = None
        if post_to_ledger:
            resolver = AccountRoleResolver(self.session, tenant_id)
            self._resolve_payment_roles(resolver, method)

        payment = PaymentModel(
            tenant_id=tenant_id,
            amount=value,
            payment_date=payment_date or self._clock.today(),
            payment_method=method.value,
            reference_number=reference_number,
            notes=notes,
            created_by_id=actor_id,
        )
        invoice.payments.append(payment)
        self._recompute(invoice, derive_status=True)
        invoice.updated_by_id = actor_id
        self.session.flush()

        entry_id = None
        if post_to_ledger:
            entry_id = self._post_payment(tenant_id, invoice, payment, resolver, actor_id)

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "payment_applied",
                extra={
                    "tenant_id": tenant_id,
                    "payment_id": str(payment.id),
                    "amount": str(value),
                    "amount_paid": str(invoice.amount_paid),
                    "amount_due": str(invoice.amount_due),
                    "status": invoice.status,
                    "journal_entry_id": str(entry_id) if entry_id else None,
                },
            )
        return PaymentResult(payment=payment.to_dto(), invoice=invoice.to_dto(), journal_entry_id=entry_id)

    def update_payment(
        self,
        tenant_id: int,
        payment_id: UUID,
        amount: Decimal | int | str | None = None,
        payment_date: date | None = None,
        payment_method: PaymentMethod | str | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
        actor_id: int | None = None,
    ) -> PaymentResult:
        """
        Change a payment: the old amount is reversed and the new one applied.

        A payment already posted to the ledger has its entry soft-deleted and
        re-posted with the new values.
        Payments on canceled or void invoices are frozen
        (InvalidStatusTransitionError).
        """
        payment = self._get_payment(tenant_id, payment_id)
        invoice = self._get_invoice(tenant_id, payment.invoice_id, for_update=True)
        new_amount = self._payment_amount(amount) if amount is not None else payment.amount
        new_method = PaymentMethod(payment_method) if payment_method is not None else PaymentMethod(payment.payment_method)
        status = InvoiceStatus(invoice.status)
        if status in CLOSED_STATES:
            target = payment_status(invoice.total_amount, invoice.amount_paid - payment.amount + new_amount)
            raise InvalidStatusTransitionError(str(invoice.id), status.value, target.value)

        posted = self._journal_reader.list_entries(
            tenant_id, source_document=SourceDocumentType.PAYMENT, source_document_id=payment.id
        )
        resolver = None
        if posted:
            resolver = AccountRoleResolver(self.session, tenant_id)
            self._resolve_payment_roles(resolver, new_method)

        old_amount = payment.amount
        payment.amount = new_amount
        payment.payment_method = new_method.value
        if payment_date is not None:
            payment.payment_date = payment_date
        if reference_number is not None:
            payment.reference_number = reference_number
        if notes is not None:
            payment.notes = notes
        payment.updated_by_id = actor_id
        self._recompute(invoice, derive_status=True)
        self.session.flush()

        entry_id = None
        if posted:
            self._reverse_entries(tenant_id, SourceDocumentType.PAYMENT, payment.id, actor_id)
            entry_id = self._post_payment(tenant_id, invoice, payment, resolver, actor_id)

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "payment_updated",
                extra={
                    "tenant_id": tenant_id,
                    "payment_id": str(payment.id),
                    "old_amount": str(old_amount),
                    "new_amount": str(new_amount),
                    "status": invoice.status,
                    "reposted": bool(posted),
                },
            )
        return PaymentResult(payment=payment.to_dto(), invoice=invoice.to_dto(), journal_entry_id=entry_id)

    def delete_payment(self, tenant_id: int, payment_id: UUID, actor_id: int | None = None) -> InvoiceInfo:
        """Remove a payment, soft-deleting its ledger entries, and re-derive the status."""
        payment = self._get_payment(tenant_id, payment_id)
        invoice = self._get_invoice(tenant_id, payment.invoice_id, for_update=True)

        reversed_count = self._reverse_entries(tenant_id, SourceDocumentType.PAYMENT, payment.id, actor_id)
        invoice.payments.remove(payment)
        self.session.delete(payment)
        self._recompute(invoice, derive_status=True)
        invoice.updated_by_id = actor_id
        self.session.flush()

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "payment_deleted",
                extra={
                    "tenant_id": tenant_id,
                    "payment_id": str(payment_id),
                    "entries_reversed": reversed_count,
                    "status": invoice.status,
                },
            )
        return invoice.to_dto()

    def list_payments(self, tenant_id: int, invoice_id: UUID) -> list[PaymentInfo]:
        return list(self._get_invoice(tenant_id, invoice_id).to_dto().payments)

    # =========================================================================
    # Status
    # =========================================================================

    def change_status(
        self,
        tenant_id: int,
        invoice_id: UUID,
        new_status: InvoiceStatus | str,
        post_to_ledger: bool = False,
        revenue_account_id: UUID | None = None,
        actor_id: int | None = None,
    ) -> InvoiceInfo:
        """
        Move an invoice along the workflow.

        Approval transitions (draft -> approved, draft -> sent) post the
        receivable entry when ``post_to_ledger`` is set.  Entering canceled
        or void soft-deletes the invoice's own entries; payment entries are
        left alone.

        Raises:
            InvalidStatusTransitionError: Not in the transition table, or a
                paid / partially_paid target the payments do not support.
            InvalidAmountError: Posting requested for a zero-total invoice.
            AccountRoleNotFoundError, AccountNotFoundError,
            InvalidAccountTypeError: Posting accounts unusable (raised
            before any write).
        """
        target = InvoiceStatus(new_status)
        invoice = self._get_invoice(tenant_id, invoice_id, for_update=True)
        current = InvoiceStatus(invoice.status)
        transition = INVOICE_WORKFLOW.find(current, target)
        if transition is None:
            raise InvalidStatusTransitionError(str(invoice.id), current.value, target.value)
        if target in _PAYMENT_STATES and payment_status(invoice.total_amount, invoice.amount_paid) is not target:
            raise InvalidStatusTransitionError(str(invoice.id), current.value, target.value)

        posting = None
        if post_to_ledger and transition.posts_entry:
            if invoice.total_amount <= ZERO:
                raise InvalidAmountError("total_amount", str(invoice.total_amount), "cannot post a zero invoice")
            if revenue_account_id is not None:
                self._check_revenue_account(tenant_id, revenue_account_id)
            already = self._journal_reader.list_entries(
                tenant_id, source_document=SourceDocumentType.INVOICE, source_document_id=invoice.id
            )
            if already:
                logger.warning(
                    "invoice_already_posted",
                    extra={"tenant_id": tenant_id, "invoice_id": str(invoice.id), "entry_count": len(already)},
                )
            else:
                resolver = AccountRoleResolver(self.session, tenant_id)
                posting = approval_posting(invoice, resolver, revenue_account_id)

        invoice.status = target.value
        invoice.updated_by_id = actor_id
        self.session.flush()

        entry_id = None
        if posting is not None:
            entry_id = self._journal.post_journal_entry(
                tenant_id, posting.entry, posting.lines, actor_id=actor_id
            ).id
        reversed_count = 0
        if target in REVERSING_STATES:
            reversed_count = self._reverse_entries(tenant_id, SourceDocumentType.INVOICE, invoice.id, actor_id)

        with LogContext.bind(invoice_id=str(invoice.id)):
            logger.info(
                "invoice_status_changed",
                extra={
                    "tenant_id": tenant_id,
                    "from_status": current.value,
                    "to_status": target.value,
                    "action": transition.action,
                    "journal_entry_id": str(entry_id) if entry_id else None,
                    "entries_reversed": reversed_count,
                },
            )
        return invoice.to_dto()

    def mark_overdue(self, tenant_id: int, as_of: date | None = None, actor_id: int | None = None) -> list[InvoiceInfo]:
        """Move open invoices whose due date has passed to ``overdue``."""
        as_of = as_of or self._clock.today()
        candidates = self.session.execute(
            select(InvoiceModel)
            .where(
                InvoiceModel.tenant_id == tenant_id,
                InvoiceModel.is_deleted.is_(False),
                InvoiceModel.due_date.is_not(None),
                InvoiceModel.due_date < as_of,
                InvoiceModel.status.in_([s.value for s in _OPEN_STATES]),
            )
            .with_for_update()
        ).scalars().all()
        for invoice in candidates:
            invoice.status = InvoiceStatus.OVERDUE.value
            invoice.updated_by_id = actor_id
        self.session.flush()
        if candidates:
            logger.info(
                "invoices_marked_overdue",
                extra={"tenant_id": tenant_id, "as_of": str(as_of), "count": len(candidates)},
            )
        return [inv.to_dto() for inv in candidates]
