"""
Typed exception hierarchy for the ledger kernel.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
carrying the context of the failure.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- LedgerValidationError                 rejected before any write
    |   +-- MissingFieldError
    |   +-- InvalidAmountError
    |   +-- InvalidRateError
    |   +-- InvalidDateRangeError
    |   +-- InvalidGroupNameError
    |   +-- InvalidLineError
    |   +-- UnbalancedEntryError
    |   +-- InvalidSourceDocumentError
    |   +-- InvalidStatusTransitionError
    |   +-- InvoiceLockedError
    |   +-- DuplicateInvoiceNumberError
    |   +-- InvalidAccountTypeError
    |   +-- DuplicateValueError
    |
    +-- NotFoundError                          also raised for other tenants' ids
    |   +-- GroupNotFoundError
    |   +-- AccountNotFoundError
    |   +-- JournalEntryNotFoundError
    |   +-- JournalEntryTypeNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- InvoiceLineItemNotFoundError
    |   +-- PaymentNotFoundError
    |
    +-- AccountError
    |   +-- AccountInactiveError
    |   +-- AccountRoleNotFoundError
    |   +-- SystemAccountProtectedError
    |
    +-- HasDependenciesError                   delete blocked by references
    |
    +-- EntryStateError
        +-- EntryAlreadyPostedError
        +-- EntryDeletedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | MISSING_FIELD               | Required field absent or blank
                | INVALID_AMOUNT              | Negative / non-numeric money value
                | INVALID_RATE                | Tax or discount rate outside [0, 1]
                | INVALID_DATE_RANGE          | start_date after end_date
                | INVALID_GROUP_NAME          | Name outside the level's enumeration
                | INVALID_LINE                | Line with both / neither side set
                | UNBALANCED_ENTRY            | Debits != Credits
                | INVALID_SOURCE_DOCUMENT     | Non-manual source without an id
                | INVALID_STATUS_TRANSITION   | Invoice transition not allowed
                | INVOICE_LOCKED              | Amount change on a posted or closed invoice
                | DUPLICATE_INVOICE_NUMBER    | Invoice number reused in tenant
                | INVALID_ACCOUNT_TYPE        | Type conflicts with the element group
                | DUPLICATE_VALUE             | Code / name / role already taken
----------------|-----------------------------|-----------------------------------------
Not found       | *_NOT_FOUND                 | Row missing or owned by another tenant
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_INACTIVE            | Posting to a deactivated account
                | ACCOUNT_ROLE_NOT_FOUND      | No account tagged with a needed role
                | SYSTEM_ACCOUNT_PROTECTED    | Ad-hoc deletion of a system account
----------------|-----------------------------|-----------------------------------------
Dependencies    | HAS_DEPENDENCIES            | Delete refused; carries the count
----------------|-----------------------------|-----------------------------------------
Entry state     | ENTRY_ALREADY_POSTED        | Posting an already posted entry
                | ENTRY_DELETED               | Operating on a soft-deleted entry
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Validation errors


class LedgerValidationError(LedgerKernelError):
    """Base exception for input rejected before any write."""

    code: str = "VALIDATION_ERROR"


class MissingFieldError(LedgerValidationError):
    """A required field was not provided."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Required field missing: {field_name}")


class InvalidAmountError(LedgerValidationError):
    """A monetary or quantity value is malformed or out of range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field_name: str, value: str, reason: str):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field_name} '{value}': {reason}")


class InvalidRateError(LedgerValidationError):
    """A tax or discount rate is outside the closed interval [0, 1]."""

    code: str = "INVALID_RATE"

    def __init__(self, field_name: str, value: str):
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Invalid {field_name} '{value}': must be between 0 and 1"
        )


class InvalidDateRangeError(LedgerValidationError):
    """A reporting window ends before it starts."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Invalid date range: start {start_date} is after end {end_date}"
        )


class InvalidGroupNameError(LedgerValidationError):
    """A hierarchy group name is not part of its level's enumeration."""

    code: str = "INVALID_GROUP_NAME"

    def __init__(self, level: str, name: str, reason: str | None = None):
        self.level = level
        self.name = name
        self.reason = reason
        message = f"Invalid {level} name: '{name}'"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidLineError(LedgerValidationError):
    """A journal line does not carry a positive amount on exactly one side."""

    code: str = "INVALID_LINE"

    def __init__(self, line_order: int, reason: str):
        self.line_order = line_order
        self.reason = reason
        super().__init__(f"Invalid journal line {line_order}: {reason}")


class UnbalancedEntryError(LedgerValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Entry is unbalanced: debits={debits}, credits={credits}"
        )


class InvalidSourceDocumentError(LedgerValidationError):
    """Source document reference is incomplete or inconsistent."""

    code: str = "INVALID_SOURCE_DOCUMENT"

    def __init__(self, source_document: str, reason: str):
        self.source_document = source_document
        self.reason = reason
        super().__init__(f"Invalid source document '{source_document}': {reason}")


class InvalidStatusTransitionError(LedgerValidationError):
    """Invoice status change is not allowed by the transition table."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, invoice_id: str, from_status: str, to_status: str):
        self.invoice_id = invoice_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot change invoice {invoice_id} status "
            f"from '{from_status}' to '{to_status}'"
        )


class InvoiceLockedError(LedgerValidationError):
    """Invoice amounts cannot change in its current state."""

    code: str = "INVOICE_LOCKED"

    def __init__(self, invoice_id: str, status: str, reason: str):
        self.invoice_id = invoice_id
        self.status = status
        self.reason = reason
        super().__init__(f"Invoice {invoice_id} ({status}) is locked: {reason}")


class DuplicateInvoiceNumberError(LedgerValidationError):
    """Invoice number already used within the tenant."""

    code: str = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number already exists: {invoice_number}")


class InvalidAccountTypeError(LedgerValidationError):
    """Requested account type conflicts with (or is missing for) the element group."""

    code: str = "INVALID_ACCOUNT_TYPE"

    def __init__(self, account_type: str | None, reason: str):
        self.account_type = account_type
        self.reason = reason
        super().__init__(f"Invalid account type '{account_type}': {reason}")


class DuplicateValueError(LedgerValidationError):
    """A code, name or role that must be unique within the tenant is already taken."""

    code: str = "DUPLICATE_VALUE"

    def __init__(self, kind: str, value: str):
        self.kind = kind
        self.value = value
        super().__init__(f"Duplicate {kind}: {value}")


# Not-found errors


class NotFoundError(LedgerKernelError):
    """
    Base exception for missing rows.

    Rows owned by another tenant raise the same error so that existence
    never leaks across tenants.
    """

    code: str = "NOT_FOUND"


class GroupNotFoundError(NotFoundError):
    """Hierarchy group not found for the tenant."""

    code: str = "GROUP_NOT_FOUND"

    def __init__(self, level: str, group_id: str):
        self.level = level
        self.group_id = group_id
        super().__init__(f"{level} not found: {group_id}")


class AccountNotFoundError(NotFoundError):
    """Account not found for the tenant."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class JournalEntryNotFoundError(NotFoundError):
    """Journal entry not found for the tenant."""

    code: str = "JOURNAL_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class JournalEntryTypeNotFoundError(NotFoundError):
    """Journal entry type not found for the tenant."""

    code: str = "JOURNAL_ENTRY_TYPE_NOT_FOUND"

    def __init__(self, type_ref: str):
        self.type_ref = type_ref
        super().__init__(f"Journal entry type not found: {type_ref}")


class InvoiceNotFoundError(NotFoundError):
    """Invoice not found for the tenant."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class InvoiceLineItemNotFoundError(NotFoundError):
    """Invoice line item not found for the tenant."""

    code: str = "INVOICE_LINE_ITEM_NOT_FOUND"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(f"Invoice line item not found: {line_item_id}")


class PaymentNotFoundError(NotFoundError):
    """Payment not found for the tenant."""

    code: str = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__(f"Payment not found: {payment_id}")


# Account errors


class AccountError(LedgerKernelError):
    """Base exception for account state errors."""

    code: str = "ACCOUNT_ERROR"


class AccountInactiveError(AccountError):
    """Account is deactivated and cannot receive postings."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account is inactive: {account_id}")


class AccountRoleNotFoundError(AccountError):
    """No active account carries the role needed for an automatic posting."""

    code: str = "ACCOUNT_ROLE_NOT_FOUND"

    def __init__(self, tenant_id: int, role: str):
        self.tenant_id = tenant_id
        self.role = role
        super().__init__(
            f"No active account with role '{role}' for tenant {tenant_id}"
        )


class SystemAccountProtectedError(AccountError):
    """System accounts cannot be deleted ad hoc."""

    code: str = "SYSTEM_ACCOUNT_PROTECTED"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"System account cannot be deleted: {account_id}")


# Dependency conflicts


class HasDependenciesError(LedgerKernelError):
    """
    Deletion refused because other rows still reference the target.

    Never silently cascaded: the caller sees how many references block
    the delete and of what kind.
    """

    code: str = "HAS_DEPENDENCIES"

    def __init__(
        self,
        kind: str,
        target_id: str,
        dependency_kind: str,
        dependency_count: int,
    ):
        self.kind = kind
        self.target_id = target_id
        self.dependency_kind = dependency_kind
        self.dependency_count = dependency_count
        super().__init__(
            f"Cannot delete {kind} {target_id}: referenced by "
            f"{dependency_count} {dependency_kind}"
        )


# Journal entry state


class EntryStateError(LedgerKernelError):
    """Base exception for journal entry lifecycle errors."""

    code: str = "ENTRY_STATE_ERROR"


class EntryAlreadyPostedError(EntryStateError):
    """Entry is already posted."""

    code: str = "ENTRY_ALREADY_POSTED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry already posted: {entry_id}")


class EntryDeletedError(EntryStateError):
    """Entry has been soft-deleted."""

    code: str = "ENTRY_DELETED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry is deleted: {entry_id}")
