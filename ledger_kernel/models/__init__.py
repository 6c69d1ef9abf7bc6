"""Domain models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountRole, AccountType
from ledger_kernel.models.hierarchy import (
    GROUP_MODELS,
    DetailedGroup,
    ElementGroup,
    MainGroup,
    SubElementGroup,
)
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryType,
    SourceDocumentType,
)

__all__ = [
    "Account",
    "AccountRole",
    "AccountType",
    "DetailedGroup",
    "ElementGroup",
    "GROUP_MODELS",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryType",
    "MainGroup",
    "SourceDocumentType",
    "SubElementGroup",
]
