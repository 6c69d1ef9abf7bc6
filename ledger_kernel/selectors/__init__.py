"""Read-only selectors over the ledger."""

from ledger_kernel.selectors.hierarchy_selector import AccountPath, GroupRef, HierarchySelector
from ledger_kernel.selectors.journal_selector import (
    JournalEntryDTO,
    JournalLineDTO,
    JournalSelector,
)
from ledger_kernel.selectors.ledger_selector import (
    AccountBalance,
    LedgerLine,
    LedgerSelector,
    LineTotals,
    TrialBalanceRow,
    signed_balance,
)

__all__ = [
    "AccountBalance",
    "AccountPath",
    "GroupRef",
    "HierarchySelector",
    "JournalEntryDTO",
    "JournalLineDTO",
    "JournalSelector",
    "LedgerLine",
    "LedgerSelector",
    "LineTotals",
    "TrialBalanceRow",
    "signed_balance",
]
