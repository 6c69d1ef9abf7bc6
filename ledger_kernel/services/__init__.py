"""Write-side services of the ledger kernel."""

from ledger_kernel.services.base import BaseService
from ledger_kernel.services.chart_of_accounts_service import (
    AccountInfo,
    ChartOfAccountsService,
    GroupInfo,
    SeedResult,
)
from ledger_kernel.services.journal_service import (
    JournalEntrySpec,
    JournalEntryTypeInfo,
    JournalLineSpec,
    JournalService,
    validate_lines,
    validate_source_document,
)
from ledger_kernel.services.role_resolver import AccountRoleResolver

__all__ = [
    "AccountInfo",
    "AccountRoleResolver",
    "BaseService",
    "ChartOfAccountsService",
    "GroupInfo",
    "JournalEntrySpec",
    "JournalEntryTypeInfo",
    "JournalLineSpec",
    "JournalService",
    "SeedResult",
    "validate_lines",
    "validate_source_document",
]
