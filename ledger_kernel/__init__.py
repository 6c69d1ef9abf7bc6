"""
Ledger Kernel - double-entry core of the practice-management platform.

A tenant-scoped accounting ledger with:
- Four-level Chart of Accounts hierarchy
- Balanced journal posting with soft deletion
- Balances derived from journal lines at read time
- Row-locked, caller-owned transactions for multi-step mutations
"""

__version__ = "0.1.0"
