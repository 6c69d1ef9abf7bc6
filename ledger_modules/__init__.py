"""
Ledger Modules.

Thin orchestration layers over the Ledger Kernel:

- Invoicing: client invoices, line items, payments, ledger postings
- Reporting: P&L, Balance Sheet, Cash Flow, Tax Summary, Expense Report

Modules import from ``ledger_kernel``; the kernel never imports from here.
"""
