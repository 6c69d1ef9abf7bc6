"""
Invoicing Module.

Client invoices, line items and payments, kept numerically consistent and
optionally posted to the ledger on approval and payment receipt.
"""

from ledger_modules.invoicing.models import (
    InvoiceInfo,
    InvoiceLineItemInfo,
    InvoiceStatus,
    LineItemInput,
    PaymentInfo,
    PaymentMethod,
)
from ledger_modules.invoicing.service import InvoiceService, PaymentResult
from ledger_modules.invoicing.workflows import INVOICE_WORKFLOW

__all__ = [
    "INVOICE_WORKFLOW",
    "InvoiceInfo",
    "InvoiceLineItemInfo",
    "InvoiceService",
    "InvoiceStatus",
    "LineItemInput",
    "PaymentInfo",
    "PaymentMethod",
    "PaymentResult",
]
