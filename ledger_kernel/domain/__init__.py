"""
Pure domain layer.

Vocabulary and rules with NO dependencies on the ORM, the database or
I/O (except SystemClock, the one sanctioned time source).
"""

from ledger_kernel.domain.chart import (
    DEFAULT_SYNONYMS,
    AccountRole,
    AccountType,
    DetailedGroupName,
    ElementGroupName,
    HierarchyLevel,
    MainGroupName,
    SubElementGroupName,
    SynonymTable,
    account_type_for_element,
    balance_sign,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock, fiscal_year_start

__all__ = [
    "AccountRole",
    "AccountType",
    "Clock",
    "DEFAULT_SYNONYMS",
    "DeterministicClock",
    "DetailedGroupName",
    "ElementGroupName",
    "HierarchyLevel",
    "MainGroupName",
    "SubElementGroupName",
    "SynonymTable",
    "SystemClock",
    "account_type_for_element",
    "balance_sign",
    "fiscal_year_start",
]
