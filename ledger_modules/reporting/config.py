"""
Reporting Configuration Schema.

Defines the report period defaults and the cash flow classification rules.
Counter accounts are classified into operating / investing / financing by
the name of their sub-element group, consistent with the closed
SubElementGroup vocabulary of the Chart of Accounts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Self

from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")

CASH_FLOW_BUCKETS = ("operating", "investing", "financing")


@dataclass(frozen=True)
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Built from ``LedgerSettings`` by ``ledger_config.bridges`` at runtime;
    ``with_defaults()`` matches the packaged defaults.
    """

    # Month the default P&L / cash flow window starts in
    fiscal_year_start_month: int = 1

    operating_sub_elements: frozenset[str] = field(
        default_factory=lambda: frozenset(
            {
                "current_assets",
                "current_liabilities",
                "sales",
                "service_revenue",
                "cost_of_sales",
                "cost_of_service_revenue",
                "purchase_returns",
                "operating_expenses",
                "other_income",
            }
        )
    )
    investing_sub_elements: frozenset[str] = field(
        default_factory=lambda: frozenset({"non_current_assets"})
    )
    financing_sub_elements: frozenset[str] = field(
        default_factory=lambda: frozenset(
            {"capital", "share_capital", "reserves", "non_current_liabilities"}
        )
    )
    # Bucket for custom or unlisted sub-element groups
    default_cash_flow_bucket: str = "operating"

    def __post_init__(self):
        if not 1 <= self.fiscal_year_start_month <= 12:
            raise ValueError("fiscal_year_start_month must be between 1 and 12")
        if self.default_cash_flow_bucket not in CASH_FLOW_BUCKETS:
            raise ValueError(f"default_cash_flow_bucket must be one of {CASH_FLOW_BUCKETS}")

    def bucket_for(self, sub_element_name: str | None) -> str:
        """Cash flow bucket of a counter account's sub-element group."""
        if sub_element_name in self.investing_sub_elements:
            return "investing"
        if sub_element_name in self.financing_sub_elements:
            return "financing"
        if sub_element_name in self.operating_sub_elements:
            return "operating"
        return self.default_cash_flow_bucket

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.debug("reporting_config_created_with_defaults")
        return cls()
