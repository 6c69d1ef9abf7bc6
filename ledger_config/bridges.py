"""
Config -> Kernel / Module Bridges.

Functions that turn ``LedgerSettings`` into kernel and module inputs.  They
live in ledger_config (the producer) because the kernel must never import
ledger_config.

Usage:
    from ledger_config.bridges import init_engine, seed_tenant

    init_engine()
    with session_scope() as session:
        seed_tenant(session, tenant_id=42)
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ledger_config import get_active_config
from ledger_config.schema import LedgerSettings
from ledger_kernel.db.engine import init_engine_from_settings
from ledger_kernel.domain.chart import DEFAULT_SYNONYMS, SynonymTable
from ledger_kernel.logging_config import configure_logging, get_logger
from ledger_kernel.services.chart_of_accounts_service import ChartOfAccountsService, SeedResult
from ledger_kernel.services.journal_service import JournalService
from ledger_modules.reporting.config import ReportingConfig

logger = get_logger("config.bridges")


def build_synonym_table(settings: LedgerSettings | None = None) -> SynonymTable:
    """Configured synonym pairs, or the built-in table when none are declared."""
    settings = settings or get_active_config()
    if not settings.chart.synonyms:
        return DEFAULT_SYNONYMS
    return SynonymTable.from_mapping(settings.chart.synonyms)


def build_chart_service(session: Session, settings: LedgerSettings | None = None) -> ChartOfAccountsService:
    settings = settings or get_active_config()
    return ChartOfAccountsService(
        session,
        synonyms=build_synonym_table(settings),
        account_code_width=settings.chart.account_code_width,
        group_code_suffix_width=settings.chart.group_code_suffix_width,
    )


def build_reporting_config(settings: LedgerSettings | None = None) -> ReportingConfig:
    settings = settings or get_active_config()
    cash_flow = settings.reporting.cash_flow
    return ReportingConfig(
        fiscal_year_start_month=settings.reporting.fiscal_year_start_month,
        operating_sub_elements=frozenset(cash_flow.operating),
        investing_sub_elements=frozenset(cash_flow.investing),
        financing_sub_elements=frozenset(cash_flow.financing),
        default_cash_flow_bucket=cash_flow.default_bucket,
    )


def configure_logging_from_settings(settings: LedgerSettings | None = None) -> None:
    settings = settings or get_active_config()
    configure_logging(level=logging.getLevelName(settings.logging.level))


def init_engine(settings: LedgerSettings | None = None) -> Engine:
    """Configure logging, then build the engine from the database settings."""
    settings = settings or get_active_config()
    configure_logging_from_settings(settings)
    return init_engine_from_settings(settings.database)


def seed_tenant(
    session: Session,
    tenant_id: int,
    settings: LedgerSettings | None = None,
    actor_id: int | None = None,
) -> SeedResult:
    """
    Seed the standard chart and the journal entry type catalogue.

    Idempotent; safe to run for an existing tenant.
    """
    settings = settings or get_active_config()
    result = build_chart_service(session, settings).seed_standard_chart(
        tenant_id, settings.standard_chart, actor_id=actor_id
    )
    types_created = JournalService(session).seed_entry_types(
        tenant_id, settings.standard_chart.journal_entry_types, actor_id=actor_id
    )
    logger.info(
        "tenant_seeded",
        extra={
            "tenant_id": tenant_id,
            "accounts_created": result.accounts_created,
            "entry_types_created": types_created,
        },
    )
    return result
