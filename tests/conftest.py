"""
Pytest fixtures for the practice ledger test suite.

Provides:
- A fresh in-memory SQLite database per test with the full schema
- A deterministic clock
- Captured structured logs
- A tenant seeded with the standard chart of accounts

Environment Variables:
- LEDGER_TEST_DATABASE_URL: run against another database (e.g. PostgreSQL)
  instead of in-memory SQLite.
"""

import json
import logging
import os
from collections.abc import Generator
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ledger_config.bridges import build_chart_service, seed_tenant
from ledger_config.loader import load_settings
from ledger_kernel.db.base import Base
from ledger_kernel.db.engine import build_engine
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.services.journal_service import JournalEntrySpec, JournalLineSpec, JournalService
from ledger_modules._orm_registry import create_all_tables

TENANT_ID = 1
OTHER_TENANT_ID = 2
TEST_ACTOR_ID = 7


def get_database_url() -> str:
    return os.environ.get("LEDGER_TEST_DATABASE_URL", "sqlite:///:memory:")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, journal_service):
            journal_service.post_journal_entry(...)
            logs = captured_logs()
            assert any(r["message"] == "journal_entry_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """A fresh engine with every kernel and module table created."""
    engine = build_engine(get_database_url())
    create_all_tables(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing; rolled back at teardown."""
    sess = Session(bind=db_engine, expire_on_commit=False)
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2024-06-30 12:00 UTC."""
    return DeterministicClock.on(date(2024, 6, 30))


# =============================================================================
# Configuration and seeding
# =============================================================================


@pytest.fixture(scope="session")
def ledger_settings():
    """Packaged default settings (database URL is never used by tests)."""
    return load_settings(environ={})


@pytest.fixture
def chart_service(session, ledger_settings):
    return build_chart_service(session, ledger_settings)


@pytest.fixture
def journal_service(session):
    return JournalService(session)


@pytest.fixture
def seeded_chart(session, ledger_settings):
    """Standard chart and entry types for TENANT_ID; returns the SeedResult."""
    result = seed_tenant(session, TENANT_ID, settings=ledger_settings, actor_id=TEST_ACTOR_ID)
    session.flush()
    return result


@pytest.fixture
def role_accounts(seeded_chart) -> dict[str, object]:
    """Role name -> account id of the seeded standard chart."""
    return dict(seeded_chart.role_accounts)


@pytest.fixture
def account_by_name(chart_service, seeded_chart):
    """Look up a seeded account id by its name."""

    def _lookup(name: str):
        for account in chart_service.list_accounts(TENANT_ID, include_inactive=True):
            if account.name == name:
                return account.id
        raise KeyError(name)

    return _lookup


@pytest.fixture
def post_entry(journal_service):
    """
    Post a balanced two-line entry.

    Usage::

        post_entry(debit=bank_id, credit=revenue_id, amount="1000.00",
                   entry_date=date(2024, 3, 1))
    """

    def _post(
        debit,
        credit,
        amount,
        entry_date: date = date(2024, 3, 1),
        reference: str | None = None,
        is_posted: bool = True,
        tenant_id: int = TENANT_ID,
    ):
        return journal_service.post_journal_entry(
            tenant_id,
            JournalEntrySpec(
                entry_date=entry_date,
                reference=reference,
                entry_type_code="JE",
                is_posted=is_posted,
            ),
            [
                JournalLineSpec.debit(debit, Decimal(str(amount))),
                JournalLineSpec.credit(credit, Decimal(str(amount))),
            ],
            actor_id=TEST_ACTOR_ID,
        )

    return _post
