"""
LedgerSettings schema.

Frozen dataclasses the loader parses YAML into.  Two source artifacts feed
one ``LedgerSettings``:

  ledger.yaml          = runtime settings (database, logging, chart rules,
                         reporting)
  standard_chart.yaml  = StandardChartTemplate used to seed new tenants
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings consumed by ``ledger_kernel.db.init_engine_from_settings``."""

    url: str = "sqlite:///:memory:"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_pre_ping: bool = True
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class ChartSettings:
    """Chart of Accounts rules."""

    account_code_width: int = 3
    group_code_suffix_width: int = 2
    # (name, synonym) pairs, matched both ways
    synonyms: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CashFlowSettings:
    """Sub-element group names per cash flow bucket.

    Counter-account sub-element groups not listed fall into
    ``default_bucket``.
    """

    operating: tuple[str, ...] = ()
    investing: tuple[str, ...] = ()
    financing: tuple[str, ...] = ()
    default_bucket: str = "operating"


@dataclass(frozen=True)
class ReportingSettings:
    # Month the default P&L window starts in (1 = January of the current year)
    fiscal_year_start_month: int = 1
    cash_flow: CashFlowSettings = field(default_factory=CashFlowSettings)


# ---------------------------------------------------------------------------
# Standard chart template
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountTemplate:
    """A leaf account created under a detailed group by seeding."""

    name: str
    account_type: str | None = None  # derived from the element group when None
    description: str | None = None
    is_system_account: bool = True
    role: str | None = None


@dataclass(frozen=True)
class GroupTemplate:
    """One node of the four-level hierarchy.

    ``children`` holds the next level down; ``accounts`` is only read on
    detailed groups.
    """

    name: str
    code: str | None = None
    custom_name: str | None = None
    description: str | None = None
    children: tuple[GroupTemplate, ...] = ()
    accounts: tuple[AccountTemplate, ...] = ()


@dataclass(frozen=True)
class JournalEntryTypeTemplate:
    code: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class StandardChartTemplate:
    main_groups: tuple[GroupTemplate, ...] = ()
    journal_entry_types: tuple[JournalEntryTypeTemplate, ...] = ()


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerSettings:
    """The complete runtime configuration."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    chart: ChartSettings = field(default_factory=ChartSettings)
    reporting: ReportingSettings = field(default_factory=ReportingSettings)
    standard_chart: StandardChartTemplate = field(default_factory=StandardChartTemplate)
    source_path: str | None = None
