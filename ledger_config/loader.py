"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads the YAML files and parses them into the frozen dataclasses of
``ledger_config.schema``.  Runtime callers go through
``ledger_config.get_active_config()``; tests call ``load_settings`` with
their own paths.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown top-level sections or bad values  -> ``ValueError``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    AccountTemplate,
    CashFlowSettings,
    ChartSettings,
    DatabaseSettings,
    GroupTemplate,
    JournalEntryTypeTemplate,
    LedgerSettings,
    LoggingSettings,
    ReportingSettings,
    StandardChartTemplate,
)

DEFAULTS_DIR = Path(__file__).parent / "defaults"
DEFAULT_SETTINGS_FILE = DEFAULTS_DIR / "ledger.yaml"

CONFIG_PATH_ENV = "LEDGER_CONFIG_PATH"
DATABASE_URL_ENV = "LEDGER_DATABASE_URL"

_KNOWN_SECTIONS = frozenset(
    {"database", "logging", "chart", "reporting", "standard_chart_file"}
)
_CASH_FLOW_BUCKETS = ("operating", "investing", "financing")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    defaults = DatabaseSettings()
    return DatabaseSettings(
        url=data.get("url", defaults.url),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
        pool_pre_ping=bool(data.get("pool_pre_ping", defaults.pool_pre_ping)),
        pool_timeout=int(data.get("pool_timeout", defaults.pool_timeout)),
        pool_recycle=int(data.get("pool_recycle", defaults.pool_recycle)),
    )


def parse_chart(data: dict[str, Any]) -> ChartSettings:
    synonyms = []
    for item in data.get("synonyms", []):
        if isinstance(item, dict):
            synonyms.extend((str(k), str(v)) for k, v in item.items())
        else:
            name, synonym = item
            synonyms.append((str(name), str(synonym)))
    return ChartSettings(
        account_code_width=int(data.get("account_code_width", 3)),
        group_code_suffix_width=int(data.get("group_code_suffix_width", 2)),
        synonyms=tuple(synonyms),
    )


def parse_cash_flow(data: dict[str, Any]) -> CashFlowSettings:
    default_bucket = data.get("default_bucket", "operating")
    if default_bucket not in _CASH_FLOW_BUCKETS:
        raise ValueError(f"Unknown cash flow bucket {default_bucket!r}")
    return CashFlowSettings(
        operating=tuple(data.get("operating", ())),
        investing=tuple(data.get("investing", ())),
        financing=tuple(data.get("financing", ())),
        default_bucket=default_bucket,
    )


def parse_reporting(data: dict[str, Any]) -> ReportingSettings:
    month = int(data.get("fiscal_year_start_month", 1))
    if not 1 <= month <= 12:
        raise ValueError(f"fiscal_year_start_month must be 1-12, got {month}")
    return ReportingSettings(
        fiscal_year_start_month=month,
        cash_flow=parse_cash_flow(data.get("cash_flow", {})),
    )


def parse_account_template(data: dict[str, Any]) -> AccountTemplate:
    return AccountTemplate(
        name=data["name"],
        account_type=data.get("account_type"),
        description=data.get("description"),
        is_system_account=bool(data.get("is_system_account", True)),
        role=data.get("role"),
    )


def parse_group_template(data: dict[str, Any]) -> GroupTemplate:
    """Parse a group node and, recursively, its children."""
    return GroupTemplate(
        name=data["name"],
        code=data.get("code"),
        custom_name=data.get("custom_name"),
        description=data.get("description"),
        children=tuple(parse_group_template(c) for c in data.get("children", [])),
        accounts=tuple(parse_account_template(a) for a in data.get("accounts", [])),
    )


def parse_standard_chart(data: dict[str, Any]) -> StandardChartTemplate:
    return StandardChartTemplate(
        main_groups=tuple(parse_group_template(g) for g in data.get("main_groups", [])),
        journal_entry_types=tuple(
            JournalEntryTypeTemplate(
                code=t["code"],
                name=t["name"],
                description=t.get("description"),
            )
            for t in data.get("journal_entry_types", [])
        ),
    )


def load_standard_chart(path: Path) -> StandardChartTemplate:
    return parse_standard_chart(load_yaml_file(path))


def load_settings(path: Path | str | None = None, environ: dict[str, str] | None = None) -> LedgerSettings:
    """
    Load ``LedgerSettings`` from YAML.

    Resolution:
        1. ``path`` if given, else ``$LEDGER_CONFIG_PATH``, else the
           packaged ``defaults/ledger.yaml``.
        2. ``standard_chart_file`` is resolved relative to the settings
           file; without it the packaged standard chart is used.
        3. ``$LEDGER_DATABASE_URL`` replaces ``database.url``.
    """
    environ = os.environ if environ is None else environ
    if path is None:
        path = environ.get(CONFIG_PATH_ENV) or DEFAULT_SETTINGS_FILE
    path = Path(path)

    data = load_yaml_file(path)
    unknown = set(data) - _KNOWN_SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections in {path}: {sorted(unknown)}")

    database = dict(data.get("database", {}))
    if environ.get(DATABASE_URL_ENV):
        database["url"] = environ[DATABASE_URL_ENV]

    chart_file = data.get("standard_chart_file")
    chart_path = path.parent / chart_file if chart_file else DEFAULTS_DIR / "standard_chart.yaml"

    return LedgerSettings(
        database=parse_database(database),
        logging=LoggingSettings(level=str(data.get("logging", {}).get("level", "INFO")).upper()),
        chart=parse_chart(data.get("chart", {})),
        reporting=parse_reporting(data.get("reporting", {})),
        standard_chart=load_standard_chart(chart_path),
        source_path=str(path),
    )
