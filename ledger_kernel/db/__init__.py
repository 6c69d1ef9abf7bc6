"""Database layer - engine, declarative bases and column types."""

from ledger_kernel.db.base import UUID, Base, TenantTrackedBase, TrackedBase, UUIDString
from ledger_kernel.db.engine import (
    build_engine,
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.db.types import Currency, Money, Rate, format_money, round_money, to_decimal

__all__ = [
    "Base",
    "Currency",
    "Money",
    "Rate",
    "TenantTrackedBase",
    "TrackedBase",
    "UUID",
    "UUIDString",
    "build_engine",
    "create_tables",
    "format_money",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "round_money",
    "session_scope",
    "to_decimal",
]
