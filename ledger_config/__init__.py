"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains settings.
    It loads the YAML once per process (``LEDGER_CONFIG_PATH`` /
    ``LEDGER_DATABASE_URL`` honoured) and returns a frozen
    ``LedgerSettings``.

Architecture position:
    Sits above ``ledger_kernel`` and beside ``ledger_modules``.  The kernel
    never imports this package; ``ledger_config.bridges`` turns settings
    into kernel inputs.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from ledger_config.loader import load_settings
from ledger_config.schema import LedgerSettings

_logger = logging.getLogger("ledger_kernel.config")


@lru_cache(maxsize=1)
def get_active_config() -> LedgerSettings:
    """The active ``LedgerSettings``, loaded on first call and cached."""
    settings = load_settings()
    _logger.info(
        "config_loaded",
        extra={
            "source_path": settings.source_path,
            "dialect": settings.database.url.split(":", 1)[0],
            "main_group_templates": len(settings.standard_chart.main_groups),
        },
    )
    return settings


def reset_active_config() -> None:
    """Forget the cached settings (tests, or after changing the environment)."""
    get_active_config.cache_clear()


__all__ = [
    "LedgerSettings",
    "get_active_config",
    "load_settings",
    "reset_active_config",
]
