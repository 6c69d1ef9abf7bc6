"""
Schema registry for the whole ledger (``ledger_modules._orm_registry``).

``Base.metadata`` only knows the tables of modules that have been imported.
``create_all_tables()`` imports the kernel models and the invoicing ORM,
then creates every table.  Run it once after ``init_engine()``; the test
fixtures use it too.

Lives in the modules layer so the kernel never imports module code.
"""

from sqlalchemy.engine import Engine


def import_all_orm_models() -> None:
    """Import kernel models and every ``ledger_modules.*.orm`` module.

    Kernel tables first: module tables reference nothing in the kernel by
    foreign key, but keeping the order fixed keeps ``create_all`` stable.

    This function is idempotent -- repeated calls are harmless.
    """
    import ledger_kernel.models  # noqa: F401
    import ledger_modules.invoicing.orm  # noqa: F401


def create_all_tables(engine: Engine | None = None) -> None:
    """Create kernel + module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()`` unless
        ``engine`` is passed.
    """
    from ledger_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables(engine)
