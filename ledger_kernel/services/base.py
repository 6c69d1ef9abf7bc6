"""
BaseService -- abstract base for all kernel and module services.

Responsibility:
    Holds the caller's SQLAlchemy ``Session`` and the tenant-scoped row
    loader every mutating service builds on.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  The caller (``session_scope()``
    or a test fixture) owns commit/rollback, so a multi-step mutation and the
    row lock taken for it live in one transaction.

    Tenant isolation: rows are always loaded by ``(id, tenant_id)``.  A row
    owned by another tenant is indistinguishable from a missing one and
    raises the same NotFound error.
"""

from abc import ABC
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide report-style read models -- those belong
          in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

    def _get_owned(
        self,
        model: type[Any],
        tenant_id: int,
        row_id: UUID,
        not_found: Callable[[str], Exception],
        for_update: bool = False,
        where: Iterable[Any] = (),
    ) -> Any:
        """
        Load one row of ``model`` owned by ``tenant_id``.

        ``for_update`` takes the row lock (``SELECT ... FOR UPDATE``) that
        serializes read-compute-write sequences on the owning row.  Extra
        ``where`` criteria narrow the match further (e.g. not deleted).

        Raises:
            The exception built by ``not_found(str(row_id))`` when no row
            matches.
        """
        stmt = select(model).where(model.id == row_id, model.tenant_id == tenant_id, *where)
        if for_update:
            stmt = stmt.with_for_update()
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise not_found(str(row_id))
        return row
