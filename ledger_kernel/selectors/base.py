"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.commit() or session.flush().
    - Tenant scoping: every lookup is keyed by tenant_id; another tenant's
      row reads as absent.
    - Balances are derived from journal lines, never read from the
      Account.current_balance display cache.
"""

from abc import ABC
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only queries over the caller's session, returning DTOs."""

    def __init__(self, session: Session):
        self.session = session

    def _find_owned(self, model: type[Any], tenant_id: int, row_id: UUID) -> Any | None:
        """One row of ``model`` owned by ``tenant_id``, or None."""
        return self.session.execute(
            select(model).where(model.id == row_id, model.tenant_id == tenant_id)
        ).scalar_one_or_none()
