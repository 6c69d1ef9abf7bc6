"""
Module: ledger_kernel.db.base
Responsibility: Declarative bases for every ORM model of the ledger.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel; MUST NOT import from models/, services/, selectors/, domain/ or
    outer layers.

Invariants enforced:
    - Every ledger row has a uuid4 primary key stored as String(36).
    - Collaborator references (tenant, client, entity, user) are plain
      integers, never foreign keys: those records live outside the ledger.
    - Money is Numeric(38, 9) through the type annotation map; floats are
      never mapped.
    - Every tenant-owned row carries a non-null ``tenant_id`` and the audit
      columns of ``TrackedBase``.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form, portable across PostgreSQL and SQLite."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative base: uuid4 ``id`` and the shared column type map."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Audit timestamps and actor ids.

    Actor ids come from the authentication collaborator and are optional:
    rows created by seeding or automatic postings have no human actor.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    updated_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class TenantTrackedBase(TrackedBase):
    """
    A tracked row owned by exactly one tenant.

    Services and selectors load these rows by ``(id, tenant_id)`` only, so
    a row of another tenant reads as missing.
    """

    __abstract__ = True

    tenant_id: Mapped[int] = mapped_column(BigInteger, nullable=False)


UUID = PyUUID
