"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for leaf accounts of the Chart of Accounts --
    the target of every journal line.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - account_code and name are unique per tenant.
    - account_type is derived from the ancestor ElementGroup at creation.
    - current_balance is a display cache.  The authoritative balance is
      always derived from posted, non-deleted journal lines.
    - role (when set) tags the account for automatic postings; at most one
      active account per (tenant, role) is resolved by AccountRoleResolver.

Failure modes:
    - AccountNotFoundError when a posting references a missing account.
    - AccountInactiveError when a posting targets an inactive account.
    - HasDependenciesError when deletion is attempted on a referenced account.
"""

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantTrackedBase, UUIDString
from ledger_kernel.db.types import Money
from ledger_kernel.domain.chart import AccountRole, AccountType

if TYPE_CHECKING:
    from ledger_kernel.models.hierarchy import DetailedGroup

__all__ = ["Account", "AccountRole", "AccountType"]


class Account(TenantTrackedBase):
    """
    Chart of Accounts leaf ("AC head").

    Contract:
        Belongs to exactly one DetailedGroup of the same tenant.  Soft
        deletion flips is_active; hard deletion is only allowed when no
        live journal line references the account.

    Guarantees:
        - account_code is unique per tenant and non-null.
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "account_code", name="uq_account_code"),
        UniqueConstraint("tenant_id", "name", name="uq_account_name"),
        Index("idx_account_type", "tenant_id", "account_type"),
        Index("idx_account_role", "tenant_id", "role"),
        Index("idx_account_detailed_group", "detailed_group_id"),
    )

    detailed_group_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("coa_detailed_groups.id"),
        nullable=False,
    )

    # element.sub.detailed.NNN
    account_code: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Account type determines statement placement and the balance sign
    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    opening_balance: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    # Display cache, refreshed after every posting or deletion touching the account
    current_balance: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    is_system_account: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Explicit role tag (accounts_receivable, bank, cash, ...)
    role: Mapped[AccountRole | None] = mapped_column(String(50), nullable=True)

    # Collaborator references, by id only
    client_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    entity_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    detailed_group: Mapped["DetailedGroup"] = relationship(back_populates="accounts")

    def __repr__(self) -> str:
        return f"<Account {self.account_code}: {self.name}>"
