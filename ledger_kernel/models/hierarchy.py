"""
Module: ledger_kernel.models.hierarchy
Responsibility: ORM persistence for the four classification levels of the
    Chart of Accounts: MainGroup -> ElementGroup -> SubElementGroup ->
    DetailedGroup.  Accounts hang off DetailedGroups.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - Every row is tenant-scoped; a parent always belongs to the same tenant
      (checked by ChartOfAccountsService before insert).
    - Codes are unique per tenant at every level (stricter than per parent).
    - name is drawn from the level's closed enumeration; custom_name is only
      meaningful when name == "custom".
"""

from typing import TYPE_CHECKING, ClassVar
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantTrackedBase, UUIDString
from ledger_kernel.domain.chart import CUSTOM_NAME, HierarchyLevel

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class _GroupBase(TenantTrackedBase):
    """Columns shared by every hierarchy level."""

    __abstract__ = True

    level: ClassVar[HierarchyLevel]

    # Used to build composite account codes
    code: Mapped[str] = mapped_column(String(100), nullable=False)

    # Value from the level's closed enumeration
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    # Free-form label for tenant-defined categories (name == "custom")
    custom_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def display_name(self) -> str:
        """custom_name for custom groups, otherwise the enumeration name."""
        if self.name == CUSTOM_NAME and self.custom_name:
            return self.custom_name
        return self.name

    @property
    def parent_id(self) -> UUID | None:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.display_name}>"


class MainGroup(_GroupBase):
    """Top level: balance_sheet / profit_and_loss / custom."""

    __tablename__ = "coa_main_groups"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_main_group_code"),
        Index("idx_main_group_tenant", "tenant_id"),
    )

    level = HierarchyLevel.MAIN_GROUP

    element_groups: Mapped[list["ElementGroup"]] = relationship(
        back_populates="main_group",
        order_by="ElementGroup.code",
    )


class ElementGroup(_GroupBase):
    """Second level: equity / liabilities / assets / incomes / expenses / custom."""

    __tablename__ = "coa_element_groups"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_element_group_code"),
        Index("idx_element_group_parent", "tenant_id", "main_group_id"),
    )

    level = HierarchyLevel.ELEMENT_GROUP

    main_group_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("coa_main_groups.id"),
        nullable=False,
    )

    main_group: Mapped["MainGroup"] = relationship(back_populates="element_groups")

    sub_element_groups: Mapped[list["SubElementGroup"]] = relationship(
        back_populates="element_group",
        order_by="SubElementGroup.code",
    )

    @property
    def parent_id(self) -> UUID | None:
        return self.main_group_id


class SubElementGroup(_GroupBase):
    """Third level, e.g. current_assets, sales, operating_expenses."""

    __tablename__ = "coa_sub_element_groups"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_sub_element_group_code"),
        Index("idx_sub_element_group_parent", "tenant_id", "element_group_id"),
    )

    level = HierarchyLevel.SUB_ELEMENT_GROUP

    element_group_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("coa_element_groups.id"),
        nullable=False,
    )

    element_group: Mapped["ElementGroup"] = relationship(
        back_populates="sub_element_groups"
    )

    detailed_groups: Mapped[list["DetailedGroup"]] = relationship(
        back_populates="sub_element_group",
        order_by="DetailedGroup.code",
    )

    @property
    def parent_id(self) -> UUID | None:
        return self.element_group_id


class DetailedGroup(_GroupBase):
    """Fourth level, e.g. cash_bank_balances, trade_debtors; parent of accounts."""

    __tablename__ = "coa_detailed_groups"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_detailed_group_code"),
        Index("idx_detailed_group_parent", "tenant_id", "sub_element_group_id"),
    )

    level = HierarchyLevel.DETAILED_GROUP

    sub_element_group_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("coa_sub_element_groups.id"),
        nullable=False,
    )

    sub_element_group: Mapped["SubElementGroup"] = relationship(
        back_populates="detailed_groups"
    )

    accounts: Mapped[list["Account"]] = relationship(
        back_populates="detailed_group",
        order_by="Account.account_code",
    )

    @property
    def parent_id(self) -> UUID | None:
        return self.sub_element_group_id


GROUP_MODELS: dict[HierarchyLevel, type[_GroupBase]] = {
    HierarchyLevel.MAIN_GROUP: MainGroup,
    HierarchyLevel.ELEMENT_GROUP: ElementGroup,
    HierarchyLevel.SUB_ELEMENT_GROUP: SubElementGroup,
    HierarchyLevel.DETAILED_GROUP: DetailedGroup,
}

# Level -> (parent level, foreign key attribute on the child)
PARENT_LINKS: dict[HierarchyLevel, tuple[HierarchyLevel, str]] = {
    HierarchyLevel.ELEMENT_GROUP: (HierarchyLevel.MAIN_GROUP, "main_group_id"),
    HierarchyLevel.SUB_ELEMENT_GROUP: (HierarchyLevel.ELEMENT_GROUP, "element_group_id"),
    HierarchyLevel.DETAILED_GROUP: (HierarchyLevel.SUB_ELEMENT_GROUP, "sub_element_group_id"),
}

# Level -> (child level, foreign key attribute on the child)
CHILD_LINKS: dict[HierarchyLevel, tuple[HierarchyLevel, str]] = {
    parent: (child, fk) for child, (parent, fk) in PARENT_LINKS.items()
}
