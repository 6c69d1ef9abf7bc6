"""
Module: ledger_kernel.selectors.hierarchy_selector
Responsibility: Read-only access to accounts joined through the four-level
    hierarchy (MainGroup -> ElementGroup -> SubElementGroup -> DetailedGroup).
    This is the "collect" side of every hierarchical report.
Architecture position: Kernel > Selectors.

Failure modes:
    - Returns an empty list when the tenant has no matching accounts.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from ledger_kernel.domain.chart import AccountRole, AccountType
from ledger_kernel.models.account import Account
from ledger_kernel.models.hierarchy import (
    DetailedGroup,
    ElementGroup,
    MainGroup,
    SubElementGroup,
)
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class GroupRef:
    """One hierarchy node on an account's path."""

    id: UUID
    code: str
    name: str
    label: str


@dataclass(frozen=True)
class AccountPath:
    """An account with its full hierarchy path."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    role: AccountRole | None
    is_active: bool
    is_system_account: bool
    main_group: GroupRef
    element_group: GroupRef
    sub_element_group: GroupRef
    detailed_group: GroupRef

    @property
    def path(self) -> tuple[GroupRef, GroupRef, GroupRef, GroupRef]:
        return (
            self.main_group,
            self.element_group,
            self.sub_element_group,
            self.detailed_group,
        )


def _ref(group) -> GroupRef:
    return GroupRef(
        id=group.id,
        code=group.code,
        name=group.name,
        label=group.display_name,
    )


class HierarchySelector(BaseSelector[Account]):
    """Accounts with hierarchy paths, filtered by type, role or group."""

    def __init__(self, session: Session):
        super().__init__(session)

    def accounts_with_path(
        self,
        tenant_id: int,
        account_types: list[AccountType | str] | None = None,
        active_only: bool = True,
        sub_element_group_id: UUID | None = None,
        detailed_group_names: list[str] | None = None,
        roles: list[AccountRole | str] | None = None,
        account_ids: list[UUID] | None = None,
    ) -> list[AccountPath]:
        """
        Collect accounts of a tenant with their hierarchy path.

        Every join is tenant-filtered, so a path can never cross tenants.
        Results are ordered by account_code.
        """
        main = aliased(MainGroup)
        element = aliased(ElementGroup)
        sub = aliased(SubElementGroup)
        detailed = aliased(DetailedGroup)

        query = (
            select(Account, main, element, sub, detailed)
            .join(detailed, Account.detailed_group_id == detailed.id)
            .join(sub, detailed.sub_element_group_id == sub.id)
            .join(element, sub.element_group_id == element.id)
            .join(main, element.main_group_id == main.id)
            .where(
                Account.tenant_id == tenant_id,
                detailed.tenant_id == tenant_id,
                sub.tenant_id == tenant_id,
                element.tenant_id == tenant_id,
                main.tenant_id == tenant_id,
            )
            .order_by(Account.account_code)
        )

        if account_types is not None:
            query = query.where(
                Account.account_type.in_([AccountType(t).value for t in account_types])
            )
        if active_only:
            query = query.where(Account.is_active.is_(True))
        if sub_element_group_id is not None:
            query = query.where(sub.id == sub_element_group_id)
        if detailed_group_names is not None:
            query = query.where(detailed.name.in_(detailed_group_names))
        if roles is not None:
            query = query.where(Account.role.in_([AccountRole(r).value for r in roles]))
        if account_ids is not None:
            if not account_ids:
                return []
            query = query.where(Account.id.in_(account_ids))

        results = []
        for account, main_row, element_row, sub_row, detailed_row in self.session.execute(query).all():
            results.append(
                AccountPath(
                    account_id=account.id,
                    account_code=account.account_code,
                    account_name=account.name,
                    account_type=AccountType(account.account_type),
                    role=AccountRole(account.role) if account.role else None,
                    is_active=account.is_active,
                    is_system_account=account.is_system_account,
                    main_group=_ref(main_row),
                    element_group=_ref(element_row),
                    sub_element_group=_ref(sub_row),
                    detailed_group=_ref(detailed_row),
                )
            )
        return results

    def find_sub_element_group(self, tenant_id: int, group_id: UUID) -> GroupRef | None:
        """A sub-element group of the tenant as a GroupRef, or None."""
        group = self._find_owned(SubElementGroup, tenant_id, group_id)
        return _ref(group) if group is not None else None
