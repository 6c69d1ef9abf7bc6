"""
Service layer for the Chart of Accounts.

Manages the four hierarchy levels (MainGroup -> ElementGroup ->
SubElementGroup -> DetailedGroup) and the leaf accounts below them:
creation with generated codes, lookup with the synonym fallback chain,
dependency-checked deletion, soft deactivation and reactivation of
accounts, and seeding of the standard chart.

All public methods return frozen DTOs, never ORM rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ledger_kernel.db.types import to_decimal
from ledger_kernel.domain.chart import (
    CUSTOM_NAME,
    DEFAULT_SYNONYMS,
    AccountRole,
    AccountType,
    HierarchyLevel,
    SynonymTable,
    account_code_prefix,
    account_type_for_element,
    compose_group_code,
    group_slug,
    is_valid_group_name,
    next_account_code,
)
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    DuplicateValueError,
    GroupNotFoundError,
    HasDependenciesError,
    InvalidAccountTypeError,
    InvalidAmountError,
    InvalidGroupNameError,
    MissingFieldError,
    SystemAccountProtectedError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.hierarchy import (
    CHILD_LINKS,
    GROUP_MODELS,
    PARENT_LINKS,
    DetailedGroup,
    ElementGroup,
    MainGroup,
    SubElementGroup,
)
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.base import BaseService

logger = get_logger("services.chart_of_accounts")


def _plain(name: Enum | str | None) -> str:
    """Normalize a group name given as an enum member or a string."""
    if name is None:
        return ""
    if isinstance(name, Enum):
        name = name.value
    return str(name).strip().lower()


@dataclass(frozen=True)
class GroupInfo:
    """Immutable DTO for a hierarchy group at any level."""

    id: UUID
    level: HierarchyLevel
    tenant_id: int
    code: str
    name: str
    custom_name: str | None
    description: str | None
    is_active: bool
    parent_id: UUID | None

    @property
    def display_name(self) -> str:
        if self.name == CUSTOM_NAME and self.custom_name:
            return self.custom_name
        return self.name


@dataclass(frozen=True)
class AccountInfo:
    """Immutable DTO for a leaf account."""

    id: UUID
    tenant_id: int
    detailed_group_id: UUID
    account_code: str
    name: str
    account_type: AccountType
    opening_balance: Decimal
    current_balance: Decimal
    is_system_account: bool
    is_active: bool
    role: AccountRole | None
    client_id: int | None
    entity_id: int | None
    description: str | None


@dataclass(frozen=True)
class SeedResult:
    """Outcome of seeding the standard chart for a tenant."""

    tenant_id: int
    groups_created: int
    groups_reused: int
    accounts_created: int
    accounts_reused: int
    role_accounts: dict[str, UUID] = field(default_factory=dict)


class ChartOfAccountsService(BaseService[Account]):
    """
    Service for managing the Chart of Accounts of a tenant.

    Contract:
        Every read and write is scoped by tenant_id.  A group or account id
        owned by another tenant raises the same NotFound error as a missing
        id.  The service flushes; the caller commits.
    """

    def __init__(
        self,
        session: Session,
        synonyms: SynonymTable | None = None,
        account_code_width: int = 3,
        group_code_suffix_width: int = 2,
    ):
        super().__init__(session)
        self._synonyms = synonyms or DEFAULT_SYNONYMS
        self._account_code_width = account_code_width
        self._group_code_suffix_width = group_code_suffix_width

    # ------------------------------------------------------------------
    # DTO conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _group_to_dto(group) -> GroupInfo:
        return GroupInfo(
            id=group.id,
            level=group.level,
            tenant_id=group.tenant_id,
            code=group.code,
            name=group.name,
            custom_name=group.custom_name,
            description=group.description,
            is_active=group.is_active,
            parent_id=group.parent_id,
        )

    @staticmethod
    def _account_to_dto(account: Account) -> AccountInfo:
        return AccountInfo(
            id=account.id,
            tenant_id=account.tenant_id,
            detailed_group_id=account.detailed_group_id,
            account_code=account.account_code,
            name=account.name,
            account_type=AccountType(account.account_type),
            opening_balance=account.opening_balance,
            current_balance=account.current_balance,
            is_system_account=account.is_system_account,
            is_active=account.is_active,
            role=AccountRole(account.role) if account.role else None,
            client_id=account.client_id,
            entity_id=account.entity_id,
            description=account.description,
        )

    # ------------------------------------------------------------------
    # Group loading
    # ------------------------------------------------------------------

    def _get_group(
        self,
        level: HierarchyLevel,
        tenant_id: int,
        group_id: UUID,
        for_update: bool = False,
    ):
        level = HierarchyLevel(level)
        return self._get_owned(
            GROUP_MODELS[level],
            tenant_id,
            group_id,
            lambda missing: GroupNotFoundError(level.value, missing),
            for_update=for_update,
        )

    def _taken_group_codes(self, level: HierarchyLevel, tenant_id: int) -> set[str]:
        model = GROUP_MODELS[level]
        return set(
            self.session.execute(
                select(model.code).where(model.tenant_id == tenant_id)
            ).scalars()
        )

    def _siblings(self, level: HierarchyLevel, tenant_id: int, parent_id: UUID | None):
        model = GROUP_MODELS[level]
        stmt = select(model).where(model.tenant_id == tenant_id)
        if parent_id is not None and level in PARENT_LINKS:
            _, fk = PARENT_LINKS[level]
            stmt = stmt.where(getattr(model, fk) == parent_id)
        return list(self.session.execute(stmt.order_by(model.code)).scalars().all())

    # ------------------------------------------------------------------
    # Group creation
    # ------------------------------------------------------------------

    def _create_group(
        self,
        level: HierarchyLevel,
        tenant_id: int,
        parent_id: UUID | None,
        name: str,
        custom_name: str | None,
        description: str | None,
        code: str | None,
        actor_id: int | None,
    ) -> GroupInfo:
        name = _plain(name)
        if not name:
            raise MissingFieldError("name")
        if not is_valid_group_name(level, name):
            raise InvalidGroupNameError(level.value, name)
        custom_name = custom_name.strip() if custom_name else None
        if name == CUSTOM_NAME and not custom_name:
            raise MissingFieldError("custom_name")
        if name != CUSTOM_NAME and custom_name:
            raise InvalidGroupNameError(
                level.value, name, "custom_name is only allowed when name is 'custom'"
            )

        parent = None
        if level in PARENT_LINKS:
            parent_level, fk = PARENT_LINKS[level]
            if parent_id is None:
                raise MissingFieldError(fk)
            # Lock the parent so sibling code allocation is serialized
            parent = self._get_group(parent_level, tenant_id, parent_id, for_update=True)

        taken = self._taken_group_codes(level, tenant_id)
        if code:
            code = code.strip()
            if code in taken:
                raise DuplicateValueError(f"{level.value} code", code)
        else:
            code = compose_group_code(
                parent.code if parent is not None else None,
                group_slug(name, custom_name),
                taken,
                suffix_width=self._group_code_suffix_width,
            )

        model = GROUP_MODELS[level]
        group = model(
            tenant_id=tenant_id,
            code=code,
            name=name,
            custom_name=custom_name,
            description=description,
            is_active=True,
            created_by_id=actor_id,
        )
        if parent is not None:
            _, fk = PARENT_LINKS[level]
            setattr(group, fk, parent.id)

        self.session.add(group)
        self.session.flush()

        logger.info(
            "group_created",
            extra={
                "level": level.value,
                "group_id": str(group.id),
                "tenant_id": tenant_id,
                "code": code,
                "group_name": name,
            },
        )
        return self._group_to_dto(group)

    def create_main_group(
        self,
        tenant_id: int,
        name: str,
        custom_name: str | None = None,
        description: str | None = None,
        code: str | None = None,
        actor_id: int | None = None,
    ) -> GroupInfo:
        """
        Create a top-level group (balance_sheet / profit_and_loss / custom).

        Raises:
            InvalidGroupNameError: Name outside the enumeration.
            MissingFieldError: custom_name missing for a custom group.
            DuplicateValueError: Explicit code already used by the tenant.
        """
        return self._create_group(
            HierarchyLevel.MAIN_GROUP, tenant_id, None, name, custom_name, description, code, actor_id
        )

    def create_element_group(
        self,
        tenant_id: int,
        main_group_id: UUID,
        name: str,
        custom_name: str | None = None,
        description: str | None = None,
        code: str | None = None,
        actor_id: int | None = None,
    ) -> GroupInfo:
        """Create an element group under a main group of the same tenant."""
        return self._create_group(
            HierarchyLevel.ELEMENT_GROUP, tenant_id, main_group_id, name, custom_name, description, code, actor_id
        )

    def create_sub_element_group(
        self,
        tenant_id: int,
        element_group_id: UUID,
        name: str,
        custom_name: str | None = None,
        description: str | None = None,
        code: str | None = None,
        actor_id: int | None = None,
    ) -> GroupInfo:
        """Create a sub-element group under an element group of the same tenant."""
        return self._create_group(
            HierarchyLevel.SUB_ELEMENT_GROUP, tenant_id, element_group_id, name, custom_name, description, code, actor_id
        )

    def create_detailed_group(
        self,
        tenant_id: int,
        sub_element_group_id: UUID,
        name: str,
        custom_name: str | None = None,
        description: str | None = None,
        code: str | None = None,
        actor_id: int | None = None,
    ) -> GroupInfo:
        """Create a detailed group under a sub-element group of the same tenant."""
        return self._create_group(
            HierarchyLevel.DETAILED_GROUP, tenant_id, sub_element_group_id, name, custom_name, description, code, actor_id
        )

    # ------------------------------------------------------------------
    # Group reads / updates / deletes
    # ------------------------------------------------------------------

    def get_group(self, level: HierarchyLevel | str, tenant_id: int, group_id: UUID) -> GroupInfo:
        """
        Get one group.

        Raises:
            GroupNotFoundError: Missing, or owned by another tenant.
        """
        return self._group_to_dto(self._get_group(HierarchyLevel(level), tenant_id, group_id))

    def list_groups(
        self,
        level: HierarchyLevel | str,
        tenant_id: int,
        parent_id: UUID | None = None,
        include_inactive: bool = True,
    ) -> list[GroupInfo]:
        """List the groups of one level, optionally under one parent, by code."""
        level = HierarchyLevel(level)
        groups = self._siblings(level, tenant_id, parent_id)
        if not include_inactive:
            groups = [g for g in groups if g.is_active]
        return [self._group_to_dto(g) for g in groups]

    def find_group_by_name(
        self,
        level: HierarchyLevel | str,
        tenant_id: int,
        name: str,
        parent_id: UUID | None = None,
    ) -> GroupInfo | None:
        """
        Resolve a group by a possibly drifting name.

        The fallback chain, in order:

        1. exact match on name (or on custom_name, case-insensitive);
        2. a declared synonym of the name (income/incomes, ...);
        3. any ``custom`` group under the parent;
        4. the first available sibling (lowest code).

        Returns None only when the parent has no groups at all.
        """
        level = HierarchyLevel(level)
        siblings = self._siblings(level, tenant_id, parent_id)
        if not siblings:
            return None

        wanted = (name or "").strip().lower()

        for group in siblings:
            if group.name == wanted:
                return self._group_to_dto(group)
        for group in siblings:
            if group.custom_name and group.custom_name.strip().lower() == wanted:
                return self._group_to_dto(group)

        for synonym in self._synonyms.synonyms_of(wanted):
            for group in siblings:
                if group.name == synonym:
                    logger.debug(
                        "group_matched_by_synonym",
                        extra={"level": level.value, "requested": wanted, "matched": synonym},
                    )
                    return self._group_to_dto(group)

        for group in siblings:
            if group.name == CUSTOM_NAME:
                logger.debug(
                    "group_matched_custom_fallback",
                    extra={"level": level.value, "requested": wanted, "group_id": str(group.id)},
                )
                return self._group_to_dto(group)

        logger.debug(
            "group_matched_first_sibling",
            extra={"level": level.value, "requested": wanted, "group_id": str(siblings[0].id)},
        )
        return self._group_to_dto(siblings[0])

    def update_group(
        self,
        level: HierarchyLevel | str,
        tenant_id: int,
        group_id: UUID,
        name: str | None = None,
        custom_name: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
        actor_id: int | None = None,
    ) -> GroupInfo:
        """
        Rename or update a group.  The code never changes.

        Raises:
            GroupNotFoundError, InvalidGroupNameError, MissingFieldError.
        """
        level = HierarchyLevel(level)
        group = self._get_group(level, tenant_id, group_id, for_update=True)

        new_name = _plain(name) or group.name
        if not is_valid_group_name(level, new_name):
            raise InvalidGroupNameError(level.value, new_name)
        new_custom = custom_name.strip() if custom_name else group.custom_name
        if new_name != CUSTOM_NAME:
            if custom_name:
                raise InvalidGroupNameError(
                    level.value, new_name, "custom_name is only allowed when name is 'custom'"
                )
            new_custom = None
        elif not new_custom:
            raise MissingFieldError("custom_name")

        group.name = new_name
        group.custom_name = new_custom
        if description is not None:
            group.description = description
        if is_active is not None:
            group.is_active = is_active
        group.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "group_updated",
            extra={"level": level.value, "group_id": str(group.id), "tenant_id": tenant_id},
        )
        return self._group_to_dto(group)

    def delete_group(self, level: HierarchyLevel | str, tenant_id: int, group_id: UUID) -> None:
        """
        Hard-delete a group scoped to (id, tenant_id).

        A group that still has children (or, for a DetailedGroup, accounts)
        is never deleted and never cascaded.

        Raises:
            GroupNotFoundError: Missing, or owned by another tenant.
            HasDependenciesError: Children or accounts still reference it.
        """
        level = HierarchyLevel(level)
        group = self._get_group(level, tenant_id, group_id, for_update=True)

        if level in CHILD_LINKS:
            child_level, fk = CHILD_LINKS[level]
            child_model = GROUP_MODELS[child_level]
            count = self.session.execute(
                select(func.count(child_model.id)).where(getattr(child_model, fk) == group.id)
            ).scalar_one()
            dependency_kind = f"{child_level.value}s"
        else:
            count = self.session.execute(
                select(func.count(Account.id)).where(Account.detailed_group_id == group.id)
            ).scalar_one()
            dependency_kind = "accounts"

        if count:
            logger.warning(
                "group_delete_blocked",
                extra={
                    "level": level.value,
                    "group_id": str(group.id),
                    "dependency_kind": dependency_kind,
                    "dependency_count": count,
                },
            )
            raise HasDependenciesError(level.value, str(group.id), dependency_kind, count)

        self.session.delete(group)
        self.session.flush()
        logger.info(
            "group_deleted",
            extra={"level": level.value, "group_id": str(group_id), "tenant_id": tenant_id},
        )

    def hierarchy_tree(self, tenant_id: int, include_inactive: bool = False) -> list[dict[str, Any]]:
        """
        The whole chart as nested JSON-ready dicts for the admin UI.

        Each node carries id, code, name, custom_name, label, is_active and
        either ``children`` (group levels) or ``accounts`` (detailed groups).
        """

        def rows(model, order_attr):
            stmt = select(model).where(model.tenant_id == tenant_id)
            if not include_inactive:
                stmt = stmt.where(model.is_active.is_(True))
            return list(self.session.execute(stmt.order_by(order_attr)).scalars().all())

        mains = rows(MainGroup, MainGroup.code)
        elements = rows(ElementGroup, ElementGroup.code)
        subs = rows(SubElementGroup, SubElementGroup.code)
        detaileds = rows(DetailedGroup, DetailedGroup.code)
        accounts = rows(Account, Account.account_code)

        def node(group) -> dict[str, Any]:
            return {
                "id": str(group.id),
                "level": group.level.value,
                "code": group.code,
                "name": group.name,
                "custom_name": group.custom_name,
                "label": group.display_name,
                "is_active": group.is_active,
            }

        accounts_by_detailed: dict[UUID, list[dict[str, Any]]] = {}
        for account in accounts:
            accounts_by_detailed.setdefault(account.detailed_group_id, []).append(
                {
                    "id": str(account.id),
                    "account_code": account.account_code,
                    "name": account.name,
                    "account_type": AccountType(account.account_type).value,
                    "role": account.role,
                    "is_system_account": account.is_system_account,
                    "is_active": account.is_active,
                }
            )

        detailed_by_sub: dict[UUID, list[dict[str, Any]]] = {}
        for group in detaileds:
            item = node(group)
            item["accounts"] = accounts_by_detailed.get(group.id, [])
            detailed_by_sub.setdefault(group.sub_element_group_id, []).append(item)

        sub_by_element: dict[UUID, list[dict[str, Any]]] = {}
        for group in subs:
            item = node(group)
            item["children"] = detailed_by_sub.get(group.id, [])
            sub_by_element.setdefault(group.element_group_id, []).append(item)

        element_by_main: dict[UUID, list[dict[str, Any]]] = {}
        for group in elements:
            item = node(group)
            item["children"] = sub_by_element.get(group.id, [])
            element_by_main.setdefault(group.main_group_id, []).append(item)

        tree = []
        for group in mains:
            item = node(group)
            item["children"] = element_by_main.get(group.id, [])
            tree.append(item)
        return tree

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _get_account(self, tenant_id: int, account_id: UUID, for_update: bool = False) -> Account:
        return self._get_owned(Account, tenant_id, account_id, AccountNotFoundError, for_update=for_update)

    def _account_path_codes(self, tenant_id: int, detailed: DetailedGroup) -> tuple[SubElementGroup, ElementGroup]:
        sub = self._get_group(HierarchyLevel.SUB_ELEMENT_GROUP, tenant_id, detailed.sub_element_group_id)
        element = self._get_group(HierarchyLevel.ELEMENT_GROUP, tenant_id, sub.element_group_id)
        return sub, element

    def _allocate_account_code(
        self,
        tenant_id: int,
        detailed: DetailedGroup,
        sub: SubElementGroup,
        element: ElementGroup,
    ) -> str:
        prefix = account_code_prefix(element.code, sub.code, detailed.code)
        taken = self.session.execute(
            select(Account.account_code).where(
                Account.tenant_id == tenant_id,
                Account.account_code.like(f"{prefix}.%"),
            )
        ).scalars()
        return next_account_code(prefix, taken, width=self._account_code_width)

    def _check_role_free(self, tenant_id: int, role: AccountRole, exclude_id: UUID | None = None) -> None:
        stmt = select(Account.id).where(
            Account.tenant_id == tenant_id,
            Account.role == role.value,
            Account.is_active.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(Account.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise DuplicateValueError("account role", role.value)

    def create_account(
        self,
        tenant_id: int,
        detailed_group_id: UUID,
        name: str,
        account_type: AccountType | str | None = None,
        description: str | None = None,
        opening_balance: Decimal | int | str = Decimal("0"),
        is_system_account: bool = False,
        role: AccountRole | str | None = None,
        client_id: int | None = None,
        entity_id: int | None = None,
        actor_id: int | None = None,
    ) -> AccountInfo:
        """
        Create a leaf account, or reactivate a soft-deleted one of the same name.

        The account type is derived from the ancestor ElementGroup; custom
        element groups need an explicit ``account_type``.  The code
        ``element.sub.detailed.NNN`` is allocated while the detailed group
        row is locked.  A reactivated account always gets a fresh code
        and must keep its account type.

        Raises:
            GroupNotFoundError: Detailed group missing for the tenant.
            InvalidAccountTypeError: Type missing (custom element) or conflicting.
            DuplicateValueError: An active account already has the name or role.
        """
        if not name or not name.strip():
            raise MissingFieldError("name")
        name = name.strip()

        try:
            opening = to_decimal(opening_balance, "opening_balance")
        except ValueError as exc:
            raise InvalidAmountError("opening_balance", str(opening_balance), str(exc)) from None

        detailed = self._get_group(
            HierarchyLevel.DETAILED_GROUP, tenant_id, detailed_group_id, for_update=True
        )
        sub, element = self._account_path_codes(tenant_id, detailed)

        derived = account_type_for_element(element.name)
        requested = AccountType(account_type) if account_type else None
        if derived is None and requested is None:
            raise InvalidAccountTypeError(
                None, f"element group '{element.display_name}' is custom; account_type is required"
            )
        if derived is not None and requested is not None and requested != derived:
            raise InvalidAccountTypeError(
                requested.value, f"element group '{element.name}' implies '{derived.value}'"
            )
        resolved_type = derived or requested

        role_value = AccountRole(role) if role else None

        existing = self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.name == name).with_for_update()
        ).scalar_one_or_none()

        if existing is not None and existing.is_active:
            raise DuplicateValueError("account name", name)
        if existing is not None and existing.account_type != resolved_type.value:
            raise InvalidAccountTypeError(
                resolved_type.value,
                f"inactive account '{name}' is '{existing.account_type}'; its lines cannot change sign",
            )

        if role_value is not None:
            self._check_role_free(tenant_id, role_value, exclude_id=existing.id if existing else None)

        code = self._allocate_account_code(tenant_id, detailed, sub, element)

        if existing is not None:
            old_code = existing.account_code
            existing.detailed_group_id = detailed.id
            existing.account_code = code
            existing.account_type = resolved_type.value
            existing.description = description
            existing.is_active = True
            existing.is_system_account = is_system_account
            existing.role = role_value.value if role_value else None
            existing.client_id = client_id
            existing.entity_id = entity_id
            existing.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "account_reactivated",
                extra={
                    "account_id": str(existing.id),
                    "tenant_id": tenant_id,
                    "old_code": old_code,
                    "account_code": code,
                },
            )
            return self._account_to_dto(existing)

        account = Account(
            tenant_id=tenant_id,
            detailed_group_id=detailed.id,
            account_code=code,
            name=name,
            account_type=resolved_type.value,
            opening_balance=opening,
            current_balance=Decimal("0"),
            is_system_account=is_system_account,
            is_active=True,
            role=role_value.value if role_value else None,
            client_id=client_id,
            entity_id=entity_id,
            description=description,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "tenant_id": tenant_id,
                "account_code": code,
                "account_type": resolved_type.value,
                "role": account.role,
            },
        )
        return self._account_to_dto(account)

    def update_account(
        self,
        tenant_id: int,
        account_id: UUID,
        name: str | None = None,
        description: str | None = None,
        client_id: int | None = None,
        entity_id: int | None = None,
        is_system_account: bool | None = None,
        actor_id: int | None = None,
    ) -> AccountInfo:
        """
        Update descriptive fields.  Code, type and group never change here.

        Raises:
            AccountNotFoundError, DuplicateValueError (name taken).
        """
        account = self._get_account(tenant_id, account_id, for_update=True)

        if name is not None:
            name = name.strip()
            if not name:
                raise MissingFieldError("name")
            if name != account.name:
                clash = self.session.execute(
                    select(Account.id).where(
                        Account.tenant_id == tenant_id,
                        Account.name == name,
                        Account.id != account.id,
                    )
                ).first()
                if clash is not None:
                    raise DuplicateValueError("account name", name)
                account.name = name
        if description is not None:
            account.description = description
        if client_id is not None:
            account.client_id = client_id
        if entity_id is not None:
            account.entity_id = entity_id
        if is_system_account is not None:
            account.is_system_account = is_system_account
        account.updated_by_id = actor_id
        self.session.flush()

        logger.info("account_updated", extra={"account_id": str(account.id), "tenant_id": tenant_id})
        return self._account_to_dto(account)

    def set_account_role(
        self,
        tenant_id: int,
        account_id: UUID,
        role: AccountRole | str | None,
        actor_id: int | None = None,
    ) -> AccountInfo:
        """Tag (or untag, with ``role=None``) an account with an account role."""
        account = self._get_account(tenant_id, account_id, for_update=True)
        role_value = AccountRole(role) if role else None
        if role_value is not None:
            self._check_role_free(tenant_id, role_value, exclude_id=account.id)
        account.role = role_value.value if role_value else None
        account.updated_by_id = actor_id
        self.session.flush()
        logger.info(
            "account_role_set",
            extra={"account_id": str(account.id), "tenant_id": tenant_id, "role": account.role},
        )
        return self._account_to_dto(account)

    def deactivate_account(self, tenant_id: int, account_id: UUID, actor_id: int | None = None) -> AccountInfo:
        """Soft-delete: the account keeps its history but accepts no postings."""
        account = self._get_account(tenant_id, account_id, for_update=True)
        account.is_active = False
        account.updated_by_id = actor_id
        self.session.flush()
        logger.info("account_deactivated", extra={"account_id": str(account.id), "tenant_id": tenant_id})
        return self._account_to_dto(account)

    def delete_account(self, tenant_id: int, account_id: UUID) -> None:
        """
        Hard-delete an account that no live journal line references.

        Lines of soft-deleted entries are detached (account_id set to NULL)
        so the entries themselves survive.

        Raises:
            AccountNotFoundError: Missing, or owned by another tenant.
            SystemAccountProtectedError: The account is a system account.
            HasDependenciesError: Live journal lines still reference it.
        """
        account = self._get_account(tenant_id, account_id, for_update=True)

        if account.is_system_account:
            raise SystemAccountProtectedError(str(account.id))

        count = LedgerSelector(self.session).count_live_lines(tenant_id, account.id)
        if count:
            logger.warning(
                "account_delete_blocked",
                extra={"account_id": str(account.id), "dependency_count": count},
            )
            raise HasDependenciesError("account", str(account.id), "journal entry lines", count)

        deleted_entry_ids = select(JournalEntry.id).where(
            JournalEntry.tenant_id == tenant_id,
            JournalEntry.is_deleted.is_(True),
        )
        self.session.execute(
            update(JournalEntryLine)
            .where(
                JournalEntryLine.tenant_id == tenant_id,
                JournalEntryLine.account_id == account.id,
                JournalEntryLine.journal_entry_id.in_(deleted_entry_ids),
            )
            .values(account_id=None)
            .execution_options(synchronize_session="fetch")
        )

        self.session.delete(account)
        self.session.flush()
        logger.info("account_deleted", extra={"account_id": str(account_id), "tenant_id": tenant_id})

    def get_account(self, tenant_id: int, account_id: UUID) -> AccountInfo:
        """
        Get one account.

        Raises:
            AccountNotFoundError: Missing, or owned by another tenant.
        """
        return self._account_to_dto(self._get_account(tenant_id, account_id))

    def get_account_by_code(self, tenant_id: int, account_code: str) -> AccountInfo:
        """
        Get one account by its code.

        Raises:
            AccountNotFoundError: No account with that code for the tenant.
        """
        account = self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.account_code == account_code)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(account_code)
        return self._account_to_dto(account)

    def list_accounts(
        self,
        tenant_id: int,
        account_type: AccountType | str | None = None,
        detailed_group_id: UUID | None = None,
        include_system: bool = True,
        include_inactive: bool = False,
    ) -> list[AccountInfo]:
        """List accounts ordered by code."""
        stmt = select(Account).where(Account.tenant_id == tenant_id)
        if account_type is not None:
            stmt = stmt.where(Account.account_type == AccountType(account_type).value)
        if detailed_group_id is not None:
            stmt = stmt.where(Account.detailed_group_id == detailed_group_id)
        if not include_system:
            stmt = stmt.where(Account.is_system_account.is_(False))
        if not include_inactive:
            stmt = stmt.where(Account.is_active.is_(True))
        stmt = stmt.order_by(Account.account_code)
        return [self._account_to_dto(a) for a in self.session.execute(stmt).scalars().all()]

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed_standard_chart(self, tenant_id: int, template, actor_id: int | None = None) -> SeedResult:
        """
        Build the standard hierarchy and system accounts for a tenant.

        Idempotent: groups are matched by (parent, name, custom_name) and
        accounts by name; existing rows are reused, soft-deleted accounts
        are reactivated, and missing role tags are applied.

        Args:
            tenant_id: Tenant to seed.
            template: A ``StandardChartTemplate`` (see ``ledger_config.bridges``
                for seeding from the active configuration).
        """
        counters = {"groups_created": 0, "groups_reused": 0, "accounts_created": 0, "accounts_reused": 0}
        role_accounts: dict[str, UUID] = {}

        levels = (
            HierarchyLevel.MAIN_GROUP,
            HierarchyLevel.ELEMENT_GROUP,
            HierarchyLevel.SUB_ELEMENT_GROUP,
            HierarchyLevel.DETAILED_GROUP,
        )

        def ensure_group(depth: int, node, parent_id: UUID | None) -> UUID:
            level = levels[depth]
            for group in self._siblings(level, tenant_id, parent_id):
                if group.name == node.name and (group.custom_name or None) == (node.custom_name or None):
                    counters["groups_reused"] += 1
                    return group.id
            code = node.code
            if code and code in self._taken_group_codes(level, tenant_id):
                code = None
            created = self._create_group(
                level, tenant_id, parent_id, node.name, node.custom_name, node.description, code, actor_id
            )
            counters["groups_created"] += 1
            return created.id

        def ensure_account(detailed_id: UUID, spec) -> None:
            existing = self.session.execute(
                select(Account).where(Account.tenant_id == tenant_id, Account.name == spec.name)
            ).scalar_one_or_none()
            if existing is not None and existing.is_active:
                counters["accounts_reused"] += 1
                if spec.role and not existing.role:
                    self.set_account_role(tenant_id, existing.id, spec.role, actor_id=actor_id)
                if existing.role:
                    role_accounts[existing.role] = existing.id
                return
            info = self.create_account(
                tenant_id,
                detailed_id,
                spec.name,
                account_type=spec.account_type,
                description=spec.description,
                is_system_account=spec.is_system_account,
                role=spec.role,
                actor_id=actor_id,
            )
            counters["accounts_created"] += 1
            if info.role is not None:
                role_accounts[info.role.value] = info.id

        def walk(depth: int, node, parent_id: UUID | None) -> None:
            group_id = ensure_group(depth, node, parent_id)
            if depth == len(levels) - 1:
                for account_spec in node.accounts:
                    ensure_account(group_id, account_spec)
                return
            for child in node.children:
                walk(depth + 1, child, group_id)

        for main in template.main_groups:
            walk(0, main, None)

        result = SeedResult(tenant_id=tenant_id, role_accounts=role_accounts, **counters)
        logger.info(
            "standard_chart_seeded",
            extra={"tenant_id": tenant_id, **counters},
        )
        return result
