"""
AccountRoleResolver -- tenant-scoped lookup of role-tagged accounts.

Automatic postings (invoice approval, payment receipt) and the Tax Summary
never discover accounts by name.  They ask for an AccountRole and get the
single active account of the tenant tagged with it.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.chart import AccountRole
from ledger_kernel.exceptions import AccountRoleNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account

logger = get_logger("services.role_resolver")


class AccountRoleResolver:
    """
    Resolve AccountRole -> account id for one tenant.

    Results are memoized per instance, so build one resolver per unit of
    work rather than sharing it across transactions.
    """

    def __init__(self, session: Session, tenant_id: int):
        self.session = session
        self.tenant_id = tenant_id
        self._cache: dict[AccountRole, UUID] = {}

    def find(self, role: AccountRole | str) -> UUID | None:
        """Account id tagged with ``role``, or None."""
        role = AccountRole(role)
        if role in self._cache:
            return self._cache[role]
        account_id = self.session.execute(
            select(Account.id)
            .where(
                Account.tenant_id == self.tenant_id,
                Account.role == role.value,
                Account.is_active.is_(True),
            )
            .order_by(Account.account_code)
        ).scalars().first()
        if account_id is not None:
            self._cache[role] = account_id
        return account_id

    def resolve(self, role: AccountRole | str) -> UUID:
        """
        Account id tagged with ``role``.

        Raises:
            AccountRoleNotFoundError: No active account carries the role.
        """
        account_id = self.find(role)
        if account_id is None:
            logger.warning(
                "account_role_missing",
                extra={"tenant_id": self.tenant_id, "role": AccountRole(role).value},
            )
            raise AccountRoleNotFoundError(self.tenant_id, AccountRole(role).value)
        return account_id
