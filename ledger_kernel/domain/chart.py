"""
Chart of Accounts vocabulary -- pure, no ORM, no I/O.

Responsibility:
    Closed name enumerations for the four hierarchy levels, the account
    type / account role enums, the declared synonym table used by name
    lookup, and the code-building rules for groups and accounts.

Architecture position:
    Kernel > Domain.  Imported by models/ and services/.  MUST NOT import
    from models/, services/, selectors/ or db/.

Code rules:
    group code   = parent code + "-" + initials of the name, plus a
                   two-digit sequence suffix when that base is taken
                   (``BS`` -> ``BS-A`` -> ``BS-A-CA`` -> ``BS-A-CA-CBB``)
    account code = element code "." sub-element code "." detailed code
                   "." zero-padded sequence (``BS-A.BS-A-CA.BS-A-CA-CBB.001``)
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


# Debit-normal types: balance = debits - credits.  All others invert.
DEBIT_NORMAL_TYPES: frozenset[AccountType] = frozenset(
    {AccountType.ASSET, AccountType.EXPENSE}
)


class AccountRole(str, Enum):
    """Explicit per-tenant role tags used by automatic postings and reports."""

    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    BANK = "bank"
    CASH = "cash"
    REVENUE = "revenue"
    TAX_LIABILITY = "tax_liability"
    RETAINED_EARNINGS = "retained_earnings"


class HierarchyLevel(str, Enum):
    """The four classification levels above an account."""

    MAIN_GROUP = "main_group"
    ELEMENT_GROUP = "element_group"
    SUB_ELEMENT_GROUP = "sub_element_group"
    DETAILED_GROUP = "detailed_group"


class MainGroupName(str, Enum):
    BALANCE_SHEET = "balance_sheet"
    PROFIT_AND_LOSS = "profit_and_loss"
    CUSTOM = "custom"


class ElementGroupName(str, Enum):
    EQUITY = "equity"
    LIABILITIES = "liabilities"
    ASSETS = "assets"
    INCOMES = "incomes"
    EXPENSES = "expenses"
    CUSTOM = "custom"


class SubElementGroupName(str, Enum):
    CAPITAL = "capital"
    SHARE_CAPITAL = "share_capital"
    RESERVES = "reserves"
    NON_CURRENT_LIABILITIES = "non_current_liabilities"
    CURRENT_LIABILITIES = "current_liabilities"
    NON_CURRENT_ASSETS = "non_current_assets"
    CURRENT_ASSETS = "current_assets"
    SALES = "sales"
    SERVICE_REVENUE = "service_revenue"
    COST_OF_SALES = "cost_of_sales"
    COST_OF_SERVICE_REVENUE = "cost_of_service_revenue"
    PURCHASE_RETURNS = "purchase_returns"
    OPERATING_EXPENSES = "operating_expenses"
    OTHER_INCOME = "other_income"
    CUSTOM = "custom"


class DetailedGroupName(str, Enum):
    OWNERS_CAPITAL = "owners_capital"
    LONG_TERM_LOANS = "long_term_loans"
    SHORT_TERM_LOANS = "short_term_loans"
    TRADE_CREDITORS = "trade_creditors"
    ACCRUED_CHARGES = "accrued_charges"
    OTHER_PAYABLES = "other_payables"
    TAX_PAYABLES = "tax_payables"
    PROPERTY_PLANT_EQUIPMENT = "property_plant_equipment"
    INTANGIBLE_ASSETS = "intangible_assets"
    STOCK_IN_TRADE = "stock_in_trade"
    TRADE_DEBTORS = "trade_debtors"
    ADVANCES_PREPAYMENTS = "advances_prepayments"
    OTHER_RECEIVABLES = "other_receivables"
    CASH_BANK_BALANCES = "cash_bank_balances"
    CUSTOM = "custom"


CUSTOM_NAME = "custom"

NAMES_BY_LEVEL: dict[HierarchyLevel, type[Enum]] = {
    HierarchyLevel.MAIN_GROUP: MainGroupName,
    HierarchyLevel.ELEMENT_GROUP: ElementGroupName,
    HierarchyLevel.SUB_ELEMENT_GROUP: SubElementGroupName,
    HierarchyLevel.DETAILED_GROUP: DetailedGroupName,
}

# Element group name -> account type of every account below it
ELEMENT_ACCOUNT_TYPES: dict[str, AccountType] = {
    ElementGroupName.ASSETS.value: AccountType.ASSET,
    ElementGroupName.LIABILITIES.value: AccountType.LIABILITY,
    ElementGroupName.EQUITY.value: AccountType.EQUITY,
    ElementGroupName.INCOMES.value: AccountType.REVENUE,
    ElementGroupName.EXPENSES.value: AccountType.EXPENSE,
}


def allowed_names(level: HierarchyLevel) -> frozenset[str]:
    """Closed name enumeration for a hierarchy level."""
    return frozenset(member.value for member in NAMES_BY_LEVEL[level])


def is_valid_group_name(level: HierarchyLevel, name: str) -> bool:
    return name in allowed_names(level)


def account_type_for_element(element_name: str) -> AccountType | None:
    """
    Account type implied by an element group name.

    Returns None for ``custom`` element groups; those need an explicit type.
    """
    return ELEMENT_ACCOUNT_TYPES.get(element_name)


def balance_sign(account_type: AccountType | str) -> int:
    """+1 for debit-normal account types, -1 for credit-normal ones."""
    return 1 if AccountType(account_type) in DEBIT_NORMAL_TYPES else -1


# ---------------------------------------------------------------------------
# Synonyms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SynonymTable:
    """
    Declared, symmetric name synonyms used by hierarchy lookup.

    Upstream data (CSV imports in particular) is inconsistently pluralized,
    so ``income`` must find ``incomes`` and vice versa.
    """

    pairs: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str] | Iterable[Iterable[str]]) -> "SynonymTable":
        if isinstance(mapping, Mapping):
            items = mapping.items()
        else:
            items = (tuple(pair) for pair in mapping)
        pairs = []
        for left, right in items:
            pairs.append((str(left).strip().lower(), str(right).strip().lower()))
        return cls(pairs=tuple(pairs))

    def synonyms_of(self, name: str) -> tuple[str, ...]:
        """All declared synonyms of ``name`` (excluding ``name`` itself), in table order."""
        key = name.strip().lower()
        found: list[str] = []
        for left, right in self.pairs:
            if key == left and right not in found:
                found.append(right)
            elif key == right and left not in found:
                found.append(left)
        return tuple(n for n in found if n != key)


DEFAULT_SYNONYMS = SynonymTable(
    pairs=(
        ("income", "incomes"),
        ("expense", "expenses"),
        ("asset", "assets"),
        ("liability", "liabilities"),
    )
)


# ---------------------------------------------------------------------------
# Codes
# ---------------------------------------------------------------------------

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")


def group_slug(name: str, custom_name: str | None = None) -> str:
    """
    Short upper-case slug from the initials of a group's label.

    ``current_assets`` -> ``CA``; custom groups use their custom name
    (``"Client Retainers"`` -> ``CR``).
    """
    label = custom_name if name == CUSTOM_NAME and custom_name else name
    words = [w for w in _WORD_SPLIT.split(label) if w]
    if not words:
        return "X"
    return "".join(w[0] for w in words).upper()


def compose_group_code(
    parent_code: str | None,
    slug: str,
    taken: Iterable[str],
    suffix_width: int = 2,
) -> str:
    """
    Build a group code unique against ``taken``.

    The base is ``parent_code-slug`` (or just ``slug`` at the top level).
    When the base is already used a zero-padded sequence is appended:
    ``BS-A``, ``BS-A02``, ``BS-A03`` ...
    """
    taken_set = set(taken)
    base = f"{parent_code}-{slug}" if parent_code else slug
    if base not in taken_set:
        return base
    seq = 2
    while True:
        candidate = f"{base}{seq:0{suffix_width}d}"
        if candidate not in taken_set:
            return candidate
        seq += 1


def account_code_prefix(element_code: str, sub_element_code: str, detailed_code: str) -> str:
    return f"{element_code}.{sub_element_code}.{detailed_code}"


def next_account_code(prefix: str, taken: Iterable[str], width: int = 3) -> str:
    """
    Next free ``prefix.NNN`` code.

    The sequence continues after the highest numeric suffix already used
    under ``prefix`` so that codes released by deletion are never reissued
    to a different account.
    """
    highest = 0
    taken_set = set(taken)
    for code in taken_set:
        if not code.startswith(prefix + "."):
            continue
        suffix = code[len(prefix) + 1:]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    seq = highest + 1
    candidate = f"{prefix}.{seq:0{width}d}"
    while candidate in taken_set:
        seq += 1
        candidate = f"{prefix}.{seq:0{width}d}"
    return candidate
