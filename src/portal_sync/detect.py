from __future__ import annotations

import re
from typing import Dict

from .errors import UnknownAccountType
from .models import AccountType


_COMPTE_SUFFIX_RE = re.compile(r"\s+compte$")

# clase CSS del menú de cuentas -> categoría
ACCOUNT_TYPES: Dict[str, AccountType] = {
    "cco": AccountType.CHECKING,
    "esp": AccountType.CHECKING,
    "ord": AccountType.BROKERAGE,
    "pea": AccountType.BROKERAGE,
    "vie": AccountType.LIFE_INSURANCE,
    "liv_a": AccountType.SAVINGS,
    "liv_d": AccountType.SAVINGS,
}

PERSISTED_TYPES: Dict[AccountType, str] = {
    AccountType.CHECKING: "Checkings",
    AccountType.BROKERAGE: "Savings",
    AccountType.LIFE_INSURANCE: "Savings",
    AccountType.SAVINGS: "Savings",
}


def classify_account_type(css_class: str) -> AccountType:
    """
    "cco compte" -> CHECKING, "xyz compte" -> UNKNOWN.
    No lanza error: UNKNOWN significa omitir balance y operaciones.
    """
    tokens = _COMPTE_SUFFIX_RE.sub("", (css_class or "").strip()).split()
    if not tokens:
        return AccountType.UNKNOWN
    return ACCOUNT_TYPES.get(tokens[0], AccountType.UNKNOWN)


def to_persisted_type(account_type: AccountType) -> str:
    try:
        return PERSISTED_TYPES[account_type]
    except KeyError:
        raise UnknownAccountType(f"Tipo de cuenta no soportado: {account_type.value}") from None
