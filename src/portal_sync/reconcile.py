"""
Merge contra el estado ya persistido.

Cada entidad se guarda con un upsert por clave natural: si existe un documento
con los mismos valores de clave se actualiza (sólo si algo cambió), si no se
crea. Correr dos veces sobre los mismos datos no genera escrituras nuevas.
"""

from __future__ import annotations

import datetime
import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from pydantic import BaseModel, Field

from .detect import to_persisted_type
from .errors import MissingAccountMapping, UnknownAccountType
from .models import Account, AccountRecord, BalanceHistoryRecord, EntityCounts
from .normalize import to_operation_records
from .store import ACCOUNTS_DOCTYPE, BALANCE_HISTORIES_DOCTYPE, OPERATIONS_DOCTYPE, Store


logger = logging.getLogger(__name__)

INSTITUTION_LABEL = "Fortuneo Banque"

ACCOUNT_KEYS = ("number",)
BALANCE_HISTORY_KEYS = ("year", "account")
# amount y date forman parte de la clave: un importe corregido con el mismo
# vendorId se guarda como operación nueva
OPERATION_KEYS = ("account", "amount", "date", "vendorId")


class UpsertResult(BaseModel):
    created: List[dict] = Field(default_factory=list)
    updated: List[dict] = Field(default_factory=list)
    unchanged: List[dict] = Field(default_factory=list)
    saved: List[dict] = Field(default_factory=list, description="Todos los documentos, en orden de entrada")

    def extend(self, other: "UpsertResult") -> None:
        self.created.extend(other.created)
        self.updated.extend(other.updated)
        self.unchanged.extend(other.unchanged)
        self.saved.extend(other.saved)

    def counts(self) -> EntityCounts:
        return EntityCounts(
            created=len(self.created),
            updated=len(self.updated),
            unchanged=len(self.unchanged),
        )


def update_or_create(
    store: Store,
    doctype: str,
    docs: Iterable[dict],
    keys: Sequence[str],
    preserve: Sequence[str] = (),
) -> UpsertResult:
    """
    `preserve`: campos que, si el documento ya existe, conservan el valor guardado
    (p.ej. metadata.dateImport de una operación).
    """
    result = UpsertResult()
    for doc in docs:
        selector = {k: doc.get(k) for k in keys}
        found = store.find(doctype, selector, limit=1)

        if not found:
            saved = store.create(doctype, doc)
            result.created.append(saved)
            result.saved.append(saved)
            continue

        existing = found[0]
        merged = {**existing, **doc, "_id": existing["_id"]}
        for field in preserve:
            if field in existing:
                merged[field] = existing[field]

        if merged == existing:
            result.unchanged.append(existing)
            result.saved.append(existing)
        else:
            saved = store.update(doctype, merged)
            result.updated.append(saved)
            result.saved.append(saved)

    return result


def save_accounts(store: Store, accounts: List[Account]) -> Tuple[UpsertResult, List[str]]:
    docs: List[dict] = []
    skipped: List[str] = []
    for account in accounts:
        try:
            persisted_type = to_persisted_type(account.type)
        except UnknownAccountType as exc:
            logger.warning("Cuenta %s no guardada: %s", account.number, exc)
            skipped.append(account.number)
            continue

        record = AccountRecord(
            label=account.label,
            institution_label=INSTITUTION_LABEL,
            balance=account.balance,
            type=persisted_type,
            number=account.number,
        )
        docs.append(record.to_doc())

    return update_or_create(store, ACCOUNTS_DOCTYPE, docs, ACCOUNT_KEYS), skipped


def get_balance_history(store: Store, year: int, account_id: str) -> dict:
    """Historial de balances de la cuenta para ese año; uno vacío si todavía no existe."""
    found = store.find(BALANCE_HISTORIES_DOCTYPE, {"year": year, "account": account_id}, limit=1)
    if found:
        return found[0]
    return BalanceHistoryRecord(year=year, account=account_id).to_doc()


def save_balances(store: Store, saved_accounts: List[dict], today: datetime.date) -> UpsertResult:
    histories: List[dict] = []
    for account in saved_accounts:
        balance = account.get("balance")
        if balance is None:
            logger.warning("Cuenta %s sin balance, no se agrega al historial", account.get("number"))
            continue

        history = get_balance_history(store, today.year, account["_id"])
        history["balances"][today.isoformat()] = balance
        histories.append(history)

    return update_or_create(store, BALANCE_HISTORIES_DOCTYPE, histories, BALANCE_HISTORY_KEYS)


def save_operations(
    store: Store,
    accounts: List[Account],
    saved_accounts: List[dict],
    imported_at: datetime.datetime,
) -> UpsertResult:
    by_number: Dict[str, dict] = {a["number"]: a for a in saved_accounts}

    # resolver todas las cuentas antes de escribir nada
    pending = []
    for account in accounts:
        if not account.operations:
            continue
        saved = by_number.get(account.number)
        if saved is None:
            raise MissingAccountMapping(f"No se encontró la cuenta guardada para {account.number}")
        pending.append((account, saved))

    result = UpsertResult()
    for account, saved in pending:
        records = to_operation_records(saved["_id"], saved["number"], account.operations, imported_at)
        result.extend(
            update_or_create(
                store,
                OPERATIONS_DOCTYPE,
                [r.to_doc() for r in records],
                OPERATION_KEYS,
                preserve=("metadata",),
            )
        )
        logger.info("Cuenta %s: %d operaciones procesadas", account.number, len(records))

    return result
