from __future__ import annotations

import datetime
from collections import defaultdict
from typing import Dict, List

from .models import Operation, OperationRecord


def persisted_date(day: datetime.date) -> str:
    return f"{day.isoformat()}T00:00:00.000Z"


def assign_vendor_ids(account_number: str, operations: List[Operation]) -> List[Operation]:
    """
    vendorId = <número de cuenta>_<YYYY-MM-DD>_<índice en el día>.

    El índice sigue el orden de la tabla del portal dentro de cada día, así que
    el id es estable sólo si ese orden no cambia entre runs.
    """
    seen: Dict[str, int] = defaultdict(int)
    out: List[Operation] = []
    for op in operations:
        day = op.value_date.isoformat()
        index = seen[day]
        seen[day] += 1
        out.append(op.model_copy(update={"vendor_id": f"{account_number}_{day}_{index}"}))
    return out


def to_operation_records(
    account_id: str,
    account_number: str,
    operations: List[Operation],
    imported_at: datetime.datetime,
) -> List[OperationRecord]:
    records: List[OperationRecord] = []
    for op in assign_vendor_ids(account_number, operations):
        records.append(
            OperationRecord(
                label=op.label,
                date=persisted_date(op.value_date),
                date_operation=persisted_date(op.operation_date),
                amount=op.amount,
                account=account_id,
                vendor_id=op.vendor_id,
                metadata={"dateImport": imported_at.isoformat(), "version": 1},
            )
        )
    return records
