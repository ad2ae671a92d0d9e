from __future__ import annotations

import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AccountType(str, Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    BROKERAGE = "brokerage"
    LIFE_INSURANCE = "life_insurance"
    SAVINGS = "savings"


class Operation(BaseModel):
    operation_date: datetime.date
    value_date: datetime.date
    label: str
    amount: float = Field(..., description="Signed amount. Negative=outflow, Positive=inflow")
    vendor_id: Optional[str] = None


class Account(BaseModel):
    number: str
    label: str
    type: AccountType = AccountType.UNKNOWN
    link: str = Field("", description="Path of the account detail page")
    balance: Optional[float] = None
    operations: List[Operation] = Field(default_factory=list)


# Documentos tal como se guardan en el store (nombres de campo del doctype)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    metadata: Dict[str, Any] = Field(default_factory=lambda: {"version": 1})

    def to_doc(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AccountRecord(_Record):
    label: str
    institution_label: str = Field(..., alias="institutionLabel")
    balance: Optional[float] = None
    type: str
    number: str


class BalanceHistoryRecord(_Record):
    year: int
    account: str = Field(..., description="_id of the persisted account")
    balances: Dict[str, float] = Field(default_factory=dict, description="YYYY-MM-DD -> balance")


class OperationRecord(_Record):
    label: str
    type: str = "none"
    date: str = Field(..., description="Value date, ISO 8601 at midnight UTC")
    date_operation: str = Field(..., alias="dateOperation")
    amount: float
    currency: str = "EUR"
    account: str
    vendor_id: Optional[str] = Field(None, alias="vendorId")


class EntityCounts(BaseModel):
    created: int = 0
    updated: int = 0
    unchanged: int = 0


class SyncReport(BaseModel):
    accounts: EntityCounts = Field(default_factory=EntityCounts)
    balance_histories: EntityCounts = Field(default_factory=EntityCounts)
    operations: EntityCounts = Field(default_factory=EntityCounts)
    skipped_accounts: List[str] = Field(default_factory=list)
