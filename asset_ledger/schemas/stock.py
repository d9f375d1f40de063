from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, field_validator

from asset_ledger.core.dates import normalize_date

Number = Union[float, str]


class StockEntryInput(BaseModel):
    entry_date: Optional[date] = None
    product_name: Optional[str] = None
    category: Optional[str] = None
    supplier: Optional[str] = None
    quantity: Optional[Number] = None
    unit: Optional[str] = None
    purchase_price: Optional[Number] = None
    selling_price: Optional[Number] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None
    warehouse: Optional[str] = None
    rack_number: Optional[str] = None
    description: Optional[str] = None
    prepared_by: Optional[str] = None
    approved_by: Optional[str] = None

    @field_validator("entry_date", "expiry_date", mode="before")
    @classmethod
    def _blank_dates(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        parsed = normalize_date(value)
        return parsed if parsed is not None else value


class StockFilter(BaseModel):
    search: Optional[str] = None
    category: Optional[str] = None
    warehouse: Optional[str] = None


class StockIssueCreate(BaseModel):
    quantity: Number
    issued_to: Optional[str] = None
