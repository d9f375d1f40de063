from datetime import date
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from asset_ledger.core.dates import normalize_date


class AssetInput(BaseModel):
    """Scalar fields of an asset as submitted by the asset form.

    Every optional field is part of a full replace: leaving it out on update
    resets the stored value to its default.
    """

    type_name: Optional[str] = None
    brand_name: Optional[str] = None
    model_name: Optional[str] = None
    status: Optional[str] = None

    vehicle_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("vehicle_number", "vehicleno")
    )
    serial_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("serial_number", "serial_no")
    )
    imei_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("imei_number", "imei_no")
    )
    ip_address: Optional[str] = None
    gid: Optional[str] = None

    issued_to: Optional[str] = None
    received_from: Optional[str] = None
    issue_date: Optional[date] = None
    received_date: Optional[date] = None

    device_status: Optional[str] = None
    device_remark: Optional[str] = None
    recovery_name: Optional[str] = None
    recovery_status: Optional[str] = None

    prepared_by: Optional[str] = None
    approved_by: Optional[str] = None

    mail_date: Optional[date] = None
    replace_device_sn_imei: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    @field_validator("issue_date", "received_date", "mail_date", mode="before")
    @classmethod
    def _blank_dates(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        parsed = normalize_date(value)
        return parsed if parsed is not None else value


class AssetFilter(BaseModel):
    search: Optional[str] = None
    status: Optional[str] = None
    device_status: Optional[str] = None
