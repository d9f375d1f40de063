from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from asset_ledger.core.dates import is_blank
from asset_ledger.core.errors import ValidationError
from asset_ledger.database.session import transaction
from asset_ledger.dependencies import get_db
from asset_ledger.schemas.common import envelope
from asset_ledger.schemas.reference import BrandCreate, TypeCreate
from asset_ledger.services import reference_service

router = APIRouter(tags=["References"])


def _create_reference(db: Session, kind: str, field: str, value: str) -> dict:
    if is_blank(value):
        raise ValidationError.missing([field])
    with transaction(db, f"Create {kind}"):
        reference_id = reference_service.resolve(db, kind, value)
    return {"id": reference_id, field: value.strip()}


@router.get("/types")
def list_types(db: Session = Depends(get_db)):
    return envelope(reference_service.list_references(db, "type"))


@router.post("/types", status_code=201)
def create_type(payload: TypeCreate, db: Session = Depends(get_db)):
    created = _create_reference(db, "type", "type_name", payload.type_name)
    return envelope(created, message="Type saved successfully")


@router.get("/brands")
def list_brands(db: Session = Depends(get_db)):
    return envelope(reference_service.list_references(db, "brand"))


@router.post("/brands", status_code=201)
def create_brand(payload: BrandCreate, db: Session = Depends(get_db)):
    created = _create_reference(db, "brand", "brand_name", payload.brand_name)
    return envelope(created, message="Brand saved successfully")


__all__ = ["router"]
