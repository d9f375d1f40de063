from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from asset_ledger.dependencies import get_db, page_params
from asset_ledger.schemas.common import envelope
from asset_ledger.schemas.user import UserFilter, UserInput
from asset_ledger.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
def list_users(
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    paging: tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, limit = paging
    rows, total = user_service.list_users(db, UserFilter(search=search, role=role), page, limit)
    return envelope(rows, page=page, limit=limit, total=total)


@router.post("", status_code=201)
def create_user(payload: UserInput, db: Session = Depends(get_db)):
    user = user_service.create_user(db, payload)
    return envelope(user, message="User created successfully")


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)):
    return envelope(user_service.get_user(db, user_id))


@router.put("/{user_id}")
def update_user(user_id: int, payload: UserInput, db: Session = Depends(get_db)):
    user = user_service.update_user(db, user_id, payload)
    return envelope(user, message="User updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id)
    return envelope(message="User deleted successfully")


__all__ = ["router"]
