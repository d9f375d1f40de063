"""User administration: the people the ledger records as preparers,
approvers and actors.

Rows created implicitly by reference resolution show up here as well and
can be edited like any other account.
"""
import logging
import re
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from asset_ledger.core.constants import DEFAULT_PERSON_ROLE, USER_ROLES
from asset_ledger.core.dates import is_blank
from asset_ledger.core.errors import NotFoundError, ValidationError
from asset_ledger.database.session import transaction
from asset_ledger.models.asset import Asset
from asset_ledger.models.reference import User
from asset_ledger.models.stock import StockEntry
from asset_ledger.schemas.user import UserFilter, UserInput
from asset_ledger.services.query_builder import Predicate, paginate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("username", "full_name", "email")

SEARCH_COLUMNS = (User.username, User.full_name, User.email)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _user_select():
    return select(
        User.id,
        User.username,
        User.full_name,
        User.email,
        User.role,
        User.created_at,
        User.updated_at,
    )


def _clean(data: UserInput) -> dict:
    missing = [field for field in REQUIRED_FIELDS if is_blank(getattr(data, field))]
    if missing:
        raise ValidationError.missing(missing)

    values = {
        "username": data.username.strip(),
        "full_name": data.full_name.strip(),
        "email": data.email.strip(),
        "role": DEFAULT_PERSON_ROLE if is_blank(data.role) else data.role.strip().lower(),
    }
    if not _EMAIL_RE.match(values["email"]):
        raise ValidationError("Invalid email format", ["email"])
    if values["role"] not in USER_ROLES:
        raise ValidationError(f"Invalid role: {data.role}", ["role"])
    return values


def _ensure_unique(db: Session, values: dict, exclude_id: Optional[int] = None) -> None:
    stmt = select(User.id).where(
        or_(User.username == values["username"], User.email == values["email"])
    )
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    if db.execute(stmt.limit(1)).first() is not None:
        raise ValidationError("Username or email already exists", ["username", "email"])


def _reference_count(db: Session, user_id: int) -> int:
    total = 0
    for model in (Asset, StockEntry):
        total += db.execute(
            select(func.count())
            .select_from(model)
            .where(or_(model.prepared_by == user_id, model.approved_by == user_id))
        ).scalar_one()
    return total


def get_user(db: Session, user_id: int) -> dict:
    row = db.execute(_user_select().where(User.id == user_id)).mappings().first()
    if row is None:
        raise NotFoundError("User not found")
    return dict(row)


def create_user(db: Session, data: UserInput) -> dict:
    values = _clean(data)
    with transaction(db, "Create user"):
        _ensure_unique(db, values)
        user = User(**values)
        db.add(user)
        db.flush()
        user_id = user.id
    logger.info(
        "User %s created",
        values["username"],
        extra={"operation": "Create user", "user_id": user_id},
    )
    return get_user(db, user_id)


def update_user(db: Session, user_id: int, data: UserInput) -> dict:
    values = _clean(data)
    with transaction(db, "Update user"):
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        _ensure_unique(db, values, exclude_id=user_id)
        for key, value in values.items():
            setattr(user, key, value)
        db.flush()
    logger.info(
        "User %s updated",
        user_id,
        extra={"operation": "Update user", "user_id": user_id},
    )
    return get_user(db, user_id)


def delete_user(db: Session, user_id: int) -> None:
    """Remove an account that no asset or stock entry points at.

    History rows keep their ``changed_by`` id; they render without a name
    once the account is gone.
    """
    with transaction(db, "Delete user"):
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        references = _reference_count(db, user_id)
        if references:
            raise ValidationError(
                f"User is still referenced by {references} record(s)", ["id"]
            )
        db.delete(user)
        db.flush()
    logger.info(
        "User %s deleted",
        user_id,
        extra={"operation": "Delete user", "user_id": user_id},
    )


def user_predicate(filters: Optional[UserFilter]) -> Predicate:
    filters = filters or UserFilter()
    role = None if is_blank(filters.role) else filters.role.strip().lower()
    return (
        Predicate()
        .equals(User.role, role)
        .search(filters.search, SEARCH_COLUMNS)
    )


def list_users(
    db: Session,
    filters: Optional[UserFilter] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
) -> tuple[list[dict], int]:
    stmt = _user_select().order_by(User.created_at.desc(), User.id.desc())
    return paginate(db, stmt, User.__table__, user_predicate(filters), page, limit)


__all__ = [
    "create_user",
    "delete_user",
    "get_user",
    "list_users",
    "update_user",
    "user_predicate",
]
