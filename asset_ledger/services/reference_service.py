import logging
import re
from typing import Optional

from slugify import slugify
from sqlalchemy import insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from asset_ledger.config import get_settings
from asset_ledger.core.constants import DEFAULT_PERSON_ROLE, REFERENCE_KINDS
from asset_ledger.core.dates import is_blank
from asset_ledger.core.errors import ReferenceResolutionError
from asset_ledger.models._time import utcnow
from asset_ledger.models.reference import AssetBrand, AssetType, User

logger = logging.getLogger(__name__)

_NAMED_KINDS = {
    "type": (AssetType, AssetType.type_name),
    "brand": (AssetBrand, AssetBrand.brand_name),
}


def person_username(name: str) -> str:
    """Storage key for a person: the slugified display name."""
    username = slugify(name, separator="_")
    if not username:
        username = re.sub(r"\s+", "_", name.strip().lower())
    return username


def _insert_ignoring_duplicates(db: Session, model, values: dict) -> None:
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values).on_conflict_do_nothing()
    elif dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values).on_conflict_do_nothing()
    elif dialect in ("mysql", "mariadb"):
        stmt = insert(model).values(**values).prefix_with("IGNORE")
    else:
        stmt = insert(model).values(**values)
    db.execute(stmt)


def _lookup_named(db: Session, kind: str, value: str) -> Optional[int]:
    _model, column = _NAMED_KINDS[kind]
    return db.execute(
        select(_model.id).where(column == value).order_by(_model.id).limit(1)
    ).scalar()


def _lookup_person(db: Session, name: str) -> Optional[int]:
    found = db.execute(
        select(User.id)
        .where(User.username == person_username(name))
        .order_by(User.id)
        .limit(1)
    ).scalar()
    if found is not None:
        return found
    return db.execute(
        select(User.id)
        .where(or_(User.full_name == name, User.email == name))
        .order_by(User.id)
        .limit(1)
    ).scalar()


def _resolve_named(db: Session, kind: str, value: str) -> int:
    found = _lookup_named(db, kind, value)
    if found is not None:
        return found
    model, column = _NAMED_KINDS[kind]
    _insert_ignoring_duplicates(db, model, {column.key: value, "created_at": utcnow()})
    found = _lookup_named(db, kind, value)
    logger.info("Created %s reference %r (id=%s)", kind, value, found, extra={"kind": kind})
    return found


def _resolve_person(db: Session, name: str) -> int:
    found = _lookup_person(db, name)
    if found is not None:
        return found
    username = person_username(name)
    domain = get_settings().PERSON_EMAIL_DOMAIN
    _insert_ignoring_duplicates(
        db,
        User,
        {
            "username": username,
            "full_name": name,
            "email": f"{username}@{domain}",
            "role": DEFAULT_PERSON_ROLE,
            "created_at": utcnow(),
        },
    )
    found = _lookup_person(db, name)
    logger.info(
        "Created person reference %r (id=%s)", name, found, extra={"kind": "person"}
    )
    return found


def resolve(db: Session, kind: str, value: Optional[str]) -> Optional[int]:
    """Map a natural key to its row id, creating the row when absent.

    Blank input resolves to None. Matching is exact and case-sensitive for
    types and brands; people match on their slugified username first and
    then on exact full name or e-mail.
    """
    if kind not in REFERENCE_KINDS:
        raise ValueError(f"Unknown reference kind: {kind}")
    if is_blank(value):
        return None
    value = str(value).strip()
    try:
        if kind == "person":
            resolved = _resolve_person(db, value)
        else:
            resolved = _resolve_named(db, kind, value)
    except SQLAlchemyError as exc:
        raise ReferenceResolutionError(
            f"Unable to resolve {kind} {value!r}", cause=exc
        ) from exc
    if resolved is None:
        raise ReferenceResolutionError(f"Unable to resolve {kind} {value!r}")
    return resolved


def list_references(db: Session, kind: str) -> list[dict]:
    if kind not in _NAMED_KINDS:
        raise ValueError(f"Unknown reference kind: {kind}")
    model, column = _NAMED_KINDS[kind]
    rows = db.execute(
        select(model.id, column, model.created_at).order_by(column)
    ).mappings()
    return [dict(row) for row in rows]


__all__ = ["list_references", "person_username", "resolve"]
