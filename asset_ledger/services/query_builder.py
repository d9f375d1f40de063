"""Filter predicates shared by a listing's page query and its count query.

Every term is a SQL expression that carries its own bound value, so the
text of the WHERE clause and its parameters can never drift apart. Both the
data query and the total count are built from the same ``Predicate``; only
the data query receives LIMIT/OFFSET.
"""
from typing import Iterable, Optional

from sqlalchemy import and_, func, literal, or_, select, true
from sqlalchemy.orm import Session

_LIKE_ESCAPE = "!"


def escape_like(term: str) -> str:
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


class Predicate:
    def __init__(self):
        self._clauses = []

    def equals(self, column, value) -> "Predicate":
        if value is None:
            return self
        if isinstance(value, str):
            value = value.strip()
            if not value or value.lower() == "all":
                return self
        self._clauses.append(column == value)
        return self

    def search(self, term: Optional[str], columns: Iterable) -> "Predicate":
        """Case-insensitive substring match on any of ``columns``."""
        if term is None or not str(term).strip():
            return self
        pattern = "%{}%".format(escape_like(str(term).strip().lower()))
        needle = literal(pattern)
        self._clauses.append(
            or_(
                *(
                    func.lower(func.coalesce(column, "")).like(needle, escape=_LIKE_ESCAPE)
                    for column in columns
                )
            )
        )
        return self

    @property
    def terms(self) -> list[tuple[str, list]]:
        """Ordered (fragment, bound values) pairs, for logging and tests."""
        pairs = []
        for clause in self._clauses:
            compiled = clause.compile()
            pairs.append((str(compiled), list(compiled.params.values())))
        return pairs

    def clause(self):
        return and_(true(), *self._clauses)

    def apply(self, stmt):
        return stmt.where(self.clause())

    def __len__(self):
        return len(self._clauses)


def count(db: Session, from_clause, predicate: Predicate) -> int:
    stmt = predicate.apply(select(func.count()).select_from(from_clause))
    return db.execute(stmt).scalar_one()


def paginate(
    db: Session,
    data_stmt,
    from_clause,
    predicate: Predicate,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> tuple[list[dict], int]:
    total = count(db, from_clause, predicate)
    stmt = predicate.apply(data_stmt)
    if limit is not None:
        page = max(1, page or 1)
        stmt = stmt.limit(limit).offset((page - 1) * limit)
    rows = [dict(row) for row in db.execute(stmt).mappings()]
    return rows, total


__all__ = ["Predicate", "count", "escape_like", "paginate"]
