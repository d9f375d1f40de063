import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from asset_ledger.core.errors import AssetLedgerError, TransactionError
from asset_ledger.database.engine import engine

logger = logging.getLogger(__name__)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session, operation: str):
    """Run a block as one all-or-nothing unit of work.

    Commits when the block finishes. On any failure the session is rolled
    back; ledger errors are re-raised as they are, storage errors surface
    as a single TransactionError carrying the original exception.
    """
    try:
        yield db
        db.commit()
    except AssetLedgerError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "%s failed, transaction rolled back: %s",
            operation,
            exc,
            extra={"operation": operation},
        )
        raise TransactionError(f"{operation} failed", cause=exc) from exc
    except Exception:
        db.rollback()
        raise


def run_transaction(db: Session, operation: str, work, journal=None):
    """Call ``work()`` inside ``transaction`` and settle ``journal`` afterwards.

    Blobs stored by the work are discarded when it fails; blobs it retired
    are deleted only once the commit has gone through.
    """
    try:
        with transaction(db, operation):
            result = work()
    except Exception:
        if journal is not None:
            journal.rollback()
        raise
    if journal is not None:
        journal.commit()
    return result
