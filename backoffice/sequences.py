"""
Human-facing document numbering (SALE-0001, JO-0001, QT-0001).

Numbers come from one counter row per entity type, advanced with a single
UPDATE so concurrent callers never read the same value.
"""
import logging
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from . import models

logger = logging.getLogger(__name__)

SALE_KEY = "saleID"
JOB_ORDER_KEY = "jobOrderID"
QUOTATION_KEY = "quotationNumber"

SALE_PREFIX = "SALE"
JOB_ORDER_PREFIX = "JO"
QUOTATION_PREFIX = "QT"


def _increment(db: Session, key: str) -> bool:
    stmt = (
        update(models.Counter)
        .where(models.Counter.name == key)
        .values(seq=models.Counter.seq + 1)
        .execution_options(synchronize_session=False)
    )
    return bool(db.execute(stmt).rowcount)


def next_sequence(db: Session, key: str) -> int:
    """
    Atomically advance the counter for `key` and return its new value.

    The first call for a key inserts the counter inside a SAVEPOINT; if
    another transaction inserted it first, the increment is retried.
    """
    if not _increment(db, key):
        try:
            with db.begin_nested():
                db.add(models.Counter(name=key, seq=1))
            return 1
        except IntegrityError:
            logger.info(f"Counter '{key}' created concurrently, retrying increment")
            if not _increment(db, key):
                raise

    return db.execute(select(models.Counter.seq).where(models.Counter.name == key)).scalar_one()


def format_number(prefix: str, seq: int, pad: int = 4) -> str:
    """Render a sequence value as <PREFIX>-NNNN."""
    return f"{prefix}-{str(seq).zfill(pad)}"


def next_number(db: Session, key: str, prefix: str, pad: int = 4) -> str:
    """
    Allocate the next document number for an entity type.

    Args:
        db: Database session
        key: Counter key (e.g. "saleID")
        prefix: Number prefix (e.g. "SALE")
        pad: Minimum digits

    Returns:
        Formatted number, e.g. "SALE-0007"
    """
    return format_number(prefix, next_sequence(db, key), pad)
