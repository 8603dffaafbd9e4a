"""
Document numbers (RX, SALE, SH, RET, QUO) backed by a per-day counter.

Format: <PREFIX><yyyymmdd><seq>, e.g. RX20251019001. A number is reserved with
an atomic `next_seq = next_seq + 1` and read back inside the same transaction,
so concurrent requests never see the same value.
"""
from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.number_series import NumberSeries


def _date_key(d: date) -> int:
    return int(d.strftime("%Y%m%d"))


def _increment(db: Session, key: str, dk: int) -> bool:
    result = db.execute(
        update(NumberSeries)
        .where(NumberSeries.key == key, NumberSeries.date_key == dk)
        .values(next_seq=NumberSeries.next_seq + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


def _reserved(db: Session, key: str, dk: int) -> int:
    """The number this transaction just reserved with _increment."""
    next_seq = (
        db.query(NumberSeries.next_seq)
        .filter(NumberSeries.key == key, NumberSeries.date_key == dk)
        .scalar()
    )
    return int(next_seq) - 1


def next_document_number(db: Session, prefix: str, doc_date: Optional[date] = None, pad: int = 3) -> str:
    """
    Reserve the next number for `prefix` inside the caller's transaction.

    The counter row is created on first use of the day, already past the
    number it hands out. If two requests create it at once, the loser hits the
    unique constraint, rolls back its savepoint and increments the winner's row.
    """
    doc_date = doc_date or date.today()
    dk = _date_key(doc_date)

    if _increment(db, prefix, dk):
        seq = _reserved(db, prefix, dk)
    else:
        try:
            with db.begin_nested():
                db.add(NumberSeries(key=prefix, date_key=dk, next_seq=2))
            seq = 1
        except IntegrityError:
            if not _increment(db, prefix, dk):
                raise
            seq = _reserved(db, prefix, dk)

    return f"{prefix}{doc_date.strftime('%Y%m%d')}{seq:0{pad}d}"
