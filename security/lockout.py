from typing import NamedTuple

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from flask import current_app

from models import db
from models.factor_record import FactorRecord

# Counter value reported while the lock_counter column cannot be used
LOCK_UNAVAILABLE = -1


class LockStatus(NamedTuple):
    counter: int
    locked: bool

    @classmethod
    def ok(cls, counter: int, threshold: int) -> "LockStatus":
        return cls(counter, counter >= threshold)

    @classmethod
    def unavailable(cls) -> "LockStatus":
        return cls(LOCK_UNAVAILABLE, False)

    @property
    def available(self) -> bool:
        return self.counter != LOCK_UNAVAILABLE


def lock_counter_available() -> bool:
    """
    True once the migration adding mfa_factors.lock_counter has run.
    """
    try:
        columns = sa.inspect(db.session.connection()).get_columns(FactorRecord.__tablename__)
    except SQLAlchemyError:
        return False
    return any(c["name"] == "lock_counter" for c in columns)


def load_lock_state(user_id: int, factor: str, threshold: int, lockable: bool = True) -> LockStatus:
    """
    Highest lock counter across the user's non-revoked records of this factor,
    so switching between enrolled devices does not reset it.
    Non lockable factors report (0, False) without touching storage.
    """
    if not lockable:
        return LockStatus(0, False)

    if not lock_counter_available():
        current_app.logger.warning("Lock counter unavailable, lockout disabled for factor %s", factor)
        return LockStatus.unavailable()

    try:
        counter = (
            db.session.query(sa.func.max(FactorRecord.lock_counter))
            .filter(
                FactorRecord.user_id == user_id,
                FactorRecord.factor == factor,
                FactorRecord.revoked.is_(False),
            )
            .scalar()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("Could not load lock counter for factor %s: %s", factor, exc)
        return LockStatus.unavailable()

    return LockStatus.ok(counter or 0, threshold)


def increment(user_id: int, factor: str, threshold: int, lockable: bool = True) -> LockStatus:
    """
    Adds one failure and writes the new counter to every record of the factor.
    Returns the new status; an unavailable counter is left as is.
    """
    status = load_lock_state(user_id, factor, threshold, lockable)
    if not lockable or not status.available:
        return status

    counter = status.counter + 1
    try:
        (
            FactorRecord.query
            .filter_by(user_id=user_id, factor=factor)
            .update({"lock_counter": counter}, synchronize_session=False)
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("Could not store lock counter for factor %s: %s", factor, exc)
        return LockStatus.unavailable()

    return LockStatus.ok(counter, threshold)


def remaining_attempts(status: LockStatus, threshold: int) -> int:
    if not status.available:
        return threshold
    return max(threshold - status.counter, 0)


def reset(user_id: int, factor: str) -> int:
    """
    Clears the failure counter after a successful verification or an admin reset.
    Returns the number of records updated.
    """
    if not lock_counter_available():
        return 0

    count = (
        FactorRecord.query
        .filter_by(user_id=user_id, factor=factor)
        .update({"lock_counter": 0}, synchronize_session=False)
    )
    db.session.commit()
    return count
