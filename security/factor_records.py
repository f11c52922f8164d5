from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from models import db
from models.factor_record import FactorRecord
from security.rbac import is_privileged


def _singleton_key(user_id: int, factor: str) -> str:
    return f"{user_id}:{factor}"


def get_record(record_id: int) -> Optional[FactorRecord]:
    if record_id is None:
        return None
    return db.session.get(FactorRecord, record_id)


def list_all(user_id: int, factor: str) -> List[FactorRecord]:
    """
    Every record of the factor for the user, revoked ones included.
    """
    return FactorRecord.query.filter_by(user_id=user_id, factor=factor).all()


def list_active(user_id: int, factor: str) -> List[FactorRecord]:
    # Filtered from list_all so both views always agree.
    return [r for r in list_all(user_id, factor) if not r.revoked]


def create_record(user, factor: str, label: Optional[str] = None, secret: Optional[str] = None) -> FactorRecord:
    now = datetime.utcnow()
    record = FactorRecord(
        user_id=user.id,
        factor=factor,
        label=label,
        secret=secret,
        created_at=now,
        modified_at=now,
        created_from_ip=user.last_ip,
        revoked=False,
    )
    db.session.add(record)
    db.session.commit()
    return record


def get_or_create_singleton(user, factor: str) -> List[FactorRecord]:
    """
    Existing records for the factor if there are any, otherwise a single new one.
    The unique singleton_key makes the insert safe against a concurrent request
    doing the same: the loser rolls back and reads the winner's row.
    """
    records = list_all(user.id, factor)
    if records:
        return records

    now = datetime.utcnow()
    record = FactorRecord(
        user_id=user.id,
        factor=factor,
        created_at=now,
        modified_at=now,
        created_from_ip=user.last_ip,
        revoked=False,
        singleton_key=_singleton_key(user.id, factor),
    )
    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return list_all(user.id, factor)

    return [record]


def revoke(actor, factor: str, record_id: Optional[int] = None) -> bool:
    """
    Marks records revoked. With record_id only that record, which must belong
    to the actor unless the actor is privileged. Without it, all of the
    actor's records of the factor. Revoking twice is still a success.
    """
    if record_id is not None:
        record = get_record(record_id)
        if record is None or record.factor != factor:
            return False
        if record.user_id != actor.id and not is_privileged(actor):
            return False
        query = FactorRecord.query.filter_by(id=record.id)
    else:
        query = FactorRecord.query.filter_by(user_id=actor.id, factor=factor)

    query.filter_by(revoked=False).update(
        {"revoked": True, "modified_at": datetime.utcnow()},
        synchronize_session=False,
    )
    db.session.commit()
    return True


def update_last_verified(user_id: int, factor: str, record_id: Optional[int] = None) -> bool:
    query = FactorRecord.query.filter_by(user_id=user_id, factor=factor)
    if record_id is not None:
        query = query.filter_by(id=record_id)

    count = query.update({"last_verified_at": datetime.utcnow()}, synchronize_session=False)
    db.session.commit()
    return count > 0


def get_last_verified(record_id: int) -> Optional[datetime]:
    record = get_record(record_id)
    if record is None:
        return None
    return record.last_verified_at


def delete_all(user_id: int, factor: str) -> int:
    count = FactorRecord.query.filter_by(user_id=user_id, factor=factor).delete(synchronize_session=False)
    db.session.commit()
    return count


def get_label(record_id: int) -> Optional[str]:
    record = get_record(record_id)
    if record is None:
        return None
    return record.label


def set_label(record_id: int, label: str) -> bool:
    record = get_record(record_id)
    if record is None:
        return False
    record.label = (label or "").strip()[:255] or None
    db.session.commit()
    return True
