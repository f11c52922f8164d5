import json
from flask import request, current_app, has_request_context
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog

FACTOR_SETUP = "MFA_FACTOR_SETUP"
FACTOR_REVOKED = "MFA_FACTOR_REVOKED"
FACTOR_DELETED = "MFA_FACTOR_DELETED"
FACTOR_LOCK_RESET = "MFA_FACTOR_LOCK_RESET"


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None) -> bool:
    """
    Appends an audit row in its own commit. Callers commit their own changes
    first, so a failure here never undoes them; it is only reported.
    """
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata) if metadata else None
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Audit event %s not recorded: %s", action, exc)
        return False
    return True


def log_factor_event(action: str, actor_id, target_user_id, factor: str, label=None) -> bool:
    return log_event(
        action,
        user_id=actor_id,
        entity="mfa_factor",
        entity_id=factor,
        metadata={"target_user_id": target_user_id, "factor": factor, "label": label},
    )
