from flask import Blueprint, request, jsonify, g

from factors import get_factor
from models import db
from models.user import User
from security import factor_records, lockout
from security.rbac import require_roles
from utils.audit import FACTOR_LOCK_RESET, log_factor_event

mfa_admin_bp = Blueprint("mfa_admin", __name__, url_prefix="/admin/mfa")


def _load(user_id: int, name: str):
    user = db.session.get(User, user_id)
    try:
        factor = get_factor(name)
    except ValueError:
        factor = None
    return user, factor


@mfa_admin_bp.get("/users/<int:user_id>/factors/<name>")
@require_roles("ADMIN")
def list_user_factor_records(user_id: int, name: str):
    user, factor = _load(user_id, name)
    if user is None or factor is None:
        return jsonify(error="Not found"), 404

    return jsonify(
        factor=factor.name,
        remaining_attempts=factor.get_remaining_attempts(user),
        records=[
            {
                "id": r.id,
                "label": r.label,
                "revoked": r.revoked,
                "created_at": r.created_at.isoformat(),
                "created_from_ip": r.created_from_ip,
                "last_verified_at": r.last_verified_at.isoformat() if r.last_verified_at else None,
            }
            for r in factor_records.list_all(user.id, factor.name)
        ],
    ), 200


@mfa_admin_bp.post("/users/<int:user_id>/factors/<name>/revoke")
@require_roles("ADMIN")
def revoke_user_factor(user_id: int, name: str):
    user, factor = _load(user_id, name)
    if user is None or factor is None:
        return jsonify(error="Not found"), 404

    data = request.get_json(silent=True) or {}
    factor_id = data.get("factor_id")
    if factor_id is not None:
        # bool is an int subclass; True must not turn into record 1
        if isinstance(factor_id, bool) or not isinstance(factor_id, int):
            return jsonify(error="Invalid factor_id"), 400
        record = factor_records.get_record(factor_id)
        if record is None or record.user_id != user.id:
            return jsonify(error="Factor not found"), 404
        targets = [record.id]
    else:
        targets = [r.id for r in factor_records.list_active(user.id, factor.name)]

    revoked = sum(1 for record_id in targets if factor.revoke_user_factor(g.user, record_id))
    return jsonify(revoked=revoked), 200


@mfa_admin_bp.post("/users/<int:user_id>/factors/<name>/reset-lock")
@require_roles("ADMIN")
def reset_user_factor_lock(user_id: int, name: str):
    user, factor = _load(user_id, name)
    if user is None or factor is None:
        return jsonify(error="Not found"), 404

    count = lockout.reset(user.id, factor.name)
    log_factor_event(FACTOR_LOCK_RESET, g.user.id, user.id, factor.name, factor.get_display_name())
    return jsonify(reset=count), 200


@mfa_admin_bp.delete("/users/<int:user_id>/factors/<name>")
@require_roles("ADMIN")
def delete_user_factor(user_id: int, name: str):
    user, factor = _load(user_id, name)
    if user is None or factor is None:
        return jsonify(error="Not found"), 404

    deleted = factor.delete_factor_for_user(user, actor=g.user)
    return jsonify(deleted=deleted), 200
