from flask import Blueprint, request, jsonify, g

from factors import get_factor, get_enabled_factors
from security.csrf import issue_csrf_token
from security.factor_state import STATE_PASS, clear_states
from utils.auth_context import current_state_bag, login_required
from utils.emailer import send_email
from utils.notify import pop_notifications

factors_bp = Blueprint("factors", __name__, url_prefix="/mfa")


def _enabled_factor(name: str):
    try:
        factor = get_factor(name)
    except ValueError:
        return None
    return factor if factor.is_enabled() else None


def _parse_factor_id(data: dict):
    value = data.get("factor_id")
    if value is None:
        return None, None
    if isinstance(value, bool):
        return None, (jsonify(error="Invalid factor_id"), 400)
    try:
        return int(value), None
    except (TypeError, ValueError):
        return None, (jsonify(error="Invalid factor_id"), 400)


@factors_bp.get("/csrf")
def csrf_token():
    return issue_csrf_token(jsonify(message="CSRF token issued")), 200


@factors_bp.get("/factors")
@login_required
def list_factors():
    bag = current_state_bag()
    return jsonify([f.get_summary(bag, g.user) for f in get_enabled_factors()]), 200


@factors_bp.post("/factors/<name>/setup")
@login_required
def setup_factor(name: str):
    factor = _enabled_factor(name)
    if factor is None:
        return jsonify(error="Factor not found"), 404
    if not factor.has_setup():
        return jsonify(error="Factor does not need setup"), 400

    data = request.get_json(silent=True) or {}
    record = factor.setup_user_factor(g.user, data)
    if record is None:
        return jsonify(error="Factor setup failed"), 400
    return jsonify(id=record.id, label=record.label), 201


@factors_bp.post("/factors/<name>/revoke")
@login_required
def revoke_factor(name: str):
    factor = _enabled_factor(name)
    if factor is None:
        return jsonify(error="Factor not found"), 404
    if not factor.has_revoke():
        return jsonify(error="Factor cannot be revoked"), 400

    factor_id, failure = _parse_factor_id(request.get_json(silent=True) or {})
    if failure:
        return failure

    if not factor.revoke_user_factor(g.user, factor_id):
        return jsonify(error="Factor not found"), 404
    return jsonify(message="Factor revoked"), 200


@factors_bp.post("/factors/<name>/cancel")
@login_required
def cancel_factor(name: str):
    factor = _enabled_factor(name)
    if factor is None:
        return jsonify(error="Factor not found"), 404

    bag = current_state_bag()
    factor.process_cancel_action(bag)
    return jsonify(state=factor.get_state(bag)), 200


@factors_bp.post("/factors/email/send")
@login_required
def send_email_code():
    factor = _enabled_factor("email")
    if factor is None:
        return jsonify(error="Factor not found"), 404

    bag = current_state_bag()
    code = factor.send_code(bag, g.user)
    if factor.is_locked(bag):
        return jsonify(error="Factor locked", state=factor.get_state(bag)), 429
    if not code:
        if not factor.get_active_user_factors(g.user):
            return jsonify(error="Factor has been revoked"), 409
        return jsonify(message="A code has already been sent"), 200

    ok, err = send_email(
        g.user.email,
        "Your verification code",
        f"Your verification code is {code}. If you did not try to log in, change your password.",
    )
    if not ok:
        return jsonify(error="Could not send code", details=err), 502
    return jsonify(message="Code sent"), 200


@factors_bp.post("/factors/email/verify")
@login_required
def verify_email_code():
    factor = _enabled_factor("email")
    if factor is None:
        return jsonify(error="Factor not found"), 404

    bag = current_state_bag()
    data = request.get_json(silent=True) or {}
    state = factor.verify_code(bag, g.user, (data.get("code") or "").strip())
    body = dict(
        state=state,
        remaining_attempts=factor.get_remaining_attempts(),
        messages=pop_notifications(bag),
    )

    if state == STATE_PASS:
        return jsonify(body), 200
    if factor.is_locked(bag):
        return jsonify(error="Factor locked", **body), 429
    return jsonify(error="Invalid code", **body), 401


@factors_bp.post("/session/end")
@login_required
def end_mfa_session():
    cleared = clear_states(current_state_bag())
    return jsonify(cleared=cleared), 200
