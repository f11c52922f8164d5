from functools import wraps
from flask import g, jsonify, current_app

DEFAULT_PRIVILEGED_ROLES = ("ADMIN", "SUPER_ADMIN")


def has_role(user, role_name: str) -> bool:
    if not user:
        return False
    return any(r.name == role_name for r in user.roles)


def is_privileged(user) -> bool:
    """
    True when the user may act on other users' factors.
    """
    if not user:
        return False
    privileged = set(current_app.config.get("PRIVILEGED_ROLES", DEFAULT_PRIVILEGED_ROLES))
    return any(r.name in privileged for r in user.roles)


def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            user_roles = {r.name for r in user.roles}
            if "SUPER_ADMIN" not in user_roles and not user_roles.intersection(set(role_names)):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
