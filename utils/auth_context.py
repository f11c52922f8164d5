from functools import wraps
from flask import g, jsonify, request

from models import db
from models.user import User
from security.session import SessionStateBag, get_session_from_request


def load_current_user():
    sess = get_session_from_request()
    if not sess:
        g.user = None
        g.session = None
        return
    g.session = sess
    g.user = db.session.get(User, sess.user_id)
    if g.user is not None:
        g.user.last_ip = request.headers.get("X-Forwarded-For", request.remote_addr)

def current_state_bag() -> SessionStateBag:
    # factor states of the logged in session
    return SessionStateBag(g.session)

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
