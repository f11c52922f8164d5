from datetime import datetime, timedelta

from models import db
from models.session import Session
from security import factor_state
from security.session import SessionStateBag, create_session, get_session_from_request
from utils.notify import notify_error, pop_notifications


def _new_session(app, user):
    with app.test_request_context(headers={"User-Agent": "pytest"}):
        token = create_session(user.id)
    return token, Session.query.filter_by(user_id=user.id).one()


def _resolve(app, token):
    cookie = f"{app.config['AUTH_COOKIE_NAME']}={token}"
    with app.test_request_context(headers={"Cookie": cookie}):
        return get_session_from_request()


def test_only_token_hash_is_stored(app, user):
    token, row = _new_session(app, user)

    assert row.token_hash != token
    assert len(row.token_hash) == 64
    assert row.user_agent == "pytest"
    assert row.factor_states == {}


def test_token_resolves_to_session(app, user):
    token, row = _new_session(app, user)
    assert _resolve(app, token).id == row.id


def test_unknown_missing_or_revoked_token(app, user):
    token, row = _new_session(app, user)
    assert _resolve(app, "nope") is None
    with app.test_request_context():
        assert get_session_from_request() is None

    row.revoked = True
    db.session.commit()
    assert _resolve(app, token) is None


def test_expired_session(app, user):
    token, row = _new_session(app, user)
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    assert _resolve(app, token) is None


def test_idle_session(app, user):
    token, row = _new_session(app, user)
    row.last_seen_at = datetime.utcnow() - timedelta(seconds=app.config["IDLE_TIMEOUT_SECONDS"] + 1)
    db.session.commit()

    assert _resolve(app, token) is None


def test_bag_writes_are_persisted(app, user):
    _token, row = _new_session(app, user)
    bag = SessionStateBag(row)

    factor_state.set_state(bag, "totp", factor_state.STATE_NEUTRAL)
    db.session.expire_all()

    assert db.session.get(Session, row.id).factor_states == {"factor_totp": "neutral"}
    assert len(bag) == 1


def test_fail_survives_a_rollback(app, user):
    _token, row = _new_session(app, user)
    bag = SessionStateBag(row)

    factor_state.set_state(bag, "email", factor_state.STATE_FAIL)
    db.session.rollback()

    fresh = SessionStateBag(db.session.get(Session, row.id))
    assert factor_state.get_state(fresh, "email") == factor_state.STATE_FAIL
    assert factor_state.set_state(fresh, "email", factor_state.STATE_PASS) is False


def test_clear_states_through_bag(app, user):
    _token, row = _new_session(app, user)
    bag = SessionStateBag(row)
    factor_state.set_state(bag, "totp", factor_state.STATE_PASS)
    factor_state.set_state(bag, "email", factor_state.STATE_NEUTRAL)
    notify_error(bag, "hello")

    assert factor_state.clear_states(bag) == 2
    assert list(bag) == ["_flashes"]


def test_notifications_through_bag(app, user):
    _token, row = _new_session(app, user)
    bag = SessionStateBag(row)

    notify_error(bag, "first")
    notify_error(bag, "second")

    assert pop_notifications(bag) == ["first", "second"]
    assert pop_notifications(bag) == []
    assert "_flashes" not in bag


def test_reads_do_not_leak_into_stored_state(app, user):
    _token, row = _new_session(app, user)
    bag = SessionStateBag(row)
    notify_error(bag, "first")

    bag["_flashes"].append(["error", "sneaky"])

    assert pop_notifications(bag) == ["first"]
