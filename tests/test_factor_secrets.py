from datetime import datetime, timedelta

from models import db
from models.factor_secret import FactorSecret
from security.factor_secrets import NONVALID, REVOKED, VALID, SecretManager, generate_code


def test_generate_code(app):
    code = generate_code()
    assert len(code) == 6 and code.isdigit()
    assert len(generate_code(8)) == 8


def test_only_hash_is_stored(user):
    manager = SecretManager("email")
    code = manager.create_secret(user.id, secret="123456")

    row = FactorSecret.query.filter_by(user_id=user.id).one()
    assert code == "123456"
    assert row.secret_hash != code
    assert len(row.secret_hash) == 64
    assert row.expires_at > datetime.utcnow()


def test_no_second_secret_while_one_is_live(user):
    manager = SecretManager("email")
    assert manager.create_secret(user.id)
    assert manager.create_secret(user.id) == ""
    # other factors are independent
    assert SecretManager("sms").create_secret(user.id)


def test_validate_consumes_secret(user):
    manager = SecretManager("email")
    manager.create_secret(user.id, secret="123456")

    assert manager.validate_secret(user.id, "123456") == VALID
    assert manager.validate_secret(user.id, "123456") == REVOKED


def test_validate_wrong_or_empty(user, other_user):
    manager = SecretManager("email")
    manager.create_secret(user.id, secret="123456")

    assert manager.validate_secret(user.id, "654321") == NONVALID
    assert manager.validate_secret(user.id, "") == NONVALID
    assert manager.validate_secret(other_user.id, "123456") == NONVALID
    assert SecretManager("sms").validate_secret(user.id, "123456") == NONVALID


def test_expired_secret_not_valid(user):
    manager = SecretManager("email")
    manager.create_secret(user.id, expires_in=60, secret="123456")
    row = FactorSecret.query.filter_by(user_id=user.id).one()
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    assert manager.validate_secret(user.id, "123456") == NONVALID
    # an expired secret does not block issuing a new one
    assert manager.create_secret(user.id)


def test_session_bound_secret(user):
    manager = SecretManager("email")
    manager.create_secret(user.id, session_id="sess-a", secret="123456")

    assert manager.validate_secret(user.id, "123456", session_id="sess-b") == NONVALID
    assert manager.validate_secret(user.id, "123456") == NONVALID
    assert manager.validate_secret(user.id, "123456", session_id="sess-a") == VALID


def test_cleanup_removes_expired_and_used(user):
    manager = SecretManager("email")
    manager.create_secret(user.id, secret="111111", session_id="a")
    manager.create_secret(user.id, secret="222222", session_id="b")
    manager.create_secret(user.id, secret="333333", session_id="c")
    manager.validate_secret(user.id, "111111", session_id="a")

    expired = FactorSecret.query.filter_by(session_id="b").one()
    expired.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    assert manager.cleanup_temp_secrets(user.id) == 2
    assert [r.session_id for r in FactorSecret.query.all()] == ["c"]
