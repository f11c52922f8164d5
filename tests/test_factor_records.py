from models import db
from models.factor_record import FactorRecord
from security import factor_records


def test_create_record_defaults(user):
    record = factor_records.create_record(user, "totp", label="phone", secret="JBSWY3DPEHPK3PXP")

    assert record.id is not None
    assert record.user_id == user.id
    assert record.revoked is False
    assert record.lock_counter == 0
    assert record.last_verified_at is None
    assert record.created_from_ip == "203.0.113.5"
    assert record.singleton_key is None


def test_list_active_is_list_all_without_revoked(user):
    keep = factor_records.create_record(user, "totp", label="phone")
    gone = factor_records.create_record(user, "totp", label="tablet")
    factor_records.revoke(user, "totp", gone.id)

    all_ids = {r.id for r in factor_records.list_all(user.id, "totp")}
    active_ids = {r.id for r in factor_records.list_active(user.id, "totp")}

    assert all_ids == {keep.id, gone.id}
    assert active_ids == {keep.id}
    assert active_ids <= all_ids


def test_listing_is_per_factor_and_user(user, other_user):
    factor_records.create_record(user, "totp")
    factor_records.create_record(user, "email")
    factor_records.create_record(other_user, "totp")

    assert len(factor_records.list_all(user.id, "totp")) == 1
    assert factor_records.list_all(user.id, "iprange") == []


def test_singleton_created_once(user):
    first = factor_records.get_or_create_singleton(user, "email")
    second = factor_records.get_or_create_singleton(user, "email")

    assert len(first) == 1
    assert [r.id for r in first] == [r.id for r in second]
    assert FactorRecord.query.filter_by(user_id=user.id, factor="email").count() == 1

    record = first[0]
    assert record.lock_counter == 0
    assert record.revoked is False
    assert record.last_verified_at is None
    assert record.singleton_key == f"{user.id}:email"


def test_singleton_returns_existing_history(user):
    old = factor_records.create_record(user, "email")
    factor_records.revoke(user, "email")

    records = factor_records.get_or_create_singleton(user, "email")

    assert [r.id for r in records] == [old.id]
    assert records[0].revoked is True


def test_singleton_concurrent_insert_returns_winner(user, monkeypatch):
    # Another request inserted the singleton between our read and our insert.
    winner = FactorRecord(user_id=user.id, factor="email", singleton_key=f"{user.id}:email")
    db.session.add(winner)
    db.session.commit()
    winner_id = winner.id

    real_list_all = factor_records.list_all
    calls = []

    def list_all_racing(user_id, factor):
        calls.append(factor)
        if len(calls) == 1:
            return []
        return real_list_all(user_id, factor)

    monkeypatch.setattr(factor_records, "list_all", list_all_racing)
    records = factor_records.get_or_create_singleton(user, "email")

    assert [r.id for r in records] == [winner_id]
    assert FactorRecord.query.filter_by(factor="email").count() == 1


def test_revoke_own_record(user):
    record = factor_records.create_record(user, "totp")
    assert factor_records.revoke(user, "totp", record.id) is True
    assert db.session.get(FactorRecord, record.id).revoked is True


def test_revoke_is_idempotent(user):
    record = factor_records.create_record(user, "totp")
    assert factor_records.revoke(user, "totp", record.id) is True
    assert factor_records.revoke(user, "totp", record.id) is True
    assert db.session.get(FactorRecord, record.id).revoked is True


def test_revoke_other_users_record_denied(user, other_user):
    record = factor_records.create_record(other_user, "totp")

    assert factor_records.revoke(user, "totp", record.id) is False
    assert db.session.get(FactorRecord, record.id).revoked is False


def test_revoke_other_users_record_as_admin(admin, other_user):
    record = factor_records.create_record(other_user, "totp")

    assert factor_records.revoke(admin, "totp", record.id) is True
    assert db.session.get(FactorRecord, record.id).revoked is True


def test_revoke_unknown_record(user):
    assert factor_records.revoke(user, "totp", 999) is False


def test_revoke_with_id_zero_is_a_missing_record(user):
    factor_records.create_record(user, "totp")
    factor_records.create_record(user, "totp")

    assert factor_records.revoke(user, "totp", 0) is False
    assert len(factor_records.list_active(user.id, "totp")) == 2


def test_revoke_record_of_another_factor(user):
    record = factor_records.create_record(user, "email")
    assert factor_records.revoke(user, "totp", record.id) is False
    assert db.session.get(FactorRecord, record.id).revoked is False


def test_revoke_all_records_of_factor(other_user):
    # U7 with two active totp records
    factor_records.create_record(other_user, "totp", label="phone")
    factor_records.create_record(other_user, "totp", label="tablet")
    untouched = factor_records.create_record(other_user, "email")

    assert factor_records.revoke(other_user, "totp") is True

    assert factor_records.list_active(other_user.id, "totp") == []
    assert len(factor_records.list_all(other_user.id, "totp")) == 2
    assert all(r.revoked for r in factor_records.list_all(other_user.id, "totp"))
    assert db.session.get(FactorRecord, untouched.id).revoked is False


def test_update_last_verified_single_record(user):
    a = factor_records.create_record(user, "totp")
    b = factor_records.create_record(user, "totp")

    assert factor_records.update_last_verified(user.id, "totp", a.id) is True
    assert factor_records.get_last_verified(a.id) is not None
    assert factor_records.get_last_verified(b.id) is None


def test_update_last_verified_all_records(user):
    factor_records.create_record(user, "totp")
    factor_records.create_record(user, "totp")

    assert factor_records.update_last_verified(user.id, "totp") is True
    assert all(r.last_verified_at for r in factor_records.list_all(user.id, "totp"))


def test_update_last_verified_scoped_to_user(user, other_user):
    record = factor_records.create_record(other_user, "totp")

    assert factor_records.update_last_verified(user.id, "totp", record.id) is False
    assert factor_records.get_last_verified(record.id) is None


def test_update_last_verified_id_zero_touches_nothing(user):
    record = factor_records.create_record(user, "totp")

    assert factor_records.update_last_verified(user.id, "totp", 0) is False
    assert factor_records.get_last_verified(record.id) is None


def test_get_last_verified_unknown_record(app):
    assert factor_records.get_last_verified(12345) is None


def test_delete_all(user, other_user):
    factor_records.create_record(user, "totp")
    factor_records.create_record(user, "totp")
    factor_records.create_record(other_user, "totp")

    assert factor_records.delete_all(user.id, "totp") == 2
    assert factor_records.list_all(user.id, "totp") == []
    assert len(factor_records.list_all(other_user.id, "totp")) == 1


def test_labels(user):
    record = factor_records.create_record(user, "totp", label="phone")
    assert factor_records.get_label(record.id) == "phone"

    assert factor_records.set_label(record.id, "  work phone ") is True
    assert factor_records.get_label(record.id) == "work phone"

    assert factor_records.get_label(404) is None
    assert factor_records.set_label(404, "x") is False
