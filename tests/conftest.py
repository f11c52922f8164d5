import pytest

from app import create_app
from config import TestConfig
from factors import get_factor
from models import db
from models.user import User, Role
from utils.seed import seed_roles


class RecordingAudit:
    def __init__(self):
        self.events = []

    def __call__(self, action, actor_id, target_user_id, factor, label):
        self.events.append({
            "action": action,
            "actor_id": actor_id,
            "target_user_id": target_user_id,
            "factor": factor,
            "label": label,
        })


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def __call__(self, session, message):
        self.messages.append(message)


class RecordingSecrets:
    def __init__(self):
        self.cleaned = []

    def cleanup_temp_secrets(self, user_id):
        self.cleaned.append(user_id)
        return 0


def make_user(email, roles=(), last_ip="203.0.113.5"):
    user = User(email=email, last_ip=last_ip)
    for name in roles:
        user.roles.append(Role.query.filter_by(name=name).one())
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        seed_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def user(app):
    return make_user("u42@example.com")


@pytest.fixture
def other_user(app):
    return make_user("u7@example.com")


@pytest.fixture
def admin(app):
    return make_user("admin@example.com", roles=("ADMIN",))


@pytest.fixture
def session():
    return {}


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_factor(audit, notifier):
    def _make(name, **kwargs):
        kwargs.setdefault("audit", audit)
        kwargs.setdefault("notifier", notifier)
        return get_factor(name, **kwargs)
    return _make
