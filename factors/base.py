from collections.abc import MutableMapping
from typing import Iterable, List, Optional

from flask import current_app

from models.factor_record import FactorRecord
from security import factor_records, lockout
from security.factor_secrets import SecretManager
from security.factor_state import (
    STATE_LOCKED,
    STATE_NEUTRAL,
    STATE_PASS,
    get_state,
    set_state,
)
from security.lockout import LockStatus
from utils.audit import FACTOR_DELETED, FACTOR_REVOKED, FACTOR_SETUP, log_factor_event
from utils.notify import notify_error


class Factor:
    """
    Behaviour shared by every MFA factor: config lookup, session state,
    lock accounting and the lifecycle of the user's factor records.

    Concrete factors subclass this and override only what differs, e.g.
    has_input() for passive factors or check_combination() for factors that
    cannot be combined with others.

    Collaborators are injected so the class can be used outside a request:
      secrets  - SecretManager-like object with cleanup_temp_secrets(user_id)
      audit    - callable(action, actor_id, target_user_id, factor, label)
      notifier - callable(session, message)
    """

    def __init__(self, name: str, secrets=None, audit=None, notifier=None):
        self.name = name
        self.secrets = secrets or SecretManager(name)
        self._audit = audit or log_factor_event
        self._notify = notifier or notify_error
        self._lock_status: Optional[LockStatus] = None

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"

    # ---------- configuration ----------

    def get_config(self) -> dict:
        return current_app.config.get("MFA_FACTORS", {}).get(self.name, {})

    def is_enabled(self) -> bool:
        return self.get_config().get("enabled") in (True, "1", "true")

    def get_weight(self) -> int:
        try:
            return int(self.get_config().get("weight") or 0)
        except (TypeError, ValueError):
            return 0

    def get_display_name(self) -> str:
        return self.get_config().get("display_name") or self.name.title()

    def get_lockout_threshold(self) -> int:
        threshold = self.get_config().get("lockout")
        if threshold is None:
            threshold = current_app.config.get("MFA_LOCKOUT_THRESHOLD", 10)
        return max(int(threshold), 0)

    # ---------- capabilities ----------

    def has_input(self) -> bool:
        return True

    def is_lockable(self) -> bool:
        # Only factors the user types into can be brute forced.
        return self.has_input()

    def has_setup(self) -> bool:
        return False

    def has_revoke(self) -> bool:
        return False

    # ---------- session state ----------

    def get_state(self, session: MutableMapping) -> str:
        return get_state(session, self.name)

    def set_state(self, session: MutableMapping, state: str) -> bool:
        return set_state(session, self.name, state)

    def is_locked(self, session: MutableMapping) -> bool:
        return self.get_state(session) == STATE_LOCKED

    def process_cancel_action(self, session: MutableMapping) -> bool:
        return self.set_state(session, STATE_NEUTRAL)

    def possible_states(self, session: MutableMapping, user) -> set:
        """
        States the factor could be in for this user. Deterministic factors
        can only be in their current one.
        """
        return {self.get_state(session)}

    def check_combination(self, combination: Iterable) -> bool:
        return True

    # ---------- lockout ----------

    def _counts_failures(self) -> bool:
        return self.is_enabled() and self.is_lockable()

    def load_locked_state(self, session: MutableMapping, user) -> LockStatus:
        status = lockout.load_lock_state(
            user.id, self.name, self.get_lockout_threshold(), self._counts_failures()
        )
        self._lock_status = status
        if status.locked:
            self.set_state(session, STATE_LOCKED)
        return status

    def increment_lock_counter(self, session: MutableMapping, user) -> LockStatus:
        """
        Records one failed attempt. Locks the factor for the session and tells
        the user once the threshold is reached.
        """
        self.load_locked_state(session, user)
        if not self._counts_failures():
            return self._lock_status

        status = lockout.increment(user.id, self.name, self.get_lockout_threshold())
        self._lock_status = status

        if status.locked:
            self.set_state(session, STATE_LOCKED)
            current_app.logger.info("Factor %s locked for user %s", self.name, user.id)
            self._notify(
                session,
                f"{self.get_display_name()} has been locked after too many failed attempts.",
            )
        return status

    def get_remaining_attempts(self, user=None) -> int:
        threshold = self.get_lockout_threshold()
        if user is not None:
            self._lock_status = lockout.load_lock_state(
                user.id, self.name, threshold, self._counts_failures()
            )
        if self._lock_status is None:
            return threshold
        return lockout.remaining_attempts(self._lock_status, threshold)

    def post_pass_state(self, session: MutableMapping, user) -> None:
        if self.get_state(session) == STATE_PASS:
            self.update_lastverified(user)
            lockout.reset(user.id, self.name)

        # Temp secrets go regardless of the outcome.
        self.secrets.cleanup_temp_secrets(user.id)

    # ---------- records ----------

    def get_all_user_factors(self, user) -> List[FactorRecord]:
        """
        All records of this factor for the user, revoked included.
        Factors that store records override this.
        """
        return []

    def get_active_user_factors(self, user) -> List[FactorRecord]:
        return [f for f in self.get_all_user_factors(user) if not f.revoked]

    def get_singleton_user_factor(self, user) -> List[FactorRecord]:
        return factor_records.get_or_create_singleton(user, self.name)

    def setup_user_factor(self, user, data: dict) -> Optional[FactorRecord]:
        return None

    def create_event_after_factor_setup(self, user, label: Optional[str] = None) -> None:
        self._emit(FACTOR_SETUP, user.id, user.id, label or self.get_display_name())

    def revoke_user_factor(self, actor, factor_id: Optional[int] = None) -> bool:
        target_id = actor.id
        label = self.get_display_name()
        if factor_id is not None:
            record = factor_records.get_record(factor_id)
            if record is not None:
                target_id = record.user_id
                label = record.label or label

        if not factor_records.revoke(actor, self.name, factor_id):
            return False

        self._emit(FACTOR_REVOKED, actor.id, target_id, label)
        return True

    def delete_factor_for_user(self, user, actor=None) -> int:
        count = factor_records.delete_all(user.id, self.name)
        actor = actor or user
        self._emit(FACTOR_DELETED, actor.id, user.id, self.get_display_name())
        return count

    def update_lastverified(self, user, factor_id: Optional[int] = None) -> bool:
        return factor_records.update_last_verified(user.id, self.name, factor_id)

    def get_lastverified(self, factor_id: int):
        return factor_records.get_last_verified(factor_id)

    def get_label(self, factor_id: int) -> Optional[str]:
        return factor_records.get_label(factor_id)

    def _emit(self, action: str, actor_id, target_id, label) -> None:
        try:
            self._audit(action, actor_id, target_id, self.name, label)
        except Exception as exc:
            current_app.logger.error("Audit sink failed for %s on factor %s: %s", action, self.name, exc)

    # ---------- reporting ----------

    def get_summary(self, session: MutableMapping, user) -> dict:
        status = self.load_locked_state(session, user)
        return {
            "name": self.name,
            "display_name": self.get_display_name(),
            "enabled": self.is_enabled(),
            "weight": self.get_weight(),
            "state": self.get_state(session),
            "locked": status.locked or self.is_locked(session),
            "remaining_attempts": self.get_remaining_attempts(),
            "has_setup": self.has_setup(),
            "has_revoke": self.has_revoke(),
            "records": [
                {
                    "id": r.id,
                    "label": r.label,
                    "created_at": r.created_at.isoformat(),
                    "last_verified_at": r.last_verified_at.isoformat() if r.last_verified_at else None,
                }
                for r in self.get_active_user_factors(user)
            ],
        }
