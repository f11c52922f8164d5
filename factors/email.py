from collections.abc import MutableMapping
from typing import List

from factors.base import Factor
from models.factor_record import FactorRecord
from security.factor_secrets import REVOKED, VALID
from security.factor_state import STATE_FAIL, STATE_PASS


class EmailFactor(Factor):
    """
    Code sent to the user's email address. One record per user, created on
    first use and shared by every code sent.
    """

    def get_all_user_factors(self, user) -> List[FactorRecord]:
        return self.get_singleton_user_factor(user)

    def send_code(self, session: MutableMapping, user) -> str:
        """
        Returns a new RAW code to deliver, or "" when nothing should be sent
        (factor locked or revoked, or a live code already exists).
        """
        if self.load_locked_state(session, user).locked or self.is_locked(session):
            return ""
        if not self.get_active_user_factors(user):
            return ""
        return self.secrets.create_secret(user.id)

    def verify_code(self, session: MutableMapping, user, code: str) -> str:
        """
        Checks a submitted code and returns the resulting session state.
        A wrong code counts towards the lockout; reusing a consumed code fails
        the factor for the session.
        """
        self.load_locked_state(session, user)
        if self.is_locked(session) or self.get_state(session) == STATE_FAIL:
            return self.get_state(session)
        if not self.get_active_user_factors(user):
            return self.get_state(session)

        result = self.secrets.validate_secret(user.id, code)
        if result == VALID:
            self.set_state(session, STATE_PASS)
        elif result == REVOKED:
            self.set_state(session, STATE_FAIL)
        else:
            self.increment_lock_counter(session, user)

        self.post_pass_state(session, user)
        return self.get_state(session)
