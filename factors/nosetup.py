from collections.abc import MutableMapping
from typing import Iterable

from factors.base import Factor
from security.factor_state import STATE_NEUTRAL, STATE_PASS


class NoSetupFactor(Factor):
    """
    Lets users through who have not set up any other factor yet.
    """

    def has_input(self) -> bool:
        return False

    def evaluate(self, session: MutableMapping, user, others: Iterable[Factor]) -> str:
        has_other = any(
            f.name != self.name and f.is_enabled() and f.has_setup() and f.get_active_user_factors(user)
            for f in others
        )
        self.set_state(session, STATE_NEUTRAL if has_other else STATE_PASS)
        return self.get_state(session)

    def check_combination(self, combination: Iterable) -> bool:
        # Cannot be passed together with any other factor.
        names = {getattr(f, "name", f) for f in combination}
        return names <= {self.name}
