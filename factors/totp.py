from typing import List, Optional

from factors.base import Factor
from models.factor_record import FactorRecord
from security import factor_records


class TotpFactor(Factor):
    """
    Authenticator app. A user may enrol several devices, each its own record.
    """

    def has_setup(self) -> bool:
        return True

    def has_revoke(self) -> bool:
        return True

    def get_all_user_factors(self, user) -> List[FactorRecord]:
        return factor_records.list_all(user.id, self.name)

    def setup_user_factor(self, user, data: dict) -> Optional[FactorRecord]:
        secret = (data.get("secret") or "").strip()
        if not secret:
            return None

        label = (data.get("label") or "").strip()[:255] or None
        record = factor_records.create_record(user, self.name, label=label, secret=secret)
        self.create_event_after_factor_setup(user, label)
        return record
