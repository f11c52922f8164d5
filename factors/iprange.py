import ipaddress
from collections.abc import MutableMapping

from flask import current_app

from factors.base import Factor
from security.factor_state import STATE_NEUTRAL, STATE_PASS


class IpRangeFactor(Factor):
    """
    Passes when the request comes from a configured safe network.
    Nothing to type, so nothing to brute force.
    """

    def has_input(self) -> bool:
        return False

    def get_safe_networks(self) -> list:
        networks = []
        for value in self.get_config().get("safe_ranges", []):
            try:
                networks.append(ipaddress.ip_network(value, strict=False))
            except ValueError:
                current_app.logger.warning("Ignoring invalid safe range %r for factor %s", value, self.name)
        return networks

    def ip_in_safe_range(self, ip: str) -> bool:
        try:
            address = ipaddress.ip_address((ip or "").split(",")[0].strip())
        except ValueError:
            return False
        return any(address.version == net.version and address in net for net in self.get_safe_networks())

    def evaluate(self, session: MutableMapping, ip: str) -> str:
        self.set_state(session, STATE_PASS if self.ip_in_safe_range(ip) else STATE_NEUTRAL)
        return self.get_state(session)

    def possible_states(self, session: MutableMapping, user) -> set:
        # Depends on the network the user happens to be on (VPN, office, home).
        return {STATE_PASS, STATE_NEUTRAL}
