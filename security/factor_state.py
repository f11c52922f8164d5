"""
Per-session verification state of each factor.

The session bag is any mutable mapping that lives as long as the
authentication session (the server-side SessionStateBag in requests, a
dict in tests).
"""
from collections.abc import MutableMapping

STATE_UNKNOWN = "unknown"
STATE_NEUTRAL = "neutral"
STATE_PASS = "pass"
STATE_FAIL = "fail"
STATE_LOCKED = "locked"

ALL_STATES = (STATE_UNKNOWN, STATE_NEUTRAL, STATE_PASS, STATE_FAIL, STATE_LOCKED)

_KEY_PREFIX = "factor_"


def _state_key(factor: str) -> str:
    return _KEY_PREFIX + factor


def get_state(session: MutableMapping, factor: str) -> str:
    return session.get(_state_key(factor), STATE_UNKNOWN)


def set_state(session: MutableMapping, factor: str, state: str) -> bool:
    """
    Stores state for the factor. Returns False without touching the session
    when the factor already failed: a fail stays for the rest of the session.
    """
    if state not in ALL_STATES:
        raise ValueError(f"Unknown factor state: {state}")

    if get_state(session, factor) == STATE_FAIL:
        return False

    session[_state_key(factor)] = state
    return True


def clear_states(session: MutableMapping) -> int:
    """
    Drops every factor slot. Call when the authentication session ends.
    """
    keys = [k for k in session.keys() if isinstance(k, str) and k.startswith(_KEY_PREFIX)]
    for k in keys:
        del session[k]
    return len(keys)
