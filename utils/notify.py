from collections.abc import MutableMapping
from typing import List

# Same slot flask.flash() uses, so get_flashed_messages() picks these up
# when the bag is flask.session.
FLASHES_KEY = "_flashes"


def notify_error(session: MutableMapping, message: str) -> None:
    flashes = session.get(FLASHES_KEY, [])
    flashes.append(("error", message))
    session[FLASHES_KEY] = flashes


def pop_notifications(session: MutableMapping) -> List[str]:
    """
    Removes and returns the pending messages of the session.
    """
    flashes = session.get(FLASHES_KEY)
    if not flashes:
        return []
    del session[FLASHES_KEY]
    return [message for _category, message in flashes]
