from __future__ import annotations

from weathercard.card.resolver import Resolution
from weathercard.card.state import CardState


class AutoFetchGate:
    """Allow one automatic fetch per inferred city while no override is active."""

    def __init__(self, state: CardState) -> None:
        self._state = state

    def eligible(self) -> bool:
        state = self._state
        return not state.override and not state.auto_fetch_done and bool(state.city)

    def consider(self, resolution: Resolution) -> bool:
        if not resolution.has_value or not self.eligible():
            return False
        # marked at fire time so a re-delivery during the fetch cannot fire again
        self._state.auto_fetch_done = True
        return True
