"""
Giveaway Membership
Applies reaction opt-in / opt-out events to giveaway participant lists
"""

import logging
from dataclasses import dataclass

from .store import DrawingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Joined:
    message_ref: int
    symbol: str
    user_ref: int


@dataclass(frozen=True)
class Left:
    message_ref: int
    symbol: str
    user_ref: int


class MembershipTracker:
    """Tracks who takes part in which giveaway"""

    def __init__(self, store: DrawingStore):
        self.store = store

    async def handle(self, event) -> bool:
        """
        Apply a Joined or Left event

        Events for unknown messages (unrelated or already resolved
        giveaways) and events with a different symbol are ignored.

        Returns:
            bool: True if a participant list changed
        """
        if isinstance(event, Joined):
            mutate = _joiner(event)
        elif isinstance(event, Left):
            mutate = _leaver(event)
        else:
            raise TypeError(f"Unsupported membership event: {event!r}")

        changed = await self.store.mutate_participants(event.message_ref, mutate)
        if changed:
            logger.debug(f"{type(event).__name__}: user {event.user_ref} on message {event.message_ref}")
        return changed

    async def join(self, message_ref, symbol, user_ref) -> bool:
        return await self.handle(Joined(message_ref, symbol, user_ref))

    async def leave(self, message_ref, symbol, user_ref) -> bool:
        return await self.handle(Left(message_ref, symbol, user_ref))


def _joiner(event: Joined):
    def mutate(drawing):
        if event.symbol != drawing.symbol:
            return False
        if event.user_ref in drawing.participants:
            return False
        drawing.participants.append(event.user_ref)
        return True
    return mutate


def _leaver(event: Left):
    def mutate(drawing):
        if event.symbol != drawing.symbol:
            return False
        if event.user_ref not in drawing.participants:
            return False
        drawing.participants.remove(event.user_ref)
        return True
    return mutate
