"""
Giveaway Manager - Core giveaway lifecycle

Ties the store, the membership tracker and the resolution engine together
for the operations the command surface needs.
"""

import logging
from typing import List

from .draw import Outcome, ResolutionEngine, format_announcement
from .membership import MembershipTracker
from .models import Drawing, DrawingDraft
from .store import DrawingStore

logger = logging.getLogger(__name__)


class GiveawayManager:
    """Manages giveaways across all Discord servers"""

    def __init__(self, store: DrawingStore, engine: ResolutionEngine):
        self.store = store
        self.engine = engine
        self.membership = MembershipTracker(store)

    @property
    def platform(self):
        return self.engine.platform

    async def create(self, draft: DrawingDraft) -> Drawing:
        """
        Open a giveaway and post its announcement

        The giveaway is persisted before this returns, so callers
        acknowledge only durable giveaways.
        """
        async def announce(drawing_id, validated):
            return await self.platform.post_message(
                validated.channel_ref, format_announcement(drawing_id, validated)
            )

        return await self.store.create(draft, announce)

    async def finish(self, drawing_id, community_ref) -> Outcome:
        """
        Draw winners for a giveaway now

        Raises:
            NotFound, WrongScope: If the giveaway cannot be finished from this server
        """
        drawing = await self.store.remove_by_id_scoped(drawing_id, community_ref)
        try:
            return await self.engine.resolve(drawing)
        except Exception:
            logger.error(f"Failed to finish giveaway {drawing_id}, restoring it", exc_info=True)
            await self.store.restore(drawing)
            raise

    async def cancel(self, drawing_id, community_ref, actor_ref) -> Outcome:
        """
        Cancel a giveaway without drawing winners

        Raises:
            NotFound, WrongScope: If the giveaway cannot be cancelled from this server
        """
        drawing = await self.store.remove_by_id_scoped(drawing_id, community_ref)
        try:
            return await self.engine.cancel(drawing, actor_ref)
        except Exception:
            logger.error(f"Failed to cancel giveaway {drawing_id}, restoring it", exc_info=True)
            await self.store.restore(drawing)
            raise

    async def list_active(self, community_ref) -> List[Drawing]:
        drawings = await self.store.list_for_community(community_ref)
        # soonest deadline first, manual-only giveaways last
        return sorted(
            drawings,
            key=lambda drawing: (drawing.deadline is None, drawing.deadline.timestamp() if drawing.deadline else 0.0),
        )
