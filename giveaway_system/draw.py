"""
Giveaway Draw Logic
Winner selection, cancellation and the announcement / result messages
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .models import Drawing, DrawingDraft

logger = logging.getLogger(__name__)

FINISHED = "finished"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class Outcome:
    """Result of resolving or cancelling a giveaway"""

    drawing_id: int
    title: str
    kind: str
    winners: Tuple[int, ...] = ()
    participant_count: int = 0
    message_ref: Optional[int] = None
    actor_ref: Optional[int] = None

    @property
    def no_participants(self) -> bool:
        return self.kind == FINISHED and self.participant_count == 0


# ========================================
# MESSAGES
# ========================================

def mention(user_ref) -> str:
    return f"<@{user_ref}>"


def format_announcement(drawing_id: int, draft: DrawingDraft) -> str:
    """Announcement posted when a giveaway opens"""
    message = f"# {draft.title}"
    if draft.description:
        message += f"\n\n{draft.description}"
    if draft.deadline is not None:
        message += f"\n\n⏰ Ends {draft.deadline.strftime('%d.%m.%Y %H:%M')} UTC"
    plural = "winner" if draft.winner_count == 1 else "winners"
    message += (
        f"\n\nReact with {draft.symbol} to enter."
        f"\nThere will be {draft.winner_count} {plural}!"
        f"\n||{drawing_id}||"
    )
    return message


def format_result(drawing: Drawing, winners: Sequence[int]) -> str:
    """Result message naming winners in drawn order"""
    message = f"# {drawing.title}\n\n🎉 Winners: "
    if not winners:
        message += "Nobody entered this giveaway."
    else:
        for number, winner in enumerate(winners, start=1):
            message += f"\n{number}. {mention(winner)}"
        message += "\n\nOpen a ticket to claim your prize!"
    message += f"\n||{drawing.id}||"
    return message


def format_cancellation(drawing: Drawing, actor_ref) -> str:
    return (
        f"# {drawing.title}\n\n"
        f"❌ This giveaway was cancelled by {mention(actor_ref)}."
        f"\n||{drawing.id}||"
    )


# ========================================
# RESOLUTION
# ========================================

def pick_winners(participants: Sequence[int], winner_count: int, rng=None) -> list:
    """
    Draw up to ``winner_count`` distinct participants without replacement

    Returns fewer winners when there are fewer participants.
    """
    rng = rng or random.SystemRandom()
    k = min(winner_count, len(participants))
    if k <= 0:
        return []
    return rng.sample(list(participants), k)


class ResolutionEngine:
    """
    Resolves detached giveaways

    Both operations take a giveaway that the caller already removed
    from the store, so each giveaway is resolved at most once.
    """

    def __init__(self, platform, rng=None):
        self.platform = platform
        self.rng = rng or random.SystemRandom()

    async def _delete_announcement(self, drawing: Drawing):
        try:
            await self.platform.delete_message(drawing.channel_ref, drawing.announcement_ref)
        except Exception as e:
            logger.warning(f"Could not delete announcement of giveaway {drawing.id}: {e}")

    async def resolve(self, drawing: Drawing) -> Outcome:
        """
        Draw winners and post the result

        Raises:
            Exception: Whatever the platform raises when posting the result
        """
        winners = pick_winners(drawing.participants, drawing.winner_count, self.rng)

        await self._delete_announcement(drawing)
        message_ref = await self.platform.post_message(drawing.channel_ref, format_result(drawing, winners))

        logger.info(
            f"🎉 Finished giveaway {drawing.id} '{drawing.title}': "
            f"{len(winners)} winner(s) from {len(drawing.participants)} participant(s) {winners}"
        )
        return Outcome(
            drawing_id=drawing.id,
            title=drawing.title,
            kind=FINISHED,
            winners=tuple(winners),
            participant_count=len(drawing.participants),
            message_ref=message_ref,
        )

    async def cancel(self, drawing: Drawing, actor_ref) -> Outcome:
        """Post a cancellation notice naming ``actor_ref``"""
        await self._delete_announcement(drawing)
        message_ref = await self.platform.post_message(
            drawing.channel_ref, format_cancellation(drawing, actor_ref)
        )

        logger.info(f"🚫 Cancelled giveaway {drawing.id} '{drawing.title}' (by {actor_ref})")
        return Outcome(
            drawing_id=drawing.id,
            title=drawing.title,
            kind=CANCELLED,
            participant_count=len(drawing.participants),
            message_ref=message_ref,
            actor_ref=actor_ref,
        )
