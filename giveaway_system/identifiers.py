"""
Giveaway Identifiers
Random, collision-checked 32-bit ids for active giveaways
"""

import logging
import secrets

from .errors import IdentifierExhausted

logger = logging.getLogger(__name__)

MAX_DRAWING_ID = 2 ** 32 - 1
DEFAULT_MAX_ATTEMPTS = 1000


def next_drawing_id(existing, rng=None, max_attempts=DEFAULT_MAX_ATTEMPTS):
    """
    Generate a non-zero 32-bit giveaway id not present in ``existing``

    Args:
        existing: Collection of ids already in use
        rng: Optional random.Random-like source (defaults to secrets)
        max_attempts: Number of draws before giving up

    Returns:
        int: A free id in 1..2**32-1

    Raises:
        IdentifierExhausted: If every attempt collided
    """
    for attempt in range(1, max_attempts + 1):
        if rng is None:
            candidate = secrets.randbelow(MAX_DRAWING_ID) + 1
        else:
            candidate = rng.randint(1, MAX_DRAWING_ID)

        if candidate not in existing:
            if attempt > 1:
                logger.warning(f"Giveaway id collision, found free id after {attempt} attempts")
            return candidate

    raise IdentifierExhausted(f"Could not find a free giveaway id after {max_attempts} attempts")
