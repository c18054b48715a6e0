"""
Giveaway Store
Single source of truth for active giveaways, guarded by one asyncio lock
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from .errors import NotFound, PersistenceError, WrongScope
from .identifiers import DEFAULT_MAX_ATTEMPTS, next_drawing_id
from .models import Drawing, DrawingDraft
from .persistence import SnapshotStore

logger = logging.getLogger(__name__)

# Posts the announcement for (drawing_id, validated draft), returns its message id
AnnounceCallback = Callable[[int, DrawingDraft], Awaitable[int]]


class DrawingStore:
    """
    Holds the active giveaway set

    Every operation runs its in-memory part under one exclusive lock.
    Platform calls and snapshot writes always happen after the lock
    is released.
    """

    def __init__(self, persistence: Optional[SnapshotStore] = None, rng=None,
                 id_max_attempts=DEFAULT_MAX_ATTEMPTS):
        self._lock = asyncio.Lock()
        self._drawings: List[Drawing] = []
        self._reserved_ids = set()
        self._persistence = persistence
        self._rng = rng
        self._id_max_attempts = id_max_attempts

    # ========================================
    # STARTUP / SHUTDOWN
    # ========================================

    async def load(self) -> int:
        """
        Replace the active set with the persisted snapshot

        Raises:
            PersistenceError: If the snapshot cannot be read
        """
        drawings = self._persistence.load() if self._persistence else []
        async with self._lock:
            self._drawings = list(drawings)
        return len(drawings)

    async def flush(self):
        """
        Write the current active set, raising on failure

        Raises:
            PersistenceError: If the snapshot cannot be written
        """
        if not self._persistence:
            return
        drawings = await self.snapshot()
        self._persistence.save(drawings)
        logger.info(f"💾 Giveaway state saved ({len(drawings)} active)")

    async def _persist(self):
        """Best-effort snapshot after a mutation"""
        try:
            await self.flush()
        except PersistenceError as e:
            logger.error(f"Failed to persist giveaway state, keeping in-memory state: {e}")

    # ========================================
    # MUTATIONS
    # ========================================

    async def create(self, draft: DrawingDraft, announce: AnnounceCallback) -> Drawing:
        """
        Validate a draft, announce it and add it to the active set

        Args:
            draft: The creation request
            announce: Coroutine posting the announcement, returns its message id

        Returns:
            Drawing: The newly active giveaway

        Raises:
            InvalidDraft: If the draft fails validation
            IdentifierExhausted: If no free id could be generated
        """
        draft = draft.validated()

        async with self._lock:
            in_use = {drawing.id for drawing in self._drawings} | self._reserved_ids
            drawing_id = next_drawing_id(in_use, rng=self._rng, max_attempts=self._id_max_attempts)
            self._reserved_ids.add(drawing_id)

        try:
            announcement_ref = await announce(drawing_id, draft)
        except BaseException:
            async with self._lock:
                self._reserved_ids.discard(drawing_id)
            raise

        drawing = Drawing.from_draft(drawing_id, draft, announcement_ref)
        async with self._lock:
            self._reserved_ids.discard(drawing_id)
            self._drawings.append(drawing)

        logger.info(f"🎁 Created giveaway {drawing.id} '{drawing.title}' in server {drawing.community_ref}")
        await self._persist()
        return drawing.copy()

    def _detach(self, index) -> Drawing:
        # swap-remove, order of the active set is not significant
        last = self._drawings.pop()
        if index < len(self._drawings):
            detached, self._drawings[index] = self._drawings[index], last
            return detached
        return last

    def _index_of(self, drawing_id) -> Optional[int]:
        for index, drawing in enumerate(self._drawings):
            if drawing.id == drawing_id:
                return index
        return None

    async def remove_by_id(self, drawing_id) -> Drawing:
        """
        Detach and return the giveaway with the given id

        Raises:
            NotFound: If no active giveaway has that id
        """
        async with self._lock:
            index = self._index_of(drawing_id)
            if index is None:
                raise NotFound(drawing_id)
            drawing = self._detach(index)

        await self._persist()
        return drawing

    async def remove_by_id_scoped(self, drawing_id, community_ref) -> Drawing:
        """
        Detach a giveaway only if it belongs to ``community_ref``

        Raises:
            NotFound: If no active giveaway has that id
            WrongScope: If the giveaway runs in another server (it stays active)
        """
        async with self._lock:
            index = self._index_of(drawing_id)
            if index is None:
                raise NotFound(drawing_id)
            if self._drawings[index].community_ref != community_ref:
                raise WrongScope(drawing_id, community_ref)
            drawing = self._detach(index)

        await self._persist()
        return drawing

    async def expired(self, now: Optional[datetime] = None) -> List[Drawing]:
        """Detach every giveaway whose deadline has passed"""
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            expired_ids = [drawing.id for drawing in self._drawings if drawing.is_expired(now)]
            detached = [self._detach(self._index_of(drawing_id)) for drawing_id in expired_ids]

        if detached:
            await self._persist()
        return detached

    async def restore(self, drawing: Drawing) -> bool:
        """
        Put a detached giveaway back, used when its resolution failed

        Returns:
            bool: False if the id was taken again in the meantime
        """
        async with self._lock:
            if self._index_of(drawing.id) is not None or drawing.id in self._reserved_ids:
                logger.error(f"Cannot restore giveaway {drawing.id}: id is in use again")
                return False
            self._drawings.append(drawing)

        await self._persist()
        return True

    async def mutate_participants(self, message_ref, mutate: Callable[[Drawing], bool]) -> bool:
        """
        Apply ``mutate`` to the giveaway announced by ``message_ref``

        ``mutate`` runs under the lock and returns whether it changed
        anything. Returns False when no giveaway matches.
        """
        async with self._lock:
            drawing = next(
                (drawing for drawing in self._drawings if drawing.announcement_ref == message_ref),
                None,
            )
            if drawing is None:
                return False
            changed = bool(mutate(drawing))

        if changed:
            await self._persist()
        return changed

    # ========================================
    # READS
    # ========================================

    async def snapshot(self) -> List[Drawing]:
        """Consistent deep copy of the active set"""
        async with self._lock:
            return [drawing.copy() for drawing in self._drawings]

    async def list_for_community(self, community_ref) -> List[Drawing]:
        return [drawing for drawing in await self.snapshot() if drawing.community_ref == community_ref]

    async def get(self, drawing_id) -> Optional[Drawing]:
        async with self._lock:
            index = self._index_of(drawing_id)
            return self._drawings[index].copy() if index is not None else None
