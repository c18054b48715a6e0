"""
Giveaway Scheduler
Wakes on every whole minute and resolves giveaways whose deadline passed
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from discord.ext import tasks

from .draw import Outcome, ResolutionEngine
from .store import DrawingStore

logger = logging.getLogger(__name__)

SLEEPING = "sleeping"
SWEEPING = "sweeping"


def seconds_until_next_minute(now: datetime) -> float:
    """Delay until the next whole-minute boundary (a full minute when on one)"""
    elapsed = now.second + now.microsecond / 1_000_000
    return 60.0 - elapsed


class GiveawayScheduler:
    """Manages automatic giveaway resolution"""

    def __init__(self, store: DrawingStore, engine: ResolutionEngine, max_attempts=3, clock=None):
        """
        Initialize giveaway scheduler

        Args:
            store: Active giveaway store
            engine: Resolution engine used to draw winners
            max_attempts: Failed resolutions tolerated before a giveaway is dropped
            clock: Optional callable returning the current aware UTC datetime
        """
        self.store = store
        self.engine = engine
        self.max_attempts = max_attempts
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.state = SLEEPING
        self._failures: Dict[int, int] = {}

    async def sweep(self, now: Optional[datetime] = None) -> List[Outcome]:
        """
        Resolve every expired giveaway once

        A failing giveaway is put back into the store and retried on the
        next sweep, up to ``max_attempts`` times. Failures never stop the
        sweep.

        Returns:
            list: Outcomes of the giveaways resolved in this sweep
        """
        self.state = SWEEPING
        try:
            now = now or self.clock()
            expired = await self.store.expired(now)
            if expired:
                logger.info(f"⏰ {len(expired)} giveaway(s) expired, resolving")

            outcomes = []
            for drawing in expired:
                try:
                    outcomes.append(await self.engine.resolve(drawing))
                    self._failures.pop(drawing.id, None)
                except Exception as e:
                    await self._handle_failure(drawing, e)

            if self._failures:
                await self._forget_inactive()
            return outcomes
        finally:
            self.state = SLEEPING

    async def _handle_failure(self, drawing, error):
        attempts = self._failures.get(drawing.id, 0) + 1
        if attempts >= self.max_attempts:
            self._failures.pop(drawing.id, None)
            logger.error(
                f"Giving up on giveaway {drawing.id} '{drawing.title}' after {attempts} failed attempts: {error}",
                exc_info=error,
            )
            return

        logger.warning(
            f"Failed to resolve giveaway {drawing.id} (attempt {attempts}/{self.max_attempts}), "
            f"retrying next sweep: {error}"
        )
        if await self.store.restore(drawing):
            self._failures[drawing.id] = attempts
        else:
            self._failures.pop(drawing.id, None)

    async def _forget_inactive(self):
        # giveaways finished or cancelled by hand after a failed attempt
        active_ids = {drawing.id for drawing in await self.store.snapshot()}
        for drawing_id in list(self._failures):
            if drawing_id not in active_ids:
                del self._failures[drawing_id]

    @tasks.loop(minutes=1)
    async def sweep_loop(self):
        """Sweep once per minute, errors are logged and the loop keeps running"""
        try:
            await self.sweep()
        except Exception as e:
            logger.error(f"Error in giveaway sweep: {e}", exc_info=True)

    @sweep_loop.before_loop
    async def _align_to_minute(self):
        # later iterations keep the interval from this first wake-up
        await asyncio.sleep(seconds_until_next_minute(self.clock()))

    def start(self):
        if not self.sweep_loop.is_running():
            self.sweep_loop.start()
            logger.info("✅ Giveaway scheduler started (sweeps on every whole minute)")

    async def stop(self):
        task = self.sweep_loop.get_task()
        if task is None or task.done():
            return
        self.sweep_loop.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Giveaway scheduler stopped")


def setup_giveaway_scheduler(store, engine, max_attempts=3):
    """
    Create the giveaway scheduler and start its per-minute loop

    Must be called from a running event loop (e.g. on_ready / setup_hook).

    Returns:
        GiveawayScheduler instance
    """
    scheduler = GiveawayScheduler(store, engine, max_attempts=max_attempts)
    scheduler.start()
    return scheduler
