"""
Shared fixtures for giveaway tests
Fake Discord platform and pre-wired giveaway components
"""

import random
from datetime import datetime, timezone

import pytest

from giveaway_system.draw import ResolutionEngine
from giveaway_system.errors import PersistenceError, PlatformError
from giveaway_system.manager import GiveawayManager
from giveaway_system.models import DrawingDraft
from giveaway_system.persistence import SnapshotStore
from giveaway_system.store import DrawingStore

GUILD_ID = 111111111
OTHER_GUILD_ID = 222222222
CHANNEL_ID = 333333333
ADMIN_ID = 444444444

NOW = datetime(2026, 10, 19, 12, 0, 30, tzinfo=timezone.utc)


class FakePlatform:
    """Records posted and deleted messages instead of talking to Discord"""

    def __init__(self):
        self.posted = []
        self.deleted = []
        self.fail_posts = 0
        self.fail_deletes = False
        self._next_message_id = 900000

    async def post_message(self, channel_ref, text):
        if self.fail_posts:
            self.fail_posts -= 1
            raise PlatformError("send failed")
        self._next_message_id += 1
        self.posted.append((channel_ref, self._next_message_id, text))
        return self._next_message_id

    async def delete_message(self, channel_ref, message_ref):
        if self.fail_deletes:
            raise PlatformError("delete failed")
        self.deleted.append((channel_ref, message_ref))

    @property
    def texts(self):
        return [text for _, _, text in self.posted]


class MemorySnapshotStore(SnapshotStore):
    """Keeps every saved snapshot in memory"""

    def __init__(self, drawings=None, fail_saves=False):
        self.saved = []
        self.initial = list(drawings or [])
        self.fail_saves = fail_saves

    def load(self):
        return [drawing.copy() for drawing in self.initial]

    def save(self, drawings):
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.saved.append([drawing.copy() for drawing in drawings])

    @property
    def last(self):
        return self.saved[-1] if self.saved else None


class SequenceRng:
    """random.Random stand-in returning queued integers from randint"""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def randint(self, low, high):
        self.calls += 1
        return self.values.pop(0)


def make_draft(**overrides):
    fields = dict(
        title="Steam Key",
        description="A brand new game",
        channel_ref=CHANNEL_ID,
        community_ref=GUILD_ID,
        symbol="🎉",
        winner_count=1,
        deadline=None,
    )
    fields.update(overrides)
    return DrawingDraft(**fields)


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def snapshots():
    return MemorySnapshotStore()


@pytest.fixture
def store(snapshots):
    return DrawingStore(snapshots)


@pytest.fixture
def engine(platform):
    return ResolutionEngine(platform, rng=random.Random(1234))


@pytest.fixture
def manager(store, engine):
    return GiveawayManager(store, engine)
