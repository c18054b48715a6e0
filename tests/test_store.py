"""
Test Giveaway Store
Creation, scoped removal, expiry and snapshot writes
"""

import asyncio
from datetime import timedelta

import pytest

from conftest import (
    GUILD_ID, NOW, OTHER_GUILD_ID, MemorySnapshotStore, SequenceRng, make_draft,
)
from giveaway_system.draw import format_announcement
from giveaway_system.errors import InvalidDraft, NotFound, PlatformError, WrongScope
from giveaway_system.store import DrawingStore


def announcer(platform):
    async def announce(drawing_id, draft):
        return await platform.post_message(draft.channel_ref, format_announcement(drawing_id, draft))
    return announce


def test_create_rejects_zero_winners(store, platform, snapshots):
    async def scenario():
        with pytest.raises(InvalidDraft):
            await store.create(make_draft(winner_count=0), announcer(platform))
        assert await store.snapshot() == []

    asyncio.run(scenario())
    assert platform.posted == []
    assert snapshots.saved == []


def test_create_rejects_two_character_symbol(store, platform):
    async def scenario():
        with pytest.raises(InvalidDraft):
            await store.create(make_draft(symbol="🎉🎁"), announcer(platform))
        assert await store.snapshot() == []

    asyncio.run(scenario())


def test_create_announces_and_persists(store, platform, snapshots):
    async def scenario():
        return await store.create(make_draft(winner_count=2), announcer(platform))

    drawing = asyncio.run(scenario())

    assert drawing.id != 0
    assert drawing.winner_count == 2
    assert drawing.participants == []
    channel_ref, message_ref, text = platform.posted[0]
    assert drawing.announcement_ref == message_ref
    assert f"||{drawing.id}||" in text
    assert "React with 🎉" in text
    assert [d.id for d in snapshots.last] == [drawing.id]
    assert snapshots.last[0].announcement_ref == message_ref


def test_created_ids_are_distinct(store, platform):
    async def scenario():
        for _ in range(25):
            await store.create(make_draft(), announcer(platform))
        return await store.snapshot()

    drawings = asyncio.run(scenario())
    ids = [drawing.id for drawing in drawings]
    assert len(set(ids)) == 25
    assert 0 not in ids


def test_create_retries_on_id_collision(platform):
    rng = SequenceRng([42, 42, 43])
    store = DrawingStore(rng=rng)

    async def scenario():
        first = await store.create(make_draft(), announcer(platform))
        second = await store.create(make_draft(), announcer(platform))
        return first, second

    first, second = asyncio.run(scenario())
    assert first.id == 42
    assert second.id == 43
    assert rng.calls == 3


def test_concurrent_creates_never_share_an_id(platform):
    rng = SequenceRng([42, 42, 43])
    store = DrawingStore(rng=rng)

    async def slow_announce(drawing_id, draft):
        await asyncio.sleep(0.01)
        return await announcer(platform)(drawing_id, draft)

    async def scenario():
        created = await asyncio.gather(
            store.create(make_draft(title="First"), slow_announce),
            store.create(make_draft(title="Second"), slow_announce),
        )
        return created, await store.snapshot()

    created, active = asyncio.run(scenario())
    assert sorted(drawing.id for drawing in created) == [42, 43]
    assert sorted(drawing.id for drawing in active) == [42, 43]
    assert store._reserved_ids == set()


def test_restore_refuses_id_reserved_by_pending_create(platform):
    store = DrawingStore(rng=SequenceRng([42, 42]))

    async def scenario():
        original = await store.create(make_draft(title="Original"), announcer(platform))
        detached = await store.remove_by_id(original.id)

        posted = asyncio.Event()
        release = asyncio.Event()

        async def held_announce(drawing_id, draft):
            posted.set()
            await release.wait()
            return await announcer(platform)(drawing_id, draft)

        pending = asyncio.create_task(store.create(make_draft(title="Replacement"), held_announce))
        await posted.wait()
        restored = await store.restore(detached)
        release.set()
        replacement = await pending
        return restored, replacement, await store.snapshot()

    restored, replacement, active = asyncio.run(scenario())
    assert restored is False
    assert replacement.id == 42
    assert [drawing.title for drawing in active] == ["Replacement"]


def test_failed_announcement_inserts_nothing(store, platform, snapshots):
    platform.fail_posts = 1

    async def scenario():
        with pytest.raises(PlatformError):
            await store.create(make_draft(), announcer(platform))
        assert await store.snapshot() == []
        assert store._reserved_ids == set()

    asyncio.run(scenario())
    assert snapshots.saved == []


def test_persistence_failure_keeps_memory_state(platform):
    store = DrawingStore(MemorySnapshotStore(fail_saves=True))

    async def scenario():
        drawing = await store.create(make_draft(), announcer(platform))
        return drawing, await store.snapshot()

    drawing, active = asyncio.run(scenario())
    assert [d.id for d in active] == [drawing.id]


def test_remove_by_id_scoped_unknown_id(store):
    async def scenario():
        with pytest.raises(NotFound):
            await store.remove_by_id_scoped(12345, GUILD_ID)

    asyncio.run(scenario())


def test_remove_by_id_scoped_wrong_server_keeps_drawing(store, platform):
    async def scenario():
        drawing = await store.create(make_draft(), announcer(platform))
        with pytest.raises(WrongScope):
            await store.remove_by_id_scoped(drawing.id, OTHER_GUILD_ID)
        return drawing, await store.snapshot()

    drawing, active = asyncio.run(scenario())
    assert [d.id for d in active] == [drawing.id]


def test_remove_by_id_detaches_once(store, platform, snapshots):
    async def scenario():
        drawing = await store.create(make_draft(), announcer(platform))
        removed = await store.remove_by_id(drawing.id)
        with pytest.raises(NotFound):
            await store.remove_by_id(drawing.id)
        return drawing, removed

    drawing, removed = asyncio.run(scenario())
    assert removed.id == drawing.id
    assert snapshots.last == []


def test_concurrent_removals_detach_once(store, platform):
    async def scenario():
        drawing = await store.create(make_draft(), announcer(platform))
        results = await asyncio.gather(
            *(store.remove_by_id(drawing.id) for _ in range(5)),
            return_exceptions=True,
        )
        return results

    results = asyncio.run(scenario())
    assert sum(1 for result in results if not isinstance(result, Exception)) == 1
    assert sum(1 for result in results if isinstance(result, NotFound)) == 4


def test_expired_detaches_only_due_drawings(store, platform):
    async def scenario():
        due = await store.create(make_draft(deadline=NOW + timedelta(minutes=5)), announcer(platform))
        later = await store.create(make_draft(deadline=NOW + timedelta(hours=1)), announcer(platform))
        manual = await store.create(make_draft(deadline=None), announcer(platform))

        assert await store.expired(NOW) == []
        expired = await store.expired(NOW + timedelta(minutes=6))
        remaining = {d.id for d in await store.snapshot()}
        return due, later, manual, expired, remaining

    due, later, manual, expired, remaining = asyncio.run(scenario())
    assert [d.id for d in expired] == [due.id]
    assert remaining == {later.id, manual.id}


def test_snapshot_is_a_copy(store, platform):
    async def scenario():
        drawing = await store.create(make_draft(), announcer(platform))
        copy = (await store.snapshot())[0]
        copy.participants.append(99)
        return (await store.get(drawing.id)).participants

    assert asyncio.run(scenario()) == []


def test_restore_puts_drawing_back(store, platform):
    async def scenario():
        drawing = await store.create(make_draft(), announcer(platform))
        detached = await store.remove_by_id(drawing.id)
        assert await store.restore(detached)
        assert not await store.restore(detached)
        return await store.snapshot()

    active = asyncio.run(scenario())
    assert len(active) == 1


def test_load_and_flush(platform):
    snapshots = MemorySnapshotStore()
    first = DrawingStore(snapshots)

    async def scenario():
        drawing = await first.create(make_draft(), announcer(platform))
        await first.flush()

        second = DrawingStore(MemorySnapshotStore(snapshots.last))
        assert await second.load() == 1
        return drawing, await second.snapshot()

    drawing, restored = asyncio.run(scenario())
    assert restored == [drawing]
