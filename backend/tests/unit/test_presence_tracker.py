from datetime import datetime, timedelta, timezone

import pytest

from app.domain import container
from app.domain.common.errors import ParticipantNotFound
from app.domain.presence.tracker import PresenceTracker


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tracker(people):
    return PresenceTracker(
        container.get_directory(),
        container.get_resolver(),
        online_window=timedelta(minutes=5),
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
async def test_touch_stamps_last_active(tracker, people):
    stamped = await tracker.touch("alice@school.test")

    assert stamped == NOW
    assert people.alice.last_active == NOW


@pytest.mark.asyncio
async def test_touch_admin_sentinel(tracker, people):
    await tracker.touch("admin")

    assert people.admin.last_active == NOW


@pytest.mark.asyncio
async def test_touch_unknown_user(tracker):
    with pytest.raises(ParticipantNotFound):
        await tracker.touch("ghost")


@pytest.mark.asyncio
async def test_online_window_boundary(tracker):
    assert tracker.is_online(NOW - timedelta(minutes=4, seconds=59))
    assert not tracker.is_online(NOW - timedelta(minutes=5))
    assert not tracker.is_online(None)


@pytest.mark.asyncio
async def test_chat_users_lists_students_only(tracker, people):
    people.bob.last_active = NOW - timedelta(hours=1)
    await tracker.touch("stu-alice")

    users = await tracker.list_chat_users()

    assert [(u.participant.id, u.is_online) for u in users] == [("stu-alice", True), ("stu-bob", False)]
