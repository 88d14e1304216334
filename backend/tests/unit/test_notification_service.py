from datetime import datetime, timedelta, timezone

import pytest

from app.domain import container
from app.domain.common.errors import ValidationError
from app.domain.notifications.models import TYPE_ANNOUNCEMENT, NotificationDraft
from app.domain.notifications.repo import InMemoryNotificationRepository
from app.domain.notifications.service import NotificationService


class StepClock:
    def __init__(self):
        self.now = datetime(2024, 3, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def service(people):
    return NotificationService(InMemoryNotificationRepository(), container.get_resolver(), clock=StepClock())


@pytest.mark.asyncio
async def test_list_is_newest_first_and_scoped_to_recipient(service):
    await service.emit("stu-alice", "First", "one")
    await service.emit("alice@school.test", "Second", "two")
    await service.emit("stu-bob", "Other", "three")

    feed = await service.list("stu-alice")

    assert [n.title for n in feed] == ["Second", "First"]
    assert all(n.user_id == "stu-alice" for n in feed)
    assert all(n.is_new for n in feed)


@pytest.mark.asyncio
async def test_admin_alias_reaches_same_inbox(service):
    await service.emit("admin", "To sentinel", "x")
    await service.emit("adm-1", "To id", "y")

    assert len(await service.list("office@school.test")) == 2
    assert await service.unread_count("admin") == 2


@pytest.mark.asyncio
async def test_mark_read_by_ids_and_all(service):
    first = await service.emit("stu-alice", "A", "a")
    await service.emit("stu-alice", "B", "b")
    await service.emit("stu-alice", "C", "c")

    assert await service.mark_read("stu-alice", [first.id]) == 1
    assert await service.mark_read("stu-alice", [first.id]) == 0
    assert await service.unread_count("stu-alice") == 2

    assert await service.mark_read("stu-alice") == 0
    assert await service.mark_read("stu-alice", mark_all=True) == 2
    assert await service.unread_count("stu-alice") == 0
    assert all(n.read_at is not None for n in await service.list("stu-alice"))


@pytest.mark.asyncio
async def test_mark_read_ignores_other_recipients_ids(service):
    bobs = await service.emit("stu-bob", "B", "b")

    assert await service.mark_read("stu-alice", [bobs.id]) == 0
    assert await service.unread_count("stu-bob") == 1


@pytest.mark.asyncio
async def test_delete_all_only_removes_recipient_rows(service):
    await service.emit("stu-alice", "A", "a")
    await service.emit("stu-alice", "B", "b")
    await service.emit("stu-bob", "C", "c")

    assert await service.delete_all("alice@school.test") == 2
    assert await service.list("stu-alice") == []
    assert len(await service.list("stu-bob")) == 1


@pytest.mark.asyncio
async def test_emit_drafts_rejects_unknown_type_and_missing_recipient(service):
    with pytest.raises(ValidationError):
        await service.emit_drafts([NotificationDraft(recipient="stu-alice", title="x", description="y", type="sms")])
    with pytest.raises(ValidationError):
        await service.emit("", "x", "y")


@pytest.mark.asyncio
async def test_emit_drafts_batches_announcement_type(service):
    created = await service.emit_drafts(
        [
            NotificationDraft(recipient="stu-alice", title="t", description="d", type=TYPE_ANNOUNCEMENT),
            NotificationDraft(recipient="stu-bob", title="t", description="d", type=TYPE_ANNOUNCEMENT),
        ]
    )

    assert [n.user_id for n in created] == ["stu-alice", "stu-bob"]
    assert len({n.id for n in created}) == 2
