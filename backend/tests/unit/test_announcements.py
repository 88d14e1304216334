from datetime import datetime, timedelta, timezone

import pytest

from app.domain import container
from app.domain.common.errors import ValidationError


@pytest.mark.asyncio
async def test_create_skips_blank_items_and_fans_out(people):
    service = container.get_announcement_service()

    created = await service.create(
        [
            {"title": "Enrollment", "content": "Opens Monday", "isImportant": True},
            {"title": "  ", "content": "no title"},
            {"title": "Library", "content": "Closed Friday"},
        ]
    )
    await container.get_dispatcher().drain()

    assert [a.title for a in created] == ["Enrollment", "Library"]
    assert created[0].created_by == "admin"
    assert created[0].created_by_name == "Administrator"

    notifications = container.get_notification_service()
    for student in ("stu-alice", "stu-bob"):
        feed = await notifications.list(student)
        assert sorted(n.description for n in feed) == ["Library", "\U0001F514 Important: Enrollment"]
        assert {n.type for n in feed} == {"announcement"}
    assert await notifications.list("admin") == []


@pytest.mark.asyncio
async def test_create_rejects_empty_batches(people):
    service = container.get_announcement_service()

    with pytest.raises(ValidationError) as excinfo:
        await service.create([])
    assert excinfo.value.kind == "missing_field"

    with pytest.raises(ValidationError) as excinfo:
        await service.create([{"title": "", "content": ""}])
    assert excinfo.value.kind == "empty_announcement"


@pytest.mark.asyncio
async def test_list_order_and_limit(people):
    service = container.get_announcement_service()
    stamps = iter([datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=d) for d in range(3)])
    service._clock = lambda: next(stamps)
    for title in ("one", "two", "three"):
        await service.create([{"title": title, "content": "body"}], created_by="adm-1", created_by_name="Dana")

    newest = await service.list()
    oldest = await service.list(limit=2, order="asc")

    assert [a.title for a in newest] == ["three", "two", "one"]
    assert [a.title for a in oldest] == ["one", "two"]
    assert newest[0].created_by_name == "Dana"
    with pytest.raises(ValidationError):
        await service.list(order="sideways")
