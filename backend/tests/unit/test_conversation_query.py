import pytest

from app.domain import container
from app.domain.chat.query import ConversationQueryService


class FlakyDirectory:
    def __init__(self, inner, failing):
        self._inner = inner
        self._failing = failing
        self.calls = []

    async def get(self, participant_id):
        self.calls.append(participant_id)
        if participant_id in self._failing:
            raise RuntimeError("directory offline")
        return await self._inner.get(participant_id)


@pytest.mark.asyncio
async def test_thread_carries_sender_pictures(people):
    messages = container.get_message_service()
    await messages.send("stu-alice", "admin", "Hello")
    await messages.send("admin", "stu-alice", "Hi")

    thread = await container.get_query_service().get_thread("stu-alice", perspective="admin")

    assert [(m.text, m.sender_profile_picture, m.is_outgoing) for m in thread] == [
        ("Hello", "https://img.test/alice.png", False),
        ("Hi", "https://img.test/admin.png", True),
    ]


@pytest.mark.asyncio
async def test_failed_lookup_yields_no_picture_and_is_cached(people):
    messages = container.get_message_service()
    await messages.send("stu-alice", "admin", "one")
    await messages.send("stu-alice", "admin", "two")
    directory = FlakyDirectory(container.get_directory(), failing={"stu-alice"})

    thread = await ConversationQueryService(messages, directory).get_thread("stu-alice")

    assert [m.sender_profile_picture for m in thread] == [None, None]
    assert directory.calls == ["stu-alice"]


@pytest.mark.asyncio
async def test_deleted_message_is_masked(people):
    messages = container.get_message_service()
    sent = await messages.send(
        "stu-alice", "admin", "secret", attachment_items=[{"fileName": "a.txt", "fileData": "aGk="}]
    )
    await messages.soft_delete(sent.message_id, "stu-alice")

    [entry] = await container.get_query_service().get_thread("stu-alice", perspective="user")

    assert entry.deleted is True
    assert entry.text == ""
    assert entry.attachments == []
    assert entry.deleted_by == "stu-alice"


@pytest.mark.asyncio
async def test_unread_counts_and_latest_activity(people):
    messages = container.get_message_service()
    await messages.send("stu-alice", "admin", "one")
    await messages.send("stu-alice", "admin", "two")
    latest = await messages.send("admin", "stu-bob", "hi bob")
    queries = container.get_query_service()

    assert await queries.unread_counts() == {"stu-alice": 2}

    activity = await queries.latest_activity("admin")
    assert activity["stu-bob"] == latest.created_at
    assert set(activity) == {"stu-alice", "stu-bob"}

    await messages.mark_read("stu-alice")
    assert await queries.unread_counts() == {}
