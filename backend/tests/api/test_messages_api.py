import pytest

from app.domain import container
from app.domain.common.errors import UnavailableError


async def _send(api_client, **body):
	response = await api_client.post("/messages", json=body)
	assert response.status_code == 201, response.text
	return response.json()["message"]


@pytest.mark.asyncio
async def test_send_returns_camel_case_message(api_client, people):
	response = await api_client.post(
		"/messages",
		json={"senderId": "alice@school.test", "receiverId": "admin", "text": "Where is the handbook?"},
	)

	assert response.status_code == 201
	body = response.json()
	assert body["ok"] is True
	message = body["message"]
	assert message["senderId"] == "stu-alice"
	assert message["receiverId"] == "adm-1"
	assert message["senderName"] == "Alice Santos"
	assert message["senderInitials"] == "AS"
	assert message["text"] == "Where is the handbook?"
	assert message["isOutgoing"] is False
	assert message["read"] is False
	assert message["reactions"] == []
	assert message["deleted"] is False
	assert "timestamp" in message


@pytest.mark.asyncio
async def test_send_with_user_perspective_marks_outgoing(api_client, people):
	message = await _send(
		api_client, senderId="stu-alice", receiverId="admin", text="hi", perspective="user"
	)
	assert message["isOutgoing"] is True


@pytest.mark.asyncio
async def test_send_errors_use_failure_envelope(api_client, people):
	forbidden = await api_client.post("/messages", json={"senderId": "stu-alice", "receiverId": "stu-bob", "text": "x"})
	empty = await api_client.post("/messages", json={"senderId": "stu-alice", "receiverId": "admin", "text": "  "})
	missing = await api_client.post("/messages", json={"receiverId": "admin", "text": "x"})
	unknown = await api_client.post("/messages", json={"senderId": "admin", "receiverId": "ghost", "text": "x"})

	assert forbidden.status_code == 403
	assert forbidden.json()["error"] == "forbidden_conversation"
	assert forbidden.json()["ok"] is False
	assert empty.status_code == 400
	assert empty.json()["error"] == "empty_message"
	assert missing.status_code == 400
	assert missing.json()["error"] == "missing_field"
	assert unknown.status_code == 400
	assert unknown.json()["error"] == "invalid_receiver"


@pytest.mark.asyncio
async def test_malformed_payload_is_a_validation_error(api_client, people):
	response = await api_client.post("/messages", json={"senderId": "stu-alice", "perspective": "robot"})

	assert response.status_code == 400
	body = response.json()
	assert body["error"] == "validation_error"
	assert body["errors"]


@pytest.mark.asyncio
async def test_thread_lists_conversation_for_both_perspectives(api_client, people):
	await _send(api_client, senderId="stu-alice", receiverId="admin", text="Hello")
	await _send(api_client, senderId="admin", receiverId="stu-alice", text="Hi Alice")
	await _send(api_client, senderId="stu-bob", receiverId="admin", text="Not in this thread")

	as_user = await api_client.get("/messages", params={"userId": "stu-alice"})
	as_admin = await api_client.get("/messages", params={"userId": "stu-alice", "perspective": "admin"})

	assert as_user.status_code == 200
	assert [(m["text"], m["isOutgoing"]) for m in as_user.json()["messages"]] == [
		("Hello", True),
		("Hi Alice", False),
	]
	assert [m["isOutgoing"] for m in as_admin.json()["messages"]] == [False, True]
	assert as_admin.json()["messages"][1]["senderProfilePicture"] == "https://img.test/admin.png"


@pytest.mark.asyncio
async def test_thread_requires_user_id(api_client, people):
	response = await api_client.get("/messages")

	assert response.status_code == 400
	assert response.json()["error"] == "missing_field"


@pytest.mark.asyncio
async def test_edit_message(api_client, people):
	sent = await _send(api_client, senderId="admin", receiverId="stu-alice", text="Office at 8")

	response = await api_client.put("/messages", json={"messageId": sent["id"], "text": "Office at 9"})

	assert response.status_code == 200
	body = response.json()
	assert body["id"] == sent["id"]
	assert body["text"] == "Office at 9"
	assert body["updatedAt"] is not None

	missing = await api_client.put("/messages", json={"messageId": "01ARZ3NDEKTSV4RRFFQ69G5FAV", "text": "x"})
	assert missing.status_code == 404
	assert missing.json()["error"] == "message_not_found"
	invalid = await api_client.put("/messages", json={"messageId": "nope", "text": "x"})
	assert invalid.status_code == 400
	assert invalid.json()["error"] == "invalid_message_id"


@pytest.mark.asyncio
async def test_delete_message_masks_content(api_client, people):
	sent = await _send(api_client, senderId="stu-alice", receiverId="admin", text="wrong chat")

	response = await api_client.request(
		"DELETE",
		"/messages",
		json={"messageId": sent["id"], "deletedBy": "admin", "deletedByName": "Dana"},
	)

	assert response.status_code == 200
	assert response.json() == {"ok": True, "id": sent["id"], "deleted": True}
	thread = (await api_client.get("/messages", params={"userId": "stu-alice"})).json()["messages"]
	assert thread[0]["deleted"] is True
	assert thread[0]["text"] == ""
	assert thread[0]["deletedByName"] == "Dana"

	forbidden = await api_client.request(
		"DELETE", "/messages", json={"messageId": sent["id"], "deleterId": "stu-bob"}
	)
	assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_reaction_toggle_endpoint(api_client, people):
	sent = await _send(api_client, senderId="stu-alice", receiverId="admin", text="thanks")

	added = await api_client.post(
		"/messages/reactions", json={"messageId": sent["id"], "userId": "admin", "emoji": "👍"}
	)
	removed = await api_client.post(
		"/messages/reactions", json={"messageId": sent["id"], "userId": "admin", "emoji": "👍"}
	)

	assert added.status_code == 200
	assert added.json()["reactions"] == [{"userId": "adm-1", "emoji": "👍"}]
	assert removed.json()["reactions"] == []


@pytest.mark.asyncio
async def test_mark_read_and_unread_counts(api_client, people):
	await _send(api_client, senderId="stu-alice", receiverId="admin", text="one")
	await _send(api_client, senderId="stu-alice", receiverId="admin", text="two")
	await _send(api_client, senderId="stu-bob", receiverId="admin", text="three")

	counts = await api_client.get("/messages/unread")
	assert counts.json()["unreadCounts"] == {"stu-alice": 2, "stu-bob": 1}

	first = await api_client.patch("/messages", json={"userId": "stu-alice"})
	again = await api_client.patch("/messages", json={"userId": "stu-alice"})
	assert first.json()["updatedCount"] == 2
	assert again.json()["updatedCount"] == 0

	counts = await api_client.get("/messages/unread", params={"adminId": "adm-1"})
	assert counts.json()["unreadCounts"] == {"stu-bob": 1}


@pytest.mark.asyncio
async def test_latest_activity(api_client, people):
	await _send(api_client, senderId="stu-alice", receiverId="admin", text="one")
	last = await _send(api_client, senderId="admin", receiverId="stu-bob", text="two")

	response = await api_client.get("/messages/latest")

	assert response.status_code == 200
	timestamps = response.json()["timestamps"]
	assert set(timestamps) == {"stu-alice", "stu-bob"}
	assert timestamps["stu-bob"] == last["timestamp"]


@pytest.mark.asyncio
async def test_send_creates_admin_notification(api_client, people):
	await _send(api_client, senderId="stu-alice", receiverId="admin", text="ping")
	await container.get_dispatcher().drain()

	response = await api_client.get("/notifications", params={"userId": "admin"})

	[item] = response.json()["notifications"]
	assert item["title"] == "New Message"
	assert item["isNew"] is True
	assert item["badgeColor"] == "#10B981"


@pytest.mark.asyncio
async def test_send_succeeds_when_store_drops_after_write(api_client, people, monkeypatch):
	service = container.get_message_service()
	create = service.repo.create

	async def unavailable(*args, **kwargs):
		raise UnavailableError()

	async def create_then_drop(**kwargs):
		message = await create(**kwargs)
		monkeypatch.setattr(service, "admin_keys", unavailable)
		return message

	monkeypatch.setattr(service.repo, "create", create_then_drop)

	response = await api_client.post("/messages", json={"senderId": "stu-alice", "receiverId": "admin", "text": "kept"})

	assert response.status_code == 201
	assert response.json()["message"]["isOutgoing"] is False
