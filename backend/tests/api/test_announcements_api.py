import pytest

from app.domain import container


@pytest.mark.asyncio
async def test_create_and_list_announcements(api_client, people):
	response = await api_client.post(
		"/announcements",
		json={
			"announcements": [
				{"title": "Uniform policy", "content": "Updated for SY 2024", "isImportant": True},
				{"title": "", "content": "skipped"},
			],
			"createdBy": "adm-1",
			"createdByName": "Dana Reyes",
		},
	)

	assert response.status_code == 201
	[created] = response.json()["announcements"]
	assert created["title"] == "Uniform policy"
	assert created["isImportant"] is True
	assert created["createdByName"] == "Dana Reyes"

	listing = await api_client.get("/announcements", params={"sort": "asc", "limit": 10})
	assert [a["id"] for a in listing.json()["announcements"]] == [created["id"]]

	await container.get_dispatcher().drain()
	feed = await api_client.get("/notifications", params={"userId": "stu-bob"})
	[item] = feed.json()["notifications"]
	assert item["type"] == "announcement"
	assert item["relatedId"] == created["id"]


@pytest.mark.asyncio
async def test_create_rejects_empty_batch(api_client, people):
	response = await api_client.post("/announcements", json={"announcements": []})

	assert response.status_code == 400
	assert response.json()["error"] == "missing_field"


@pytest.mark.asyncio
async def test_list_rejects_bad_sort(api_client, people):
	response = await api_client.get("/announcements", params={"sort": "sideways"})

	assert response.status_code == 400
	assert response.json()["error"] == "validation_error"
