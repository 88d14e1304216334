import pytest

from app.obs import metrics


@pytest.mark.asyncio
async def test_health_endpoints(api_client):
	live = await api_client.get("/health/live")
	ready = await api_client.get("/health/ready")

	assert live.json() == {"status": "ok"}
	assert ready.status_code == 200
	assert ready.json()["checks"]["postgres"]["backend"] == "memory"


@pytest.mark.asyncio
async def test_metrics_exposes_chat_counters(api_client, people):
	before = metrics.CHAT_MUTATIONS.labels(action="send")._value.get()
	await api_client.post("/messages", json={"senderId": "stu-alice", "receiverId": "admin", "text": "count me"})
	after = metrics.CHAT_MUTATIONS.labels(action="send")._value.get()
	assert after == before + 1

	response = await api_client.get("/metrics")
	assert response.status_code == 200
	assert "handbook_chat_mutations_total" in response.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(api_client):
	response = await api_client.get("/health/live", headers={"X-Request-Id": "req-123"})
	generated = await api_client.get("/health/live")

	assert response.headers["X-Request-Id"] == "req-123"
	assert generated.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_error_envelope_carries_request_id(api_client, people):
	response = await api_client.post(
		"/users/presence", json={"userId": "ghost"}, headers={"X-Request-Id": "req-404"}
	)

	assert response.status_code == 404
	assert response.json()["request_id"] == "req-404"
	assert response.headers["X-Request-Id"] == "req-404"
