"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"handbook_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"handbook_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

CHAT_MUTATIONS = Counter(
	"handbook_chat_mutations_total",
	"Chat writes by action",
	["action"],
)

CHAT_READ_UPDATES = Counter(
	"handbook_chat_read_updates_total",
	"Chat messages flipped to read",
	["perspective"],
)

NOTIFICATIONS_EMITTED = Counter(
	"handbook_notifications_emitted_total",
	"Notifications persisted",
	["type"],
)

NOTIFICATION_SIDE_EFFECT_FAILURES = Counter(
	"handbook_notification_side_effect_failures_total",
	"Detached notification side effects that failed",
	["label"],
)

NOTIFICATION_TASKS_PENDING = Gauge(
	"handbook_notification_tasks_pending",
	"Detached notification side effects still running",
)

PRESENCE_TOUCHES = Counter(
	"handbook_presence_touches_total",
	"Presence touches accepted",
	["result"],
)

POSTGRES_UP = Gauge(
	"handbook_postgres_up",
	"Whether the last readiness probe reached Postgres",
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_chat_mutation(action: str) -> None:
	CHAT_MUTATIONS.labels(action=action).inc()


def inc_chat_read(perspective: str, count: int) -> None:
	if count > 0:
		CHAT_READ_UPDATES.labels(perspective=perspective).inc(count)


def inc_notifications_emitted(type_name: str, count: int = 1) -> None:
	if count > 0:
		NOTIFICATIONS_EMITTED.labels(type=type_name).inc(count)


def inc_side_effect_failure(label: str) -> None:
	NOTIFICATION_SIDE_EFFECT_FAILURES.labels(label=label).inc()


def set_pending_side_effects(count: int) -> None:
	NOTIFICATION_TASKS_PENDING.set(count)


def inc_presence_touch(result: str) -> None:
	PRESENCE_TOUCHES.labels(result=result).inc()


def mark_postgres(up: bool) -> None:
	POSTGRES_UP.set(1 if up else 0)
