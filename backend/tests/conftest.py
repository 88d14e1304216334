import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Tests never reach a real database
os.environ.setdefault("STORE_BACKEND", "memory")

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from app.domain import container
from app.domain.identity.models import ROLE_ADMIN, Participant
from app.infra import postgres
from app.main import app
from app.settings import settings


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	original_env = settings.environment
	original_backend = settings.store_backend
	settings.environment = "dev"
	settings.store_backend = "memory"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.store_backend = original_backend


@pytest_asyncio.fixture(autouse=True)
async def fresh_container():
	container.reset()
	try:
		yield
	finally:
		await container.get_dispatcher().drain()


@pytest_asyncio.fixture
async def people():
	"""One admin and two students in the in-memory directory."""
	directory = container.get_directory()
	base = datetime(2024, 1, 1, tzinfo=timezone.utc)
	admin = await directory.upsert(
		Participant(
			id="adm-1",
			role=ROLE_ADMIN,
			email="office@school.test",
			first_name="Dana",
			last_name="Reyes",
			profile_picture="https://img.test/admin.png",
			created_at=base,
		)
	)
	alice = await directory.upsert(
		Participant(
			id="stu-alice",
			email="alice@school.test",
			student_id="2024-0001",
			first_name="Alice",
			last_name="Santos",
			department="SHS",
			year_level="Grade 11",
			profile_picture="https://img.test/alice.png",
			created_at=base + timedelta(minutes=1),
		)
	)
	bob = await directory.upsert(
		Participant(
			id="stu-bob",
			email="bob@school.test",
			student_id="2024-0002",
			first_name="Bob",
			last_name="Cruz",
			created_at=base + timedelta(minutes=2),
		)
	)
	container.get_resolver().invalidate()
	return SimpleNamespace(admin=admin, alice=alice, bob=bob)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
