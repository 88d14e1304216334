import pytest

from app.domain import container
from app.domain.identity.models import ROLE_ADMIN, Participant
from app.domain.identity.repo import InMemoryDirectoryRepository
from app.domain.identity.resolver import IdentityResolver
from app.infra.cache import TTLCache


@pytest.mark.asyncio
async def test_sentinel_resolves_to_canonical_admin(people):
    resolver = container.get_resolver()

    for ref in ("admin", "ADMIN", " admin "):
        identity = await resolver.resolve(ref)
        assert identity.is_admin
        assert identity.key == "adm-1"

    assert await resolver.admin_keys() == frozenset({"admin", "adm-1"})
    assert await resolver.same("admin", "office@school.test")


@pytest.mark.asyncio
async def test_lookup_by_id_email_and_student_number(people):
    resolver = container.get_resolver()

    assert await resolver.normalize("stu-alice") == "stu-alice"
    assert await resolver.normalize("Alice@School.test") == "stu-alice"
    assert await resolver.normalize("2024-0002") == "stu-bob"


@pytest.mark.asyncio
async def test_unknown_reference_passes_through(people):
    resolver = container.get_resolver()

    identity = await resolver.resolve("nobody")

    assert identity.key == "nobody"
    assert identity.found is False
    assert identity.display_name is None


@pytest.mark.asyncio
async def test_keys_for_includes_raw_reference(people):
    resolver = container.get_resolver()

    assert await resolver.keys_for("bob@school.test") == frozenset({"stu-bob", "bob@school.test"})
    assert await resolver.keys_for("adm-1") == frozenset({"admin", "adm-1"})


@pytest.mark.asyncio
async def test_second_admin_record_aliases_oldest_admin(people):
    directory = container.get_directory()
    await directory.upsert(Participant(id="adm-2", role=ROLE_ADMIN, first_name="Late", last_name="Admin"))
    resolver = container.get_resolver()
    resolver.invalidate()

    identity = await resolver.resolve("adm-2")

    assert identity.is_admin
    assert identity.key == "adm-1"


@pytest.mark.asyncio
async def test_canonical_admin_is_cached_until_invalidated():
    ticks = [0.0]
    directory = InMemoryDirectoryRepository()
    resolver = IdentityResolver(directory, TTLCache(60, clock=lambda: ticks[0]))

    assert await resolver.admin_key() == "admin"

    await directory.upsert(Participant(id="adm-9", role=ROLE_ADMIN))
    assert await resolver.admin_key() == "admin"

    ticks[0] = 61.0
    assert await resolver.admin_key() == "adm-9"
