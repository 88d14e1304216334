"""Resolve loosely-typed actor references to canonical participant identities.

A reference may be a user id, an email, a student number or the literal
``"admin"``. Every comparison between actors elsewhere in the codebase goes
through :meth:`IdentityResolver.resolve` so that the sentinel and the real
admin id are always treated as the same inbox.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from app.domain.identity.models import ADMIN_SENTINEL, Participant, is_sentinel
from app.domain.identity.repo import DirectoryRepository
from app.infra.cache import TTLCache

LOGGER = logging.getLogger(__name__)

_ADMIN_CACHE_KEY = "canonical_admin"


@dataclass(slots=True, frozen=True)
class ResolvedIdentity:
	ref: str
	key: str
	is_admin: bool
	participant: Optional[Participant] = None

	@property
	def found(self) -> bool:
		"""True when the reference names a known participant or the admin inbox."""
		return self.is_admin or self.participant is not None

	@property
	def display_name(self) -> Optional[str]:
		if self.is_admin:
			return "Admin"
		if self.participant is not None and self.participant.full_name:
			return self.participant.full_name
		return None


class IdentityResolver:
	def __init__(self, repository: DirectoryRepository, cache: TTLCache) -> None:
		self._repo = repository
		self._cache = cache

	async def canonical_admin(self) -> Optional[Participant]:
		if _ADMIN_CACHE_KEY in self._cache:
			return self._cache.get(_ADMIN_CACHE_KEY)
		admin = await self._repo.find_admin()
		self._cache.set(_ADMIN_CACHE_KEY, admin)
		return admin

	async def admin_key(self) -> str:
		admin = await self.canonical_admin()
		return admin.id if admin is not None else ADMIN_SENTINEL

	async def admin_keys(self) -> FrozenSet[str]:
		"""Every stored form the admin inbox may appear under."""
		admin = await self.canonical_admin()
		if admin is None:
			return frozenset({ADMIN_SENTINEL})
		return frozenset({ADMIN_SENTINEL, admin.id})

	async def lookup(self, ref: str) -> Optional[Participant]:
		"""Find a participant by id, then email, then student number."""
		participant = await self._repo.get(ref)
		if participant is None:
			participant = await self._repo.find_by_email(ref)
		if participant is None:
			participant = await self._repo.find_by_student_id(ref)
		return participant

	async def resolve(self, ref: str) -> ResolvedIdentity:
		ref = (ref or "").strip()
		if is_sentinel(ref):
			admin = await self.canonical_admin()
			return ResolvedIdentity(
				ref=ref,
				key=admin.id if admin is not None else ADMIN_SENTINEL,
				is_admin=True,
				participant=admin,
			)
		participant = await self.lookup(ref) if ref else None
		if participant is None:
			return ResolvedIdentity(ref=ref, key=ref, is_admin=False)
		if participant.is_admin:
			return ResolvedIdentity(ref=ref, key=await self.admin_key(), is_admin=True, participant=participant)
		return ResolvedIdentity(ref=ref, key=participant.id, is_admin=False, participant=participant)

	async def normalize(self, ref: str) -> str:
		return (await self.resolve(ref)).key

	async def same(self, left: str, right: str) -> bool:
		return await self.normalize(left) == await self.normalize(right)

	async def keys_for(self, ref: str) -> FrozenSet[str]:
		"""All stored ids that denote the same participant as ``ref``."""
		identity = await self.resolve(ref)
		if identity.is_admin:
			return await self.admin_keys()
		keys = {identity.key}
		if identity.ref:
			keys.add(identity.ref)
		return frozenset(keys)

	def invalidate(self) -> None:
		self._cache.invalidate(_ADMIN_CACHE_KEY)
		LOGGER.debug("admin_cache_invalidated")
