"""Last-active presence heuristic for chat user listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from app.domain.common.errors import ParticipantNotFound, require
from app.domain.identity.models import Participant, is_sentinel
from app.domain.identity.repo import DirectoryRepository
from app.domain.identity.resolver import IdentityResolver
from app.obs import metrics as obs_metrics
from app.settings import settings

LOGGER = logging.getLogger(__name__)


def _now() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(slots=True)
class ChatUser:
	participant: Participant
	is_online: bool


class PresenceTracker:
	def __init__(
		self,
		directory: DirectoryRepository,
		resolver: IdentityResolver,
		*,
		online_window: Optional[timedelta] = None,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self._directory = directory
		self._resolver = resolver
		self._window = online_window or timedelta(seconds=settings.presence_online_seconds)
		self._clock = clock

	async def touch(self, user_id: Optional[str]) -> datetime:
		"""Stamp ``last_active`` for the user; unknown users raise ParticipantNotFound."""
		ref = require(user_id, "userId")
		participant = await self._resolver.canonical_admin() if is_sentinel(ref) else await self._resolver.lookup(ref)
		now = self._clock()
		if participant is None or not await self._directory.touch(participant.id, now):
			obs_metrics.inc_presence_touch("not_found")
			raise ParticipantNotFound()
		obs_metrics.inc_presence_touch("ok")
		return now

	def is_online(self, last_active: Optional[datetime]) -> bool:
		if last_active is None:
			return False
		return self._clock() - last_active < self._window

	async def list_chat_users(self) -> List[ChatUser]:
		students = await self._directory.list_students()
		return [ChatUser(participant=p, is_online=self.is_online(p.last_active)) for p in students]
