"""Service helpers for per-recipient notifications."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Collection, List, Optional, Sequence

import ulid

from app.domain.common.errors import ValidationError, require
from app.domain.identity.resolver import IdentityResolver
from app.obs import metrics as obs_metrics

from .models import NOTIFICATION_TYPES, TYPE_MESSAGE, Notification, NotificationDraft
from .repo import NotificationRepository

LOGGER = logging.getLogger(__name__)


def _now() -> datetime:
	return datetime.now(timezone.utc)


class NotificationService:
	"""Encapsulates notification persistence and queries.

	Recipients are stored under their canonical key; reads accept any alias
	of the recipient so the admin inbox is reachable as ``"admin"`` and by id.
	"""

	def __init__(
		self,
		repository: NotificationRepository,
		resolver: IdentityResolver,
		*,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self.repo = repository
		self._resolver = resolver
		self._clock = clock

	async def emit(
		self,
		recipient_id: str,
		title: str,
		description: str,
		type: str = TYPE_MESSAGE,
		related_id: Optional[str] = None,
		badge_color: Optional[str] = None,
	) -> Notification:
		draft = NotificationDraft(
			recipient=recipient_id,
			title=title,
			description=description,
			type=type,
			related_id=related_id,
			badge_color=badge_color,
		)
		created = await self.emit_drafts([draft])
		return created[0]

	async def emit_drafts(self, drafts: Sequence[NotificationDraft]) -> List[Notification]:
		now = self._clock()
		rows: List[Notification] = []
		for draft in drafts:
			if draft.type not in NOTIFICATION_TYPES:
				raise ValidationError(f"Unknown notification type {draft.type!r}", kind="invalid_notification_type")
			rows.append(
				Notification(
					id=str(ulid.new()),
					user_id=await self._resolver.normalize(require(draft.recipient, "recipientId")),
					title=draft.title,
					description=draft.description,
					type=draft.type,
					created_at=now,
					related_id=draft.related_id,
					badge_color=draft.badge_color,
				)
			)
		created = await self.repo.insert_many(rows)
		for row in created:
			obs_metrics.inc_notifications_emitted(row.type)
		LOGGER.debug("notifications_emitted", extra={"count": len(created)})
		return created

	async def list(self, recipient_id: str) -> List[Notification]:
		keys = await self._resolver.keys_for(require(recipient_id, "userId"))
		return await self.repo.list_for(keys)

	async def mark_read(
		self,
		recipient_id: str,
		ids: Optional[Collection[str]] = None,
		*,
		mark_all: bool = False,
	) -> int:
		keys = await self._resolver.keys_for(require(recipient_id, "userId"))
		if mark_all:
			return await self.repo.mark_read(keys, None, self._clock())
		if not ids:
			return 0
		return await self.repo.mark_read(keys, set(ids), self._clock())

	async def mark_related_read(self, recipient_id: str, related_ids: Collection[str]) -> int:
		if not related_ids:
			return 0
		keys = await self._resolver.keys_for(recipient_id)
		return await self.repo.mark_related_read(keys, set(related_ids), self._clock())

	async def delete_all(self, recipient_id: str) -> int:
		keys = await self._resolver.keys_for(require(recipient_id, "userId"))
		removed = await self.repo.delete_all(keys)
		LOGGER.info("notifications_cleared", extra={"removed": removed})
		return removed

	async def unread_count(self, recipient_id: str) -> int:
		keys = await self._resolver.keys_for(require(recipient_id, "userId"))
		return await self.repo.unread_count(keys)
