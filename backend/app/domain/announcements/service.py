"""Announcement publishing with per-student notification fan-out."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Mapping, Optional

import ulid

from app.domain.common.errors import ValidationError
from app.domain.identity.repo import DirectoryRepository
from app.domain.notifications import events
from app.domain.notifications.dispatcher import NotificationDispatcher
from app.domain.notifications.service import NotificationService

from .models import Announcement
from .repo import AnnouncementRepository

LOGGER = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _text(item: Mapping[str, object], key: str) -> str:
	value = item.get(key)
	return value.strip() if isinstance(value, str) else ""


class AnnouncementService:
	def __init__(
		self,
		repository: AnnouncementRepository,
		directory: DirectoryRepository,
		notifications: NotificationService,
		dispatcher: NotificationDispatcher,
		*,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self.repo = repository
		self._directory = directory
		self._notifications = notifications
		self._dispatcher = dispatcher
		self._clock = clock

	async def create(
		self,
		items: Optional[Iterable[Mapping[str, object]]],
		*,
		created_by: Optional[str] = None,
		created_by_name: Optional[str] = None,
	) -> List[Announcement]:
		"""Persist every item with a title and content, then fan out notifications.

		Blank entries are skipped; a batch with nothing valid is rejected.
		"""
		entries = list(items or [])
		if not entries:
			raise ValidationError("Announcements array is required", kind="missing_field")
		now = self._clock()
		drafts = [
			Announcement(
				id=str(ulid.new()),
				title=_text(item, "title"),
				content=_text(item, "content"),
				created_by=(created_by or "").strip() or "admin",
				created_by_name=(created_by_name or "").strip() or "Administrator",
				is_important=bool(item.get("isImportant", item.get("is_important", False))),
				created_at=now,
			)
			for item in entries
			if _text(item, "title") and _text(item, "content")
		]
		if not drafts:
			raise ValidationError("At least one valid announcement is required", kind="empty_announcement")
		created = await self.repo.insert_many(drafts)
		LOGGER.info("announcements_created", extra={"count": len(created)})
		self._dispatcher.submit("announcement", self._fan_out(created))
		return created

	async def _fan_out(self, announcements: List[Announcement]) -> None:
		students = await self._directory.list_students()
		if not students:
			return
		drafts = [
			events.announcement(student.id, announcement.id, announcement.title, important=announcement.is_important)
			for announcement in announcements
			for student in students
		]
		await self._notifications.emit_drafts(drafts)

	async def list(self, *, limit: int = 100, order: str = "desc") -> List[Announcement]:
		if order not in ("asc", "desc"):
			raise ValidationError("order must be 'asc' or 'desc'", kind="invalid_order")
		bounded = max(1, min(limit, MAX_LIST_LIMIT))
		return await self.repo.list(limit=bounded, newest_first=order == "desc")
