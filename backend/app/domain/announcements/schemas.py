"""Pydantic schemas for the announcements API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from app.domain.chat.schemas import CamelModel

from .models import Announcement


class AnnouncementItem(CamelModel):
	title: Optional[str] = None
	content: Optional[str] = None
	is_important: bool = False


class CreateAnnouncementsRequest(CamelModel):
	announcements: Optional[List[AnnouncementItem]] = None
	created_by: Optional[str] = None
	created_by_name: Optional[str] = None


class AnnouncementResponse(CamelModel):
	id: str
	title: str
	content: str
	created_by: str
	created_by_name: str
	is_important: bool
	created_at: datetime

	@classmethod
	def from_model(cls, announcement: Announcement) -> "AnnouncementResponse":
		return cls(
			id=announcement.id,
			title=announcement.title,
			content=announcement.content,
			created_by=announcement.created_by,
			created_by_name=announcement.created_by_name,
			is_important=announcement.is_important,
			created_at=announcement.created_at,
		)


class AnnouncementListResponse(CamelModel):
	ok: bool = True
	announcements: List[AnnouncementResponse]
