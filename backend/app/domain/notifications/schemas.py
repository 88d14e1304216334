"""Pydantic schemas for the notifications API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from app.domain.chat.schemas import CamelModel

from .models import Notification


class NotificationResponse(CamelModel):
	id: str
	user_id: str
	title: str
	description: str
	type: str
	read: bool
	read_at: Optional[datetime] = None
	related_id: Optional[str] = None
	badge_color: Optional[str] = None
	created_at: datetime
	is_new: bool

	@classmethod
	def from_model(cls, notification: Notification) -> "NotificationResponse":
		return cls(
			id=notification.id,
			user_id=notification.user_id,
			title=notification.title,
			description=notification.description,
			type=notification.type,
			read=notification.read,
			read_at=notification.read_at,
			related_id=notification.related_id,
			badge_color=notification.badge_color,
			created_at=notification.created_at,
			is_new=notification.is_new,
		)


class NotificationListResponse(CamelModel):
	ok: bool = True
	notifications: List[NotificationResponse]


class NotificationUnreadResponse(CamelModel):
	ok: bool = True
	count: int


class NotificationMarkReadRequest(CamelModel):
	user_id: Optional[str] = None
	ids: Optional[List[str]] = None
	mark_all: bool = False


class NotificationMarkReadResponse(CamelModel):
	ok: bool = True
	updated_count: int


class NotificationDeleteResponse(CamelModel):
	ok: bool = True
	deleted_count: int
