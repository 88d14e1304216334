"""Pydantic schemas for presence and chat user listings."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from app.domain.chat.schemas import CamelModel

from .tracker import ChatUser


class PresenceRequest(CamelModel):
	user_id: Optional[str] = None


class PresenceResponse(CamelModel):
	ok: bool = True
	last_active: datetime


class ChatUserResponse(CamelModel):
	id: str
	first_name: str
	last_name: str
	email: str
	student_id: str
	department: str
	year_level: str
	profile_picture: Optional[str] = None
	is_online: bool
	last_active: Optional[datetime] = None

	@classmethod
	def from_model(cls, user: ChatUser) -> "ChatUserResponse":
		participant = user.participant
		return cls(
			id=participant.id,
			first_name=participant.first_name,
			last_name=participant.last_name,
			email=participant.email or "",
			student_id=participant.student_id or "",
			department=participant.department or "",
			year_level=participant.year_level or "",
			profile_picture=participant.profile_picture,
			is_online=user.is_online,
			last_active=participant.last_active,
		)


class ChatUserListResponse(CamelModel):
	ok: bool = True
	users: List[ChatUserResponse]
