"""Notification records derived from chat and announcement events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

TYPE_ANNOUNCEMENT = "announcement"
TYPE_MESSAGE = "message"
TYPE_PROFILE_APPROVAL = "profile_approval"
TYPE_PROFILE_REJECTION = "profile_rejection"
TYPE_OTHER = "other"

NOTIFICATION_TYPES = frozenset(
	{TYPE_ANNOUNCEMENT, TYPE_MESSAGE, TYPE_PROFILE_APPROVAL, TYPE_PROFILE_REJECTION, TYPE_OTHER}
)


@dataclass(slots=True)
class Notification:
	id: str
	user_id: str
	title: str
	description: str
	type: str
	created_at: datetime
	read: bool = False
	read_at: Optional[datetime] = None
	related_id: Optional[str] = None
	badge_color: Optional[str] = None
	seq: int = 0

	@property
	def is_new(self) -> bool:
		return not self.read


@dataclass(slots=True, frozen=True)
class NotificationDraft:
	"""A notification waiting for its recipient reference to be resolved."""

	recipient: str
	title: str
	description: str
	type: str = TYPE_MESSAGE
	related_id: Optional[str] = None
	badge_color: Optional[str] = None
