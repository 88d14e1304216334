"""Participant records shared by chat, notifications and presence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

ADMIN_SENTINEL = "admin"
ROLE_ADMIN = "admin"
ROLE_USER = "user"


def _now() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(slots=True)
class Participant:
	"""A student or the admin as stored in the ``users`` table."""

	id: str
	role: str = ROLE_USER
	email: Optional[str] = None
	student_id: Optional[str] = None
	first_name: str = ""
	last_name: str = ""
	department: Optional[str] = None
	year_level: Optional[str] = None
	profile_picture: Optional[str] = None
	last_active: Optional[datetime] = None
	created_at: datetime = field(default_factory=_now)

	@property
	def is_admin(self) -> bool:
		return self.role == ROLE_ADMIN

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}".strip()

	@property
	def initials(self) -> str:
		return f"{self.first_name[:1]}{self.last_name[:1]}".upper()


def is_sentinel(ref: str | None) -> bool:
	return (ref or "").strip().lower() == ADMIN_SENTINEL
