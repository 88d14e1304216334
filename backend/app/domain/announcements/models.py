"""Announcement records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Announcement:
	id: str
	title: str
	content: str
	created_by: str
	created_by_name: str
	created_at: datetime
	is_important: bool = False
	seq: int = 0
