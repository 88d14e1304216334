"""Announcement storage (in-memory and PostgreSQL)."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from typing import Dict, List, Protocol, Sequence

import asyncpg

from app.infra import postgres

from .models import Announcement


class AnnouncementRepository(Protocol):
	async def insert_many(self, announcements: Sequence[Announcement]) -> List[Announcement]:
		...

	async def list(self, *, limit: int, newest_first: bool) -> List[Announcement]:
		...


class InMemoryAnnouncementRepository(AnnouncementRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._rows: Dict[str, Announcement] = {}
		self._seq = itertools.count(1)

	async def insert_many(self, announcements: Sequence[Announcement]) -> List[Announcement]:
		stored: List[Announcement] = []
		async with self._lock:
			for announcement in announcements:
				row = replace(announcement, seq=next(self._seq))
				self._rows[row.id] = row
				stored.append(replace(row))
		return stored

	async def list(self, *, limit: int, newest_first: bool) -> List[Announcement]:
		async with self._lock:
			rows = [replace(row) for row in self._rows.values()]
		rows.sort(key=lambda a: (a.created_at, a.seq), reverse=newest_first)
		return rows[:limit]


_COLUMNS = "id, seq, title, content, created_by, created_by_name, is_important, created_at"


def _row_to_announcement(row: asyncpg.Record) -> Announcement:
	return Announcement(
		id=str(row["id"]),
		seq=int(row["seq"]),
		title=row["title"],
		content=row["content"],
		created_by=row["created_by"],
		created_by_name=row["created_by_name"],
		is_important=bool(row["is_important"]),
		created_at=row["created_at"],
	)


class PostgresAnnouncementRepository(AnnouncementRepository):
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def insert_many(self, announcements: Sequence[Announcement]) -> List[Announcement]:
		stored: List[Announcement] = []
		async with postgres.connection(self._pool) as conn:
			async with conn.transaction():
				for announcement in announcements:
					row = await conn.fetchrow(
						f"""
						INSERT INTO announcements (id, title, content, created_by, created_by_name, is_important, created_at)
						VALUES ($1,$2,$3,$4,$5,$6,$7)
						RETURNING {_COLUMNS}
						""",
						announcement.id,
						announcement.title,
						announcement.content,
						announcement.created_by,
						announcement.created_by_name,
						announcement.is_important,
						announcement.created_at,
					)
					stored.append(_row_to_announcement(row))
		return stored

	async def list(self, *, limit: int, newest_first: bool) -> List[Announcement]:
		direction = "DESC" if newest_first else "ASC"
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				f"SELECT {_COLUMNS} FROM announcements ORDER BY created_at {direction}, seq {direction} LIMIT $1",
				limit,
			)
			return [_row_to_announcement(row) for row in rows]
