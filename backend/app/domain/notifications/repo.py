"""Notification storage (in-memory and PostgreSQL)."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from datetime import datetime
from typing import Collection, Dict, List, Optional, Protocol, Sequence

import asyncpg

from app.infra import postgres

from .models import Notification


class NotificationRepository(Protocol):
	async def insert_many(self, notifications: Sequence[Notification]) -> List[Notification]:
		...

	async def list_for(self, user_keys: Collection[str]) -> List[Notification]:
		"""Newest first."""
		...

	async def mark_read(
		self,
		user_keys: Collection[str],
		ids: Optional[Collection[str]],
		read_at: datetime,
	) -> int:
		"""Flip unread rows for the recipient; ``ids=None`` means every row."""
		...

	async def mark_related_read(
		self,
		user_keys: Collection[str],
		related_ids: Collection[str],
		read_at: datetime,
	) -> int:
		...

	async def delete_all(self, user_keys: Collection[str]) -> int:
		...

	async def unread_count(self, user_keys: Collection[str]) -> int:
		...


class InMemoryNotificationRepository(NotificationRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._rows: Dict[str, Notification] = {}
		self._seq = itertools.count(1)

	async def insert_many(self, notifications: Sequence[Notification]) -> List[Notification]:
		stored: List[Notification] = []
		async with self._lock:
			for notification in notifications:
				row = replace(notification, seq=next(self._seq))
				self._rows[row.id] = row
				stored.append(replace(row))
		return stored

	async def list_for(self, user_keys: Collection[str]) -> List[Notification]:
		async with self._lock:
			rows = [replace(n) for n in self._rows.values() if n.user_id in user_keys]
		rows.sort(key=lambda n: (n.created_at, n.seq), reverse=True)
		return rows

	async def mark_read(
		self,
		user_keys: Collection[str],
		ids: Optional[Collection[str]],
		read_at: datetime,
	) -> int:
		updated = 0
		async with self._lock:
			for row in self._rows.values():
				if row.read or row.user_id not in user_keys:
					continue
				if ids is not None and row.id not in ids:
					continue
				row.read = True
				row.read_at = read_at
				updated += 1
		return updated

	async def mark_related_read(
		self,
		user_keys: Collection[str],
		related_ids: Collection[str],
		read_at: datetime,
	) -> int:
		updated = 0
		async with self._lock:
			for row in self._rows.values():
				if row.read or row.user_id not in user_keys or row.related_id not in related_ids:
					continue
				row.read = True
				row.read_at = read_at
				updated += 1
		return updated

	async def delete_all(self, user_keys: Collection[str]) -> int:
		async with self._lock:
			doomed = [key for key, row in self._rows.items() if row.user_id in user_keys]
			for key in doomed:
				del self._rows[key]
		return len(doomed)

	async def unread_count(self, user_keys: Collection[str]) -> int:
		async with self._lock:
			return sum(1 for row in self._rows.values() if row.user_id in user_keys and not row.read)


_COLUMNS = "id, seq, user_id, title, description, type, read, read_at, related_id, badge_color, created_at"


def _row_to_notification(row: asyncpg.Record) -> Notification:
	return Notification(
		id=str(row["id"]),
		seq=int(row["seq"]),
		user_id=str(row["user_id"]),
		title=row["title"],
		description=row["description"],
		type=row["type"],
		read=bool(row["read"]),
		read_at=row["read_at"],
		related_id=row["related_id"],
		badge_color=row["badge_color"],
		created_at=row["created_at"],
	)


def _command_count(status: str) -> int:
	# asyncpg returns e.g. "UPDATE 3" / "DELETE 0"
	try:
		return int(status.rsplit(" ", 1)[-1])
	except (ValueError, IndexError):
		return 0


class PostgresNotificationRepository(NotificationRepository):
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def insert_many(self, notifications: Sequence[Notification]) -> List[Notification]:
		if not notifications:
			return []
		stored: List[Notification] = []
		async with postgres.connection(self._pool) as conn:
			async with conn.transaction():
				for notification in notifications:
					row = await conn.fetchrow(
						f"""
						INSERT INTO notifications (
							id, user_id, title, description, type, read, read_at, related_id, badge_color, created_at
						) VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9,$10)
						RETURNING {_COLUMNS}
						""",
						notification.id,
						notification.user_id,
						notification.title,
						notification.description,
						notification.type,
						notification.read,
						notification.read_at,
						notification.related_id,
						notification.badge_color,
						notification.created_at,
					)
					stored.append(_row_to_notification(row))
		return stored

	async def list_for(self, user_keys: Collection[str]) -> List[Notification]:
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM notifications
				WHERE user_id = ANY($1::text[])
				ORDER BY created_at DESC, seq DESC
				""",
				list(user_keys),
			)
			return [_row_to_notification(row) for row in rows]

	async def mark_read(
		self,
		user_keys: Collection[str],
		ids: Optional[Collection[str]],
		read_at: datetime,
	) -> int:
		async with postgres.connection(self._pool) as conn:
			if ids is None:
				status = await conn.execute(
					"""
					UPDATE notifications SET read = TRUE, read_at = $2
					WHERE user_id = ANY($1::text[]) AND read = FALSE
					""",
					list(user_keys),
					read_at,
				)
			else:
				status = await conn.execute(
					"""
					UPDATE notifications SET read = TRUE, read_at = $3
					WHERE user_id = ANY($1::text[]) AND id = ANY($2::text[]) AND read = FALSE
					""",
					list(user_keys),
					list(ids),
					read_at,
				)
			return _command_count(status)

	async def mark_related_read(
		self,
		user_keys: Collection[str],
		related_ids: Collection[str],
		read_at: datetime,
	) -> int:
		if not related_ids:
			return 0
		async with postgres.connection(self._pool) as conn:
			status = await conn.execute(
				"""
				UPDATE notifications SET read = TRUE, read_at = $3
				WHERE user_id = ANY($1::text[]) AND related_id = ANY($2::text[]) AND read = FALSE
				""",
				list(user_keys),
				list(related_ids),
				read_at,
			)
			return _command_count(status)

	async def delete_all(self, user_keys: Collection[str]) -> int:
		async with postgres.connection(self._pool) as conn:
			status = await conn.execute(
				"DELETE FROM notifications WHERE user_id = ANY($1::text[])",
				list(user_keys),
			)
			return _command_count(status)

	async def unread_count(self, user_keys: Collection[str]) -> int:
		async with postgres.connection(self._pool) as conn:
			value = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE user_id = ANY($1::text[]) AND read = FALSE",
				list(user_keys),
			)
			return int(value or 0)
