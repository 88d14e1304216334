"""Participant directory repositories (in-memory and PostgreSQL)."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional, Protocol, Sequence

import asyncpg

from app.domain.identity.models import ROLE_ADMIN, ROLE_USER, Participant
from app.infra import postgres


class DirectoryRepository(Protocol):
	async def get(self, participant_id: str) -> Optional[Participant]:
		...

	async def find_by_email(self, email: str) -> Optional[Participant]:
		...

	async def find_by_student_id(self, student_id: str) -> Optional[Participant]:
		...

	async def find_admin(self) -> Optional[Participant]:
		...

	async def list_students(self) -> Sequence[Participant]:
		...

	async def touch(self, participant_id: str, at: datetime) -> bool:
		...

	async def upsert(self, participant: Participant) -> Participant:
		...


class InMemoryDirectoryRepository(DirectoryRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._rows: dict[str, Participant] = {}

	async def get(self, participant_id: str) -> Optional[Participant]:
		return self._rows.get(participant_id)

	async def find_by_email(self, email: str) -> Optional[Participant]:
		wanted = email.lower()
		return next((p for p in self._rows.values() if p.email and p.email.lower() == wanted), None)

	async def find_by_student_id(self, student_id: str) -> Optional[Participant]:
		return next((p for p in self._rows.values() if p.student_id == student_id), None)

	async def find_admin(self) -> Optional[Participant]:
		admins = [p for p in self._rows.values() if p.role == ROLE_ADMIN]
		if not admins:
			return None
		return min(admins, key=lambda p: p.created_at)

	async def list_students(self) -> Sequence[Participant]:
		students = [p for p in self._rows.values() if p.role == ROLE_USER]
		return sorted(students, key=lambda p: (p.first_name, p.last_name))

	async def touch(self, participant_id: str, at: datetime) -> bool:
		async with self._lock:
			participant = self._rows.get(participant_id)
			if participant is None:
				return False
			participant.last_active = at
			return True

	async def upsert(self, participant: Participant) -> Participant:
		async with self._lock:
			self._rows[participant.id] = participant
			return participant


_COLUMNS = (
	"id, role, email, student_id, first_name, last_name, department, year_level, "
	"profile_picture, last_active, created_at"
)


def _row_to_participant(row: asyncpg.Record) -> Participant:
	return Participant(
		id=str(row["id"]),
		role=str(row["role"]),
		email=row["email"],
		student_id=row["student_id"],
		first_name=row["first_name"] or "",
		last_name=row["last_name"] or "",
		department=row["department"],
		year_level=row["year_level"],
		profile_picture=row["profile_picture"],
		last_active=row["last_active"],
		created_at=row["created_at"],
	)


class PostgresDirectoryRepository(DirectoryRepository):
	"""Reads participants from the ``users`` table."""

	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def _fetch_one(self, where: str, value: str) -> Optional[Participant]:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(f"SELECT {_COLUMNS} FROM users WHERE {where} LIMIT 1", value)
		return _row_to_participant(row) if row else None

	async def get(self, participant_id: str) -> Optional[Participant]:
		return await self._fetch_one("id = $1", participant_id)

	async def find_by_email(self, email: str) -> Optional[Participant]:
		return await self._fetch_one("lower(email) = lower($1)", email)

	async def find_by_student_id(self, student_id: str) -> Optional[Participant]:
		return await self._fetch_one("student_id = $1", student_id)

	async def find_admin(self) -> Optional[Participant]:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM users WHERE role = $1 ORDER BY created_at ASC LIMIT 1",
				ROLE_ADMIN,
			)
		return _row_to_participant(row) if row else None

	async def list_students(self) -> Sequence[Participant]:
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				f"SELECT {_COLUMNS} FROM users WHERE role = $1 ORDER BY first_name ASC, last_name ASC",
				ROLE_USER,
			)
		return [_row_to_participant(row) for row in rows]

	async def touch(self, participant_id: str, at: datetime) -> bool:
		async with postgres.connection(self._pool) as conn:
			result = await conn.execute("UPDATE users SET last_active = $2 WHERE id = $1", participant_id, at)
		return result.endswith(" 1")

	async def upsert(self, participant: Participant) -> Participant:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO users ({_COLUMNS})
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
				ON CONFLICT (id) DO UPDATE SET
					role = EXCLUDED.role,
					email = EXCLUDED.email,
					student_id = EXCLUDED.student_id,
					first_name = EXCLUDED.first_name,
					last_name = EXCLUDED.last_name,
					department = EXCLUDED.department,
					year_level = EXCLUDED.year_level,
					profile_picture = EXCLUDED.profile_picture
				RETURNING {_COLUMNS}
				""",
				participant.id,
				participant.role,
				participant.email,
				participant.student_id,
				participant.first_name,
				participant.last_name,
				participant.department,
				participant.year_level,
				participant.profile_picture,
				participant.last_active,
				participant.created_at,
			)
		return _row_to_participant(row)
