"""Message storage (in-memory and PostgreSQL)."""

from __future__ import annotations

import asyncio
import itertools
import json
from dataclasses import asdict, replace
from datetime import datetime
from typing import Collection, Dict, List, Optional, Protocol, Sequence, Tuple

import asyncpg
import ulid

from app.infra import postgres

from .models import AttachmentMeta, ChatMessage, Reaction, toggle_reaction


class MessageRepository(Protocol):
	async def create(
		self,
		*,
		sender_id: str,
		receiver_id: str,
		sender_name: str,
		sender_initials: str,
		body: str,
		attachments: Sequence[AttachmentMeta],
		replied_to: Optional[str],
		created_at: datetime,
	) -> ChatMessage:
		...

	async def get(self, message_id: str) -> Optional[ChatMessage]:
		...

	async def update_text(self, message_id: str, body: str, updated_at: datetime) -> Optional[ChatMessage]:
		...

	async def soft_delete(
		self,
		message_id: str,
		*,
		deleted_by: str,
		deleted_by_name: str,
		deleted_at: datetime,
	) -> bool:
		"""Flag the message deleted; False when it was missing or already deleted."""
		...

	async def toggle_reaction(
		self, message_id: str, participant_id: str, emoji: str, *, aliases: Collection[str] = ()
	) -> Optional[Tuple[ChatMessage, str]]:
		"""Reactions stored under any of ``aliases`` count as the participant's own."""
		...

	async def mark_read(self, sender_keys: Collection[str], receiver_keys: Collection[str]) -> List[str]:
		"""Flip unread messages from any sender key to any receiver key; return flipped ids."""
		...

	async def list_between(self, keys_a: Collection[str], keys_b: Collection[str]) -> List[ChatMessage]:
		...

	async def unread_counts(self, admin_keys: Collection[str]) -> Dict[str, int]:
		...

	async def latest_activity(self, admin_keys: Collection[str]) -> Dict[str, datetime]:
		...


def _between(message: ChatMessage, keys_a: Collection[str], keys_b: Collection[str]) -> bool:
	return (message.sender_id in keys_a and message.receiver_id in keys_b) or (
		message.sender_id in keys_b and message.receiver_id in keys_a
	)


class InMemoryMessageRepository(MessageRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._messages: Dict[str, ChatMessage] = {}
		self._seq = itertools.count(1)

	async def create(
		self,
		*,
		sender_id: str,
		receiver_id: str,
		sender_name: str,
		sender_initials: str,
		body: str,
		attachments: Sequence[AttachmentMeta],
		replied_to: Optional[str],
		created_at: datetime,
	) -> ChatMessage:
		async with self._lock:
			message = ChatMessage(
				message_id=str(ulid.new()),
				seq=next(self._seq),
				sender_id=sender_id,
				receiver_id=receiver_id,
				sender_name=sender_name,
				sender_initials=sender_initials,
				body=body,
				created_at=created_at,
				attachments=tuple(attachments),
				replied_to=replied_to,
			)
			self._messages[message.message_id] = message
			return replace(message, reactions=[])

	async def get(self, message_id: str) -> Optional[ChatMessage]:
		async with self._lock:
			message = self._messages.get(message_id)
			return replace(message, reactions=list(message.reactions)) if message else None

	async def update_text(self, message_id: str, body: str, updated_at: datetime) -> Optional[ChatMessage]:
		async with self._lock:
			message = self._messages.get(message_id)
			if message is None:
				return None
			message.body = body
			message.updated_at = updated_at
			return replace(message, reactions=list(message.reactions))

	async def soft_delete(
		self,
		message_id: str,
		*,
		deleted_by: str,
		deleted_by_name: str,
		deleted_at: datetime,
	) -> bool:
		async with self._lock:
			message = self._messages.get(message_id)
			if message is None or message.deleted:
				return False
			message.deleted = True
			message.deleted_by = deleted_by
			message.deleted_by_name = deleted_by_name
			message.deleted_at = deleted_at
			return True

	async def toggle_reaction(
		self, message_id: str, participant_id: str, emoji: str, *, aliases: Collection[str] = ()
	) -> Optional[Tuple[ChatMessage, str]]:
		async with self._lock:
			message = self._messages.get(message_id)
			if message is None:
				return None
			message.reactions, action = toggle_reaction(message.reactions, participant_id, emoji, aliases)
			return replace(message, reactions=list(message.reactions)), action

	async def mark_read(self, sender_keys: Collection[str], receiver_keys: Collection[str]) -> List[str]:
		async with self._lock:
			flipped: List[str] = []
			for message in self._messages.values():
				if message.read:
					continue
				if message.sender_id in sender_keys and message.receiver_id in receiver_keys:
					message.read = True
					flipped.append(message.message_id)
			return flipped

	async def list_between(self, keys_a: Collection[str], keys_b: Collection[str]) -> List[ChatMessage]:
		async with self._lock:
			matches = [
				replace(m, reactions=list(m.reactions))
				for m in self._messages.values()
				if _between(m, keys_a, keys_b)
			]
		matches.sort(key=lambda m: (m.created_at, m.seq))
		return matches

	async def unread_counts(self, admin_keys: Collection[str]) -> Dict[str, int]:
		counts: Dict[str, int] = {}
		async with self._lock:
			for message in self._messages.values():
				if message.read or message.receiver_id not in admin_keys or message.sender_id in admin_keys:
					continue
				counts[message.sender_id] = counts.get(message.sender_id, 0) + 1
		return counts

	async def latest_activity(self, admin_keys: Collection[str]) -> Dict[str, datetime]:
		latest: Dict[str, datetime] = {}
		async with self._lock:
			for message in self._messages.values():
				if message.sender_id in admin_keys and message.receiver_id not in admin_keys:
					student = message.receiver_id
				elif message.receiver_id in admin_keys and message.sender_id not in admin_keys:
					student = message.sender_id
				else:
					continue
				if student not in latest or message.created_at > latest[student]:
					latest[student] = message.created_at
		return latest


_COLUMNS = (
	"message_id, seq, sender_id, receiver_id, sender_name, sender_initials, body, attachments, "
	"reactions, replied_to, read, deleted, deleted_by, deleted_by_name, deleted_at, created_at, updated_at"
)


def _load_json(value: object) -> list:
	if value is None:
		return []
	if isinstance(value, (bytes, str)):
		return json.loads(value)
	return list(value)  # type: ignore[arg-type]


def _row_to_message(row: asyncpg.Record) -> ChatMessage:
	return ChatMessage(
		message_id=str(row["message_id"]),
		seq=int(row["seq"]),
		sender_id=str(row["sender_id"]),
		receiver_id=str(row["receiver_id"]),
		sender_name=row["sender_name"] or "",
		sender_initials=row["sender_initials"] or "",
		body=row["body"] or "",
		created_at=row["created_at"],
		attachments=tuple(AttachmentMeta(**item) for item in _load_json(row["attachments"])),
		reactions=[Reaction(**item) for item in _load_json(row["reactions"])],
		replied_to=row["replied_to"],
		read=bool(row["read"]),
		deleted=bool(row["deleted"]),
		deleted_by=row["deleted_by"],
		deleted_by_name=row["deleted_by_name"],
		deleted_at=row["deleted_at"],
		updated_at=row["updated_at"],
	)


class PostgresMessageRepository(MessageRepository):
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def create(
		self,
		*,
		sender_id: str,
		receiver_id: str,
		sender_name: str,
		sender_initials: str,
		body: str,
		attachments: Sequence[AttachmentMeta],
		replied_to: Optional[str],
		created_at: datetime,
	) -> ChatMessage:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO chat_messages (
					message_id,
					sender_id,
					receiver_id,
					sender_name,
					sender_initials,
					body,
					attachments,
					reactions,
					replied_to,
					created_at
				) VALUES ($1,$2,$3,$4,$5,$6,$7::jsonb,'[]'::jsonb,$8,$9)
				RETURNING {_COLUMNS}
				""",
				str(ulid.new()),
				sender_id,
				receiver_id,
				sender_name,
				sender_initials,
				body,
				json.dumps([asdict(meta) for meta in attachments]),
				replied_to,
				created_at,
			)
			return _row_to_message(row)

	async def get(self, message_id: str) -> Optional[ChatMessage]:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM chat_messages WHERE message_id = $1",
				message_id,
			)
			return _row_to_message(row) if row else None

	async def update_text(self, message_id: str, body: str, updated_at: datetime) -> Optional[ChatMessage]:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(
				f"""
				UPDATE chat_messages
				SET body = $2, updated_at = $3
				WHERE message_id = $1
				RETURNING {_COLUMNS}
				""",
				message_id,
				body,
				updated_at,
			)
			return _row_to_message(row) if row else None

	async def soft_delete(
		self,
		message_id: str,
		*,
		deleted_by: str,
		deleted_by_name: str,
		deleted_at: datetime,
	) -> bool:
		async with postgres.connection(self._pool) as conn:
			row = await conn.fetchrow(
				"""
				UPDATE chat_messages
				SET deleted = TRUE, deleted_by = $2, deleted_by_name = $3, deleted_at = $4
				WHERE message_id = $1 AND deleted = FALSE
				RETURNING message_id
				""",
				message_id,
				deleted_by,
				deleted_by_name,
				deleted_at,
			)
			return row is not None

	async def toggle_reaction(
		self, message_id: str, participant_id: str, emoji: str, *, aliases: Collection[str] = ()
	) -> Optional[Tuple[ChatMessage, str]]:
		async with postgres.connection(self._pool) as conn:
			async with conn.transaction():
				row = await conn.fetchrow(
					f"SELECT {_COLUMNS} FROM chat_messages WHERE message_id = $1 FOR UPDATE",
					message_id,
				)
				if row is None:
					return None
				message = _row_to_message(row)
				reactions, action = toggle_reaction(message.reactions, participant_id, emoji, aliases)
				await conn.execute(
					"UPDATE chat_messages SET reactions = $2::jsonb WHERE message_id = $1",
					message_id,
					json.dumps([asdict(reaction) for reaction in reactions]),
				)
				message.reactions = reactions
				return message, action

	async def mark_read(self, sender_keys: Collection[str], receiver_keys: Collection[str]) -> List[str]:
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				"""
				UPDATE chat_messages
				SET read = TRUE
				WHERE sender_id = ANY($1::text[]) AND receiver_id = ANY($2::text[]) AND read = FALSE
				RETURNING message_id
				""",
				list(sender_keys),
				list(receiver_keys),
			)
			return [str(row["message_id"]) for row in rows]

	async def list_between(self, keys_a: Collection[str], keys_b: Collection[str]) -> List[ChatMessage]:
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM chat_messages
				WHERE (sender_id = ANY($1::text[]) AND receiver_id = ANY($2::text[]))
					OR (sender_id = ANY($2::text[]) AND receiver_id = ANY($1::text[]))
				ORDER BY created_at ASC, seq ASC
				""",
				list(keys_a),
				list(keys_b),
			)
			return [_row_to_message(row) for row in rows]

	async def unread_counts(self, admin_keys: Collection[str]) -> Dict[str, int]:
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				"""
				SELECT sender_id, COUNT(*) AS unread
				FROM chat_messages
				WHERE receiver_id = ANY($1::text[])
					AND NOT (sender_id = ANY($1::text[]))
					AND read = FALSE
				GROUP BY sender_id
				""",
				list(admin_keys),
			)
			return {str(row["sender_id"]): int(row["unread"]) for row in rows}

	async def latest_activity(self, admin_keys: Collection[str]) -> Dict[str, datetime]:
		async with postgres.connection(self._pool) as conn:
			rows = await conn.fetch(
				"""
				SELECT
					CASE WHEN sender_id = ANY($1::text[]) THEN receiver_id ELSE sender_id END AS student_id,
					MAX(created_at) AS latest
				FROM chat_messages
				WHERE (sender_id = ANY($1::text[])) <> (receiver_id = ANY($1::text[]))
				GROUP BY 1
				""",
				list(admin_keys),
			)
			return {str(row["student_id"]): row["latest"] for row in rows}
