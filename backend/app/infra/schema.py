"""Idempotent table bootstrap for the handbook store."""

from __future__ import annotations

import logging

import asyncpg

from app.infra import postgres

LOGGER = logging.getLogger(__name__)

_STATEMENTS = (
	"""
	CREATE TABLE IF NOT EXISTS users (
		id TEXT PRIMARY KEY,
		email TEXT UNIQUE,
		student_id TEXT UNIQUE,
		first_name TEXT NOT NULL DEFAULT '',
		last_name TEXT NOT NULL DEFAULT '',
		role TEXT NOT NULL DEFAULT 'user',
		department TEXT,
		year_level TEXT,
		profile_picture TEXT,
		last_active TIMESTAMPTZ,
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
	)
	""",
	"CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)",
	"""
	CREATE TABLE IF NOT EXISTS chat_messages (
		seq BIGSERIAL,
		message_id TEXT PRIMARY KEY,
		sender_id TEXT NOT NULL,
		receiver_id TEXT NOT NULL,
		sender_name TEXT NOT NULL,
		sender_initials TEXT NOT NULL,
		body TEXT NOT NULL DEFAULT '',
		attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
		reactions JSONB NOT NULL DEFAULT '[]'::jsonb,
		replied_to TEXT,
		read BOOLEAN NOT NULL DEFAULT FALSE,
		deleted BOOLEAN NOT NULL DEFAULT FALSE,
		deleted_by TEXT,
		deleted_by_name TEXT,
		deleted_at TIMESTAMPTZ,
		created_at TIMESTAMPTZ NOT NULL,
		updated_at TIMESTAMPTZ
	)
	""",
	"CREATE INDEX IF NOT EXISTS idx_chat_messages_pair ON chat_messages(sender_id, receiver_id)",
	"CREATE INDEX IF NOT EXISTS idx_chat_messages_created ON chat_messages(created_at, seq)",
	"""
	CREATE TABLE IF NOT EXISTS notifications (
		seq BIGSERIAL,
		id TEXT PRIMARY KEY,
		user_id TEXT NOT NULL,
		title TEXT NOT NULL,
		description TEXT NOT NULL,
		type TEXT NOT NULL,
		read BOOLEAN NOT NULL DEFAULT FALSE,
		read_at TIMESTAMPTZ,
		related_id TEXT,
		badge_color TEXT,
		created_at TIMESTAMPTZ NOT NULL
	)
	""",
	"CREATE INDEX IF NOT EXISTS idx_notifications_user_read ON notifications(user_id, read)",
	"""
	CREATE TABLE IF NOT EXISTS announcements (
		seq BIGSERIAL,
		id TEXT PRIMARY KEY,
		title TEXT NOT NULL,
		content TEXT NOT NULL,
		created_by TEXT NOT NULL,
		created_by_name TEXT NOT NULL,
		is_important BOOLEAN NOT NULL DEFAULT FALSE,
		created_at TIMESTAMPTZ NOT NULL
	)
	""",
	"CREATE INDEX IF NOT EXISTS idx_announcements_created ON announcements(created_at)",
)


async def ensure_schema(pool: asyncpg.pool.Pool) -> None:
	async with postgres.connection(pool) as conn:
		async with conn.transaction():
			for statement in _STATEMENTS:
				await conn.execute(statement)
	LOGGER.info("schema_ready", extra={"tables": 4})
