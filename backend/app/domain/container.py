"""Module-level service wiring for the handbook messaging stack.

In-memory repositories back every service until ``configure_postgres`` is
called at startup. Tests swap pieces in with ``configure`` and start over
with ``reset``.
"""

from __future__ import annotations

from typing import Optional

import asyncpg

from app.domain.announcements.repo import (
	AnnouncementRepository,
	InMemoryAnnouncementRepository,
	PostgresAnnouncementRepository,
)
from app.domain.announcements.service import AnnouncementService
from app.domain.chat.query import ConversationQueryService
from app.domain.chat.repo import InMemoryMessageRepository, MessageRepository, PostgresMessageRepository
from app.domain.chat.service import MessageService
from app.domain.identity.repo import DirectoryRepository, InMemoryDirectoryRepository, PostgresDirectoryRepository
from app.domain.identity.resolver import IdentityResolver
from app.domain.notifications.dispatcher import NotificationDispatcher
from app.domain.notifications.repo import (
	InMemoryNotificationRepository,
	NotificationRepository,
	PostgresNotificationRepository,
)
from app.domain.notifications.service import NotificationService
from app.domain.presence.tracker import PresenceTracker
from app.infra.cache import TTLCache
from app.settings import settings

_directory: DirectoryRepository = InMemoryDirectoryRepository()
_message_repo: MessageRepository = InMemoryMessageRepository()
_notification_repo: NotificationRepository = InMemoryNotificationRepository()
_announcement_repo: AnnouncementRepository = InMemoryAnnouncementRepository()
_cache: TTLCache = TTLCache(settings.admin_cache_ttl_seconds)
_dispatcher = NotificationDispatcher()
_resolver = IdentityResolver(_directory, _cache)
_notifications = NotificationService(_notification_repo, _resolver)
_messages = MessageService(_message_repo, _resolver, _notifications, _dispatcher)
_queries = ConversationQueryService(_messages, _directory)
_presence = PresenceTracker(_directory, _resolver)
_announcements = AnnouncementService(_announcement_repo, _directory, _notifications, _dispatcher)


def _rebuild() -> None:
	global _resolver, _notifications, _messages, _queries, _presence, _announcements
	_resolver = IdentityResolver(_directory, _cache)
	_notifications = NotificationService(_notification_repo, _resolver)
	_messages = MessageService(_message_repo, _resolver, _notifications, _dispatcher)
	_queries = ConversationQueryService(_messages, _directory)
	_presence = PresenceTracker(_directory, _resolver)
	_announcements = AnnouncementService(_announcement_repo, _directory, _notifications, _dispatcher)


def configure(
	*,
	directory: Optional[DirectoryRepository] = None,
	message_repository: Optional[MessageRepository] = None,
	notification_repository: Optional[NotificationRepository] = None,
	announcement_repository: Optional[AnnouncementRepository] = None,
	cache: Optional[TTLCache] = None,
	dispatcher: Optional[NotificationDispatcher] = None,
) -> None:
	global _directory, _message_repo, _notification_repo, _announcement_repo, _cache, _dispatcher
	if directory is not None:
		_directory = directory
	if message_repository is not None:
		_message_repo = message_repository
	if notification_repository is not None:
		_notification_repo = notification_repository
	if announcement_repository is not None:
		_announcement_repo = announcement_repository
	if cache is not None:
		_cache = cache
	else:
		_cache.invalidate()
	if dispatcher is not None:
		_dispatcher = dispatcher
	_rebuild()


def configure_postgres(pool: asyncpg.Pool) -> None:
	configure(
		directory=PostgresDirectoryRepository(pool),
		message_repository=PostgresMessageRepository(pool),
		notification_repository=PostgresNotificationRepository(pool),
		announcement_repository=PostgresAnnouncementRepository(pool),
	)


def reset() -> None:
	"""Fresh in-memory repositories, an empty cache and a new dispatcher."""
	configure(
		directory=InMemoryDirectoryRepository(),
		message_repository=InMemoryMessageRepository(),
		notification_repository=InMemoryNotificationRepository(),
		announcement_repository=InMemoryAnnouncementRepository(),
		cache=TTLCache(settings.admin_cache_ttl_seconds),
		dispatcher=NotificationDispatcher(),
	)


def get_directory() -> DirectoryRepository:
	return _directory


def get_resolver() -> IdentityResolver:
	return _resolver


def get_dispatcher() -> NotificationDispatcher:
	return _dispatcher


def get_notification_service() -> NotificationService:
	return _notifications


def get_message_service() -> MessageService:
	return _messages


def get_query_service() -> ConversationQueryService:
	return _queries


def get_presence_tracker() -> PresenceTracker:
	return _presence


def get_announcement_service() -> AnnouncementService:
	return _announcements
