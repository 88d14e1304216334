"""Read side of the conversation log: threads, unread counts, latest activity."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from app.domain.identity.repo import DirectoryRepository

from .schemas import MessageResponse
from .service import PERSPECTIVE_ADMIN, MessageService

LOGGER = logging.getLogger(__name__)


class ConversationQueryService:
	def __init__(self, messages: MessageService, directory: DirectoryRepository) -> None:
		self._messages = messages
		self._directory = directory

	async def _picture(self, participant_id: str) -> Optional[str]:
		try:
			participant = await self._directory.get(participant_id)
		except Exception:  # noqa: BLE001 - a missing picture never fails the thread
			LOGGER.warning("profile_picture_lookup_failed", extra={"participant_id": participant_id}, exc_info=True)
			return None
		return participant.profile_picture if participant is not None else None

	async def get_thread(
		self,
		user_id: Optional[str],
		admin_ref: Optional[str] = None,
		perspective: str = PERSPECTIVE_ADMIN,
	) -> List[MessageResponse]:
		entries = await self._messages.list_conversation(user_id, admin_ref, perspective)
		admin_keys = await self._messages.admin_keys(admin_ref)
		pictures: Dict[str, Optional[str]] = {}
		admin_picture: Optional[str] = None
		admin_loaded = False
		thread: List[MessageResponse] = []
		for message, outgoing in entries:
			sender = message.sender_id
			if sender in admin_keys:
				if not admin_loaded:
					admin = await self._messages.resolver.canonical_admin()
					admin_picture = await self._picture(admin.id) if admin is not None else None
					admin_loaded = True
				picture = admin_picture
			else:
				if sender not in pictures:
					pictures[sender] = await self._picture(sender)
				picture = pictures[sender]
			thread.append(MessageResponse.from_model(message, is_outgoing=outgoing, profile_picture=picture))
		return thread

	async def unread_counts(self, admin_ref: Optional[str] = None) -> Dict[str, int]:
		admin_keys = await self._messages.admin_keys(admin_ref)
		return await self._messages.repo.unread_counts(admin_keys)

	async def latest_activity(self, admin_ref: Optional[str] = None) -> Dict[str, datetime]:
		admin_keys = await self._messages.admin_keys(admin_ref)
		return await self._messages.repo.latest_activity(admin_keys)
