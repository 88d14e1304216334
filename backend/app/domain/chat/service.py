"""Message store operations: send, edit, soft-delete, react, mark read."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Collection, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import ulid

from app.domain.common.errors import (
	EmptyMessage,
	ForbiddenConversation,
	ForbiddenError,
	InvalidMessageId,
	InvalidReceiver,
	InvalidSender,
	MessageNotFound,
	ValidationError,
	require,
)
from app.domain.identity.models import is_sentinel
from app.domain.identity.resolver import IdentityResolver, ResolvedIdentity
from app.domain.notifications import events
from app.domain.notifications.dispatcher import NotificationDispatcher
from app.domain.notifications.service import NotificationService
from app.obs import metrics as obs_metrics
from app.settings import settings

from . import attachments
from .models import ACTION_REMOVED, ChatMessage, Reaction
from .repo import MessageRepository

LOGGER = logging.getLogger(__name__)

PERSPECTIVE_ADMIN = "admin"
PERSPECTIVE_USER = "user"


def _now() -> datetime:
	return datetime.now(timezone.utc)


def is_outgoing(message: ChatMessage, admin_keys: Collection[str], perspective: str) -> bool:
	from_admin = message.sender_id in admin_keys
	return from_admin if perspective == PERSPECTIVE_ADMIN else not from_admin


def _check_perspective(perspective: str) -> str:
	if perspective not in (PERSPECTIVE_ADMIN, PERSPECTIVE_USER):
		raise ValidationError("perspective must be 'admin' or 'user'", kind="invalid_perspective")
	return perspective


def _message_id(value: Optional[str]) -> str:
	message_id = require(value, "messageId")
	try:
		ulid.from_str(message_id)
	except ValueError as exc:
		raise InvalidMessageId() from exc
	return message_id


def _body(text: Optional[str]) -> str:
	body = (text or "").strip()
	if len(body) > settings.chat_message_max_length:
		raise ValidationError(
			f"Message text exceeds {settings.chat_message_max_length} characters",
			kind="message_too_long",
		)
	return body


class MessageService:
	"""Writes to the conversation log between students and the admin inbox.

	Every write hands its notifications to the dispatcher, so a failing
	notification never affects the write's own result.
	"""

	def __init__(
		self,
		repository: MessageRepository,
		resolver: IdentityResolver,
		notifications: NotificationService,
		dispatcher: NotificationDispatcher,
		*,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self.repo = repository
		self.resolver = resolver
		self._notifications = notifications
		self._dispatcher = dispatcher
		self._clock = clock

	async def admin_keys(self, admin_ref: Optional[str] = None) -> FrozenSet[str]:
		"""Stored ids of the admin inbox; an explicit ref must name an admin."""
		if admin_ref is None or not admin_ref.strip() or is_sentinel(admin_ref):
			return await self.resolver.admin_keys()
		identity = await self.resolver.resolve(admin_ref)
		if not identity.is_admin:
			raise ValidationError("adminId does not name an admin", kind="invalid_admin")
		return await self.resolver.admin_keys()

	async def _load(self, message_id: str) -> ChatMessage:
		message = await self.repo.get(message_id)
		if message is None:
			raise MessageNotFound()
		return message

	def _side_effect(self, label: str, work) -> None:
		self._dispatcher.submit(label, work)

	async def send(
		self,
		sender_ref: Optional[str],
		receiver_ref: Optional[str],
		text: Optional[str] = None,
		*,
		attachment_items: Optional[Iterable[Mapping[str, object]]] = None,
		replied_to: Optional[str] = None,
		sender_name: Optional[str] = None,
		sender_initials: Optional[str] = None,
	) -> ChatMessage:
		sender_ref = require(sender_ref, "senderId")
		receiver_ref = require(receiver_ref, "receiverId")
		body = _body(text)
		metas = attachments.normalize_attachments(attachment_items)
		if not body and not metas:
			raise EmptyMessage()

		sender = await self.resolver.resolve(sender_ref)
		receiver = await self.resolver.resolve(receiver_ref)
		if not sender.is_admin:
			if sender.participant is None:
				raise InvalidSender()
			if not receiver.found:
				raise InvalidReceiver()
			if not receiver.is_admin:
				raise ForbiddenConversation()
		else:
			if receiver.is_admin:
				raise ForbiddenConversation("Messages must be between a student and the admin")
			if not receiver.found:
				raise InvalidReceiver()

		participant = sender.participant
		name = (sender_name or "").strip() or (participant.full_name if participant else "") or (
			"Admin" if sender.is_admin else "Unknown"
		)
		initials = (sender_initials or "").strip() or (participant.initials if participant else "") or "U"
		message = await self.repo.create(
			sender_id=sender.key,
			receiver_id=receiver.key,
			sender_name=name,
			sender_initials=initials,
			body=body,
			attachments=metas,
			replied_to=(replied_to or "").strip() or None,
			created_at=self._clock(),
		)
		obs_metrics.inc_chat_mutation("send")
		LOGGER.info(
			"chat_message_sent",
			extra={"message_id": message.message_id, "attachment_count": len(metas), "reply": bool(message.replied_to)},
		)
		self._side_effect("send", self._notify_send(message, sender, receiver))
		return message

	async def _notify_send(self, message: ChatMessage, sender: ResolvedIdentity, receiver: ResolvedIdentity) -> None:
		if receiver.key != sender.key:
			await self._notifications.emit_drafts([events.new_message(message)])
		if not message.replied_to:
			return
		original = await self.repo.get(message.replied_to)
		if original is None:
			return
		if await self.resolver.normalize(original.sender_id) == sender.key:
			return
		author = sender.display_name or message.sender_name
		await self._notifications.emit_drafts([events.message_replied(original, message, author)])

	async def edit(self, message_id: Optional[str], text: Optional[str], *, editor_id: Optional[str] = None) -> ChatMessage:
		message_id = _message_id(message_id)
		body = _body(text)
		if not body:
			raise EmptyMessage("Message text is required")
		message = await self._load(message_id)
		if message.deleted:
			raise ForbiddenError("Deleted messages cannot be edited", kind="message_deleted")
		author = await self.resolver.resolve(message.sender_id)
		if editor_id and editor_id.strip():
			editor = await self.resolver.resolve(editor_id)
			if editor.key != author.key:
				raise ForbiddenError("Only the sender can edit this message", kind="not_message_owner")
		updated = await self.repo.update_text(message_id, body, self._clock())
		if updated is None:
			raise MessageNotFound()
		obs_metrics.inc_chat_mutation("edit")
		LOGGER.info("chat_message_edited", extra={"message_id": message_id})
		self._side_effect("edit", self._notify_edit(updated, author))
		return updated

	async def _notify_edit(self, message: ChatMessage, author: ResolvedIdentity) -> None:
		if await self.resolver.normalize(message.receiver_id) == author.key:
			return
		name = author.display_name or message.sender_name or "Someone"
		await self._notifications.emit_drafts([events.message_edited(message, name)])

	async def soft_delete(
		self,
		message_id: Optional[str],
		deleter_id: Optional[str],
		deleter_name: Optional[str] = None,
	) -> ChatMessage:
		message_id = _message_id(message_id)
		deleter_ref = require(deleter_id, "deleterId")
		message = await self._load(message_id)
		deleter = await self.resolver.resolve(deleter_ref)
		sender_key = await self.resolver.normalize(message.sender_id)
		if not deleter.is_admin and deleter.key != sender_key:
			raise ForbiddenError("Only the sender or the admin can delete this message", kind="not_message_owner")
		name = (deleter_name or "").strip() or deleter.display_name or "Someone"
		flipped = await self.repo.soft_delete(
			message_id,
			deleted_by=deleter.key,
			deleted_by_name=name,
			deleted_at=self._clock(),
		)
		if flipped:
			obs_metrics.inc_chat_mutation("delete")
			LOGGER.info("chat_message_deleted", extra={"message_id": message_id})
			if deleter.key != sender_key:
				self._side_effect("delete", self._notifications.emit_drafts([events.message_deleted(message, name)]))
		return await self._load(message_id)

	async def react(
		self,
		message_id: Optional[str],
		participant_id: Optional[str],
		emoji: Optional[str],
	) -> Tuple[List[Reaction], str]:
		message_id = _message_id(message_id)
		participant_ref = require(participant_id, "userId")
		emoji = require(emoji, "emoji")
		message = await self._load(message_id)
		reactor = await self.resolver.resolve(participant_ref)
		sender_key = await self.resolver.normalize(message.sender_id)
		receiver_key = await self.resolver.normalize(message.receiver_id)
		if reactor.key not in (sender_key, receiver_key):
			raise ForbiddenError("Only conversation participants can react", kind="not_in_conversation")
		aliases = await self.resolver.keys_for(participant_ref)
		result = await self.repo.toggle_reaction(message_id, reactor.key, emoji, aliases=aliases)
		if result is None:
			raise MessageNotFound()
		updated, action = result
		obs_metrics.inc_chat_mutation(f"reaction_{action}")
		if action != ACTION_REMOVED and reactor.key != sender_key:
			name = reactor.display_name or "Someone"
			self._side_effect("react", self._notifications.emit_drafts([events.message_reacted(updated, name, emoji)]))
		return updated.reactions, action

	async def mark_read(
		self,
		user_id: Optional[str],
		admin_ref: Optional[str] = None,
		perspective: str = PERSPECTIVE_ADMIN,
	) -> int:
		"""Mark the reader's inbound messages read and clear their notifications.

		The admin perspective reads what the student sent; the user perspective
		reads what the admin sent. Nothing addressed to the other party changes.
		Notification clearing covers every inbound message, not just the ones
		flipped now, and its failures never fail the call.
		"""
		user_ref = require(user_id, "userId")
		perspective = _check_perspective(perspective)
		admin_keys = await self.admin_keys(admin_ref)
		user_keys = await self.resolver.keys_for(user_ref)
		if perspective == PERSPECTIVE_ADMIN:
			sender_keys, receiver_keys = user_keys, admin_keys
			reader = await self.resolver.admin_key()
		else:
			sender_keys, receiver_keys = admin_keys, user_keys
			reader = user_ref
		flipped = await self.repo.mark_read(sender_keys, receiver_keys)
		obs_metrics.inc_chat_read(perspective, len(flipped))
		await self._dispatcher.run("read", self._clear_inbound_notifications(reader, sender_keys, receiver_keys))
		return len(flipped)

	async def _clear_inbound_notifications(
		self, reader: str, sender_keys: FrozenSet[str], receiver_keys: FrozenSet[str]
	) -> None:
		# a detached emit may land after its message was already flipped
		messages = await self.repo.list_between(sender_keys, receiver_keys)
		inbound = [m.message_id for m in messages if m.sender_id in sender_keys]
		if inbound:
			await self._notifications.mark_related_read(reader, inbound)

	async def list_conversation(
		self,
		user_id: Optional[str],
		admin_ref: Optional[str] = None,
		perspective: str = PERSPECTIVE_ADMIN,
	) -> List[Tuple[ChatMessage, bool]]:
		user_ref = require(user_id, "userId")
		perspective = _check_perspective(perspective)
		admin_keys = await self.admin_keys(admin_ref)
		user_keys = await self.resolver.keys_for(user_ref)
		messages = await self.repo.list_between(user_keys, admin_keys)
		return [(message, is_outgoing(message, admin_keys, perspective)) for message in messages]
