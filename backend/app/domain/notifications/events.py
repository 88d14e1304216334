"""Builders turning chat and announcement events into notification drafts."""

from __future__ import annotations

from typing import Optional

from app.domain.chat.models import ChatMessage

from .models import TYPE_ANNOUNCEMENT, TYPE_MESSAGE, NotificationDraft

NEW_MESSAGE_PREVIEW = 100
SHORT_PREVIEW = 80

BADGE_NEW_MESSAGE = "#10B981"
BADGE_REPLIED = "#8B5CF6"
BADGE_EDITED = "#6366F1"
BADGE_DELETED = "#EF4444"
BADGE_REACTED = "#F59E0B"
BADGE_ANNOUNCEMENT = "#3B82F6"
BADGE_ANNOUNCEMENT_IMPORTANT = "#EF4444"


def preview(text: Optional[str], limit: int) -> str:
	text = text or ""
	if len(text) <= limit:
		return text
	return f"{text[:limit]}..."


def _excerpt(message: ChatMessage, limit: int) -> str:
	if message.body:
		return preview(message.body, limit)
	if message.attachments:
		return "[attachment]"
	return ""


def new_message(message: ChatMessage) -> NotificationDraft:
	name = message.sender_name or "Admin"
	return NotificationDraft(
		recipient=message.receiver_id,
		title="New Message",
		description=f"{name}: {_excerpt(message, NEW_MESSAGE_PREVIEW)}",
		type=TYPE_MESSAGE,
		related_id=message.message_id,
		badge_color=BADGE_NEW_MESSAGE,
	)


def message_replied(original: ChatMessage, reply: ChatMessage, author_name: str) -> NotificationDraft:
	return NotificationDraft(
		recipient=original.sender_id,
		title="Message Replied",
		description=f"{author_name} replied to your message: {_excerpt(reply, SHORT_PREVIEW)}",
		type=TYPE_MESSAGE,
		related_id=reply.message_id,
		badge_color=BADGE_REPLIED,
	)


def message_edited(message: ChatMessage, editor_name: str) -> NotificationDraft:
	return NotificationDraft(
		recipient=message.receiver_id,
		title="Message Edited",
		description=f"{editor_name} edited their message: {preview(message.body, SHORT_PREVIEW)}",
		type=TYPE_MESSAGE,
		related_id=message.message_id,
		badge_color=BADGE_EDITED,
	)


def message_deleted(message: ChatMessage, deleter_name: str) -> NotificationDraft:
	return NotificationDraft(
		recipient=message.sender_id,
		title="Message Deleted",
		description=f"{deleter_name} deleted your message: {_excerpt(message, SHORT_PREVIEW)}",
		type=TYPE_MESSAGE,
		related_id=message.message_id,
		badge_color=BADGE_DELETED,
	)


def message_reacted(message: ChatMessage, reactor_name: str, emoji: str) -> NotificationDraft:
	return NotificationDraft(
		recipient=message.sender_id,
		title="Message Reacted",
		description=f"{reactor_name} reacted {emoji} to your message: {_excerpt(message, SHORT_PREVIEW)}",
		type=TYPE_MESSAGE,
		related_id=message.message_id,
		badge_color=BADGE_REACTED,
	)


def announcement(recipient: str, announcement_id: str, title: str, *, important: bool) -> NotificationDraft:
	return NotificationDraft(
		recipient=recipient,
		title="New Announcement",
		description=f"\U0001F514 Important: {title}" if important else title,
		type=TYPE_ANNOUNCEMENT,
		related_id=announcement_id,
		badge_color=BADGE_ANNOUNCEMENT_IMPORTANT if important else BADGE_ANNOUNCEMENT,
	)
