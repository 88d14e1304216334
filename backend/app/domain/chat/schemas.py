"""Pydantic schemas for the messaging API."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import AttachmentMeta, ChatMessage, Reaction

Perspective = Literal["admin", "user"]


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageAttachment(CamelModel):
	file_name: Optional[str] = None
	file_type: Optional[str] = None
	file_size: Optional[int] = None
	file_data: Optional[str] = None
	mime_type: Optional[str] = None

	@classmethod
	def from_meta(cls, meta: AttachmentMeta) -> "MessageAttachment":
		return cls(
			file_name=meta.file_name,
			file_type=meta.file_type,
			file_size=meta.file_size,
			file_data=meta.file_data,
			mime_type=meta.mime_type,
		)


class ReactionOut(CamelModel):
	user_id: str
	emoji: str

	@classmethod
	def from_model(cls, reaction: Reaction) -> "ReactionOut":
		return cls(user_id=reaction.participant_id, emoji=reaction.emoji)


class SendMessageRequest(CamelModel):
	sender_id: Optional[str] = None
	receiver_id: Optional[str] = None
	sender_name: Optional[str] = None
	sender_initials: Optional[str] = None
	text: Optional[str] = None
	replied_to: Optional[str] = None
	attachments: Optional[List[MessageAttachment]] = None
	perspective: Perspective = "admin"


class EditMessageRequest(CamelModel):
	message_id: Optional[str] = None
	text: Optional[str] = None
	editor_id: Optional[str] = None


class DeleteMessageRequest(CamelModel):
	message_id: Optional[str] = None
	deleter_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("deletedBy", "deleterId", "deleter_id"))
	deleter_name: Optional[str] = Field(
		default=None, validation_alias=AliasChoices("deletedByName", "deleterName", "deleter_name")
	)


class MarkReadRequest(CamelModel):
	user_id: Optional[str] = None
	admin_id: Optional[str] = None
	perspective: Perspective = "admin"


class ReactionRequest(CamelModel):
	message_id: Optional[str] = None
	user_id: Optional[str] = None
	emoji: Optional[str] = None


class MessageResponse(CamelModel):
	id: str
	sender_id: str
	receiver_id: str
	sender_name: str
	sender_initials: str
	sender_profile_picture: Optional[str] = None
	text: str
	timestamp: datetime
	is_outgoing: bool
	read: bool
	replied_to: Optional[str] = None
	reactions: List[ReactionOut] = Field(default_factory=list)
	deleted: bool = False
	deleted_by: Optional[str] = None
	deleted_by_name: Optional[str] = None
	deleted_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	attachments: List[MessageAttachment] = Field(default_factory=list)

	@classmethod
	def from_model(
		cls,
		message: ChatMessage,
		*,
		is_outgoing: bool,
		profile_picture: Optional[str] = None,
	) -> "MessageResponse":
		# Deleted content stays in storage but is never served back
		masked = message.deleted
		return cls(
			id=message.message_id,
			sender_id=message.sender_id,
			receiver_id=message.receiver_id,
			sender_name=message.sender_name,
			sender_initials=message.sender_initials,
			sender_profile_picture=profile_picture,
			text="" if masked else message.body,
			timestamp=message.created_at,
			is_outgoing=is_outgoing,
			read=message.read,
			replied_to=message.replied_to,
			reactions=[ReactionOut.from_model(r) for r in message.reactions],
			deleted=message.deleted,
			deleted_by=message.deleted_by,
			deleted_by_name=message.deleted_by_name,
			deleted_at=message.deleted_at,
			updated_at=message.updated_at,
			attachments=[] if masked else [MessageAttachment.from_meta(a) for a in message.attachments],
		)


class SendMessageResponse(CamelModel):
	ok: bool = True
	message: MessageResponse


class ThreadResponse(CamelModel):
	ok: bool = True
	messages: List[MessageResponse]


class EditMessageResponse(CamelModel):
	ok: bool = True
	id: str
	text: str
	updated_at: Optional[datetime] = None


class DeleteMessageResponse(CamelModel):
	ok: bool = True
	id: str
	deleted: bool = True


class MarkReadResponse(CamelModel):
	ok: bool = True
	updated_count: int


class ReactionResponse(CamelModel):
	ok: bool = True
	reactions: List[ReactionOut]


class UnreadCountsResponse(CamelModel):
	ok: bool = True
	unread_counts: Dict[str, int]


class LatestActivityResponse(CamelModel):
	ok: bool = True
	timestamps: Dict[str, datetime]
