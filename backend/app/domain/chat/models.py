"""Domain models for student/admin messaging."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Collection, List, Optional, Tuple

ACTION_ADDED = "added"
ACTION_REMOVED = "removed"
ACTION_REPLACED = "replaced"


@dataclass(slots=True)
class Reaction:
	participant_id: str
	emoji: str


@dataclass(slots=True)
class AttachmentMeta:
	file_name: str
	file_type: str
	file_size: int
	file_data: str
	mime_type: str


@dataclass(slots=True)
class ChatMessage:
	message_id: str
	seq: int
	sender_id: str
	receiver_id: str
	sender_name: str
	sender_initials: str
	body: str
	created_at: datetime
	attachments: Tuple[AttachmentMeta, ...] = ()
	reactions: List[Reaction] = field(default_factory=list)
	replied_to: Optional[str] = None
	read: bool = False
	deleted: bool = False
	deleted_by: Optional[str] = None
	deleted_by_name: Optional[str] = None
	deleted_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None


def toggle_reaction(
	reactions: List[Reaction],
	participant_id: str,
	emoji: str,
	aliases: Collection[str] = (),
) -> Tuple[List[Reaction], str]:
	"""Apply one reaction toggle and report what happened.

	Same emoji again removes the participant's reaction; a different emoji
	replaces it. A participant never holds more than one reaction. Reactions
	stored under any of ``aliases`` belong to the same participant and are
	stored back under ``participant_id``.
	"""
	keys = {participant_id, *aliases}
	existing = next((r for r in reactions if r.participant_id in keys), None)
	others = [r for r in reactions if r.participant_id not in keys]
	if existing is not None and existing.emoji == emoji:
		return others, ACTION_REMOVED
	action = ACTION_REPLACED if existing is not None else ACTION_ADDED
	others.append(Reaction(participant_id=participant_id, emoji=emoji))
	return others, action
