"""Domain error taxonomy shared by chat, notifications and presence."""

from __future__ import annotations

from fastapi import status


class HandbookError(Exception):
	"""Base class for errors that map to a stable client-facing kind."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	kind: str = "error"
	message: str = "Request failed"

	def __init__(self, message: str | None = None, *, kind: str | None = None) -> None:
		super().__init__(message or self.message)
		if message:
			self.message = message
		if kind:
			self.kind = kind


class ValidationError(HandbookError):
	"""Missing or empty required input; always client-correctable."""

	status_code = status.HTTP_400_BAD_REQUEST
	kind = "validation_error"
	message = "Invalid request"


class NotFoundError(HandbookError):
	status_code = status.HTTP_404_NOT_FOUND
	kind = "not_found"
	message = "Not found"


class ForbiddenError(HandbookError):
	status_code = status.HTTP_403_FORBIDDEN
	kind = "forbidden"
	message = "Forbidden"


class UnavailableError(HandbookError):
	"""Backing store unreachable; safe to retry."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	kind = "unavailable"
	message = "Database connection failed. Please try again later."


class SideEffectError(HandbookError):
	"""Notification side effect failed. Logged by the dispatcher, never surfaced."""

	kind = "side_effect_failed"
	message = "Notification side effect failed"


class EmptyMessage(ValidationError):
	kind = "empty_message"
	message = "Message must have either text or attachments"


class InvalidSender(ValidationError):
	kind = "invalid_sender"
	message = "Invalid sender"


class InvalidReceiver(ValidationError):
	kind = "invalid_receiver"
	message = "Invalid receiver"


class InvalidMessageId(ValidationError):
	kind = "invalid_message_id"
	message = "Invalid message ID"


class ForbiddenConversation(ForbiddenError):
	kind = "forbidden_conversation"
	message = "Users can only message admins"


class MessageNotFound(NotFoundError):
	kind = "message_not_found"
	message = "Message not found"


class ParticipantNotFound(NotFoundError):
	kind = "participant_not_found"
	message = "User not found"


def require(value: str | None, field: str) -> str:
	"""Return the stripped value or raise a ValidationError naming the field."""
	text = (value or "").strip()
	if not text:
		raise ValidationError(f"{field} is required", kind="missing_field")
	return text


__all__ = [
	"EmptyMessage",
	"ForbiddenConversation",
	"ForbiddenError",
	"HandbookError",
	"InvalidMessageId",
	"InvalidReceiver",
	"InvalidSender",
	"MessageNotFound",
	"NotFoundError",
	"ParticipantNotFound",
	"SideEffectError",
	"UnavailableError",
	"ValidationError",
	"require",
]
