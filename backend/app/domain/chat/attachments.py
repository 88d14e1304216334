"""Attachment helpers for chat messages."""

from __future__ import annotations

from typing import Iterable, List, Mapping

from app.domain.common.errors import ValidationError
from app.settings import settings

from .models import AttachmentMeta

_DEFAULT_TYPE = "application/octet-stream"


def _field(entry: Mapping[str, object], camel: str, snake: str) -> object:
	value = entry.get(camel)
	return value if value is not None else entry.get(snake)


def payload_size(file_data: str) -> int:
	"""Decoded byte length of a base64 payload, with or without a data: prefix."""
	data = file_data.split(",", 1)[1] if file_data.startswith("data:") else file_data
	data = data.strip()
	padding = len(data) - len(data.rstrip("="))
	return max(0, (len(data) * 3) // 4 - padding)


def normalize_attachments(items: Iterable[Mapping[str, object]] | None) -> List[AttachmentMeta]:
	"""Validate and normalise attachment payloads sent by clients.

	Each attachment may include:
	- fileName (defaults to "file")
	- fileType (defaults to application/octet-stream)
	- fileSize (defaults to 0)
	- fileData (required, base64 encoded)
	- mimeType (defaults to fileType)
	"""

	normalized: List[AttachmentMeta] = []
	if not items:
		return normalized
	entries = list(items)
	if len(entries) > settings.chat_attachment_max_count:
		raise ValidationError(
			f"At most {settings.chat_attachment_max_count} attachments are allowed",
			kind="too_many_attachments",
		)
	for entry in entries:
		file_data = str(_field(entry, "fileData", "file_data") or "")
		if not file_data:
			raise ValidationError("Attachment fileData is required", kind="invalid_attachment")
		if payload_size(file_data) > settings.chat_attachment_max_bytes:
			raise ValidationError("Attachment is too large", kind="attachment_too_large")
		file_type = str(_field(entry, "fileType", "file_type") or _DEFAULT_TYPE)
		try:
			file_size = int(_field(entry, "fileSize", "file_size") or 0)
		except (TypeError, ValueError) as exc:
			raise ValidationError("Attachment fileSize must be a number", kind="invalid_attachment") from exc
		normalized.append(
			AttachmentMeta(
				file_name=str(_field(entry, "fileName", "file_name") or "file"),
				file_type=file_type,
				file_size=file_size,
				file_data=file_data,
				mime_type=str(_field(entry, "mimeType", "mime_type") or file_type),
			)
		)
	return normalized
