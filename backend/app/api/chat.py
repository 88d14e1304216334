"""FastAPI endpoints for student/admin messaging."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.domain import container
from app.domain.chat.query import ConversationQueryService
from app.domain.chat.schemas import (
	DeleteMessageRequest,
	DeleteMessageResponse,
	EditMessageRequest,
	EditMessageResponse,
	LatestActivityResponse,
	MarkReadRequest,
	MarkReadResponse,
	MessageResponse,
	Perspective,
	ReactionOut,
	ReactionRequest,
	ReactionResponse,
	SendMessageRequest,
	SendMessageResponse,
	ThreadResponse,
	UnreadCountsResponse,
)
from app.domain.chat.service import MessageService, is_outgoing

router = APIRouter(prefix="/messages", tags=["chat"])


@router.get("", response_model=ThreadResponse)
async def get_thread_endpoint(
	user_id: str | None = Query(default=None, alias="userId"),
	admin_id: str | None = Query(default=None, alias="adminId"),
	perspective: Perspective = Query(default="user"),
	queries: ConversationQueryService = Depends(container.get_query_service),
) -> ThreadResponse:
	messages = await queries.get_thread(user_id, admin_id, perspective)
	return ThreadResponse(messages=messages)


@router.post("", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
	payload: SendMessageRequest,
	service: MessageService = Depends(container.get_message_service),
) -> SendMessageResponse:
	# no store reads after the message is written
	admin_keys = await service.admin_keys()
	items = [item.model_dump(by_alias=True) for item in payload.attachments or []]
	message = await service.send(
		payload.sender_id,
		payload.receiver_id,
		payload.text,
		attachment_items=items,
		replied_to=payload.replied_to,
		sender_name=payload.sender_name,
		sender_initials=payload.sender_initials,
	)
	outgoing = is_outgoing(message, admin_keys, payload.perspective)
	return SendMessageResponse(message=MessageResponse.from_model(message, is_outgoing=outgoing))


@router.put("", response_model=EditMessageResponse)
async def edit_message_endpoint(
	payload: EditMessageRequest,
	service: MessageService = Depends(container.get_message_service),
) -> EditMessageResponse:
	message = await service.edit(payload.message_id, payload.text, editor_id=payload.editor_id)
	return EditMessageResponse(id=message.message_id, text=message.body, updated_at=message.updated_at)


@router.delete("", response_model=DeleteMessageResponse)
async def delete_message_endpoint(
	payload: DeleteMessageRequest,
	service: MessageService = Depends(container.get_message_service),
) -> DeleteMessageResponse:
	message = await service.soft_delete(payload.message_id, payload.deleter_id, payload.deleter_name)
	return DeleteMessageResponse(id=message.message_id, deleted=message.deleted)


@router.patch("", response_model=MarkReadResponse)
async def mark_read_endpoint(
	payload: MarkReadRequest,
	service: MessageService = Depends(container.get_message_service),
) -> MarkReadResponse:
	updated = await service.mark_read(payload.user_id, payload.admin_id, payload.perspective)
	return MarkReadResponse(updated_count=updated)


@router.post("/reactions", response_model=ReactionResponse)
async def react_endpoint(
	payload: ReactionRequest,
	service: MessageService = Depends(container.get_message_service),
) -> ReactionResponse:
	reactions, _ = await service.react(payload.message_id, payload.user_id, payload.emoji)
	return ReactionResponse(reactions=[ReactionOut.from_model(r) for r in reactions])


@router.get("/unread", response_model=UnreadCountsResponse)
async def unread_counts_endpoint(
	admin_id: str | None = Query(default=None, alias="adminId"),
	queries: ConversationQueryService = Depends(container.get_query_service),
) -> UnreadCountsResponse:
	return UnreadCountsResponse(unread_counts=await queries.unread_counts(admin_id))


@router.get("/latest", response_model=LatestActivityResponse)
async def latest_activity_endpoint(
	admin_id: str | None = Query(default=None, alias="adminId"),
	queries: ConversationQueryService = Depends(container.get_query_service),
) -> LatestActivityResponse:
	return LatestActivityResponse(timestamps=await queries.latest_activity(admin_id))
