"""FastAPI endpoints for presence and the chat user listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.domain import container
from app.domain.presence.schemas import (
	ChatUserListResponse,
	ChatUserResponse,
	PresenceRequest,
	PresenceResponse,
)
from app.domain.presence.tracker import PresenceTracker

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/presence", response_model=PresenceResponse)
async def touch_presence_endpoint(
	payload: PresenceRequest,
	tracker: PresenceTracker = Depends(container.get_presence_tracker),
) -> PresenceResponse:
	return PresenceResponse(last_active=await tracker.touch(payload.user_id))


@router.get("/chat", response_model=ChatUserListResponse)
async def chat_users_endpoint(
	tracker: PresenceTracker = Depends(container.get_presence_tracker),
) -> ChatUserListResponse:
	users = await tracker.list_chat_users()
	return ChatUserListResponse(users=[ChatUserResponse.from_model(user) for user in users])
