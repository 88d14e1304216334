"""FastAPI endpoints for the notification feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.domain import container
from app.domain.notifications.schemas import (
	NotificationDeleteResponse,
	NotificationListResponse,
	NotificationMarkReadRequest,
	NotificationMarkReadResponse,
	NotificationResponse,
	NotificationUnreadResponse,
)
from app.domain.notifications.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications_endpoint(
	user_id: str | None = Query(default=None, alias="userId"),
	service: NotificationService = Depends(container.get_notification_service),
) -> NotificationListResponse:
	items = await service.list(user_id)
	return NotificationListResponse(notifications=[NotificationResponse.from_model(item) for item in items])


@router.get("/unread", response_model=NotificationUnreadResponse)
async def unread_count_endpoint(
	user_id: str | None = Query(default=None, alias="userId"),
	service: NotificationService = Depends(container.get_notification_service),
) -> NotificationUnreadResponse:
	return NotificationUnreadResponse(count=await service.unread_count(user_id))


@router.patch("", response_model=NotificationMarkReadResponse)
async def mark_notifications_endpoint(
	payload: NotificationMarkReadRequest,
	service: NotificationService = Depends(container.get_notification_service),
) -> NotificationMarkReadResponse:
	updated = await service.mark_read(payload.user_id, payload.ids, mark_all=payload.mark_all)
	return NotificationMarkReadResponse(updated_count=updated)


@router.delete("", response_model=NotificationDeleteResponse)
async def delete_notifications_endpoint(
	user_id: str | None = Query(default=None, alias="userId"),
	service: NotificationService = Depends(container.get_notification_service),
) -> NotificationDeleteResponse:
	return NotificationDeleteResponse(deleted_count=await service.delete_all(user_id))
