"""FastAPI endpoints for announcements."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from app.domain import container
from app.domain.announcements.schemas import (
	AnnouncementListResponse,
	AnnouncementResponse,
	CreateAnnouncementsRequest,
)
from app.domain.announcements.service import AnnouncementService

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("", response_model=AnnouncementListResponse)
async def list_announcements_endpoint(
	limit: int = Query(default=100, ge=1, le=500),
	sort: Literal["asc", "desc"] = Query(default="desc"),
	service: AnnouncementService = Depends(container.get_announcement_service),
) -> AnnouncementListResponse:
	items = await service.list(limit=limit, order=sort)
	return AnnouncementListResponse(announcements=[AnnouncementResponse.from_model(item) for item in items])


@router.post("", response_model=AnnouncementListResponse, status_code=status.HTTP_201_CREATED)
async def create_announcements_endpoint(
	payload: CreateAnnouncementsRequest,
	service: AnnouncementService = Depends(container.get_announcement_service),
) -> AnnouncementListResponse:
	items = [item.model_dump(by_alias=True) for item in payload.announcements or []]
	created = await service.create(items, created_by=payload.created_by, created_by_name=payload.created_by_name)
	return AnnouncementListResponse(announcements=[AnnouncementResponse.from_model(item) for item in created])
