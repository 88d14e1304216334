"""Announcement domain exports."""

from .models import Announcement
from .service import AnnouncementService

__all__ = ["Announcement", "AnnouncementService"]
