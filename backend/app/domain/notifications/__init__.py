"""Notification domain exports."""

from .dispatcher import NotificationDispatcher
from .models import Notification, NotificationDraft
from .service import NotificationService

__all__ = [
	"Notification",
	"NotificationDispatcher",
	"NotificationDraft",
	"NotificationService",
]
