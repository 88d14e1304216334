"""Chat domain exports."""

from .query import ConversationQueryService
from .service import MessageService

__all__ = [
	"ConversationQueryService",
	"MessageService",
]
