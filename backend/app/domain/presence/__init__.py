"""Presence domain exports."""

from .tracker import ChatUser, PresenceTracker

__all__ = ["ChatUser", "PresenceTracker"]
