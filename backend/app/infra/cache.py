"""Process-wide TTL cache for small derived values."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")

_MISSING = object()


class TTLCache(Generic[T]):
	"""Keyed cache whose entries expire ``ttl_seconds`` after being set.

	Built once at startup and handed to the services that need it; nothing
	reaches it through module globals.
	"""

	def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
		self.ttl_seconds = ttl_seconds
		self._clock = clock
		self._entries: Dict[str, Tuple[float, T]] = {}

	def get(self, key: str, default: Any = None) -> Optional[T]:
		entry = self._entries.get(key, _MISSING)
		if entry is _MISSING:
			return default
		expires_at, value = entry  # type: ignore[misc]
		if self._clock() >= expires_at:
			self._entries.pop(key, None)
			return default
		return value

	def set(self, key: str, value: T) -> None:
		self._entries[key] = (self._clock() + self.ttl_seconds, value)

	def invalidate(self, key: str | None = None) -> None:
		if key is None:
			self._entries.clear()
		else:
			self._entries.pop(key, None)

	def __contains__(self, key: str) -> bool:
		return self.get(key, _MISSING) is not _MISSING
