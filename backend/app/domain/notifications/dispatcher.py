"""Detached execution of notification side effects."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Set

from app.domain.common.errors import SideEffectError
from app.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)


class NotificationDispatcher:
	"""Runs side effects as background tasks so the triggering write never waits on them.

	Failures are logged and counted, then dropped. ``drain`` waits for every
	outstanding task and is used on shutdown and in tests.
	"""

	def __init__(self) -> None:
		self._tasks: Set[asyncio.Task] = set()

	@property
	def pending(self) -> int:
		return len(self._tasks)

	def submit(self, label: str, work: Coroutine[Any, Any, Any]) -> asyncio.Task:
		task = asyncio.create_task(self._guard(label, work), name=f"notification:{label}")
		self._tasks.add(task)
		task.add_done_callback(self._forget)
		obs_metrics.set_pending_side_effects(len(self._tasks))
		return task

	async def run(self, label: str, work: Coroutine[Any, Any, Any]) -> None:
		"""Await a side effect inline; failures are logged and counted, never raised."""
		await self._guard(label, work)

	def _forget(self, task: asyncio.Task) -> None:
		self._tasks.discard(task)
		obs_metrics.set_pending_side_effects(len(self._tasks))

	async def _guard(self, label: str, work: Coroutine[Any, Any, Any]) -> None:
		try:
			await work
		except asyncio.CancelledError:
			raise
		except Exception as exc:  # noqa: BLE001 - notifications are best effort
			error = exc if isinstance(exc, SideEffectError) else SideEffectError(str(exc) or None)
			obs_metrics.inc_side_effect_failure(label)
			LOGGER.warning(
				"notification_side_effect_failed",
				extra={"label": label, "kind": error.kind, "error_type": type(exc).__name__},
				exc_info=exc,
			)

	async def drain(self) -> None:
		while self._tasks:
			await asyncio.gather(*list(self._tasks), return_exceptions=True)
