"""
mannxp.services.watcher — Display-Side Progression Observer
============================================================

What a progress bar does: read the state once when it appears, re-read
whenever the change bus reports XP for its user, and notice when the
level goes up.  ``on_level_up`` never fires for the first read.

Bus handlers are synchronous; the re-read is scheduled as a task on the
running event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from mannxp.engine.bus import ChangeBus
from mannxp.engine.events import XpUpdated
from mannxp.engine.level_curve import ProgressionState
from mannxp.services.progression_service import ProgressionStore

logger = logging.getLogger(__name__)


class ProgressionWatcher:
    """Keeps a fresh :class:`ProgressionState` for one user."""

    def __init__(
        self,
        store: ProgressionStore,
        user_id: str,
        *,
        on_change: Callable[[ProgressionState], None] | None = None,
        on_level_up: Callable[[int, int], None] | None = None,
        bus: ChangeBus | None = None,
    ) -> None:
        self.store = store
        self.user_id = user_id
        self.on_change = on_change
        self.on_level_up = on_level_up
        self.bus = bus if bus is not None else store.bus
        self.state: ProgressionState | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    async def start(self) -> ProgressionState | None:
        """Subscribe to the bus and load the initial state."""
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(self._on_event)
        return await self.refresh()

    def stop(self) -> None:
        """Unsubscribe and cancel any re-read still in flight."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._pending):
            task.cancel()

    async def refresh(self) -> ProgressionState | None:
        state = await self.store.get(self.user_id)
        if state is None:
            return None
        previous = self.state
        self.state = state

        if self.on_change is not None:
            try:
                self.on_change(state)
            except Exception:
                logger.exception("on_change callback failed for %s", self.user_id)

        if previous is not None and state.level > previous.level:
            logger.info(
                "User %s leveled up: %d → %d", self.user_id, previous.level, state.level
            )
            if self.on_level_up is not None:
                try:
                    self.on_level_up(previous.level, state.level)
                except Exception:
                    logger.exception("on_level_up callback failed for %s", self.user_id)
        return state

    async def wait_idle(self) -> None:
        """Wait until every scheduled re-read has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_event(self, event: XpUpdated) -> None:
        if event.user_id != self.user_id:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; skipping refresh for %s", self.user_id)
            return
        task = loop.create_task(self.refresh(), name=f"xp-refresh-{self.user_id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
