"""
Viewport Synchronization Controller
===================================
Debounces viewport-change events and decides whether a refresh is
warranted.

Every event restarts a single debounce task.  When the task survives
the full debounce window it compares the latest bounds with the bounds
of the last fetch it actually performed; sub-threshold movement is a
no-op, anything else becomes a refresh.  A window that closes
before the renderer is ready performs no fetch and records nothing.

Once the debounce window has elapsed the task is detached from the
pending slot, so a later event never cancels a fetch that is already
in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from heatsight.spatial.bounds import ViewportBounds

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[ViewportBounds], Awaitable[Any]]


class ViewportController:
    def __init__(
        self,
        refresh: RefreshCallback,
        *,
        debounce_seconds: float = 0.3,
        threshold_deg: float = 0.001,
        ready: Callable[[], bool] = lambda: True,
    ) -> None:
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        if threshold_deg < 0:
            raise ValueError("threshold_deg must be >= 0")

        self._refresh = refresh
        self._ready = ready
        self.debounce_seconds = debounce_seconds
        self.threshold_deg = threshold_deg

        self.current_bounds: ViewportBounds | None = None
        self.last_fetched_bounds: ViewportBounds | None = None

        self._pending: asyncio.Task | None = None
        # Strong references to every debounce / refresh task still running.
        self._tasks: set[asyncio.Task] = set()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def set_current_bounds(self, bounds: ViewportBounds) -> None:
        """Record the visible bounds without scheduling anything."""
        self.current_bounds = bounds

    def on_viewport_change(self, bounds: ViewportBounds) -> None:
        """Record ``bounds`` and (re)start the debounce window."""
        self.current_bounds = bounds

        if self.has_pending:
            self._pending.cancel()

        task = asyncio.get_running_loop().create_task(self._debounce())
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _debounce(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # No longer a timer: from here on this task is an uncancellable fetch.
        self._pending = None
        await self._evaluate()

    async def _evaluate(self) -> None:
        bounds = self.current_bounds
        if bounds is None:
            return
        if not self._ready():
            # Not recorded as fetched: the same viewport must fetch once ready.
            logger.debug("Renderer not ready; deferring fetch for %s", bounds.as_dict())
            return

        last = self.last_fetched_bounds
        if last is not None and bounds.approx_equals(last, self.threshold_deg):
            logger.debug("Viewport moved less than %s°; skipping fetch", self.threshold_deg)
            return

        self.last_fetched_bounds = bounds
        try:
            await self._refresh(bounds)
        except Exception:
            logger.exception("Viewport refresh failed for %s", bounds.as_dict())

    # ── Lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        """Cancel the pending debounce, if any.  In-flight fetches continue."""
        if self.has_pending:
            self._pending.cancel()
        self._pending = None

    async def drain(self) -> None:
        """Wait until every debounce and refresh task has finished."""
        while True:
            running = [t for t in self._tasks if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)
