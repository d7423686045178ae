"""
Mark-Mode Submission State Machine.

``INACTIVE`` ⇄ ``ACTIVE`` via :meth:`MarkModeMachine.toggle` only.
While active, a map click becomes a new point in the store followed by
one refresh of the current viewport.  The rendered data is never
patched locally: the new point shows up only once the refresh reads
it back from the store.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Awaitable, Callable

from heatsight.errors import InvalidSubmission, NetworkFailure
from heatsight.schemas.sighting import PointOut
from heatsight.services.store import PointStore
from heatsight.spatial.bounds import validate_coordinates

logger = logging.getLogger(__name__)


class MarkMode(str, enum.Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class MarkModeMachine:
    def __init__(
        self,
        store: PointStore,
        on_submitted: Callable[[PointOut], Awaitable[Any]],
        *,
        anonymous_owner_id: str = "anonymous",
    ) -> None:
        self._store = store
        self._on_submitted = on_submitted
        self.anonymous_owner_id = anonymous_owner_id
        self._state = MarkMode.INACTIVE

    @property
    def state(self) -> MarkMode:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is MarkMode.ACTIVE

    def toggle(self) -> MarkMode:
        self._state = MarkMode.INACTIVE if self.active else MarkMode.ACTIVE
        logger.debug("Mark mode -> %s", self._state.value)
        return self._state

    async def handle_click(
        self,
        lng: float,
        lat: float,
        owner_id: str | None = None,
    ) -> PointOut | None:
        """
        Submit a sighting at ``(lng, lat)`` if mark mode is active.

        Returns the stored point, or ``None`` when the click was ignored
        or the submission failed.  Failures leave the state unchanged.
        """
        if not self.active:
            return None

        owner = owner_id or self.anonymous_owner_id
        try:
            lng, lat = validate_coordinates(lng, lat)
            point = await self._store.insert(lng, lat, owner)
        except InvalidSubmission as exc:
            logger.warning("Rejected sighting: %s", exc)
            return None
        except NetworkFailure as exc:
            logger.error("Failed to save sighting at (%s, %s): %s", lng, lat, exc)
            return None

        logger.info("Saved sighting %s at (%.5f, %.5f)", point.id, lng, lat)
        await self._on_submitted(point)
        return point
