"""
Latest-request-wins wrapper around the resolution facade.

A caller that resolves a new path while an earlier resolution is still in
flight only ever sees the newest outcome. Each call bumps a generation
counter and cancels the previous task; a call whose generation is no longer
current returns ``None`` instead of a result or an error.
"""

import asyncio
import logging
from typing import Optional, Sequence

from portal_backend.interface.resolve import ResolutionResult
from portal_backend.permissions.principal import Principal
from portal_backend.resolution.facade import ResolutionFacade

logger = logging.getLogger(__name__)


class ResolutionTracker:

    def __init__(self, facade: ResolutionFacade):
        self.facade = facade
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def cancel_pending(self):
        """Cancel the in-flight resolution, if any, and make its result stale."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def resolve(self, segments: Sequence[str], principal: Principal) -> Optional[ResolutionResult]:
        self.cancel_pending()
        generation = self._generation

        task = asyncio.ensure_future(self.facade.resolve_for_principal(list(segments), principal))
        self._task = task

        try:
            result = await task
        except (asyncio.CancelledError, Exception):
            if not self.is_current(generation):
                logger.debug(f"Dropping superseded resolution of /{'/'.join(segments)}")
                return None
            raise

        if not self.is_current(generation):
            logger.debug(f"Dropping superseded resolution of /{'/'.join(segments)}")
            return None

        return result
