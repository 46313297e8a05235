import logging
from enum import Enum
from typing import Sequence

from portal_backend.api.exceptions import NotFoundException, ServiceUnavailableException
from portal_backend.interface.resolve import ResolutionResult
from portal_backend.permissions.aggregator import PermissionAggregator
from portal_backend.permissions.principal import Principal
from portal_backend.resolution.resolver import PathResolver

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    START = "START"
    RESOLVING_PATH = "RESOLVING_PATH"
    NOT_FOUND = "NOT_FOUND"
    AGGREGATING_PERMISSIONS = "AGGREGATING_PERMISSIONS"
    DONE = "DONE"


class ResolutionFacade:
    """Resolves a path and then aggregates the principal's permissions on the result."""

    def __init__(self, resolver: PathResolver, aggregator: PermissionAggregator):
        self.resolver = resolver
        self.aggregator = aggregator

    async def resolve_for_principal(self, segments: Sequence[str], principal: Principal) -> ResolutionResult:
        """
        Raises:
            NotFoundException: the path did not resolve; permissions are not consulted
            ServiceUnavailableException: the module directory could not be reached

        If only the grant store is unavailable the route is returned with
        ``permissions_available=False`` and no permissions.
        """
        path = "/" + "/".join(segments)
        self._transition(path, ResolutionState.START)

        self._transition(path, ResolutionState.RESOLVING_PATH)
        try:
            route = await self.resolver.resolve(segments)
        except NotFoundException:
            self._transition(path, ResolutionState.NOT_FOUND)
            raise

        self._transition(path, ResolutionState.AGGREGATING_PERMISSIONS)
        try:
            permissions = await self.aggregator.aggregate(principal, route.instance_id, route.module_code)
            available = True
        except ServiceUnavailableException as e:
            logger.warning(f"Permissions for {path} unavailable: {e.detail}")
            permissions = []
            available = False

        self._transition(path, ResolutionState.DONE)
        logger.info(
            f"Resolved {path} to {route.module_code}/{route.instance.slug} "
            f"(sub path: {route.sub_path}, {len(permissions)} permission entries)"
        )

        return ResolutionResult(route=route, permissions=permissions, permissions_available=available)

    def _transition(self, path: str, state: ResolutionState):
        logger.debug(f"{path}: {state.value}")
