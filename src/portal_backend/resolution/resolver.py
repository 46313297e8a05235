from typing import Iterable, List, Sequence
from urllib.parse import unquote

from portal_backend.api.exceptions import NotFoundException
from portal_backend.directory.base import Directory
from portal_backend.interface.resolve import ResolvedRoute
from portal_backend.resolution.strategies import DEFAULT_STRATEGIES, Strategy, first_match


def split_path(path: str) -> List[str]:
    """Split a raw request path into percent-decoded, non-empty segments."""
    return [unquote(part) for part in path.split("/") if part]


class PathResolver:
    """Turns request path segments into a module, instance and sub-path."""

    def __init__(self, directory: Directory, strategies: Iterable[Strategy] = DEFAULT_STRATEGIES):
        self.directory = directory
        self.strategies = tuple(strategies)

    async def resolve(self, segments: Sequence[str]) -> ResolvedRoute:
        """
        Resolve segments using the strategy chain.

        Raises:
            ValueError: segments is empty or contains an empty component
            NotFoundException: no strategy matched
            ServiceUnavailableException: the directory could not be reached
        """
        segments = list(segments)
        if not segments:
            raise ValueError("segments must not be empty")
        if any(not segment for segment in segments):
            raise ValueError("segments must not contain empty components")

        route = await first_match(self.strategies, segments, self.directory)

        if route is None:
            raise NotFoundException(f"No module matches /{'/'.join(segments)}")

        return route
