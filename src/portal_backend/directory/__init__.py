import logging

from .base import AliasTable, Directory, GrantStore, GroupDirectory, ModuleDirectory, PermissionCatalog
from .cached import CachedDirectory
from .http_client import HttpDirectory
from .memory import InMemoryDirectory

logger = logging.getLogger(__name__)


async def build_directory(settings) -> Directory:
    """Create the directory configured by ``settings``, wrapped in a cache when enabled."""

    if settings.DIRECTORY_BACKEND == "memory":
        if settings.DIRECTORY_SEED_FILE:
            directory = InMemoryDirectory.from_yaml(settings.DIRECTORY_SEED_FILE)
        else:
            directory = InMemoryDirectory()
    elif settings.DIRECTORY_BACKEND == "database":
        from portal_backend.database import get_session_factory
        from .sql import SqlDirectory
        directory = SqlDirectory(get_session_factory())
    elif settings.DIRECTORY_BACKEND == "http":
        directory = HttpDirectory(settings.DIRECTORY_API_URL, timeout=settings.DIRECTORY_API_TIMEOUT)
    else:
        raise ValueError(f"Unknown directory backend: {settings.DIRECTORY_BACKEND}")

    logger.info(f"Using {settings.DIRECTORY_BACKEND} directory")

    if settings.DIRECTORY_CACHE_TTL <= 0:
        return directory

    # Only a store that reports its own writes can keep the cache consistent.
    if not isinstance(directory, InMemoryDirectory):
        logger.warning(
            f"DIRECTORY_CACHE_TTL ignored: the {settings.DIRECTORY_BACKEND} directory "
            f"does not report changes, lookups will not be cached"
        )
        return directory

    from portal_backend.redis_cache import get_cache_client

    cached = CachedDirectory(
        directory,
        await get_cache_client(settings.DIRECTORY_CACHE_BACKEND),
        ttl_seconds=settings.DIRECTORY_CACHE_TTL,
    )
    directory.add_listener(cached.invalidate)
    return cached


__all__ = [
    "AliasTable",
    "CachedDirectory",
    "Directory",
    "GrantStore",
    "GroupDirectory",
    "HttpDirectory",
    "InMemoryDirectory",
    "ModuleDirectory",
    "PermissionCatalog",
    "build_directory",
]
