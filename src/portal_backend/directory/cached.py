"""
Caching decorator for a Directory.

Only structural lookups are cached (modules, instances, aliases and the
permission catalog). Grants and group data always go to the wrapped
directory. Every mutation of the underlying state must be followed by
``invalidate()``. Cache keys carry a generation number kept in the cache
itself, so every process sharing the cache stops reading earlier entries
once any of them bumps it.
"""

import hashlib
import json
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

from portal_backend.directory.base import Directory
from portal_backend.interface.modules import Alias, Group, ModuleBinding
from portal_backend.interface.permissions import Grant, PermissionDefinition, SubjectType

logger = logging.getLogger(__name__)


class CachedDirectory(Directory):

    def __init__(self, inner: Directory, cache: Any, ttl_seconds: int = 60, namespace: str = "directory"):
        """
        Args:
            inner: Directory that owns the data
            cache: aiocache-compatible client (async get/set/increment/clear)
            ttl_seconds: Time to live for cache entries in seconds
        """
        self.inner = inner
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace
        self._generation = 0
        self._pending_bumps = 0

    @property
    def generation(self) -> int:
        """Number of invalidations requested through this instance."""
        return self._generation

    @property
    def generation_key(self) -> str:
        return f"{self.namespace}:generation"

    def invalidate(self):
        # Writes are synchronous; the shared counter is bumped before the next read.
        self._generation += 1
        self._pending_bumps += 1
        logger.info(f"Directory cache invalidated (generation {self._generation})")

    async def shared_generation(self) -> Optional[int]:
        """Generation stored in the cache, or None while the cache cannot be trusted."""
        try:
            while self._pending_bumps:
                await self.cache.increment(self.generation_key)
                self._pending_bumps -= 1
            value = await self.cache.get(self.generation_key)
        except Exception as e:
            logger.warning(f"Directory cache generation unavailable: {e}")
            return None
        return int(value) if value is not None else 0

    async def clear(self):
        """Invalidate and drop the stored entries as well."""
        self.invalidate()
        try:
            await self.cache.clear(namespace=self.namespace)
        except Exception as e:
            logger.warning(f"Failed to clear directory cache: {e}")

    async def close(self):
        await self.inner.close()

    def _generate_key(self, generation: int, parts: Tuple[str, ...]) -> str:
        key_string = ":".join(parts)
        return f"{self.namespace}:{generation}:{hashlib.md5(key_string.encode()).hexdigest()}"

    async def _cached(self, parts: Tuple[str, ...], loader: Callable[[], Awaitable[Any]],
                      dump: Callable[[Any], Any], load: Callable[[Any], Any]) -> Any:
        generation = await self.shared_generation()
        if generation is None:
            return await loader()

        key = self._generate_key(generation, parts)

        try:
            cached_value = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Directory cache error: {e}")
            cached_value = None

        if cached_value is not None:
            logger.debug(f"Directory cache hit for {key}")
            return load(json.loads(cached_value))

        value = await loader()

        try:
            await self.cache.set(key, json.dumps(dump(value)), ttl=self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Failed to cache {key}: {e}")

        return value

    async def _cached_binding(self, parts: Tuple[str, ...], loader) -> Optional[ModuleBinding]:
        return await self._cached(
            parts, loader,
            dump=lambda value: value.model_dump(mode="json") if value is not None else None,
            load=lambda data: ModuleBinding.model_validate(data) if data is not None else None,
        )

    async def lookup_module_instance(self, module_code: str, instance_slug: str) -> Optional[ModuleBinding]:
        return await self._cached_binding(
            ("instance-by-slug", module_code, instance_slug),
            lambda: self.inner.lookup_module_instance(module_code, instance_slug),
        )

    async def lookup_single_module(self, module_code: str) -> Optional[ModuleBinding]:
        return await self._cached_binding(
            ("single", module_code),
            lambda: self.inner.lookup_single_module(module_code),
        )

    async def lookup_instance(self, instance_id: str) -> Optional[ModuleBinding]:
        return await self._cached_binding(
            ("instance", instance_id),
            lambda: self.inner.lookup_instance(instance_id),
        )

    async def lookup_alias(self, alias_path: str) -> Optional[Alias]:
        return await self._cached(
            ("alias", alias_path),
            lambda: self.inner.lookup_alias(alias_path),
            dump=lambda value: value.model_dump(mode="json") if value is not None else None,
            load=lambda data: Alias.model_validate(data) if data is not None else None,
        )

    async def list_permission_definitions(self, module_code: str) -> List[PermissionDefinition]:
        return await self._cached(
            ("catalog", module_code),
            lambda: self.inner.list_permission_definitions(module_code),
            dump=lambda value: [item.model_dump(mode="json") for item in value],
            load=lambda data: [PermissionDefinition.model_validate(item) for item in data],
        )

    async def list_grants(self, subject_type: SubjectType, subject_id: str, instance_id: str) -> List[str]:
        return await self.inner.list_grants(subject_type, subject_id, instance_id)

    async def list_subject_grants(self, subject_type: SubjectType, subject_id: str) -> List[Grant]:
        return await self.inner.list_subject_grants(subject_type, subject_id)

    async def list_instance_grants(self, subject_type: SubjectType, instance_id: str) -> List[Grant]:
        return await self.inner.list_instance_grants(subject_type, instance_id)

    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        return await self.inner.list_groups(group_ids)

    async def list_all_groups(self) -> List[Group]:
        return await self.inner.list_all_groups()

    async def list_user_group_ids(self, user_id: str) -> List[str]:
        return await self.inner.list_user_group_ids(user_id)
