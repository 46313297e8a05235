"""
Effective permission aggregation.

For one principal and one instance the aggregator returns a list of entries,
each carrying the permissions contributed by exactly one source:

- at most one ``DIRECT`` entry (grants held by the user itself)
- one ``GROUP:<code>`` entry per group with a non-empty grant set, ordered
  by group code

Entries are never merged; a permission granted both directly and through a
group shows up twice. An empty list means no access.
"""

import logging
from typing import Dict, Iterable, List, Optional

from portal_backend.api.exceptions import ServiceUnavailableException
from portal_backend.directory.base import Directory
from portal_backend.interface.modules import Group
from portal_backend.interface.permissions import (
    EffectivePermissionEntry,
    PermissionDefinition,
    PermissionSource,
    SubjectType,
)
from portal_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


async def ordered_groups(directory: Directory, group_ids: Iterable[str]) -> List[Group]:
    """Look up groups and order them by code, then id.

    Ids the directory does not know are kept with the id standing in as code.
    """
    group_ids = sorted(set(group_ids))
    if not group_ids:
        return []

    known = {group.id: group for group in await directory.list_groups(group_ids)}

    groups = []
    for group_id in group_ids:
        group = known.get(group_id)
        if group is None:
            logger.warning(f"Group {group_id} is not known to the directory")
            group = Group(id=group_id, code=group_id)
        groups.append(group)

    return sorted(groups, key=lambda g: (g.code, g.id))


def resolve_definitions(permission_ids: Iterable[str], catalog: Dict[str, PermissionDefinition],
                        context: str = "") -> List[PermissionDefinition]:
    definitions = []
    seen = set()
    for permission_id in permission_ids:
        if permission_id in seen:
            continue
        seen.add(permission_id)

        definition = catalog.get(permission_id)
        if definition is None:
            logger.warning(f"Skipping unknown permission {permission_id} {context}".rstrip())
            continue
        definitions.append(definition)
    return definitions


class PermissionAggregator:

    def __init__(self, directory: Directory):
        self.directory = directory

    async def aggregate(self, principal: Principal, instance_id: str,
                        module_code: Optional[str] = None) -> List[EffectivePermissionEntry]:
        """
        Compute the effective permission entries of ``principal`` on ``instance_id``.

        ``module_code`` selects the permission catalog; it is looked up from the
        instance when omitted.

        Raises:
            ServiceUnavailableException: the grant store could not be read
        """
        if module_code is None:
            binding = await self.directory.lookup_instance(instance_id)
            if binding is None:
                logger.debug(f"Instance {instance_id} not found, no permissions")
                return []
            module_code = binding.module.code

        catalog = {d.id: d for d in await self.directory.list_permission_definitions(module_code)}

        entries: List[EffectivePermissionEntry] = []

        if principal.user_id:
            permission_ids = await self.directory.list_grants(SubjectType.USER, principal.user_id, instance_id)
            entry = self._entry(instance_id, permission_ids, catalog, PermissionSource.direct())
            if entry is not None:
                entries.append(entry)

        for group in await ordered_groups(self.directory, principal.group_ids):
            permission_ids = await self.directory.list_grants(SubjectType.GROUP, group.id, instance_id)
            entry = self._entry(instance_id, permission_ids, catalog, PermissionSource.group(group.code))
            if entry is not None:
                entries.append(entry)

        return entries

    async def aggregate_for_gating(self, principal: Principal, instance_id: str,
                                   module_code: Optional[str] = None) -> List[EffectivePermissionEntry]:
        """Like ``aggregate`` but denies everything when the store is unavailable."""
        try:
            return await self.aggregate(principal, instance_id, module_code)
        except ServiceUnavailableException as e:
            logger.warning(f"Permission store unavailable, denying access to {instance_id}: {e.detail}")
            return []

    def _entry(self, instance_id: str, permission_ids: List[str], catalog: Dict[str, PermissionDefinition],
               source: PermissionSource) -> Optional[EffectivePermissionEntry]:
        definitions = resolve_definitions(permission_ids, catalog, f"granted to {source} on {instance_id}")
        if not definitions:
            return None
        return EffectivePermissionEntry(instance_id=instance_id, permissions=definitions, source=source)


def gate(entries: Iterable[EffectivePermissionEntry], resource: str, action: str) -> bool:
    """True if any entry allows ``action`` on ``resource``."""
    return any(entry.allows(resource, action) for entry in entries)


def has_flat_permission(entries: Iterable[EffectivePermissionEntry], flat_code: str) -> bool:
    flat_code = flat_code.upper()
    return any(p.flat_code == flat_code for entry in entries for p in entry.permissions)


def permission_map(entries: Iterable[EffectivePermissionEntry]) -> Dict[str, List[str]]:
    """Collapse entries into ``{resource: [actions]}`` for frontends gating UI elements."""
    result: Dict[str, List[str]] = {}
    for entry in entries:
        for permission in entry.permissions:
            actions = result.setdefault(permission.resource, [])
            if permission.action not in actions:
                actions.append(permission.action)
    return result
