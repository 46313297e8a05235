"""
Administrative permission summaries.

Unlike the aggregator these views span instances and exist to explain where a
permission comes from. A store outage does not raise; the summary comes back
with ``available=False`` and the error message so callers can tell "no
permissions" from "could not check".
"""

import logging
from collections import OrderedDict
from typing import Dict, List

from portal_backend.api.exceptions import NotFoundException, ServiceUnavailableException
from portal_backend.directory.base import Directory
from portal_backend.interface.modules import ModuleBinding
from portal_backend.interface.permissions import (
    Grant,
    GroupGrantMatrix,
    GroupGrantRow,
    PermissionDefinition,
    PermissionItem,
    PermissionSource,
    PermissionSummary,
    PermissionSummaryEntry,
    SubjectType,
    UserGrantMatrix,
    UserGrantRow,
)
from portal_backend.permissions.aggregator import PermissionAggregator, ordered_groups, resolve_definitions
from portal_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


def _summary_entry(binding: ModuleBinding, source: PermissionSource, items: List[PermissionItem]) -> PermissionSummaryEntry:
    return PermissionSummaryEntry(
        instance_id=binding.instance.instance_id,
        instance_name=binding.instance.name,
        instance_slug=binding.instance.slug,
        module_code=binding.module.code,
        module_name=binding.module.name,
        source=source,
        permissions=items,
    )


def _granted_by_subject(grants: List[Grant]) -> Dict[str, List[str]]:
    granted: Dict[str, List[str]] = {}
    for grant in grants:
        permission_ids = granted.setdefault(grant.subject_id, [])
        if grant.permission_id not in permission_ids:
            permission_ids.append(grant.permission_id)
    return granted


class PermissionSummaryService:

    def __init__(self, directory: Directory, aggregator: PermissionAggregator):
        self.directory = directory
        self.aggregator = aggregator

    async def user_summary(self, user_id: str) -> PermissionSummary:
        """Direct grants of the user, then the grants of each of its groups."""
        try:
            grants = await self.directory.list_subject_grants(SubjectType.USER, user_id)
            entries = await self._entries(grants, PermissionSource.direct())

            group_ids = await self.directory.list_user_group_ids(user_id)
            for group in await ordered_groups(self.directory, group_ids):
                grants = await self.directory.list_subject_grants(SubjectType.GROUP, group.id)
                entries.extend(await self._entries(grants, PermissionSource.group(group.code)))

        except ServiceUnavailableException as e:
            logger.warning(f"Permission summary for user {user_id} unavailable: {e.detail}")
            return PermissionSummary(available=False, error=e.detail)

        return PermissionSummary(entries=entries)

    async def group_summary(self, group_id: str) -> PermissionSummary:
        try:
            groups = await self.directory.list_groups([group_id])
            if not groups:
                raise NotFoundException(f"Group {group_id} not found")

            grants = await self.directory.list_subject_grants(SubjectType.GROUP, group_id)
            entries = await self._entries(grants, PermissionSource.group(groups[0].code))

        except ServiceUnavailableException as e:
            logger.warning(f"Permission summary for group {group_id} unavailable: {e.detail}")
            return PermissionSummary(available=False, error=e.detail)

        return PermissionSummary(entries=entries)

    async def instance_summary(self, principal: Principal, instance_id: str) -> PermissionSummary:
        """The principal's effective entries on one instance, with display names."""
        try:
            binding = await self._require_instance(instance_id)
            effective = await self.aggregator.aggregate(principal, instance_id, binding.module.code)

        except ServiceUnavailableException as e:
            logger.warning(f"Permission summary for instance {instance_id} unavailable: {e.detail}")
            return PermissionSummary(available=False, error=e.detail)

        entries = [
            _summary_entry(binding, entry.source, [PermissionItem.from_definition(p) for p in entry.permissions])
            for entry in effective
        ]
        return PermissionSummary(entries=entries)

    async def instance_group_grants(self, instance_id: str) -> GroupGrantMatrix:
        """Every group, with the permission ids it holds on the instance (possibly none)."""
        try:
            await self._require_instance(instance_id)
            grants = await self.directory.list_instance_grants(SubjectType.GROUP, instance_id)
            groups = await self.directory.list_all_groups()

        except ServiceUnavailableException as e:
            logger.warning(f"Group grants on instance {instance_id} unavailable: {e.detail}")
            return GroupGrantMatrix(instance_id=instance_id, available=False, error=e.detail)

        granted = _granted_by_subject(grants)
        rows = [
            GroupGrantRow(group_id=group.id, group_code=group.code, group_name=group.name,
                          granted_permission_ids=granted.get(group.id, []))
            for group in sorted(groups, key=lambda g: (g.code, g.id))
        ]
        return GroupGrantMatrix(instance_id=instance_id, rows=rows)

    async def instance_user_grants(self, instance_id: str) -> UserGrantMatrix:
        """Users with direct grants on the instance, ordered by user id."""
        try:
            await self._require_instance(instance_id)
            grants = await self.directory.list_instance_grants(SubjectType.USER, instance_id)

        except ServiceUnavailableException as e:
            logger.warning(f"User grants on instance {instance_id} unavailable: {e.detail}")
            return UserGrantMatrix(instance_id=instance_id, available=False, error=e.detail)

        rows = [
            UserGrantRow(user_id=user_id, granted_permission_ids=permission_ids)
            for user_id, permission_ids in sorted(_granted_by_subject(grants).items())
        ]
        return UserGrantMatrix(instance_id=instance_id, rows=rows)

    async def module_catalog(self, module_code: str) -> List[PermissionDefinition]:
        return await self.directory.list_permission_definitions(module_code)

    async def _require_instance(self, instance_id: str) -> ModuleBinding:
        binding = await self.directory.lookup_instance(instance_id)
        if binding is None:
            raise NotFoundException(f"Instance {instance_id} not found")
        return binding

    async def _entries(self, grants: List[Grant], source: PermissionSource) -> List[PermissionSummaryEntry]:
        by_instance: "OrderedDict[str, List[str]]" = OrderedDict()
        for grant in grants:
            by_instance.setdefault(grant.instance_id, []).append(grant.permission_id)

        entries = []
        for instance_id, permission_ids in by_instance.items():
            binding = await self.directory.lookup_instance(instance_id)
            if binding is None:
                logger.warning(f"Skipping grants of {source} on unknown instance {instance_id}")
                continue

            catalog = {d.id: d for d in await self.directory.list_permission_definitions(binding.module.code)}
            definitions = resolve_definitions(permission_ids, catalog, f"granted to {source} on {instance_id}")
            if not definitions:
                continue

            entries.append(_summary_entry(binding, source, [PermissionItem.from_definition(d) for d in definitions]))

        return sorted(entries, key=lambda e: (e.module_code, e.instance_slug))
