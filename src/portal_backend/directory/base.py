"""
Read interfaces over the externally-owned module/permission store.

The resolution core only ever reads through these. Lookups return ``None``
(or an empty list) when nothing matches and raise
``ServiceUnavailableException`` when the store cannot be reached.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from portal_backend.interface.modules import Alias, Group, ModuleBinding
from portal_backend.interface.permissions import Grant, PermissionDefinition, SubjectType


class ModuleDirectory(ABC):

    @abstractmethod
    async def lookup_module_instance(self, module_code: str, instance_slug: str) -> Optional[ModuleBinding]:
        """Find an instance by module code and instance slug."""

    @abstractmethod
    async def lookup_single_module(self, module_code: str) -> Optional[ModuleBinding]:
        """Find a SINGLE module together with its only instance."""

    @abstractmethod
    async def lookup_instance(self, instance_id: str) -> Optional[ModuleBinding]:
        """Find an instance by primary key."""


class AliasTable(ABC):

    @abstractmethod
    async def lookup_alias(self, alias_path: str) -> Optional[Alias]:
        pass


class PermissionCatalog(ABC):

    @abstractmethod
    async def list_permission_definitions(self, module_code: str) -> List[PermissionDefinition]:
        pass


class GrantStore(ABC):

    @abstractmethod
    async def list_grants(self, subject_type: SubjectType, subject_id: str, instance_id: str) -> List[str]:
        """Permission ids granted to a subject on one instance."""

    @abstractmethod
    async def list_subject_grants(self, subject_type: SubjectType, subject_id: str) -> List[Grant]:
        """Every grant held by a subject, across instances."""

    @abstractmethod
    async def list_instance_grants(self, subject_type: SubjectType, instance_id: str) -> List[Grant]:
        """Every grant of one subject type on one instance, across subjects."""


class GroupDirectory(ABC):

    @abstractmethod
    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        pass

    @abstractmethod
    async def list_all_groups(self) -> List[Group]:
        pass

    @abstractmethod
    async def list_user_group_ids(self, user_id: str) -> List[str]:
        pass


class Directory(ModuleDirectory, AliasTable, PermissionCatalog, GrantStore, GroupDirectory):
    """Convenience union implemented by every adapter in this package."""

    async def close(self):
        pass
