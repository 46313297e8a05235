"""
In-process directory for development and tests.

This is the only place in the package that writes module, alias and grant
state, so it validates on write:

- a SINGLE module is provisioned with exactly one instance and accepts no more
- a grant must reference a permission of the instance's own module
"""

import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import yaml

from portal_backend.api.exceptions import BadRequestException, NotFoundException
from portal_backend.directory.base import Directory
from portal_backend.interface.modules import Alias, Group, Module, ModuleBinding, ModuleInstance, ModuleType
from portal_backend.interface.permissions import Grant, PermissionDefinition, SubjectType

logger = logging.getLogger(__name__)

GrantKey = Tuple[SubjectType, str, str, str]


class InMemoryDirectory(Directory):

    def __init__(self):
        self._modules: Dict[str, Module] = {}
        self._instances: Dict[str, ModuleInstance] = {}
        self._aliases: Dict[str, Alias] = {}
        self._permissions: Dict[str, PermissionDefinition] = {}
        self._groups: Dict[str, Group] = {}
        self._memberships: Dict[str, Set[str]] = {}
        self._grants: Dict[GrantKey, Grant] = {}
        self._listeners: List[Callable[[], Any]] = []

    # Mutation listeners

    def add_listener(self, callback: Callable[[], Any]):
        """Register a callback invoked after every mutation (cache invalidation)."""
        self._listeners.append(callback)

    def _changed(self):
        for callback in self._listeners:
            callback()

    # Writes

    def add_module(self, code: str, name: str, type: ModuleType, slug: Optional[str] = None,
                   description: Optional[str] = None, enabled: bool = True,
                   instance_id: Optional[str] = None) -> Module:
        if code in self._modules:
            raise BadRequestException(f"Module {code} already exists")

        module = Module(code=code, name=name, slug=slug or code, type=type,
                        description=description, enabled=enabled)
        self._modules[code] = module

        if module.type == ModuleType.SINGLE:
            instance = ModuleInstance(
                instance_id=instance_id or str(uuid.uuid4()),
                module_code=code,
                slug=module.slug,
                name=name,
                description=description,
            )
            self._instances[instance.instance_id] = instance

        self._changed()
        return module

    def add_instance(self, module_code: str, slug: str, name: str, instance_id: Optional[str] = None,
                     description: Optional[str] = None, sub_path: Optional[str] = None,
                     enabled: bool = True) -> ModuleInstance:
        module = self._require_module(module_code)

        if module.type == ModuleType.SINGLE:
            raise BadRequestException(f"SINGLE module {module_code} cannot have additional instances")

        if self._find_instance(module_code, slug) is not None:
            raise BadRequestException(f"Instance slug {slug} already used in module {module_code}")

        instance = ModuleInstance(
            instance_id=instance_id or str(uuid.uuid4()),
            module_code=module_code,
            slug=slug,
            name=name,
            description=description,
            sub_path=sub_path,
            enabled=enabled,
        )
        self._instances[instance.instance_id] = instance
        self._changed()
        return instance

    def remove_instance(self, instance_id: str):
        instance = self._instances.get(instance_id)
        if instance is None:
            raise NotFoundException(f"Instance {instance_id} not found")
        if self._modules[instance.module_code].type == ModuleType.SINGLE:
            raise BadRequestException("The instance of a SINGLE module cannot be removed")

        del self._instances[instance_id]
        for key in [k for k in self._grants if k[2] == instance_id]:
            del self._grants[key]
        self._changed()

    def add_alias(self, alias_path: str, target_module_code: str, target_sub_path: Optional[str] = None,
                  target_instance_slug: Optional[str] = None) -> Alias:
        self._require_module(target_module_code)
        alias = Alias(
            alias_path=alias_path,
            target_module_code=target_module_code,
            target_instance_slug=target_instance_slug,
            target_sub_path=target_sub_path,
        )
        self._aliases[alias_path] = alias
        self._changed()
        return alias

    def add_permission(self, module_code: str, resource: str, action: str, name: Optional[str] = None,
                       permission_id: Optional[str] = None) -> PermissionDefinition:
        self._require_module(module_code)
        definition = PermissionDefinition(
            id=permission_id or str(uuid.uuid4()),
            module_code=module_code,
            resource=resource,
            action=action,
            name=name or f"{resource} {action}",
        )
        self._permissions[definition.id] = definition
        self._changed()
        return definition

    def add_group(self, code: str, name: Optional[str] = None, group_id: Optional[str] = None) -> Group:
        group = Group(id=group_id or str(uuid.uuid4()), code=code, name=name or code)
        self._groups[group.id] = group
        self._changed()
        return group

    def add_membership(self, user_id: str, group_id: str):
        if group_id not in self._groups:
            raise NotFoundException(f"Group {group_id} not found")
        self._memberships.setdefault(user_id, set()).add(group_id)
        self._changed()

    def remove_membership(self, user_id: str, group_id: str):
        self._memberships.get(user_id, set()).discard(group_id)
        self._changed()

    def grant(self, subject_type: SubjectType, subject_id: str, instance_id: str, permission_id: str) -> Grant:
        instance = self._instances.get(instance_id)
        if instance is None:
            raise NotFoundException(f"Instance {instance_id} not found")

        definition = self._permissions.get(permission_id)
        if definition is None:
            raise NotFoundException(f"Permission {permission_id} not found")

        if definition.module_code != instance.module_code:
            raise BadRequestException(
                f"Permission {permission_id} belongs to module {definition.module_code}, "
                f"instance {instance_id} to module {instance.module_code}"
            )

        grant = Grant(subject_type=subject_type, subject_id=subject_id,
                      instance_id=instance_id, permission_id=permission_id)
        self._grants[(subject_type, subject_id, instance_id, permission_id)] = grant
        self._changed()
        return grant

    def revoke(self, subject_type: SubjectType, subject_id: str, instance_id: str, permission_id: str):
        self._grants.pop((subject_type, subject_id, instance_id, permission_id), None)
        self._changed()

    def set_grants(self, subject_type: SubjectType, subject_id: str, instance_id: str,
                   permission_ids: Iterable[str]):
        """Replace a subject's grants on one instance (permission matrix save)."""
        permission_ids = list(permission_ids)
        for permission_id in permission_ids:
            self._validate_grant_target(instance_id, permission_id)

        for key in [k for k in self._grants if k[:3] == (subject_type, subject_id, instance_id)]:
            del self._grants[key]
        for permission_id in permission_ids:
            self.grant(subject_type, subject_id, instance_id, permission_id)

        logger.info(f"Set {len(permission_ids)} grants for {subject_type.value}:{subject_id} on {instance_id}")

    # Reads

    async def lookup_module_instance(self, module_code: str, instance_slug: str) -> Optional[ModuleBinding]:
        module = self._modules.get(module_code)
        if module is None:
            return None
        instance = self._find_instance(module_code, instance_slug)
        if instance is None:
            return None
        return ModuleBinding(module=module, instance=instance)

    async def lookup_single_module(self, module_code: str) -> Optional[ModuleBinding]:
        module = self._modules.get(module_code)
        if module is None or module.type != ModuleType.SINGLE:
            return None
        instance = next((i for i in self._instances.values() if i.module_code == module_code), None)
        if instance is None:
            return None
        return ModuleBinding(module=module, instance=instance)

    async def lookup_instance(self, instance_id: str) -> Optional[ModuleBinding]:
        instance = self._instances.get(instance_id)
        if instance is None:
            return None
        return ModuleBinding(module=self._modules[instance.module_code], instance=instance)

    async def lookup_alias(self, alias_path: str) -> Optional[Alias]:
        return self._aliases.get(alias_path)

    async def list_permission_definitions(self, module_code: str) -> List[PermissionDefinition]:
        return [p for p in self._permissions.values() if p.module_code == module_code]

    async def list_grants(self, subject_type: SubjectType, subject_id: str, instance_id: str) -> List[str]:
        return [
            grant.permission_id for grant in self._grants.values()
            if grant.subject_type == subject_type
            and grant.subject_id == subject_id
            and grant.instance_id == instance_id
        ]

    async def list_subject_grants(self, subject_type: SubjectType, subject_id: str) -> List[Grant]:
        return [
            grant for grant in self._grants.values()
            if grant.subject_type == subject_type and grant.subject_id == subject_id
        ]

    async def list_instance_grants(self, subject_type: SubjectType, instance_id: str) -> List[Grant]:
        return [
            grant for grant in self._grants.values()
            if grant.subject_type == subject_type and grant.instance_id == instance_id
        ]

    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        return [self._groups[group_id] for group_id in group_ids if group_id in self._groups]

    async def list_all_groups(self) -> List[Group]:
        return list(self._groups.values())

    async def list_user_group_ids(self, user_id: str) -> List[str]:
        return sorted(self._memberships.get(user_id, set()))

    # Helpers

    def _require_module(self, module_code: str) -> Module:
        module = self._modules.get(module_code)
        if module is None:
            raise NotFoundException(f"Module {module_code} not found")
        return module

    def _find_instance(self, module_code: str, slug: str) -> Optional[ModuleInstance]:
        for instance in self._instances.values():
            if instance.module_code == module_code and instance.slug == slug:
                return instance
        return None

    def _validate_grant_target(self, instance_id: str, permission_id: str):
        instance = self._instances.get(instance_id)
        definition = self._permissions.get(permission_id)
        if instance is None or definition is None or definition.module_code != instance.module_code:
            raise BadRequestException(f"Permission {permission_id} cannot be granted on instance {instance_id}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryDirectory":
        """Build a directory from a seed document.

        Permissions, instances and groups are referenced by their ids inside the
        document; modules by code.
        """
        directory = cls()

        for module in data.get("modules", []):
            directory.add_module(
                code=module["code"],
                name=module.get("name", module["code"]),
                type=ModuleType(module.get("type", "MULTI")),
                slug=module.get("slug"),
                description=module.get("description"),
                enabled=module.get("enabled", True),
                instance_id=module.get("instance_id"),
            )
            for permission in module.get("permissions", []):
                directory.add_permission(
                    module["code"],
                    permission["resource"],
                    permission["action"],
                    permission.get("name"),
                    permission_id=permission.get("id"),
                )
            for instance in module.get("instances", []):
                directory.add_instance(
                    module["code"],
                    slug=instance["slug"],
                    name=instance.get("name", instance["slug"]),
                    instance_id=instance.get("id"),
                    description=instance.get("description"),
                    sub_path=instance.get("sub_path"),
                    enabled=instance.get("enabled", True),
                )

        for alias in data.get("aliases", []):
            directory.add_alias(
                alias["path"],
                alias["module"],
                target_sub_path=alias.get("sub_path"),
                target_instance_slug=alias.get("instance"),
            )

        for group in data.get("groups", []):
            created = directory.add_group(group["code"], group.get("name"), group_id=group.get("id"))
            for user_id in group.get("members", []):
                directory.add_membership(user_id, created.id)

        for grant in data.get("grants", []):
            directory.grant(
                SubjectType(grant["subject_type"]),
                grant["subject_id"],
                grant["instance_id"],
                grant["permission_id"],
            )

        return directory

    @classmethod
    def from_yaml(cls, path: str) -> "InMemoryDirectory":
        with open(path, "r") as file:
            data = yaml.safe_load(file) or {}
        logger.info(f"Loaded directory seed from {path}")
        return cls.from_dict(data)
