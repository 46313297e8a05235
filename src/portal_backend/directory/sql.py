import logging
from typing import Callable, Iterable, List, Optional, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker

from portal_backend.api.exceptions import ServiceUnavailableException
from portal_backend.directory.base import Directory
from portal_backend.interface.modules import Alias, Group, Module, ModuleBinding, ModuleInstance, ModuleType
from portal_backend.interface.permissions import Grant, PermissionDefinition, SubjectType
from portal_backend.model import module as tables

logger = logging.getLogger(__name__)

T = TypeVar("T")

MENU_TYPE_MODULE = "MODULE"


def _to_module(row: tables.Module) -> Module:
    return Module(
        code=row.code,
        name=row.name,
        slug=row.slug,
        type=ModuleType(row.type),
        description=row.description,
        enabled=bool(row.is_enabled),
    )


def _to_instance(row: tables.ModuleInstance) -> ModuleInstance:
    return ModuleInstance(
        instance_id=row.instance_id,
        module_code=row.module_code,
        slug=row.slug,
        name=row.instance_name,
        description=row.description,
        sub_path=row.sub_path,
        enabled=bool(row.enabled),
    )


def _to_binding(row: tables.ModuleInstance) -> ModuleBinding:
    return ModuleBinding(module=_to_module(row.module), instance=_to_instance(row))


class SqlDirectory(Directory):
    """Read-only directory over the administration backend's tables.

    Queries run on a worker thread with one session per call.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def _run(self, query: Callable[[Session], T]) -> T:
        def work() -> T:
            with self.session_factory() as db:
                return query(db)

        try:
            return await run_in_threadpool(work)
        except DBAPIError as e:
            logger.warning(f"Directory query failed: {e.__class__.__name__}")
            raise ServiceUnavailableException("Directory database unavailable") from e

    async def lookup_module_instance(self, module_code: str, instance_slug: str) -> Optional[ModuleBinding]:
        def query(db: Session):
            row = (
                db.query(tables.ModuleInstance)
                .filter(tables.ModuleInstance.module_code == module_code)
                .filter(tables.ModuleInstance.slug == instance_slug)
                .first()
            )
            return _to_binding(row) if row is not None else None

        return await self._run(query)

    async def lookup_single_module(self, module_code: str) -> Optional[ModuleBinding]:
        def query(db: Session):
            row = (
                db.query(tables.ModuleInstance)
                .join(tables.Module, tables.Module.code == tables.ModuleInstance.module_code)
                .filter(tables.Module.code == module_code)
                .filter(tables.Module.type == ModuleType.SINGLE.value)
                .first()
            )
            return _to_binding(row) if row is not None else None

        return await self._run(query)

    async def lookup_instance(self, instance_id: str) -> Optional[ModuleBinding]:
        def query(db: Session):
            row = db.get(tables.ModuleInstance, instance_id)
            return _to_binding(row) if row is not None else None

        return await self._run(query)

    async def lookup_alias(self, alias_path: str) -> Optional[Alias]:
        def query(db: Session):
            menu = (
                db.query(tables.Menu)
                .filter(tables.Menu.alias_path == alias_path)
                .filter(tables.Menu.menu_type == MENU_TYPE_MODULE)
                .first()
            )
            if menu is None or menu.module_instance_id is None:
                return None

            instance = db.get(tables.ModuleInstance, menu.module_instance_id)
            if instance is None:
                return None

            is_multi = instance.module.type == ModuleType.MULTI.value
            return Alias(
                alias_path=menu.alias_path,
                target_module_code=instance.module_code,
                target_instance_slug=instance.slug if is_multi else None,
                target_sub_path=menu.content_path,
            )

        return await self._run(query)

    async def list_permission_definitions(self, module_code: str) -> List[PermissionDefinition]:
        def query(db: Session):
            rows = (
                db.query(tables.ModulePermission)
                .filter(tables.ModulePermission.module_code == module_code)
                .order_by(tables.ModulePermission.resource, tables.ModulePermission.action)
                .all()
            )
            return [
                PermissionDefinition(
                    id=row.id,
                    module_code=row.module_code,
                    resource=row.resource,
                    action=row.action,
                    name=row.name,
                )
                for row in rows
            ]

        return await self._run(query)

    def _grant_table(self, subject_type: SubjectType):
        if subject_type == SubjectType.USER:
            return tables.UserModulePermission, tables.UserModulePermission.user_id
        return tables.GroupModulePermission, tables.GroupModulePermission.group_id

    async def list_grants(self, subject_type: SubjectType, subject_id: str, instance_id: str) -> List[str]:
        table, subject_column = self._grant_table(subject_type)

        def query(db: Session):
            rows = (
                db.query(table.module_permission_id)
                .filter(subject_column == subject_id)
                .filter(table.module_instance_id == instance_id)
                .all()
            )
            return [row[0] for row in rows]

        return await self._run(query)

    async def list_subject_grants(self, subject_type: SubjectType, subject_id: str) -> List[Grant]:
        table, subject_column = self._grant_table(subject_type)

        def query(db: Session):
            rows = (
                db.query(table.module_instance_id, table.module_permission_id)
                .filter(subject_column == subject_id)
                .all()
            )
            return [
                Grant(subject_type=subject_type, subject_id=subject_id,
                      instance_id=instance_id, permission_id=permission_id)
                for instance_id, permission_id in rows
            ]

        return await self._run(query)

    async def list_instance_grants(self, subject_type: SubjectType, instance_id: str) -> List[Grant]:
        table, subject_column = self._grant_table(subject_type)

        def query(db: Session):
            rows = (
                db.query(subject_column, table.module_permission_id)
                .filter(table.module_instance_id == instance_id)
                .order_by(subject_column)
                .all()
            )
            return [
                Grant(subject_type=subject_type, subject_id=subject_id,
                      instance_id=instance_id, permission_id=permission_id)
                for subject_id, permission_id in rows
            ]

        return await self._run(query)

    async def list_all_groups(self) -> List[Group]:
        def query(db: Session):
            rows = db.query(tables.Group).order_by(tables.Group.group_code).all()
            return [Group(id=row.id, code=row.group_code, name=row.name) for row in rows]

        return await self._run(query)

    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        group_ids = list(group_ids)
        if not group_ids:
            return []

        def query(db: Session):
            rows = db.query(tables.Group).filter(tables.Group.id.in_(group_ids)).all()
            return [Group(id=row.id, code=row.group_code, name=row.name) for row in rows]

        return await self._run(query)

    async def list_user_group_ids(self, user_id: str) -> List[str]:
        def query(db: Session):
            rows = (
                db.query(tables.GroupMember.group_id)
                .filter(tables.GroupMember.user_id == user_id)
                .order_by(tables.GroupMember.group_id)
                .all()
            )
            return [row[0] for row in rows]

        return await self._run(query)
