from .base import Base, metadata
from .module import (
    Module,
    ModuleInstance,
    ModulePermission,
    UserModulePermission,
    GroupModulePermission,
    Group,
    GroupMember,
    Menu,
)

__all__ = [
    'Base',
    'metadata',
    'Module',
    'ModuleInstance',
    'ModulePermission',
    'UserModulePermission',
    'GroupModulePermission',
    'Group',
    'GroupMember',
    'Menu',
]
