"""
Read-only mappings of the externally-owned module, permission and menu tables.

This service never writes these tables; the administration backend does.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, text
from sqlalchemy.orm import relationship

from .base import Base


class Module(Base):
    __tablename__ = 'tb_modules'

    code = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(50), nullable=False, unique=True)
    description = Column(String(500))
    type = Column(String(20), nullable=False)
    is_enabled = Column(Boolean, nullable=False, server_default=text("true"))

    instances = relationship('ModuleInstance', back_populates='module')
    permissions = relationship('ModulePermission', back_populates='module')


class ModuleInstance(Base):
    __tablename__ = 'tb_module_instances'

    instance_id = Column(String(50), primary_key=True)
    module_code = Column(ForeignKey('tb_modules.code'), nullable=False)
    instance_name = Column(String(100), nullable=False)
    slug = Column(String(50), nullable=False)
    description = Column(String(500))
    sub_path = Column(String(200))
    enabled = Column(Boolean, nullable=False, server_default=text("true"))

    module = relationship('Module', back_populates='instances')


class ModulePermission(Base):
    __tablename__ = 'tb_module_permissions'

    id = Column(String(50), primary_key=True)
    module_code = Column(ForeignKey('tb_modules.code'), nullable=False)
    resource = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)

    module = relationship('Module', back_populates='permissions')


class UserModulePermission(Base):
    __tablename__ = 'tb_user_module_permissions'

    user_id = Column(String(50), primary_key=True, nullable=False)
    module_instance_id = Column(ForeignKey('tb_module_instances.instance_id', ondelete='CASCADE'), primary_key=True, nullable=False)
    module_permission_id = Column(ForeignKey('tb_module_permissions.id', ondelete='CASCADE'), primary_key=True, nullable=False)


class GroupModulePermission(Base):
    __tablename__ = 'tb_group_module_permissions'

    group_id = Column(ForeignKey('tb_groups.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    module_instance_id = Column(ForeignKey('tb_module_instances.instance_id', ondelete='CASCADE'), primary_key=True, nullable=False)
    module_permission_id = Column(ForeignKey('tb_module_permissions.id', ondelete='CASCADE'), primary_key=True, nullable=False)


class Group(Base):
    __tablename__ = 'tb_groups'

    id = Column(String(50), primary_key=True)
    group_code = Column(String(50), nullable=False, unique=True)
    name = Column(String(100), nullable=False)

    members = relationship('GroupMember', back_populates='group')


class GroupMember(Base):
    __tablename__ = 'tb_group_members'

    group_id = Column(ForeignKey('tb_groups.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    user_id = Column(String(50), primary_key=True, nullable=False)

    group = relationship('Group', back_populates='members')


class Menu(Base):
    __tablename__ = 'tb_menus'

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    menu_type = Column(String(20), nullable=False)
    module_instance_id = Column(ForeignKey('tb_module_instances.instance_id'))
    alias_path = Column(String(100), unique=True)
    content_path = Column(String(200))
    sort_order = Column(Integer, nullable=False, server_default=text("0"))
