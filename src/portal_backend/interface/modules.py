from enum import Enum
from typing import Optional
from pydantic import Field
from portal_backend.interface.base import CamelModel


class ModuleType(str, Enum):
    SINGLE = "SINGLE"
    MULTI = "MULTI"


class Module(CamelModel):
    code: str = Field(description="Stable module code, e.g. board")
    name: str = Field(description="Display name")
    slug: str = Field(description="URL slug of the module")
    type: ModuleType = Field(description="SINGLE modules own exactly one instance")
    description: Optional[str] = None
    enabled: bool = True


class ModuleInstance(CamelModel):
    instance_id: str = Field(description="Instance primary key")
    module_code: str = Field(description="Code of the owning module")
    slug: str = Field(description="Slug, unique within the module")
    name: str
    description: Optional[str] = None
    sub_path: Optional[str] = Field(None, description="Configured default sub-path of the instance")
    enabled: bool = True


class ModuleBinding(CamelModel):
    """A module together with one of its instances."""
    module: Module
    instance: ModuleInstance


class Alias(CamelModel):
    alias_path: str = Field(description="Short user-facing path, e.g. about")
    target_module_code: str
    target_instance_slug: Optional[str] = Field(None, description="Target instance of a MULTI module; None targets the SINGLE instance")
    target_sub_path: Optional[str] = None


class Group(CamelModel):
    id: str
    code: str
    name: Optional[str] = None
