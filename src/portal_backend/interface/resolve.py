from typing import Dict, List, Optional
from pydantic import Field
from portal_backend.interface.base import CamelModel
from portal_backend.interface.modules import Module, ModuleInstance
from portal_backend.interface.permissions import EffectivePermissionEntry, PermissionItem


class ResolvedRoute(CamelModel):
    module: Module
    instance: ModuleInstance
    sub_path: Optional[str] = Field(None, description="None addresses the instance landing view")

    @property
    def module_code(self) -> str:
        return self.module.code

    @property
    def instance_id(self) -> str:
        return self.instance.instance_id


class ResolutionResult(CamelModel):
    route: ResolvedRoute
    permissions: List[EffectivePermissionEntry] = Field(default_factory=list)
    permissions_available: bool = True


# Rendering interface

class RouteView(CamelModel):
    module_code: str
    instance_id: str
    sub_path: Optional[str] = None
    module: Module
    instance: ModuleInstance


class PermissionEntryView(CamelModel):
    instance_id: str
    permissions: List[PermissionItem]
    source: str


class ResolveResponse(CamelModel):
    route: RouteView
    permissions: List[PermissionEntryView]
    permission_map: Dict[str, List[str]]
    permissions_available: bool
