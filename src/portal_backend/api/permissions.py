from typing import Annotated, List
from fastapi import APIRouter, Depends, Request
from portal_backend.api.auth import get_current_principal
from portal_backend.interface.envelope import ApiEnvelope
from portal_backend.interface.permissions import (
    GroupGrantMatrix,
    PermissionDefinition,
    PermissionSummary,
    UserGrantMatrix,
)
from portal_backend.permissions.principal import Principal
from portal_backend.permissions.summary import PermissionSummaryService

permissions_router = APIRouter()


def get_summary_service(request: Request) -> PermissionSummaryService:
    return request.app.state.summary


@permissions_router.get("/users/{user_id}/summary", response_model=ApiEnvelope[PermissionSummary])
async def get_user_summary(user_id: str, service: Annotated[PermissionSummaryService, Depends(get_summary_service)]):
    return ApiEnvelope[PermissionSummary].ok(await service.user_summary(user_id))


@permissions_router.get("/groups/{group_id}/summary", response_model=ApiEnvelope[PermissionSummary])
async def get_group_summary(group_id: str, service: Annotated[PermissionSummaryService, Depends(get_summary_service)]):
    return ApiEnvelope[PermissionSummary].ok(await service.group_summary(group_id))


@permissions_router.get("/instances/{instance_id}", response_model=ApiEnvelope[PermissionSummary])
async def get_instance_summary(
    instance_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    service: Annotated[PermissionSummaryService, Depends(get_summary_service)],
):
    """Effective permissions of the calling principal on one instance."""
    return ApiEnvelope[PermissionSummary].ok(await service.instance_summary(principal, instance_id))


@permissions_router.get("/instances/{instance_id}/groups", response_model=ApiEnvelope[GroupGrantMatrix])
async def get_instance_group_grants(
    instance_id: str,
    service: Annotated[PermissionSummaryService, Depends(get_summary_service)],
):
    return ApiEnvelope[GroupGrantMatrix].ok(await service.instance_group_grants(instance_id))


@permissions_router.get("/instances/{instance_id}/users", response_model=ApiEnvelope[UserGrantMatrix])
async def get_instance_user_grants(
    instance_id: str,
    service: Annotated[PermissionSummaryService, Depends(get_summary_service)],
):
    return ApiEnvelope[UserGrantMatrix].ok(await service.instance_user_grants(instance_id))


@permissions_router.get("/modules/{module_code}/catalog", response_model=ApiEnvelope[List[PermissionDefinition]])
async def get_module_catalog(
    module_code: str,
    service: Annotated[PermissionSummaryService, Depends(get_summary_service)],
):
    """Permission definitions a module offers for grant matrices."""
    return ApiEnvelope[List[PermissionDefinition]].ok(await service.module_catalog(module_code))
