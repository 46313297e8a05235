from typing import Annotated
from fastapi import APIRouter, Depends, Request
from portal_backend.api.auth import get_current_principal
from portal_backend.api.exceptions import NotFoundException
from portal_backend.interface.envelope import ApiEnvelope
from portal_backend.interface.permissions import PermissionItem
from portal_backend.interface.resolve import PermissionEntryView, ResolutionResult, ResolveResponse, RouteView
from portal_backend.permissions.aggregator import permission_map
from portal_backend.permissions.principal import Principal
from portal_backend.resolution.facade import ResolutionFacade
from portal_backend.resolution.resolver import split_path

resolve_router = APIRouter()


def get_resolution_facade(request: Request) -> ResolutionFacade:
    return request.app.state.facade


def to_response(result: ResolutionResult) -> ResolveResponse:
    route = result.route
    return ResolveResponse(
        route=RouteView(
            module_code=route.module_code,
            instance_id=route.instance_id,
            sub_path=route.sub_path,
            module=route.module,
            instance=route.instance,
        ),
        permissions=[
            PermissionEntryView(
                instance_id=entry.instance_id,
                permissions=[PermissionItem.from_definition(p) for p in entry.permissions],
                source=entry.source.label,
            )
            for entry in result.permissions
        ],
        permission_map=permission_map(result.permissions),
        permissions_available=result.permissions_available,
    )


@resolve_router.get("/{path:path}", response_model=ApiEnvelope[ResolveResponse])
async def resolve_path(
    path: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    facade: Annotated[ResolutionFacade, Depends(get_resolution_facade)],
):
    """Resolve a content path to its module, instance, sub-path and the caller's permissions."""
    segments = split_path(path)

    if not segments:
        raise NotFoundException("Empty path")

    result = await facade.resolve_for_principal(segments, principal)

    return ApiEnvelope[ResolveResponse].ok(to_response(result))
