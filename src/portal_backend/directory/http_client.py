import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from portal_backend.api.exceptions import ServiceUnavailableException
from portal_backend.directory.base import Directory
from portal_backend.interface.envelope import ApiEnvelope
from portal_backend.interface.modules import Alias, Group, ModuleBinding
from portal_backend.interface.permissions import Grant, PermissionDefinition, SubjectType

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)
Params = Union[Dict[str, Any], Sequence[Tuple[str, str]]]


def _segment(value: str) -> str:
    return quote(value, safe="")


def _as_list(data: Any) -> List[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")
    return data


class HttpDirectory(Directory):
    """Directory backed by the external backend's REST API.

    Every response is a ``{success, data, error}`` envelope. A non-success
    envelope or a 4xx status reads as "not found"; transport failures and 5xx
    statuses raise ``ServiceUnavailableException``.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, headers: Optional[Dict[str, str]] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout, headers=headers)

    async def close(self):
        await self.client.aclose()

    async def _get(self, url: str, params: Optional[Params] = None) -> Any:
        try:
            response = await self.client.get(url, params=params)
        except httpx.TransportError as e:
            logger.warning(f"Directory request {url} failed: {e}")
            raise ServiceUnavailableException(f"Directory unreachable: {e.__class__.__name__}") from e

        if response.status_code >= 500:
            logger.warning(f"Directory request {url} returned {response.status_code}")
            raise ServiceUnavailableException(f"Directory returned {response.status_code}")

        try:
            envelope = ApiEnvelope[Any].model_validate(response.json())
        except (ValueError, ValidationError) as e:
            if response.is_error:
                return None
            logger.warning(f"Directory request {url} returned a malformed envelope: {e}")
            raise ServiceUnavailableException("Malformed directory response") from e

        if not envelope.success or response.is_error:
            if envelope.error is not None:
                logger.debug(f"Directory request {url}: {envelope.error.code} {envelope.error.message}")
            return None

        return envelope.data

    def _parse(self, url: str, build: Callable[[], T]) -> T:
        try:
            return build()
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Directory request {url} returned unexpected data: {e}")
            raise ServiceUnavailableException("Malformed directory response") from e

    async def _get_one(self, url: str, model: Type[M]) -> Optional[M]:
        data = await self._get(url)
        if not data:
            return None
        return self._parse(url, lambda: model.model_validate(data))

    async def _get_many(self, url: str, model: Type[M], params: Optional[Params] = None) -> List[M]:
        data = await self._get(url, params=params)
        return self._parse(url, lambda: [model.model_validate(item) for item in _as_list(data)])

    async def _get_ids(self, url: str, params: Optional[Params] = None) -> List[str]:
        data = await self._get(url, params=params)
        return self._parse(url, lambda: [str(value) for value in _as_list(data)])

    async def lookup_module_instance(self, module_code: str, instance_slug: str) -> Optional[ModuleBinding]:
        return await self._get_one(
            f"/modules/{_segment(module_code)}/instances/by-slug/{_segment(instance_slug)}", ModuleBinding
        )

    async def lookup_single_module(self, module_code: str) -> Optional[ModuleBinding]:
        return await self._get_one(f"/modules/{_segment(module_code)}/single", ModuleBinding)

    async def lookup_instance(self, instance_id: str) -> Optional[ModuleBinding]:
        return await self._get_one(f"/instances/{_segment(instance_id)}", ModuleBinding)

    async def lookup_alias(self, alias_path: str) -> Optional[Alias]:
        return await self._get_one(f"/menus/aliases/{_segment(alias_path)}", Alias)

    async def list_permission_definitions(self, module_code: str) -> List[PermissionDefinition]:
        return await self._get_many(f"/modules/{_segment(module_code)}/permissions", PermissionDefinition)

    async def list_grants(self, subject_type: SubjectType, subject_id: str, instance_id: str) -> List[str]:
        return await self._get_ids("/grants", params={
            "subjectType": subject_type.value,
            "subjectId": subject_id,
            "instanceId": instance_id,
        })

    async def list_subject_grants(self, subject_type: SubjectType, subject_id: str) -> List[Grant]:
        return await self._get_many(f"/grants/{subject_type.value}/{_segment(subject_id)}", Grant)

    async def list_instance_grants(self, subject_type: SubjectType, instance_id: str) -> List[Grant]:
        return await self._get_many(f"/instances/{_segment(instance_id)}/grants/{subject_type.value}", Grant)

    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        group_ids = list(group_ids)
        if not group_ids:
            return []
        return await self._get_many("/groups", Group, params=[("ids", group_id) for group_id in group_ids])

    async def list_all_groups(self) -> List[Group]:
        return await self._get_many("/groups", Group)

    async def list_user_group_ids(self, user_id: str) -> List[str]:
        return await self._get_ids(f"/users/{_segment(user_id)}/groups")
