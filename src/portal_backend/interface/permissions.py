from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from portal_backend.interface.base import CamelModel


class SubjectType(str, Enum):
    USER = "USER"
    GROUP = "GROUP"


class PermissionDefinition(CamelModel):
    id: str
    module_code: str
    resource: str = Field(description="Resource code, e.g. post")
    action: str = Field(description="Action code, e.g. write")
    name: str = Field(description="Display name")
    flat_code: Optional[str] = Field(None, description="MODULE_RESOURCE_ACTION, upper-cased")

    @model_validator(mode='after')
    def set_flat_code(self):
        if not self.flat_code:
            self.flat_code = f"{self.module_code}_{self.resource}_{self.action}".upper()
        return self

    def matches(self, resource: str, action: str) -> bool:
        return self.resource == resource and self.action == action


class Grant(CamelModel):
    subject_type: SubjectType
    subject_id: str
    instance_id: str
    permission_id: str


class SourceKind(str, Enum):
    DIRECT = "DIRECT"
    GROUP = "GROUP"


class PermissionSource(BaseModel):
    """Provenance of an aggregated permission entry.

    A tagged value rather than a prefixed string, so group codes containing
    ``:`` stay unambiguous. The ``DIRECT`` / ``GROUP:<code>`` label is only
    produced at the wire boundary.
    """
    model_config = ConfigDict(frozen=True)

    kind: SourceKind
    group_code: Optional[str] = None

    @model_validator(mode='after')
    def check_group_code(self):
        if self.kind == SourceKind.GROUP and not self.group_code:
            raise ValueError("group sources require a group code")
        if self.kind == SourceKind.DIRECT and self.group_code is not None:
            raise ValueError("direct sources carry no group code")
        return self

    @classmethod
    def direct(cls) -> "PermissionSource":
        return cls(kind=SourceKind.DIRECT)

    @classmethod
    def group(cls, code: str) -> "PermissionSource":
        return cls(kind=SourceKind.GROUP, group_code=code)

    @classmethod
    def parse(cls, label: str) -> "PermissionSource":
        if label == SourceKind.DIRECT.value:
            return cls.direct()
        kind, _, code = label.partition(":")
        if kind != SourceKind.GROUP.value or not code:
            raise ValueError(f"invalid permission source: {label}")
        return cls.group(code)

    @property
    def is_direct(self) -> bool:
        return self.kind == SourceKind.DIRECT

    @property
    def label(self) -> str:
        if self.is_direct:
            return SourceKind.DIRECT.value
        return f"{SourceKind.GROUP.value}:{self.group_code}"

    def __str__(self) -> str:
        return self.label


def _coerce_source(value: Any) -> Any:
    if isinstance(value, str):
        return PermissionSource.parse(value)
    return value


class EffectivePermissionEntry(CamelModel):
    instance_id: str
    permissions: List[PermissionDefinition] = Field(default_factory=list)
    source: PermissionSource

    @field_validator('source', mode='before')
    @classmethod
    def coerce_source(cls, value: Any) -> Any:
        return _coerce_source(value)

    @field_serializer('source')
    def serialize_source(self, source: PermissionSource) -> str:
        return source.label

    def allows(self, resource: str, action: str) -> bool:
        return any(p.matches(resource, action) for p in self.permissions)


class PermissionItem(CamelModel):
    resource: str
    action: str
    name: str

    @classmethod
    def from_definition(cls, definition: PermissionDefinition) -> "PermissionItem":
        return cls(resource=definition.resource, action=definition.action, name=definition.name)


class PermissionSummaryEntry(CamelModel):
    instance_id: str
    instance_name: str
    instance_slug: str
    module_code: str
    module_name: str
    source: PermissionSource
    permissions: List[PermissionItem] = Field(default_factory=list)

    @field_validator('source', mode='before')
    @classmethod
    def coerce_source(cls, value: Any) -> Any:
        return _coerce_source(value)

    @field_serializer('source')
    def serialize_source(self, source: PermissionSource) -> str:
        return source.label


class PermissionSummary(CamelModel):
    """Administrative provenance view; ``available`` is False when the store could not be read."""
    entries: List[PermissionSummaryEntry] = Field(default_factory=list)
    available: bool = True
    error: Optional[str] = None


class GroupGrantRow(CamelModel):
    group_id: str
    group_code: str
    group_name: Optional[str] = None
    granted_permission_ids: List[str] = Field(default_factory=list)


class UserGrantRow(CamelModel):
    user_id: str
    granted_permission_ids: List[str] = Field(default_factory=list)


class GroupGrantMatrix(CamelModel):
    """Every group with the permission ids it holds on one instance."""
    instance_id: str
    rows: List[GroupGrantRow] = Field(default_factory=list)
    available: bool = True
    error: Optional[str] = None


class UserGrantMatrix(CamelModel):
    """Users holding direct grants on one instance."""
    instance_id: str
    rows: List[UserGrantRow] = Field(default_factory=list)
    available: bool = True
    error: Optional[str] = None
