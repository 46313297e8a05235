from .base import CamelModel
from .modules import Alias, Group, Module, ModuleBinding, ModuleInstance, ModuleType
from .permissions import (
    EffectivePermissionEntry,
    Grant,
    GroupGrantMatrix,
    GroupGrantRow,
    PermissionDefinition,
    PermissionItem,
    PermissionSource,
    PermissionSummary,
    PermissionSummaryEntry,
    SourceKind,
    SubjectType,
    UserGrantMatrix,
    UserGrantRow,
)
from .resolve import ResolutionResult, ResolvedRoute, ResolveResponse
from .envelope import ApiEnvelope, ApiError
