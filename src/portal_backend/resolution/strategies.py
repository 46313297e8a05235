"""
Path resolution strategies.

A strategy maps ``(segments, directory)`` to a ``ResolvedRoute`` or ``None``.
``first_match`` evaluates an ordered list of strategies and stops at the first
hit. The default order is:

1. ``multi_instance_strategy``: ``/{module}/{instance}/...`` on a MULTI module
2. ``module_or_alias_strategy``: ``/{alias}/...`` first, then ``/{single-module}/...``

A two-segment path whose instance does not exist therefore falls through to
strategy 2 with everything after the first segment kept as sub-path.
"""

import logging
import re
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from portal_backend.directory.base import Directory
from portal_backend.interface.modules import ModuleBinding, ModuleType
from portal_backend.interface.resolve import ResolvedRoute

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
SLUG_MIN_LENGTH = 2
SLUG_MAX_LENGTH = 50

Strategy = Callable[[Sequence[str], Directory], Awaitable[Optional[ResolvedRoute]]]


def is_valid_slug(value: str) -> bool:
    """Lower-case letters, digits and single hyphens, 2 to 50 characters."""
    if not value or not SLUG_MIN_LENGTH <= len(value) <= SLUG_MAX_LENGTH:
        return False
    return SLUG_PATTERN.match(value) is not None


def join_sub_path(prefix: Optional[str], segments: Iterable[str]) -> Optional[str]:
    """Join a configured sub-path with trailing request segments.

    Empty parts are dropped; an empty result is ``None``.
    """
    parts = [part for part in (prefix or "").split("/") if part]
    parts.extend(segment for segment in segments if segment)
    return "/".join(parts) or None


def _usable(binding: Optional[ModuleBinding], module_type: ModuleType) -> bool:
    return (
        binding is not None
        and binding.module.type == module_type
        and binding.module.enabled
        and binding.instance.enabled
    )


async def multi_instance_strategy(segments: Sequence[str], directory: Directory) -> Optional[ResolvedRoute]:
    if len(segments) < 2:
        return None

    module_code, instance_slug = segments[0], segments[1]
    if not is_valid_slug(module_code) or not is_valid_slug(instance_slug):
        return None

    binding = await directory.lookup_module_instance(module_code, instance_slug)
    if not _usable(binding, ModuleType.MULTI):
        return None

    return ResolvedRoute(
        module=binding.module,
        instance=binding.instance,
        sub_path=join_sub_path(binding.instance.sub_path, segments[2:]),
    )


async def _alias_target(directory: Directory, module_code: str, instance_slug: Optional[str]) -> Optional[ModuleBinding]:
    if instance_slug:
        binding = await directory.lookup_module_instance(module_code, instance_slug)
        return binding if _usable(binding, ModuleType.MULTI) else None

    binding = await directory.lookup_single_module(module_code)
    return binding if _usable(binding, ModuleType.SINGLE) else None


async def module_or_alias_strategy(segments: Sequence[str], directory: Directory) -> Optional[ResolvedRoute]:
    head, rest = segments[0], segments[1:]

    alias = await directory.lookup_alias(head)
    if alias is not None:
        binding = await _alias_target(directory, alias.target_module_code, alias.target_instance_slug)
        if binding is not None:
            return ResolvedRoute(
                module=binding.module,
                instance=binding.instance,
                sub_path=join_sub_path(alias.target_sub_path, rest),
            )
        logger.debug(f"Alias {head} points at an unavailable target {alias.target_module_code}")

    if not is_valid_slug(head):
        return None

    binding = await directory.lookup_single_module(head)
    if not _usable(binding, ModuleType.SINGLE):
        return None

    return ResolvedRoute(
        module=binding.module,
        instance=binding.instance,
        sub_path=join_sub_path(None, rest),
    )


DEFAULT_STRATEGIES: Sequence[Strategy] = (
    multi_instance_strategy,
    module_or_alias_strategy,
)


async def first_match(strategies: Iterable[Strategy], segments: Sequence[str], directory: Directory) -> Optional[ResolvedRoute]:
    for strategy in strategies:
        route = await strategy(segments, directory)
        if route is not None:
            logger.debug(f"{strategy.__name__} matched /{'/'.join(segments)}")
            return route
        logger.debug(f"{strategy.__name__} did not match /{'/'.join(segments)}")
    return None
