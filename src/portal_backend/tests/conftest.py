"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Ensure portal_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from portal_backend.directory.memory import InMemoryDirectory
from portal_backend.permissions.aggregator import PermissionAggregator
from portal_backend.permissions.principal import Principal
from portal_backend.permissions.summary import PermissionSummaryService
from portal_backend.resolution.facade import ResolutionFacade
from portal_backend.resolution.resolver import PathResolver
from portal_backend.tests.fixtures import SEED, GrantStoreDownDirectory, MockCache, UnavailableDirectory


@pytest.fixture
def directory():
    """In-process directory seeded with pages, boards and groups."""
    return InMemoryDirectory.from_dict(SEED)


@pytest.fixture
def unavailable_directory():
    return UnavailableDirectory()


@pytest.fixture
def grant_store_down_directory():
    return GrantStoreDownDirectory.from_dict(SEED)


@pytest.fixture
def mock_cache():
    return MockCache()


@pytest.fixture
def resolver(directory):
    return PathResolver(directory)


@pytest.fixture
def aggregator(directory):
    return PermissionAggregator(directory)


@pytest.fixture
def facade(directory):
    return ResolutionFacade(PathResolver(directory), PermissionAggregator(directory))


@pytest.fixture
def summary_service(directory):
    return PermissionSummaryService(directory, PermissionAggregator(directory))


@pytest.fixture
def staff():
    return Principal(user_id="bob", group_ids=frozenset({"g-staff"}))
