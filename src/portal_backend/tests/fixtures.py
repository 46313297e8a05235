"""
Test fixtures for the test suite.

Seed data for the in-process directory and stand-ins for unavailable stores.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal_backend.api.exceptions import ServiceUnavailableException
from portal_backend.directory.base import Directory
from portal_backend.directory.memory import InMemoryDirectory
from portal_backend.model.base import Base


SEED = {
    "modules": [
        {
            "code": "page",
            "name": "Pages",
            "type": "SINGLE",
            "instance_id": "inst-page",
            "permissions": [
                {"id": "perm-page-view", "resource": "page", "action": "view", "name": "View pages"},
                {"id": "perm-page-edit", "resource": "page", "action": "edit", "name": "Edit pages"},
            ],
        },
        {
            "code": "board",
            "name": "Boards",
            "type": "MULTI",
            "permissions": [
                {"id": "perm-post-read", "resource": "post", "action": "read", "name": "Read posts"},
                {"id": "perm-post-write", "resource": "post", "action": "write", "name": "Write posts"},
                {"id": "perm-post-delete", "resource": "post", "action": "delete", "name": "Delete posts"},
                {"id": "perm-comment-write", "resource": "comment", "action": "write", "name": "Write comments"},
            ],
            "instances": [
                {"id": "inst-notice", "slug": "notice", "name": "Notices"},
                {"id": "inst-qna", "slug": "qna", "name": "Questions", "sub_path": "list"},
                {"id": "inst-archive", "slug": "archive", "name": "Archive", "enabled": False},
            ],
        },
        {
            "code": "legacy",
            "name": "Legacy",
            "type": "SINGLE",
            "instance_id": "inst-legacy",
            "enabled": False,
        },
    ],
    "aliases": [
        {"path": "about", "module": "page", "sub_path": "about"},
        {"path": "faq", "module": "board", "instance": "qna", "sub_path": "faq"},
        {"path": "old", "module": "legacy"},
    ],
    "groups": [
        {"id": "g-staff", "code": "staff", "name": "Staff", "members": ["alice"]},
        {"id": "g-editors", "code": "editors", "name": "Editors", "members": ["alice"]},
        {"id": "g-guests", "code": "guests", "name": "Guests"},
    ],
    "grants": [
        {"subject_type": "GROUP", "subject_id": "g-staff", "instance_id": "inst-notice", "permission_id": "perm-post-write"},
    ],
}


class UnavailableDirectory(Directory):
    """Directory whose backend is down."""

    def _fail(self, *args, **kwargs):
        raise ServiceUnavailableException("Directory unreachable: ConnectError")

    async def lookup_module_instance(self, module_code, instance_slug):
        self._fail()

    async def lookup_single_module(self, module_code):
        self._fail()

    async def lookup_instance(self, instance_id):
        self._fail()

    async def lookup_alias(self, alias_path):
        self._fail()

    async def list_permission_definitions(self, module_code):
        self._fail()

    async def list_grants(self, subject_type, subject_id, instance_id):
        self._fail()

    async def list_subject_grants(self, subject_type, subject_id):
        self._fail()

    async def list_instance_grants(self, subject_type, instance_id):
        self._fail()

    async def list_groups(self, group_ids):
        self._fail()

    async def list_all_groups(self):
        self._fail()

    async def list_user_group_ids(self, user_id):
        self._fail()


class GrantStoreDownDirectory(InMemoryDirectory):
    """Modules resolve, grants cannot be read."""

    async def list_grants(self, subject_type, subject_id, instance_id):
        raise ServiceUnavailableException("Grant store unreachable")

    async def list_subject_grants(self, subject_type, subject_id):
        raise ServiceUnavailableException("Grant store unreachable")

    async def list_instance_grants(self, subject_type, instance_id):
        raise ServiceUnavailableException("Grant store unreachable")


class MockCache:
    """Mock aiocache client for testing"""

    def __init__(self):
        self._data = {}
        self._call_log = []

    async def get(self, key):
        self._call_log.append(('get', key))
        return self._data.get(key)

    async def set(self, key, value, ttl=None):
        self._call_log.append(('set', key, ttl))
        self._data[key] = value

    async def increment(self, key, delta=1):
        self._call_log.append(('increment', key))
        self._data[key] = int(self._data.get(key) or 0) + delta
        return self._data[key]

    async def clear(self, namespace=None):
        self._call_log.append(('clear', namespace))
        for key in [k for k in self._data if namespace is None or k.startswith(namespace)]:
            del self._data[key]

    @property
    def call_log(self):
        return self._call_log


def sqlite_session_factory() -> sessionmaker:
    """In-memory SQLite database with the directory tables created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
