"""
Tests for the administrative permission summaries.
"""

import pytest

from portal_backend.api.exceptions import NotFoundException
from portal_backend.interface.permissions import SubjectType
from portal_backend.permissions.aggregator import PermissionAggregator
from portal_backend.permissions.principal import Principal
from portal_backend.permissions.summary import PermissionSummaryService


def _labels(summary):
    return [(e.source.label, e.module_code, e.instance_slug) for e in summary.entries]


class TestUserSummary:

    @pytest.mark.asyncio
    async def test_direct_then_groups(self, directory, summary_service):
        directory.grant(SubjectType.USER, "alice", "inst-page", "perm-page-edit")
        directory.grant(SubjectType.USER, "alice", "inst-qna", "perm-post-read")
        directory.grant(SubjectType.GROUP, "g-editors", "inst-page", "perm-page-view")

        summary = await summary_service.user_summary("alice")

        assert summary.available
        assert _labels(summary) == [
            ("DIRECT", "board", "qna"),
            ("DIRECT", "page", "page"),
            ("GROUP:editors", "page", "page"),
            ("GROUP:staff", "board", "notice"),
        ]

    @pytest.mark.asyncio
    async def test_entries_carry_display_names(self, summary_service):
        summary = await summary_service.user_summary("alice")

        entry = summary.entries[0]
        assert entry.instance_name == "Notices"
        assert entry.module_name == "Boards"
        assert [(p.resource, p.action, p.name) for p in entry.permissions] == [("post", "write", "Write posts")]

    @pytest.mark.asyncio
    async def test_user_without_grants(self, summary_service):
        summary = await summary_service.user_summary("nobody")

        assert summary.available
        assert summary.entries == []

    @pytest.mark.asyncio
    async def test_unavailable_is_reported_not_raised(self, grant_store_down_directory):
        service = PermissionSummaryService(grant_store_down_directory, PermissionAggregator(grant_store_down_directory))

        summary = await service.user_summary("alice")

        assert summary.available is False
        assert summary.error == "Grant store unreachable"
        assert summary.entries == []


class TestGroupSummary:

    @pytest.mark.asyncio
    async def test_group_grants(self, summary_service):
        summary = await summary_service.group_summary("g-staff")

        assert _labels(summary) == [("GROUP:staff", "board", "notice")]

    @pytest.mark.asyncio
    async def test_unknown_group(self, summary_service):
        with pytest.raises(NotFoundException):
            await summary_service.group_summary("g-ghost")

    @pytest.mark.asyncio
    async def test_unavailable(self, unavailable_directory):
        service = PermissionSummaryService(unavailable_directory, PermissionAggregator(unavailable_directory))

        summary = await service.group_summary("g-staff")

        assert summary.available is False
        assert "unreachable" in summary.error


class TestInstanceSummary:

    @pytest.mark.asyncio
    async def test_effective_entries(self, directory, summary_service):
        directory.grant(SubjectType.USER, "bob", "inst-notice", "perm-post-read")

        summary = await summary_service.instance_summary(
            Principal(user_id="bob", group_ids=frozenset({"g-staff"})), "inst-notice"
        )

        assert _labels(summary) == [("DIRECT", "board", "notice"), ("GROUP:staff", "board", "notice")]

    @pytest.mark.asyncio
    async def test_unknown_instance(self, summary_service):
        with pytest.raises(NotFoundException):
            await summary_service.instance_summary(Principal(user_id="bob"), "inst-missing")

    @pytest.mark.asyncio
    async def test_grant_store_down(self, grant_store_down_directory):
        service = PermissionSummaryService(grant_store_down_directory, PermissionAggregator(grant_store_down_directory))

        summary = await service.instance_summary(Principal(user_id="bob"), "inst-notice")

        assert summary.available is False


class TestInstanceGrantMatrices:

    @pytest.mark.asyncio
    async def test_every_group_is_listed(self, directory, summary_service):
        directory.grant(SubjectType.GROUP, "g-editors", "inst-notice", "perm-post-read")
        directory.grant(SubjectType.GROUP, "g-editors", "inst-notice", "perm-comment-write")

        matrix = await summary_service.instance_group_grants("inst-notice")

        assert matrix.available
        assert [(row.group_code, row.granted_permission_ids) for row in matrix.rows] == [
            ("editors", ["perm-post-read", "perm-comment-write"]),
            ("guests", []),
            ("staff", ["perm-post-write"]),
        ]
        assert matrix.rows[2].group_name == "Staff"

    @pytest.mark.asyncio
    async def test_only_users_with_direct_grants(self, directory, summary_service):
        directory.grant(SubjectType.USER, "carol", "inst-notice", "perm-post-read")
        directory.grant(SubjectType.USER, "alice", "inst-notice", "perm-post-write")
        directory.grant(SubjectType.USER, "alice", "inst-notice", "perm-post-delete")
        directory.grant(SubjectType.USER, "dave", "inst-qna", "perm-post-read")

        matrix = await summary_service.instance_user_grants("inst-notice")

        assert [(row.user_id, row.granted_permission_ids) for row in matrix.rows] == [
            ("alice", ["perm-post-write", "perm-post-delete"]),
            ("carol", ["perm-post-read"]),
        ]

    @pytest.mark.asyncio
    async def test_disabled_instance_can_still_be_administered(self, summary_service):
        matrix = await summary_service.instance_user_grants("inst-archive")

        assert matrix.available
        assert matrix.rows == []

    @pytest.mark.asyncio
    async def test_unknown_instance(self, summary_service):
        with pytest.raises(NotFoundException):
            await summary_service.instance_group_grants("inst-missing")
        with pytest.raises(NotFoundException):
            await summary_service.instance_user_grants("inst-missing")

    @pytest.mark.asyncio
    async def test_grant_store_down(self, grant_store_down_directory):
        service = PermissionSummaryService(grant_store_down_directory, PermissionAggregator(grant_store_down_directory))

        groups = await service.instance_group_grants("inst-notice")
        users = await service.instance_user_grants("inst-notice")

        assert (groups.available, groups.error, groups.rows) == (False, "Grant store unreachable", [])
        assert (users.available, users.error, users.rows) == (False, "Grant store unreachable", [])
        assert users.instance_id == "inst-notice"

    @pytest.mark.asyncio
    async def test_module_catalog(self, summary_service):
        catalog = await summary_service.module_catalog("board")

        assert {d.id for d in catalog} == {"perm-post-read", "perm-post-write", "perm-post-delete", "perm-comment-write"}
        assert await summary_service.module_catalog("wiki") == []
