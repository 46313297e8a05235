"""
Tests for the in-process directory, mostly its write-time validation.
"""

import pytest

from portal_backend.api.exceptions import BadRequestException, NotFoundException
from portal_backend.directory.memory import InMemoryDirectory
from portal_backend.interface.modules import ModuleType
from portal_backend.interface.permissions import SubjectType


class TestWrites:

    def test_single_module_gets_exactly_one_instance(self):
        directory = InMemoryDirectory()
        directory.add_module("page", "Pages", ModuleType.SINGLE, instance_id="inst-page")

        with pytest.raises(BadRequestException):
            directory.add_instance("page", "second", "Second")

    def test_single_instance_cannot_be_removed(self, directory):
        with pytest.raises(BadRequestException):
            directory.remove_instance("inst-page")

    def test_duplicate_module(self, directory):
        with pytest.raises(BadRequestException):
            directory.add_module("board", "Boards", ModuleType.MULTI)

    def test_duplicate_instance_slug(self, directory):
        with pytest.raises(BadRequestException):
            directory.add_instance("board", "notice", "Another notice board")

    def test_instance_of_unknown_module(self, directory):
        with pytest.raises(NotFoundException):
            directory.add_instance("wiki", "handbook", "Handbook")

    def test_alias_to_unknown_module(self, directory):
        with pytest.raises(NotFoundException):
            directory.add_alias("help", "wiki")

    def test_grant_must_match_instance_module(self, directory):
        with pytest.raises(BadRequestException):
            directory.grant(SubjectType.USER, "alice", "inst-page", "perm-post-write")

    def test_grant_unknown_permission(self, directory):
        with pytest.raises(NotFoundException):
            directory.grant(SubjectType.USER, "alice", "inst-notice", "perm-missing")

    def test_grant_unknown_instance(self, directory):
        with pytest.raises(NotFoundException):
            directory.grant(SubjectType.USER, "alice", "inst-missing", "perm-post-write")

    def test_membership_in_unknown_group(self, directory):
        with pytest.raises(NotFoundException):
            directory.add_membership("alice", "g-ghost")

    @pytest.mark.asyncio
    async def test_set_grants_replaces(self, directory):
        directory.grant(SubjectType.USER, "alice", "inst-notice", "perm-post-read")

        directory.set_grants(SubjectType.USER, "alice", "inst-notice", ["perm-post-write", "perm-post-delete"])

        granted = await directory.list_grants(SubjectType.USER, "alice", "inst-notice")
        assert sorted(granted) == ["perm-post-delete", "perm-post-write"]

    @pytest.mark.asyncio
    async def test_set_grants_is_all_or_nothing(self, directory):
        directory.grant(SubjectType.USER, "alice", "inst-notice", "perm-post-read")

        with pytest.raises(BadRequestException):
            directory.set_grants(SubjectType.USER, "alice", "inst-notice", ["perm-post-write", "perm-page-view"])

        assert await directory.list_grants(SubjectType.USER, "alice", "inst-notice") == ["perm-post-read"]

    @pytest.mark.asyncio
    async def test_removing_an_instance_drops_its_grants(self, directory):
        directory.remove_instance("inst-notice")

        assert await directory.list_subject_grants(SubjectType.GROUP, "g-staff") == []

    @pytest.mark.asyncio
    async def test_remove_membership(self, directory):
        directory.remove_membership("alice", "g-staff")

        assert await directory.list_user_group_ids("alice") == ["g-editors"]

    def test_listeners_are_notified(self, directory):
        calls = []
        directory.add_listener(lambda: calls.append(1))

        directory.add_group("auditors")
        directory.revoke(SubjectType.GROUP, "g-staff", "inst-notice", "perm-post-write")

        assert len(calls) == 2


class TestReads:

    @pytest.mark.asyncio
    async def test_single_lookup_ignores_multi_modules(self, directory):
        assert await directory.lookup_single_module("board") is None

    @pytest.mark.asyncio
    async def test_single_instance_slug_is_module_slug(self, directory):
        binding = await directory.lookup_single_module("page")

        assert binding.instance.instance_id == "inst-page"
        assert binding.instance.slug == "page"

    @pytest.mark.asyncio
    async def test_lookup_instance(self, directory):
        binding = await directory.lookup_instance("inst-qna")

        assert binding.module.code == "board"
        assert binding.instance.sub_path == "list"

    @pytest.mark.asyncio
    async def test_catalog_flat_codes(self, directory):
        catalog = await directory.list_permission_definitions("board")

        assert "BOARD_POST_WRITE" in {d.flat_code for d in catalog}

    @pytest.mark.asyncio
    async def test_instance_grants(self, directory):
        directory.grant(SubjectType.USER, "alice", "inst-notice", "perm-post-read")
        directory.grant(SubjectType.USER, "alice", "inst-qna", "perm-post-read")

        users = await directory.list_instance_grants(SubjectType.USER, "inst-notice")
        groups = await directory.list_instance_grants(SubjectType.GROUP, "inst-notice")

        assert [(g.subject_id, g.permission_id) for g in users] == [("alice", "perm-post-read")]
        assert [g.subject_id for g in groups] == ["g-staff"]
        assert sorted(g.code for g in await directory.list_all_groups()) == ["editors", "guests", "staff"]

    @pytest.mark.asyncio
    async def test_groups(self, directory):
        assert await directory.list_user_group_ids("alice") == ["g-editors", "g-staff"]
        groups = await directory.list_groups(["g-staff", "g-ghost"])
        assert [g.code for g in groups] == ["staff"]


class TestSeedFile:

    @pytest.mark.asyncio
    async def test_from_yaml(self, tmp_path):
        seed = tmp_path / "seed.yaml"
        seed.write_text(
            "modules:\n"
            "  - code: board\n"
            "    name: Boards\n"
            "    type: MULTI\n"
            "    permissions:\n"
            "      - {id: p-read, resource: post, action: read}\n"
            "    instances:\n"
            "      - {id: i-notice, slug: notice, name: Notices}\n"
            "groups:\n"
            "  - {id: g1, code: staff, members: [alice]}\n"
            "grants:\n"
            "  - {subject_type: GROUP, subject_id: g1, instance_id: i-notice, permission_id: p-read}\n"
        )

        directory = InMemoryDirectory.from_yaml(str(seed))

        binding = await directory.lookup_module_instance("board", "notice")
        assert binding.instance.instance_id == "i-notice"
        assert await directory.list_grants(SubjectType.GROUP, "g1", "i-notice") == ["p-read"]
        assert (await directory.list_permission_definitions("board"))[0].name == "post read"

    def test_empty_yaml(self, tmp_path):
        seed = tmp_path / "empty.yaml"
        seed.write_text("")

        assert isinstance(InMemoryDirectory.from_yaml(str(seed)), InMemoryDirectory)
