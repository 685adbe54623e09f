# apps/adapters/tests/test_fake_repository.py
"""
Tests for the in-memory repository used by tests and development
"""
import pytest

from apps.adapters.bitbucket.fake import FakeRemoteRepository
from apps.domain.models import ConflictError, HostError, NotFoundError


class TestFakeRemoteRepository:
    """Test that the fake behaves like the host where the store relies on it"""

    def setup_method(self):
        self.repo = FakeRemoteRepository(files={"metadata.json": "[]"})

    def test_read_existing_file(self):
        assert self.repo.read_file("/metadata.json", "main") == b"[]"

    def test_read_missing_file(self):
        with pytest.raises(NotFoundError):
            self.repo.read_file("nope.json", "main")

    def test_read_failing_path(self):
        self.repo.failing_paths.add("metadata.json")
        with pytest.raises(HostError) as exc_info:
            self.repo.read_file("metadata.json", "main")
        assert exc_info.value.status_code == 500

    def test_commit_writes_and_deletes(self):
        self.repo.commit("main", {"a.json": "{}", "metadata.json": ""}, "swap")

        assert self.repo.files() == {"a.json": "{}"}
        assert self.repo.commits[-1]["message"] == "swap"

    def test_commit_unknown_branch(self):
        with pytest.raises(HostError):
            self.repo.commit("ghost", {"a.json": "{}"}, "msg")

    def test_branch_is_a_copy(self):
        self.repo.create_branch("work", "main")
        self.repo.commit("work", {"a.json": "{}"}, "on work")

        assert "a.json" not in self.repo.files("main")
        assert "a.json" in self.repo.files("work")

    def test_branch_collision(self):
        self.repo.create_branch("work", "main")
        with pytest.raises(ConflictError):
            self.repo.create_branch("work", "main")

    def test_branch_from_unknown_ref(self):
        with pytest.raises(NotFoundError):
            self.repo.create_branch("work", "ghost")

    def test_default_branch_cannot_be_deleted(self):
        with pytest.raises(NotFoundError):
            self.repo.delete_branch("main")

    def test_merge_applies_branch_changes(self):
        self.repo.create_branch("work", "main")
        self.repo.commit("work", {"metadata.json": "", "b.json": "{}"}, "change")
        pr = self.repo.create_pull_request("work", "main", "t", "d")

        payload = self.repo.merge_pull_request(pr.id)

        assert self.repo.files() == {"b.json": "{}"}
        assert "work" not in self.repo.branches
        assert payload["pullrequest"]["state"] == "MERGED"
        assert payload["pullrequest"]["source"]["branch"]["name"] == "work"

    def test_decline_leaves_destination(self):
        self.repo.create_branch("work", "main")
        self.repo.commit("work", {"metadata.json": ""}, "change")
        pr = self.repo.create_pull_request("work", "main", "t", "d")

        payload = self.repo.decline_pull_request(pr.id)

        assert self.repo.files() == {"metadata.json": "[]"}
        assert payload["pullrequest"]["state"] == "DECLINED"

    def test_closed_pull_request_cannot_merge(self):
        self.repo.create_branch("work", "main")
        pr = self.repo.create_pull_request("work", "main", "t", "d")
        self.repo.decline_pull_request(pr.id)

        with pytest.raises(ConflictError):
            self.repo.merge_pull_request(pr.id)

    def test_pull_request_url(self):
        self.repo.create_branch("work", "main")
        pr = self.repo.create_pull_request("work", "main", "t", "d")
        assert pr.url == f"https://bitbucket.example/workspace/repo/pull-requests/{pr.id}"

    def test_file_history_newest_first(self):
        self.repo.commit("main", {"a.json": "1"}, "first")
        self.repo.commit("main", {"b.json": "1"}, "other")
        self.repo.commit("main", {"a.json": "2"}, "second")

        history = self.repo.file_history("a.json", "main")

        assert [h["message"] for h in history] == ["second", "first"]
