# apps/adapters/bitbucket/fake.py
"""
Fake Remote Repository for testing

Keeps branches, commits and pull requests in memory and mimics the host
closely enough to exercise the store end to end: multi-file commits,
empty value deletes a path, branch collisions, and pull request merges
that apply the branch's changes onto the destination.
"""
import itertools
from typing import Any, Dict, List, Mapping, Optional, Set
from uuid import uuid4

from apps.domain.models import ConflictError, HostError, NotFoundError, PullRequestRef


class FakeRemoteRepository:
    """
    In-memory git host implementing IRemoteRepository
    """

    def __init__(
        self,
        files: Optional[Mapping[str, str]] = None,
        default_branch: str = "main",
        base_url: str = "https://bitbucket.example/workspace/repo",
    ):
        """
        Initialize fake repository

        Args:
            files: Initial files on the default branch
            default_branch: Name of the default branch
            base_url: Prefix for pull request URLs
        """
        self.default_branch = default_branch
        self.base_url = base_url
        self.branches: Dict[str, Dict[str, str]] = {default_branch: dict(files or {})}
        self.commits: List[Dict[str, Any]] = []
        self.pull_requests: Dict[int, Dict[str, Any]] = {}
        self.deleted_branches: List[str] = []
        self.failing_paths: Set[str] = set()
        self._branch_bases: Dict[str, Dict[str, str]] = {}
        self._pr_ids = itertools.count(1)

    # ============================================================
    # IRemoteRepository
    # ============================================================

    def read_file(self, path: str, ref: str) -> bytes:
        path = path.lstrip("/")
        if path in self.failing_paths:
            raise HostError(f"read {path}@{ref} failed: HTTP 500", status_code=500)
        branch = self.branches.get(ref)
        if branch is None or path not in branch:
            raise NotFoundError(f"read {path}@{ref}: not found")
        return branch[path].encode("utf-8")

    def commit(self, ref: str, files: Mapping[str, str], message: str) -> None:
        if ref not in self.branches:
            raise HostError(f"commit to {ref} failed: HTTP 404", status_code=404)
        branch = self.branches[ref]
        for path, content in files.items():
            if content:
                branch[path] = content
            else:
                branch.pop(path, None)
        self.commits.append({
            "hash": uuid4().hex[:12],
            "ref": ref,
            "files": dict(files),
            "message": message,
        })

    def create_branch(self, name: str, from_ref: str) -> None:
        if name in self.branches:
            raise ConflictError(f"Branch {name} already exists")
        if from_ref not in self.branches:
            raise NotFoundError(f"create branch {name}: {from_ref} not found")
        self.branches[name] = dict(self.branches[from_ref])
        self._branch_bases[name] = dict(self.branches[from_ref])

    def create_pull_request(
        self,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str,
    ) -> PullRequestRef:
        if source_branch not in self.branches:
            raise HostError(f"open pull request from {source_branch} failed: HTTP 400", status_code=400)
        pr_id = next(self._pr_ids)
        url = f"{self.base_url}/pull-requests/{pr_id}"
        self.pull_requests[pr_id] = {
            "id": pr_id,
            "title": title,
            "description": description,
            "source": source_branch,
            "destination": target_branch,
            "state": "OPEN",
            "url": url,
        }
        return PullRequestRef(
            id=pr_id, url=url, source_branch=source_branch, destination_branch=target_branch
        )

    def delete_branch(self, name: str) -> None:
        if name not in self.branches or name == self.default_branch:
            raise NotFoundError(f"delete branch {name}: not found")
        del self.branches[name]
        self._branch_bases.pop(name, None)
        self.deleted_branches.append(name)

    def file_history(self, path: str, ref: str) -> List[Dict[str, Any]]:
        path = path.lstrip("/")
        if ref not in self.branches:
            raise NotFoundError(f"file history {path}@{ref}: not found")
        return [
            {"hash": c["hash"], "message": c["message"], "author": "fake", "date": ""}
            for c in reversed(self.commits)
            if c["ref"] == ref and path in c["files"]
        ]

    # ============================================================
    # HOST SIMULATION
    # ============================================================

    def files(self, ref: Optional[str] = None) -> Dict[str, str]:
        """Snapshot of all files on a branch"""
        return dict(self.branches[ref or self.default_branch])

    def merge_pull_request(self, pr_id: int) -> Dict[str, Any]:
        """
        Merge a pull request the way the host would

        Changes made on the source branch since it was created are applied
        to the destination; other destination changes are kept. The source
        branch is closed.

        Returns:
            Webhook payload for the merge event
        """
        pr = self._open_pull_request(pr_id)
        source, destination = pr["source"], pr["destination"]
        base = self._branch_bases.get(source, {})
        head = self.branches[source]
        target = self.branches[destination]

        for path in set(base) | set(head):
            if path not in head:
                target.pop(path, None)
            elif base.get(path) != head[path]:
                target[path] = head[path]

        self.commits.append({
            "hash": uuid4().hex[:12],
            "ref": destination,
            "files": {p: head.get(p, "") for p in set(base) | set(head) if base.get(p) != head.get(p)},
            "message": f"Merged in {source} (pull request #{pr_id})",
        })
        pr["state"] = "MERGED"
        self.delete_branch(source)
        return self.webhook_payload(pr_id)

    def decline_pull_request(self, pr_id: int) -> Dict[str, Any]:
        """Decline a pull request and return the webhook payload"""
        pr = self._open_pull_request(pr_id)
        pr["state"] = "DECLINED"
        return self.webhook_payload(pr_id)

    def webhook_payload(self, pr_id: int) -> Dict[str, Any]:
        """Bitbucket-shaped pullrequest webhook body"""
        pr = self.pull_requests[pr_id]
        return {
            "pullrequest": {
                "id": pr["id"],
                "title": pr["title"],
                "state": pr["state"],
                "author": {"display_name": "fake"},
                "source": {"branch": {"name": pr["source"]}},
                "destination": {"branch": {"name": pr["destination"]}},
                "links": {"html": {"href": pr["url"]}},
            }
        }

    def _open_pull_request(self, pr_id: int) -> Dict[str, Any]:
        pr = self.pull_requests.get(pr_id)
        if pr is None:
            raise NotFoundError(f"pull request {pr_id}: not found")
        if pr["state"] != "OPEN":
            raise ConflictError(f"pull request {pr_id} is {pr['state']}")
        return pr
