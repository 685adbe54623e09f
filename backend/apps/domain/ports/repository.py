# apps/domain/ports/repository.py

"""
Remote Repository Port - Interface for the git hosting service

The hosted repository is the only system of record. This port exposes
the handful of operations the store needs; adapters hold no business logic.
"""

from typing import Any, Dict, List, Mapping, Protocol

from apps.domain.models import PullRequestRef


class IRemoteRepository(Protocol):
    """
    Interface for an authenticated remote git repository

    Every method is a network call. Only read_file and file_history are
    safe to retry.
    """

    def read_file(self, path: str, ref: str) -> bytes:
        """
        Read a file at a ref

        Args:
            path: Repository-relative path
            ref: Branch name or commit hash

        Returns:
            Raw file bytes

        Raises:
            NotFoundError: If the path does not exist at ref
            AuthFailure: If the credentials are rejected
            HostError: On any other non-2xx response or transport failure
        """
        ...

    def commit(self, ref: str, files: Mapping[str, str], message: str) -> None:
        """
        Commit one or more files to a branch in a single request

        Args:
            ref: Target branch
            files: Mapping of path to full new content. An empty string
                deletes the path.
            message: Commit message

        Raises:
            AuthFailure: If the credentials are rejected
            HostError: On any other failure, including timeouts. The
                commit may have partially applied.
        """
        ...

    def create_branch(self, name: str, from_ref: str) -> None:
        """
        Create a branch

        Args:
            name: New branch name
            from_ref: Branch or commit to branch from

        Raises:
            ConflictError: If the branch already exists
            HostError: On any other failure
        """
        ...

    def create_pull_request(
            self,
            source_branch: str,
            target_branch: str,
            title: str,
            description: str,
    ) -> PullRequestRef:
        """
        Open a pull request

        Args:
            source_branch: Branch holding the change
            target_branch: Branch to merge into
            title: Pull request title
            description: Pull request body

        Returns:
            PullRequestRef exposing at least a browsable URL

        Raises:
            HostError: On failure
        """
        ...

    def delete_branch(self, name: str) -> None:
        """
        Delete a branch

        Raises:
            NotFoundError: If the branch does not exist
            HostError: On any other failure
        """
        ...

    def file_history(self, path: str, ref: str) -> List[Dict[str, Any]]:
        """
        List commits that touched a file, newest first

        Args:
            path: Repository-relative path
            ref: Branch to walk

        Returns:
            List of dicts with 'hash', 'message', 'author', 'date' keys

        Raises:
            NotFoundError: If the path is unknown at ref
            HostError: On any other failure
        """
        ...
