# apps/domain/services/approval.py

"""
Approval Workflow - maker-checker deletes via branch and pull request

A delete that needs approval never touches the default branch directly.
It is staged on its own branch and proposed as a pull request; merging
the pull request is the approval, declining it abandons the request.

The service keeps no record of pending requests. The branch name encodes
the template id and creation time, which is enough to rebuild the request
when the host reports the pull request merged or declined.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from apps.domain.codec import decode_index, encode_index
from apps.domain.models import (
    ApprovalRequest,
    ApprovalStatus,
    DomainException,
    NotFoundError,
    PendingApproval,
    PullRequestRef,
    TemplateHeader,
    utc_now,
)
from apps.domain.ports.repository import IRemoteRepository

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "delete-template-"

_BRANCH_PATTERN = re.compile(r"^delete-template-(?P<template_id>.+)-(?P<millis>\d+)$")


def branch_name_for(template_id: str, when: datetime) -> str:
    """delete-template-<id>-<epoch millis>"""
    millis = int(when.timestamp() * 1000)
    return f"{BRANCH_PREFIX}{template_id}-{millis}"


def parse_branch_name(branch: str) -> Optional[Tuple[str, datetime]]:
    """
    Split a deletion branch name into template id and creation time

    Returns:
        (template_id, created_at) or None if the branch is not a deletion branch
    """
    match = _BRANCH_PATTERN.match(branch or "")
    if not match:
        return None
    created_at = datetime.fromtimestamp(int(match.group("millis")) / 1000, tz=timezone.utc)
    return match.group("template_id"), created_at


class ApprovalWorkflow:
    """
    Stages deletions on branches and finalizes them from merge events
    """

    def __init__(
        self,
        repository: IRemoteRepository,
        default_branch: str = "main",
        index_path: str = "metadata.json",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._default_branch = default_branch
        self._index_path = index_path
        self._now = clock or utc_now

    def stage_deletion(
        self,
        header: TemplateHeader,
        remaining: List[TemplateHeader],
        comment: str,
        requested_by: str,
    ) -> PendingApproval:
        """
        Stage a deletion and open a pull request for it

        Steps:
        1. Create a uniquely named branch off the default branch
        2. Commit the reduced index to it
        3. Commit an empty payload at the content path
        4. Open a pull request back to the default branch

        Args:
            header: Header of the template being deleted
            remaining: Index with that header removed
            comment: Requester's reason, shown in the pull request
            requested_by: Acting user

        Returns:
            PendingApproval holding the pull request reference

        Raises:
            ConflictError: If the branch name is already taken
            HostError: If any remote step fails. Steps already applied
                (branch, commits) are left on the host.
        """
        created_at = self._now()
        branch = branch_name_for(header.id, created_at)
        content_path = header.content_path.lstrip("/")
        comment = comment or ""

        self._repository.create_branch(branch, self._default_branch)
        logger.info(f"Created branch {branch} for deletion of {header.id}")

        try:
            self._repository.commit(
                branch,
                {self._index_path: encode_index(remaining).decode("utf-8")},
                f"remove index entry for {header.id}",
            )
            if content_path:
                self._repository.commit(
                    branch,
                    {content_path: ""},
                    f"remove content file for {header.id}",
                )

            title = f"Delete Template: {header.name}"
            description = (
                f"Deletion request for template ID {header.id}.\n\n"
                f"Requested by: {requested_by}\n"
                f"Comment: {comment or 'No comment provided'}\n\n"
                f"This PR will:\n"
                f"1. Remove the template entry from {self._index_path}"
            )
            if content_path:
                description += f"\n2. Delete the template file at {content_path}"
            pull_request = self._repository.create_pull_request(
                branch, self._default_branch, title, description
            )
        except DomainException as e:
            logger.error(f"Staging deletion of {header.id} on {branch} failed: {e}")
            raise

        logger.info(
            f"Deletion of {header.id} pending approval: {pull_request.url or pull_request.id}"
        )
        approval = ApprovalRequest(
            template_id=header.id,
            branch=branch,
            requested_by=requested_by,
            comment=comment,
            content_path=content_path,
            pull_request=pull_request,
            status=ApprovalStatus.PENDING,
            created_at=created_at,
        )
        return PendingApproval(approval=approval)

    def request_from_branch(
        self,
        branch: str,
        pull_request: Optional[PullRequestRef] = None,
        requested_by: str = "",
    ) -> Optional[ApprovalRequest]:
        """
        Rebuild an approval request from its branch name

        Returns:
            ApprovalRequest in PENDING state, or None for unrelated branches
        """
        parsed = parse_branch_name(branch)
        if parsed is None:
            return None
        template_id, created_at = parsed
        return ApprovalRequest(
            template_id=template_id,
            branch=branch,
            requested_by=requested_by,
            pull_request=pull_request,
            status=ApprovalStatus.PENDING,
            created_at=created_at,
        )

    def complete(self, request: ApprovalRequest) -> ApprovalRequest:
        """
        Finalize a merged deletion

        The merge already changed the default branch. This re-reads the
        live index and logs whether the template is gone; the check is
        advisory only.
        """
        request.status = ApprovalStatus.MERGED
        try:
            raw = self._repository.read_file(self._index_path, self._default_branch)
            still_listed = any(h.id == request.template_id for h in decode_index(raw))
        except NotFoundError:
            still_listed = False

        if still_listed:
            logger.warning(
                f"Template {request.template_id} is still in the index after "
                f"merging {request.branch}"
            )
        else:
            logger.info(f"Deletion of template {request.template_id} approved and merged")
        return request

    def abandon(self, request: ApprovalRequest) -> ApprovalRequest:
        """
        Close out a declined deletion

        The default branch was never changed, so nothing is compensated.
        The staging branch is removed on a best-effort basis.
        """
        request.status = ApprovalStatus.ABANDONED
        try:
            self._repository.delete_branch(request.branch)
            logger.info(f"Deletion of {request.template_id} declined, removed {request.branch}")
        except DomainException as e:
            logger.warning(f"Could not remove declined branch {request.branch}: {e}")
        return request
