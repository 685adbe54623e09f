# apps/domain/services/webhooks.py

"""
Webhook Event Translator

Turns pull request notifications from the git host into approval
workflow transitions. The host expects a prompt acknowledgement, so
handle() always returns a WebhookResult and never raises.
"""

import logging
from typing import Any, Dict, Optional

from apps.domain.models import PullRequestRef, WebhookResult
from apps.domain.services.approval import ApprovalWorkflow

logger = logging.getLogger(__name__)

MERGED_EVENTS = frozenset({"pullrequest:fulfilled"})
DECLINED_EVENTS = frozenset({"pullrequest:rejected"})


def _pull_request_ref(pr: Dict[str, Any]) -> PullRequestRef:
    links = pr.get("links") or {}
    html = links.get("html") or {}
    destination = ((pr.get("destination") or {}).get("branch") or {}).get("name", "")
    return PullRequestRef(
        id=pr.get("id"),
        url=html.get("href"),
        source_branch=pr["source"]["branch"]["name"],
        destination_branch=destination,
    )


class WebhookEventTranslator:
    """
    Maps inbound host events onto the approval workflow
    """

    def __init__(self, approval_workflow: ApprovalWorkflow):
        self._approvals = approval_workflow

    def handle(self, event_type: str, payload: Optional[Dict[str, Any]]) -> WebhookResult:
        """
        Process one webhook delivery

        Args:
            event_type: Host event key, e.g. "pullrequest:fulfilled"
            payload: Decoded JSON body

        Returns:
            WebhookResult; failures are logged and reported as action "error"
        """
        event_type = event_type or ""
        try:
            return self._dispatch(event_type, payload or {})
        except Exception as e:
            logger.error(f"Failed to process webhook event {event_type!r}: {e}", exc_info=True)
            return WebhookResult(event_type=event_type, action="error", detail=str(e))

    def _dispatch(self, event_type: str, payload: Dict[str, Any]) -> WebhookResult:
        logger.info(f"Received webhook event: {event_type}")

        if event_type not in MERGED_EVENTS and event_type not in DECLINED_EVENTS:
            return WebhookResult(event_type=event_type, action="ignored")

        pr = payload.get("pullrequest")
        if not isinstance(pr, dict):
            raise ValueError("Payload has no pullrequest object")
        try:
            ref = _pull_request_ref(pr)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Pull request payload has no source branch: {e}") from e

        author = (pr.get("author") or {}).get("display_name", "")
        request = self._approvals.request_from_branch(ref.source_branch, ref, author)
        if request is None:
            return WebhookResult(
                event_type=event_type,
                action="ignored",
                detail=f"Branch {ref.source_branch} is not a deletion branch",
            )

        if event_type in MERGED_EVENTS:
            self._approvals.complete(request)
            action = "finalized"
        else:
            self._approvals.abandon(request)
            action = "abandoned"

        return WebhookResult(
            event_type=event_type,
            action=action,
            template_id=request.template_id,
            detail=ref.source_branch,
        )
