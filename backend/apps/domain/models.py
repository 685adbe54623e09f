# apps/domain/models.py

"""
Domain Models - Value Objects and Entities

Value Objects: Immutable, defined by attributes (e.g., Example, PullRequestRef)
Entities: Have identity, mutable (e.g., TemplateHeader)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union

DEFAULT_VERSION = "v1.0"


def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision"""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class ApprovalStatus(str, Enum):
    """Lifecycle of a deletion approval request"""
    PENDING = "pending"
    MERGED = "merged"
    ABANDONED = "abandoned"


# ============================================================
# VALUE OBJECTS (Immutable)
# ============================================================

@dataclass(frozen=True)
class Example:
    """
    A single input/output pair attached to a template
    """
    input: str = ""
    output: str = ""


@dataclass(frozen=True)
class TemplateContent:
    """
    Body of a template, stored in its own content file

    Nothing ties the content shape to the header beyond the path link.
    """
    main_content: str = ""
    instructions: str = ""
    examples: Tuple[Example, ...] = ()


@dataclass(frozen=True)
class PullRequestRef:
    """
    Opaque reference to a pull request on the remote host
    """
    id: Optional[int]
    url: Optional[str]
    source_branch: str = ""
    destination_branch: str = ""


@dataclass(frozen=True)
class HistoryEntry:
    """One commit touching a template's content file"""
    commit_id: str
    version: str
    message: str
    author: str = "System"
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commitId": self.commit_id,
            "version": self.version,
            "message": self.message,
            "userDisplayName": self.author,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class RepositoryStructure:
    """
    Departments and (department, app code) pairs present in the index

    Used to populate filters and dropdowns; never a write path.
    """
    departments: Set[str] = field(default_factory=set)
    app_codes: Set[Tuple[str, str]] = field(default_factory=set)


# ============================================================
# ENTITIES (Have Identity, Mutable)
# ============================================================

@dataclass
class TemplateHeader:
    """
    One entry of the index file

    Entity with identity (id). The index holds one header per template;
    content_path points at the template's content file.
    """
    id: str
    name: str = ""
    department: str = ""
    app_code: str = ""
    content_path: str = ""
    version: str = DEFAULT_VERSION
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: str = ""
    updated_by: str = ""
    # Timestamp text as read from the index, written back while unchanged
    created_at_text: str = field(default="", repr=False, compare=False)
    updated_at_text: str = field(default="", repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "name": self.name,
            "department": self.department,
            "appCode": self.app_code,
            "contentPath": self.content_path,
            "version": self.version,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
        }


@dataclass
class PromptTemplate:
    """
    A template header joined with its content

    This is what callers of the store see for get/create/update.
    """
    header: TemplateHeader
    content: TemplateContent = field(default_factory=TemplateContent)

    @property
    def id(self) -> str:
        return self.header.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            **self.header.to_dict(),
            "content": self.content.main_content,
            "instructions": self.content.instructions,
            "examples": [
                {"input": ex.input, "output": ex.output}
                for ex in self.content.examples
            ],
        }


@dataclass
class ApprovalRequest:
    """
    A deletion staged on a branch and waiting for a pull request merge

    Not persisted by this service: the branch and the pull request on the
    remote host are the only record of it. It is rebuilt from the branch
    name when a webhook arrives.
    """
    template_id: str
    branch: str
    requested_by: str = ""
    comment: str = ""
    content_path: str = ""
    pull_request: Optional[PullRequestRef] = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    created_at: Optional[datetime] = None


# ============================================================
# RESULT OBJECTS (Return Types)
# ============================================================

@dataclass(frozen=True)
class DirectDeletion:
    """Delete committed straight to the default branch"""
    template_id: str
    status: str = "deleted"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "status": self.status,
            "deletedId": self.template_id,
            "message": "Template deleted successfully",
        }


@dataclass(frozen=True)
class PendingApproval:
    """Delete staged on a branch with an open pull request"""
    approval: ApprovalRequest
    status: str = "pending_approval"

    @property
    def pull_request(self) -> Optional[PullRequestRef]:
        return self.approval.pull_request

    def to_dict(self) -> Dict[str, Any]:
        pr = self.approval.pull_request
        return {
            "success": True,
            "status": self.status,
            "pullRequestUrl": pr.url if pr else None,
            "branch": self.approval.branch,
            "message": "Deletion request submitted for approval",
        }


DeletionOutcome = Union[DirectDeletion, PendingApproval]


@dataclass(frozen=True)
class WebhookResult:
    """
    Outcome of translating one inbound webhook event

    action is one of "finalized", "abandoned", "ignored" or "error".
    The webhook endpoint acknowledges the host whatever the action.
    """
    event_type: str
    action: str
    template_id: Optional[str] = None
    detail: str = ""

    @property
    def handled(self) -> bool:
        return self.action in ("finalized", "abandoned")


@dataclass(frozen=True)
class HistoryResult:
    """
    Version history for display

    degraded is True when the lookup failed and entries holds a single
    placeholder instead of real commits.
    """
    entries: List[HistoryEntry]
    degraded: bool = False
    note: str = ""


def format_timestamp(value: Optional[datetime]) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix"""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ============================================================
# DOMAIN EXCEPTIONS
# ============================================================

class DomainException(Exception):
    """Base exception for domain layer"""
    pass


class ValidationError(DomainException):
    """Raised when caller-supplied fields are missing or malformed"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainException):
    """Raised when entity not found"""
    pass


class ConflictError(DomainException):
    """Raised on a branch or content path collision"""
    pass


class HostError(DomainException):
    """
    Raised when the remote host fails

    Covers non-2xx responses, transport failures and timeouts. A timed-out
    write has an unknown outcome: the commit may or may not have applied.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class AuthFailure(HostError):
    """Raised when the remote host rejects the credentials"""
    pass


class MalformedIndexError(HostError):
    """Raised when the index file is not a JSON array"""
    pass
