# apps/domain/services/template_store.py

"""
Template Store - prompt templates kept in a hosted git repository

The repository stands in for a document database: one index file lists
every template header, and each template's body lives in its own content
file. Every operation fetches the index fresh, changes it in memory and
rewrites the whole file.

There is no compare-and-swap on the index. Two concurrent mutations read
the same index and the later commit wins; the earlier change is lost.
"""

import logging
import re
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from apps.domain.codec import (
    decode_content,
    decode_index,
    encode_content,
    encode_index,
    normalize_examples,
)
from apps.domain.models import (
    DEFAULT_VERSION,
    ConflictError,
    DeletionOutcome,
    DirectDeletion,
    HistoryEntry,
    HistoryResult,
    HostError,
    NotFoundError,
    PromptTemplate,
    RepositoryStructure,
    TemplateContent,
    TemplateHeader,
    ValidationError,
    format_timestamp,
    utc_now,
)
from apps.domain.ports.repository import IRemoteRepository
from apps.domain.services.approval import ApprovalWorkflow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "content", "department", "appCode")

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Replace each run of whitespace with a single hyphen"""
    return _WHITESPACE.sub("-", name.strip())


def derive_content_path(department: str, app_code: str, name: str) -> str:
    """Content file path: <department>/<appCode>/<slug>.json"""
    return f"{department}/{app_code}/{slugify(name)}.json"


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class TemplateStore:
    """
    Record store over a remote repository

    Responsibilities:
    - Keep the index and content files consistent on create/update/delete
    - Enforce id uniqueness and content path derivation
    - Stamp timestamps and authors
    - Route deletes through the approval workflow when configured
    """

    def __init__(
        self,
        repository: IRemoteRepository,
        approval_workflow: Optional[ApprovalWorkflow] = None,
        default_branch: str = "main",
        index_path: str = "metadata.json",
        require_approval: bool = True,
        default_user: str = "System",
        history_enabled: bool = False,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], Any]] = None,
    ):
        """
        Initialize template store

        Args:
            repository: Remote repository adapter
            approval_workflow: Workflow used for approval-gated deletes.
                Built from the repository if omitted.
            default_branch: Branch holding the live index
            index_path: Path of the index file
            require_approval: If True, delete opens a pull request instead
                of committing directly
            default_user: Actor recorded when a call is unattributed
            history_enabled: If True, history() reads remote file history
            id_factory: Generates template ids (random UUID4 by default)
            clock: Returns the current UTC datetime
        """
        self._repository = repository
        self._default_branch = default_branch
        self._index_path = index_path
        self._require_approval = require_approval
        self._default_user = default_user
        self._history_enabled = history_enabled
        self._new_id = id_factory or (lambda: str(uuid4()))
        self._now = clock or utc_now
        self._approvals = approval_workflow or ApprovalWorkflow(
            repository,
            default_branch=default_branch,
            index_path=index_path,
            clock=self._now,
        )

    @property
    def require_approval(self) -> bool:
        return self._require_approval

    # ============================================================
    # REMOTE I/O
    # ============================================================

    def _load_index(self) -> List[TemplateHeader]:
        try:
            raw = self._repository.read_file(self._index_path, self._default_branch)
        except NotFoundError:
            logger.info(f"No index at {self._index_path}, treating repository as empty")
            return []
        return decode_index(raw)

    def _read_content(self, path: str) -> TemplateContent:
        raw = self._repository.read_file(path.lstrip("/"), self._default_branch)
        try:
            return decode_content(raw)
        except ValueError as e:
            raise HostError(f"Content file {path} is not valid JSON: {e}") from e

    def _actor(self, actor: Optional[str]) -> str:
        if actor and actor.strip():
            return actor.strip()
        return self._default_user

    @staticmethod
    def _find(index: List[TemplateHeader], template_id: str) -> TemplateHeader:
        # Linear scan; the index is small enough that no lookup table is kept
        for header in index:
            if header.id == template_id:
                return header
        raise NotFoundError(f"Template not found: {template_id}")

    # ============================================================
    # READS
    # ============================================================

    def list(self) -> List[TemplateHeader]:
        """
        List template headers in index order

        Content files are not read. A repository with no index yet
        returns an empty list.
        """
        return self._load_index()

    def list_with_content(self) -> List[PromptTemplate]:
        """
        List templates joined with their content

        Costs one extra read per template. A template whose content cannot
        be read is still returned, with empty content fields.
        """
        templates = []
        for header in self._load_index():
            content = TemplateContent()
            if header.content_path:
                try:
                    content = self._read_content(header.content_path)
                except (NotFoundError, HostError) as e:
                    logger.warning(
                        f"Could not read content for template {header.id} "
                        f"at {header.content_path}: {e}"
                    )
            templates.append(PromptTemplate(header=header, content=content))
        return templates

    def get(self, template_id: str) -> PromptTemplate:
        """
        Get one template with its content

        Raises:
            NotFoundError: If the id is not in the index, the header has no
                content path, or the content file is missing
        """
        header = self._find(self._load_index(), template_id)
        if not header.content_path:
            raise NotFoundError(f"Template {template_id} has no content path")
        return PromptTemplate(header=header, content=self._read_content(header.content_path))

    def repository_structure(self) -> RepositoryStructure:
        """Departments and (department, app code) pairs found in the index"""
        departments = set()
        app_codes = set()
        for header in self._load_index():
            if header.department:
                departments.add(header.department)
                if header.app_code:
                    app_codes.add((header.department, header.app_code))
        return RepositoryStructure(departments=departments, app_codes=app_codes)

    def history(self, template_id: str) -> List[HistoryEntry]:
        """
        Version history of a template

        Empty unless history is enabled, in which case the content file's
        commit history is read from the default branch, oldest commit
        labelled v1.0.
        """
        if not self._history_enabled:
            return []

        header = self._find(self._load_index(), template_id)
        if not header.content_path:
            return []

        commits = self._repository.file_history(header.content_path, self._default_branch)
        total = len(commits)
        return [
            HistoryEntry(
                commit_id=str(commit.get("hash", "")),
                version=f"v1.{total - position - 1}",
                message=str(commit.get("message") or "Version update").strip(),
                author=str(commit.get("author") or "System"),
                timestamp=str(commit.get("date") or ""),
            )
            for position, commit in enumerate(commits)
        ]

    def history_or_placeholder(self, template_id: str) -> HistoryResult:
        """
        History for display; never raises

        Any failure is logged and replaced by a single placeholder entry.
        """
        try:
            return HistoryResult(entries=self.history(template_id))
        except Exception as e:
            logger.warning(
                f"Could not retrieve version history for {template_id}: {e}",
                exc_info=True,
            )
            placeholder = HistoryEntry(
                commit_id="error",
                version=DEFAULT_VERSION,
                message="Could not retrieve version history",
                author="System",
                timestamp=format_timestamp(utc_now()),
            )
            return HistoryResult(
                entries=[placeholder],
                degraded=True,
                note="Error occurred while fetching version history",
            )

    # ============================================================
    # WRITES
    # ============================================================

    def create(self, fields: Mapping[str, Any], actor: Optional[str] = None) -> PromptTemplate:
        """
        Create a template

        Writes the updated index and the new content file in one commit.

        Args:
            fields: name, content, department, appCode (required),
                instructions and examples (optional)
            actor: User creating the template

        Returns:
            The template as written (not re-read from the host)

        Raises:
            ValidationError: Naming the first missing or blank required field
            ConflictError: If another template already uses the content path
        """
        for key in REQUIRED_FIELDS:
            value = fields.get(key)
            if value is None or not str(value).strip():
                raise ValidationError(f"Missing required field: {key}", field=key)

        name = str(fields["name"])
        department = str(fields["department"])
        app_code = str(fields["appCode"])
        content = TemplateContent(
            main_content=str(fields["content"]),
            instructions=_clean(fields.get("instructions")) or "",
            examples=tuple(normalize_examples(fields.get("examples"))),
        )
        content_path = derive_content_path(department, app_code, name)

        index = self._load_index()
        for existing in index:
            if existing.content_path.lstrip("/") == content_path:
                raise ConflictError(
                    f"Content path {content_path} is already used by template {existing.id}"
                )

        user = self._actor(actor)
        timestamp = self._now()
        header = TemplateHeader(
            id=self._new_id(),
            name=name,
            department=department,
            app_code=app_code,
            content_path=content_path,
            version=DEFAULT_VERSION,
            created_at=timestamp,
            updated_at=timestamp,
            created_by=user,
            updated_by=user,
        )
        index.append(header)

        self._repository.commit(
            self._default_branch,
            {
                self._index_path: encode_index(index).decode("utf-8"),
                content_path: encode_content(content),
            },
            f"Creating new template: {name} in {department}/{app_code}",
        )
        logger.info(f"Created template {header.id} at {content_path} by {user}")
        return PromptTemplate(header=header, content=content)

    def update(
        self, template_id: str, fields: Mapping[str, Any], actor: Optional[str] = None
    ) -> PromptTemplate:
        """
        Update a template's header and content

        Omitted header fields keep their values; omitted content fields are
        read back from the current content file. createdAt/createdBy are
        preserved. The content path is re-derived only when name, department
        or appCode change; if it moves, the old file is deleted in the same
        commit.

        Raises:
            NotFoundError: If the id is not in the index
            ValidationError: If a supplied name, department or appCode is blank
            ConflictError: If another template already uses the new path
        """
        for key in ("name", "department", "appCode"):
            if key in fields and (fields[key] is None or not str(fields[key]).strip()):
                raise ValidationError(f"Field may not be blank: {key}", field=key)

        index = self._load_index()
        header = self._find(index, template_id)
        old_path = header.content_path.lstrip("/")

        name = _clean(fields.get("name")) or header.name
        department = _clean(fields.get("department")) or header.department
        app_code = _clean(fields.get("appCode")) or header.app_code

        renamed = (name, department, app_code) != (
            header.name,
            header.department,
            header.app_code,
        )
        if renamed or not old_path:
            new_path = derive_content_path(department, app_code, name)
            for other in index:
                if other.id != template_id and other.content_path.lstrip("/") == new_path:
                    raise ConflictError(
                        f"Content path {new_path} is already used by template {other.id}"
                    )
        else:
            new_path = old_path

        content = self._merge_content(old_path, fields)

        user = self._actor(actor)
        header.name = name
        header.department = department
        header.app_code = app_code
        if new_path != old_path:
            header.content_path = new_path
        header.version = DEFAULT_VERSION
        header.updated_at = self._now()
        header.updated_by = user

        files = {
            self._index_path: encode_index(index).decode("utf-8"),
            new_path: encode_content(content),
        }
        if old_path and old_path != new_path:
            files[old_path] = ""
            logger.info(f"Template {template_id} moves from {old_path} to {new_path}")

        self._repository.commit(self._default_branch, files, f"Update template {template_id}")
        logger.info(f"Updated template {template_id} by {user}")
        return PromptTemplate(header=header, content=content)

    def _merge_content(self, old_path: str, fields: Mapping[str, Any]) -> TemplateContent:
        supplied = {"content", "instructions", "examples"} & set(fields)
        current = TemplateContent()
        if supplied != {"content", "instructions", "examples"} and old_path:
            try:
                current = self._read_content(old_path)
            except NotFoundError:
                logger.warning(f"Content file {old_path} missing, starting from empty content")

        updates: Dict[str, Any] = {}
        if "content" in fields:
            updates["main_content"] = _clean(fields["content"]) or ""
        if "instructions" in fields:
            updates["instructions"] = _clean(fields["instructions"]) or ""
        if "examples" in fields:
            updates["examples"] = tuple(normalize_examples(fields["examples"]))
        return replace(current, **updates)

    def delete(
        self, template_id: str, comment: str = "", actor: Optional[str] = None
    ) -> DeletionOutcome:
        """
        Delete a template, directly or through a pull request

        With approval required, the deletion is staged on a new branch and a
        pull request is opened; the live index is untouched until it merges.
        Otherwise the reduced index and an empty content path are committed
        to the default branch at once.

        Returns:
            DirectDeletion or PendingApproval

        Raises:
            NotFoundError: If the id is not in the index
        """
        index = self._load_index()
        header = self._find(index, template_id)
        remaining = [h for h in index if h.id != template_id]
        user = self._actor(actor)

        if self._require_approval:
            return self._approvals.stage_deletion(header, remaining, comment, user)

        files: Dict[str, str] = {self._index_path: encode_index(remaining).decode("utf-8")}
        if header.content_path:
            files[header.content_path.lstrip("/")] = ""
        self._repository.commit(
            self._default_branch, files, f"Delete template {template_id} - {comment}"
        )
        logger.info(f"Deleted template {template_id} directly by {user}")
        return DirectDeletion(template_id=template_id)


def structure_to_dict(structure: RepositoryStructure) -> Dict[str, Any]:
    """Sorted, JSON-friendly view of a RepositoryStructure"""
    pairs: List[Tuple[str, str]] = sorted(structure.app_codes)
    return {
        "departments": sorted(structure.departments),
        "appCodes": [{"department": d, "appCode": a} for d, a in pairs],
    }
