# apps/adapters/bitbucket/client.py
"""
Bitbucket Cloud Repository Adapter

Implements IRemoteRepository against the Bitbucket 2.0 REST API.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests

from apps.domain.models import (
    AuthFailure,
    ConflictError,
    HostError,
    NotFoundError,
    PullRequestRef,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"

# Bitbucket trims commit objects in filehistory unless asked for fields
_HISTORY_FIELDS = (
    "next,values.commit.hash,values.commit.message,values.commit.date,"
    "values.commit.author.raw,values.commit.author.user.display_name"
)


class BitbucketRepository:
    """
    Bitbucket API adapter for one repository

    Authenticates with a username and app password. Errors are raised as
    domain exceptions; nothing is retried.
    """

    def __init__(
        self,
        workspace: str,
        repo_slug: str,
        username: str,
        app_password: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_history_pages: int = 10,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Bitbucket client

        Args:
            workspace: Bitbucket workspace id
            repo_slug: Repository slug
            username: Account used for Basic auth
            app_password: App password for that account
            base_url: API base URL
            timeout: Per-request timeout in seconds
            max_history_pages: Upper bound on filehistory pages fetched
            session: Optional preconfigured requests session
        """
        if not workspace or not repo_slug:
            raise ValueError("Bitbucket workspace and repository slug are required")

        self.workspace = workspace
        self.repo_slug = repo_slug
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_history_pages = max_history_pages

        self.session = session or requests.Session()
        self.session.auth = (username, app_password)
        self.session.headers.update({"Accept": "application/json"})

    @property
    def repo_url(self) -> str:
        return f"{self.base_url}/repositories/{self.workspace}/{self.repo_slug}"

    # ============================================================
    # TRANSPORT
    # ============================================================

    def _request(self, method: str, url: str, action: str, **kwargs) -> requests.Response:
        logger.debug(f"{method} {url} ({action})")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.error(f"Bitbucket {action} timed out after {self.timeout}s")
            raise HostError(f"{action} timed out; outcome unknown") from e
        except requests.RequestException as e:
            logger.error(f"Bitbucket {action} failed: {e}")
            raise HostError(f"{action} failed: {e}") from e

        self._raise_for_status(response, action)
        return response

    @staticmethod
    def _raise_for_status(response: requests.Response, action: str) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        detail = (response.text or "")[:500]
        if status in (401, 403):
            logger.error(f"Bitbucket rejected credentials during {action}: {status}")
            raise AuthFailure(f"{action} rejected: HTTP {status}", status_code=status, detail=detail)
        if status == 404:
            raise NotFoundError(f"{action}: not found")

        logger.error(f"Bitbucket API error during {action}: {status} - {detail}")
        raise HostError(f"{action} failed: HTTP {status}", status_code=status, detail=detail)

    # ============================================================
    # IRemoteRepository
    # ============================================================

    def read_file(self, path: str, ref: str) -> bytes:
        """Read raw file bytes at ref"""
        clean_path = quote(path.lstrip("/"))
        url = f"{self.repo_url}/src/{quote(ref, safe='')}/{clean_path}"
        response = self._request("GET", url, f"read {path}@{ref}")
        return response.content

    def commit(self, ref: str, files: Mapping[str, str], message: str) -> None:
        """
        Commit files in one multipart request

        Each path is sent as its own part. An empty value marks the path
        for deletion.
        """
        if not files:
            raise ValueError("commit requires at least one file")

        parts = [
            (path, (path, (content or "").encode("utf-8")))
            for path, content in files.items()
        ]
        self._request(
            "POST",
            f"{self.repo_url}/src",
            f"commit to {ref}",
            data={"message": message, "branch": ref},
            files=parts,
        )
        logger.info(f"Committed {len(parts)} file(s) to {ref}: {message}")

    def create_branch(self, name: str, from_ref: str) -> None:
        """Create a branch pointing at from_ref"""
        url = f"{self.repo_url}/refs/branches"
        body = {"name": name, "target": {"hash": from_ref}}
        try:
            self._request("POST", url, f"create branch {name}", json=body)
        except HostError as e:
            if e.status_code == 409 or (
                e.status_code == 400 and "already exists" in e.detail.lower()
            ):
                raise ConflictError(f"Branch {name} already exists") from e
            raise

    def create_pull_request(
        self,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str,
    ) -> PullRequestRef:
        """Open a pull request and return its reference"""
        body = {
            "title": title,
            "description": description,
            "source": {"branch": {"name": source_branch}},
            "destination": {"branch": {"name": target_branch}},
            "close_source_branch": True,
        }
        response = self._request(
            "POST", f"{self.repo_url}/pullrequests", f"open pull request from {source_branch}", json=body
        )
        try:
            data = response.json()
        except ValueError:
            data = {}

        url = ((data.get("links") or {}).get("html") or {}).get("href")
        if not url:
            logger.warning(f"Pull request response for {source_branch} carried no html link")
        return PullRequestRef(
            id=data.get("id"),
            url=url,
            source_branch=source_branch,
            destination_branch=target_branch,
        )

    def delete_branch(self, name: str) -> None:
        url = f"{self.repo_url}/refs/branches/{quote(name, safe='')}"
        self._request("DELETE", url, f"delete branch {name}")

    def file_history(self, path: str, ref: str) -> List[Dict[str, Any]]:
        """Commits touching path on ref, newest first"""
        url = f"{self.repo_url}/filehistory/{quote(ref, safe='')}/{quote(path.lstrip('/'))}"
        params: Optional[Dict[str, str]] = {"fields": _HISTORY_FIELDS}
        history: List[Dict[str, Any]] = []

        for _ in range(self.max_history_pages):
            response = self._request("GET", url, f"file history {path}@{ref}", params=params)
            data = response.json()
            for value in data.get("values", []):
                commit = value.get("commit") or {}
                author = commit.get("author") or {}
                user = author.get("user") or {}
                history.append({
                    "hash": commit.get("hash", ""),
                    "message": commit.get("message", ""),
                    "date": commit.get("date", ""),
                    "author": user.get("display_name") or author.get("raw") or "",
                })
            url = data.get("next")
            params = None  # next link already carries the query
            if not url:
                break

        return history
