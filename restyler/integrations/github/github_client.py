"""GitHub REST API wrapper.

This module uses GitHub REST v3 endpoints. Authentication is performed via
``Authorization: Bearer <token>`` header.

Failures are raised as one of four ``GitHubRequestError`` forms, each carrying
the request that produced it:

- ``GitHubHttpError``: transport failure or non-success status.
- ``GitHubParseError``: the response did not have the expected shape.
- ``GitHubJsonError``: the response body was not valid JSON.
- ``GitHubUserError``: the request could not be made from the given arguments.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from restyler.models import PullRequest


@dataclass(frozen=True)
class GitHubRequest:
    """Display form of an API request (never includes credentials)."""

    method: str
    path: str

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


class GitHubRequestError(RuntimeError):
    """Raised when a GitHub API request fails."""

    prefix = "GitHub error"

    def __init__(self, message: str, *, request: GitHubRequest | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.request = request

    def describe(self) -> str:
        """Returns the message with its form-specific prefix."""

        return f"{self.prefix}: {self.message}"


class GitHubHttpError(GitHubRequestError):
    """Transport failure or non-success HTTP status."""

    prefix = "HTTP exception"

    def __init__(
        self,
        message: str,
        *,
        request: GitHubRequest | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, request=request)
        self.status_code = status_code


class GitHubParseError(GitHubRequestError):
    """Response JSON did not match the expected schema."""

    prefix = "Unable to parse response"


class GitHubJsonError(GitHubRequestError):
    """Response body was not JSON."""

    prefix = "Malformed response"


class GitHubUserError(GitHubRequestError):
    """Invalid arguments supplied by the caller."""

    prefix = "User error"


class _RepoRef(BaseModel):
    full_name: str
    clone_url: str


class _BranchRef(BaseModel):
    sha: str
    ref: str
    repo: _RepoRef | None = None


class _PullRequestPayload(BaseModel):
    number: int = Field(..., ge=1)
    title: str = ""
    head: _BranchRef
    base: _BranchRef


class PullRequestCreated(BaseModel):
    """Subset of PR creation response fields used by the restyler."""

    number: int = Field(..., ge=1)
    html_url: str
    body: str | None = None


class _PullRequestFile(BaseModel):
    filename: str
    status: str


@dataclass(frozen=True)
class GitHubClientConfig:
    """GitHub client configuration."""

    api_base_url: str
    token: str


class GitHubClient:
    """Thin wrapper around GitHub REST API."""

    def __init__(
        self,
        *,
        config: GitHubClientConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=self._config.api_base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self._config.token}",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "restyler",
            },
            timeout=httpx.Timeout(30.0),
            transport=transport,
        )

    def close(self) -> None:
        """Closes underlying HTTP client."""

        self._client.close()

    def get_pull_request(self, *, repo: str, pr_number: int) -> PullRequest:
        """Fetches the pull request to restyle."""

        request = GitHubRequest("GET", f"/repos/{self._checked_repo(repo)}/pulls/{pr_number}")
        payload = self._parse(
            _PullRequestPayload, self._send(request), request=request
        )
        head_repo = payload.head.repo
        base_repo = payload.base.repo
        if base_repo is None:
            raise GitHubParseError("pull request has no base repository", request=request)
        # A deleted fork has no head repository; treat it as a fork.
        is_fork = head_repo is None or head_repo.full_name != base_repo.full_name
        return PullRequest(
            repo=base_repo.full_name,
            number=payload.number,
            title=payload.title,
            head_sha=payload.head.sha,
            head_ref=payload.head.ref,
            base_ref=payload.base.ref,
            clone_url=(head_repo or base_repo).clone_url,
            is_fork=is_fork,
        )

    def list_pull_request_files(self, *, repo: str, pr_number: int) -> list[str]:
        """Lists paths changed by a pull request, excluding removed files."""

        path = f"/repos/{self._checked_repo(repo)}/pulls/{pr_number}/files"
        files: list[str] = []
        for item in self._paginate(path, params={"per_page": "100"}):
            changed = self._parse(_PullRequestFile, item, request=GitHubRequest("GET", path))
            if changed.status != "removed":
                files.append(changed.filename)
        return files

    def create_commit_status(
        self,
        *,
        repo: str,
        sha: str,
        state: str,
        description: str,
        context: str,
        target_url: str | None = None,
    ) -> None:
        """Creates a commit status on ``sha``."""

        request = GitHubRequest("POST", f"/repos/{self._checked_repo(repo)}/statuses/{sha}")
        payload: dict[str, Any] = {
            "state": state,
            "description": description,
            "context": context,
        }
        if target_url is not None:
            payload["target_url"] = target_url
        self._send(request, json=payload)

    def find_open_pull_request(
        self, *, repo: str, head: str, base: str
    ) -> PullRequestCreated | None:
        """Returns the open PR from ``head`` into ``base``, if any."""

        path = f"/repos/{self._checked_repo(repo)}/pulls"
        for item in self._paginate(
            path, params={"state": "open", "head": head, "base": base, "per_page": "100"}
        ):
            return self._parse(PullRequestCreated, item, request=GitHubRequest("GET", path))
        return None

    def create_pull_request(
        self,
        *,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str,
    ) -> PullRequestCreated:
        """Creates a Ready PR (draft is disabled)."""

        request = GitHubRequest("POST", f"/repos/{self._checked_repo(repo)}/pulls")
        created = self._send(
            request,
            json={
                "title": title,
                "head": head,
                "base": base,
                "body": body,
                "draft": False,
            },
        )
        return self._parse(PullRequestCreated, created, request=request)

    def update_pull_request_body(self, *, repo: str, pr_number: int, body: str) -> None:
        """Updates PR body."""

        request = GitHubRequest("PATCH", f"/repos/{self._checked_repo(repo)}/pulls/{pr_number}")
        self._send(request, json={"body": body})

    def close_pull_request(self, *, repo: str, pr_number: int) -> None:
        """Closes a PR without merging it."""

        request = GitHubRequest("PATCH", f"/repos/{self._checked_repo(repo)}/pulls/{pr_number}")
        self._send(request, json={"state": "closed"})

    def create_issue_comment(self, *, repo: str, issue_number: int, body: str) -> None:
        """Creates a comment on an issue or pull request."""

        request = GitHubRequest(
            "POST", f"/repos/{self._checked_repo(repo)}/issues/{issue_number}/comments"
        )
        self._send(request, json={"body": body})

    def _send(self, request: GitHubRequest, *, json: Any = None) -> Any:
        try:
            resp = self._client.request(request.method, request.path, json=json)
        except httpx.HTTPError as exc:
            raise GitHubHttpError(str(exc) or type(exc).__name__, request=request) from exc
        self._raise_for_error(resp, request=request)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise GitHubJsonError(str(exc), request=request) from exc

    def _paginate(self, path: str, *, params: dict[str, str]) -> Iterable[dict[str, object]]:
        next_url: str | None = str(self._client.base_url.join(path))
        current_params: dict[str, str] | None = dict(params)
        request = GitHubRequest("GET", path)
        while next_url is not None:
            try:
                resp = self._client.get(next_url, params=current_params)
            except httpx.HTTPError as exc:
                raise GitHubHttpError(str(exc) or type(exc).__name__, request=request) from exc
            self._raise_for_error(resp, request=request)
            try:
                payload = resp.json()
            except ValueError as exc:
                raise GitHubJsonError(str(exc), request=request) from exc
            if not isinstance(payload, list):
                raise GitHubParseError(
                    "Unexpected payload type for pagination.", request=request
                )
            for item in payload:
                if isinstance(item, dict):
                    yield item
            next_url = self._parse_next_link(resp.headers.get("Link"))
            # The next link already carries the query string.
            current_params = None

    @staticmethod
    def _parse(model: type[BaseModel], payload: Any, *, request: GitHubRequest) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise GitHubParseError(str(exc), request=request) from exc

    @staticmethod
    def _checked_repo(repo: str) -> str:
        owner, _, name = repo.partition("/")
        if not owner or not name or "/" in name:
            raise GitHubUserError(f"repository must be 'owner/repo', got {repo!r}")
        return repo

    @staticmethod
    def _parse_next_link(link_header: str | None) -> str | None:
        if not link_header:
            return None
        # Example: <https://api.github.com/...page=2>; rel="next", <...>; rel="last"
        parts = [p.strip() for p in link_header.split(",")]
        for part in parts:
            if 'rel="next"' in part:
                left = part.find("<")
                right = part.find(">")
                if left >= 0 and right > left:
                    return part[left + 1 : right]
        return None

    @staticmethod
    def _raise_for_error(resp: httpx.Response, *, request: GitHubRequest) -> None:
        if 200 <= resp.status_code < 300:
            return
        raise GitHubHttpError(
            f"status={resp.status_code}, message={resp.text}",
            request=request,
            status_code=resp.status_code,
        )
