from __future__ import annotations

import json

import httpx
import pytest

from restyler.integrations.github.github_client import (
    GitHubClient,
    GitHubClientConfig,
    GitHubHttpError,
    GitHubJsonError,
    GitHubParseError,
    GitHubUserError,
)


def _client(handler) -> GitHubClient:
    return GitHubClient(
        config=GitHubClientConfig(api_base_url="https://api.github.com", token="token"),
        transport=httpx.MockTransport(handler),
    )


def _pull_payload(*, head_repo: str, base_repo: str = "owner/repo") -> dict[str, object]:
    return {
        "number": 7,
        "title": "Fix things",
        "head": {
            "sha": "abc123",
            "ref": "feature",
            "repo": {
                "full_name": head_repo,
                "clone_url": f"https://github.com/{head_repo}.git",
            },
        },
        "base": {
            "sha": "def456",
            "ref": "main",
            "repo": {
                "full_name": base_repo,
                "clone_url": f"https://github.com/{base_repo}.git",
            },
        },
    }


def test_get_pull_request_same_repository() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/owner/repo/pulls/7"
        assert request.headers["Authorization"] == "Bearer token"
        return httpx.Response(200, json=_pull_payload(head_repo="owner/repo"))

    pull_request = _client(handler).get_pull_request(repo="owner/repo", pr_number=7)
    assert pull_request.is_fork is False
    assert pull_request.head_sha == "abc123"
    assert pull_request.head_ref == "feature"
    assert pull_request.base_ref == "main"
    assert pull_request.restyled_branch == "restyled/feature"


def test_get_pull_request_from_fork() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_pull_payload(head_repo="contributor/repo"))

    pull_request = _client(handler).get_pull_request(repo="owner/repo", pr_number=7)
    assert pull_request.is_fork is True
    assert pull_request.repo == "owner/repo"
    assert pull_request.clone_url == "https://github.com/contributor/repo.git"


def test_http_error_carries_status_and_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Not Found")

    with pytest.raises(GitHubHttpError) as excinfo:
        _client(handler).get_pull_request(repo="owner/repo", pr_number=7)
    assert excinfo.value.status_code == 404
    assert str(excinfo.value.request) == "GET /repos/owner/repo/pulls/7"
    assert excinfo.value.describe().startswith("HTTP exception: status=404")


def test_transport_failure_is_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GitHubHttpError, match="connection refused"):
        _client(handler).get_pull_request(repo="owner/repo", pr_number=7)


def test_malformed_json_is_json_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(GitHubJsonError):
        _client(handler).get_pull_request(repo="owner/repo", pr_number=7)


def test_unexpected_shape_is_parse_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"number": 7})

    with pytest.raises(GitHubParseError):
        _client(handler).get_pull_request(repo="owner/repo", pr_number=7)


def test_invalid_repo_is_user_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(GitHubUserError):
        _client(handler).get_pull_request(repo="not-a-slug", pr_number=7)


def test_create_commit_status_posts_payload() -> None:
    seen: list[tuple[str, str, dict[str, object]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(201, json={"id": 1})

    _client(handler).create_commit_status(
        repo="owner/repo",
        sha="abc123",
        state="error",
        description="Error restyling",
        context="restyled",
        target_url="https://jobs/1",
    )
    assert seen == [
        (
            "POST",
            "/repos/owner/repo/statuses/abc123",
            {
                "state": "error",
                "description": "Error restyling",
                "context": "restyled",
                "target_url": "https://jobs/1",
            },
        )
    ]


def test_list_pull_request_files_follows_pages_and_skips_removed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json=[{"filename": "b.py", "status": "modified"}])
        return httpx.Response(
            200,
            json=[
                {"filename": "a.py", "status": "added"},
                {"filename": "gone.py", "status": "removed"},
            ],
            headers={
                "Link": '<https://api.github.com/repos/owner/repo/pulls/7/files?page=2>; rel="next"'
            },
        )

    files = _client(handler).list_pull_request_files(repo="owner/repo", pr_number=7)
    assert files == ["a.py", "b.py"]


def test_pagination_keeps_next_link_query_string() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if len(seen) > 2:
            return httpx.Response(500, text="requested too many pages")
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json=[{"filename": "b.py", "status": "modified"}])
        return httpx.Response(
            200,
            json=[{"filename": "a.py", "status": "modified"}],
            headers={
                "Link": '<https://api.github.com/repos/owner/repo/pulls/7/files?page=2>; rel="next"'
            },
        )

    files = _client(handler).list_pull_request_files(repo="owner/repo", pr_number=7)

    assert files == ["a.py", "b.py"]
    assert seen[0].endswith("/files?per_page=100")
    assert seen[1].endswith("/files?page=2")


def test_find_open_pull_request_returns_none_when_absent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["head"] == "owner:restyled/feature"
        return httpx.Response(200, json=[])

    found = _client(handler).find_open_pull_request(
        repo="owner/repo", head="owner:restyled/feature", base="feature"
    )
    assert found is None


def test_close_pull_request_patches_state() -> None:
    seen: list[tuple[str, str, dict[str, object]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"number": 98, "state": "closed"})

    _client(handler).close_pull_request(repo="owner/repo", pr_number=98)
    assert seen == [("PATCH", "/repos/owner/repo/pulls/98", {"state": "closed"})]
