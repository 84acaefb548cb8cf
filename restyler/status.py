"""Commit statuses reported on the original pull request."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from restyler.errors import Stage, wrap_errors
from restyler.integrations.github.github_client import GitHubClient
from restyler.models import PullRequest

STATUS_CONTEXT = "restyled"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PullRequestStatus:
    """A commit status: ``state`` is one of success, failure or error."""

    state: str
    description: str
    target_url: str | None = None


def no_differences_status() -> PullRequestStatus:
    return PullRequestStatus(state="success", description="No differences")


def differences_status(url: str) -> PullRequestStatus:
    return PullRequestStatus(
        state="failure", description="Restyling found differences", target_url=url
    )


def error_status(url: str) -> PullRequestStatus:
    return PullRequestStatus(state="error", description="Error restyling", target_url=url)


def send_pull_request_status(
    github_client: GitHubClient, pull_request: PullRequest, status: PullRequestStatus
) -> None:
    """Posts ``status`` on the head commit of ``pull_request``."""

    _logger.info(
        "sending status: repo=%s sha=%s state=%s",
        pull_request.repo,
        pull_request.head_sha,
        status.state,
    )
    with wrap_errors(Stage.GITHUB):
        github_client.create_commit_status(
            repo=pull_request.repo,
            sha=pull_request.head_sha,
            state=status.state,
            description=status.description,
            context=STATUS_CONTEXT,
            target_url=status.target_url,
        )
