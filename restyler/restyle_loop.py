"""Restyle loop orchestrating a single pull request.

This module is intentionally synchronous. Restylers run strictly one after
another, each seeing the commits of the ones before it.
"""

from __future__ import annotations

import logging
import shutil
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from restyler.errors import Stage, wrap_errors
from restyler.integrations.docker.restyler_runner import RestylerRunner
from restyler.integrations.git.git_ops import GitOps
from restyler.integrations.github.github_client import GitHubClient, PullRequestCreated
from restyler.models import PullRequest, Restyler, RestylerResult
from restyler.rendering.content import ContentRenderer
from restyler.restyled_config import RestyledConfig, load_config, resolve_restylers
from restyler.status import (
    PullRequestStatus,
    differences_status,
    error_status,
    no_differences_status,
    send_pull_request_status,
)


@dataclass
class RunResult:
    """Result of a single run."""

    results: list[RestylerResult] = field(default_factory=list)
    restyled_pull_request: PullRequestCreated | None = None

    @property
    def differences(self) -> bool:
        return any(result.committed for result in self.results)


class RestyleLoop:
    """Coordinates fetching the PR, running restylers, and publishing the outcome."""

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        *,
        github_client: GitHubClient,
        git_ops: GitOps,
        restyler_runner: RestylerRunner,
        content_renderer: ContentRenderer,
        load_restylers: Callable[[], Mapping[str, Restyler]],
        github_token: str,
        work_root: str | Path,
        job_url: str | None = None,
    ) -> None:
        self._github_client = github_client
        self._git_ops = git_ops
        self._restyler_runner = restyler_runner
        self._content_renderer = content_renderer
        self._load_restylers = load_restylers
        self._github_token = github_token
        self._work_root = Path(work_root)
        self._job_url = job_url
        self._pull_request: PullRequest | None = None
        self._config: RestyledConfig | None = None

    def run(self, *, repo: str, pr_number: int) -> RunResult:
        """Restyles one pull request.

        Raises:
            AppError: For any failure, classified at the step where it happened.
            SystemExit: With status 0 when restyling is disabled by configuration.
        """

        self._logger.info("run started: repo=%s pr=%s", repo, pr_number)
        with wrap_errors(Stage.PULL_REQUEST_FETCH):
            pull_request = self._github_client.get_pull_request(repo=repo, pr_number=pr_number)
        self._pull_request = pull_request
        with wrap_errors(Stage.GITHUB):
            changed_paths = self._github_client.list_pull_request_files(
                repo=repo, pr_number=pr_number
            )
        self._logger.info(
            "pull request loaded: fork=%s changed_files=%s",
            pull_request.is_fork,
            len(changed_paths),
        )

        repo_dir = self._work_root / f"{repo.replace('/', '-')}-{pr_number}"
        with wrap_errors(Stage.PULL_REQUEST_CLONE):
            if repo_dir.exists():
                shutil.rmtree(repo_dir)
            self._git_ops.clone_pull_request(
                pull_request=pull_request,
                dest_dir=str(repo_dir),
                github_token=self._github_token,
            )

        with wrap_errors(Stage.SYSTEM), wrap_errors(Stage.CONFIGURATION):
            config = load_config(repo_dir)
        self._config = config
        if not config.enabled:
            self._logger.info("restyled disabled by configuration")
            sys.exit(0)
        known_restylers = self._load_restylers()
        with wrap_errors(Stage.CONFIGURATION):
            restylers = resolve_restylers(config, known_restylers)

        results = self._restyle(restylers=restylers, repo_dir=str(repo_dir), paths=changed_paths)
        outcome = RunResult(results=results)
        if not outcome.differences:
            self._logger.info("no differences")
            self._close_stale_pull_request(pull_request)
            self._send_status_if_enabled(pull_request, no_differences_status())
            return outcome

        outcome.restyled_pull_request = self._publish(
            pull_request=pull_request, repo_dir=str(repo_dir), results=results
        )
        self._send_status_if_enabled(
            pull_request, differences_status(outcome.restyled_pull_request.html_url)
        )
        self._logger.info(
            "run completed: restyled_pr=%s", outcome.restyled_pull_request.number
        )
        return outcome

    def send_error_status(self, job_url: str) -> None:
        """Marks the pull request as errored, if it has been fetched."""

        if self._pull_request is None:
            self._logger.debug("no pull request to send error status to")
            return
        self._send_status_if_enabled(self._pull_request, error_status(job_url))

    def _restyle(
        self, *, restylers: list[Restyler], repo_dir: str, paths: list[str]
    ) -> list[RestylerResult]:
        results: list[RestylerResult] = []
        for restyler in restylers:
            with wrap_errors(Stage.RESTYLER, restyler=restyler):
                ran = self._restyler_runner.run(restyler=restyler, repo_dir=repo_dir, paths=paths)
            committed_sha: str | None = None
            if ran:
                with wrap_errors(Stage.SYSTEM):
                    committed_sha = self._git_ops.commit_all_if_dirty(
                        repo_dir=repo_dir, message=f"Restyled by {restyler.name}"
                    )
            self._logger.info(
                "restyler finished: name=%s committed_sha=%s", restyler.name, committed_sha
            )
            results.append(RestylerResult(restyler=restyler, committed=committed_sha is not None))
        return results

    def _publish(
        self, *, pull_request: PullRequest, repo_dir: str, results: list[RestylerResult]
    ) -> PullRequestCreated:
        branch = pull_request.restyled_branch
        head, base = _restyled_head_and_base(pull_request)

        self._logger.info("pushing branch: branch=%s", branch)
        with wrap_errors(Stage.SYSTEM):
            self._git_ops.force_push_branch(
                repo_dir=repo_dir, branch=branch, github_token=self._github_token
            )

        body = self._content_renderer.pull_request_description(
            self._job_url, pull_request, results
        )
        with wrap_errors(Stage.GITHUB):
            existing = self._github_client.find_open_pull_request(
                repo=pull_request.repo, head=head, base=base
            )
            if existing is not None:
                self._logger.info("updating restyled pull request: number=%s", existing.number)
                self._github_client.update_pull_request_body(
                    repo=pull_request.repo, pr_number=existing.number, body=body
                )
                return existing

            self._logger.info("creating restyled pull request: base=%s head=%s", base, branch)
            created = self._github_client.create_pull_request(
                repo=pull_request.repo,
                title=f"Restyle {pull_request.title}".strip(),
                head=head,
                base=base,
                body=body,
            )
            if self._config is not None and self._config.comments:
                self._github_client.create_issue_comment(
                    repo=pull_request.repo,
                    issue_number=pull_request.number,
                    body=self._content_renderer.comment_body(created.number),
                )
        return created

    def _close_stale_pull_request(self, pull_request: PullRequest) -> None:
        head, base = _restyled_head_and_base(pull_request)
        with wrap_errors(Stage.GITHUB):
            existing = self._github_client.find_open_pull_request(
                repo=pull_request.repo, head=head, base=base
            )
            if existing is None:
                return
            self._logger.info("closing stale restyled pull request: number=%s", existing.number)
            self._github_client.close_pull_request(repo=pull_request.repo, pr_number=existing.number)

    def _send_status_if_enabled(self, pull_request: PullRequest, status: PullRequestStatus) -> None:
        if self._config is not None and not self._config.statuses:
            return
        send_pull_request_status(self._github_client, pull_request, status)


def _restyled_head_and_base(pull_request: PullRequest) -> tuple[str, str]:
    owner = pull_request.repo.split("/")[0]
    # Fork branches cannot be targeted, so fork fixes go against the base branch.
    base = pull_request.base_ref if pull_request.is_fork else pull_request.head_ref
    return f"{owner}:{pull_request.restyled_branch}", base
