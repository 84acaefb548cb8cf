"""Git operations for a restyling run.

Security requirements:
  - Do not embed tokens into persisted remote URLs.
  - Avoid printing tokens into logs.

This module authenticates to GitHub using a temporary HTTP extra header passed
via ``git -c`` options.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path

from restyler.integrations.process.subprocess_utils import CommandResult, CommandRunner
from restyler.models import PullRequest

_EXTRAHEADER_KEY = "http.https://github.com/.extraheader"


@dataclass(frozen=True)
class GitOpsConfig:
    """Configuration for Git operations."""

    author_name: str
    author_email: str


class GitOps:
    """Performs clone/checkout/commit/push of the restyled branch."""

    def __init__(self, *, config: GitOpsConfig, runner: CommandRunner | None = None) -> None:
        self._config = config
        self._runner = runner or CommandRunner()

    def clone_pull_request(
        self,
        *,
        pull_request: PullRequest,
        dest_dir: str,
        github_token: str,
    ) -> None:
        """Clones the base repository and checks out the restyled branch at the PR head.

        The PR head is fetched through ``pull/<n>/head`` on the base repository,
        which also works for pull requests opened from forks.
        """

        dest = Path(dest_dir)
        dest.parent.mkdir(parents=True, exist_ok=True)
        extraheader = self._github_extraheader_value(github_token)
        self._runner.run_checked(
            args=[
                "git",
                "-c",
                f"{_EXTRAHEADER_KEY}={extraheader}",
                "clone",
                "--quiet",
                self._repo_https_url(pull_request.repo),
                str(dest),
            ],
            command_display=f"git clone {self._repo_https_url(pull_request.repo)} {dest}",
        )
        self._run_git(
            str(dest),
            args=[
                "fetch",
                "--quiet",
                "origin",
                f"pull/{pull_request.number}/head:{pull_request.restyled_branch}",
            ],
            extraheader=extraheader,
        )
        self._run_git(str(dest), args=["checkout", "--quiet", pull_request.restyled_branch])

    def get_head_sha(self, *, repo_dir: str) -> str:
        """Returns HEAD SHA."""

        return self._run_git(repo_dir, args=["rev-parse", "HEAD"]).stdout.strip()

    def commit_all_if_dirty(self, *, repo_dir: str, message: str) -> str | None:
        """Commits all changes if there are any.

        Returns:
            Commit SHA if committed, otherwise None.
        """

        status = self._run_git(repo_dir, args=["status", "--porcelain"]).stdout.strip()
        if not status:
            return None

        self._run_git(repo_dir, args=["config", "user.name", self._config.author_name])
        self._run_git(repo_dir, args=["config", "user.email", self._config.author_email])
        self._run_git(repo_dir, args=["add", "-A"])
        self._run_git(repo_dir, args=["commit", "--quiet", "-m", message])
        return self.get_head_sha(repo_dir=repo_dir)

    def force_push_branch(self, *, repo_dir: str, branch: str, github_token: str) -> None:
        """Force-pushes ``branch`` to origin without persisting the token in git config."""

        self._run_git(
            repo_dir,
            args=["push", "--quiet", "--force", "origin", f"{branch}:refs/heads/{branch}"],
            extraheader=self._github_extraheader_value(github_token),
        )

    def _run_git(
        self,
        repo_dir: str,
        *,
        args: list[str],
        extraheader: str | None = None,
    ) -> CommandResult:
        cmd = ["git", "-C", repo_dir]
        display = list(cmd)
        if extraheader is not None:
            cmd.extend(["-c", f"{_EXTRAHEADER_KEY}={extraheader}"])
            display.extend(["-c", f"{_EXTRAHEADER_KEY}=<REDACTED>"])
        cmd.extend(args)
        display.extend(args)
        return self._runner.run_checked(args=cmd, command_display=" ".join(display))

    @staticmethod
    def _repo_https_url(repo: str) -> str:
        return f"https://github.com/{repo}.git"

    @staticmethod
    def _github_extraheader_value(token: str) -> str:
        """Builds `http.*.extraHeader` value for GitHub HTTPS auth.

        GitHub recommends basic auth with username `x-access-token` and the token as password.
        The `http.extraHeader` config expects a full HTTP header line.
        """
        raw = f"x-access-token:{token}".encode()
        b64 = base64.b64encode(raw).decode("ascii")
        return f"Authorization: Basic {b64}"
