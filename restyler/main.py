"""Entry point: restyle the pull request given by ``REPO`` and ``PULL_REQUEST_NUMBER``."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from restyler.config import AppSettings
from restyler.integrations.docker.restyler_runner import RestylerRunner
from restyler.integrations.git.git_ops import GitOps, GitOpsConfig
from restyler.integrations.github.github_client import GitHubClient, GitHubClientConfig
from restyler.recovery import run_with_recovery
from restyler.rendering.content import ContentRenderer, get_default_template_dir
from restyler.restrictions import from_environment
from restyler.restyle_loop import RestyleLoop
from restyler.restylers_manifest import load_manifest


def load_settings() -> AppSettings:
    """Loads settings, exiting with a message when the environment is invalid."""

    try:
        return AppSettings()
    except ValidationError as exc:
        raise SystemExit(f"Invalid environment configuration:\n{exc}") from exc


def main() -> None:
    """Entry point used by the ``restyler`` console script and Docker CMD."""

    settings = load_settings()
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    if settings.repo is None or settings.pull_request_number is None:
        raise SystemExit("REPO and PULL_REQUEST_NUMBER are required.")
    if settings.github_token is None:
        raise SystemExit("GITHUB_TOKEN is required.")

    restrictions = from_environment(settings)
    logging.getLogger(__name__).info("restrictions: %s", restrictions)
    work_root = Path(settings.work_root) if settings.work_root else Path.cwd() / "work"

    github_client = GitHubClient(
        config=GitHubClientConfig(
            api_base_url=settings.github_api_base_url,
            token=settings.github_token,
        )
    )
    try:
        loop = RestyleLoop(
            github_client=github_client,
            git_ops=GitOps(
                config=GitOpsConfig(
                    author_name=settings.git_author_name,
                    author_email=settings.git_author_email,
                )
            ),
            restyler_runner=RestylerRunner(restrictions=restrictions),
            content_renderer=ContentRenderer(template_dir=get_default_template_dir()),
            load_restylers=lambda: load_manifest(settings.restylers_manifest),
            github_token=settings.github_token,
            work_root=work_root,
            job_url=settings.job_url,
        )

        run_with_recovery(
            lambda: loop.run(repo=settings.repo, pr_number=settings.pull_request_number),
            job_url=settings.job_url,
            send_error_status=loop.send_error_status,
        )
    finally:
        github_client.close()


if __name__ == "__main__":
    main()
