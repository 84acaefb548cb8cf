"""Rendering of the restyled PR description and the notification comment."""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from restyler.models import PullRequest, Restyler, RestylerResult


class ContentRenderer:
    """Renders Markdown artifacts from Jinja2 templates."""

    def __init__(self, *, template_dir: str) -> None:
        self._env = Environment(
            loader=FileSystemLoader(template_dir),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def comment_body(self, restyled_number: int) -> str:
        """Comment left on the original PR pointing at the restyled PR."""

        return self._env.get_template("comment_body.md").render(
            restyled_number=restyled_number
        )

    def pull_request_description(
        self,
        job_url: str | None,
        pull_request: PullRequest,
        results: Sequence[RestylerResult],
    ) -> str:
        """Description of the restyled PR.

        Assumes at least one restyler committed changes; otherwise we would not
        be opening a PR at all.
        """

        template_name = (
            "pull_request_description_fork.md"
            if pull_request.is_fork
            else "pull_request_description.md"
        )
        made_fixes = "made fixes" if job_url is None else f"[made fixes]({job_url})"
        return self._env.get_template(template_name).render(
            number=pull_request.number,
            clone_url=pull_request.clone_url,
            made_fixes=made_fixes,
            restyler_items=[
                _restyler_list_item(result.restyler) for result in results if result.committed
            ],
        )


def _restyler_list_item(restyler: Restyler) -> str:
    if restyler.documentation:
        return f"[{restyler.name}]({restyler.documentation[0]})"
    return restyler.name


def get_default_template_dir() -> str:
    """Returns the default template directory path."""

    return str(Path(__file__).parent / "templates")


@lru_cache(maxsize=1)
def _default_renderer() -> ContentRenderer:
    return ContentRenderer(template_dir=get_default_template_dir())


def comment_body(restyled_number: int) -> str:
    """Renders the notification comment with the default templates."""

    return _default_renderer().comment_body(restyled_number)


def pull_request_description(
    job_url: str | None,
    pull_request: PullRequest,
    results: Sequence[RestylerResult],
) -> str:
    """Renders the restyled PR description with the default templates."""

    return _default_renderer().pull_request_description(job_url, pull_request, results)
