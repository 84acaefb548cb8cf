"""Error taxonomy, classification and presentation.

Every failure of a run ends up as exactly one ``AppError``. Raw exceptions are
classified once, at the boundary nearest their origin, with ``wrap_errors``:

    with wrap_errors(Stage.RESTYLER, restyler=restyler):
        runner.run(...)

Anything reaching the top level unclassified becomes ``OtherError``. An
``AppError`` is rendered for the user with ``present`` and must pass through
``scrub_github_token`` before leaving the process.
"""

from __future__ import annotations

import enum
import textwrap
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from restyler.integrations.github.github_client import GitHubRequest, GitHubRequestError
from restyler.models import Restyler
from restyler.restyled_config import ConfigError, InvalidRestylers, InvalidYaml, NoRestylers

CONFIGURATION_DOCUMENTATION_URL = (
    "https://github.com/restyled-io/restyled.io/wiki/Common-Errors:-.restyled.yaml"
)

_TOKEN_HOST = "@github.com"
_TOKEN_LENGTH = 58
_SCRUBBED = "<SCRUBBED>"
_WRAP_WIDTH = 78


class AppError(Exception):
    """A classified failure. ``cause`` is the originating exception."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"{type(self).__name__}: {cause!r}")
        self.cause = cause


class PullRequestFetchError(AppError):
    """We couldn't fetch the pull request to restyle."""


class PullRequestCloneError(AppError):
    """We couldn't clone or check out the pull request's branch."""


class ConfigurationError(AppError):
    """We couldn't load a ``.restyled.yaml``."""

    cause: ConfigError


class RestylerError(AppError):
    """A restyler we ran failed."""

    def __init__(self, restyler: Restyler, cause: BaseException) -> None:
        super().__init__(cause)
        self.restyler = restyler


class GitHubError(AppError):
    """A GitHub API request failed during restyling."""

    def __init__(self, request: GitHubRequest | None, cause: BaseException) -> None:
        super().__init__(cause)
        self.request = request


class SystemError(AppError):  # noqa: A001
    """Trouble reading a file, running a command, or similar."""


class HttpError(AppError):
    """Trouble performing some HTTP request."""


class OtherError(AppError):
    """Anything else."""


class Stage(enum.Enum):
    """Subsystem boundaries at which raw failures are classified."""

    PULL_REQUEST_FETCH = "pull_request_fetch"
    PULL_REQUEST_CLONE = "pull_request_clone"
    CONFIGURATION = "configuration"
    RESTYLER = "restyler"
    GITHUB = "github"
    SYSTEM = "system"
    HTTP = "http"


_STAGE_CATCHES: dict[Stage, type[Exception]] = {
    Stage.PULL_REQUEST_FETCH: GitHubRequestError,
    Stage.PULL_REQUEST_CLONE: Exception,
    Stage.CONFIGURATION: ConfigError,
    Stage.RESTYLER: Exception,
    Stage.GITHUB: GitHubRequestError,
    Stage.SYSTEM: Exception,
    Stage.HTTP: Exception,
}


@contextmanager
def wrap_errors(
    stage: Stage,
    *,
    restyler: Restyler | None = None,
    request: GitHubRequest | None = None,
) -> Iterator[None]:
    """Re-raises failures of the block as the ``AppError`` for ``stage``.

    Already classified errors pass through unchanged, as does anything that is
    not an ``Exception`` (``SystemExit``, ``KeyboardInterrupt``).
    """

    if stage is Stage.RESTYLER and restyler is None:
        raise ValueError("restyler is required for Stage.RESTYLER")
    try:
        yield
    except AppError:
        raise
    except _STAGE_CATCHES[stage] as exc:
        raise _classify(stage, exc, restyler=restyler, request=request) from exc


def _classify(
    stage: Stage,
    exc: Exception,
    *,
    restyler: Restyler | None,
    request: GitHubRequest | None,
) -> AppError:
    if stage is Stage.PULL_REQUEST_FETCH:
        return PullRequestFetchError(exc)
    if stage is Stage.PULL_REQUEST_CLONE:
        return PullRequestCloneError(exc)
    if stage is Stage.CONFIGURATION:
        return ConfigurationError(exc)
    if stage is Stage.RESTYLER:
        if restyler is None:
            raise ValueError("restyler is required for Stage.RESTYLER")
        return RestylerError(restyler, exc)
    if stage is Stage.GITHUB:
        return GitHubError(request or getattr(exc, "request", None), exc)
    if stage is Stage.SYSTEM:
        return SystemError(exc)
    if stage is Stage.HTTP:
        return HttpError(exc)
    raise ValueError(f"unknown stage: {stage}")


def to_app_error(exc: BaseException) -> AppError:
    """Returns ``exc`` if already classified, otherwise wraps it as ``OtherError``."""

    if isinstance(exc, AppError):
        return exc
    return OtherError(exc)


def present(error: AppError) -> str:
    """Formats an error as title, indented body and documentation links."""

    return f"{_title(error)}:\n\n{_reflow(_body(error))}{_format_documentation(_documentation(error))}"


def scrub_github_token(text: str) -> str:
    """Naively scrubs an ephemeral token from ``text``.

    Clone and push errors may show a remote URL of the form
    ``https://x-access-token:<token>@github.com/...``. The 58 characters before
    the first ``@github.com`` are replaced with ``<SCRUBBED>``, over-scrubbing
    rather than leaking when the surrounding text is not what we expect.
    """

    index = text.find(_TOKEN_HOST)
    if index < 0:
        return text
    return text[: max(index - _TOKEN_LENGTH, 0)] + _SCRUBBED + text[index:]


def _title(error: AppError) -> str:
    if isinstance(error, PullRequestFetchError):
        clause = "fetching your Pull Request from GitHub"
    elif isinstance(error, PullRequestCloneError):
        clause = "cloning your Pull Request branch"
    elif isinstance(error, ConfigurationError):
        clause = "with your configuration"
    elif isinstance(error, RestylerError):
        clause = f"with the {error.restyler.name} restyler"
    elif isinstance(error, GitHubError):
        clause = "communicating with GitHub"
    elif isinstance(error, SystemError):
        clause = "running a system command"
    elif isinstance(error, HttpError):
        clause = "performing an HTTP request"
    elif isinstance(error, OtherError):
        clause = "with something unexpected"
    else:
        raise TypeError(f"unhandled error kind: {type(error).__name__}")
    return f"We had trouble {clause}"


def _body(error: AppError) -> str:
    if isinstance(error, ConfigurationError):
        return _config_error_body(error.cause)
    if isinstance(error, GitHubError):
        if error.request is None:
            return _github_error_body(error.cause)
        return f"Request: {error.request}\n{_github_error_body(error.cause)}"
    if isinstance(error, PullRequestFetchError):
        return _github_error_body(error.cause)
    return _describe(error.cause)


def _config_error_body(error: ConfigError) -> str:
    if isinstance(error, InvalidYaml):
        return error.describe()
    if isinstance(error, InvalidRestylers):
        return "Invalid Restylers:\n" + "".join(f"  - {name}\n" for name in error.names)
    if isinstance(error, NoRestylers):
        return "No Restylers configured"
    return _describe(error)


def _github_error_body(error: BaseException) -> str:
    if isinstance(error, GitHubRequestError):
        return error.describe()
    return _describe(error)


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _documentation(error: AppError) -> list[str]:
    if isinstance(error, ConfigurationError):
        return [CONFIGURATION_DOCUMENTATION_URL]
    if isinstance(error, RestylerError):
        return list(error.restyler.documentation)
    return []


def _format_documentation(urls: Sequence[str]) -> str:
    if not urls:
        return "\n"
    if len(urls) == 1:
        return f"\nPlease see {urls[0]}\n"
    return "\nPlease see\n" + "".join(f"  - {url}\n" for url in urls)


def _reflow(text: str) -> str:
    """Wraps each line at 78 columns and indents the result by two spaces."""

    lines: list[str] = []
    for line in text.splitlines():
        indentation = line[: len(line) - len(line.lstrip())]
        wrapped = textwrap.wrap(
            line,
            width=_WRAP_WIDTH,
            subsequent_indent=indentation,
            break_long_words=False,
            break_on_hyphens=False,
        )
        lines.extend(wrapped or [""])
    return "".join(f"  {line}\n" for line in lines)
