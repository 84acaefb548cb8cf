"""Top-level failure handling for a restyling run.

A run ends in one of three ways:

- success, returning normally;
- a deliberate ``SystemExit``, which is never intercepted or reformatted;
- any other exception, which is reported once on stderr (after a best-effort
  error status on the pull request) before exiting with status 1.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import NoReturn, TextIO, TypeVar

from restyler.errors import present, scrub_github_token, to_app_error

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def warn_ignore(exc: BaseException) -> None:
    """Logs an exception that is being deliberately discarded."""

    _logger.warning("Caught %r, ignoring.", exc)


def error_pull_request_on_exception(
    exc: BaseException,
    *,
    job_url: str | None,
    send_error_status: Callable[[str], None] | None,
) -> None:
    """Best-effort: marks the pull request as errored, linking to ``job_url``.

    Does nothing for ``SystemExit`` or when no job URL or status sender is
    known. Failures while posting are logged and discarded; the caller always
    re-raises ``exc`` afterwards.
    """

    if isinstance(exc, SystemExit) or job_url is None or send_error_status is None:
        return
    try:
        send_error_status(job_url)
    except Exception as ignored:  # noqa: BLE001
        warn_ignore(ignored)


def handle_top_level(exc: BaseException, *, stream: TextIO | None = None) -> NoReturn:
    """Reports ``exc`` on stderr and exits non-zero.

    A ``SystemExit`` is re-raised unchanged, keeping its requested code.
    """

    if isinstance(exc, SystemExit):
        raise exc
    error = to_app_error(exc)
    out = stream if stream is not None else sys.stderr
    out.write(scrub_github_token(present(error)) + "\n")
    out.flush()
    raise SystemExit(1) from exc


def run_with_recovery(
    action: Callable[[], T],
    *,
    job_url: str | None = None,
    send_error_status: Callable[[str], None] | None = None,
    stream: TextIO | None = None,
) -> T:
    """Runs ``action`` under the error status and top-level handlers."""

    try:
        try:
            return action()
        except BaseException as exc:
            error_pull_request_on_exception(
                exc, job_url=job_url, send_error_status=send_error_status
            )
            raise
    except SystemExit:
        raise
    except BaseException as exc:
        handle_top_level(exc, stream=stream)
