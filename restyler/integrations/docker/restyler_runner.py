"""Running a restyler image against the working tree with ``docker run``."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from fnmatch import fnmatch
from pathlib import Path

from restyler.integrations.process.subprocess_utils import CommandRunner
from restyler.models import Restyler
from restyler.restrictions import Restrictions, to_container_args

CONTAINER_CODE_DIR = "/code"


def included_paths(restyler: Restyler, paths: Sequence[str]) -> list[str]:
    """Returns the paths matching any of the restyler's include globs, in order."""

    return [path for path in paths if _is_included(path, restyler.include)]


def _is_included(path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if fnmatch(path, pattern):
            return True
        # "**/" also matches files at the repository root.
        if pattern.startswith("**/") and fnmatch(path, pattern[3:]):
            return True
    return False


class RestylerRunner:
    """Runs restylers in containers limited by ``restrictions``."""

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        *,
        restrictions: Restrictions,
        runner: CommandRunner | None = None,
        docker_command: str = "docker",
    ) -> None:
        self._restrictions = restrictions
        self._runner = runner or CommandRunner()
        self._docker_command = docker_command

    def build_args(self, *, restyler: Restyler, repo_dir: str, paths: Sequence[str]) -> list[str]:
        """Returns the full ``docker run`` command line."""

        return [
            self._docker_command,
            "run",
            "--rm",
            *to_container_args(self._restrictions),
            "--volume",
            f"{Path(repo_dir).resolve()}:{CONTAINER_CODE_DIR}",
            "--workdir",
            CONTAINER_CODE_DIR,
            restyler.image,
            *restyler.command,
            *paths,
        ]

    def run(self, *, restyler: Restyler, repo_dir: str, paths: Sequence[str]) -> bool:
        """Runs ``restyler`` on the matching ``paths``.

        Returns:
            False if no path matched and nothing was run.

        Raises:
            CommandError: If the container exits non-zero.
        """

        existing = [p for p in paths if (Path(repo_dir) / p).is_file()]
        matched = included_paths(restyler, existing)
        if not matched:
            self._logger.info("no files for restyler: name=%s", restyler.name)
            return False

        self._logger.info("running restyler: name=%s files=%s", restyler.name, len(matched))
        self._runner.run_checked(
            args=self.build_args(restyler=restyler, repo_dir=repo_dir, paths=matched),
            command_display=f"{self._docker_command} run {restyler.image}",
        )
        return True
