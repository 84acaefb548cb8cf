from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from restyler.integrations.docker.restyler_runner import RestylerRunner, included_paths
from restyler.integrations.process.subprocess_utils import (
    CommandError,
    CommandResult,
    CommandRunner,
)
from restyler.models import Restyler
from restyler.restrictions import full_restrictions, no_restrictions


class _RecordingRunner(CommandRunner):
    def __init__(self, *, exit_code: int = 0, stderr: str = "") -> None:
        self.calls: list[list[str]] = []
        self._exit_code = exit_code
        self._stderr = stderr

    def run(self, *, args: Sequence[str], cwd=None, env=None, timeout_seconds=None) -> CommandResult:
        self.calls.append(list(args))
        return CommandResult(exit_code=self._exit_code, stdout="", stderr=self._stderr)


BLACK = Restyler(
    name="black",
    image="restyled/restyler-black",
    command=["black"],
    include=["**/*.py"],
)


def _write(repo_dir: Path, *paths: str) -> None:
    for path in paths:
        target = repo_dir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("x = 1\n", encoding="utf-8")


def test_included_paths_matches_root_and_nested_files() -> None:
    assert included_paths(BLACK, ["a.py", "src/b.py", "c.go"]) == ["a.py", "src/b.py"]


def test_build_args_applies_restrictions_before_image(tmp_path: Path) -> None:
    runner = RestylerRunner(restrictions=full_restrictions(), runner=_RecordingRunner())
    args = runner.build_args(restyler=BLACK, repo_dir=str(tmp_path), paths=["a.py"])
    assert args == [
        "docker",
        "run",
        "--rm",
        "--net",
        "none",
        "--cap-drop",
        "all",
        "--cpu-shares",
        "128",
        "--memory",
        "512m",
        "--volume",
        f"{tmp_path.resolve()}:/code",
        "--workdir",
        "/code",
        "restyled/restyler-black",
        "black",
        "a.py",
    ]


def test_unrestricted_still_drops_network_and_capabilities(tmp_path: Path) -> None:
    runner = RestylerRunner(restrictions=no_restrictions(), runner=_RecordingRunner())
    args = runner.build_args(restyler=BLACK, repo_dir=str(tmp_path), paths=[])
    assert args[3:7] == ["--net", "none", "--cap-drop", "all"]
    assert "--cpu-shares" not in args
    assert "--memory" not in args


def test_run_passes_only_existing_matching_files(tmp_path: Path) -> None:
    _write(tmp_path, "a.py", "src/b.py", "main.go")
    recorder = _RecordingRunner()
    runner = RestylerRunner(restrictions=full_restrictions(), runner=recorder)

    ran = runner.run(
        restyler=BLACK, repo_dir=str(tmp_path), paths=["a.py", "deleted.py", "src/b.py", "main.go"]
    )
    assert ran is True
    assert len(recorder.calls) == 1
    assert recorder.calls[0][-3:] == ["black", "a.py", "src/b.py"]


def test_run_skips_restyler_without_matching_files(tmp_path: Path) -> None:
    _write(tmp_path, "main.go")
    recorder = _RecordingRunner()
    runner = RestylerRunner(restrictions=full_restrictions(), runner=recorder)
    assert runner.run(restyler=BLACK, repo_dir=str(tmp_path), paths=["main.go"]) is False
    assert recorder.calls == []


def test_run_raises_on_nonzero_exit(tmp_path: Path) -> None:
    _write(tmp_path, "a.py")
    runner = RestylerRunner(
        restrictions=full_restrictions(),
        runner=_RecordingRunner(exit_code=123, stderr="cannot parse a.py"),
    )
    with pytest.raises(CommandError) as excinfo:
        runner.run(restyler=BLACK, repo_dir=str(tmp_path), paths=["a.py"])
    assert "docker run restyled/restyler-black exited 123" in str(excinfo.value)
    assert "cannot parse a.py" in str(excinfo.value)
