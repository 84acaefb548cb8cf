from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from restyler.config import AppSettings
from restyler.restrictions import Bytes, Suffix


def test_app_settings_can_load_from_dotenv(tmp_path: Path, monkeypatch) -> None:
    for name in ("GITHUB_TOKEN", "JOB_URL", "RESTYLER_MEMORY", "UNRESTRICTED"):
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "\n".join(
            [
                "GITHUB_TOKEN=token_from_env_file",
                "JOB_URL=https://restyled.io/jobs/1",
                "RESTYLER_MEMORY=256m",
                "UNRESTRICTED=1",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    settings = AppSettings(_env_file=str(env_file))
    assert settings.github_token == "token_from_env_file"
    assert settings.job_url == "https://restyled.io/jobs/1"
    assert settings.restyler_memory == Bytes(256, Suffix.M)
    assert settings.unrestricted is True


def test_app_settings_strips_surrounding_quotes_from_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITHUB_TOKEN", '"quoted_token"')
    monkeypatch.setenv("JOB_URL", "'https://restyled.io/jobs/2'")
    settings = AppSettings()
    assert settings.github_token == "quoted_token"
    assert settings.job_url == "https://restyled.io/jobs/2"


def test_app_settings_empty_flags_are_false(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("UNRESTRICTED", "")
    monkeypatch.setenv("RESTYLER_CPU_SHARES", "")
    settings = AppSettings()
    assert settings.unrestricted is False
    assert settings.restyler_cpu_shares is None


def test_app_settings_rejects_negative_cpu_shares(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RESTYLER_CPU_SHARES", raising=False)
    with pytest.raises(ValidationError):
        AppSettings(restyler_cpu_shares=-5)

    monkeypatch.setenv("RESTYLER_CPU_SHARES", "-5")
    with pytest.raises(ValidationError):
        AppSettings()
