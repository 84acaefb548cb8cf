"""Application configuration.

All secrets must be supplied via environment variables. This module intentionally
avoids printing secret values.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import NonNegativeInt, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from restyler.restrictions import Bytes, read_bytes, read_nat


class AppSettings(BaseSettings):
    """Settings for a single restyling run."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # GitHub auth and pull request context
    github_token: str | None = None
    github_api_base_url: str = "https://api.github.com"
    repo: str | None = None  # "owner/repo"
    pull_request_number: int | None = None

    # Link to this run's log, used for statuses and the PR description
    job_url: str | None = None

    # Work root. Defaults to ./work under the current directory.
    work_root: str | None = None

    # Path or http(s) URL of the restylers manifest (YAML)
    restylers_manifest: str = "restylers.yaml"

    # Container restrictions
    unrestricted: bool = False
    restyler_cpu_shares: NonNegativeInt | None = None
    restyler_memory: Annotated[Bytes | None, NoDecode] = None

    # Git author
    git_author_name: str = "Restyled.io"
    git_author_email: str = "commits@restyled.io"

    debug: bool = False

    @field_validator("github_token", "job_url", mode="before")
    @classmethod
    def _normalize_env_string(cls, value: Any) -> Any:
        """Normalizes env var strings.

        Docker's `--env-file` does not strip quotes. To avoid subtle auth failures
        like 401 caused by surrounding quotes, we trim whitespace and strip a
        single pair of surrounding quotes.
        """

        if value is None or not isinstance(value, str):
            return value
        text = value.strip()
        if len(text) >= 2 and ((text[0] == text[-1] == '"') or (text[0] == text[-1] == "'")):
            text = text[1:-1].strip()
        return text or None

    @field_validator("unrestricted", "debug", mode="before")
    @classmethod
    def _empty_flag_is_false(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return False
        return value

    @field_validator("restyler_cpu_shares", mode="before")
    @classmethod
    def _parse_cpu_shares(cls, value: Any) -> Any:
        if isinstance(value, str):
            return read_nat(value.strip()) if value.strip() else None
        return value

    @field_validator("restyler_memory", mode="before")
    @classmethod
    def _parse_memory(cls, value: Any) -> Any:
        if isinstance(value, str):
            return read_bytes(value.strip()) if value.strip() else None
        return value
