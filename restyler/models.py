"""Value types shared by the restyling loop and the renderers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Restyler(BaseModel):
    """A containerized formatting tool, as described by the restylers manifest."""

    model_config = ConfigDict(frozen=True)

    name: str
    image: str
    command: list[str] = Field(default_factory=list)
    include: list[str] = Field(default_factory=lambda: ["**/*"])
    documentation: list[str] = Field(default_factory=list)


class RestylerResult(BaseModel):
    """Outcome of running one restyler."""

    model_config = ConfigDict(frozen=True)

    restyler: Restyler
    committed: bool


class PullRequest(BaseModel):
    """Subset of the pull request being restyled."""

    model_config = ConfigDict(frozen=True)

    repo: str = Field(..., description="Base repository in 'owner/repo' format.")
    number: int = Field(..., ge=1)
    title: str = ""
    head_sha: str
    head_ref: str
    base_ref: str
    clone_url: str
    is_fork: bool = False

    @property
    def restyled_branch(self) -> str:
        """Branch carrying the style fixes for this pull request."""

        return f"restyled/{self.head_ref}"
